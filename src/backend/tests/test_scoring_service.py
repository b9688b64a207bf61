"""
计分服务单元测试

关键测试场景：
1. score_question 附加服务级元数据，所有失败都转换为 0 分结果
2. calculate_question_score 使用已保存结果或重新计分
3. 未作答的子题计入满分
4. rescore_user_answers 原地更新作答记录
"""
import pytest

from examhub.models import (
    BaseQuestion,
    ScoringContext,
    ScoringErrorCode,
    ScoringResult,
    ScoringStrategy,
    UserAnswer,
)
from examhub.services.scoring_service import ScoringService


def _record(question_id, answer, sub_id=None, **scores) -> UserAnswer:
    return UserAnswer(question_id=question_id, sub_question_id=sub_id, answer=answer, **scores)


class TestScoreQuestion:
    """单次计分"""

    @pytest.mark.asyncio
    async def test_service_metadata(self, registry, multiple_choice_question):
        result = await ScoringService.score_question(
            ScoringContext(question=multiple_choice_question, answer="b"), registry
        )

        assert result.is_correct is True
        assert result.metadata["scoring_id"].startswith("score_")
        assert len(result.metadata["scoring_id"].split("_")[-1]) == 9
        assert isinstance(result.metadata["timestamp"], int)
        assert result.metadata["ai_scored"] is False
        assert result.metadata["manual_scored"] is False
        assert "requires_manual_review" not in result.metadata

    @pytest.mark.asyncio
    async def test_unregistered_type(self, registry):
        question = BaseQuestion(id="q", type="essay", points=4)

        result = await ScoringService.score_question(ScoringContext(question=question, answer="x"), registry)

        assert result.score == 0
        assert result.max_score == 4
        assert result.feedback == "No plugin registered for question type: essay"
        assert result.error.code == ScoringErrorCode.PLUGIN_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unregistered_type_as_dict(self, registry):
        question = {"id": "q", "type": "unknown_type", "points": 3}

        result = await ScoringService.score_question(ScoringContext(question=question, answer="x"), registry)

        assert result.score == 0
        assert result.max_score == 3
        assert result.error.code == ScoringErrorCode.PLUGIN_NOT_FOUND
        assert "scoring_id" in result.metadata
        assert "scoring_id" in result.metadata

    @pytest.mark.asyncio
    async def test_missing_question(self, registry):
        result = await ScoringService.score_question(ScoringContext(question=None, answer="x"), registry)

        assert result.score == 0
        assert result.feedback == "Scoring failed due to an error"
        assert result.error.code == ScoringErrorCode.INVALID_QUESTION

    @pytest.mark.asyncio
    async def test_foreign_sub_question(self, registry, completion_question):
        result = await ScoringService.score_question(
            ScoringContext(question=completion_question, answer="x", sub_question_id="other"), registry
        )

        assert result.error.code == ScoringErrorCode.INVALID_QUESTION
        assert "does not belong to question cmp-1" in result.error.message

    @pytest.mark.asyncio
    async def test_translation_sentence_id_is_accepted(self, registry, translation_question):
        """翻译题的子题来自标准化结构（句子 ID）"""
        result = await ScoringService.score_question(
            ScoringContext(question=translation_question, answer="It is raining.", sub_question_id="t2"),
            registry,
        )

        assert result.error is None
        assert result.is_correct is True

    @pytest.mark.asyncio
    async def test_invalid_answer_payload(self, registry, multiple_choice_question):
        result = await ScoringService.score_question(
            ScoringContext(question=multiple_choice_question, answer={"x": object()}), registry
        )

        assert result.score == 0
        assert result.error.code == ScoringErrorCode.INVALID_ANSWER

    @pytest.mark.asyncio
    async def test_numeric_answer_is_coerced(self, registry, completion_question):
        result = await ScoringService.score_question(
            ScoringContext(question=completion_question, answer=1889, sub_question_id="s3"), registry
        )

        assert result.is_correct is True

    @pytest.mark.asyncio
    async def test_writing_requires_manual_review_without_ai(self, registry, writing_question, essay):
        result = await ScoringService.score_question(
            ScoringContext(question=writing_question, answer={"text": essay}), registry
        )

        assert result.metadata["requires_manual_review"] is True
        assert result.metadata["ai_scored"] is False

    @pytest.mark.asyncio
    async def test_writing_ai_scored(self, registry, writing_question, essay, ai_scoring_fn):
        result = await ScoringService.score_question(
            ScoringContext(question=writing_question, answer={"text": essay}, ai_scoring_fn=ai_scoring_fn),
            registry,
            manual_scored=True,
        )

        assert result.score == 9
        assert result.metadata["ai_scored"] is True
        assert result.metadata["manual_scored"] is True
        assert result.metadata["requires_manual_review"] is False

    def test_validate_scoring_context(self, registry, completion_question):
        valid = ScoringService.validate_scoring_context(
            ScoringContext(question=completion_question, sub_question_id="s1"), registry
        )
        missing = ScoringService.validate_scoring_context(ScoringContext(question=None), registry)

        assert valid.is_valid is True
        assert missing.errors == ["Question is required in scoring context"]


class TestCalculateQuestionScore:
    """按作答记录汇总得分"""

    @pytest.mark.asyncio
    async def test_cached_partial_score(self, registry, completion_question):
        answers = {
            "s1": _record("cmp-1", "Paris", "s1", score=1, max_score=1, is_correct=True),
            "s2": _record("cmp-1", "lake", "s2", score=0, max_score=1, is_correct=False),
        }

        summary = await ScoringService.calculate_question_score(
            completion_question, answers, include_breakdown=True, registry=registry
        )

        # s3 未作答：满分计入、得 0 分
        assert summary.score == 1
        assert summary.max_score == 3
        assert summary.percentage == 33
        assert summary.partially_correct is True
        assert summary.breakdown.scoring_method == "cached"
        assert [d.sub_id for d in summary.breakdown.sub_questions] == ["s1", "s2", "s3"]

    @pytest.mark.asyncio
    async def test_recalculate_partial_score(self, registry, completion_question):
        """已保存的结果过期时重新计分"""
        answers = {
            "s1": _record("cmp-1", "paris", "s1", score=0, max_score=1, is_correct=False),
            "s2": _record("cmp-1", "river", "s2", score=0, max_score=1, is_correct=False),
            "s3": _record("cmp-1", "1889", "s3", score=0, max_score=1, is_correct=False),
        }

        summary = await ScoringService.calculate_question_score(
            completion_question, answers, recalculate=True, include_breakdown=True, registry=registry
        )

        assert summary.score == 3
        assert summary.is_correct is True
        assert summary.breakdown.scoring_method == "plugin"

    @pytest.mark.asyncio
    async def test_all_or_nothing_uses_question_id(self, registry, multiple_choice_question):
        answers = {"mc-1": _record("mc-1", "a", score=0, max_score=1, is_correct=False)}

        cached = await ScoringService.calculate_question_score(
            multiple_choice_question, answers, registry=registry
        )
        empty = await ScoringService.calculate_question_score(
            multiple_choice_question, {}, include_breakdown=True, registry=registry
        )

        assert cached.score == 0
        assert cached.max_score == 1
        assert empty.score == 0
        assert empty.max_score == 1
        assert empty.breakdown.scoring_method == "fallback"

    @pytest.mark.asyncio
    async def test_unregistered_type(self, registry):
        question = BaseQuestion(id="q", type="essay", points=3)

        summary = await ScoringService.calculate_question_score(
            question, {}, include_breakdown=True, registry=registry
        )

        assert summary.score == 0
        assert summary.max_score == 3
        assert summary.breakdown.has_errors is True

    @pytest.mark.asyncio
    async def test_translation_sentences_are_sub_questions(self, registry, translation_question):
        answers = {"t1": _record("tr-1", "I like reading books.", "t1", score=1, max_score=1, is_correct=True)}

        summary = await ScoringService.calculate_question_score(translation_question, answers, registry=registry)

        assert summary.score == 1
        assert summary.max_score == 2

    @pytest.mark.asyncio
    async def test_to_dict(self, registry, completion_question):
        summary = await ScoringService.calculate_question_score(
            completion_question, {}, include_breakdown=True, registry=registry
        )

        data = summary.to_dict()

        assert data["maxScore"] == 3
        assert data["percentage"] == 0
        assert data["breakdown"]["metadata"]["scoringMethod"] == "cached"
        assert len(data["breakdown"]["subQuestions"]) == 3


class TestScoreAnswers:
    """整份答卷计分"""

    @pytest.mark.asyncio
    async def test_score_answers(self, registry, multiple_choice_question, completion_question):
        answers = {
            "mc-1": _record("mc-1", "b", score=1, max_score=1, is_correct=True),
            "s1": _record("cmp-1", "Paris", "s1", score=1, max_score=1, is_correct=True),
        }

        summaries = await ScoringService.score_answers(
            [multiple_choice_question, completion_question], answers, registry=registry
        )

        assert summaries["mc-1"].score == 1
        assert summaries["cmp-1"].score == 1
        assert summaries["cmp-1"].max_score == 3


class TestUserAnswers:
    """作答记录"""

    def test_create_user_answer(self):
        result = ScoringResult(
            is_correct=False, score=1, max_score=3, feedback="1/3", metadata={"partially_correct": True}
        )

        record = ScoringService.create_user_answer("q", {"a": "b"}, result)

        assert record.score == 1
        assert record.max_score == 3
        assert record.partially_correct is True
        assert record.answer_key == "q"

    @pytest.mark.asyncio
    async def test_rescore_user_answers(self, registry, completion_question, multiple_choice_question):
        answers = {
            "s1": _record("cmp-1", "paris", "s1", score=0, is_correct=False),
            "s2": _record("cmp-1", "lake", "s2", score=1, is_correct=True),
            "mc-1": _record("mc-1", "a", score=1, is_correct=True),
        }

        rescored = await ScoringService.rescore_user_answers(completion_question, answers, registry=registry)

        assert set(rescored) == {"s1", "s2"}
        assert answers["s1"].is_correct is True
        assert answers["s1"].score == 1
        assert answers["s2"].is_correct is False
        assert answers["s2"].feedback == "Incorrect. Acceptable answers: river, the river"
        # 其他题目的记录不受影响
        assert answers["mc-1"].score == 1

    @pytest.mark.asyncio
    async def test_rescore_all_or_nothing(self, registry, completion_question):
        question = completion_question.model_copy(update={"scoring_strategy": ScoringStrategy.ALL_OR_NOTHING})
        answers = {"cmp-1": _record("cmp-1", {"s1": "paris", "s2": "river", "s3": "1889"})}

        await ScoringService.rescore_user_answers(question, answers, registry=registry)

        assert answers["cmp-1"].score == 3
        assert answers["cmp-1"].is_correct is True
