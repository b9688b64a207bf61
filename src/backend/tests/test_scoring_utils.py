"""
计分工具函数测试
"""
import pytest

from examhub.core.scoring_utils import (
    QuestionStatus,
    ScoringStrategyHandler,
    are_string_answers_equal,
    calculate_percentage,
    calculate_total_score,
    create_error_result,
    determine_question_status,
    extract_sub_answers,
    group_answers_by_question,
    has_valid_answer,
    matches_acceptable_answer,
    normalize_score,
    normalize_string_answer,
    resolve_sub_answer,
    selected_values,
    validate_user_answer,
)
from examhub.models import InvalidAnswerError, ScoringErrorCode, UserAnswer, coerce_answer_payload
from examhub.plugins import QuestionPluginRegistry


class TestScoreNormalization:
    """分数规范化"""

    @pytest.mark.parametrize("score,max_score,expected", [
        (5, 10, 5),
        (-1, 10, 0),
        (12, 10, 10),
        (3, 0, 0),
        (3, -2, 0),
    ])
    def test_normalize_score(self, score, max_score, expected):
        assert normalize_score(score, max_score) == expected

    def test_calculate_percentage(self):
        assert calculate_percentage(2, 3) == 67
        assert calculate_percentage(1, 3) == 33
        assert calculate_percentage(15, 10) == 100
        assert calculate_percentage(1, 0) == 0


class TestAnswerValidity:
    """答案有效性"""

    @pytest.mark.parametrize("answer", [None, "", "   ", [], {}, {"a": ""}, {"a": None}, float("nan")])
    def test_empty_answers(self, answer):
        assert has_valid_answer(answer) is False

    @pytest.mark.parametrize("answer", ["a", ["x"], {"a": "", "b": "y"}, 0, False])
    def test_valid_answers(self, answer):
        assert has_valid_answer(answer) is True

    def test_validate_user_answer(self):
        result = validate_user_answer(UserAnswer(question_id="q", score=3, max_score=2))

        assert result.is_valid is False
        assert result.errors == ["Score cannot exceed maxScore"]

    def test_answered_at_is_timezone_aware(self):
        assert UserAnswer(question_id="q").answered_at.tzinfo is not None


class TestQuestionStatus:
    """作答状态"""

    def test_untouched(self, completion_question):
        assert determine_question_status(completion_question, {}) == QuestionStatus.UNTOUCHED

    def test_partial_with_sub_records(self, completion_question):
        answers = {"s1": UserAnswer(question_id="cmp-1", sub_question_id="s1", answer="paris")}

        assert determine_question_status(completion_question, answers) == QuestionStatus.PARTIAL

    def test_completed_from_main_answer(self, completion_question):
        answers = {"cmp-1": UserAnswer(question_id="cmp-1", answer={"s1": "a", "s2": "b", "s3": "c"})}

        assert determine_question_status(completion_question, answers) == QuestionStatus.COMPLETED

    def test_blank_sub_answer_is_not_counted(self, completion_question):
        answers = {
            "s1": UserAnswer(question_id="cmp-1", sub_question_id="s1", answer="a"),
            "s2": UserAnswer(question_id="cmp-1", sub_question_id="s2", answer="  "),
            "cmp-1": UserAnswer(question_id="cmp-1", answer={"s3": "c"}),
        }

        assert determine_question_status(completion_question, answers) == QuestionStatus.PARTIAL

    def test_all_or_nothing_question(self, multiple_choice_question):
        answers = {"mc-1": UserAnswer(question_id="mc-1", answer="b")}

        assert determine_question_status(multiple_choice_question, answers) == QuestionStatus.COMPLETED

    def test_sub_questions_come_from_standardized_question(self, registry, translation_question):
        """翻译题没有 sub_questions 条目时按句子判断"""
        assert translation_question.sub_questions == []
        answers = {"t1": UserAnswer(question_id="tr-1", sub_question_id="t1", answer="I like reading books.")}

        assert determine_question_status(translation_question, answers, registry) == QuestionStatus.PARTIAL

        answers["t2"] = UserAnswer(question_id="tr-1", sub_question_id="t2", answer="It is raining.")
        assert determine_question_status(translation_question, answers, registry) == QuestionStatus.COMPLETED

    def test_unregistered_type_uses_own_sub_questions(self, completion_question):
        answers = {"s1": UserAnswer(question_id="cmp-1", sub_question_id="s1", answer="paris")}

        status = determine_question_status(completion_question, answers, QuestionPluginRegistry())

        assert status == QuestionStatus.PARTIAL


class TestAnswerFormats:
    """答案格式"""

    def test_string_normalization(self):
        assert normalize_string_answer("  The   River ") == "the river"
        assert are_string_answers_equal("  paris ", "Paris")
        assert not are_string_answers_equal("paris", "pari")

    def test_acceptable_answers_are_exact(self):
        assert matches_acceptable_answer("THE river", ["river", "the river"])
        assert not matches_acceptable_answer("rivers", ["river"])
        assert not matches_acceptable_answer("", ["river"])

    def test_resolve_sub_answer(self):
        assert resolve_sub_answer({"s1": "a"}, "s1") == "a"
        assert resolve_sub_answer({"s1": None}, "s1") == ""
        assert resolve_sub_answer("a", "s1") == "a"
        assert resolve_sub_answer(None, "s1") == ""

    def test_extract_and_select(self):
        assert extract_sub_answers("a") == {}
        assert extract_sub_answers({"x": "1"}) == {"x": "1"}
        assert selected_values(["a", "", "b"]) == ["a", "b"]
        assert selected_values({"x": "a", "y": None}) == ["a"]
        assert selected_values("a") == ["a"]
        assert selected_values(None) == []

    def test_coerce_answer_payload(self):
        assert coerce_answer_payload(3) == "3"
        assert coerce_answer_payload({"s1": 1.5, "s2": None}) == {"s1": "1.5", "s2": None}
        assert coerce_answer_payload(("a", None)) == ["a"]

        with pytest.raises(InvalidAnswerError):
            coerce_answer_payload(True)
        with pytest.raises(InvalidAnswerError):
            coerce_answer_payload({1: "a"})


class TestStrategyHandler:
    """计分时机"""

    def test_immediate_and_ai_types(self, multiple_choice_question, writing_question, translation_question):
        assert ScoringStrategyHandler.should_score_immediately(multiple_choice_question)
        assert not ScoringStrategyHandler.should_score_immediately(writing_question)
        assert ScoringStrategyHandler.requires_ai_scoring(translation_question)
        assert ScoringStrategyHandler.might_require_manual_review(writing_question)
        assert not ScoringStrategyHandler.might_require_manual_review(multiple_choice_question)


class TestAggregation:
    """错误结果与分数汇总"""

    def test_create_error_result(self):
        result = create_error_result(ValueError("bad"), max_score=2, code=ScoringErrorCode.INVALID_ANSWER)

        assert result.score == 0
        assert result.max_score == 2
        assert result.feedback == "Scoring failed: bad"
        assert result.to_dict()["error"] == {"code": "INVALID_ANSWER", "message": "bad", "recoverable": True}

    def test_calculate_total_score(self):
        answers = [
            UserAnswer(question_id="a", score=1, max_score=2),
            UserAnswer(question_id="b", score=None, max_score=3),
        ]

        assert calculate_total_score(answers) == {"total_score": 1, "max_possible_score": 5}

    def test_group_answers_by_question(self):
        answers = {
            "s1": UserAnswer(question_id="q1", sub_question_id="s1"),
            "s2": UserAnswer(question_id="q1", sub_question_id="s2"),
            "q2": UserAnswer(question_id="q2"),
        }

        grouped = group_answers_by_question(answers)

        assert [a.sub_question_id for a in grouped["q1"]] == ["s1", "s2"]
        assert len(grouped["q2"]) == 1
