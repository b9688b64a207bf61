"""
写作题插件（Task 1 / Task 2）

写作题整题计分，分值即 band 分（0-9）。
正文少于 min_essay_length 个字符时不送 AI 评分；
AI 成功返回即视为"已评分"（is_correct=True），分数为映射后的 band 分。
写作题没有确定性的降级路径，AI 失败时得 0 分并标记为待人工复核。
"""

import logging
from typing import Any

from examhub.core.config import get_scoring_config
from examhub.models import (
    ExamCategory,
    ScoringContext,
    ScoringResult,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
    WritingTask1Question,
    WritingTask2Question,
    WritingTaskQuestion,
)

from .base import PluginConfig, PluginScoringConfig, QuestionPlugin, call_ai_scorer, rescale_ai_score

logger = logging.getLogger(__name__)


def extract_essay_text(answer: Any) -> str:
    """写作答案可以是 {"text": ...} 或直接是字符串"""
    if isinstance(answer, dict):
        value = answer.get("text")
        return "" if value is None else str(value)
    if answer is None:
        return ""
    return str(answer)


class WritingTaskPlugin(QuestionPlugin):
    """写作题插件基类，Task 1 / Task 2 只在默认值与校验提示上不同"""

    question_class = WritingTaskQuestion
    default_text = ""
    default_prompt = ""
    default_word_limit = 150
    task_label = ""

    def create_default(self, index: int) -> WritingTaskQuestion:
        return self.question_class(
            id=self.new_id(),
            text=self.default_text,
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            prompt=self.default_prompt,
            word_limit=self.default_word_limit,
            image_url="",
            sample_answer="",
            scoring_prompt="",
        )

    def transform(self, question: WritingTaskQuestion) -> StandardQuestion:
        return StandardQuestion(
            **self.standard_fields(question),
            sub_questions=[
                SubQuestionMeta(
                    sub_id=question.id,
                    points=question.points,
                    question_text=question.text,
                    answer_text=question.sample_answer,
                )
            ],
            image_url=question.image_url,
            prompt=question.prompt,
            word_limit=question.word_limit,
            sample_answer=question.sample_answer,
            scoring_prompt=question.scoring_prompt,
        )

    def validate(self, question: WritingTaskQuestion) -> ValidationResult:
        errors = []
        warnings = []
        if not (question.text or "").strip():
            errors.append("Task description text is required.")
        if question.word_limit < 100:
            warnings.append(
                f"The word limit is below the recommended {self.default_word_limit} words for {self.task_label}."
            )
        return self.finish_validation(super().validate(question), errors, warnings)

    async def score(self, context: ScoringContext) -> ScoringResult:
        question: WritingTaskQuestion = context.question
        essay = extract_essay_text(context.answer).strip()

        if len(essay) < get_scoring_config().min_essay_length:
            return ScoringResult(
                is_correct=False, score=0, max_score=question.points, feedback="Answer is too short to be scored."
            )

        if context.ai_scoring_fn is None:
            logger.error(f"写作题计分缺少 AI 评分函数: question_id={question.id}")
            return ScoringResult(
                is_correct=False,
                score=0,
                max_score=question.points,
                feedback="Scoring function not available.",
                metadata={"needs_manual_review": True},
            )

        ai_result = await call_ai_scorer(
            context.ai_scoring_fn,
            text=question.text,
            prompt=question.prompt,
            essay=essay,
            scoring_prompt=question.scoring_prompt or "",
        )
        if not ai_result.ok:
            logger.warning(f"写作题 AI 评分失败: question_id={question.id}, error={ai_result.error}")
            return ScoringResult(
                is_correct=False,
                score=0,
                max_score=question.points,
                feedback="No scoring method available.",
                metadata={"degraded": True, "needs_manual_review": True, "ai_error": ai_result.error},
            )

        return ScoringResult(
            is_correct=True,
            score=rescale_ai_score(ai_result.score, question.points),
            max_score=question.points,
            feedback=ai_result.feedback,
            metadata={"ai_scored": True, "ai_raw_score": ai_result.score, "word_count": len(essay.split())},
        )


class WritingTask1Plugin(WritingTaskPlugin):
    """写作 Task 1：图表描述"""

    config = PluginConfig(
        type="writing-task1",
        display_name="Writing Task 1",
        description="Users write a response to a visual prompt (graph, chart, etc.).",
        category=[ExamCategory.WRITING],
        supports_partial_scoring=False,
        supports_ai_scoring=True,
        default_points=9,
        has_sub_questions=False,
        scoring_config=PluginScoringConfig(scoring_priority=2),
    )

    question_class = WritingTask1Question
    default_text = "You should spend about 20 minutes on this task. The chart below shows information about..."
    default_prompt = (
        "Summarise the information by selecting and reporting the main features, "
        "and make comparisons where relevant."
    )
    default_word_limit = 150
    task_label = "Task 1"

    def validate(self, question: WritingTask1Question) -> ValidationResult:
        result = super().validate(question)
        if not question.image_url:
            result.warnings.append("No image has been uploaded for the task. This is highly recommended.")
        return result


class WritingTask2Plugin(WritingTaskPlugin):
    """写作 Task 2：议论文"""

    config = PluginConfig(
        type="writing-task2",
        display_name="Writing Task 2",
        description="Users write an essay in response to a point of view, argument or problem.",
        category=[ExamCategory.WRITING],
        supports_partial_scoring=False,
        supports_ai_scoring=True,
        default_points=9,
        has_sub_questions=False,
        scoring_config=PluginScoringConfig(scoring_priority=2),
    )

    question_class = WritingTask2Question
    default_text = "You should spend about 40 minutes on this task. Write about the following topic:"
    default_prompt = (
        "Some people believe that unpaid community service should be a compulsory part of high school "
        "programmes. To what extent do you agree or disagree?"
    )
    default_word_limit = 250
    task_label = "Task 2"
