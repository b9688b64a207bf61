"""
填空题插件

每个空是一个子题，答案规范化（去首尾空白、小写、合并空白）后
与可接受答案列表逐一比对。
"""

from examhub.core.scoring_utils import matches_acceptable_answer
from examhub.models import (
    CompletionQuestion,
    ExamCategory,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class CompletionPlugin(SubQuestionPlugin):
    """填空题"""

    config = PluginConfig(
        type="completion",
        display_name="Completion",
        description="Fill in the blanks with appropriate words",
        category=[ExamCategory.READING, ExamCategory.LISTENING, ExamCategory.GRAMMAR],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    def create_default(self, index: int) -> CompletionQuestion:
        return CompletionQuestion(
            id=self.new_id(),
            text="Complete the sentence. Write NO MORE THAN TWO WORDS for each answer.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), points=1, acceptable_answers=["answer"]),
            ],
        )

    def transform(self, question: CompletionQuestion) -> StandardQuestion:
        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                points=sub.points,
                acceptable_answers=list(sub.acceptable_answers or []),
                explanation=sub.explanation,
                question_text=question.text,
                answer_text=", ".join(sub.acceptable_answers or []) or None,
            )
            for sub in question.sub_questions
        ]
        return StandardQuestion(**self.standard_fields(question), sub_questions=sub_questions)

    def check_sub_answer(self, question, sub, value):
        return matches_acceptable_answer(value, sub.acceptable_answers or [])

    def sub_feedback(self, question, sub, value, is_correct):
        if is_correct:
            return "Correct!"
        return f"Incorrect. Acceptable answers: {', '.join(sub.acceptable_answers or []) or 'None'}"

    def validate(self, question: CompletionQuestion) -> ValidationResult:
        errors = []

        if not question.sub_questions:
            errors.append("Completion questions must have at least one blank")

        if any(
            not any((answer or "").strip() for answer in (sub.acceptable_answers or []))
            for sub in question.sub_questions
        ):
            errors.append("All blanks must have at least one acceptable answer")

        return self.finish_validation(super().validate(question), errors)
