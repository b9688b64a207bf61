"""
单选题插件

答案为选中的选项 ID；也接受 {题目 ID: 选项 ID} 形式，
因为标准化后唯一的子题 sub_id 就是题目 ID。
"""

from examhub.core.scoring_utils import resolve_sub_answer
from examhub.models import (
    ChoiceOption,
    ExamCategory,
    MultipleChoiceQuestion,
    ScoringContext,
    ScoringResult,
    ScoringStrategy,
    StandardOption,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, QuestionPlugin


class MultipleChoicePlugin(QuestionPlugin):
    """单选题"""

    config = PluginConfig(
        type="multiple-choice",
        display_name="Multiple Choice",
        description="Select one correct answer from multiple options",
        category=[ExamCategory.READING, ExamCategory.LISTENING],
        supports_partial_scoring=False,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=False,
    )

    def create_default(self, index: int) -> MultipleChoiceQuestion:
        return MultipleChoiceQuestion(
            id=self.new_id(),
            text="Choose the correct answer.",
            points=self.config.default_points,
            scoring_strategy=ScoringStrategy.ALL_OR_NOTHING,
            index=index,
            partial_ending_index=index,
            options=[
                ChoiceOption(id=self.new_id(), text=f"Option {label}", is_correct=(label == "A"))
                for label in "ABCD"
            ],
        )

    def transform(self, question: MultipleChoiceQuestion) -> StandardQuestion:
        options = [
            StandardOption(id=opt.id, text=opt.text, is_correct=opt.is_correct)
            for opt in question.options
        ]
        correct = question.correct_option()
        sub_question = SubQuestionMeta(
            sub_id=question.id,
            item=question.id,
            points=question.points,
            correct_answer=correct.id if correct else None,
            question_text=question.text,
            answer_text=correct.text if correct else None,
        )
        return StandardQuestion(
            **self.standard_fields(question),
            options=options,
            sub_questions=[sub_question],
        )

    async def score(self, context: ScoringContext) -> ScoringResult:
        question: MultipleChoiceQuestion = context.question
        answer = resolve_sub_answer(context.answer, question.id)

        selected = next((opt for opt in question.options if opt.id == answer), None)
        correct = question.correct_option()
        is_correct = bool(selected and selected.is_correct)

        if is_correct:
            feedback = f"Correct! You selected: {selected.text}"
        else:
            selected_text = selected.text if selected else "None selected"
            correct_text = correct.text if correct else "Unknown"
            feedback = f"Incorrect. You selected: {selected_text}. The correct answer was: {correct_text}"

        return ScoringResult(
            is_correct=is_correct,
            score=question.points if is_correct else 0,
            max_score=question.points,
            feedback=feedback,
            metadata={
                "selected_answer": {
                    "id": selected.id if selected else None,
                    "text": selected.text if selected else None,
                },
                "correct_answer": {
                    "id": correct.id if correct else None,
                    "text": correct.text if correct else None,
                },
            },
        )

    def validate(self, question: MultipleChoiceQuestion) -> ValidationResult:
        errors = []
        warnings = []

        if len(question.options) < 2:
            errors.append("Multiple choice questions must have at least 2 options")

        correct_count = sum(1 for opt in question.options if opt.is_correct)
        if correct_count == 0:
            errors.append("Multiple choice questions must have at least one correct option")
        elif correct_count > 1:
            warnings.append("Multiple choice questions typically have only one correct option")

        if any(not opt.text.strip() for opt in question.options):
            errors.append("All options must have text")

        return self.finish_validation(super().validate(question), errors, warnings)
