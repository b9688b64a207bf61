"""
匹配题插件：条目与选项按 ID 精确匹配
"""

from examhub.models import (
    ExamCategory,
    MatchingQuestion,
    QuestionItem,
    StandardOption,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class MatchingPlugin(SubQuestionPlugin):
    """匹配题"""

    config = PluginConfig(
        type="matching",
        display_name="Matching",
        description="Match items with corresponding options",
        category=[ExamCategory.READING, ExamCategory.LISTENING, ExamCategory.GRAMMAR],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    result_noun = "matches"

    def create_default(self, index: int) -> MatchingQuestion:
        items = [QuestionItem(id=self.new_id(), text=f"Item {n}") for n in range(1, 4)]
        options = [QuestionItem(id=self.new_id(), text=f"Option {label}") for label in "ABC"]
        return MatchingQuestion(
            id=self.new_id(),
            text="Match each item with the correct option.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            items=items,
            options=options,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), item=item.id, correct_answer=option.id, points=1)
                for item, option in zip(items, options)
            ],
        )

    def transform(self, question: MatchingQuestion) -> StandardQuestion:
        items = [QuestionItem(id=item.id, text=item.text) for item in question.items]
        options = [StandardOption(id=opt.id, text=opt.text) for opt in question.options]
        item_text = {item.id: item.text for item in items}
        option_text = {opt.id: opt.text for opt in options}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item,
                points=sub.points,
                correct_answer=sub.correct_answer,
                explanation=sub.explanation,
                question_text=item_text.get(sub.item),
                answer_text=option_text.get(sub.correct_answer),
            )
            for sub in question.sub_questions
        ]
        return StandardQuestion(
            **self.standard_fields(question),
            items=items,
            options=options,
            sub_questions=sub_questions,
        )

    def check_sub_answer(self, question, sub, value):
        return sub.correct_answer == value

    def sub_feedback(self, question, sub, value, is_correct):
        if is_correct:
            return "Correct match!"
        return f"Incorrect match. Expected: {sub.correct_answer}, Got: {value}"

    def validate(self, question: MatchingQuestion) -> ValidationResult:
        errors = []

        if len(question.items) < 2:
            errors.append("Matching questions must have at least 2 items")
        if len(question.options) < 2:
            errors.append("Matching questions must have at least 2 options")
        if not question.sub_questions:
            errors.append("Matching questions must have at least one sub-question")
        if any(not item.text.strip() for item in question.items):
            errors.append("All items must have text")
        if any(not opt.text.strip() for opt in question.options):
            errors.append("All options must have text")
        if any(not sub.correct_answer for sub in question.sub_questions):
            errors.append("All sub-questions must have correct answers")

        return self.finish_validation(super().validate(question), errors)
