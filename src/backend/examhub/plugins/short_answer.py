"""
简答题插件

每个小问对应一个子题，按可接受答案列表比对（规范化后精确匹配）。
"""

from examhub.core.scoring_utils import matches_acceptable_answer
from examhub.models import (
    ExamCategory,
    QuestionItem,
    ShortAnswerQuestion,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class ShortAnswerPlugin(SubQuestionPlugin):
    """简答题"""

    config = PluginConfig(
        type="short-answer",
        display_name="Short Answer",
        description="Users provide a short text-based answer.",
        category=[ExamCategory.READING, ExamCategory.LISTENING, ExamCategory.GRAMMAR],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    def create_default(self, index: int) -> ShortAnswerQuestion:
        questions = [
            QuestionItem(id=self.new_id(), text=f"Question {n}") for n in range(1, 3)
        ]
        return ShortAnswerQuestion(
            id=self.new_id(),
            text="Answer the questions below.",
            points=len(questions),
            index=index,
            partial_ending_index=index,
            questions=questions,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), item=q.id, acceptable_answers=["answer"], points=1)
                for q in questions
            ],
            word_limit=3,
        )

    def transform(self, question: ShortAnswerQuestion) -> StandardQuestion:
        items = [QuestionItem(id=q.id, text=q.text) for q in question.questions]
        question_text = {item.id: item.text for item in items}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item,
                points=sub.points,
                acceptable_answers=list(sub.acceptable_answers or []),
                explanation=sub.explanation,
                question_text=question_text.get(sub.item),
                answer_text=", ".join(sub.acceptable_answers or []),
            )
            for sub in question.sub_questions
        ]
        return StandardQuestion(
            **self.standard_fields(question),
            items=items,
            sub_questions=sub_questions,
            word_limit=question.word_limit,
        )

    def check_sub_answer(self, question, sub, value):
        return matches_acceptable_answer(value, sub.acceptable_answers or [])

    def sub_feedback(self, question, sub, value, is_correct):
        if is_correct:
            return "Correct!"
        return f"Incorrect. Acceptable answers: {', '.join(sub.acceptable_answers or []) or 'None'}"

    def validate(self, question: ShortAnswerQuestion) -> ValidationResult:
        errors = []

        if not question.questions:
            errors.append("At least one question is required.")
        for position, q in enumerate(question.questions, start=1):
            if not q.text.strip():
                errors.append(f"Question #{position} text is empty.")

        if not question.sub_questions:
            errors.append("Sub-questions for scoring are missing.")
        elif len(question.sub_questions) != len(question.questions):
            errors.append("The number of questions and sub-questions for scoring must match.")
        else:
            for position, sub in enumerate(question.sub_questions, start=1):
                if not any((a or "").strip() for a in (sub.acceptable_answers or [])):
                    errors.append(f"At least one acceptable answer is required for question #{position}.")

        return self.finish_validation(super().validate(question), errors)
