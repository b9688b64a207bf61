"""
判断题插件（TRUE / FALSE / NOT GIVEN）

每个陈述对应一个子题，答案与正确值精确比对。
"""

from typing import List

from examhub.models import (
    ExamCategory,
    QuestionItem,
    StandardQuestion,
    SubQuestionMeta,
    TrueFalseNotGivenQuestion,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class TrueFalseNotGivenPlugin(SubQuestionPlugin):
    """TRUE / FALSE / NOT GIVEN 判断题"""

    config = PluginConfig(
        type="true-false-not-given",
        display_name="True / False / Not Given",
        description="Decide whether statements agree with the information in the passage",
        category=[ExamCategory.READING],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    question_class = TrueFalseNotGivenQuestion
    valid_answers: List[str] = ["TRUE", "FALSE", "NOT_GIVEN"]
    invalid_answer_message = "All correct answers must be TRUE, FALSE, or NOT_GIVEN"
    display_label = "True/False/Not Given"

    def default_sub_points(self) -> float:
        return self.config.default_points / len(self.valid_answers)

    def create_default(self, index: int):
        statements = [QuestionItem(id=self.new_id(), text=f"Statement {n}") for n in range(1, 4)]
        return self.question_class(
            id=self.new_id(),
            text="Do the following statements agree with the information given in the passage?",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            statements=statements,
            sub_questions=[
                SubQuestionMeta(
                    sub_id=self.new_id(),
                    item=statement.id,
                    correct_answer=answer,
                    points=self.default_sub_points(),
                )
                for statement, answer in zip(statements, self.valid_answers)
            ],
        )

    def transform(self, question) -> StandardQuestion:
        items = [QuestionItem(id=s.id, text=s.text) for s in question.statements]
        statement_text = {item.id: item.text for item in items}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item,
                points=sub.points,
                correct_answer=sub.correct_answer,
                explanation=sub.explanation,
                sub_index=position,
                question_text=statement_text.get(sub.item),
                answer_text=str(sub.correct_answer),
            )
            for position, sub in enumerate(question.sub_questions)
        ]
        # 判断题在标准化结构中总是按子题展示
        fields = self.standard_fields(question)
        fields["scoring_strategy"] = "partial"
        return StandardQuestion(**fields, items=items, sub_questions=sub_questions)

    def normalize_answer(self, value: str) -> str:
        return (value or "").strip()

    def check_sub_answer(self, question, sub, value):
        return self.normalize_answer(sub.correct_answer) == self.normalize_answer(value)

    def validate(self, question) -> ValidationResult:
        errors = []
        warnings = []

        if not question.statements:
            errors.append(f"{self.display_label} questions must have at least one statement")
        if not question.sub_questions:
            errors.append(f"{self.display_label} questions must have at least one sub-question")
        if any(not s.text.strip() for s in question.statements):
            errors.append("All statements must have text")
        if any(not (sub.correct_answer or "").strip() for sub in question.sub_questions):
            errors.append("All sub-questions must have correct answers")
        if any(
            sub.correct_answer and not self.is_valid_answer(sub.correct_answer)
            for sub in question.sub_questions
        ):
            errors.append(self.invalid_answer_message)

        if len(question.statements) != len(question.sub_questions):
            warnings.append("Number of statements should match number of sub-questions")

        return self.finish_validation(super().validate(question), errors, warnings)

    def is_valid_answer(self, answer: str) -> bool:
        return answer in self.valid_answers
