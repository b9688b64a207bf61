"""
图表标注题插件：为图上的每个标签选择正确选项
"""

from examhub.models import (
    ExamCategory,
    LabelingQuestion,
    QuestionItem,
    StandardOption,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class LabelingPlugin(SubQuestionPlugin):
    """图表标注题"""

    config = PluginConfig(
        type="labeling",
        display_name="Labeling",
        description="Label parts of a diagram, map or plan",
        category=[ExamCategory.READING, ExamCategory.LISTENING],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    result_noun = "labels"

    def create_default(self, index: int) -> LabelingQuestion:
        labels = [QuestionItem(id=self.new_id(), text=f"Label {n}") for n in range(1, 4)]
        options = [QuestionItem(id=self.new_id(), text=f"Option {label}") for label in "ABCDE"]
        return LabelingQuestion(
            id=self.new_id(),
            text="Label the diagram below.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            image_url="",
            labels=labels,
            options=options,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), item=label.id, correct_answer=option.id, points=1)
                for label, option in zip(labels, options)
            ],
        )

    def transform(self, question: LabelingQuestion) -> StandardQuestion:
        items = [QuestionItem(id=label.id, text=label.text) for label in question.labels]
        options = [StandardOption(id=opt.id, text=opt.text) for opt in question.options]
        label_text = {item.id: item.text for item in items}
        option_text = {opt.id: opt.text for opt in options}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item,
                points=sub.points,
                correct_answer=sub.correct_answer,
                explanation=sub.explanation,
                question_text=label_text.get(sub.item),
                answer_text=option_text.get(sub.correct_answer),
            )
            for sub in question.sub_questions
        ]
        return StandardQuestion(
            **self.standard_fields(question),
            image_url=question.image_url,
            items=items,
            options=options,
            sub_questions=sub_questions,
        )

    def check_sub_answer(self, question, sub, value):
        return sub.correct_answer == value

    def sub_feedback(self, question, sub, value, is_correct):
        return "Correct label!" if is_correct else "Incorrect label"

    def validate(self, question: LabelingQuestion) -> ValidationResult:
        errors = []
        warnings = []

        if not question.labels:
            errors.append("Labeling questions must have at least one label")
        if not question.options:
            errors.append("Labeling questions must have at least one option")
        if not question.sub_questions:
            errors.append("Labeling questions must have at least one sub-question")
        if any(not label.text.strip() for label in question.labels):
            errors.append("All labels must have text")
        if any(not opt.text.strip() for opt in question.options):
            errors.append("All options must have text")
        if any(not (sub.correct_answer or "").strip() for sub in question.sub_questions):
            errors.append("All sub-questions must have correct answers")

        if not question.image_url.strip():
            warnings.append("Consider adding an image URL for the labeling diagram")
        if len(question.sub_questions) != len(question.labels):
            warnings.append("Number of labels should match number of sub-questions")

        return self.finish_validation(super().validate(question), errors, warnings)
