"""
段落标题匹配题插件
"""

from examhub.models import (
    ExamCategory,
    MatchingHeadingsQuestion,
    QuestionItem,
    StandardOption,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, SubQuestionPlugin


class MatchingHeadingsPlugin(SubQuestionPlugin):
    """段落标题匹配题：为每个段落选择一个标题"""

    config = PluginConfig(
        type="matching-headings",
        display_name="Matching Headings",
        description="Match headings to paragraphs of the passage",
        category=[ExamCategory.READING],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    result_noun = "heading matches"

    def create_default(self, index: int) -> MatchingHeadingsQuestion:
        paragraphs = [QuestionItem(id=self.new_id(), text=f"Paragraph {label}") for label in "ABC"]
        headings = [QuestionItem(id=self.new_id(), text=f"Heading {n}") for n in ("i", "ii", "iii", "iv")]
        return MatchingHeadingsQuestion(
            id=self.new_id(),
            text="Choose the correct heading for each paragraph.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            paragraphs=paragraphs,
            headings=headings,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), item=paragraph.id, correct_answer=heading.id, points=1)
                for paragraph, heading in zip(paragraphs, headings)
            ],
        )

    def transform(self, question: MatchingHeadingsQuestion) -> StandardQuestion:
        items = [QuestionItem(id=p.id, text=p.text) for p in question.paragraphs]
        options = [StandardOption(id=h.id, text=h.text) for h in question.headings]
        paragraph_text = {item.id: item.text for item in items}
        heading_text = {opt.id: opt.text for opt in options}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item,
                points=sub.points,
                correct_answer=sub.correct_answer,
                explanation=sub.explanation,
                sub_index=position,
                question_text=paragraph_text.get(sub.item),
                answer_text=heading_text.get(sub.correct_answer),
            )
            for position, sub in enumerate(question.sub_questions)
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
            return "Correct heading match!"
        return f"Incorrect heading match. Expected: {sub.correct_answer}, Got: {value}"

    def validate(self, question: MatchingHeadingsQuestion) -> ValidationResult:
        errors = []
        warnings = []

        if not question.paragraphs:
            errors.append("Matching headings questions must have at least one paragraph")
        if not question.headings:
            errors.append("Matching headings questions must have at least one heading")
        if not question.sub_questions:
            errors.append("Matching headings questions must have at least one sub-question")
        if any(not p.text.strip() for p in question.paragraphs):
            errors.append("All paragraphs must have text")
        if any(not h.text.strip() for h in question.headings):
            errors.append("All headings must have text")
        if any(not (sub.correct_answer or "").strip() for sub in question.sub_questions):
            errors.append("All sub-questions must have correct answers")

        if len(question.sub_questions) > len(question.paragraphs):
            warnings.append("More sub-questions than available paragraphs")
        if len(question.headings) < len(question.paragraphs):
            warnings.append("Consider having more headings than paragraphs to avoid guessing")

        return self.finish_validation(super().validate(question), errors, warnings)
