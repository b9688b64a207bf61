"""
列表多选题插件

子题标记哪些条目是正确答案（sub.item 为条目 ID）。答案是选中条目 ID 的集合，
可以是单个 ID、列表，或 {任意键: 条目 ID} 字典。

- all-or-nothing: 选中集合必须与正确集合完全相同（多选、少选都不得分）
- partial: 每个正确条目独立计分，"该条目是否被选中"
"""

from typing import Set

from examhub.core.scoring_utils import selected_values
from examhub.models import (
    ExamCategory,
    PickFromListQuestion,
    QuestionItem,
    ScoringContext,
    ScoringResult,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
)

from .base import PluginConfig, QuestionPlugin


class PickFromListPlugin(QuestionPlugin):
    """列表多选题"""

    config = PluginConfig(
        type="pick-from-a-list",
        display_name="Pick from a List",
        description="Select multiple options from a provided list",
        category=[ExamCategory.READING, ExamCategory.LISTENING],
        supports_partial_scoring=True,
        supports_ai_scoring=False,
        default_points=1,
        has_sub_questions=True,
    )

    def create_default(self, index: int) -> PickFromListQuestion:
        items = [QuestionItem(id=self.new_id(), text=f"Option {n}") for n in range(1, 6)]
        return PickFromListQuestion(
            id=self.new_id(),
            text="Choose TWO letters.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            items=items,
            sub_questions=[
                SubQuestionMeta(sub_id=self.new_id(), item=item.id, correct_answer="true", points=1)
                for item in items[:2]
            ],
        )

    def transform(self, question: PickFromListQuestion) -> StandardQuestion:
        items = [QuestionItem(id=item.id, text=item.text) for item in question.items]
        item_text = {item.id: item.text for item in items}

        sub_questions = [
            SubQuestionMeta(
                sub_id=sub.sub_id,
                item=sub.item or "",
                points=sub.points,
                correct_answer="true",
                explanation=sub.explanation,
                question_text=item_text.get(sub.item or "", ""),
                answer_text=item_text.get(sub.item or "", ""),
            )
            for sub in question.sub_questions
        ]
        return StandardQuestion(**self.standard_fields(question), items=items, sub_questions=sub_questions)

    @staticmethod
    def _correct_items(question: PickFromListQuestion) -> Set[str]:
        return {sub.item for sub in question.sub_questions if sub.item}

    async def score(self, context: ScoringContext) -> ScoringResult:
        question: PickFromListQuestion = context.question
        selected = set(selected_values(context.answer))

        if question.is_partial:
            if context.sub_question_id:
                sub = question.find_sub_question(context.sub_question_id)
                if sub is None:
                    return self.sub_question_not_found()
                return self._score_candidate(sub, selected)
            return self._score_candidates(question, selected)
        return self._score_exact_set(question, selected)

    @staticmethod
    def _score_candidate(sub: SubQuestionMeta, selected: Set[str]) -> ScoringResult:
        """单个正确条目：被选中即得该子题分值"""
        is_correct = sub.item in selected
        return ScoringResult(
            is_correct=is_correct,
            score=sub.points if is_correct else 0,
            max_score=sub.points,
            feedback="Correct selection!" if is_correct else "This correct option was not selected",
        )

    def _score_candidates(self, question: PickFromListQuestion, selected: Set[str]) -> ScoringResult:
        results = [self._score_candidate(sub, selected) for sub in question.sub_questions]
        correct_count = sum(1 for r in results if r.is_correct)
        total = len(results)
        is_correct = total > 0 and correct_count == total
        return ScoringResult(
            is_correct=is_correct,
            score=sum(r.score for r in results),
            max_score=sum(r.max_score for r in results),
            feedback="All selections correct!" if is_correct else f"{correct_count}/{total} selections correct",
            metadata={"partially_correct": 0 < correct_count < total},
        )

    def _score_exact_set(self, question: PickFromListQuestion, selected: Set[str]) -> ScoringResult:
        correct_items = self._correct_items(question)
        is_correct = bool(correct_items) and selected == correct_items
        return ScoringResult(
            is_correct=is_correct,
            score=question.points if is_correct else 0,
            max_score=question.points,
            feedback=(
                "All selections correct!" if is_correct
                else f"Selected {len(selected)} items, but {len(correct_items)} are required"
            ),
        )

    def validate(self, question: PickFromListQuestion) -> ValidationResult:
        errors = []
        warnings = []

        if len(question.items) < 3:
            errors.append("Pick from list questions must have at least 3 options")
        if not question.sub_questions:
            errors.append("Pick from list questions must have at least one correct answer marked")
        if any(not item.text.strip() for item in question.items):
            errors.append("All list items must have text")

        item_ids = {item.id for item in question.items}
        if any(sub.item not in item_ids for sub in question.sub_questions):
            errors.append("All correct answers must reference an item in the list")

        if len(question.sub_questions) > len(question.items):
            warnings.append("More correct answers than available items")

        return self.finish_validation(super().validate(question), errors, warnings)
