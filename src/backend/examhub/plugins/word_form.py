"""
词形变换题插件

每个练习给出句子和原形单词，要求写出正确的词形。
没有 AI 评分函数时做忽略大小写的精确比对；有 AI 时达到 80% 视为正确，
AI 失败时回退到精确比对。
"""

import asyncio
import logging
from typing import List, Optional

from examhub.core.scoring_utils import are_string_answers_equal, extract_sub_answers, resolve_sub_answer
from examhub.models import (
    AIScoringFn,
    ExamCategory,
    ScoringContext,
    ScoringResult,
    StandardQuestion,
    SubQuestionMeta,
    ValidationResult,
    WordFormExercise,
    WordFormQuestion,
)
from prompts import prompt_loader

from .base import (
    AI_SCORE_SCALE,
    PluginConfig,
    PluginScoringConfig,
    QuestionPlugin,
    call_ai_scorer,
    rescale_ai_score,
)

logger = logging.getLogger(__name__)

PASS_RATIO = 0.8


class WordFormPlugin(QuestionPlugin):
    """词形变换题"""

    config = PluginConfig(
        type="word-form",
        display_name="Word Form",
        description="Users provide the correct form of a given word.",
        category=[ExamCategory.GRAMMAR],
        supports_partial_scoring=True,
        supports_ai_scoring=True,
        default_points=1,
        has_sub_questions=True,
        scoring_config=PluginScoringConfig(scoring_priority=1),
    )

    def create_default(self, index: int) -> WordFormQuestion:
        exercise = WordFormExercise(
            id=self.new_id(),
            sentence="He _____ to work every day. (drive)",
            base_word="drive",
            correct_form="drives",
        )
        return WordFormQuestion(
            id=self.new_id(),
            text="Fill in the correct form of the word given in parentheses.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            exercises=[exercise],
            sub_questions=[SubQuestionMeta(sub_id=exercise.id, item=exercise.base_word, points=1)],
        )

    @staticmethod
    def exercise_points(question: WordFormQuestion) -> float:
        return question.points / (len(question.exercises) or 1)

    def transform(self, question: WordFormQuestion) -> StandardQuestion:
        points = self.exercise_points(question)
        sub_questions = [
            SubQuestionMeta(
                sub_id=exercise.id,
                item=exercise.base_word,
                points=points,
                correct_answer=exercise.correct_form,
                sub_index=position,
                question_text=exercise.sentence,
                answer_text=exercise.correct_form,
            )
            for position, exercise in enumerate(question.exercises)
        ]
        return StandardQuestion(
            **self.standard_fields(question),
            sub_questions=sub_questions,
            prompt=question.scoring_prompt,
            scoring_prompt=question.scoring_prompt,
        )

    def validate(self, question: WordFormQuestion) -> ValidationResult:
        errors = []
        if not question.exercises:
            errors.append("At least one word formation exercise is required.")
        for position, exercise in enumerate(question.exercises, start=1):
            if not exercise.sentence.strip():
                errors.append(f"Sentence for exercise #{position} is empty.")
            if not exercise.base_word.strip():
                errors.append(f"Base word for exercise #{position} is empty.")
            if not exercise.correct_form.strip():
                errors.append(f"Correct form for exercise #{position} is empty.")
        return self.finish_validation(super().validate(question), errors)

    async def score(self, context: ScoringContext) -> ScoringResult:
        question: WordFormQuestion = context.question
        max_score = self.exercise_points(question)

        if question.is_partial and context.sub_question_id:
            exercise = next((ex for ex in question.exercises if ex.id == context.sub_question_id), None)
            if exercise is None:
                return self.sub_question_not_found("Exercise not found.")
            return await self.score_exercise(
                question,
                exercise,
                resolve_sub_answer(context.answer, exercise.id),
                max_score,
                context.ai_scoring_fn,
            )

        answers = extract_sub_answers(context.answer)
        results: List[ScoringResult] = list(await asyncio.gather(*[
            self.score_exercise(
                question, exercise, str(answers.get(exercise.id) or ""), max_score, context.ai_scoring_fn
            )
            for exercise in question.exercises
        ]))

        correct_count = sum(1 for r in results if r.is_correct)
        total = len(results)
        all_correct = total > 0 and correct_count == total
        feedback = "All answers correct!" if all_correct else f"{correct_count}/{total} answers correct"
        if question.is_partial:
            return ScoringResult(
                is_correct=all_correct,
                score=sum(r.score for r in results),
                max_score=sum(r.max_score for r in results),
                feedback=feedback,
                metadata={"partially_correct": 0 < correct_count < total},
            )
        return ScoringResult(
            is_correct=all_correct,
            score=question.points if all_correct else 0,
            max_score=question.points,
            feedback=feedback,
        )

    async def score_exercise(
        self,
        question: WordFormQuestion,
        exercise: WordFormExercise,
        user_answer: str,
        max_score: float,
        ai_scoring_fn: Optional[AIScoringFn] = None,
    ) -> ScoringResult:
        """对单个练习计分"""
        is_correct_simple = bool(user_answer.strip()) and are_string_answers_equal(
            user_answer, exercise.correct_form
        )

        if ai_scoring_fn is None:
            return ScoringResult(
                is_correct=is_correct_simple,
                score=max_score if is_correct_simple else 0,
                max_score=max_score,
                feedback="Correct!" if is_correct_simple else f"Incorrect. The correct answer was: {exercise.correct_form}",
            )

        if not user_answer.strip():
            return ScoringResult(is_correct=False, score=0, max_score=max_score, feedback="No answer provided.")

        ai_result = await call_ai_scorer(
            ai_scoring_fn,
            text=user_answer,
            prompt=exercise.sentence,
            essay=user_answer,
            scoring_prompt=self.build_scoring_prompt(question, exercise, user_answer),
        )
        if ai_result.ok:
            score = rescale_ai_score(ai_result.score, max_score)
            return ScoringResult(
                is_correct=score >= max_score * PASS_RATIO,
                score=score,
                max_score=max_score,
                feedback=ai_result.feedback,
                metadata={"ai_scored": True, "ai_raw_score": ai_result.score},
            )

        logger.warning(f"词形题 AI 评分失败，回退到精确比对: question_id={question.id}, error={ai_result.error}")
        return ScoringResult(
            is_correct=is_correct_simple,
            score=max_score if is_correct_simple else 0,
            max_score=max_score,
            feedback=f"AI scoring failed. Simple check result: {'Correct' if is_correct_simple else 'Incorrect'}.",
            metadata={"degraded": True},
        )

    @staticmethod
    def build_scoring_prompt(question: WordFormQuestion, exercise: WordFormExercise, answer: str) -> str:
        if question.scoring_prompt and question.scoring_prompt.strip():
            return question.scoring_prompt
        return prompt_loader.render(
            "word_form_scoring",
            "scoring_prompt",
            base_word=exercise.base_word,
            correct_form=exercise.correct_form,
            student_answer=answer,
            sentence=exercise.sentence,
            max_band=int(AI_SCORE_SCALE),
        )
