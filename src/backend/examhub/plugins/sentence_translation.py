"""
句子翻译题插件

评分流程（每个句子）：
1. 答案为空 -> 0 分
2. 有参考译文且没有 AI 评分函数 -> 忽略大小写与首尾空白的精确比对
3. 有 AI 评分函数 -> 构造评分提示词交给 AI，0-9 分映射到句子分值，达到 50% 视为正确
4. AI 评分失败 -> 降级为参考译文比对，反馈中注明 AI 评分失败
"""

import asyncio
import logging
from typing import Any, List, Optional

from examhub.core.scoring_utils import extract_sub_answers, matches_acceptable_answer, resolve_sub_answer
from examhub.models import (
    AIScoringFn,
    ExamCategory,
    ScoringContext,
    ScoringResult,
    SentenceTranslationQuestion,
    StandardQuestion,
    SubQuestionMeta,
    TranslationSentence,
    ValidationResult,
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

# AI 评分达到满分的该比例即视为翻译正确
PASS_RATIO = 0.5


class SentenceTranslationPlugin(QuestionPlugin):
    """句子翻译题"""

    config = PluginConfig(
        type="sentence-translation",
        display_name="Sentence Translation",
        description="Users translate sentences from a source to a target language.",
        category=[ExamCategory.GRAMMAR, ExamCategory.WRITING],
        supports_partial_scoring=True,
        supports_ai_scoring=True,
        default_points=1,
        has_sub_questions=True,
        scoring_config=PluginScoringConfig(scoring_priority=1),
    )

    def create_default(self, index: int) -> SentenceTranslationQuestion:
        sentence = TranslationSentence(
            id=self.new_id(),
            source_text="Tôi thích đọc sách.",
            reference_translations=["I like reading books."],
        )
        return SentenceTranslationQuestion(
            id=self.new_id(),
            text="Translate the following sentences.",
            points=self.config.default_points,
            index=index,
            partial_ending_index=index,
            sentences=[sentence],
            sub_questions=[SubQuestionMeta(sub_id=sentence.id, points=1)],
        )

    @staticmethod
    def sentence_points(question: SentenceTranslationQuestion) -> float:
        """每个句子的分值：题目分值平均分配"""
        return question.points / (len(question.sentences) or 1)

    def transform(self, question: SentenceTranslationQuestion) -> StandardQuestion:
        points = self.sentence_points(question)
        sub_questions = [
            SubQuestionMeta(
                sub_id=sentence.id,
                points=points,
                acceptable_answers=list(sentence.reference_translations),
                sub_index=position,
                question_text=sentence.source_text,
                answer_text=", ".join(sentence.reference_translations),
            )
            for position, sentence in enumerate(question.sentences)
        ]

        first = question.sentences[0] if question.sentences else None
        return StandardQuestion(
            **self.standard_fields(question),
            sub_questions=sub_questions,
            prompt=question.scoring_prompt,
            scoring_prompt=question.scoring_prompt,
            source_text=first.source_text if first else "",
            reference_translation=(first.reference_translations or [None])[0] if first else None,
            source_language=question.source_language,
            target_language=question.target_language,
        )

    def validate(self, question: SentenceTranslationQuestion) -> ValidationResult:
        errors = []
        if not question.sentences:
            errors.append("At least one sentence is required for translation.")
        for position, sentence in enumerate(question.sentences, start=1):
            if not sentence.source_text.strip():
                errors.append(f"Source text for sentence #{position} is empty.")
        # 使用 AI 评分时参考译文可以为空
        return self.finish_validation(super().validate(question), errors)

    async def score(self, context: ScoringContext) -> ScoringResult:
        question: SentenceTranslationQuestion = context.question

        if question.is_partial and context.sub_question_id:
            sentence = next((s for s in question.sentences if s.id == context.sub_question_id), None)
            if sentence is None:
                return self.sub_question_not_found("Sentence not found.")
            return await self.score_translation(
                question,
                sentence,
                resolve_sub_answer(context.answer, sentence.id),
                self.sentence_points(question),
                context.ai_scoring_fn,
            )

        answers = extract_sub_answers(context.answer)
        # 各句子互不依赖，AI 调用并发进行
        results = list(await asyncio.gather(*[
            self.score_translation(
                question,
                sentence,
                str(answers.get(sentence.id) or ""),
                self.sentence_points(question),
                context.ai_scoring_fn,
            )
            for sentence in question.sentences
        ]))

        if question.is_partial:
            return self._sum_results(results)
        return self._all_or_nothing(question, results)

    @staticmethod
    def _sum_results(results: List[ScoringResult]) -> ScoringResult:
        correct_count = sum(1 for r in results if r.is_correct)
        total = len(results)
        is_correct = total > 0 and correct_count == total
        return ScoringResult(
            is_correct=is_correct,
            score=sum(r.score for r in results),
            max_score=sum(r.max_score for r in results),
            feedback=(
                "All translations correct!" if is_correct
                else " ".join(f"Sentence {n}: {r.feedback}" for n, r in enumerate(results, start=1))
            ),
            metadata={
                "partially_correct": 0 < correct_count < total,
                "ai_scored": any(r.metadata.get("ai_scored") for r in results),
            },
        )

    @staticmethod
    def _all_or_nothing(question: SentenceTranslationQuestion, results: List[ScoringResult]) -> ScoringResult:
        all_correct = bool(results) and all(r.is_correct for r in results)
        feedbacks = [f"Sentence {n}: {r.feedback}" for n, r in enumerate(results, start=1) if r.feedback]
        return ScoringResult(
            is_correct=all_correct,
            score=question.points if all_correct else 0,
            max_score=question.points,
            feedback=(
                "All translations correct!" if all_correct
                else f"Some translations need improvement. {' '.join(feedbacks)}"
            ),
            metadata={"ai_scored": any(r.metadata.get("ai_scored") for r in results)},
        )

    async def score_translation(
        self,
        question: SentenceTranslationQuestion,
        sentence: TranslationSentence,
        user_answer: Any,
        max_score: float,
        ai_scoring_fn: Optional[AIScoringFn] = None,
    ) -> ScoringResult:
        """对单个句子的译文计分"""
        answer = str(user_answer or "").strip()
        references = [r for r in sentence.reference_translations if r and r.strip()]

        if not answer:
            return ScoringResult(is_correct=False, score=0, max_score=max_score, feedback="No answer provided.")

        if ai_scoring_fn is None:
            if references:
                return self._reference_check(answer, references, max_score)
            return ScoringResult(
                is_correct=False, score=0, max_score=max_score, feedback="No scoring method available."
            )

        ai_result = await call_ai_scorer(
            ai_scoring_fn,
            text=answer,
            prompt=sentence.source_text,
            essay=answer,
            scoring_prompt=self.build_scoring_prompt(question, sentence, answer),
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

        logger.warning(f"翻译题 AI 评分失败，降级为参考译文比对: question_id={question.id}, error={ai_result.error}")
        if references:
            fallback = self._reference_check(answer, references, max_score)
        else:
            fallback = ScoringResult(
                is_correct=False, score=0, max_score=max_score, feedback="No scoring method available."
            )
        fallback.feedback = f"AI scoring failed ({ai_result.error}). {fallback.feedback}"
        fallback.metadata["degraded"] = True
        return fallback

    @staticmethod
    def _reference_check(answer: str, references: List[str], max_score: float) -> ScoringResult:
        is_correct = matches_acceptable_answer(answer, references)
        return ScoringResult(
            is_correct=is_correct,
            score=max_score if is_correct else 0,
            max_score=max_score,
            feedback="Correct translation!" if is_correct else "Translation does not match reference answers.",
        )

    @staticmethod
    def build_scoring_prompt(
        question: SentenceTranslationQuestion,
        sentence: TranslationSentence,
        answer: str,
    ) -> str:
        """题目自带评分提示词时直接使用，否则渲染默认模板"""
        if question.scoring_prompt and question.scoring_prompt.strip():
            return question.scoring_prompt
        return prompt_loader.render(
            "translation_scoring",
            "scoring_prompt",
            source_language=question.source_language,
            target_language=question.target_language,
            source_text=sentence.source_text,
            student_answer=answer,
            reference_translations=[r for r in sentence.reference_translations if r],
            max_band=int(AI_SCORE_SCALE),
        )
