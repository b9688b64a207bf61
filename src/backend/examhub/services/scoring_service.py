"""
计分服务

在插件注册表之上编排计分：
- score_question: 单次计分，附加 scoring_id / timestamp 等服务级元数据
- calculate_question_score: 根据已保存的作答记录汇总一道题的得分（可选重新计分）
- score_answers: 整份答卷并发计分
- rescore_user_answers: 重新计分并回写作答记录
"""

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from examhub.core.scoring_utils import (
    ScoringStrategyHandler,
    calculate_percentage,
    create_error_result,
    log_scoring_error,
)
from examhub.models import (
    AIScoringFn,
    BaseQuestion,
    InvalidAnswerError,
    ScoringContext,
    ScoringErrorCode,
    ScoringResult,
    UserAnswer,
    ValidationResult,
    coerce_answer_payload,
)
from examhub.plugins import QuestionPluginRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass
class SubQuestionBreakdown:
    """子题得分明细"""
    sub_id: str
    score: float
    max_score: float
    is_correct: bool
    feedback: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subId": self.sub_id,
            "score": self.score,
            "maxScore": self.max_score,
            "isCorrect": self.is_correct,
            "feedback": self.feedback,
        }


@dataclass
class ScoringBreakdown:
    """
    题目得分明细

    Attributes:
        scoring_method: plugin（重新计分）/ cached（使用已保存结果）/ fallback（无作答或无插件）
    """
    question_id: str
    question_type: str
    scoring_strategy: str
    total_score: float
    max_possible_score: float
    sub_questions: List[SubQuestionBreakdown] = field(default_factory=list)
    scoring_method: str = "cached"
    has_errors: bool = False
    requires_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "questionType": self.question_type,
            "scoringStrategy": self.scoring_strategy,
            "totalScore": self.total_score,
            "maxPossibleScore": self.max_possible_score,
            "subQuestions": [sub.to_dict() for sub in self.sub_questions],
            "metadata": {
                "scoringMethod": self.scoring_method,
                "hasErrors": self.has_errors,
                "requiresReview": self.requires_review,
            },
        }


@dataclass
class QuestionScoreSummary:
    """一道题的汇总得分"""
    score: float
    max_score: float
    is_correct: bool = False
    partially_correct: bool = False
    breakdown: Optional[ScoringBreakdown] = None

    @property
    def percentage(self) -> int:
        return calculate_percentage(self.score, self.max_score)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "score": self.score,
            "maxScore": self.max_score,
            "isCorrect": self.is_correct,
            "partiallyCorrect": self.partially_correct,
            "percentage": self.percentage,
        }
        if self.breakdown:
            result["breakdown"] = self.breakdown.to_dict()
        return result


def _new_scoring_id(timestamp_ms: int) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"score_{timestamp_ms}_{suffix}"


class ScoringService:
    """计分服务（无状态）"""

    @staticmethod
    def validate_scoring_context(
        context: ScoringContext,
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> ValidationResult:
        """
        检查计分上下文是否可以交给插件

        Returns:
            ValidationResult，errors 非空时不应继续计分
        """
        registry = registry or get_registry()
        errors = []
        question = context.question

        if question is None:
            errors.append("Question is required in scoring context")
        elif not getattr(question, "id", None):
            errors.append("Question ID is required")
        elif not getattr(question, "type", None):
            errors.append("Question type is required")
        elif not registry.has_plugin(question.type):
            errors.append(f"No plugin found for question type: {question.type}")

        if not errors and context.sub_question_id and question.find_sub_question(context.sub_question_id) is None:
            plugin = registry.get_plugin(question.type)
            standard = plugin.transform(question)
            if not any(sub.sub_id == context.sub_question_id for sub in standard.sub_questions):
                errors.append(f"Sub-question {context.sub_question_id} does not belong to question {question.id}")

        return ValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    async def score_question(
        context: ScoringContext,
        registry: Optional[QuestionPluginRegistry] = None,
        manual_scored: bool = False,
    ) -> ScoringResult:
        """
        对单个题目（或子题）计分

        在插件结果的 metadata 中附加 scoring_id、timestamp、ai_scored、manual_scored；
        任何失败都会转换为 0 分结果，不向外抛异常。
        """
        registry = registry or get_registry()
        timestamp = int(time.time() * 1000)
        scoring_id = _new_scoring_id(timestamp)
        question = context.question
        if isinstance(question, dict):
            question_type = question.get("type")
            max_score = question.get("points") or 0
        else:
            question_type = getattr(question, "type", None)
            max_score = getattr(question, "points", 0) or 0

        def with_service_metadata(result: ScoringResult) -> ScoringResult:
            result.metadata["scoring_id"] = scoring_id
            result.metadata["timestamp"] = timestamp
            result.metadata["ai_scored"] = bool(result.metadata.get("ai_scored", False))
            result.metadata["manual_scored"] = manual_scored
            if isinstance(question, BaseQuestion) and ScoringStrategyHandler.might_require_manual_review(question):
                result.metadata.setdefault("requires_manual_review", not result.metadata["ai_scored"])
            return result

        if question_type and not registry.has_plugin(question_type):
            # 由注册表生成 PLUGIN_NOT_FOUND 结果
            return with_service_metadata(await registry.score_question(context))

        validation = ScoringService.validate_scoring_context(context, registry)
        if not validation.is_valid:
            message = "; ".join(validation.errors)
            logger.warning(f"计分上下文无效: {message}")
            return with_service_metadata(create_error_result(
                message,
                max_score=max_score,
                code=ScoringErrorCode.INVALID_QUESTION,
                feedback="Scoring failed due to an error",
            ))

        try:
            answer = coerce_answer_payload(context.answer)
        except InvalidAnswerError as e:
            return with_service_metadata(create_error_result(
                e, max_score=max_score, code=ScoringErrorCode.INVALID_ANSWER, feedback=f"Invalid answer: {e}"
            ))

        try:
            result = await registry.score_question(ScoringContext(
                question=question,
                answer=answer,
                sub_question_id=context.sub_question_id,
                ai_scoring_fn=context.ai_scoring_fn,
            ))
        except Exception as e:
            log_scoring_error(e, question.id, question.type, context.sub_question_id)
            result = create_error_result(e, max_score=max_score, feedback="Scoring failed due to an error")

        return with_service_metadata(result)

    @staticmethod
    async def calculate_question_score(
        question: BaseQuestion,
        answers: Mapping[str, UserAnswer],
        *,
        recalculate: bool = False,
        ai_scoring_fn: Optional[AIScoringFn] = None,
        include_breakdown: bool = False,
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> QuestionScoreSummary:
        """
        根据作答记录汇总一道题的得分

        Args:
            question: 题目
            answers: 作答记录，键为子题 ID（partial）或题目 ID（all-or-nothing）
            recalculate: 为 True 时通过插件重新计分，否则使用记录中已保存的结果
            ai_scoring_fn: 重新计分时使用的 AI 评分函数
            include_breakdown: 是否返回明细
            registry: 插件注册表，默认使用全局注册表

        Returns:
            QuestionScoreSummary；未作答的子题满分计入、得分为 0
        """
        registry = registry or get_registry()
        plugin = registry.get_plugin(question.type)

        if plugin is None:
            summary = QuestionScoreSummary(score=0, max_score=question.points or 0)
            if include_breakdown:
                summary.breakdown = ScoringBreakdown(
                    question_id=question.id,
                    question_type=question.type,
                    scoring_strategy=question.scoring_strategy.value,
                    total_score=0,
                    max_possible_score=summary.max_score,
                    scoring_method="fallback",
                    has_errors=True,
                )
            return summary

        # 子题以标准化结构为准，各题型的子题来源不同（sentences / exercises 等）
        standard = plugin.transform(question)
        if question.is_partial and standard.sub_questions:
            return await ScoringService._calculate_partial_score(
                question, standard.sub_questions, answers,
                recalculate, ai_scoring_fn, include_breakdown, registry,
            )
        return await ScoringService._calculate_all_or_nothing_score(
            question, answers, recalculate, ai_scoring_fn, include_breakdown, registry,
        )

    @staticmethod
    async def _calculate_partial_score(
        question: BaseQuestion,
        sub_questions: Sequence[Any],
        answers: Mapping[str, UserAnswer],
        recalculate: bool,
        ai_scoring_fn: Optional[AIScoringFn],
        include_breakdown: bool,
        registry: QuestionPluginRegistry,
    ) -> QuestionScoreSummary:
        async def score_sub(sub) -> SubQuestionBreakdown:
            record = answers.get(sub.sub_id)
            if record is None:
                return SubQuestionBreakdown(sub_id=sub.sub_id, score=0, max_score=sub.points or 0, is_correct=False)

            if recalculate:
                result = await ScoringService.score_question(
                    ScoringContext(
                        question=question,
                        answer=record.answer,
                        sub_question_id=sub.sub_id,
                        ai_scoring_fn=ai_scoring_fn,
                    ),
                    registry,
                )
                if result.error is None:
                    return SubQuestionBreakdown(
                        sub_id=sub.sub_id,
                        score=result.score,
                        max_score=result.max_score,
                        is_correct=result.is_correct,
                        feedback=result.feedback,
                    )
                logger.warning(f"子题 {sub.sub_id} 重新计分失败，使用已保存的结果")

            return SubQuestionBreakdown(
                sub_id=sub.sub_id,
                score=record.score or 0,
                max_score=record.max_score or sub.points or 0,
                is_correct=bool(record.is_correct),
                feedback=record.feedback or "",
            )

        details = list(await asyncio.gather(*[score_sub(sub) for sub in sub_questions]))
        total_score = sum(d.score for d in details)
        total_max = sum(d.max_score for d in details)
        correct_count = sum(1 for d in details if d.is_correct)

        summary = QuestionScoreSummary(
            score=total_score,
            max_score=total_max,
            is_correct=bool(details) and correct_count == len(details),
            partially_correct=0 < correct_count < len(details),
        )
        if include_breakdown:
            summary.breakdown = ScoringBreakdown(
                question_id=question.id,
                question_type=question.type,
                scoring_strategy=question.scoring_strategy.value,
                total_score=total_score,
                max_possible_score=total_max,
                sub_questions=details,
                scoring_method="plugin" if recalculate else "cached",
            )
        return summary

    @staticmethod
    async def _calculate_all_or_nothing_score(
        question: BaseQuestion,
        answers: Mapping[str, UserAnswer],
        recalculate: bool,
        ai_scoring_fn: Optional[AIScoringFn],
        include_breakdown: bool,
        registry: QuestionPluginRegistry,
    ) -> QuestionScoreSummary:
        record = answers.get(question.id)
        max_score = question.points or 0
        score = 0.0
        is_correct = False
        has_errors = False
        scoring_method = "fallback"

        if record is not None:
            scoring_method = "cached"
            score = record.score or 0
            max_score = record.max_score or max_score
            is_correct = bool(record.is_correct)

            if recalculate:
                result = await ScoringService.score_question(
                    ScoringContext(question=question, answer=record.answer, ai_scoring_fn=ai_scoring_fn),
                    registry,
                )
                if result.error is None:
                    score, max_score, is_correct = result.score, result.max_score, result.is_correct
                    scoring_method = "plugin"
                else:
                    has_errors = True
                    logger.warning(f"题目 {question.id} 重新计分失败，使用已保存的结果")

        summary = QuestionScoreSummary(
            score=score,
            max_score=max_score,
            is_correct=is_correct,
            partially_correct=not is_correct and 0 < score < max_score,
        )
        if include_breakdown:
            summary.breakdown = ScoringBreakdown(
                question_id=question.id,
                question_type=question.type,
                scoring_strategy=question.scoring_strategy.value,
                total_score=score,
                max_possible_score=max_score,
                scoring_method=scoring_method,
                has_errors=has_errors,
                requires_review="manual review" in ((record.feedback or "") if record else ""),
            )
        return summary

    @staticmethod
    async def score_answers(
        questions: Sequence[BaseQuestion],
        answers: Mapping[str, UserAnswer],
        *,
        recalculate: bool = False,
        ai_scoring_fn: Optional[AIScoringFn] = None,
        include_breakdown: bool = False,
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> Dict[str, QuestionScoreSummary]:
        """
        对一组题目并发汇总得分

        Returns:
            题目 ID -> QuestionScoreSummary
        """
        registry = registry or get_registry()
        summaries = await asyncio.gather(*[
            ScoringService.calculate_question_score(
                question,
                answers,
                recalculate=recalculate,
                ai_scoring_fn=ai_scoring_fn,
                include_breakdown=include_breakdown,
                registry=registry,
            )
            for question in questions
        ])
        return {question.id: summary for question, summary in zip(questions, summaries)}

    @staticmethod
    def create_user_answer(
        question_id: str,
        answer: Any,
        result: ScoringResult,
        sub_question_id: Optional[str] = None,
    ) -> UserAnswer:
        """由计分结果生成作答记录"""
        return UserAnswer(
            question_id=question_id,
            sub_question_id=sub_question_id,
            answer=answer,
            is_correct=result.is_correct,
            score=result.score,
            max_score=result.max_score,
            partially_correct=bool(result.metadata.get("partially_correct", False)),
            feedback=result.feedback or "",
        )

    @staticmethod
    async def rescore_user_answers(
        question: BaseQuestion,
        answers: Mapping[str, UserAnswer],
        ai_scoring_fn: Optional[AIScoringFn] = None,
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> Dict[str, UserAnswer]:
        """
        对一道题的作答记录重新计分

        只处理属于该题的记录，计分字段原地更新后返回（键与输入相同）。
        """
        registry = registry or get_registry()
        targets = {key: record for key, record in answers.items() if record.question_id == question.id}

        async def rescore(record: UserAnswer) -> ScoringResult:
            return await ScoringService.score_question(
                ScoringContext(
                    question=question,
                    answer=record.answer,
                    sub_question_id=record.sub_question_id,
                    ai_scoring_fn=ai_scoring_fn,
                ),
                registry,
            )

        results = await asyncio.gather(*[rescore(record) for record in targets.values()])

        for record, result in zip(targets.values(), results):
            record.is_correct = result.is_correct
            record.score = result.score
            record.max_score = result.max_score
            record.partially_correct = bool(result.metadata.get("partially_correct", False))
            record.feedback = result.feedback
        return targets
