"""
题型插件抽象基类

每个题型实现为一个插件，统一提供：
- config: 静态描述（类型标签、适用考试类别、是否支持部分计分/AI 评分等）
- create_default: 生成可直接编辑的默认题目
- transform: 投影为标准化题目（纯函数，不修改输入）
- validate: 结构校验
- score: 计分（统一为协程，调用方总是 await）

约定：score / validate / transform 都不向外抛异常，
所有失败路径都返回结构化结果。
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from examhub.core.config import get_scoring_config
from examhub.core.scoring_utils import extract_sub_answers, resolve_sub_answer
from examhub.models import (
    AIScoringFn,
    AIScoringResult,
    BaseQuestion,
    ExamCategory,
    ScoringContext,
    ScoringResult,
    StandardQuestion,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# AI 评分协作方使用 IELTS band 分制（0-9）
AI_SCORE_SCALE = 9.0


@dataclass
class PluginScoringConfig:
    """
    插件级计分配置

    Attributes:
        max_scoring_time: 单次计分最长时间（秒），为 None 时使用全局默认值
        default_confidence: 计分结果的默认置信度
        scoring_priority: 批量计分时的优先级（越大越先）
    """
    max_scoring_time: Optional[float] = None
    default_confidence: float = 1.0
    scoring_priority: int = 0


@dataclass
class PluginConfig:
    """插件静态描述"""
    type: str
    display_name: str
    description: str = ""
    category: List[ExamCategory] = field(default_factory=list)
    supports_partial_scoring: bool = False
    supports_ai_scoring: bool = False
    default_points: float = 1
    has_sub_questions: bool = False
    scoring_config: Optional[PluginScoringConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（用于 API 返回）"""
        return {
            "type": self.type,
            "displayName": self.display_name,
            "description": self.description,
            "category": [c.value for c in self.category],
            "supportsPartialScoring": self.supports_partial_scoring,
            "supportsAIScoring": self.supports_ai_scoring,
            "defaultPoints": self.default_points,
            "hasSubQuestions": self.has_sub_questions,
        }


class QuestionPlugin(ABC):
    """
    题型插件基类

    子类需要提供 config 并实现 create_default / transform / score，
    validate 可以在基类规则之上追加题型相关规则。
    """

    config: PluginConfig

    @abstractmethod
    def create_default(self, index: int) -> BaseQuestion:
        """
        生成默认题目

        Args:
            index: 题目在试卷中的起始序号

        Returns:
            字段完整、能通过本插件 validate 的题目
        """
        pass

    @abstractmethod
    def transform(self, question: BaseQuestion) -> StandardQuestion:
        """投影为标准化题目"""
        pass

    @abstractmethod
    async def score(self, context: ScoringContext) -> ScoringResult:
        """
        计分

        Args:
            context: 计分上下文（题目、答案、子题 ID、AI 评分函数）

        Returns:
            ScoringResult，失败时 is_correct=False、score=0 并附带说明
        """
        pass

    def validate(self, question: BaseQuestion) -> ValidationResult:
        """基础校验：题干非空、分值为正"""
        errors = []
        if not (question.text or "").strip():
            errors.append("Question text is required")
        if question.points <= 0:
            errors.append("Question points must be greater than 0")
        return ValidationResult(is_valid=not errors, errors=errors, warnings=[])

    def is_question_of_type(self, question: Any) -> bool:
        return getattr(question, "type", None) == self.config.type

    # ==================== 子类共用的辅助方法 ====================

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def finish_validation(
        base: ValidationResult,
        errors: List[str],
        warnings: Optional[List[str]] = None,
    ) -> ValidationResult:
        """合并基类与子类的校验结果"""
        all_errors = base.errors + errors
        return ValidationResult(
            is_valid=not all_errors,
            errors=all_errors,
            warnings=base.warnings + (warnings or []),
        )

    @staticmethod
    def standard_fields(question: BaseQuestion) -> Dict[str, Any]:
        """标准化题目的公共字段"""
        return {
            "id": question.id,
            "type": question.type,
            "text": question.text,
            "points": question.points,
            "scoring_strategy": question.scoring_strategy,
            "index": question.index,
            "partial_ending_index": question.partial_ending_index,
        }

    @staticmethod
    def sub_question_not_found(feedback: str = "Sub-question not found") -> ScoringResult:
        return ScoringResult(is_correct=False, score=0, max_score=0, feedback=feedback)


class SubQuestionPlugin(QuestionPlugin):
    """
    按子题比对答案的题型插件

    适用于精确 ID 比对（匹配、标签、判断题等）与可接受答案比对（填空、简答）。
    子类实现 check_sub_answer 与 sub_feedback，计分策略由基类统一处理：
    - partial: 指定 sub_question_id 时只计该子题；未指定时逐个子题计分求和
    - all-or-nothing: 所有子题都正确才得满分
    """

    # 整题计分时反馈中使用的名词，如 "answers" / "matches"
    result_noun = "answers"

    @abstractmethod
    def check_sub_answer(self, question: BaseQuestion, sub: Any, value: str) -> bool:
        """判断单个子题的答案是否正确"""
        pass

    def sub_feedback(self, question: BaseQuestion, sub: Any, value: str, is_correct: bool) -> str:
        return "Correct!" if is_correct else f"Incorrect. The correct answer was: {sub.correct_answer}"

    async def score(self, context: ScoringContext) -> ScoringResult:
        question = context.question
        if question.is_partial:
            if context.sub_question_id:
                sub = question.find_sub_question(context.sub_question_id)
                if sub is None:
                    return self.sub_question_not_found()
                return self.score_sub_question(question, sub, context.answer)
            return self.score_all_sub_questions(question, context.answer)
        return self.score_all_or_nothing(question, context.answer)

    def score_sub_question(self, question: BaseQuestion, sub: Any, answer: Any) -> ScoringResult:
        """按子题自身分值计分"""
        value = resolve_sub_answer(answer, sub.sub_id)
        is_correct = bool(value) and self.check_sub_answer(question, sub, value)
        return ScoringResult(
            is_correct=is_correct,
            score=sub.points if is_correct else 0,
            max_score=sub.points,
            feedback=self.sub_feedback(question, sub, value, is_correct),
        )

    def score_all_sub_questions(self, question: BaseQuestion, answer: Any) -> ScoringResult:
        """partial 策略下一次性计算整题：子题得分求和"""
        results = [self.score_sub_question(question, sub, answer) for sub in question.sub_questions]
        correct_count = sum(1 for r in results if r.is_correct)
        total = len(results)
        score = sum(r.score for r in results)
        max_score = sum(r.max_score for r in results)
        is_correct = total > 0 and correct_count == total
        return ScoringResult(
            is_correct=is_correct,
            score=score,
            max_score=max_score,
            feedback=(
                f"All {self.result_noun} correct!" if is_correct
                else f"{correct_count}/{total} {self.result_noun} correct"
            ),
            metadata={"partially_correct": 0 < correct_count < total},
        )

    def score_all_or_nothing(self, question: BaseQuestion, answer: Any) -> ScoringResult:
        """整题计分：答案必须是 {sub_id: 答案} 字典，全部正确才得分"""
        answers = extract_sub_answers(answer)
        total = len(question.sub_questions)
        correct_count = 0
        for sub in question.sub_questions:
            value = answers.get(sub.sub_id)
            if value and self.check_sub_answer(question, sub, str(value)):
                correct_count += 1

        is_correct = total > 0 and correct_count == total
        return ScoringResult(
            is_correct=is_correct,
            score=question.points if is_correct else 0,
            max_score=question.points,
            feedback=(
                f"All {self.result_noun} correct!" if is_correct
                else f"{correct_count}/{total} {self.result_noun} correct"
            ),
        )


# ==================== AI 评分辅助 ====================

def rescale_ai_score(score: float, max_score: float) -> float:
    """把 0-9 分制的 AI 评分线性映射到子题分值，并限制在 [0, max_score]"""
    if max_score <= 0:
        return 0
    scaled = float(score) / AI_SCORE_SCALE * max_score
    return min(max(0.0, scaled), max_score)


async def call_ai_scorer(
    ai_scoring_fn: AIScoringFn,
    *,
    text: str,
    prompt: str,
    essay: str,
    scoring_prompt: str,
) -> AIScoringResult:
    """
    调用外部 AI 评分函数

    超时、抛出异常与 ok=False 一样处理，都返回 ok=False 的结果，
    由调用方走降级路径。
    """
    timeout = get_scoring_config().ai_timeout
    try:
        result = await asyncio.wait_for(
            ai_scoring_fn(
                text=text,
                prompt=prompt,
                essay=essay,
                scoring_prompt=scoring_prompt,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"AI 评分超时（{timeout}s）")
        return AIScoringResult(ok=False, error=f"AI scoring timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"AI 评分调用失败: {e}")
        return AIScoringResult(ok=False, error=str(e))

    if isinstance(result, dict):
        try:
            result = AIScoringResult(
                ok=bool(result.get("ok")),
                score=float(result.get("score") or 0),
                feedback=result.get("feedback") or "",
                error=result.get("error"),
            )
        except (TypeError, ValueError) as e:
            return AIScoringResult(ok=False, error=f"Invalid response from AI scorer: {e}")
    if not isinstance(result, AIScoringResult):
        return AIScoringResult(ok=False, error="Invalid response from AI scorer")
    return result
