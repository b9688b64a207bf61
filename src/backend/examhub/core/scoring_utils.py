"""
计分工具函数

提供分数规范化、答案有效性判断、题目作答状态、答案格式处理
以及分数汇总等与题型无关的工具。
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from examhub.models import (
    BaseQuestion,
    QuestionType,
    ScoringErrorCode,
    ScoringErrorInfo,
    ScoringResult,
    ScoringStrategy,
    UserAnswer,
    ValidationResult,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class QuestionStatus(str, Enum):
    """题目作答状态"""
    UNTOUCHED = "untouched"     # 没有任何有效答案
    PARTIAL = "partial"         # 部分子题已作答
    COMPLETED = "completed"     # 全部作答


# ==================== 分数规范化 ====================

def normalize_score(score: float, max_score: float) -> float:
    """将分数限制在 [0, max_score] 区间，max_score <= 0 时返回 0"""
    if max_score <= 0:
        return 0
    return min(max(0, score), max_score)


def calculate_percentage(score: float, max_score: float) -> int:
    """百分比 = round(规范化分数 / 满分 * 100)，满分为 0 时为 0"""
    if max_score <= 0:
        return 0
    return round(normalize_score(score, max_score) / max_score * 100)


# ==================== 答案有效性 ====================

def has_valid_answer(answer: Any) -> bool:
    """
    判断答案是否有实际内容

    空字符串、None、空集合、所有值都为空的字典均视为未作答。
    """
    if answer is None:
        return False
    if isinstance(answer, str):
        return answer.strip() != ""
    if isinstance(answer, bool):
        return True
    if isinstance(answer, (int, float)):
        return answer == answer  # NaN 视为无效
    if isinstance(answer, Mapping):
        return any(has_valid_answer(value) for value in answer.values())
    if isinstance(answer, (list, tuple, set, frozenset)):
        return any(has_valid_answer(item) for item in answer)
    return False


def validate_user_answer(user_answer: UserAnswer) -> ValidationResult:
    """校验作答记录的结构"""
    errors = []

    if not user_answer.question_id:
        errors.append("Missing questionId")
    if user_answer.score is not None and user_answer.score < 0:
        errors.append("Score cannot be negative")
    if user_answer.max_score is not None and user_answer.max_score < 0:
        errors.append("MaxScore cannot be negative")
    if (
        user_answer.score is not None
        and user_answer.max_score is not None
        and user_answer.score > user_answer.max_score
    ):
        errors.append("Score cannot exceed maxScore")

    return ValidationResult(is_valid=not errors, errors=errors)


def determine_question_status(
    question: BaseQuestion,
    answers: Mapping[str, UserAnswer],
    registry=None,
) -> QuestionStatus:
    """
    判断题目的作答状态

    子题取自插件标准化后的结构，与计分、编号、统计保持一致；
    题型未注册时退回题目自带的 sub_questions。
    partial 策略下逐个子题检查：子题答案可以单独存储（以 sub_id 为键），
    也可以存放在主答案的字典中。

    Args:
        question: 题目
        answers: 答案键（题目 ID 或子题 ID）-> 作答记录
        registry: 插件注册表，默认使用全局注册表

    Returns:
        QuestionStatus
    """
    if registry is None:
        from examhub.plugins import get_registry
        registry = get_registry()

    plugin = registry.get_plugin(question.type)
    standard = plugin.transform(question) if plugin else question
    sub_questions = standard.sub_questions
    is_partial = standard.scoring_strategy == ScoringStrategy.PARTIAL

    main_answer = answers.get(question.id)
    main_valid = main_answer is not None and has_valid_answer(main_answer.answer)

    if not sub_questions or not is_partial:
        return QuestionStatus.COMPLETED if main_valid else QuestionStatus.UNTOUCHED

    main_sub_answers = extract_sub_answers(main_answer.answer) if main_answer else {}
    answered = 0
    for sub in sub_questions:
        sub_answer = answers.get(sub.sub_id)
        if sub_answer is not None and has_valid_answer(sub_answer.answer):
            answered += 1
        elif has_valid_answer(main_sub_answers.get(sub.sub_id)):
            answered += 1

    if answered == 0:
        return QuestionStatus.UNTOUCHED
    if answered >= len(sub_questions):
        return QuestionStatus.COMPLETED
    return QuestionStatus.PARTIAL


# ==================== 答案格式 ====================

def normalize_string_answer(answer: Any) -> str:
    """去除首尾空白、转小写、合并连续空白"""
    if answer is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(answer).strip().lower())


def are_string_answers_equal(first: Any, second: Any) -> bool:
    return normalize_string_answer(first) == normalize_string_answer(second)


def matches_acceptable_answer(user_answer: Any, acceptable_answers: Iterable[str]) -> bool:
    """规范化后与任一可接受答案完全相同即为正确（不做模糊匹配）"""
    normalized = normalize_string_answer(user_answer)
    return any(normalize_string_answer(acceptable) == normalized for acceptable in acceptable_answers)


def extract_sub_answers(answer: Any) -> Dict[str, Any]:
    """从复合答案中取出子题答案字典，非字典返回空字典"""
    if isinstance(answer, Mapping):
        return dict(answer)
    return {}


def resolve_sub_answer(answer: Any, sub_id: str) -> str:
    """
    取出某个子题的答案

    答案为字典时按 sub_id 查找，为字符串时直接使用。
    """
    if isinstance(answer, Mapping):
        value = answer.get(sub_id)
        return "" if value is None else str(value)
    if answer is None:
        return ""
    return str(answer)


def selected_values(answer: Any) -> List[str]:
    """把单值 / 列表 / 字典形式的多选答案统一为列表"""
    if answer is None:
        return []
    if isinstance(answer, str):
        return [answer] if answer else []
    if isinstance(answer, Mapping):
        return [str(value) for value in answer.values() if value]
    if isinstance(answer, (list, tuple, set, frozenset)):
        return [str(value) for value in answer if value]
    return [str(answer)]


# ==================== 计分策略 ====================

class ScoringStrategyHandler:
    """按题型判断计分时机"""

    IMMEDIATE_TYPES = {
        QuestionType.MULTIPLE_CHOICE.value,
        QuestionType.COMPLETION.value,
        QuestionType.MATCHING.value,
        QuestionType.LABELING.value,
        QuestionType.PICK_FROM_A_LIST.value,
        QuestionType.TRUE_FALSE_NOT_GIVEN.value,
        QuestionType.YES_NO_NOT_GIVEN.value,
        QuestionType.MATCHING_HEADINGS.value,
        QuestionType.SHORT_ANSWER.value,
    }

    AI_TYPES = {
        QuestionType.WRITING_TASK1.value,
        QuestionType.WRITING_TASK2.value,
        QuestionType.SENTENCE_TRANSLATION.value,
        QuestionType.WORD_FORM.value,
    }

    MANUAL_REVIEW_TYPES = {
        QuestionType.WRITING_TASK1.value,
        QuestionType.WRITING_TASK2.value,
        QuestionType.SENTENCE_TRANSLATION.value,
    }

    @staticmethod
    def should_score_immediately(question: BaseQuestion) -> bool:
        """不依赖 AI 的题型可以在提交时立即计分"""
        return question.type in ScoringStrategyHandler.IMMEDIATE_TYPES

    @staticmethod
    def requires_ai_scoring(question: BaseQuestion) -> bool:
        return question.type in ScoringStrategyHandler.AI_TYPES

    @staticmethod
    def might_require_manual_review(question: BaseQuestion) -> bool:
        return question.type in ScoringStrategyHandler.MANUAL_REVIEW_TYPES


# ==================== 错误处理 ====================

def create_error_result(
    error: Any,
    max_score: float = 0,
    code: ScoringErrorCode = ScoringErrorCode.SCORING_ERROR,
    feedback: Optional[str] = None,
) -> ScoringResult:
    """构造零分的错误计分结果"""
    message = str(error)
    return ScoringResult(
        is_correct=False,
        score=0,
        max_score=max_score,
        feedback=feedback or f"Scoring failed: {message}",
        error=ScoringErrorInfo(code=code, message=message, recoverable=True),
    )


def log_scoring_error(
    error: Any,
    question_id: Optional[str] = None,
    question_type: Optional[str] = None,
    sub_question_id: Optional[str] = None,
):
    """以统一格式记录计分错误"""
    context = {
        "question_id": question_id,
        "question_type": question_type,
        "sub_question_id": sub_question_id,
    }
    context_str = ", ".join(f"{key}: {value}" for key, value in context.items() if value)
    logger.error(f"计分失败 [{context_str}]: {error}")


# ==================== 分数汇总 ====================

def calculate_total_score(answers: Iterable[UserAnswer]) -> Dict[str, float]:
    """汇总一组作答记录的得分与满分"""
    total_score = 0.0
    max_possible_score = 0.0
    for answer in answers:
        total_score += answer.score or 0
        max_possible_score += answer.max_score or 0

    return {
        "total_score": normalize_score(total_score, max_possible_score),
        "max_possible_score": max_possible_score,
    }


def group_answers_by_question(answers: Mapping[str, UserAnswer]) -> Dict[str, List[UserAnswer]]:
    """按所属题目分组作答记录"""
    grouped: Dict[str, List[UserAnswer]] = {}
    for answer in answers.values():
        grouped.setdefault(answer.question_id, []).append(answer)
    return grouped
