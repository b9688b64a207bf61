"""
计分相关的数据结构

ScoringContext / ScoringResult 是计分引擎的请求/响应对，
只在一次计分调用中存在，不持久化。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional


class ScoringErrorCode(str, Enum):
    """计分错误码"""
    SCORING_ERROR = "SCORING_ERROR"
    SCORING_TIMEOUT = "SCORING_TIMEOUT"
    PLUGIN_NOT_FOUND = "PLUGIN_NOT_FOUND"
    INVALID_QUESTION = "INVALID_QUESTION"
    INVALID_ANSWER = "INVALID_ANSWER"
    AI_SCORING_FAILED = "AI_SCORING_FAILED"


@dataclass
class AIScoringResult:
    """
    AI 评分协作方的返回值

    Attributes:
        ok: 是否成功评分
        score: 评分（0-9 分制）
        feedback: 评语
        error: 失败原因
    """
    ok: bool
    score: float = 0.0
    feedback: str = ""
    error: Optional[str] = None


# AI 评分函数：接收 text / prompt / essay / scoring_prompt 关键字参数
AIScoringFn = Callable[..., Awaitable[AIScoringResult]]


@dataclass
class ScoringErrorInfo:
    """计分错误信息"""
    code: ScoringErrorCode
    message: str
    recoverable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "recoverable": self.recoverable,
        }


@dataclass
class ScoringContext:
    """计分上下文"""
    question: Any
    answer: Any = None
    sub_question_id: Optional[str] = None
    ai_scoring_fn: Optional[AIScoringFn] = None


@dataclass
class ScoringResult:
    """
    计分结果

    metadata 中的常见字段：
        selected_answer / correct_answer: 单选题的选中项与正确项
        ai_scored / manual_scored: 是否经过 AI / 人工评分
        degraded: AI 评分失败后走了降级路径
    """
    is_correct: bool
    score: float
    max_score: float
    feedback: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ScoringErrorInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（camelCase）"""
        result = {
            "isCorrect": self.is_correct,
            "score": self.score,
            "maxScore": self.max_score,
            "feedback": self.feedback,
            "metadata": {_camel(k): v for k, v in self.metadata.items()},
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


@dataclass
class ValidationResult:
    """题目校验结果：errors 阻止发布，warnings 仅作提示"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)
