"""
用户答案模型

答案载荷（answer）的结构取决于题型：
- 单个选项 ID 或文本: str
- 多选: List[str]
- 子题 ID -> 答案: Dict[str, str]
- 写作题: {"text": str}

载荷在计分边界由 coerce_answer_payload 校验，不直接信任。
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from .question import CamelModel


AnswerPayload = Union[str, List[str], Dict[str, Optional[str]]]


class InvalidAnswerError(ValueError):
    """答案载荷格式非法"""
    pass


class UserAnswer(CamelModel):
    """
    一次作答记录

    首次提交时创建，之后每次重新提交/自动保存原地更新；
    计分字段只由计分流程写入。
    """
    question_id: str
    sub_question_id: Optional[str] = None
    answer: Optional[AnswerPayload] = None
    is_correct: Optional[bool] = None
    score: Optional[float] = None
    max_score: Optional[float] = None
    partially_correct: Optional[bool] = None
    feedback: Optional[str] = None
    answered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def answer_key(self) -> str:
        """答案存储键：有子题时用子题 ID，否则用题目 ID"""
        return self.sub_question_id or self.question_id


def _coerce_scalar(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    # bool 是 int 的子类，需单独排除
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise InvalidAnswerError(f"Unsupported answer value type: {type(value).__name__}")


def coerce_answer_payload(value: Any) -> Optional[AnswerPayload]:
    """
    校验并规范化答案载荷

    Args:
        value: 原始答案

    Returns:
        规范化后的载荷（数字会被转换为字符串）

    Raises:
        InvalidAnswerError: 载荷不是支持的结构时
    """
    if isinstance(value, dict):
        coerced = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidAnswerError("Answer mapping keys must be strings")
            coerced[key] = _coerce_scalar(item)
        return coerced
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_coerce_scalar(item) for item in value]
        return [item for item in items if item is not None]
    return _coerce_scalar(value)
