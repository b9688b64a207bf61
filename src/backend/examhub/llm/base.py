"""
LLM 客户端抽象基类

AI 评分只需要非流式调用，接口保持最小。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class ChatResponse:
    """
    聊天响应

    Attributes:
        content: 响应内容
        model: 使用的模型名称
        usage: Token 使用情况
        finish_reason: 完成原因
    """
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class LLMClient(ABC):
    """LLM 客户端抽象基类"""

    @abstractmethod
    async def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> ChatResponse:
        """
        非流式聊天

        Args:
            messages: 消息列表，格式为 [{"role": "user", "content": "..."}]
            model: 模型名称，为 None 时使用默认模型
            temperature: 温度参数，评分场景默认较低
            max_tokens: 最大生成 Token 数
            **kwargs: 其他模型参数（如 response_format）

        Returns:
            ChatResponse 响应对象

        Raises:
            LLMError: LLM 调用失败时抛出
        """
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """获取默认模型名称"""
        pass


class LLMError(Exception):
    """LLM 调用异常"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message
