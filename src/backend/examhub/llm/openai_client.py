"""
OpenAI 兼容客户端实现

支持 OpenAI 及其兼容接口（如 DeepSeek、Azure OpenAI 等）。
"""

import logging
from typing import Dict, List, Optional

from openai import AsyncOpenAI

from .base import ChatResponse, LLMClient, LLMError
from .config import LLMConfig

logger = logging.getLogger(__name__)


class OpenAIClient(LLMClient):
    """
    OpenAI 兼容客户端

    使用示例:
        client = OpenAIClient(LLMConfig(api_key="sk-xxx", model="deepseek-chat",
                                        base_url="https://api.deepseek.com/v1"))
        response = await client.chat([{"role": "user", "content": "Hello"}])
    """

    def __init__(self, config: LLMConfig):
        self._config = config
        self._async_client: Optional[AsyncOpenAI] = None

    def _get_async_client(self) -> AsyncOpenAI:
        """获取异步客户端（延迟初始化）"""
        if self._async_client is None:
            self._async_client = AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                max_retries=self._config.max_retries,
            )
        return self._async_client

    async def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> ChatResponse:
        client = self._get_async_client()
        params = {
            "model": model or self._config.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        params.update(kwargs)

        try:
            response = await client.chat.completions.create(**params)
        except Exception as e:
            logger.error(f"LLM 调用失败: {e}")
            raise LLMError(f"LLM 调用失败: {str(e)}", cause=e)

        if not response.choices:
            raise LLMError("LLM 返回为空")

        return ChatResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            } if response.usage else None,
            finish_reason=response.choices[0].finish_reason,
        )

    @property
    def default_model(self) -> str:
        return self._config.model
