"""
LLM 封装模块

提供 LLM 客户端、Langfuse 监控与 AI 评分器。

使用示例:
    from examhub.llm import build_ai_scoring_fn

    ai_scoring_fn = build_ai_scoring_fn()   # 未配置 LLM 时为 None
    result = await ai_scoring_fn(text="...", prompt="...", essay="...", scoring_prompt="")
"""

from typing import Optional

from .base import ChatResponse, LLMClient, LLMError
from .config import (
    LLMConfig,
    LangfuseConfig,
    get_langfuse_config,
    get_llm_config,
    is_llm_configured,
)
from .openai_client import OpenAIClient
from .langfuse_wrapper import is_langfuse_enabled, reset_langfuse_client, trace_llm_call


# 全局 LLM 客户端实例（延迟初始化）
_llm_client: Optional[LLMClient] = None


def get_llm_client(config: Optional[LLMConfig] = None) -> LLMClient:
    """
    获取 LLM 客户端实例（单例模式）

    Args:
        config: LLM 配置对象，为 None 时从环境变量加载

    Raises:
        ValueError: 当 API Key 未配置时
    """
    global _llm_client

    if _llm_client is not None and config is None:
        return _llm_client

    if config is None:
        config = get_llm_config()

    _llm_client = OpenAIClient(config)
    return _llm_client


def reset_llm_client():
    """重置 LLM 客户端（用于测试或重新配置）"""
    global _llm_client
    _llm_client = None


from .ai_scorer import AIScorer, build_ai_scoring_fn, parse_scoring_response  # noqa: E402

__all__ = [
    # 客户端
    "LLMClient",
    "OpenAIClient",
    "get_llm_client",
    "reset_llm_client",

    # 数据类
    "ChatResponse",
    "LLMError",

    # 配置
    "LLMConfig",
    "LangfuseConfig",
    "get_llm_config",
    "get_langfuse_config",
    "is_llm_configured",

    # Langfuse 监控
    "trace_llm_call",
    "is_langfuse_enabled",
    "reset_langfuse_client",

    # AI 评分
    "AIScorer",
    "build_ai_scoring_fn",
    "parse_scoring_response",
]
