"""
Langfuse 监控封装模块

通过装饰器追踪 AI 评分调用，未配置 Langfuse 时装饰器直接透传。

兼容 Langfuse SDK v2.x
"""

import logging
from datetime import datetime
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, List, Optional, ParamSpec, TypeVar

from langfuse import Langfuse

from .config import get_langfuse_config

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

# 全局 Langfuse 客户端（延迟初始化）
_langfuse_client: Optional[Langfuse] = None
_langfuse_enabled: Optional[bool] = None


def _get_langfuse_client() -> Optional[Langfuse]:
    """
    获取 Langfuse 客户端（延迟初始化）

    Returns:
        Langfuse 客户端实例，未启用或初始化失败时返回 None
    """
    global _langfuse_client, _langfuse_enabled

    if _langfuse_enabled is False:
        return None
    if _langfuse_client is not None:
        return _langfuse_client

    config = get_langfuse_config()
    if not config.enabled or not config.is_valid():
        logger.debug("Langfuse 监控未启用或配置无效")
        _langfuse_enabled = False
        return None

    try:
        _langfuse_client = Langfuse(
            public_key=config.public_key,
            secret_key=config.secret_key,
            host=config.host,
        )
    except Exception as e:
        logger.error(f"Langfuse 初始化失败: {e}")
        _langfuse_enabled = False
        return None

    _langfuse_enabled = True
    logger.info(f"Langfuse 客户端已初始化，地址: {config.host}")
    return _langfuse_client


def reset_langfuse_client():
    """重置 Langfuse 客户端（用于测试或重新配置）"""
    global _langfuse_client, _langfuse_enabled
    _langfuse_client = None
    _langfuse_enabled = None


def _summarize_output(result: Any) -> Optional[Dict[str, Any]]:
    if hasattr(result, "content"):
        return {"content": str(result.content)[:500]}
    if hasattr(result, "score"):
        return {"score": result.score, "ok": getattr(result, "ok", None)}
    if isinstance(result, str):
        return {"content": result[:500]}
    return None


def trace_llm_call(
    name: str,
    *,
    metadata: Optional[Dict[str, Any]] = None,
    tags: Optional[List[str]] = None,
):
    """
    追踪异步 LLM 调用的装饰器

    记录输入、输出与耗时并上报到 Langfuse。

    使用示例:
        @trace_llm_call("essay_scoring", tags=["scoring"])
        async def score(text: str, prompt: str, essay: str, scoring_prompt: str):
            ...

    Args:
        name: 追踪名称（在 Langfuse 中显示）
        metadata: 额外的元数据
        tags: 标签列表
    """
    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            client = _get_langfuse_client()
            if client is None:
                return await func(*args, **kwargs)

            start_time = datetime.now()
            input_data = {
                "kwargs": {k: str(v)[:200] for k, v in kwargs.items()},
            }

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration_ms = (datetime.now() - start_time).total_seconds() * 1000
                client.trace(
                    name=name,
                    input=input_data,
                    output={"error": str(e)},
                    metadata={"duration_ms": duration_ms, "error": True, **(metadata or {})},
                    tags=(tags or []) + ["error"],
                )
                client.flush()
                raise

            duration_ms = (datetime.now() - start_time).total_seconds() * 1000
            output_data = _summarize_output(result)
            trace = client.trace(
                name=name,
                input=input_data,
                output=output_data,
                metadata=metadata or {},
                tags=tags or [],
            )
            trace.span(
                name=f"{name}_call",
                input=input_data,
                output=output_data,
                start_time=start_time,
                end_time=datetime.now(),
                metadata={"duration_ms": duration_ms, **(metadata or {})},
            )
            client.flush()
            return result

        return wrapper

    return decorator


def is_langfuse_enabled() -> bool:
    """检查 Langfuse 监控是否启用且可用"""
    return _get_langfuse_client() is not None
