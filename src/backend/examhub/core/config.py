"""
计分配置管理模块

配置优先级：环境变量 > 默认值
"""

import os
from dataclasses import dataclass


@dataclass
class ScoringConfig:
    """
    计分配置

    Attributes:
        ai_enabled: 是否启用 AI 评分（需要同时配置 LLM_API_KEY）
        ai_timeout: 单次 AI 评分的超时时间（秒），超时按 AI 失败处理
        default_timeout: 插件计分的默认超时时间（秒）
        min_essay_length: 写作题送 AI 评分的最少字符数
    """
    ai_enabled: bool = True
    ai_timeout: float = 60.0
    default_timeout: float = 30.0
    min_essay_length: int = 20


def get_scoring_config() -> ScoringConfig:
    """
    从环境变量获取计分配置

    环境变量：
        SCORING_AI_ENABLED: 是否启用 AI 评分（默认 true）
        SCORING_AI_TIMEOUT: AI 评分超时时间
        SCORING_DEFAULT_TIMEOUT: 插件计分默认超时时间
        SCORING_MIN_ESSAY_LENGTH: 写作题最少字符数

    Returns:
        ScoringConfig 配置对象
    """
    return ScoringConfig(
        ai_enabled=os.getenv("SCORING_AI_ENABLED", "true").lower() != "false",
        ai_timeout=float(os.getenv("SCORING_AI_TIMEOUT", "60.0")),
        default_timeout=float(os.getenv("SCORING_DEFAULT_TIMEOUT", "30.0")),
        min_essay_length=int(os.getenv("SCORING_MIN_ESSAY_LENGTH", "20")),
    )
