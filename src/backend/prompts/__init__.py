"""
提示词管理模块

AI 评分使用的提示词模板（YAML + Jinja2）。
"""

from .loader import PromptLoadError, PromptLoader, PromptRenderError, prompt_loader

__all__ = ["PromptLoader", "PromptLoadError", "PromptRenderError", "prompt_loader"]
