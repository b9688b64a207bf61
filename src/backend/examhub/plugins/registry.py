"""
题型插件注册表

按类型标签保存插件实例，并提供统一的外观操作：
create_question / transform_question / validate_question / score_question。

注册表在进程启动时由 initialize_registry() 一次性填充，
之后只读，可被并发的计分调用共享。
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from examhub.core.config import get_scoring_config
from examhub.core.scoring_utils import create_error_result, log_scoring_error
from examhub.models import (
    BaseQuestion,
    ExamCategory,
    ScoringContext,
    ScoringErrorCode,
    ScoringResult,
    StandardQuestion,
    ValidationResult,
    parse_question,
)

from .base import QuestionPlugin

logger = logging.getLogger(__name__)


class PluginNotFoundError(LookupError):
    """题型没有注册插件"""

    def __init__(self, question_type: str):
        self.question_type = question_type
        super().__init__(f"No plugin registered for question type: {question_type}")


def _type_key(question_type: Union[str, Any]) -> str:
    # str 枚举需要取 value，否则字典查找会失败
    return getattr(question_type, "value", question_type)


class QuestionPluginRegistry:
    """
    插件注册表

    使用示例：
        registry = QuestionPluginRegistry()
        registry.register(MultipleChoicePlugin())

        question = registry.create_question("multiple-choice", index=0)
        result = await registry.score_question(ScoringContext(question=question, answer="a"))
    """

    def __init__(self):
        self._plugins: Dict[str, QuestionPlugin] = {}

    # ==================== 注册与查询 ====================

    def register(self, plugin: QuestionPlugin):
        """注册插件，同一类型重复注册时后注册的覆盖先注册的"""
        key = plugin.config.type
        if key in self._plugins:
            logger.warning(f"题型插件 {key} 已注册，将被覆盖")
        self._plugins[key] = plugin
        logger.debug(f"注册题型插件: {key}")

    def unregister(self, question_type: str) -> bool:
        return self._plugins.pop(_type_key(question_type), None) is not None

    def get_plugin(self, question_type: str) -> Optional[QuestionPlugin]:
        return self._plugins.get(_type_key(question_type))

    def get_all_plugins(self) -> List[QuestionPlugin]:
        return list(self._plugins.values())

    def get_plugins_by_category(self, category: Union[ExamCategory, str]) -> List[QuestionPlugin]:
        """按考试类别筛选插件"""
        value = _type_key(category)
        return [
            plugin for plugin in self._plugins.values()
            if value in [c.value for c in plugin.config.category]
        ]

    def get_registered_types(self) -> List[str]:
        return list(self._plugins.keys())

    def has_plugin(self, question_type: str) -> bool:
        return _type_key(question_type) in self._plugins

    def supports_partial_scoring(self, question_type: str) -> bool:
        plugin = self.get_plugin(question_type)
        return bool(plugin and plugin.config.supports_partial_scoring)

    def has_sub_questions(self, question_type: str) -> bool:
        plugin = self.get_plugin(question_type)
        return bool(plugin and plugin.config.has_sub_questions)

    def supports_ai_scoring(self, question_type: str) -> bool:
        plugin = self.get_plugin(question_type)
        return bool(plugin and plugin.config.supports_ai_scoring)

    def get_plugins_by_priority(self) -> List[QuestionPlugin]:
        """按计分优先级从高到低排序"""
        def priority(plugin: QuestionPlugin) -> int:
            scoring_config = plugin.config.scoring_config
            return scoring_config.scoring_priority if scoring_config else 0

        return sorted(self._plugins.values(), key=priority, reverse=True)

    # ==================== 外观操作 ====================

    def create_question(self, question_type: str, index: int = 0) -> Optional[BaseQuestion]:
        """生成默认题目，类型未注册时返回 None"""
        plugin = self.get_plugin(question_type)
        if plugin is None:
            logger.error(f"无法创建题目，未注册的题型: {question_type}")
            return None
        return plugin.create_default(index)

    def transform_question(self, question: Union[BaseQuestion, Dict[str, Any]]) -> StandardQuestion:
        """
        标准化题目

        Raises:
            PluginNotFoundError: 题型未注册（编号与报表无法在缺少标准结构时继续）
        """
        question_type = question.get("type") if isinstance(question, dict) else question.type
        plugin = self.get_plugin(question_type)
        if plugin is None:
            raise PluginNotFoundError(question_type)
        return plugin.transform(parse_question(question))

    def validate_question(self, question: Union[BaseQuestion, Dict[str, Any]]) -> ValidationResult:
        """校验题目结构，不抛异常"""
        question_type = question.get("type") if isinstance(question, dict) else question.type
        plugin = self.get_plugin(question_type)
        if plugin is None:
            return ValidationResult(
                is_valid=False,
                errors=[f"No plugin registered for question type: {question_type}"],
            )

        try:
            return plugin.validate(parse_question(question))
        except ValidationError as e:
            return ValidationResult(
                is_valid=False,
                errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            )

    async def score_question(self, context: ScoringContext) -> ScoringResult:
        """
        计分

        保证总是返回结构完整的 ScoringResult：
        - 插件不存在 -> PLUGIN_NOT_FOUND，满分取题目分值
        - 插件抛异常 -> SCORING_ERROR
        - 超时 -> SCORING_TIMEOUT

        成功时在 metadata 中附加 scoring_time（毫秒）与 confidence。
        """
        question = context.question
        if isinstance(question, dict):
            question_type = question.get("type")
            points = question.get("points") or 0
        else:
            question_type = getattr(question, "type", None)
            points = getattr(question, "points", 0) or 0

        plugin = self.get_plugin(question_type)
        if plugin is None:
            logger.error(f"未注册的题型: {question_type}")
            return create_error_result(
                f"No plugin registered for question type: {question_type}",
                max_score=points,
                code=ScoringErrorCode.PLUGIN_NOT_FOUND,
                feedback=f"No plugin registered for question type: {question_type}",
            )

        if isinstance(question, dict):
            try:
                question = parse_question(question)
            except ValidationError as e:
                return create_error_result(
                    e, max_score=points, code=ScoringErrorCode.INVALID_QUESTION, feedback="Invalid question format."
                )
            context = ScoringContext(
                question=question,
                answer=context.answer,
                sub_question_id=context.sub_question_id,
                ai_scoring_fn=context.ai_scoring_fn,
            )

        timeout = self._resolve_timeout(plugin, context)
        started = time.perf_counter()
        try:
            result = await asyncio.wait_for(plugin.score(context), timeout=timeout)
        except asyncio.TimeoutError:
            log_scoring_error(
                f"计分超时（{timeout}s）", question.id, question_type, context.sub_question_id
            )
            return create_error_result(
                f"Scoring timed out after {timeout}s",
                max_score=points,
                code=ScoringErrorCode.SCORING_TIMEOUT,
                feedback=f"Error occurred while scoring: timed out after {timeout}s",
            )
        except Exception as e:
            log_scoring_error(e, question.id, question_type, context.sub_question_id)
            return create_error_result(
                e,
                max_score=points,
                code=ScoringErrorCode.SCORING_ERROR,
                feedback=f"Error occurred while scoring: {e}",
            )

        scoring_config = plugin.config.scoring_config
        result.metadata.setdefault("scoring_time", round((time.perf_counter() - started) * 1000, 2))
        result.metadata.setdefault(
            "confidence", scoring_config.default_confidence if scoring_config else 1.0
        )
        return result

    @staticmethod
    def _resolve_timeout(plugin: QuestionPlugin, context: ScoringContext) -> float:
        """插件配置的超时优先；走 AI 评分时至少覆盖一次 AI 调用"""
        config = get_scoring_config()
        scoring_config = plugin.config.scoring_config
        timeout = (scoring_config.max_scoring_time if scoring_config else None) or config.default_timeout
        if context.ai_scoring_fn is not None and plugin.config.supports_ai_scoring:
            timeout = max(timeout, config.ai_timeout + config.default_timeout)
        return timeout


# ==================== 进程级注册表 ====================

_registry: Optional[QuestionPluginRegistry] = None


def initialize_registry() -> QuestionPluginRegistry:
    """
    初始化全局注册表并注册所有内置插件

    重复调用是幂等的，返回同一个已填充的注册表。
    """
    global _registry

    if _registry is not None:
        return _registry

    # 延迟导入，避免 plugins 包初始化时的循环引用
    from . import BUILTIN_PLUGINS

    registry = QuestionPluginRegistry()
    for plugin_class in BUILTIN_PLUGINS:
        registry.register(plugin_class())

    _registry = registry
    logger.info(f"题型注册表初始化完成，共 {len(registry.get_registered_types())} 个题型")
    return _registry


def get_registry() -> QuestionPluginRegistry:
    """获取全局注册表（未初始化时自动初始化）"""
    return initialize_registry()


def reset_registry():
    """重置全局注册表（用于测试）"""
    global _registry
    _registry = None
