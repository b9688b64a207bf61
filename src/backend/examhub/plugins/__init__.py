"""
题型插件模块

每个题型一个插件，通过注册表统一访问。

使用示例:
    from examhub.plugins import get_registry

    registry = get_registry()
    question = registry.create_question("completion", index=0)
    standard = registry.transform_question(question)
"""

from .base import (
    AI_SCORE_SCALE,
    PluginConfig,
    PluginScoringConfig,
    QuestionPlugin,
    SubQuestionPlugin,
    call_ai_scorer,
    rescale_ai_score,
)
from .multiple_choice import MultipleChoicePlugin
from .completion import CompletionPlugin
from .matching import MatchingPlugin
from .labeling import LabelingPlugin
from .pick_from_list import PickFromListPlugin
from .true_false_not_given import TrueFalseNotGivenPlugin
from .yes_no_not_given import YesNoNotGivenPlugin
from .matching_headings import MatchingHeadingsPlugin
from .short_answer import ShortAnswerPlugin
from .sentence_translation import SentenceTranslationPlugin
from .word_form import WordFormPlugin
from .writing_task import WritingTask1Plugin, WritingTask2Plugin, WritingTaskPlugin

# 内置题型插件（注册顺序即题型列表的展示顺序）
BUILTIN_PLUGINS = [
    MultipleChoicePlugin,
    CompletionPlugin,
    MatchingPlugin,
    LabelingPlugin,
    PickFromListPlugin,
    TrueFalseNotGivenPlugin,
    YesNoNotGivenPlugin,
    MatchingHeadingsPlugin,
    ShortAnswerPlugin,
    SentenceTranslationPlugin,
    WordFormPlugin,
    WritingTask1Plugin,
    WritingTask2Plugin,
]

from .registry import (  # noqa: E402
    PluginNotFoundError,
    QuestionPluginRegistry,
    get_registry,
    initialize_registry,
    reset_registry,
)

__all__ = [
    # 插件契约
    "AI_SCORE_SCALE",
    "PluginConfig",
    "PluginScoringConfig",
    "QuestionPlugin",
    "SubQuestionPlugin",
    "call_ai_scorer",
    "rescale_ai_score",

    # 内置插件
    "BUILTIN_PLUGINS",
    "MultipleChoicePlugin",
    "CompletionPlugin",
    "MatchingPlugin",
    "LabelingPlugin",
    "PickFromListPlugin",
    "TrueFalseNotGivenPlugin",
    "YesNoNotGivenPlugin",
    "MatchingHeadingsPlugin",
    "ShortAnswerPlugin",
    "SentenceTranslationPlugin",
    "WordFormPlugin",
    "WritingTaskPlugin",
    "WritingTask1Plugin",
    "WritingTask2Plugin",

    # 注册表
    "PluginNotFoundError",
    "QuestionPluginRegistry",
    "get_registry",
    "initialize_registry",
    "reset_registry",
]
