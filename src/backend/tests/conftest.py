"""
测试配置和共享 fixtures

提供：
1. 干净的插件注册表
2. 常用题目样例
3. Mock AI 评分函数与 Mock LLM 客户端
"""
import pytest
import sys
import os
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

# 添加 backend 目录到 path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examhub.llm import ChatResponse, LLMClient  # noqa: E402
from examhub.models import (  # noqa: E402
    AIScoringResult,
    ChoiceOption,
    CompletionQuestion,
    Exam,
    MultipleChoiceQuestion,
    QuestionItem,
    Section,
    SentenceTranslationQuestion,
    SubQuestionMeta,
    TranslationSentence,
    WritingTask2Question,
)
from examhub.plugins import initialize_registry, reset_registry  # noqa: E402


# ==================== 插件注册表 ====================

@pytest.fixture
def registry():
    """每个测试使用重新初始化的全局注册表"""
    reset_registry()
    yield initialize_registry()
    reset_registry()


# ==================== 题目样例 ====================

@pytest.fixture
def multiple_choice_question() -> MultipleChoiceQuestion:
    """单选题：正确答案为 b"""
    return MultipleChoiceQuestion(
        id="mc-1",
        text="What is the capital of France?",
        points=1,
        options=[
            ChoiceOption(id="a", text="London"),
            ChoiceOption(id="b", text="Paris", is_correct=True),
            ChoiceOption(id="c", text="Berlin"),
        ],
    )


@pytest.fixture
def completion_question() -> CompletionQuestion:
    """填空题：3 个空，每空 1 分"""
    return CompletionQuestion(
        id="cmp-1",
        text="Complete the notes below.",
        points=3,
        sub_questions=[
            SubQuestionMeta(sub_id="s1", points=1, acceptable_answers=["Paris"]),
            SubQuestionMeta(sub_id="s2", points=1, acceptable_answers=["river", "the river"]),
            SubQuestionMeta(sub_id="s3", points=1, acceptable_answers=["1889"]),
        ],
    )


@pytest.fixture
def translation_question() -> SentenceTranslationQuestion:
    """翻译题：2 个句子，均有参考译文"""
    return SentenceTranslationQuestion(
        id="tr-1",
        text="Translate the following sentences.",
        points=2,
        sentences=[
            TranslationSentence(id="t1", source_text="Tôi thích đọc sách.", reference_translations=["I like reading books."]),
            TranslationSentence(id="t2", source_text="Trời đang mưa.", reference_translations=["It is raining."]),
        ],
    )


@pytest.fixture
def writing_question() -> WritingTask2Question:
    """写作 Task 2"""
    return WritingTask2Question(
        id="w2-1",
        text="Write about the following topic:",
        prompt="Some people think that technology makes life more complicated. Discuss.",
    )


@pytest.fixture
def essay() -> str:
    return (
        "Technology has changed almost every aspect of modern life. "
        "While some argue that it creates complexity, I believe it mostly simplifies our daily routines."
    )


@pytest.fixture
def sample_exam() -> Exam:
    """两部分试卷：单选 + 填空（3 空）+ 写作"""
    return Exam(
        id="exam-1",
        title="Practice Test",
        sections=[
            Section(
                id="sec-1",
                title="Reading",
                questions=[
                    MultipleChoiceQuestion(
                        id="q1",
                        text="Choose the correct answer.",
                        options=[
                            ChoiceOption(id="a", text="Yes", is_correct=True),
                            ChoiceOption(id="b", text="No"),
                        ],
                    ),
                    CompletionQuestion(
                        id="q2",
                        text="Complete the notes.",
                        points=3,
                        sub_questions=[
                            SubQuestionMeta(sub_id="q2-1", points=1, acceptable_answers=["one"]),
                            SubQuestionMeta(sub_id="q2-2", points=1, acceptable_answers=["two"]),
                            SubQuestionMeta(sub_id="q2-3", points=1, acceptable_answers=["three"]),
                        ],
                    ),
                ],
            ),
            Section(
                id="sec-2",
                title="Writing",
                questions=[
                    WritingTask2Question(id="q3", text="Write an essay."),
                ],
            ),
        ],
    )


# ==================== Mock AI 评分 ====================

def make_ai_scoring_fn(score: float = 9.0, feedback: str = "Good job", ok: bool = True, error: Optional[str] = None):
    """构造返回固定结果的 AI 评分函数"""
    return AsyncMock(return_value=AIScoringResult(ok=ok, score=score, feedback=feedback, error=error))


@pytest.fixture
def ai_scoring_fn():
    """满分的 AI 评分函数"""
    return make_ai_scoring_fn()


@pytest.fixture
def failing_ai_scoring_fn():
    """始终失败的 AI 评分函数"""
    return make_ai_scoring_fn(ok=False, score=0, feedback="", error="service unavailable")


# ==================== Mock LLM 客户端 ====================

class MockLLMClient(LLMClient):
    """Mock LLM 客户端，返回预设内容并记录调用"""

    def __init__(self, content: str = '{"score": 7, "detailedBreakdown": "Well organised."}'):
        self.content = content
        self.calls: List[List[Dict[str, str]]] = []
        self.kwargs: List[Dict] = []

    async def chat(self, messages, *, model=None, temperature=0.2, max_tokens=None, **kwargs) -> ChatResponse:
        self.calls.append(messages)
        self.kwargs.append(kwargs)
        return ChatResponse(content=self.content, model="mock-model")

    @property
    def default_model(self) -> str:
        return "mock-model"


@pytest.fixture
def mock_llm_client():
    """创建 Mock LLM 客户端"""
    return MockLLMClient()
