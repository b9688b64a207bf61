"""
标准化题目模型

任意题型都可以投影为同一结构，供通用列表、报表等代码使用，
不需要按题型分支。该结构只由 transform 派生，不单独编辑。
"""

from typing import List, Optional

from pydantic import Field

from .question import CamelModel, QuestionItem, ScoringStrategy, SubQuestionMeta


class StandardOption(QuestionItem):
    """标准化选项"""
    is_correct: Optional[bool] = None


class StandardQuestion(CamelModel):
    """标准化题目"""
    id: str
    type: str
    text: str = ""
    points: float = 1
    scoring_strategy: ScoringStrategy = ScoringStrategy.PARTIAL
    index: int = 0
    partial_ending_index: int = 0
    items: List[QuestionItem] = Field(default_factory=list)
    options: List[StandardOption] = Field(default_factory=list)
    sub_questions: List[SubQuestionMeta] = Field(default_factory=list)

    # 题型相关的附加字段
    image_url: Optional[str] = None
    prompt: Optional[str] = None
    word_limit: Optional[int] = None
    sample_answer: Optional[str] = None
    scoring_prompt: Optional[str] = None
    source_text: Optional[str] = None
    reference_translation: Optional[str] = None
    source_language: Optional[str] = None
    target_language: Optional[str] = None
