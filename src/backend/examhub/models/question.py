"""
题目数据模型

定义所有题型的数据结构（带 type 标签的联合类型）。

设计说明：
- 使用 pydantic 模型，持久化格式为 camelCase，Python 属性为 snake_case
- type 字段作为判别字段，parse_question 会根据它选择具体题型
- 子题（SubQuestionMeta）归属于父题目，不能独立存在
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class QuestionType(str, Enum):
    """题型标签枚举"""
    MULTIPLE_CHOICE = "multiple-choice"
    COMPLETION = "completion"
    MATCHING = "matching"
    LABELING = "labeling"
    PICK_FROM_A_LIST = "pick-from-a-list"
    TRUE_FALSE_NOT_GIVEN = "true-false-not-given"
    YES_NO_NOT_GIVEN = "yes-no-not-given"
    MATCHING_HEADINGS = "matching-headings"
    SHORT_ANSWER = "short-answer"
    SENTENCE_TRANSLATION = "sentence-translation"
    WORD_FORM = "word-form"
    WRITING_TASK1 = "writing-task1"
    WRITING_TASK2 = "writing-task2"


class ScoringStrategy(str, Enum):
    """计分策略"""
    PARTIAL = "partial"                  # 按子题分别计分后求和
    ALL_OR_NOTHING = "all-or-nothing"    # 整题作为一个单元计分


class ExamCategory(str, Enum):
    """题型适用的考试类别"""
    READING = "reading"
    LISTENING = "listening"
    WRITING = "writing"
    SPEAKING = "speaking"
    GRAMMAR = "grammar"


class CamelModel(BaseModel):
    """camelCase 序列化的基础模型"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """转换为持久化用的字典（camelCase）"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class QuestionItem(CamelModel):
    """被判断/被匹配的条目（陈述、段落、标签等）"""
    id: str
    text: str = ""


class ChoiceOption(QuestionItem):
    """选项"""
    is_correct: bool = False


class SubQuestionMeta(CamelModel):
    """
    子题元数据

    一个可独立计分的单元。correct_answer 与 acceptable_answers 二选一，
    都为空时表示正确性交给 AI 评分。
    """
    sub_id: str
    item: Optional[str] = None                      # 关联的条目 ID
    points: float = 1
    correct_answer: Optional[str] = None
    acceptable_answers: Optional[List[str]] = None
    explanation: Optional[str] = None
    # 以下字段由 transform 解析填充，用于展示
    sub_index: Optional[int] = None
    question_text: Optional[str] = None
    answer_text: Optional[str] = None


class BaseQuestion(CamelModel):
    """所有题型的公共字段"""
    id: str
    type: str
    text: str = ""
    points: float = 1
    scoring_strategy: ScoringStrategy = ScoringStrategy.PARTIAL
    index: int = 0
    partial_ending_index: int = 0
    sub_questions: List[SubQuestionMeta] = Field(default_factory=list)

    def find_sub_question(self, sub_id: Optional[str]) -> Optional[SubQuestionMeta]:
        """按 sub_id 查找子题"""
        if not sub_id:
            return None
        for sub in self.sub_questions:
            if sub.sub_id == sub_id:
                return sub
        return None

    @property
    def is_partial(self) -> bool:
        return self.scoring_strategy == ScoringStrategy.PARTIAL


class MultipleChoiceQuestion(BaseQuestion):
    type: Literal["multiple-choice"] = "multiple-choice"
    scoring_strategy: ScoringStrategy = ScoringStrategy.ALL_OR_NOTHING
    options: List[ChoiceOption] = Field(default_factory=list)

    def correct_option(self) -> Optional[ChoiceOption]:
        return next((opt for opt in self.options if opt.is_correct), None)


class CompletionQuestion(BaseQuestion):
    type: Literal["completion"] = "completion"


class MatchingQuestion(BaseQuestion):
    type: Literal["matching"] = "matching"
    items: List[QuestionItem] = Field(default_factory=list)
    options: List[QuestionItem] = Field(default_factory=list)


class LabelingQuestion(BaseQuestion):
    type: Literal["labeling"] = "labeling"
    image_url: str = ""
    labels: List[QuestionItem] = Field(default_factory=list)
    options: List[QuestionItem] = Field(default_factory=list)


class PickFromListQuestion(BaseQuestion):
    """多选列表题：子题标记哪些条目是正确答案"""
    type: Literal["pick-from-a-list"] = "pick-from-a-list"
    items: List[QuestionItem] = Field(default_factory=list)


class TrueFalseNotGivenQuestion(BaseQuestion):
    type: Literal["true-false-not-given"] = "true-false-not-given"
    statements: List[QuestionItem] = Field(default_factory=list)


class YesNoNotGivenQuestion(BaseQuestion):
    type: Literal["yes-no-not-given"] = "yes-no-not-given"
    statements: List[QuestionItem] = Field(default_factory=list)


class MatchingHeadingsQuestion(BaseQuestion):
    type: Literal["matching-headings"] = "matching-headings"
    paragraphs: List[QuestionItem] = Field(default_factory=list)
    headings: List[QuestionItem] = Field(default_factory=list)


class ShortAnswerQuestion(BaseQuestion):
    type: Literal["short-answer"] = "short-answer"
    questions: List[QuestionItem] = Field(default_factory=list)
    word_limit: int = 3


class TranslationSentence(CamelModel):
    """待翻译的句子"""
    id: str
    source_text: str = ""
    reference_translations: List[str] = Field(default_factory=list)


class SentenceTranslationQuestion(BaseQuestion):
    type: Literal["sentence-translation"] = "sentence-translation"
    sentences: List[TranslationSentence] = Field(default_factory=list)
    source_language: str = "vietnamese"
    target_language: str = "english"
    scoring_prompt: str = ""


class WordFormExercise(CamelModel):
    """词形变换练习"""
    id: str
    sentence: str = ""
    base_word: str = ""
    correct_form: str = ""


class WordFormQuestion(BaseQuestion):
    type: Literal["word-form"] = "word-form"
    exercises: List[WordFormExercise] = Field(default_factory=list)
    scoring_prompt: str = ""


class WritingTaskQuestion(BaseQuestion):
    """写作题公共字段（Task 1 / Task 2）"""
    points: float = 9
    scoring_strategy: ScoringStrategy = ScoringStrategy.ALL_OR_NOTHING
    prompt: str = ""
    image_url: Optional[str] = None
    word_limit: int = 150
    sample_answer: Optional[str] = None
    scoring_prompt: Optional[str] = None


class WritingTask1Question(WritingTaskQuestion):
    type: Literal["writing-task1"] = "writing-task1"
    word_limit: int = 150


class WritingTask2Question(WritingTaskQuestion):
    type: Literal["writing-task2"] = "writing-task2"
    word_limit: int = 250


Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        CompletionQuestion,
        MatchingQuestion,
        LabelingQuestion,
        PickFromListQuestion,
        TrueFalseNotGivenQuestion,
        YesNoNotGivenQuestion,
        MatchingHeadingsQuestion,
        ShortAnswerQuestion,
        SentenceTranslationQuestion,
        WordFormQuestion,
        WritingTask1Question,
        WritingTask2Question,
    ],
    Field(discriminator="type"),
]

_question_adapter = TypeAdapter(Question)


def parse_question(data: Union[BaseQuestion, Dict[str, Any]]) -> BaseQuestion:
    """
    将持久化字典解析为具体题型

    Args:
        data: camelCase 或 snake_case 的字典，或已解析的题目对象

    Returns:
        对应题型的模型实例

    Raises:
        pydantic.ValidationError: type 未知或字段不合法时
    """
    if isinstance(data, BaseQuestion):
        return data
    return _question_adapter.validate_python(data)
