"""
试卷结构模型

试卷由有序的部分（Section）组成，每个部分包含有序的题目列表。
"""

from typing import List, Optional

from pydantic import Field

from .question import CamelModel, ExamCategory, Question
from .standard import StandardQuestion


class Section(CamelModel):
    """试卷部分"""
    id: str
    title: str = ""
    description: str = ""
    audio_url: Optional[str] = None          # 听力音频
    duration: int = 0                         # 秒
    questions: List[Question] = Field(default_factory=list)


class Exam(CamelModel):
    """试卷"""
    id: str
    title: str = ""
    type: ExamCategory = ExamCategory.READING
    description: str = ""
    instructions: str = ""
    total_duration: int = 0
    sections: List[Section] = Field(default_factory=list)


class StandardSection(CamelModel):
    """标准化后的试卷部分"""
    id: str
    title: str = ""
    questions: List[StandardQuestion] = Field(default_factory=list)


class StandardExam(CamelModel):
    """标准化后的试卷"""
    id: str
    title: str = ""
    description: Optional[str] = None
    sections: List[StandardSection] = Field(default_factory=list)
