"""
标准化服务

把任意题型投影为 StandardQuestion。与计分、校验不同，
未注册的题型在这里是硬错误：编号与报表都依赖标准化结构。
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from examhub.models import BaseQuestion, Exam, Section, StandardExam, StandardQuestion, StandardSection
from examhub.plugins import QuestionPluginRegistry, get_registry


def transform_question(
    question: Union[BaseQuestion, Dict[str, Any]],
    registry: Optional[QuestionPluginRegistry] = None,
) -> StandardQuestion:
    """
    标准化单个题目

    Raises:
        PluginNotFoundError: 题型未注册
        pydantic.ValidationError: 字典形式的题目字段不合法
    """
    registry = registry or get_registry()
    return registry.transform_question(question)


def transform_questions(
    questions: Iterable[Union[BaseQuestion, Dict[str, Any]]],
    registry: Optional[QuestionPluginRegistry] = None,
) -> List[StandardQuestion]:
    registry = registry or get_registry()
    return [registry.transform_question(q) for q in questions]


def transform_section(section: Section, registry: Optional[QuestionPluginRegistry] = None) -> StandardSection:
    """标准化一个试卷部分"""
    return StandardSection(
        id=section.id,
        title=section.title,
        questions=transform_questions(section.questions, registry),
    )


def transform_test(exam: Exam, registry: Optional[QuestionPluginRegistry] = None) -> StandardExam:
    """标准化整份试卷（不重新编号，编号见 numbering_service）"""
    registry = registry or get_registry()
    return StandardExam(
        id=exam.id,
        title=exam.title,
        description=exam.description or None,
        sections=[transform_section(section, registry) for section in exam.sections],
    )
