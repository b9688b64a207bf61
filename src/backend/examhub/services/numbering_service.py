"""
题目编号服务

按部分、题目顺序从左到右扫描一遍，维护一个运行计数器：
- partial 题目占用 len(子题) 个编号（没有子题时占 1 个）
- all-or-nothing 题目占用 1 个编号

编号与标准化在同一次扫描中完成，不修改输入试卷。
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from examhub.models import BaseQuestion, Exam, ScoringStrategy, StandardQuestion
from examhub.plugins import QuestionPluginRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass
class DisplayRange:
    """题目的展示编号（从 1 开始）"""
    start: int
    end: int

    @property
    def label(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


def _number_span(question: BaseQuestion, standard: StandardQuestion) -> int:
    if question.scoring_strategy == ScoringStrategy.PARTIAL:
        return len(standard.sub_questions) or 1
    return 1


def assign_question_indexes(
    exam: Exam,
    registry: Optional[QuestionPluginRegistry] = None,
) -> Tuple[Exam, List[StandardQuestion]]:
    """
    为试卷中的所有题目分配编号并标准化

    Args:
        exam: 试卷（不会被修改）
        registry: 插件注册表，默认使用全局注册表

    Returns:
        (重新编号后的试卷副本, 按顺序排列的标准化题目列表)

    Raises:
        PluginNotFoundError: 存在未注册的题型
    """
    registry = registry or get_registry()
    numbered = exam.model_copy(deep=True)
    standardized: List[StandardQuestion] = []
    counter = 0

    for section in numbered.sections:
        renumbered = []
        for question in section.questions:
            # 子题数量以标准化结构为准
            span = _number_span(question, registry.transform_question(question))
            question = question.model_copy(update={
                "index": counter,
                "partial_ending_index": counter + span - 1,
            })
            renumbered.append(question)
            standardized.append(registry.transform_question(question))
            counter += span
        section.questions = renumbered

    logger.debug(f"试卷 {exam.id} 编号完成，共 {counter} 个编号")
    return numbered, standardized


def get_display_range(question: BaseQuestion) -> DisplayRange:
    """把 0 起始的 index / partial_ending_index 转换为 1 起始的展示编号"""
    end = max(question.partial_ending_index, question.index)
    return DisplayRange(start=question.index + 1, end=end + 1)
