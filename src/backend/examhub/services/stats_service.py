"""
成绩统计服务

根据已保存的作答记录计算题目、部分、整份试卷的得分统计。
题目总数按编号跨度计算，一道题可能对应多个展示编号。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from examhub.core.scoring_utils import calculate_percentage, normalize_score
from examhub.models import BaseQuestion, Exam, Section, UserAnswer
from examhub.plugins import QuestionPluginRegistry, get_registry


@dataclass
class SectionStats:
    """部分统计"""
    section_score: float = 0
    section_total_score: float = 0
    percentage: int = 0
    total_questions: int = 0
    answered: int = 0
    unanswered: int = 0
    correct: int = 0
    incorrect: int = 0
    partial: int = 0
    answers: List[UserAnswer] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectionScore": self.section_score,
            "sectionTotalScore": self.section_total_score,
            "percentage": self.percentage,
            "totalQuestions": self.total_questions,
            "answered": self.answered,
            "unanswered": self.unanswered,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "partial": self.partial,
        }


@dataclass
class ExamStats:
    """整份试卷统计"""
    total_questions: int = 0
    answered_questions: int = 0
    correct_answers: int = 0
    total_score: float = 0
    max_possible_score: float = 0
    percentage_score: int = 0
    sections: Dict[str, SectionStats] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalQuestions": self.total_questions,
            "answeredQuestions": self.answered_questions,
            "correctAnswers": self.correct_answers,
            "totalScore": self.total_score,
            "maxPossibleScore": self.max_possible_score,
            "percentageScore": self.percentage_score,
            "sections": {key: stats.to_dict() for key, stats in self.sections.items()},
        }


def _record_score(record: Optional[UserAnswer], max_score: float) -> float:
    """作答记录的得分；旧记录没有 score 时按 is_correct 给满分或 0 分"""
    if record is None:
        return 0
    if record.score is not None:
        return normalize_score(record.score, max_score)
    return max_score if record.is_correct else 0


class StatsService:
    """成绩统计（无状态）"""

    @staticmethod
    def count_section_questions(questions: Sequence[BaseQuestion]) -> int:
        """按编号跨度统计题目数：最后一题的结束编号 - 第一题的编号 + 1"""
        if not questions:
            return 0
        first, last = questions[0], questions[-1]
        end = last.partial_ending_index or last.index or 0
        return end - (first.index or 0) + 1

    @staticmethod
    def _answer_keys(
        question: BaseQuestion,
        registry: QuestionPluginRegistry,
    ) -> List[Tuple[str, float]]:
        """
        返回 (作答记录键, 满分) 列表

        partial 题目按标准化子题逐个对应，其余题目以题目 ID 为键。
        """
        plugin = registry.get_plugin(question.type)
        if question.is_partial and plugin is not None:
            subs = plugin.transform(question).sub_questions
            if subs:
                return [(sub.sub_id, sub.points or 0) for sub in subs]
        return [(question.id, question.points or 0)]

    @staticmethod
    def get_question_score(
        question: BaseQuestion,
        answers: Mapping[str, UserAnswer],
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> Dict[str, float]:
        """
        计算单道题的得分

        Returns:
            {"score": 得分, "max_score": 满分}
        """
        registry = registry or get_registry()
        score = 0.0
        max_score = 0.0
        for key, points in StatsService._answer_keys(question, registry):
            score += _record_score(answers.get(key), points)
            max_score += points
        return {"score": score, "max_score": max_score}

    @staticmethod
    def get_section_stats(
        section: Section,
        answers: Mapping[str, UserAnswer],
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> SectionStats:
        """计算一个部分的统计数据"""
        registry = registry or get_registry()
        stats = SectionStats()

        for question in section.questions:
            for key, points in StatsService._answer_keys(question, registry):
                stats.section_total_score += points
                record = answers.get(key)
                if record is None:
                    continue
                stats.section_score += _record_score(record, points)
                stats.answers.append(record)
                if record.is_correct:
                    stats.correct += 1
                elif record.partially_correct:
                    stats.partial += 1
                else:
                    stats.incorrect += 1

        stats.answered = len(stats.answers)
        stats.total_questions = StatsService.count_section_questions(section.questions)
        stats.unanswered = max(stats.total_questions - stats.answered, 0)
        stats.percentage = calculate_percentage(stats.section_score, stats.section_total_score)
        return stats

    @staticmethod
    def get_test_stats(
        exam: Exam,
        answers: Mapping[str, UserAnswer],
        registry: Optional[QuestionPluginRegistry] = None,
    ) -> ExamStats:
        """汇总整份试卷的统计数据"""
        registry = registry or get_registry()
        result = ExamStats()

        for section in exam.sections:
            section_stats = StatsService.get_section_stats(section, answers, registry)
            result.sections[section.id] = section_stats
            result.total_questions += section_stats.total_questions
            result.answered_questions += section_stats.answered
            result.correct_answers += section_stats.correct
            result.total_score += section_stats.section_score
            result.max_possible_score += section_stats.section_total_score

        result.percentage_score = calculate_percentage(result.total_score, result.max_possible_score)
        return result
