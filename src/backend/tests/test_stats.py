"""
成绩统计服务测试
"""
import pytest

from examhub.models import UserAnswer
from examhub.services.numbering_service import assign_question_indexes
from examhub.services.stats_service import StatsService


@pytest.fixture
def numbered_exam(registry, sample_exam):
    """已编号的试卷：q1 -> 1，q2 -> 2-4，q3 -> 5"""
    numbered, _ = assign_question_indexes(sample_exam, registry)
    return numbered


@pytest.fixture
def answers():
    return {
        "q1": UserAnswer(question_id="q1", answer="a", is_correct=True, score=1, max_score=1),
        "q2-1": UserAnswer(question_id="q2", sub_question_id="q2-1", answer="one", is_correct=True, score=1, max_score=1),
        "q2-2": UserAnswer(question_id="q2", sub_question_id="q2-2", answer="six", is_correct=False, score=0, max_score=1),
        "q3": UserAnswer(question_id="q3", answer={"text": "essay"}, is_correct=True, score=6, max_score=9),
    }


class TestQuestionScore:
    """单题得分"""

    def test_partial_question(self, registry, numbered_exam, answers):
        question = numbered_exam.sections[0].questions[1]

        assert StatsService.get_question_score(question, answers, registry) == {"score": 1, "max_score": 3}

    def test_record_without_score_uses_is_correct(self, registry, numbered_exam):
        question = numbered_exam.sections[0].questions[0]
        answers = {"q1": UserAnswer(question_id="q1", answer="a", is_correct=True)}

        assert StatsService.get_question_score(question, answers, registry)["score"] == 1

    def test_score_is_clamped(self, registry, numbered_exam):
        question = numbered_exam.sections[0].questions[0]
        answers = {"q1": UserAnswer(question_id="q1", answer="a", is_correct=True, score=5)}

        assert StatsService.get_question_score(question, answers, registry)["score"] == 1


class TestSectionStats:
    """部分统计"""

    def test_count_section_questions(self, numbered_exam):
        assert StatsService.count_section_questions(numbered_exam.sections[0].questions) == 4
        assert StatsService.count_section_questions(numbered_exam.sections[1].questions) == 1
        assert StatsService.count_section_questions([]) == 0

    def test_section_stats(self, registry, numbered_exam, answers):
        stats = StatsService.get_section_stats(numbered_exam.sections[0], answers, registry)

        assert stats.section_score == 2
        assert stats.section_total_score == 4
        assert stats.percentage == 50
        assert stats.total_questions == 4
        assert stats.answered == 3
        assert stats.unanswered == 1
        assert stats.correct == 2
        assert stats.incorrect == 1
        assert stats.partial == 0

    def test_empty_answers(self, registry, numbered_exam):
        stats = StatsService.get_section_stats(numbered_exam.sections[0], {}, registry)

        assert stats.section_score == 0
        assert stats.percentage == 0
        assert stats.unanswered == 4


class TestExamStats:
    """整份试卷统计"""

    def test_exam_stats(self, registry, numbered_exam, answers):
        stats = StatsService.get_test_stats(numbered_exam, answers, registry)

        assert stats.total_questions == 5
        assert stats.answered_questions == 4
        assert stats.correct_answers == 3
        assert stats.total_score == 8
        assert stats.max_possible_score == 13
        assert stats.percentage_score == 62
        assert stats.sections["sec-2"].percentage == 67

    def test_to_dict(self, registry, numbered_exam, answers):
        data = StatsService.get_test_stats(numbered_exam, answers, registry).to_dict()

        assert data["totalQuestions"] == 5
        assert data["sections"]["sec-1"]["sectionTotalScore"] == 4
        assert "answers" not in data["sections"]["sec-1"]
