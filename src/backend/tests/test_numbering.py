"""
题目编号与标准化服务测试

关键测试场景：
1. partial 题目按子题数占用编号，all-or-nothing 占 1 个
2. 编号跨部分连续
3. 不修改输入试卷，重复编号结果相同
4. 未注册题型导致编号失败
"""
import pytest

from examhub.models import BaseQuestion, Exam, ScoringStrategy, Section
from examhub.plugins import PluginNotFoundError
from examhub.services.numbering_service import DisplayRange, assign_question_indexes, get_display_range
from examhub.services.transform_service import transform_questions, transform_test


class TestAssignQuestionIndexes:
    """编号分配"""

    def test_indexes(self, registry, sample_exam):
        numbered, standardized = assign_question_indexes(sample_exam, registry)

        reading, writing = numbered.sections
        assert (reading.questions[0].index, reading.questions[0].partial_ending_index) == (0, 0)
        assert (reading.questions[1].index, reading.questions[1].partial_ending_index) == (1, 3)
        assert (writing.questions[0].index, writing.questions[0].partial_ending_index) == (4, 4)
        assert [q.id for q in standardized] == ["q1", "q2", "q3"]
        assert standardized[1].index == 1
        assert standardized[1].partial_ending_index == 3

    def test_input_is_not_modified(self, registry, sample_exam):
        sample_exam.sections[0].questions[1].index = 42

        assign_question_indexes(sample_exam, registry)

        assert sample_exam.sections[0].questions[1].index == 42

    def test_numbering_is_idempotent(self, registry, sample_exam):
        first, first_standard = assign_question_indexes(sample_exam, registry)
        second, second_standard = assign_question_indexes(first, registry)

        assert first == second
        assert first_standard == second_standard

    def test_all_or_nothing_takes_one_number(self, registry, sample_exam):
        completion = sample_exam.sections[0].questions[1]
        sample_exam.sections[0].questions[1] = completion.model_copy(
            update={"scoring_strategy": ScoringStrategy.ALL_OR_NOTHING}
        )

        numbered, _ = assign_question_indexes(sample_exam, registry)

        assert numbered.sections[0].questions[1].partial_ending_index == 1
        assert numbered.sections[1].questions[0].index == 2

    def test_partial_without_sub_questions_takes_one_number(self, registry):
        exam = Exam.model_validate({
            "id": "e",
            "sections": [{
                "id": "s",
                "questions": [
                    {"id": "a", "type": "completion", "text": "Fill"},
                    {"id": "b", "type": "completion", "text": "Fill"},
                ],
            }],
        })

        numbered, _ = assign_question_indexes(exam, registry)

        assert [q.index for q in numbered.sections[0].questions] == [0, 1]

    def test_unregistered_type_fails(self, registry, sample_exam):
        sample_exam.sections[1].questions.append(BaseQuestion(id="x", type="essay"))

        with pytest.raises(PluginNotFoundError):
            assign_question_indexes(sample_exam, registry)


class TestDisplayRange:
    """展示编号"""

    def test_single(self, sample_exam):
        question = sample_exam.sections[0].questions[0].model_copy(update={"index": 0, "partial_ending_index": 0})

        assert get_display_range(question) == DisplayRange(start=1, end=1)
        assert get_display_range(question).label == "1"

    def test_span(self, sample_exam):
        question = sample_exam.sections[0].questions[1].model_copy(update={"index": 1, "partial_ending_index": 3})

        assert get_display_range(question).label == "2-4"


class TestTransformService:
    """标准化服务"""

    def test_transform_test(self, registry, sample_exam):
        standard = transform_test(sample_exam, registry)

        assert standard.id == "exam-1"
        assert [s.id for s in standard.sections] == ["sec-1", "sec-2"]
        assert len(standard.sections[0].questions[1].sub_questions) == 3

    def test_transform_questions_accepts_dicts(self, registry):
        standard = transform_questions(
            [{"id": "q", "type": "writing-task2", "text": "Essay"}], registry
        )

        assert standard[0].points == 9
        assert standard[0].sub_questions[0].sub_id == "q"
