"""
API 端点测试
"""
import pytest


@pytest.fixture
def client(monkeypatch):
    """创建测试客户端（不启用 AI 评分）"""
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("LANGFUSE_ENABLED", "false")
    from fastapi.testclient import TestClient
    from examhub.llm import reset_langfuse_client
    from main import app
    reset_langfuse_client()
    return TestClient(app)


COMPLETION = {
    "id": "cmp-1",
    "type": "completion",
    "text": "Complete the notes.",
    "points": 2,
    "subQuestions": [
        {"subId": "s1", "points": 1, "acceptableAnswers": ["Paris"]},
        {"subId": "s2", "points": 1, "acceptableAnswers": ["river"]},
    ],
}


class TestHealthAPI:
    """基础端点"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["question_types"] == 13
        assert data["ai_scoring_available"] is False


class TestQuestionTypesAPI:
    """题型查询"""

    def test_list(self, client):
        response = client.get("/api/question-types")
        assert response.status_code == 200
        assert len(response.json()) == 13

    def test_filter_by_category(self, client):
        response = client.get("/api/question-types", params={"category": "writing"})
        assert response.status_code == 200
        assert {t["type"] for t in response.json()} == {
            "sentence-translation",
            "writing-task1",
            "writing-task2",
        }

    def test_unknown_category(self, client):
        response = client.get("/api/question-types", params={"category": "math"})
        assert response.status_code == 400

    def test_get_one(self, client):
        response = client.get("/api/question-types/pick-from-a-list")
        assert response.status_code == 200
        assert response.json()["supportsPartialScoring"] is True

    def test_get_unknown(self, client):
        response = client.get("/api/question-types/essay")
        assert response.status_code == 404


class TestQuestionsAPI:
    """题目编辑"""

    def test_create_default_and_validate(self, client):
        response = client.post("/api/questions/default", json={"type": "short-answer", "index": 2})
        assert response.status_code == 200
        question = response.json()
        assert question["index"] == 2
        assert "subQuestions" in question

        response = client.post("/api/questions/validate", json={"question": question})
        assert response.status_code == 200
        assert response.json()["isValid"] is True

    def test_create_unknown_type(self, client):
        response = client.post("/api/questions/default", json={"type": "essay"})
        assert response.status_code == 404

    def test_transform(self, client):
        response = client.post("/api/questions/transform", json={"question": COMPLETION})
        assert response.status_code == 200
        assert [s["subId"] for s in response.json()["subQuestions"]] == ["s1", "s2"]

    def test_transform_unknown_type(self, client):
        response = client.post("/api/questions/transform", json={"question": {"id": "q", "type": "essay"}})
        assert response.status_code == 404

    def test_transform_invalid_question(self, client):
        response = client.post(
            "/api/questions/transform",
            json={"question": {"id": "q", "type": "completion", "points": "many"}},
        )
        assert response.status_code == 400


class TestScoringAPI:
    """计分"""

    def test_score_sub_question(self, client):
        response = client.post(
            "/api/scoring/score",
            json={"question": COMPLETION, "answer": "  paris ", "sub_question_id": "s1"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["isCorrect"] is True
        assert data["score"] == 1
        assert data["metadata"]["scoringId"].startswith("score_")

    def test_score_whole_question(self, client):
        response = client.post(
            "/api/scoring/score",
            json={"question": COMPLETION, "answer": {"s1": "paris", "s2": "lake"}},
        )
        data = response.json()
        assert data["score"] == 1
        assert data["feedback"] == "1/2 answers correct"

    def test_score_unregistered_type(self, client):
        response = client.post(
            "/api/scoring/score",
            json={"question": {"id": "q", "type": "unknown_type", "points": 2}, "answer": "x"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 0
        assert data["maxScore"] == 2
        assert data["isCorrect"] is False
        assert data["error"]["code"] == "PLUGIN_NOT_FOUND"
        assert data["metadata"]["scoringId"].startswith("score_")

    def test_score_invalid_question(self, client):
        response = client.post(
            "/api/scoring/score",
            json={"question": {"id": "q", "type": "completion", "points": "many"}},
        )
        assert response.status_code == 400

    def test_question_score(self, client):
        response = client.post(
            "/api/scoring/question-score",
            json={
                "question": COMPLETION,
                "answers": {
                    "s1": {"questionId": "cmp-1", "subQuestionId": "s1", "answer": "paris"},
                },
                "recalculate": True,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 1
        assert data["maxScore"] == 2
        assert data["percentage"] == 50
        assert data["breakdown"]["metadata"]["scoringMethod"] == "plugin"


class TestExamsAPI:
    """试卷编号与统计"""

    EXAM = {
        "id": "exam-1",
        "sections": [
            {
                "id": "sec-1",
                "questions": [
                    COMPLETION,
                    {
                        "id": "mc-1",
                        "type": "multiple-choice",
                        "text": "Pick",
                        "options": [{"id": "a", "text": "A", "isCorrect": True}, {"id": "b", "text": "B"}],
                    },
                ],
            },
        ],
    }

    def test_number(self, client):
        response = client.post("/api/tests/number", json={"test": self.EXAM})
        assert response.status_code == 200
        questions = response.json()["test"]["sections"][0]["questions"]
        assert [(q["index"], q["partialEndingIndex"]) for q in questions] == [(0, 1), (2, 2)]
        assert len(response.json()["questions"]) == 2

    def test_number_unknown_type(self, client):
        exam = {"id": "e", "sections": [{"id": "s", "questions": [{"id": "q", "type": "essay"}]}]}
        response = client.post("/api/tests/number", json={"test": exam})
        assert response.status_code == 422

    def test_stats(self, client):
        numbered = client.post("/api/tests/number", json={"test": self.EXAM}).json()["test"]
        response = client.post(
            "/api/tests/stats",
            json={
                "test": numbered,
                "answers": {
                    "s1": {"questionId": "cmp-1", "subQuestionId": "s1", "isCorrect": True, "score": 1},
                    "mc-1": {"questionId": "mc-1", "isCorrect": False, "score": 0},
                },
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["totalQuestions"] == 3
        assert data["answeredQuestions"] == 2
        assert data["totalScore"] == 1
        assert data["maxPossibleScore"] == 3
        assert data["percentageScore"] == 33
