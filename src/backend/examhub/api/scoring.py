"""
计分API路由
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from examhub.llm import build_ai_scoring_fn
from examhub.models import ScoringContext, UserAnswer, parse_question
from examhub.plugins import get_registry
from examhub.services.scoring_service import ScoringService


router = APIRouter(prefix="/scoring", tags=["计分"])


# Schemas
class ScoreRequest(BaseModel):
    """单题计分请求"""
    question: Dict[str, Any]
    answer: Any = None
    sub_question_id: Optional[str] = None
    use_ai: bool = False


class QuestionScoreRequest(BaseModel):
    """按作答记录汇总题目得分请求"""
    question: Dict[str, Any]
    answers: Dict[str, UserAnswer] = Field(default_factory=dict)
    recalculate: bool = False
    use_ai: bool = False
    include_breakdown: bool = True


def _parse(question: Dict[str, Any]):
    try:
        return parse_question(question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"题目格式错误: {e}")


def _scoring_question(question: Dict[str, Any]):
    """未注册题型原样交给计分服务，返回 PLUGIN_NOT_FOUND 的零分结果"""
    question_type = question.get("type")
    if question_type and not get_registry().has_plugin(question_type):
        return question
    return _parse(question)


# Endpoints
@router.post("/score", response_model=dict)
async def score_question(request: ScoreRequest):
    """对单个题目或子题计分"""
    question = _scoring_question(request.question)
    context = ScoringContext(
        question=question,
        answer=request.answer,
        sub_question_id=request.sub_question_id,
        ai_scoring_fn=build_ai_scoring_fn() if request.use_ai else None,
    )
    result = await ScoringService.score_question(context, get_registry())
    return result.to_dict()


@router.post("/question-score", response_model=dict)
async def calculate_question_score(request: QuestionScoreRequest):
    """根据作答记录汇总题目得分（可选重新计分）"""
    question = _parse(request.question)
    summary = await ScoringService.calculate_question_score(
        question,
        request.answers,
        recalculate=request.recalculate,
        ai_scoring_fn=build_ai_scoring_fn() if request.use_ai else None,
        include_breakdown=request.include_breakdown,
    )
    return summary.to_dict()
