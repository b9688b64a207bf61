"""
试卷API路由
编号、标准化与成绩统计
"""
from typing import Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from examhub.models import Exam, UserAnswer
from examhub.plugins import PluginNotFoundError
from examhub.services.numbering_service import assign_question_indexes
from examhub.services.stats_service import StatsService


router = APIRouter(prefix="/tests", tags=["试卷"])


# Schemas
class ExamRequest(BaseModel):
    """试卷请求"""
    test: Exam


class ExamStatsRequest(BaseModel):
    """成绩统计请求"""
    test: Exam
    answers: Dict[str, UserAnswer] = Field(default_factory=dict)


# Endpoints
@router.post("/number", response_model=dict)
async def number_test(request: ExamRequest):
    """为试卷中的题目分配编号，同时返回标准化题目"""
    try:
        numbered, standardized = assign_question_indexes(request.test)
    except PluginNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "test": numbered.to_dict(),
        "questions": [q.to_dict() for q in standardized],
    }


@router.post("/stats", response_model=dict)
async def exam_stats(request: ExamStatsRequest):
    """计算试卷各部分与整体的成绩统计"""
    return StatsService.get_test_stats(request.test, request.answers).to_dict()
