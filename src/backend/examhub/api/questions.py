"""
题目编辑API路由
生成默认题目、校验与标准化
"""
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from examhub.plugins import PluginNotFoundError, get_registry


router = APIRouter(prefix="/questions", tags=["题目编辑"])


# Schemas
class CreateQuestionRequest(BaseModel):
    """生成默认题目请求"""
    type: str
    index: int = 0


class QuestionRequest(BaseModel):
    """题目请求（camelCase 或 snake_case 字段均可）"""
    question: Dict[str, Any]


# Endpoints
@router.post("/default", response_model=dict)
async def create_default_question(request: CreateQuestionRequest):
    """生成指定题型的默认题目"""
    question = get_registry().create_question(request.type, request.index)
    if question is None:
        raise HTTPException(status_code=404, detail=f"未注册的题型: {request.type}")
    return question.to_dict()


@router.post("/validate", response_model=dict)
async def validate_question(request: QuestionRequest):
    """校验题目结构"""
    return get_registry().validate_question(request.question).to_dict()


@router.post("/transform", response_model=dict)
async def transform_question(request: QuestionRequest):
    """把题目转换为标准化结构"""
    try:
        return get_registry().transform_question(request.question).to_dict()
    except PluginNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
