"""
题型查询API路由
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from examhub.models import ExamCategory
from examhub.plugins import get_registry


router = APIRouter(prefix="/question-types", tags=["题型"])


@router.get("", response_model=List[dict])
async def list_question_types(category: Optional[str] = None):
    """列出已注册的题型，可按考试类别筛选"""
    registry = get_registry()
    if category is None:
        plugins = registry.get_all_plugins()
    else:
        try:
            plugins = registry.get_plugins_by_category(ExamCategory(category))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"未知的考试类别: {category}")
    return [plugin.config.to_dict() for plugin in plugins]


@router.get("/{question_type}", response_model=dict)
async def get_question_type(question_type: str):
    """获取单个题型的描述"""
    plugin = get_registry().get_plugin(question_type)
    if plugin is None:
        raise HTTPException(status_code=404, detail=f"未注册的题型: {question_type}")
    return plugin.config.to_dict()
