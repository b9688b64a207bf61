"""
FastAPI应用入口
"""
from dotenv import load_dotenv
from pathlib import Path
import os
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

logger = logging.getLogger(__name__)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from examhub.api import question_types, questions, scoring, exams
from examhub.core.config import get_scoring_config
from examhub.llm import is_langfuse_enabled, is_llm_configured
from examhub.plugins import initialize_registry


def _get_cors_config() -> tuple[list[str], str | None]:
    """
    获取 CORS 配置

    Returns:
        (allow_origins, allow_origin_regex)
        - 生产环境：使用 ALLOWED_ORIGINS 中精确匹配的源
        - 开发环境：使用正则匹配本地端口
    """
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    if origins_str:
        origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]
        if origins:
            return origins, None

    if os.getenv("DEV_MODE", "false").lower() == "true":
        return [], r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    logger.warning("未配置 ALLOWED_ORIGINS 且非开发模式，CORS 将拒绝所有跨域请求")
    return [], None


# 题型注册表在处理任何请求之前填充
registry = initialize_registry()

app = FastAPI(
    title="ExamHub Scoring API",
    description="Question-type plugins, scoring and numbering for language tests",
    version="0.1.0"
)

allow_origins, allow_origin_regex = _get_cors_config()
logger.info(f"CORS 配置: origins={allow_origins}, regex={allow_origin_regex}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(question_types.router, prefix="/api", tags=["题型"])
app.include_router(questions.router, prefix="/api", tags=["题目编辑"])
app.include_router(scoring.router, prefix="/api", tags=["计分"])
app.include_router(exams.router, prefix="/api", tags=["试卷"])


@app.get("/")
async def root():
    """根路径"""
    return {"message": "ExamHub Scoring API", "docs": "/docs"}


@app.get("/health")
async def health():
    """健康检查"""
    return {
        "status": "healthy",
        "question_types": len(registry.get_registered_types()),
        "ai_scoring_available": get_scoring_config().ai_enabled and is_llm_configured(),
        "langfuse_enabled": is_langfuse_enabled(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
