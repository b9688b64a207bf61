"""
AI 评分协作方

把写作/翻译/词形题的作答交给 LLM 评分：
1. 用 essay_scoring 模板构造消息（题目自带的 scoring_prompt 替换默认评分维度）
2. 要求 LLM 返回 JSON {"score": 0-9, "detailedBreakdown": "..."}
3. 解析并把分数限制在 0-9

score() 不抛异常，所有失败都返回 ok=False 的 AIScoringResult，
由插件走降级路径。
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional

from examhub.core.config import get_scoring_config
from examhub.models import AIScoringFn, AIScoringResult
from prompts import PromptLoadError, PromptRenderError, prompt_loader

from .base import LLMClient, LLMError
from .config import is_llm_configured
from .langfuse_wrapper import trace_llm_call

logger = logging.getLogger(__name__)

# 评分采用 IELTS band 分制
MAX_BAND = 9.0

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def _clean_llm_response(content: str) -> str:
    """去掉 LLM 返回内容外层的 Markdown 代码块"""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_scoring_response(content: str) -> Dict[str, Any]:
    """
    解析 LLM 返回的评分 JSON

    Returns:
        {"score": float, "feedback": str}

    Raises:
        ValueError: 内容不是合法 JSON 或缺少 score
    """
    cleaned = _clean_llm_response(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        # 模型偶尔会在 JSON 前后附带说明文字
        match = _JSON_OBJECT_RE.search(cleaned)
        if not match:
            raise ValueError(f"AI 返回内容不是 JSON: {cleaned[:100]}")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"AI 返回的 JSON 无法解析: {e}")

    if not isinstance(data, dict) or data.get("score") is None:
        raise ValueError("AI 返回结果缺少 score 字段")

    try:
        score = float(data["score"])
    except (TypeError, ValueError):
        raise ValueError(f"AI 返回的 score 不是数字: {data['score']!r}")

    feedback = data.get("detailedBreakdown") or data.get("feedback") or ""
    if not isinstance(feedback, str):
        feedback = json.dumps(feedback, ensure_ascii=False)

    return {"score": min(max(score, 0.0), MAX_BAND), "feedback": feedback}


class AIScorer:
    """
    基于 LLM 的评分器

    使用示例:
        scorer = AIScorer(get_llm_client())
        result = await scorer.score(text="...", prompt="...", essay="...", scoring_prompt="")
        if result.ok:
            print(result.score, result.feedback)
    """

    def __init__(self, llm: LLMClient, timeout: Optional[float] = None):
        self.llm = llm
        self.timeout = timeout if timeout is not None else get_scoring_config().ai_timeout

    def build_messages(self, *, text: str, prompt: str, essay: str, scoring_prompt: str):
        """构造评分消息（system + user）"""
        task_prompt = "\n\n".join(part for part in (text, prompt) if part and part.strip())
        variables = {
            "task_prompt": task_prompt,
            "essay": essay,
            "scoring_prompt": (scoring_prompt or "").strip(),
        }
        return [
            {"role": "system", "content": prompt_loader.render("essay_scoring", **variables)},
            {"role": "user", "content": prompt_loader.render("essay_scoring", "user_prompt", **variables)},
        ]

    @trace_llm_call("ai_scoring", tags=["scoring"])
    async def score(
        self,
        *,
        text: str = "",
        prompt: str = "",
        essay: str = "",
        scoring_prompt: str = "",
    ) -> AIScoringResult:
        """
        评分

        Args:
            text: 题干
            prompt: 题目要求或原文
            essay: 学生作答
            scoring_prompt: 自定义评分标准

        Returns:
            AIScoringResult（score 为 0-9 分），失败时 ok=False
        """
        if not (essay or "").strip():
            return AIScoringResult(ok=False, error="Empty answer")

        try:
            messages = self.build_messages(text=text, prompt=prompt, essay=essay, scoring_prompt=scoring_prompt)
        except (PromptLoadError, PromptRenderError) as e:
            logger.error(f"评分提示词构造失败: {e}")
            return AIScoringResult(ok=False, error=str(e))

        try:
            response = await asyncio.wait_for(
                self.llm.chat(messages, response_format={"type": "json_object"}),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"AI 评分超时（{self.timeout}s）")
            return AIScoringResult(ok=False, error=f"AI scoring timed out after {self.timeout}s")
        except LLMError as e:
            return AIScoringResult(ok=False, error=str(e))

        try:
            parsed = parse_scoring_response(response.content)
        except ValueError as e:
            logger.warning(f"AI 评分结果解析失败: {e}")
            return AIScoringResult(ok=False, error=str(e))

        logger.info(f"AI 评分完成: score={parsed['score']}, model={response.model}")
        return AIScoringResult(ok=True, score=parsed["score"], feedback=parsed["feedback"])


def build_ai_scoring_fn(llm: Optional[LLMClient] = None) -> Optional[AIScoringFn]:
    """
    构造传给插件的 AI 评分函数

    Args:
        llm: LLM 客户端，为 None 时使用全局客户端

    Returns:
        AIScorer.score，未启用 AI 评分或未配置 LLM 时返回 None
    """
    if not get_scoring_config().ai_enabled:
        return None
    if llm is None:
        if not is_llm_configured():
            logger.info("未配置 LLM_API_KEY，AI 评分不可用")
            return None
        from . import get_llm_client
        llm = get_llm_client()
    return AIScorer(llm).score
