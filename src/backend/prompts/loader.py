"""
提示词加载器

评分提示词以 YAML 文件保存在 templates/ 目录下：
    system_prompt: 必需，系统提示词
    templates:     可选，其他命名模板（如 user_prompt / scoring_prompt）
    variables:     可选，模板变量默认值

模板使用 Jinja2 渲染，加载结果按文件名缓存。
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jinja2 import StrictUndefined, Template, TemplateError


class PromptLoadError(Exception):
    """提示词加载异常"""
    pass


class PromptRenderError(Exception):
    """提示词渲染异常"""
    pass


class PromptLoader:
    """
    提示词加载器

    使用示例：
        loader = PromptLoader()

        # 渲染系统提示词
        system_prompt = loader.render("essay_scoring")

        # 渲染命名模板
        user_prompt = loader.render("essay_scoring", "user_prompt", essay="...")
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        enable_cache: bool = True,
        auto_reload: bool = False
    ):
        """
        Args:
            templates_dir: 模板目录，默认为 prompts/templates/
            enable_cache: 是否启用缓存
            auto_reload: 文件修改后是否自动重新加载
        """
        self.templates_dir = Path(templates_dir) if templates_dir else Path(__file__).parent / "templates"
        self.enable_cache = enable_cache
        self.auto_reload = auto_reload
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._file_mtimes: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _path(self, name: str) -> Path:
        return self.templates_dir / f"{name}.yaml"

    def _is_stale(self, name: str) -> bool:
        file_path = self._path(name)
        if not file_path.exists():
            return False
        return file_path.stat().st_mtime > self._file_mtimes.get(name, 0)

    def load(self, name: str) -> Dict[str, Any]:
        """
        加载提示词配置

        Args:
            name: 提示词名称（不含 .yaml 后缀）

        Raises:
            PromptLoadError: 文件不存在、格式错误或缺少 system_prompt
        """
        with self._lock:
            cached = self._cache.get(name) if self.enable_cache else None
            if cached is not None and not (self.auto_reload and self._is_stale(name)):
                return cached

            file_path = self._path(name)
            if not file_path.exists():
                raise PromptLoadError(f"Prompt template not found: {file_path}")

            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise PromptLoadError(f"Failed to parse YAML: {e}")

            if not isinstance(config, dict) or "system_prompt" not in config:
                raise PromptLoadError(f"Missing required field 'system_prompt' in {name}.yaml")

            if self.enable_cache:
                self._cache[name] = config
                self._file_mtimes[name] = file_path.stat().st_mtime
            return config

    def render(self, name: str, template_key: str = "system_prompt", /, **variables) -> str:
        """
        渲染提示词模板

        Args:
            name: 提示词名称
            template_key: 模板键，默认为 system_prompt
            **variables: 模板变量，覆盖 YAML 中的默认值

        Raises:
            PromptRenderError: 模板不存在、缺少变量或渲染失败
        """
        config = self.load(name)
        if template_key == "system_prompt":
            content = config.get("system_prompt", "")
        else:
            content = (config.get("templates") or {}).get(template_key, "")

        if not content:
            raise PromptRenderError(f"Template '{template_key}' not found in {name}.yaml")

        merged_vars = {**(config.get("variables") or {}), **variables}
        try:
            return Template(content, undefined=StrictUndefined, trim_blocks=True).render(**merged_vars).strip()
        except TemplateError as e:
            raise PromptRenderError(f"Failed to render template '{template_key}' in {name}.yaml: {e}")

    def get_template_keys(self, name: str) -> List[str]:
        """列出提示词文件中可渲染的模板键"""
        config = self.load(name)
        return ["system_prompt"] + list((config.get("templates") or {}).keys())

    def clear_cache(self, name: Optional[str] = None):
        """清除缓存，name 为 None 时清除全部"""
        with self._lock:
            if name:
                self._cache.pop(name, None)
                self._file_mtimes.pop(name, None)
            else:
                self._cache.clear()
                self._file_mtimes.clear()

    def list_prompts(self) -> List[str]:
        """列出所有可用的提示词名称"""
        if not self.templates_dir.exists():
            return []
        return sorted(f.stem for f in self.templates_dir.glob("*.yaml"))


# 全局默认实例
prompt_loader = PromptLoader(enable_cache=True, auto_reload=False)
