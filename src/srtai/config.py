from __future__ import annotations

from dataclasses import dataclass, replace
import os
from typing import Optional

from .errors import ConfigError

DEFAULT_BATCH_SIZE = 30
DEFAULT_CONCURRENCY = 3
DEFAULT_RETRIES = 3
DEFAULT_BASE_DELAY = 0.5

# 可选的后端名称，未指定时由 translate.factory.get_backend 按环境选择
BACKEND_NAMES = ("converse", "chat", "echo")


@dataclass(frozen=True)
class TranslateConfig:
    """
    单次翻译任务的配置。

    列出所有可识别的选项及其默认值，在任务开始时通过 validate()
    统一校验一次；校验失败抛出 ConfigError，不会进行任何后端调用。
    """

    target_language: str
    model_id: Optional[str] = None
    region: Optional[str] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    retries: int = DEFAULT_RETRIES
    dry_run: bool = False
    # 上下文提示（通常是源文件名），用于帮助后端统一术语与口头禅
    context_hint: Optional[str] = None
    # 重试退避的基准时长（秒）：0.5, 1, 2, 4 ...
    base_delay: float = DEFAULT_BASE_DELAY
    backend: Optional[str] = None

    def validate(self) -> "TranslateConfig":
        if not self.target_language or not self.target_language.strip():
            raise ConfigError("target_language is required", code="target_language")
        if not self.dry_run and not self.model_id:
            raise ConfigError(
                "model_id is required unless dry_run is set",
                code="model_id",
            )
        if not isinstance(self.batch_size, int) or self.batch_size <= 0:
            raise ConfigError(
                f"batch_size must be a positive integer, got {self.batch_size!r}",
                code="batch_size",
            )
        if not isinstance(self.concurrency, int) or self.concurrency <= 0:
            raise ConfigError(
                f"concurrency must be a positive integer, got {self.concurrency!r}",
                code="concurrency",
            )
        if not isinstance(self.retries, int) or self.retries < 0:
            raise ConfigError(
                f"retries must be a non-negative integer, got {self.retries!r}",
                code="retries",
            )
        if self.base_delay < 0:
            raise ConfigError(
                f"base_delay must not be negative, got {self.base_delay!r}",
                code="base_delay",
            )
        if self.backend is not None and self.backend.lower() not in BACKEND_NAMES:
            raise ConfigError(
                f"backend must be one of {', '.join(BACKEND_NAMES)}, got {self.backend!r}",
                code="backend",
            )
        return self

    def with_context(self, context_hint: Optional[str]) -> "TranslateConfig":
        return replace(self, context_hint=context_hint)

    @classmethod
    def from_env(
        cls,
        target_language: str,
        model_id: Optional[str] = None,
        region: Optional[str] = None,
        batch_size: Optional[int] = None,
        concurrency: Optional[int] = None,
        retries: Optional[int] = None,
        dry_run: bool = False,
        context_hint: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> "TranslateConfig":
        """
        以显式参数为准，缺省值再从环境变量补齐：

          - SRTAI_MODEL_ID / BEDROCK_MODEL_ID   # 模型标识
          - AWS_REGION                          # 区域
          - SRTAI_BACKEND                       # 后端名称（converse / chat / echo）
        """
        if model_id is None:
            model_id = os.getenv("SRTAI_MODEL_ID") or os.getenv("BEDROCK_MODEL_ID") or None
        if region is None:
            region = os.getenv("AWS_REGION") or None
        if backend is None:
            backend = os.getenv("SRTAI_BACKEND") or None

        return cls(
            target_language=target_language,
            model_id=model_id,
            region=region,
            batch_size=DEFAULT_BATCH_SIZE if batch_size is None else batch_size,
            concurrency=DEFAULT_CONCURRENCY if concurrency is None else concurrency,
            retries=DEFAULT_RETRIES if retries is None else retries,
            dry_run=dry_run,
            context_hint=context_hint,
            backend=backend,
        )
