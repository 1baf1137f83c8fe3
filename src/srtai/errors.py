from __future__ import annotations

"""
srtai 的异常类型。

单独成文件，避免 translate/ 与 subtitles/ 之间的循环导入。
"""

from typing import Any, Dict, Optional


class SrtaiError(Exception):
    """所有 srtai 错误的基类，可附带错误码与细节。"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class TranslationError(SrtaiError):
    """
    单个 batch 内可重试的失败。

    由重试层捕获，不会冒泡到整个任务。
    """


class BackendError(TranslationError):
    """后端传输/服务失败，或响应中出现错误信封（error envelope）。"""


class ResponseFormatError(TranslationError):
    """响应中找不到任何可用的结构，换行拆分也得不到内容。"""


class LengthMismatch(SrtaiError):
    """译文数量与字幕条数不一致：属于编排逻辑的契约错误，直接抛给调用方。"""


class ConfigError(SrtaiError, ValueError):
    """任务配置无效，在开始任何工作之前抛出。"""
