from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "srtai"


def get_logger(name: str) -> logging.Logger:
    """
    返回 srtai 命名空间下的 logger。

    库代码只负责打日志，不安装 handler；handler 由 CLI 通过
    configure_logging() 统一配置。
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def _resolve_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    env_level = os.getenv("SRTAI_LOG_LEVEL", "").strip().upper()
    if env_level:
        level = logging.getLevelName(env_level)
        if isinstance(level, int):
            return level
    return logging.INFO


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    为 srtai 根 logger 安装（或更新）单个控制台 handler。

    - verbose=True 时输出 DEBUG（包括请求/响应预览）；
    - 否则读取 SRTAI_LOG_LEVEL，缺省为 INFO。
    重复调用只会调整级别，不会叠加 handler。
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = _resolve_level(verbose)
    logger.setLevel(level)

    handler = next(
        (h for h in logger.handlers if getattr(h, "_srtai_console", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._srtai_console = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    handler.setLevel(level)
    logger.propagate = False
    return logger


def preview(text: str, limit: int | None = 4000) -> str:
    """对超长调试内容做截断，保留总长度提示。"""
    if limit is not None and len(text) > limit:
        return text[:limit] + f"\n... (truncated, {len(text)} chars total)"
    return text
