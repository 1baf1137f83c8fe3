from __future__ import annotations

import os

from srtai.config import BACKEND_NAMES

from .backend import ChatCompletionsBackend, ConverseBackend, EchoBackend, TranslationBackend

__all__ = ["BACKEND_NAMES", "get_backend"]


def get_backend(name: str | None = None) -> TranslationBackend:
    """
    根据名称返回对应的后端实例。

    支持：
      - "converse" : ConverseBackend（Bedrock Converse API，适用于所有 Bedrock 对话模型）
      - "chat"     : ChatCompletionsBackend（OpenAI 兼容接口）
      - "echo"     : EchoBackend（原样返回，用于链路检查）

    未指定名称时：设置了 SRTAI_LLM_URL 则使用 "chat"，否则使用 "converse"。
    """
    if name is None:
        name = "chat" if os.getenv("SRTAI_LLM_URL") else "converse"
    key = name.lower()
    if key == "converse":
        return ConverseBackend()
    if key == "chat":
        return ChatCompletionsBackend()
    if key == "echo":
        return EchoBackend()
    raise ValueError(f"Unknown translation backend: {name}")
