from __future__ import annotations

from .backend import (
    CallableBackend,
    ChatCompletionsBackend,
    ConverseBackend,
    EchoBackend,
    TranslationBackend,
)
from .batching import Batch, plan_batches
from .dispatch import run_all
from .extract import extract_translations
from .factory import BACKEND_NAMES, get_backend
from .orchestrator import SubtitleTranslator, translate_cues
from .retry import RetryPolicy

__all__ = [
    "BACKEND_NAMES",
    "Batch",
    "CallableBackend",
    "ChatCompletionsBackend",
    "ConverseBackend",
    "EchoBackend",
    "RetryPolicy",
    "SubtitleTranslator",
    "TranslationBackend",
    "extract_translations",
    "get_backend",
    "plan_batches",
    "run_all",
    "translate_cues",
]
