from __future__ import annotations

from .config import TranslateConfig
from .errors import (
    BackendError,
    ConfigError,
    LengthMismatch,
    ResponseFormatError,
    SrtaiError,
    TranslationError,
)
from .subtitles import Cue, parse_srt, rebuild_cues, serialize_srt
from .translate import SubtitleTranslator, TranslationBackend, translate_cues

__all__ = [
    "BackendError",
    "ConfigError",
    "Cue",
    "LengthMismatch",
    "ResponseFormatError",
    "SrtaiError",
    "SubtitleTranslator",
    "TranslateConfig",
    "TranslationBackend",
    "TranslationError",
    "parse_srt",
    "rebuild_cues",
    "serialize_srt",
    "translate_cues",
]

__version__ = "0.1.0"
