from __future__ import annotations

from .types import Cue
from .srt_codec import (
    decode_display_text,
    decode_srt_bytes,
    extract_texts,
    parse_srt,
    read_srt,
    rebuild_cues,
    serialize_srt,
    write_srt,
)

__all__ = [
    "Cue",
    "decode_display_text",
    "decode_srt_bytes",
    "extract_texts",
    "parse_srt",
    "read_srt",
    "rebuild_cues",
    "serialize_srt",
    "write_srt",
]
