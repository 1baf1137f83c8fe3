from __future__ import annotations

import html
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from srtai.errors import LengthMismatch
from srtai.log import get_logger

from .types import Cue

logger = get_logger(__name__)

TIMING_SEPARATOR = "-->"

# 一个或多个空行（仅含空白字符的行也视为空行）
_BLOCK_SPLIT_RE = re.compile(r"\r?\n(?:[ \t]*\r?\n)+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_TIMESTAMP_RE = re.compile(r"(\d+):(\d+):(\d+)[,.](\d+)")


def _parse_timestamp(value: str) -> Optional[int]:
    """将 HH:MM:SS,mmm 转换为毫秒；无法识别时返回 None。"""
    m = _TIMESTAMP_RE.search(value)
    if not m:
        return None
    hh, mm, ss, ms = (int(part) for part in m.groups())
    return ((hh * 60 + mm) * 60 + ss) * 1000 + ms


def _parse_timing_line(line: str) -> Tuple[int, int]:
    start_raw, _, end_raw = line.partition(TIMING_SEPARATOR)
    start = _parse_timestamp(start_raw)
    end = _parse_timestamp(end_raw)
    if start is None or end is None:
        logger.debug("Unparseable timing line %r, using 0 --> 0", line)
        return 0, 0
    return start, end


def _format_timestamp(ms: int) -> str:
    if ms < 0:
        ms = 0
    millis = ms % 1000
    total_seconds = ms // 1000
    s = total_seconds % 60
    total_minutes = total_seconds // 60
    m = total_minutes % 60
    h = total_minutes // 60
    return f"{h:02d}:{m:02d}:{s:02d},{millis:03d}"


def parse_srt(raw: str) -> List[Cue]:
    """
    将 SRT 文本解析为有序的 Cue 列表。

    容错策略：
      - 首行为纯数字时视为序号并跳过（序号本身不使用）；
      - 缺失或无法解析的时间轴不会中断解析，该条字幕的 start/end 记为 0；
      - 不含 "-->" 的行不当作时间轴行，保留为字幕文本。
    """
    if raw.startswith("\ufeff"):
        raw = raw[1:]

    blocks = [b.strip() for b in _BLOCK_SPLIT_RE.split(raw)]
    cues: List[Cue] = []
    for position, block in enumerate((b for b in blocks if b), start=1):
        lines = _LINE_SPLIT_RE.split(block)
        ptr = 0
        if lines[0].strip().isdigit():
            ptr = 1

        start = end = 0
        if ptr < len(lines) and TIMING_SEPARATOR in lines[ptr]:
            start, end = _parse_timing_line(lines[ptr])
            ptr += 1
        else:
            logger.debug("Block %d has no timing line, using 0 --> 0", position)

        cues.append(
            Cue(
                index=position,
                start=start,
                end=end,
                text="\n".join(lines[ptr:]),
            )
        )
    return cues


def serialize_srt(cues: Iterable[Cue]) -> str:
    """
    将 Cue 列表序列化为 SRT 文本。

    序号总是从 1 开始重新编号（忽略 Cue.index），块之间空一行，
    末尾保留一个空行。
    """
    blocks: list[str] = []
    for idx, cue in enumerate(cues, start=1):
        timing = f"{_format_timestamp(cue.start)} {TIMING_SEPARATOR} {_format_timestamp(cue.end)}"
        blocks.append(f"{idx}\n{timing}\n{cue.text}")
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n\n"


def decode_display_text(cue: Cue) -> str:
    """
    还原字符实体（如 &amp; -> &），内联标签（如 <font color="...">）原样保留。

    这是实际发送给后端的文本。
    """
    return html.unescape(cue.text)


def extract_texts(cues: Iterable[Cue]) -> List[str]:
    return [decode_display_text(cue) for cue in cues]


def rebuild_cues(cues: Sequence[Cue], translations: Sequence[str]) -> List[Cue]:
    """用译文替换每条字幕的 text，其余字段保持不变。"""
    if len(cues) != len(translations):
        raise LengthMismatch(
            f"Translations length ({len(translations)}) must match cues length ({len(cues)})",
            details={"cues": len(cues), "translations": len(translations)},
        )
    return [replace(cue, text=text) for cue, text in zip(cues, translations)]


def decode_srt_bytes(raw: bytes, name: str = "<bytes>") -> str:
    """
    解码字幕文件内容。

    优先按 UTF-8（可带 BOM）解码；失败时退回 latin-1，该编码对任意字节都能解码，
    常见的 Latin-1 / Windows 字幕文件因此不会中断整个任务。
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("%s is not valid UTF-8, decoding as latin-1", name)
        return raw.decode("latin-1")


def read_srt(path: str | Path) -> List[Cue]:
    in_path = Path(path).expanduser()
    return parse_srt(decode_srt_bytes(in_path.read_bytes(), in_path.name))


def write_srt(cues: Iterable[Cue], path: str | Path) -> Path:
    out_path = Path(path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(serialize_srt(cues), encoding="utf-8")
    return out_path
