from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Cue:
    """
    单条字幕项，对应 SRT 中的一个时间轴块。

    index 按解析顺序从 1 开始编号，与源文件中的序号无关；
    start/end 为毫秒。
    """

    index: int
    start: int
    end: int
    text: str
