from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from srtai.errors import ConfigError


@dataclass(frozen=True)
class Batch:
    """
    一组连续的字幕文本。

    index 为该 batch 在原始序列中的位置（从 0 开始）；
    按 index 顺序拼接所有 batch 的 texts 即可还原原始文本序列。
    """

    index: int
    texts: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.texts)


def plan_batches(texts: Sequence[str], batch_size: int) -> List[Batch]:
    """按固定大小切分文本列表，保持原有顺序，batch 数量为 ceil(len/batch_size)。"""
    if batch_size <= 0:
        raise ConfigError(
            f"batch_size must be a positive integer, got {batch_size!r}",
            code="batch_size",
        )
    return [
        Batch(index=k, texts=tuple(texts[start:start + batch_size]))
        for k, start in enumerate(range(0, len(texts), batch_size))
    ]
