"""
文件级入口：逐个处理 .srt 文件或 zip 压缩包，调用编排器并写出结果。

zip 输出结构：
  - 非 .srt 条目原样复制；
  - originals/<原文件名>     原始字幕
  - translated/<目录>/<新文件名>  译文字幕（保留条目原有目录）
"""

from __future__ import annotations

import os
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Optional

from .config import TranslateConfig
from .log import get_logger
from .subtitles import (
    Cue,
    decode_srt_bytes,
    parse_srt,
    read_srt,
    rebuild_cues,
    serialize_srt,
    write_srt,
)
from .translate import SubtitleTranslator, TranslationBackend

logger = get_logger(__name__)

ORIGINALS_FOLDER = "originals/"
TRANSLATED_FOLDER = "translated/"


@dataclass
class FileReport:
    """
    单个输出字幕的处理结果。

    empty 统计原文非空但译文为空的条数（即重试用尽后的占位），
    由调用方决定如何展示部分失败。
    """

    source: str
    output: Path
    cues: int
    empty: int

    @property
    def partial(self) -> bool:
        return self.empty > 0


def output_filename(name: str, target_lang: str, is_zip: bool) -> str:
    """
    生成输出文件名：

      - movie.en.srt  -> movie.es.srt
      - movie.srt     -> movie.es.srt
      - pack.en.zip   -> pack.es.translated.zip
      - pack.zip      -> pack.es.translated.zip
    """
    ext = ".zip" if is_zip else ".srt"
    suffix = ".translated.zip" if is_zip else ".srt"
    lang_re = re.compile(rf"\.([a-z]{{2,3}}(?:-[a-z0-9]+)?){re.escape(ext)}$", re.IGNORECASE)
    if lang_re.search(name):
        return lang_re.sub(f".{target_lang}{suffix}", name)
    ext_re = re.compile(rf"{re.escape(ext)}$", re.IGNORECASE)
    if ext_re.search(name):
        return ext_re.sub(f".{target_lang}{suffix}", name)
    return f"{name}.{target_lang}{suffix}"


def is_zip_file(path: Path) -> bool:
    with path.open("rb") as f:
        return f.read(2) == b"PK"


def _count_empty(sources: Iterable[str], translations: Iterable[str]) -> int:
    return sum(1 for src, dst in zip(sources, translations) if src.strip() and not dst.strip())


class TranslationRunner:
    """
    按文件驱动翻译任务。

    每个字幕文件使用同一份配置，只是把文件名作为 context_hint 传给编排器。
    """

    def __init__(
        self,
        config: TranslateConfig,
        output_dir: str | Path | None = None,
        backend: TranslationBackend | None = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.config = config.validate()
        self.output_dir = (
            Path(output_dir).expanduser().resolve()
            if output_dir is not None
            else Path.cwd() / "translated"
        )
        self.backend = backend
        self.sleep = sleep

    def _translator_for(self, name: str) -> SubtitleTranslator:
        config = self.config.with_context(name)
        if self.sleep is None:
            return SubtitleTranslator(config, backend=self.backend)
        return SubtitleTranslator(config, backend=self.backend, sleep=self.sleep)

    def translate_parsed(self, cues: List[Cue], name: str) -> tuple[List[Cue], int]:
        """翻译已解析的字幕，返回 (译文字幕, 空译文条数)。"""
        logger.debug("Parsed %d cue(s) from %s", len(cues), name)
        translations = self._translator_for(name).translate_cues(cues)
        empty = _count_empty((cue.text for cue in cues), translations)
        if empty:
            logger.warning("%s: %d of %d cue(s) could not be translated", name, empty, len(cues))
        return rebuild_cues(cues, translations), empty

    def translate_srt_text(self, srt_text: str, name: str) -> tuple[str, int, int]:
        """翻译一份 SRT 文本，返回 (译文 SRT, 条目数, 空译文条数)。"""
        translated, empty = self.translate_parsed(parse_srt(srt_text), name)
        return serialize_srt(translated), len(translated), empty

    def run_file(self, path: Path) -> FileReport:
        logger.info("Translating %s", path)
        translated, empty = self.translate_parsed(read_srt(path), path.name)
        out_path = write_srt(
            translated,
            self.output_dir / output_filename(path.name, self.config.target_language, False),
        )
        logger.info("Finished file: %s", out_path)
        return FileReport(source=str(path), output=out_path, cues=len(translated), empty=empty)

    def run_zip(self, path: Path) -> List[FileReport]:
        out_path = self.output_dir / output_filename(path.name, self.config.target_language, True)
        # 先写入临时文件，全部条目成功后再替换，失败时不留下半成品压缩包
        part_path = out_path.with_name(out_path.name + ".part")
        reports: List[FileReport] = []
        try:
            with zipfile.ZipFile(path) as zin, zipfile.ZipFile(part_path, "w", zipfile.ZIP_DEFLATED) as zout:
                entries = [info for info in zin.infolist() if not info.is_dir()]
                srt_entries = [info for info in entries if info.filename.lower().endswith(".srt")]
                other_entries = [info for info in entries if not info.filename.lower().endswith(".srt")]
                logger.debug(
                    "Found %d SRT file(s) and %d other file(s) in %s",
                    len(srt_entries),
                    len(other_entries),
                    path.name,
                )

                for info in other_entries:
                    zout.writestr(info.filename, zin.read(info))

                for info in srt_entries:
                    entry = PurePosixPath(info.filename)
                    logger.info("Translating zip entry: %s", info.filename)
                    raw = zin.read(info)
                    srt_text = decode_srt_bytes(raw, info.filename)
                    translated_text, cue_count, empty = self.translate_srt_text(srt_text, entry.name)
                    # 保留条目所在目录，避免不同目录下的同名字幕互相覆盖
                    translated_name = str(
                        entry.with_name(output_filename(entry.name, self.config.target_language, False))
                    )
                    zout.writestr(ORIGINALS_FOLDER + info.filename, raw)
                    zout.writestr(TRANSLATED_FOLDER + translated_name, translated_text.encode("utf-8"))
                    reports.append(
                        FileReport(
                            source=f"{path}!{info.filename}",
                            output=out_path,
                            cues=cue_count,
                            empty=empty,
                        )
                    )
            os.replace(part_path, out_path)
        finally:
            if part_path.exists():
                part_path.unlink()
        logger.info("Finished processing zip: %s", out_path)
        return reports

    def run(self, files: Iterable[str | Path]) -> List[FileReport]:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        reports: List[FileReport] = []
        for file in files:
            path = Path(file).expanduser().resolve()
            if not path.is_file():
                raise FileNotFoundError(f"Input file not found: {path}")
            if is_zip_file(path):
                reports.extend(self.run_zip(path))
            else:
                reports.append(self.run_file(path))
        return reports


def run_translate(
    files: Iterable[str | Path],
    config: TranslateConfig,
    output_dir: str | Path | None = None,
    backend: TranslationBackend | None = None,
) -> List[FileReport]:
    return TranslationRunner(config, output_dir=output_dir, backend=backend).run(files)
