from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence

from srtai.config import TranslateConfig
from srtai.errors import LengthMismatch
from srtai.log import get_logger
from srtai.subtitles import Cue, extract_texts

from .backend import TranslationBackend
from .batching import Batch, plan_batches
from .dispatch import run_all
from .extract import extract_translations
from .factory import get_backend
from .prompt import build_instruction, build_request_payload
from .retry import RetryPolicy

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class SubtitleTranslator:
    """
    字幕翻译编排器。

    流程：提取显示文本 -> 按 batch_size 分批 -> 受限并发地调用后端
    （每个 batch 带重试）-> 解析并规整响应 -> 按 batch 顺序拼接。
    返回的译文列表与输入字幕一一对应；单个 batch 重试用尽时以空字符串占位。
    """

    def __init__(
        self,
        config: TranslateConfig,
        backend: TranslationBackend | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config.validate()
        # dry_run 下不会触达后端，无需构造默认实现
        if backend is None and not config.dry_run:
            backend = get_backend(config.backend)
        self.backend = backend
        self.retry_policy = RetryPolicy(
            retries=config.retries,
            base_delay=config.base_delay,
            sleep=sleep,
        )

    def _dry_run_batch(self, batch: Batch) -> List[str]:
        target = self.config.target_language
        return [f"[{target}] {text}" for text in batch.texts]

    def _process_batch(self, batch: Batch, instruction: str) -> List[str]:
        assert self.backend is not None
        payload = build_request_payload(instruction, batch.texts)
        backend = self.backend
        model_id = self.config.model_id or ""
        region = self.config.region

        def attempt() -> List[str]:
            raw = backend.invoke(model_id, region, payload)
            logger.debug("Batch %d raw response: %r", batch.index, raw)
            return extract_translations(raw, len(batch))

        return self.retry_policy.run(attempt, len(batch), label=f"Batch {batch.index}")

    def translate_texts(
        self,
        texts: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[str]:
        total = len(texts)
        batches = plan_batches(texts, self.config.batch_size)
        if not batches:
            return []

        done = 0

        def batch_done(batch: Batch, result: List[str]) -> None:
            nonlocal done
            done += len(batch)
            if on_progress is not None:
                on_progress(done, total)

        if self.config.dry_run:
            logger.info("Dry run: %d text(s) in %d batch(es), backend skipped", total, len(batches))
            results = []
            for batch in batches:
                result = self._dry_run_batch(batch)
                batch_done(batch, result)
                results.append(result)
        else:
            instruction = build_instruction(self.config.target_language, self.config.context_hint)
            logger.info(
                "Translating %d text(s) to %s in %d batch(es), concurrency %d",
                total,
                self.config.target_language,
                len(batches),
                self.config.concurrency,
            )
            results = run_all(
                batches,
                lambda batch: self._process_batch(batch, instruction),
                self.config.concurrency,
                on_batch_done=batch_done,
            )

        translations = [text for result in results for text in result]
        if len(translations) != total:
            raise LengthMismatch(
                f"Assembled {len(translations)} translation(s) for {total} input text(s)",
                details={"inputs": total, "translations": len(translations)},
            )
        return translations

    def translate_cues(
        self,
        cues: Sequence[Cue],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[str]:
        return self.translate_texts(extract_texts(cues), on_progress=on_progress)


def translate_cues(
    cues: Sequence[Cue],
    config: TranslateConfig,
    backend: TranslationBackend | None = None,
    on_progress: Optional[ProgressCallback] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[str]:
    """
    翻译一组字幕，返回与 cues 一一对应的译文列表。

    配置在开始前校验一次（ConfigError）；译文总数与输入不一致时抛出
    LengthMismatch。单个 batch 的失败不会中断任务。
    """
    translator = SubtitleTranslator(config, backend=backend, sleep=sleep)
    return translator.translate_cues(cues, on_progress=on_progress)
