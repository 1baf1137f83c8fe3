from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from srtai.errors import ConfigError
from srtai.log import get_logger

from .batching import Batch

logger = get_logger(__name__)

BatchWorker = Callable[[Batch], List[str]]
BatchDoneCallback = Callable[[Batch, List[str]], None]


def run_all(
    batches: Sequence[Batch],
    worker: BatchWorker,
    concurrency: int,
    on_batch_done: Optional[BatchDoneCallback] = None,
) -> List[List[str]]:
    """
    以受限并发执行所有 batch，按 batch.index 而不是完成顺序组装结果。

    - 所有 batch 预先放入同一个队列，启动 min(concurrency, len(batches)) 个工作线程；
    - 每个线程通过 get_nowait() 领取下一个 batch（队列保证同一 batch 只会被领取一次），
      直到队列为空；
    - 结果写入预先分配、按 batch.index 寻址的槽位，因此最终顺序与输入一致。
    工作函数抛出的异常会在所有线程结束后向上传播。
    """
    if concurrency <= 0:
        raise ConfigError(
            f"concurrency must be a positive integer, got {concurrency!r}",
            code="concurrency",
        )
    if not batches:
        return []

    pending: "queue.Queue[Batch]" = queue.Queue()
    for batch in batches:
        pending.put(batch)

    slots: List[Optional[List[str]]] = [None] * len(batches)
    callback_lock = threading.Lock()

    def drain() -> None:
        while True:
            try:
                batch = pending.get_nowait()
            except queue.Empty:
                return
            result = worker(batch)
            slots[batch.index] = result
            if on_batch_done is not None:
                with callback_lock:
                    on_batch_done(batch, result)

    worker_count = min(concurrency, len(batches))
    logger.debug("Dispatching %d batch(es) over %d worker(s)", len(batches), worker_count)

    if worker_count <= 1:
        drain()
    else:
        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="srtai-batch") as executor:
            futures = [executor.submit(drain) for _ in range(worker_count)]
        for future in futures:
            # 重新抛出工作线程中的异常
            future.result()

    missing = [i for i, slot in enumerate(slots) if slot is None]
    if missing:
        raise RuntimeError(f"Batches without results: {missing}")
    return [slot for slot in slots if slot is not None]
