from __future__ import annotations

import time
from typing import Callable, List

from srtai.config import DEFAULT_BASE_DELAY, DEFAULT_RETRIES
from srtai.errors import ConfigError
from srtai.log import get_logger

logger = get_logger(__name__)


def backoff_delays(retries: int, base_delay: float = DEFAULT_BASE_DELAY) -> List[float]:
    """
    返回各次重试前的等待时长（秒）。

    第 k 次失败后等待 base_delay * 2**(k-1)：0.5, 1, 2, 4 ...
    """
    return [base_delay * (2 ** (k - 1)) for k in range(1, retries + 1)]


class RetryPolicy:
    """
    单个 batch 的有限重试策略。

    最多尝试 retries + 1 次，失败之间按指数退避等待。任何异常（后端失败、
    响应解析失败、错误信封）都算一次失败；全部用尽后不抛异常，而是返回
    等长的空字符串占位结果，让整个任务继续执行。
    """

    def __init__(
        self,
        retries: int = DEFAULT_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if retries < 0:
            raise ConfigError(f"retries must not be negative, got {retries!r}", code="retries")
        if base_delay < 0:
            raise ConfigError(f"base_delay must not be negative, got {base_delay!r}", code="base_delay")
        self.retries = retries
        self.base_delay = base_delay
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def run(self, call: Callable[[], List[str]], size: int, label: str = "batch") -> List[str]:
        delays = backoff_delays(self.retries, self.base_delay)
        attempt = 0
        while attempt < self.max_attempts:
            attempt += 1
            try:
                return call()
            except Exception as exc:
                if attempt >= self.max_attempts:
                    logger.error(
                        "%s failed after %d attempt(s), using %d empty placeholder(s): %s",
                        label,
                        attempt,
                        size,
                        exc,
                    )
                    break
                delay = delays[attempt - 1]
                logger.warning(
                    "%s attempt %d/%d failed: %s; retrying in %.1fs",
                    label,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
        return ["" for _ in range(size)]
