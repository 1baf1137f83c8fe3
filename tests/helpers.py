import json
import threading
from typing import List


def payload_texts(payload: str) -> List[str]:
    return json.loads(payload)["texts"]


def translations_response(texts) -> str:
    return json.dumps({"translations": list(texts)}, ensure_ascii=False)


class ConcurrencyGauge:
    """统计同时进行中的调用数量的最大值。"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def __enter__(self) -> "ConcurrencyGauge":
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        return self

    def __exit__(self, *exc) -> None:
        with self._lock:
            self.active -= 1
