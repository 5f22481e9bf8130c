import threading
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

from dupbench.domain.data_enum import Strategy


def _now_ms() -> int:
    return int(time.time() * 1000)


class WorkerStatusStore:
    """프로세스 전역 워커 가용성 상태 (서비스 계층에서만 갱신)"""

    def __init__(self, algorithms: Iterable[str] = tuple(s.value for s in Strategy)):
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._status = {
            name: {"available": True, "lastCheck": _now_ms(), "lastError": None}
            for name in algorithms
        }

    def mark_available(self, algorithm: str):
        with self._lock:
            self._status[algorithm] = {"available": True, "lastCheck": _now_ms(), "lastError": None}

    def mark_unavailable(self, algorithm: str, error: Optional[str] = None):
        with self._lock:
            self._status[algorithm] = {"available": False, "lastCheck": _now_ms(), "lastError": error}

    def snapshot(self) -> dict:
        with self._lock:
            return {name: dict(state) for name, state in self._status.items()}

    def uptime(self) -> float:
        return time.monotonic() - self._started


status_store = WorkerStatusStore()


def get_health(store: WorkerStatusStore = None) -> dict:
    """헬스체크 응답 (status, timestamp, workers, uptime)"""
    store = store or status_store
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "workers": store.snapshot(),
        "uptime": round(store.uptime(), 3),
    }
