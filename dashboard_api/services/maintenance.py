"""Background maintenance: periodic limiter eviction and refresh-token sweeps."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from dashboard_api.config import settings
from dashboard_api.core.database import SessionLocal
from dashboard_api.services.rate_limiter import IPRateLimiter
from dashboard_api.services.token_service import RefreshTokenLedger

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Daemon thread that runs a callable every interval until stopped."""

    def __init__(self, name: str, interval_seconds: float, func: Callable[[], int]) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._func = func
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._heartbeat: float = 0.0
        self._run_count: int = 0
        self._last_result: Optional[int] = None
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Maintenance task {self.name} started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        logger.info(f"Maintenance task {self.name} stopped")

    def status(self) -> dict:
        return {
            "name": self.name,
            "running": self.is_running(),
            "last_heartbeat": self._heartbeat,
            "run_count": self._run_count,
            "last_result": self._last_result,
        }

    def run_once(self) -> Optional[int]:
        try:
            result = self._func()
        except Exception as exc:
            # The loop must survive a failed pass; the next tick retries.
            logger.exception(f"Maintenance task {self.name} failed: {exc}")
            result = None
        with self._lock:
            self._run_count += 1
            self._last_result = result
        self._heartbeat = time.time()
        return result

    def _run_loop(self) -> None:
        while not self._stop_event.wait(max(0.1, self.interval_seconds)):
            self.run_once()


def sweep_refresh_tokens() -> int:
    db = SessionLocal()
    try:
        return RefreshTokenLedger.sweep(db)
    finally:
        db.close()


def build_maintenance_tasks(rate_limiter: Optional[IPRateLimiter] = None) -> List[PeriodicTask]:
    """Tasks for the embedded worker (with limiter) or the standalone worker (without)."""
    tasks = [
        PeriodicTask(
            "refresh-token-sweep",
            settings.REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS,
            sweep_refresh_tokens,
        )
    ]
    if rate_limiter is not None:
        tasks.append(
            PeriodicTask(
                "rate-limiter-sweep",
                settings.RATE_LIMIT_CLEANUP_INTERVAL_SECONDS,
                lambda: rate_limiter.sweep(settings.RATE_LIMIT_INACTIVE_SECONDS),
            )
        )
    return tasks
