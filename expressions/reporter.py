"""
Throttled outbound reporting of expression counters.

Counter snapshots are queued only when they change; a background worker posts
them as JSON with at least REPORT_MIN_INTERVAL seconds between requests so a
burst of gestures does not flood the remote resource.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

import requests

from expressions.config import Settings
from expressions.models import CounterReport, DetectorOutput

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CounterReporter:
    """Queue counter changes and POST them to ``url`` at a bounded rate."""
    def __init__(self,
                 url: str,
                 min_interval: float = 0.8,
                 timeout: float = 5.0,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.url = url or ""
        self.min_interval = max(0.0, float(min_interval))
        self.timeout = float(timeout)
        self._session = session or requests.Session()
        self._clock = clock
        self._queue: "queue.Queue[CounterReport]" = queue.Queue()
        self._last_sent: Tuple[int, int, int] = (0, 0, 0)
        self._last_post_at: Optional[float] = None
        self._stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CounterReporter":
        return cls(settings.REPORT_URL, settings.REPORT_MIN_INTERVAL, settings.REPORT_TIMEOUT)

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # ---- producers ----
    def observe(self, output: DetectorOutput) -> bool:
        """Queue a report if any counter differs from the last queued one."""
        if not self.enabled:
            return False
        current = output.counters()
        if current == self._last_sent:
            return False
        self._last_sent = current
        blinks, mouth_opens, brow_raises = current
        self._queue.put(CounterReport(
            blinks=blinks, mouth_opens=mouth_opens, brow_raises=brow_raises, timestamp=_now_iso()
        ))
        return True

    def report_reset(self) -> None:
        """Queue an all-zero report (counters were reset by the user)."""
        if not self.enabled:
            return
        self._last_sent = (0, 0, 0)
        self._queue.put(CounterReport(timestamp=_now_iso()))

    # ---- delivery ----
    def _wait_for_slot(self) -> None:
        if self._last_post_at is None:
            return
        delay = self.min_interval - (self._clock() - self._last_post_at)
        if delay > 0:
            self._stop.wait(delay)

    def _post(self, report: CounterReport) -> bool:
        payload = report.model_dump(by_alias=True)
        try:
            res = self._session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException:
            logger.exception(f"[reporter] POST failed url={self.url}")
            return False
        finally:
            self._last_post_at = self._clock()
        if not res.ok:
            logger.warning(f"[reporter] POST not ok status={res.status_code}")
            return False
        logger.debug(f"[reporter] posted {payload}")
        return True

    def drain(self) -> int:
        """Post everything queued now, respecting the throttle. Returns reports delivered."""
        delivered = 0
        while True:
            try:
                report = self._queue.get_nowait()
            except queue.Empty:
                return delivered
            self._wait_for_slot()
            if self._post(report):
                delivered += 1
            self._queue.task_done()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                report = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self._wait_for_slot()
            self._post(report)
            self._queue.task_done()

    # ---- lifecycle ----
    def start(self) -> None:
        if not self.enabled or (self._worker is not None and self._worker.is_alive()):
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, name="counter-reporter", daemon=True)
        self._worker.start()

    def close(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._worker is not None:
            self._worker.join(timeout=timeout)
            self._worker = None
