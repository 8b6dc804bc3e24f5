from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Callable

from paperswift.request_context import current_view


logger = logging.getLogger('paperswift.metrics')

QUERY_EVENTS = ('query_hit', 'query_miss', 'query_dedup', 'query_invalidate', 'query_error')
WINDOW_SECONDS = 60


class MetricsExporter:
    def export_query_window(self, *, started_at: datetime, counts: dict[str, int]) -> None:
        raise NotImplementedError


class LogMetricsExporter(MetricsExporter):
    def export_query_window(self, *, started_at: datetime, counts: dict[str, int]) -> None:
        fields = ' '.join(f'{event}={counts.get(event, 0)}' for event in QUERY_EVENTS)
        logger.info('query_metrics minute=%s %s', started_at.isoformat(), fields)


_exporter: MetricsExporter = LogMetricsExporter()


def set_metrics_exporter(exporter: MetricsExporter) -> None:
    global _exporter
    _exporter = exporter


class QueryEventWindow:
    """Counts query cache events per wall-clock minute and hands each finished minute to the exporter."""

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._window: int | None = None
        self._counts: Counter[str] = Counter()

    @property
    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def record(self, event: str) -> None:
        if event not in QUERY_EVENTS:
            raise ValueError(f'unknown query event {event!r}')
        now = self._clock() if self._clock is not None else time.time()
        window = int(now) // WINDOW_SECONDS
        with self._lock:
            if self._window is not None and window != self._window:
                self._export_locked()
            self._window = window
            self._counts[event] += 1

    def close(self) -> None:
        """Export the current, possibly partial, minute."""
        with self._lock:
            self._export_locked()

    def _export_locked(self) -> None:
        if self._window is None or not self._counts:
            return
        started_at = datetime.fromtimestamp(self._window * WINDOW_SECONDS, tz=timezone.utc)
        counts, self._counts = dict(self._counts), Counter()
        try:
            _exporter.export_query_window(started_at=started_at, counts=counts)
        except Exception:
            logger.exception('metrics_export_failed minute=%s', started_at.isoformat())


query_events = QueryEventWindow()


def record_query_event(event: str) -> None:
    query_events.record(event)


def flush_query_metrics() -> None:
    query_events.close()


def record_backend_timing(method: str, path: str, status: int | str, duration_ms: float, slow_ms: float) -> None:
    if duration_ms >= slow_ms:
        logger.info(
            'backend_request_slow view=%s method=%s path=%s status=%s duration_ms=%.2f',
            current_view.get(),
            method,
            path,
            status,
            duration_ms,
        )
