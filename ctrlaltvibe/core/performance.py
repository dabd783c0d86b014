import logging
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from ctrlaltvibe.core.config import settings

logger = logging.getLogger(__name__)

MAX_METRICS = 1000


@dataclass
class PerformanceMetric:
    name: str
    duration_ms: float
    timestamp: datetime
    tags: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp.isoformat(),
            "tags": self.tags,
        }


class PerformanceMonitor:
    """Keeps a bounded history of timed operations and warns about slow ones."""

    def __init__(self, slow_threshold_ms: Optional[float] = None, max_metrics: int = MAX_METRICS):
        self.slow_threshold_ms = slow_threshold_ms if slow_threshold_ms is not None else settings.SLOW_OPERATION_THRESHOLD_MS
        self._metrics: Deque[PerformanceMetric] = deque(maxlen=max_metrics)

    @contextmanager
    def track(self, name: str, **tags):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - start) * 1000, **tags)

    def record(self, name: str, duration_ms: float, **tags) -> PerformanceMetric:
        metric = PerformanceMetric(name=name, duration_ms=duration_ms, timestamp=datetime.now(timezone.utc), tags=tags)
        self._metrics.append(metric)
        if duration_ms > self.slow_threshold_ms:
            tags_str = f" [{', '.join(f'{k}={v}' for k, v in tags.items())}]" if tags else ""
            logger.warning(f"Slow operation detected: {name}{tags_str} took {duration_ms:.2f}ms")
        return metric

    def recent(self, limit: int = 100) -> List[PerformanceMetric]:
        return list(self._metrics)[-limit:]

    def slow(self, min_duration_ms: Optional[float] = None) -> List[PerformanceMetric]:
        threshold = self.slow_threshold_ms if min_duration_ms is None else min_duration_ms
        return [m for m in self._metrics if m.duration_ms >= threshold]

    def summary(self) -> Dict[str, Dict[str, float]]:
        stats: Dict[str, Dict[str, float]] = {}
        for metric in self._metrics:
            entry = stats.setdefault(metric.name, {"count": 0, "total_ms": 0.0, "avg_ms": 0.0, "max_ms": 0.0})
            entry["count"] += 1
            entry["total_ms"] += metric.duration_ms
            entry["avg_ms"] = entry["total_ms"] / entry["count"]
            entry["max_ms"] = max(entry["max_ms"], metric.duration_ms)
        return stats
