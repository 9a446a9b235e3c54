"""In-process metrics collection"""

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional


@dataclass
class Metric:
    """Individual metric data point"""
    name: str
    value: float
    timestamp: datetime
    tags: Dict[str, str] = field(default_factory=dict)


class MetricsCollector:
    """Collects and stores application metrics"""

    def __init__(self, history_size: int = 1000):
        self.metrics: Dict[str, deque] = defaultdict(lambda: deque(maxlen=history_size))
        self.counters: Dict[str, int] = defaultdict(int)
        self.timers: Dict[str, deque] = defaultdict(lambda: deque(maxlen=100))
        self._lock = threading.Lock()

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter metric"""
        with self._lock:
            key = self._make_key(name, tags)
            self.counters[key] += value
            self.metrics[name].append(Metric(
                name=name,
                value=self.counters[key],
                timestamp=datetime.now(timezone.utc),
                tags=tags or {}
            ))

    def record_timer(self, name: str, duration: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a timing metric in seconds"""
        with self._lock:
            key = self._make_key(name, tags)
            self.timers[key].append(duration)
            self.metrics[name].append(Metric(
                name=name,
                value=duration,
                timestamp=datetime.now(timezone.utc),
                tags=tags or {}
            ))

    def get_counter(self, name: str, tags: Optional[Dict[str, str]] = None) -> int:
        with self._lock:
            return self.counters.get(self._make_key(name, tags), 0)

    def get_all_metrics(self) -> Dict[str, Any]:
        """Snapshot of counters and timer summaries"""
        with self._lock:
            timers = {}
            for key, values in self.timers.items():
                if not values:
                    continue
                timers[key] = {
                    "count": len(values),
                    "avg": sum(values) / len(values),
                    "max": max(values),
                }
            return {
                "counters": dict(self.counters),
                "timers": timers,
            }

    def _make_key(self, name: str, tags: Optional[Dict[str, str]]) -> str:
        """Create a unique key for metric storage"""
        if not tags:
            return name

        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"
