# esbatch/core/metrics.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)

REQUESTS_COUNT = "requests.count"
RECORDS = "records"
REQUESTS_DURATION = "requests.duration"

COUNTER = "counter"
TIMER = "timer"


class MetricsChannel(Protocol):
    def counter(self, name: str, value: int) -> None: ...

    def timer(self, name: str, value: int) -> None: ...


@dataclass(frozen=True)
class Metric:
    name: str
    type: str
    value: int


class InMemoryMetrics:
    """Keeps every emitted metric; what callers and tests read after a run."""

    def __init__(self) -> None:
        self.metrics: List[Metric] = []

    def counter(self, name: str, value: int) -> None:
        self.metrics.append(Metric(name, COUNTER, value))

    def timer(self, name: str, value: int) -> None:
        self.metrics.append(Metric(name, TIMER, value))

    def get(self, name: str) -> Optional[Metric]:
        """Latest metric emitted under `name`."""
        return next((m for m in reversed(self.metrics) if m.name == name), None)

    def value(self, name: str) -> Optional[int]:
        metric = self.get(name)
        return metric.value if metric else None


class LoggingMetrics(InMemoryMetrics):
    """In-memory channel that also logs each metric on the `esbatch.metrics` logger."""

    _log = logging.getLogger("esbatch.metrics")

    def counter(self, name: str, value: int) -> None:
        super().counter(name, value)
        self._log.info("%s %s=%d", COUNTER, name, value)

    def timer(self, name: str, value: int) -> None:
        super().timer(name, value)
        self._log.info("%s %s=%dns", TIMER, name, value)


@dataclass(frozen=True)
class RunMetrics:
    request_count: int = 0
    record_count: int = 0
    duration: int = 0  # server units, published as nanoseconds


class MetricsAccumulator:
    """
    Counters for one run. Owned by the run, never shared across threads,
    published exactly once when the run reaches its terminal state.
    """

    def __init__(self) -> None:
        self.request_count = 0
        self.record_count = 0
        self.duration = 0
        self._published = False

    def add_request(self, took: int) -> None:
        self.request_count += 1
        self.duration += took

    def add_records(self, count: int) -> None:
        self.record_count += count

    def snapshot(self) -> RunMetrics:
        return RunMetrics(self.request_count, self.record_count, self.duration)

    def publish(self, channel: MetricsChannel) -> RunMetrics:
        if self._published:
            raise RuntimeError("Run metrics were already published")
        self._published = True

        channel.counter(REQUESTS_COUNT, self.request_count)
        channel.counter(RECORDS, self.record_count)
        channel.timer(REQUESTS_DURATION, self.duration)
        return self.snapshot()


__all__ = [
    "MetricsChannel",
    "Metric",
    "InMemoryMetrics",
    "LoggingMetrics",
    "RunMetrics",
    "MetricsAccumulator",
    "REQUESTS_COUNT",
    "RECORDS",
    "REQUESTS_DURATION",
]
