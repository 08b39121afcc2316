"""Timing helpers for per-stage latency reporting."""
from __future__ import annotations

import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Deque, Dict, Generator


@dataclass
class MovingAverage:
    """Compute a moving average for the last ``window`` measurements."""

    window: int = 50

    def __post_init__(self) -> None:
        self._values: Deque[float] = deque(maxlen=self.window)
        self._lock = threading.Lock()

    def update(self, value: float) -> float:
        with self._lock:
            self._values.append(value)
            return self._mean()

    def _mean(self) -> float:
        if not self._values:
            return 0.0
        return sum(self._values) / len(self._values)

    @property
    def value(self) -> float:
        with self._lock:
            return self._mean()


@dataclass
class StageTimer:
    """Moving averages of elapsed seconds keyed by pipeline stage."""

    window: int = 50
    meters: Dict[str, MovingAverage] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def meter(self, stage: str) -> MovingAverage:
        with self._lock:
            if stage not in self.meters:
                self.meters[stage] = MovingAverage(window=self.window)
            return self.meters[stage]

    @contextmanager
    def time(self, stage: str) -> Generator[None, None, None]:
        with time_block(self.meter(stage)):
            yield

    def summary(self) -> Dict[str, float]:
        with self._lock:
            meters = dict(self.meters)
        return {stage: meter.value for stage, meter in meters.items()}


@contextmanager
def time_block(meter: MovingAverage | None = None) -> Generator[None, None, None]:
    """Context manager that measures the elapsed time for a code block."""

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if meter is not None:
            meter.update(elapsed)


__all__ = ["MovingAverage", "StageTimer", "time_block"]
