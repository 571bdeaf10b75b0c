from __future__ import annotations
import time
from collections import deque
from contextlib import contextmanager

from .logging import get_logger

_profiler = None


def get_profiler():
    global _profiler
    if _profiler is None:
        _profiler = Profiler()
    return _profiler


class Profiler:
    """Per-section frame timings, smoothed with an exponential moving average."""

    def __init__(self, ema_alpha=0.1, maxlen=120):
        self._samples = {}
        self._ema = {}
        self.ema_alpha = ema_alpha
        self.maxlen = maxlen
        self.logger = get_logger(__name__)

    @contextmanager
    def record(self, name: str):
        start_t = time.perf_counter()
        try:
            yield
        finally:
            dt = time.perf_counter() - start_t
            self._samples.setdefault(name, deque(maxlen=self.maxlen)).append(dt)
            prev = self._ema.get(name)
            if prev is None:
                self._ema[name] = dt
            else:
                self._ema[name] = self.ema_alpha * dt + (1.0 - self.ema_alpha) * prev

    def get_timings(self):
        return self._ema.copy()

    def peak(self, name: str) -> float:
        """Slowest recent sample for a section, 0.0 if it was never recorded."""
        samples = self._samples.get(name)
        return max(samples) if samples else 0.0

    def log_stats(self):
        stats = [
            f"{k}: {v*1000:.2f}ms (peak {self.peak(k)*1000:.2f}ms)"
            for k, v in sorted(self._ema.items())
        ]
        self.logger.info(" | ".join(stats))
