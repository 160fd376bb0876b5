from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class BatchLatency:
    latency_ms: float
    batch_size: int

    @property
    def per_snapshot_us(self) -> float:
        if self.batch_size == 0:
            return 0.0
        return self.latency_ms * 1000.0 / self.batch_size


def elapsed_since(start: float, batch_size: int) -> BatchLatency:
    """``start`` is a ``time.perf_counter()`` reading."""
    return BatchLatency(latency_ms=(time.perf_counter() - start) * 1000.0, batch_size=batch_size)
