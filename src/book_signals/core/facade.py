"""Host-facing entry point composing backend, classifiers and heuristics."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from book_signals.config import SignalConfig
from book_signals.core.backend import BackendLifecycle, BackendMode, BackendStatus
from book_signals.core.competitor import (
    BookAggregate,
    CompetitorVerdict,
    evaluate_book,
    evaluate_competitor,
)
from book_signals.features.curvature import CurvatureAnalyzer
from book_signals.features.imbalance import ImbalanceClassifier, ImbalanceResult, PressureSignal
from book_signals.observability.metrics import BatchLatency, elapsed_since
from book_signals.world.schemas import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImbalanceBatchReport:
    results: tuple[ImbalanceResult, ...]
    latency: BatchLatency
    mode: BackendMode
    fell_back: bool
    message: str

    @property
    def latency_ms(self) -> float:
        return self.latency.latency_ms

    @property
    def initialized(self) -> bool:
        return self.mode is not BackendMode.UNINITIALIZED


class SignalFusionFacade:
    """Holds only the backend handle and config; no snapshot history."""

    def __init__(
        self,
        config: SignalConfig | None = None,
        backend: BackendLifecycle | None = None,
        probe: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or SignalConfig()
        self.backend = backend or BackendLifecycle(self.config.backend, probe=probe)
        self._imbalance = ImbalanceClassifier(self.backend, self.config.imbalance)
        self._curvature = CurvatureAnalyzer(self.backend, self.config.curvature)

    def init_backend(self) -> BackendStatus:
        return self.backend.initialize()

    def backend_status(self) -> BackendMode:
        return self.backend.mode

    def compute_imbalance_batch(self, snapshots: Sequence[Snapshot]) -> ImbalanceBatchReport:
        start = time.perf_counter()
        batch = self._imbalance.compute_batch(snapshots)
        latency = elapsed_since(start, len(snapshots))
        logger.debug(
            "Imbalance batch: %d snapshots in %.3f ms (%s)",
            len(snapshots),
            latency.latency_ms,
            batch.mode.value,
        )
        return ImbalanceBatchReport(
            results=batch.results,
            latency=latency,
            mode=batch.mode,
            fell_back=batch.fell_back,
            message=batch.message,
        )

    def classify_imbalance(self, obi: float) -> PressureSignal:
        return self._imbalance.classify(obi)

    def compute_curvature(self, snapshots: Sequence[Snapshot]) -> list[float]:
        return self._curvature.compute(snapshots)

    def manifold_curvature(self, snapshots: Sequence[Snapshot]) -> float:
        return self._curvature.manifold_curvature(snapshots)

    def detect_hole(self, snapshots: Sequence[Snapshot]) -> bool:
        return self._curvature.detect_hole(snapshots)

    def evaluate_competitor(
        self, bid_volume: float, ask_volume: float, spread_percent: float
    ) -> CompetitorVerdict:
        return evaluate_competitor(bid_volume, ask_volume, spread_percent, self.config.competitor)

    def evaluate_book(self, snapshots: Sequence[Snapshot]) -> CompetitorVerdict:
        return evaluate_book(BookAggregate.from_snapshots(snapshots), self.config.competitor)
