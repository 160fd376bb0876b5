from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from book_signals.config import ImbalanceConfig
from book_signals.core.backend import BackendLifecycle, BackendMode
from book_signals.errors import BackendNotInitializedError
from book_signals.world.schemas import Snapshot, require_finite

logger = logging.getLogger(__name__)

NO_LIQUIDITY_ENTROPY = 1.0


class PressureSignal(str, Enum):
    BUY_PRESSURE = "BUY_PRESSURE"
    SELL_PRESSURE = "SELL_PRESSURE"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class ImbalanceResult:
    timestamp: int
    obi: float
    entropy: float
    signal: PressureSignal


@dataclass(frozen=True)
class ImbalanceBatch:
    results: tuple[ImbalanceResult, ...]
    mode: BackendMode
    fell_back: bool = False
    message: str = ""

    @property
    def initialized(self) -> bool:
        return self.mode is not BackendMode.UNINITIALIZED


def order_book_imbalance(snapshot: Snapshot) -> float:
    total = snapshot.total_volume
    if total == 0.0:
        return 0.0
    return (snapshot.bid_volume - snapshot.ask_volume) / total


def spread_entropy(snapshot: Snapshot) -> float:
    """Spread relative to mid price; 1.0 when both prices are zero."""
    avg_price = snapshot.avg_price
    if avg_price == 0.0:
        return NO_LIQUIDITY_ENTROPY
    return snapshot.spread / avg_price


def classify_imbalance(obi: float, threshold: float = 0.3) -> PressureSignal:
    # Strict inequalities: +-threshold itself is NEUTRAL.
    value = require_finite("obi", obi)
    if value > threshold:
        return PressureSignal.BUY_PRESSURE
    if value < -threshold:
        return PressureSignal.SELL_PRESSURE
    return PressureSignal.NEUTRAL


def compute_imbalance(snapshot: Snapshot, threshold: float = 0.3) -> ImbalanceResult:
    obi = order_book_imbalance(snapshot)
    return ImbalanceResult(
        timestamp=snapshot.timestamp,
        obi=obi,
        entropy=spread_entropy(snapshot),
        signal=classify_imbalance(obi, threshold),
    )


@dataclass
class ImbalanceClassifier:
    backend: BackendLifecycle
    config: ImbalanceConfig = field(default_factory=ImbalanceConfig)

    def classify(self, obi: float) -> PressureSignal:
        return classify_imbalance(obi, self.config.pressure_threshold)

    def compute(self, snapshot: Snapshot) -> ImbalanceResult:
        return compute_imbalance(snapshot, self.config.pressure_threshold)

    def compute_batch(self, snapshots: Sequence[Snapshot]) -> ImbalanceBatch:
        try:
            run = self.backend.run_batch(self.compute, snapshots)
        except BackendNotInitializedError as exc:
            logger.warning("Imbalance batch of %d skipped: %s", len(snapshots), exc)
            return ImbalanceBatch(results=(), mode=BackendMode.UNINITIALIZED, message=str(exc))

        return ImbalanceBatch(
            results=tuple(run.values),
            mode=run.mode,
            fell_back=run.fell_back,
            message=self.backend.status().message,
        )
