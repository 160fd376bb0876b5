from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from book_signals.config import CurvatureConfig
from book_signals.core.backend import BackendLifecycle
from book_signals.errors import BackendNotInitializedError
from book_signals.world.schemas import Snapshot

EMPTY_BOOK_CURVATURE = 1.0


def snapshot_curvature(snapshot: Snapshot) -> float:
    """Spread per unit of resting volume, clamped to [0, 1].

    Thin books with wide spreads score high; an empty book is maximally unstable.
    """
    total = snapshot.total_volume
    if total == 0.0:
        return EMPTY_BOOK_CURVATURE
    return min(snapshot.spread / total, 1.0)


def mean_curvature(curvatures: Sequence[float]) -> float:
    if not curvatures:
        return 0.0
    return sum(curvatures) / len(curvatures)


@dataclass
class CurvatureAnalyzer:
    backend: BackendLifecycle
    config: CurvatureConfig = field(default_factory=CurvatureConfig)

    def compute(self, snapshots: Sequence[Snapshot]) -> list[float]:
        try:
            return self.backend.run_batch(snapshot_curvature, snapshots).values
        except BackendNotInitializedError:
            return [snapshot_curvature(s) for s in snapshots]

    def manifold_curvature(self, snapshots: Sequence[Snapshot]) -> float:
        return mean_curvature(self.compute(snapshots))

    def detect_hole(self, snapshots: Sequence[Snapshot]) -> bool:
        if not snapshots:
            return False
        return self.manifold_curvature(snapshots) > self.config.hole_threshold
