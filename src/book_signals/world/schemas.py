from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, fields

from book_signals.errors import InvalidInputError


@dataclass(frozen=True)
class Snapshot:
    """Best bid/ask of one order-book tick. Prices and volumes are finite and >= 0."""

    timestamp: int
    bid_price: float
    bid_volume: float
    ask_price: float
    ask_volume: float

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name == "timestamp":
                continue
            require_non_negative(f.name, getattr(self, f.name))

    @property
    def total_volume(self) -> float:
        return self.bid_volume + self.ask_volume

    @property
    def spread(self) -> float:
        return abs(self.ask_price - self.bid_price)

    @property
    def avg_price(self) -> float:
        return (self.bid_price + self.ask_price) / 2.0


SnapshotBatch = Sequence[Snapshot]


def require_finite(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    try:
        finite = math.isfinite(value)
    except OverflowError as exc:
        raise InvalidInputError(f"{name} is out of float range") from exc
    if not finite:
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return float(value)


def require_non_negative(name: str, value: float) -> float:
    out = require_finite(name, value)
    if out < 0.0:
        raise InvalidInputError(f"{name} must be >= 0, got {value!r}")
    return out
