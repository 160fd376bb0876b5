from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from book_signals.config import CompetitorConfig
from book_signals.features.imbalance import spread_entropy
from book_signals.world.schemas import Snapshot, require_non_negative


class CompetitorVerdict(str, Enum):
    FAKE_BID_WALL = "DETECTED_FAKE_WALL_BID: DEPLOY_BAIT_SELL"
    FAKE_ASK_WALL = "DETECTED_FAKE_WALL_ASK: DEPLOY_BAIT_BUY"
    MARKET_VOID = "MARKET_VOID: DEPLOY_PROBE"
    NO_ANOMALY = "NO_COMPETITOR_ANOMALY"


@dataclass(frozen=True)
class BookAggregate:
    bid_volume: float
    ask_volume: float
    spread_percent: float

    @classmethod
    def from_snapshots(cls, snapshots: Sequence[Snapshot]) -> BookAggregate:
        """Per-tick mean volumes and spread percentage; an empty batch is all zeros."""
        if not snapshots:
            return cls(bid_volume=0.0, ask_volume=0.0, spread_percent=0.0)
        n = len(snapshots)
        return cls(
            bid_volume=sum(s.bid_volume for s in snapshots) / n,
            ask_volume=sum(s.ask_volume for s in snapshots) / n,
            spread_percent=sum(spread_entropy(s) for s in snapshots) * 100.0 / n,
        )


def evaluate_competitor(
    bid_volume: float,
    ask_volume: float,
    spread_percent: float,
    config: CompetitorConfig | None = None,
) -> CompetitorVerdict:
    """First matching rule wins.

    A bid wall outranks an ask wall when both are present; the ordering is
    intentional and must stay asymmetric.
    """
    cfg = config or CompetitorConfig()
    bid = require_non_negative("bid_volume", bid_volume)
    ask = require_non_negative("ask_volume", ask_volume)
    spread = require_non_negative("spread_percent", spread_percent)

    if bid > cfg.wall_threshold:
        return CompetitorVerdict.FAKE_BID_WALL
    if ask > cfg.wall_threshold:
        return CompetitorVerdict.FAKE_ASK_WALL
    if spread > cfg.void_spread_percent:
        return CompetitorVerdict.MARKET_VOID
    return CompetitorVerdict.NO_ANOMALY


def evaluate_book(
    aggregate: BookAggregate, config: CompetitorConfig | None = None
) -> CompetitorVerdict:
    return evaluate_competitor(
        aggregate.bid_volume, aggregate.ask_volume, aggregate.spread_percent, config
    )
