import math

import pytest

from book_signals.config import CompetitorConfig
from book_signals.core.competitor import (
    BookAggregate,
    CompetitorVerdict,
    evaluate_book,
    evaluate_competitor,
)
from book_signals.errors import InvalidInputError
from book_signals.world.schemas import Snapshot


def test_rule_outcomes() -> None:
    assert evaluate_competitor(1200.0, 300.0, 0.2) is CompetitorVerdict.FAKE_BID_WALL
    assert evaluate_competitor(300.0, 1200.0, 0.2) is CompetitorVerdict.FAKE_ASK_WALL
    assert evaluate_competitor(100.0, 100.0, 2.0) is CompetitorVerdict.MARKET_VOID
    assert evaluate_competitor(100.0, 100.0, 0.1) is CompetitorVerdict.NO_ANOMALY


def test_bid_wall_outranks_ask_wall_and_void() -> None:
    assert evaluate_competitor(1500.0, 2000.0, 5.0) is CompetitorVerdict.FAKE_BID_WALL


def test_thresholds_are_strict() -> None:
    assert evaluate_competitor(1000.0, 1000.0, 1.0) is CompetitorVerdict.NO_ANOMALY


def test_verdict_tokens() -> None:
    assert {v.value for v in CompetitorVerdict} == {
        "DETECTED_FAKE_WALL_BID: DEPLOY_BAIT_SELL",
        "DETECTED_FAKE_WALL_ASK: DEPLOY_BAIT_BUY",
        "MARKET_VOID: DEPLOY_PROBE",
        "NO_COMPETITOR_ANOMALY",
    }


def test_custom_wall_threshold() -> None:
    cfg = CompetitorConfig(wall_threshold=50.0)
    assert evaluate_competitor(60.0, 10.0, 0.0, cfg) is CompetitorVerdict.FAKE_BID_WALL


def test_rejects_invalid_figures() -> None:
    with pytest.raises(InvalidInputError):
        evaluate_competitor(-1.0, 10.0, 0.1)
    with pytest.raises(InvalidInputError):
        evaluate_competitor(10.0, 10.0, math.nan)


def test_book_aggregate() -> None:
    snaps = [
        Snapshot(timestamp=1, bid_price=99.0, bid_volume=1200.0, ask_price=101.0, ask_volume=10.0),
        Snapshot(timestamp=2, bid_price=99.0, bid_volume=1300.0, ask_price=101.0, ask_volume=30.0),
    ]
    agg = BookAggregate.from_snapshots(snaps)
    assert agg.bid_volume == pytest.approx(1250.0)
    assert agg.ask_volume == pytest.approx(20.0)
    assert agg.spread_percent == pytest.approx(2.0)
    assert evaluate_book(agg) is CompetitorVerdict.FAKE_BID_WALL


def test_long_run_of_small_ticks_is_not_a_wall() -> None:
    snaps = [
        Snapshot(timestamp=i, bid_price=100.0, bid_volume=100.0, ask_price=100.01, ask_volume=100.0)
        for i in range(11)
    ]
    agg = BookAggregate.from_snapshots(snaps)
    assert agg.bid_volume == pytest.approx(100.0)
    assert agg.ask_volume == pytest.approx(100.0)
    assert evaluate_book(agg) is CompetitorVerdict.NO_ANOMALY


def test_empty_book_aggregate() -> None:
    agg = BookAggregate.from_snapshots([])
    assert agg == BookAggregate(bid_volume=0.0, ask_volume=0.0, spread_percent=0.0)
    assert evaluate_book(agg) is CompetitorVerdict.NO_ANOMALY
