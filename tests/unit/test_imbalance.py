import math

import pytest

from book_signals.errors import InvalidInputError
from book_signals.features.imbalance import (
    PressureSignal,
    classify_imbalance,
    compute_imbalance,
    order_book_imbalance,
    spread_entropy,
)
from book_signals.world.schemas import Snapshot


def _snap(bid_volume: float, ask_volume: float, bid_price: float, ask_price: float) -> Snapshot:
    return Snapshot(
        timestamp=1000,
        bid_price=bid_price,
        bid_volume=bid_volume,
        ask_price=ask_price,
        ask_volume=ask_volume,
    )


def test_buy_pressure_scenario() -> None:
    result = compute_imbalance(_snap(100.0, 50.0, 99.0, 101.0))
    assert result.timestamp == 1000
    assert result.obi == pytest.approx(1.0 / 3.0)
    assert result.entropy == pytest.approx(0.02)
    assert result.signal is PressureSignal.BUY_PRESSURE


def test_empty_book_is_neutral_with_max_entropy() -> None:
    result = compute_imbalance(_snap(0.0, 0.0, 0.0, 0.0))
    assert result.obi == 0.0
    assert result.entropy == 1.0
    assert result.signal is PressureSignal.NEUTRAL


def test_sell_pressure() -> None:
    result = compute_imbalance(_snap(10.0, 90.0, 100.0, 100.5))
    assert result.obi == pytest.approx(-0.8)
    assert result.signal is PressureSignal.SELL_PRESSURE


def test_zero_prices_with_volume() -> None:
    snap = _snap(5.0, 5.0, 0.0, 0.0)
    assert spread_entropy(snap) == 1.0
    assert order_book_imbalance(snap) == 0.0


def test_thresholds_are_strict() -> None:
    assert classify_imbalance(0.3) is PressureSignal.NEUTRAL
    assert classify_imbalance(-0.3) is PressureSignal.NEUTRAL
    assert classify_imbalance(0.3000001) is PressureSignal.BUY_PRESSURE
    assert classify_imbalance(-0.3000001) is PressureSignal.SELL_PRESSURE
    assert classify_imbalance(0.0) is PressureSignal.NEUTRAL


def test_signal_values_are_wire_tokens() -> None:
    assert PressureSignal.BUY_PRESSURE.value == "BUY_PRESSURE"
    assert PressureSignal.SELL_PRESSURE == "SELL_PRESSURE"


def test_classify_rejects_non_finite() -> None:
    with pytest.raises(InvalidInputError):
        classify_imbalance(math.nan)
    with pytest.raises(InvalidInputError):
        classify_imbalance(math.inf)
