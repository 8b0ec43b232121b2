from datetime import datetime, timezone

import math

import pytest

from formica.core import OHLCV, EmptyDatasetError
from formica.signals import (
    SignalGenerator,
    SignalKind,
    SignalThresholds,
    SignalType,
)
from formica.vwap import VWAPCalculator

TS = datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


def make_data():
    return [
        OHLCV(TS, 100.0, 105.0, 98.0, 102.0, 1000),
        OHLCV(TS, 102.0, 107.0, 100.0, 104.0, 1200),
        OHLCV(TS, 104.0, 109.0, 102.0, 106.0, 1100),
    ]


def test_signal_generator_creation():
    generator = SignalGenerator()
    assert generator.thresholds.vwap_buy_threshold == 0.001
    assert generator.thresholds.min_confidence == 0.6


def test_signal_generation():
    generator = SignalGenerator()
    signal = generator.generate_signal(make_data())
    assert 0.0 < signal.confidence <= 1.0
    assert signal.generation_time < 0.1
    assert signal.vwap == pytest.approx(103.727, abs=0.01)
    assert signal.price == 106.0
    assert signal.volume == 1100
    assert signal.timestamp == TS


def test_signal_above_vwap_is_buy_with_reason():
    signal = SignalGenerator().generate_signal(make_data())
    assert signal.signal_type.kind is SignalKind.BUY
    assert signal.signal_type.strength > 0.001
    assert signal.signal_type.reason.endswith("% above VWAP")


def test_buy_signal_generation():
    data = make_data()
    data.append(OHLCV(TS, 110.0, 115.0, 108.0, 112.0, 1500))
    generator = SignalGenerator(SignalThresholds(vwap_buy_threshold=0.01))
    signal = generator.generate_signal(data)
    assert signal.signal_type.kind is SignalKind.BUY


def test_sell_signal_generation():
    data = make_data()
    data.append(OHLCV(TS, 90.0, 95.0, 88.0, 92.0, 1500))
    generator = SignalGenerator(SignalThresholds(vwap_sell_threshold=0.01))
    signal = generator.generate_signal(data)
    assert signal.signal_type.kind is SignalKind.SELL
    assert signal.signal_type.reason.endswith("% below VWAP")


def test_hold_signal_within_threshold():
    generator = SignalGenerator(
        SignalThresholds(vwap_buy_threshold=0.5, vwap_sell_threshold=0.5)
    )
    signal = generator.generate_signal(make_data())
    assert signal.signal_type == SignalType.hold("Price within VWAP threshold")
    assert signal.signal_type.strength is None


def test_incremental_signal_generation():
    generator = SignalGenerator()
    for bar in make_data():
        signal = generator.generate_signal_incremental(bar)
        assert 0.0 < signal.confidence <= 1.0
        assert signal.price == bar.close


def test_incremental_confidence_capped_below_one():
    generator = SignalGenerator()
    bar = OHLCV(TS, 100.0, 200.0, 10.0, 200.0, 500)
    signal = generator.generate_signal_incremental(bar)
    assert signal.confidence == pytest.approx(0.9)


def test_incremental_with_rolling_calculator_uses_window():
    calculator = VWAPCalculator.rolling_window(2)
    generator = SignalGenerator(vwap_calculator=calculator)
    for bar in make_data():
        generator.generate_signal_incremental(bar)
    assert calculator.last_vwap is not None
    assert calculator.performance_stats().total_calculations == 3


def test_performance_tracking():
    data = make_data()
    generator = SignalGenerator()
    for _ in range(5):
        generator.generate_signal(data)
    stats = generator.performance_stats()
    assert stats.total_signals == 5
    assert stats.buy_signals == 5
    assert stats.sell_signals == 0
    assert stats.hold_signals == 0
    assert stats.min_time <= stats.average_time <= stats.max_time
    assert stats.total_time == pytest.approx(stats.average_time * 5)


def test_initial_performance_stats():
    stats = SignalGenerator().performance_stats()
    assert stats.total_signals == 0
    assert stats.average_time == 0.0
    assert math.isinf(stats.min_time)
    assert stats.max_time == 0.0


def test_empty_data_error():
    with pytest.raises(EmptyDatasetError):
        SignalGenerator().generate_signal([])


def test_signal_type_constructors():
    buy = SignalType.buy(0.5, "up")
    assert (buy.kind, buy.strength, buy.reason) == (SignalKind.BUY, 0.5, "up")
    sell = SignalType.sell(0.2, "down")
    assert (sell.kind, sell.strength) == (SignalKind.SELL, 0.2)
    exit_signal = SignalType.exit("done")
    assert exit_signal.kind is SignalKind.EXIT
    assert exit_signal.strength is None
    assert SignalType.buy(0.5, "up") == buy