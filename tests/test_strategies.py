from datetime import datetime, timedelta, timezone

import pytest

from formica.core import OHLCV, ConfigValueError, EmptyDatasetError
from formica.signals import SignalKind, SignalType, TradingSignal
from formica.strategies import PositionType, StrategyConfig, VWAPStrategy

T0 = datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)


def make_data():
    return [
        OHLCV(T0, 100.0, 105.0, 98.0, 102.0, 1000),
        OHLCV(T0, 102.0, 107.0, 100.0, 104.0, 1200),
        OHLCV(T0, 104.0, 109.0, 102.0, 106.0, 1100),
    ]


def make_signal(signal_type, bar, confidence=0.8):
    return TradingSignal(
        signal_type=signal_type,
        timestamp=bar.timestamp,
        price=bar.close,
        volume=bar.volume,
        vwap=100.0,
        confidence=confidence,
        generation_time=0.0,
    )


def test_vwap_strategy_creation():
    strategy = VWAPStrategy()
    assert strategy.config.name == "VWAP Strategy"
    assert strategy.position is None
    assert strategy.total_signals == 0


def test_strategy_execution():
    strategy = VWAPStrategy()
    signals = strategy.execute(make_data())
    assert len(signals) == 1
    assert strategy.total_signals > 0
    assert signals[0].signal_type.kind is SignalKind.BUY


def test_execution_opens_long_position():
    strategy = VWAPStrategy()
    strategy.execute(make_data())
    position = strategy.position
    assert position is not None
    assert position.position_type is PositionType.LONG
    assert position.entry_price == 106.0
    assert position.stop_loss == pytest.approx(106.0 * 0.98)
    assert position.take_profit == pytest.approx(106.0 * 1.04)


def test_execute_empty_data_raises():
    with pytest.raises(EmptyDatasetError):
        VWAPStrategy().execute([])


def test_incremental_execution():
    strategy = VWAPStrategy()
    for bar in make_data():
        strategy.execute_incremental(bar)
    assert strategy.total_signals > 0


def test_incremental_cooldown():
    strategy = VWAPStrategy()
    first = OHLCV(T0, 100.0, 105.0, 98.0, 102.0, 1000)
    second = OHLCV(T0 + timedelta(seconds=30), 102.0, 107.0, 100.0, 104.0, 1200)
    third = OHLCV(T0 + timedelta(seconds=61), 104.0, 109.0, 102.0, 106.0, 1100)
    assert strategy.execute_incremental(first) is not None
    assert strategy.execute_incremental(second) is None
    assert strategy.execute_incremental(third) is not None
    assert strategy.total_signals == 2


def test_position_management():
    strategy = VWAPStrategy()
    bar = OHLCV(T0, 100.0, 105.0, 98.0, 102.0, 1000)
    assert strategy.position is None
    strategy.process_signal(make_signal(SignalType.buy(0.8, "Test buy"), bar), bar)
    position = strategy.position
    assert position is not None
    assert position.position_type is PositionType.LONG
    assert position.size == pytest.approx(8000.0)
    assert position.entry_time == T0


def test_low_confidence_signal_opens_nothing():
    strategy = VWAPStrategy()
    bar = OHLCV(T0, 100.0, 105.0, 98.0, 102.0, 1000)
    strategy.process_signal(
        make_signal(SignalType.buy(0.8, "weak"), bar, confidence=0.5), bar
    )
    assert strategy.position is None


def test_hold_signal_opens_nothing():
    strategy = VWAPStrategy()
    bar = OHLCV(T0, 100.0, 105.0, 98.0, 102.0, 1000)
    strategy.process_signal(make_signal(SignalType.hold("flat"), bar), bar)
    assert strategy.position is None


def test_short_position_exit_levels():
    strategy = VWAPStrategy()
    bar = OHLCV(T0, 100.0, 101.0, 99.0, 100.0, 1000)
    strategy.process_signal(make_signal(SignalType.sell(0.5, "Test sell"), bar, 0.9), bar)
    position = strategy.position
    assert position.position_type is PositionType.SHORT
    assert position.stop_loss == pytest.approx(102.0)
    assert position.take_profit == pytest.approx(96.0)
    assert position.size == pytest.approx(5000.0)
    assert strategy.should_close_position(103.0) is True
    assert strategy.should_close_position(97.0) is False
    assert strategy.should_close_position(95.0) is True


def test_should_close_without_position_is_false():
    assert VWAPStrategy().should_close_position(100.0) is False


def test_update_position_exits_on_take_profit():
    strategy = VWAPStrategy()
    strategy.execute(make_data())
    later = T0 + timedelta(minutes=5)
    exit_signal = strategy.update_position(OHLCV(later, 118.0, 121.0, 117.0, 120.0, 900))
    assert exit_signal.signal_type.kind is SignalKind.EXIT
    assert exit_signal.price == 120.0
    assert exit_signal.confidence == 1.0
    assert exit_signal.vwap is None
    assert strategy.position is None
    metrics = strategy.performance.metrics
    assert metrics.total_trades == 1
    assert metrics.winning_trades == 1
    assert metrics.total_pnl == pytest.approx(14.0)


def test_update_position_keeps_position_inside_levels():
    strategy = VWAPStrategy()
    strategy.execute(make_data())
    assert strategy.update_position(OHLCV(T0, 106.0, 107.0, 105.0, 106.5, 900)) is None
    assert strategy.position is not None


def test_incremental_returns_exit_signal():
    strategy = VWAPStrategy()
    strategy.execute(make_data())
    result = strategy.execute_incremental(OHLCV(T0, 100.0, 101.0, 98.0, 99.0, 500))
    assert result.signal_type.kind is SignalKind.EXIT
    assert strategy.position is None


def test_config_validation():
    strategy = VWAPStrategy()
    strategy.validate_config()
    strategy.config.name = ""
    with pytest.raises(ConfigValueError) as info:
        strategy.validate_config()
    assert info.value.field == "name"


def test_config_validation_position_size():
    strategy = VWAPStrategy(StrategyConfig(max_position_size=0.0))
    with pytest.raises(ConfigValueError) as info:
        strategy.validate_config()
    assert info.value.field == "max_position_size"


def test_config_validation_percentages():
    strategy = VWAPStrategy(StrategyConfig(stop_loss_pct=0.0))
    with pytest.raises(ConfigValueError) as info:
        strategy.validate_config()
    assert info.value.field == "stop_loss_pct/take_profit_pct"


def test_performance_monitoring():
    strategy = VWAPStrategy()
    strategy.execute(make_data())
    history = strategy.performance.trade_history(10)
    assert len(history) == 1
    assert history[0].entry_price == 106.0
    assert strategy.performance.metrics.total_trades == 0