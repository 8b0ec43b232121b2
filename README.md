# formica

A small library for building trading logic on top of OHLCV bars:

- **VWAP** (volume weighted average price) over a whole session, a rolling
  window, from an anchor time, or over a custom time range.
- **Signal generation** that turns VWAP deviation, volume spikes and price
  momentum into buy, sell and hold signals. Each signal has a confidence score.
- **Performance monitoring** of trades: win rate, P&L, drawdown, Sharpe and
  Sortino ratios, and alerts when thresholds are crossed.
- **A VWAP strategy** that opens long and short positions with stop loss and
  take profit levels. It closes them when either level is hit.

The package has no runtime dependencies. All durations are given in seconds,
as floats.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Quick start

```python
from datetime import datetime, timezone

from formica.core import OHLCV
from formica.vwap import VWAPCalculator
from formica.signals import SignalGenerator
from formica.strategies import VWAPStrategy

now = datetime.now(timezone.utc)
bars = [
    OHLCV(now, 100.0, 105.0, 98.0, 102.0, 1000),
    OHLCV(now, 102.0, 107.0, 100.0, 104.0, 1200),
    OHLCV(now, 104.0, 109.0, 102.0, 106.0, 1100),
]

result = VWAPCalculator.session_based().calculate(bars)
print(result.vwap, result.total_volume, result.data_points)

generator = SignalGenerator()
signal = generator.generate_signal(bars)
print(signal.signal_type.kind, signal.confidence)

strategy = VWAPStrategy()
strategy.validate_config()
signals = strategy.execute(bars)
print(strategy.position, strategy.performance.metrics)
```

## Modules

- `formica.core`: the `OHLCV` bar (`timestamp`, `open`, `high`, `low`,
  `close`, `volume`) and the errors `FormicaError`, `EmptyDatasetError` and
  `ConfigValueError`. The last two are subclasses of `FormicaError`.
- `formica.vwap`: `VWAPCalculator` with the VWAP kinds `SessionVWAP`,
  `RollingVWAP`, `AnchoredVWAP` and `CustomVWAP`. Results come back as
  `VWAPResult` and timing as `VWAPPerformanceStats`.
- `formica.signals`: `SignalGenerator`, `SignalThresholds`, `SignalType`
  (with `SignalKind`), `TradingSignal` and `SignalPerformanceStats`.
- `formica.performance`: `PerformanceMonitor`, `PerformanceConfig`,
  `TradingMetrics`, `TradeRecord`, `PerformanceAlert` (with `AlertKind`) and
  `MonitorStats`.
- `formica.strategies`: the abstract `TradingStrategy` interface,
  `VWAPStrategy`, `StrategyConfig`, `Position` and `PositionType`.

## VWAP

VWAP weights the typical price `(high + low + close) / 3` by volume. When
the total volume is zero, the VWAP is `0.0`.

`VWAPCalculator` takes one of the VWAP kinds, or uses `SessionVWAP` by
default. There are also the constructors `session_based()`,
`rolling_window(window_size)` and `anchored(anchor_time)`.

`calculate(data)` raises `EmptyDatasetError` in two cases: when `data` is
empty, and when the chosen kind filters every bar out. The kinds select bars
as follows:

- `RollingVWAP` uses the last `window_size` bars.
- `AnchoredVWAP` uses bars at or after the anchor time.
- `CustomVWAP` uses bars between the start and end times, both included.

`calculate_incremental(new_data)` keeps a buffer for rolling calculators. It
appends the new bars to the buffer and drops the oldest once the window is
full. It then computes VWAP over the buffer and records the time this took.
Afterwards `last_vwap` holds the value and `performance_stats()` reports the
timings. For the other kinds it calls `calculate(new_data)`.

## Signals

`SignalGenerator(thresholds=None, vwap_calculator=None)` uses the default
`SignalThresholds` and a session VWAP calculator unless you pass your own.

`generate_signal(data)` judges the last bar of `data` against the VWAP of
`data`:

- A close more than `vwap_buy_threshold` above VWAP gives a buy signal.
- A close more than `vwap_sell_threshold` below VWAP gives a sell signal.
- Anything in between gives a hold.

Buy and sell signals carry the absolute deviation as their `strength`.

Confidence starts at 0.5 and builds up as follows:

- It gains ten times the deviation, up to 0.3.
- It gains 0.2 when the bar's volume is more than `volume_threshold` times
  the average volume.
- It gains 0.1 when the close moved more than `price_change_threshold` from
  the previous close.

The result is clamped to the range 0.0 to 1.0. An empty `data` raises
`EmptyDatasetError`.

`generate_signal_incremental(ohlcv)` feeds one bar to the calculator through
`calculate_incremental`. Its confidence is 0.5 plus ten times the deviation,
with that addition capped at 0.4.

`performance_stats()` counts signals by kind and reports their timings. Exit
signals are counted with sells.

## Performance monitoring

`PerformanceMonitor(config=None)` behaves as follows:

- `record_signal(signal)` opens a trade record for every signal, including
  holds.
- `record_trade_exit(exit_price, exit_time)` closes the most recent record.
  Its P&L is the exit price minus the entry price.
- Metrics are recomputed after each of these calls. The `metrics` property
  returns them.
- `alerts(count)` and `trade_history(count)` return the most recent entries
  first.

Alerts are raised when any of the following holds:

- The current drawdown exceeds `drawdown_threshold`.
- The win rate is below `win_rate_threshold`, once there are more than ten
  closed trades.
- The total P&L is below `pnl_threshold`.
- The average signal generation time exceeds `latency_threshold`.

At most `max_history_size` trades are kept. When more than 100 alerts pile
up, the oldest 50 are dropped.

## Strategy

`VWAPStrategy(config=None)` takes a `StrategyConfig`. The `vwap_type` field
of the config is stored but not used: signals always come from a session
VWAP calculator.

When no position is open and a buy or sell signal reaches `min_confidence`,
the strategy opens a long or short position. Its size is `max_position_size`
times the signal strength, with the strength capped at 1. Its stop loss and
take profit lie `stop_loss_pct` and `take_profit_pct` away from the entry
price.

Each call to `execute_incremental(ohlcv)` first checks the bar's close against
the stop loss and take profit. If either is hit, the strategy closes the
position and returns an exit signal. Otherwise it returns `None` until one
minute has passed since the previous signal. After that it generates and
records a new signal.

`validate_config()` raises `ConfigValueError` in three cases:

- The name is empty.
- The position size is not positive.
- The stop loss or take profit percentage is not positive.

A slow `execute` or `execute_incremental` call logs a warning through the
standard `logging` module.

## What it does not do

formica has no command-line program. It does not read market data from files
or feeds. It places no orders with a broker and does not store results. You
supply the `OHLCV` bars and act on the signals yourself.