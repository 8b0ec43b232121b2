"""Performance monitoring of trading signals and closed trades."""

from __future__ import annotations

import enum
import math
import time
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from formica.signals import SignalType, TradingSignal

_MAX_ALERTS = 100
_ALERTS_DROPPED = 50
_MIN_TRADES_FOR_WIN_RATE_ALERT = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TradingMetrics:
    """Aggregate trading results; times are in seconds."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_trade_pnl: float = 0.0
    max_drawdown: float = 0.0
    current_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    avg_signal_time: float = 0.0
    avg_vwap_time: float = 0.0
    peak_equity: float = 0.0
    current_equity: float = 0.0
    last_update: datetime = field(default_factory=_now)


class AlertKind(enum.Enum):
    """What a performance alert reports."""

    DRAWDOWN_EXCEEDED = "drawdown_exceeded"
    WIN_RATE_LOW = "win_rate_low"
    PNL_LOW = "pnl_low"
    LATENCY_HIGH = "latency_high"
    SIGNAL_GENERATION_FAILED = "signal_generation_failed"


@dataclass(frozen=True)
class PerformanceAlert:
    """An alert with the offending value and the threshold it crossed.

    Latency values are in seconds; ``error`` is set only for failed signal
    generation.
    """

    kind: AlertKind
    current: float | None = None
    threshold: float | None = None
    error: str | None = None


@dataclass
class PerformanceConfig:
    """Alert thresholds and history limits; latency is in seconds."""

    drawdown_threshold: float = 0.1
    win_rate_threshold: float = 0.5
    pnl_threshold: float = -1000.0
    latency_threshold: float = 0.001
    max_history_size: int = 10000
    real_time_monitoring: bool = True


@dataclass
class TradeRecord:
    """One trade opened by a signal, possibly closed; times are in seconds."""

    timestamp: datetime
    signal_type: SignalType
    entry_price: float
    exit_price: float | None = None
    pnl: float | None = None
    duration: float | None = None
    signal_time: float = 0.0
    vwap_time: float = 0.0


@dataclass(frozen=True)
class MonitorStats:
    """Timing statistics of the monitor's own signal updates, in seconds."""

    total_updates: int
    average_time: float
    min_time: float
    max_time: float
    total_time: float


class _Timings:
    def __init__(self) -> None:
        self.count = 0
        self.total = 0.0
        self.minimum = math.inf
        self.maximum = 0.0

    def record(self, duration: float) -> None:
        self.count += 1
        self.total += duration
        self.minimum = min(self.minimum, duration)
        self.maximum = max(self.maximum, duration)

    def stats(self) -> MonitorStats:
        average = self.total / self.count if self.count else 0.0
        return MonitorStats(
            total_updates=self.count,
            average_time=average,
            min_time=self.minimum,
            max_time=self.maximum,
            total_time=self.total,
        )


class PerformanceMonitor:
    """Tracks trades opened by signals, computes metrics and raises alerts."""

    def __init__(self, config: PerformanceConfig | None = None) -> None:
        self.config = config if config is not None else PerformanceConfig()
        self._metrics = TradingMetrics()
        self._history: deque[TradeRecord] = deque(maxlen=self.config.max_history_size)
        self._alerts: deque[PerformanceAlert] = deque()
        self._timings = _Timings()

    def record_signal(self, signal: TradingSignal) -> None:
        """Open a trade record for ``signal`` and refresh metrics and alerts."""
        start = time.perf_counter()
        self._history.append(
            TradeRecord(
                timestamp=signal.timestamp,
                signal_type=signal.signal_type,
                entry_price=signal.price,
                signal_time=signal.generation_time,
            )
        )
        self._update_metrics()
        self._check_alerts()
        self._timings.record(time.perf_counter() - start)

    def record_trade_exit(self, exit_price: float, exit_time: datetime) -> None:
        """Close the most recent trade; does nothing when there is none."""
        if not self._history:
            return
        trade = self._history[-1]
        trade.exit_price = exit_price
        trade.pnl = exit_price - trade.entry_price
        trade.duration = max((exit_time - trade.timestamp).total_seconds(), 0.0)
        self._update_metrics()
        self._check_alerts()

    @property
    def metrics(self) -> TradingMetrics:
        """The current trading metrics."""
        return self._metrics

    def alerts(self, count: int) -> list[PerformanceAlert]:
        """Up to ``count`` alerts, most recent first."""
        return list(reversed(self._alerts))[:count]

    def trade_history(self, count: int) -> list[TradeRecord]:
        """Copies of up to ``count`` trade records, most recent first."""
        return [replace(trade) for trade in list(reversed(self._history))[:count]]

    def monitor_stats(self) -> MonitorStats:
        return self._timings.stats()

    def _update_metrics(self) -> None:
        pnls = [trade.pnl for trade in self._history if trade.pnl is not None]
        total_pnl = sum(pnls, 0.0)
        winning = sum(1 for pnl in pnls if pnl > 0.0)
        losing = sum(1 for pnl in pnls if pnl < 0.0)
        total_trades = winning + losing

        signal_times = [trade.signal_time for trade in self._history]
        vwap_times = [trade.vwap_time for trade in self._history if trade.vwap_time > 0.0]

        max_dd, current_dd, peak, current = self._drawdown(total_pnl)
        # Risk ratios are gated on the metrics from the previous update.
        sharpe = self._sharpe_ratio(pnls)
        sortino = self._sortino_ratio(pnls)

        self._metrics = TradingMetrics(
            total_trades=total_trades,
            winning_trades=winning,
            losing_trades=losing,
            win_rate=winning / total_trades if total_trades else 0.0,
            total_pnl=total_pnl,
            avg_trade_pnl=total_pnl / total_trades if total_trades else 0.0,
            max_drawdown=max_dd,
            current_drawdown=current_dd,
            sharpe_ratio=sharpe,
            sortino_ratio=sortino,
            avg_signal_time=sum(signal_times) / len(signal_times) if signal_times else 0.0,
            avg_vwap_time=sum(vwap_times) / len(vwap_times) if vwap_times else 0.0,
            peak_equity=peak,
            current_equity=current,
            last_update=_now(),
        )

    def _drawdown(self, current_pnl: float) -> tuple[float, float, float, float]:
        peak = 0.0
        max_drawdown = 0.0
        running = 0.0
        for trade in self._history:
            if trade.pnl is None:
                continue
            running += trade.pnl
            peak = max(peak, running)
            max_drawdown = max(max_drawdown, (peak - running) / max(peak, 1.0))
        current_drawdown = (peak - current_pnl) / peak if peak > 0.0 else 0.0
        return max_drawdown, current_drawdown, peak, current_pnl

    def _sharpe_ratio(self, returns: list[float]) -> float:
        if self._metrics.total_trades == 0 or not returns:
            return 0.0
        mean = sum(returns) / len(returns)
        variance = sum((r - mean) ** 2 for r in returns) / len(returns)
        std_dev = math.sqrt(variance)
        return 0.0 if std_dev == 0.0 else mean / std_dev

    def _sortino_ratio(self, returns: list[float]) -> float:
        if self._metrics.total_trades == 0 or not returns:
            return 0.0
        mean = sum(returns) / len(returns)
        downside = [r for r in returns if r < 0.0]
        if not downside:
            return mean
        deviation = math.sqrt(sum(r * r for r in downside) / len(downside))
        return mean if deviation == 0.0 else mean / deviation

    def _check_alerts(self) -> None:
        metrics, config = self._metrics, self.config
        if metrics.current_drawdown > config.drawdown_threshold:
            self._alerts.append(
                PerformanceAlert(
                    AlertKind.DRAWDOWN_EXCEEDED,
                    metrics.current_drawdown,
                    config.drawdown_threshold,
                )
            )
        if (
            metrics.win_rate < config.win_rate_threshold
            and metrics.total_trades > _MIN_TRADES_FOR_WIN_RATE_ALERT
        ):
            self._alerts.append(
                PerformanceAlert(
                    AlertKind.WIN_RATE_LOW, metrics.win_rate, config.win_rate_threshold
                )
            )
        if metrics.total_pnl < config.pnl_threshold:
            self._alerts.append(
                PerformanceAlert(AlertKind.PNL_LOW, metrics.total_pnl, config.pnl_threshold)
            )
        if metrics.avg_signal_time > config.latency_threshold:
            self._alerts.append(
                PerformanceAlert(
                    AlertKind.LATENCY_HIGH,
                    metrics.avg_signal_time,
                    config.latency_threshold,
                )
            )
        if len(self._alerts) > _MAX_ALERTS:
            for _ in range(_ALERTS_DROPPED):
                self._alerts.popleft()