"""VWAP-based trading strategy with position management."""

from __future__ import annotations

import enum
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Sequence

from formica.core import OHLCV, ConfigValueError, EmptyDatasetError
from formica.performance import PerformanceConfig, PerformanceMonitor
from formica.signals import (
    SignalGenerator,
    SignalKind,
    SignalThresholds,
    SignalType,
    TradingSignal,
)
from formica.vwap import SessionVWAP, VWAPType

logger = logging.getLogger(__name__)

_SIGNAL_COOLDOWN = 60.0
_EXECUTE_WARNING_TIME = 0.010
_INCREMENTAL_WARNING_TIME = 0.001


@dataclass
class StrategyConfig:
    """Parameters of a trading strategy; percentages are fractions."""

    name: str = "VWAP Strategy"
    vwap_type: VWAPType = field(default_factory=SessionVWAP)
    signal_thresholds: SignalThresholds = field(default_factory=SignalThresholds)
    performance_config: PerformanceConfig = field(default_factory=PerformanceConfig)
    real_time: bool = True
    max_position_size: float = 10000.0
    stop_loss_pct: float = 0.02
    take_profit_pct: float = 0.04


class PositionType(enum.Enum):
    """Direction of an open position."""

    LONG = "long"
    SHORT = "short"


@dataclass(frozen=True)
class Position:
    """An open position with its exit levels."""

    position_type: PositionType
    entry_price: float
    entry_time: datetime
    size: float
    stop_loss: float
    take_profit: float


class TradingStrategy(ABC):
    """Interface shared by trading strategies."""

    @abstractmethod
    def execute(self, data: Sequence[OHLCV]) -> list[TradingSignal]:
        """Run the strategy over a batch of market data."""

    @abstractmethod
    def execute_incremental(self, ohlcv: OHLCV) -> TradingSignal | None:
        """Run the strategy on one new bar."""

    @property
    @abstractmethod
    def performance(self) -> PerformanceMonitor:
        """The strategy's performance monitor."""

    @abstractmethod
    def validate_config(self) -> None:
        """Raise ConfigValueError if the configuration is invalid."""


class VWAPStrategy(TradingStrategy):
    """Opens positions on VWAP deviation signals and exits on stop or target."""

    def __init__(self, config: StrategyConfig | None = None) -> None:
        self.config = config if config is not None else StrategyConfig()
        self._signal_generator = SignalGenerator(
            thresholds=replace(self.config.signal_thresholds)
        )
        self._monitor = PerformanceMonitor(replace(self.config.performance_config))
        self._position: Position | None = None
        self._last_signal_time: datetime | None = None
        self._total_signals = 0

    @property
    def position(self) -> Position | None:
        """The open position, if any."""
        return self._position

    @property
    def total_signals(self) -> int:
        """Number of signals generated and recorded so far."""
        return self._total_signals

    @property
    def performance(self) -> PerformanceMonitor:
        return self._monitor

    def should_close_position(self, current_price: float) -> bool:
        """Whether ``current_price`` hits the open position's stop or target."""
        position = self._position
        if position is None:
            return False
        if position.position_type is PositionType.LONG:
            return current_price <= position.stop_loss or current_price >= position.take_profit
        return current_price >= position.stop_loss or current_price <= position.take_profit

    def update_position(self, ohlcv: OHLCV) -> TradingSignal | None:
        """Close the open position if the bar's close hits stop or target."""
        if self._position is None:
            return None
        price = ohlcv.close
        if not self.should_close_position(price):
            return None
        exit_signal = TradingSignal(
            signal_type=SignalType.exit("Stop loss or take profit hit"),
            timestamp=ohlcv.timestamp,
            price=price,
            volume=ohlcv.volume,
            vwap=None,
            confidence=1.0,
            generation_time=0.0,
        )
        self._monitor.record_trade_exit(price, ohlcv.timestamp)
        self._position = None
        return exit_signal

    def execute(self, data: Sequence[OHLCV]) -> list[TradingSignal]:
        if not data:
            raise EmptyDatasetError()
        start = time.perf_counter()
        signal = self._signal_generator.generate_signal(data)
        self._record(signal)
        self.process_signal(signal, data[-1])
        elapsed = time.perf_counter() - start
        if elapsed > _EXECUTE_WARNING_TIME:
            logger.warning("Strategy execution took %.6fs", elapsed)
        return [signal]

    def execute_incremental(self, ohlcv: OHLCV) -> TradingSignal | None:
        start = time.perf_counter()
        exit_signal = self.update_position(ohlcv)
        if exit_signal is not None:
            return exit_signal

        if self._last_signal_time is not None:
            since_last = max(
                (ohlcv.timestamp - self._last_signal_time).total_seconds(), 0.0
            )
            if since_last < _SIGNAL_COOLDOWN:
                return None

        signal = self._signal_generator.generate_signal_incremental(ohlcv)
        self._record(signal)
        self.process_signal(signal, ohlcv)
        elapsed = time.perf_counter() - start
        if elapsed > _INCREMENTAL_WARNING_TIME:
            logger.warning("Incremental execution took %.6fs", elapsed)
        return signal

    def validate_config(self) -> None:
        config = self.config
        if not config.name:
            raise ConfigValueError("name", "Strategy name cannot be empty")
        if config.max_position_size <= 0.0:
            raise ConfigValueError(
                "max_position_size", "Max position size must be positive"
            )
        if config.stop_loss_pct <= 0.0 or config.take_profit_pct <= 0.0:
            raise ConfigValueError(
                "stop_loss_pct/take_profit_pct",
                "Stop loss and take profit percentages must be positive",
            )

    def process_signal(self, signal: TradingSignal, ohlcv: OHLCV) -> None:
        """Open a position for a confident buy or sell when none is open."""
        if self._position is not None:
            return
        kind = signal.signal_type.kind
        if kind not in (SignalKind.BUY, SignalKind.SELL):
            return
        if signal.confidence < self.config.signal_thresholds.min_confidence:
            return
        position_type = PositionType.LONG if kind is SignalKind.BUY else PositionType.SHORT
        strength = signal.signal_type.strength or 0.0
        self._open_position(position_type, ohlcv.close, ohlcv.timestamp, strength)

    def _record(self, signal: TradingSignal) -> None:
        self._monitor.record_signal(signal)
        self._total_signals += 1
        self._last_signal_time = signal.timestamp

    def _open_position(
        self,
        position_type: PositionType,
        price: float,
        timestamp: datetime,
        strength: float,
    ) -> None:
        config = self.config
        size = config.max_position_size * min(strength, 1.0)
        if position_type is PositionType.LONG:
            stop_loss = price * (1.0 - config.stop_loss_pct)
            take_profit = price * (1.0 + config.take_profit_pct)
        else:
            stop_loss = price * (1.0 + config.stop_loss_pct)
            take_profit = price * (1.0 - config.take_profit_pct)
        self._position = Position(
            position_type=position_type,
            entry_price=price,
            entry_time=timestamp,
            size=size,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )