"""Trading signal generation from VWAP deviation, volume and momentum."""

from __future__ import annotations

import enum
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from formica.core import OHLCV, EmptyDatasetError
from formica.vwap import VWAPCalculator, VWAPResult


class SignalKind(enum.Enum):
    """The action a signal recommends."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"
    EXIT = "exit"


@dataclass(frozen=True)
class SignalType:
    """A signal's action, with its strength (buy and sell only) and reason."""

    kind: SignalKind
    reason: str
    strength: float | None = None

    @classmethod
    def buy(cls, strength: float, reason: str) -> SignalType:
        return cls(SignalKind.BUY, reason, strength)

    @classmethod
    def sell(cls, strength: float, reason: str) -> SignalType:
        return cls(SignalKind.SELL, reason, strength)

    @classmethod
    def hold(cls, reason: str) -> SignalType:
        return cls(SignalKind.HOLD, reason)

    @classmethod
    def exit(cls, reason: str) -> SignalType:
        return cls(SignalKind.EXIT, reason)


@dataclass(frozen=True)
class TradingSignal:
    """A generated signal with market context; generation_time is in seconds."""

    signal_type: SignalType
    timestamp: datetime
    price: float
    volume: int
    vwap: float | None
    confidence: float
    generation_time: float


@dataclass
class SignalThresholds:
    """Thresholds that decide signal type and confidence."""

    vwap_buy_threshold: float = 0.001
    vwap_sell_threshold: float = 0.001
    volume_threshold: float = 1.5
    price_change_threshold: float = 0.005
    min_confidence: float = 0.6


@dataclass(frozen=True)
class SignalPerformanceStats:
    """Timing and count statistics of generated signals, times in seconds."""

    total_signals: int
    average_time: float
    min_time: float
    max_time: float
    total_time: float
    buy_signals: int
    sell_signals: int
    hold_signals: int


def _divide(numerator: float, denominator: float) -> float:
    """Floating-point division that yields inf or nan instead of raising."""
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _capped(value: float, cap: float) -> float:
    """The smaller of value and cap, treating nan as absent."""
    return cap if math.isnan(value) else min(value, cap)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class _Tracker:
    total_signals: int = 0
    total_time: float = 0.0
    min_time: float = math.inf
    max_time: float = 0.0
    counts: dict[SignalKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in SignalKind}
    )

    def record(self, signal_type: SignalType, duration: float) -> None:
        self.total_signals += 1
        self.total_time += duration
        self.min_time = min(self.min_time, duration)
        self.max_time = max(self.max_time, duration)
        self.counts[signal_type.kind] += 1

    def stats(self) -> SignalPerformanceStats:
        average = self.total_time / self.total_signals if self.total_signals else 0.0
        return SignalPerformanceStats(
            total_signals=self.total_signals,
            average_time=average,
            min_time=self.min_time,
            max_time=self.max_time,
            total_time=self.total_time,
            buy_signals=self.counts[SignalKind.BUY],
            # Exit signals are counted with sells.
            sell_signals=self.counts[SignalKind.SELL] + self.counts[SignalKind.EXIT],
            hold_signals=self.counts[SignalKind.HOLD],
        )


class SignalGenerator:
    """Generates trading signals from the deviation of price from VWAP."""

    def __init__(
        self,
        thresholds: SignalThresholds | None = None,
        vwap_calculator: VWAPCalculator | None = None,
    ) -> None:
        self.thresholds = thresholds if thresholds is not None else SignalThresholds()
        self.vwap_calculator = (
            vwap_calculator if vwap_calculator is not None else VWAPCalculator.session_based()
        )
        self._tracker = _Tracker()

    def generate_signal(self, data: Sequence[OHLCV]) -> TradingSignal:
        """Generate a signal for the last bar of ``data``."""
        if not data:
            raise EmptyDatasetError()
        start = time.perf_counter()
        latest = data[-1]
        vwap_result = self.vwap_calculator.calculate(data)
        vwap = vwap_result.vwap
        signal_type = self._analyze(latest, vwap)
        confidence = self._confidence(latest, vwap_result, data)
        elapsed = time.perf_counter() - start
        self._tracker.record(signal_type, elapsed)
        return TradingSignal(
            signal_type=signal_type,
            timestamp=latest.timestamp,
            price=latest.close,
            volume=latest.volume,
            vwap=vwap,
            confidence=confidence,
            generation_time=elapsed,
        )

    def generate_signal_incremental(self, ohlcv: OHLCV) -> TradingSignal:
        """Generate a signal for one new bar, updating the VWAP calculator."""
        start = time.perf_counter()
        vwap = self.vwap_calculator.calculate_incremental([ohlcv]).vwap
        signal_type = self._analyze(ohlcv, vwap)
        deviation = abs(_divide(ohlcv.close - vwap, vwap))
        confidence = _clamp(0.5 + _capped(deviation * 10.0, 0.4))
        elapsed = time.perf_counter() - start
        self._tracker.record(signal_type, elapsed)
        return TradingSignal(
            signal_type=signal_type,
            timestamp=ohlcv.timestamp,
            price=ohlcv.close,
            volume=ohlcv.volume,
            vwap=vwap,
            confidence=confidence,
            generation_time=elapsed,
        )

    def performance_stats(self) -> SignalPerformanceStats:
        return self._tracker.stats()

    def _analyze(self, ohlcv: OHLCV, vwap: float) -> SignalType:
        deviation = _divide(ohlcv.close - vwap, vwap)
        if deviation > self.thresholds.vwap_buy_threshold:
            return SignalType.buy(
                abs(deviation), f"Price {deviation * 100.0:.2f}% above VWAP"
            )
        if deviation < -self.thresholds.vwap_sell_threshold:
            return SignalType.sell(
                abs(deviation), f"Price {abs(deviation) * 100.0:.2f}% below VWAP"
            )
        return SignalType.hold("Price within VWAP threshold")

    def _confidence(
        self, ohlcv: OHLCV, vwap_result: VWAPResult, data: Sequence[OHLCV]
    ) -> float:
        confidence = 0.5
        deviation = abs(_divide(ohlcv.close - vwap_result.vwap, vwap_result.vwap))
        confidence += _capped(deviation * 10.0, 0.3)

        if len(data) > 1:
            avg_volume = sum(float(bar.volume) for bar in data) / len(data)
            volume_ratio = _divide(float(ohlcv.volume), avg_volume)
            if volume_ratio > self.thresholds.volume_threshold:
                confidence += 0.2

            prev_close = data[-2].close
            price_change = _divide(ohlcv.close - prev_close, prev_close)
            if abs(price_change) > self.thresholds.price_change_threshold:
                confidence += 0.1

        return _clamp(confidence)