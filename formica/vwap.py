"""Volume weighted average price calculations."""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence, Union

from formica.core import OHLCV, EmptyDatasetError


@dataclass(frozen=True)
class SessionVWAP:
    """VWAP over every bar given (from market open)."""


@dataclass(frozen=True)
class RollingVWAP:
    """VWAP over the most recent ``window_size`` bars."""

    window_size: int


@dataclass(frozen=True)
class AnchoredVWAP:
    """VWAP over bars at or after ``anchor_time``."""

    anchor_time: datetime


@dataclass(frozen=True)
class CustomVWAP:
    """VWAP over bars between ``start_time`` and ``end_time`` inclusive."""

    start_time: datetime
    end_time: datetime


VWAPType = Union[SessionVWAP, RollingVWAP, AnchoredVWAP, CustomVWAP]


@dataclass(frozen=True)
class VWAPResult:
    """Outcome of one VWAP calculation; times are in seconds."""

    vwap: float
    total_volume: float
    data_points: int
    calculated_at: datetime
    calculation_time: float


@dataclass(frozen=True)
class VWAPPerformanceStats:
    """Timing statistics of incremental calculations, in seconds."""

    total_calculations: int
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

    def stats(self) -> VWAPPerformanceStats:
        average = self.total / self.count if self.count else 0.0
        return VWAPPerformanceStats(
            total_calculations=self.count,
            average_time=average,
            min_time=self.minimum,
            max_time=self.maximum,
            total_time=self.total,
        )


def _compute(data: Iterable[OHLCV]) -> tuple[float, float]:
    """Return (vwap, total volume) using the typical price (H+L+C)/3."""
    cumulative_pv = 0.0
    total_volume = 0.0
    for bar in data:
        typical_price = (bar.high + bar.low + bar.close) / 3.0
        volume = float(bar.volume)
        cumulative_pv += typical_price * volume
        total_volume += volume
    vwap = cumulative_pv / total_volume if total_volume > 0.0 else 0.0
    return vwap, total_volume


class VWAPCalculator:
    """Computes VWAP over a dataset, or incrementally over a stream of bars."""

    def __init__(self, vwap_type: VWAPType | None = None) -> None:
        self.vwap_type: VWAPType = vwap_type if vwap_type is not None else SessionVWAP()
        window = self.vwap_type.window_size if isinstance(self.vwap_type, RollingVWAP) else None
        self._window: deque[OHLCV] = deque(maxlen=window)
        self._last_vwap: float | None = None
        self._timings = _Timings()

    @classmethod
    def session_based(cls) -> VWAPCalculator:
        return cls(SessionVWAP())

    @classmethod
    def rolling_window(cls, window_size: int) -> VWAPCalculator:
        return cls(RollingVWAP(window_size))

    @classmethod
    def anchored(cls, anchor_time: datetime) -> VWAPCalculator:
        return cls(AnchoredVWAP(anchor_time))

    def calculate(self, data: Sequence[OHLCV]) -> VWAPResult:
        """Compute VWAP over the bars selected by this calculator's type."""
        if not data:
            raise EmptyDatasetError()
        start = time.perf_counter()
        selected = self._select(data)
        if not selected:
            raise EmptyDatasetError()
        vwap, total_volume = _compute(selected)
        return VWAPResult(
            vwap=vwap,
            total_volume=total_volume,
            data_points=len(selected),
            calculated_at=datetime.now(timezone.utc),
            calculation_time=time.perf_counter() - start,
        )

    def calculate_incremental(self, new_data: Sequence[OHLCV]) -> VWAPResult:
        """Feed new bars; rolling calculators keep a window across calls."""
        if not isinstance(self.vwap_type, RollingVWAP):
            return self.calculate(new_data)
        start = time.perf_counter()
        self._window.extend(new_data)
        vwap, total_volume = _compute(self._window)
        elapsed = time.perf_counter() - start
        self._last_vwap = vwap
        self._timings.record(elapsed)
        return VWAPResult(
            vwap=vwap,
            total_volume=total_volume,
            data_points=len(self._window),
            calculated_at=datetime.now(timezone.utc),
            calculation_time=elapsed,
        )

    @property
    def last_vwap(self) -> float | None:
        """The VWAP from the last incremental rolling calculation, if any."""
        return self._last_vwap

    def performance_stats(self) -> VWAPPerformanceStats:
        return self._timings.stats()

    def _select(self, data: Sequence[OHLCV]) -> list[OHLCV]:
        kind = self.vwap_type
        if isinstance(kind, RollingVWAP):
            start = max(len(data) - kind.window_size, 0)
            return list(data[start:])
        if isinstance(kind, AnchoredVWAP):
            return [bar for bar in data if bar.timestamp >= kind.anchor_time]
        if isinstance(kind, CustomVWAP):
            return [bar for bar in data if kind.start_time <= bar.timestamp <= kind.end_time]
        return list(data)