"""Market data records and the errors raised across the package."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OHLCV:
    """One bar of market data: open, high, low, close and traded volume."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int


class FormicaError(Exception):
    """Base class for every error the package raises."""


class EmptyDatasetError(FormicaError):
    """Raised when a calculation is given no data to work on."""

    def __init__(self, message: str = "dataset is empty") -> None:
        super().__init__(message)


class ConfigValueError(FormicaError):
    """Raised when a configuration field holds an invalid value."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"invalid value for {field}: {message}")
        self.field = field
        self.message = message