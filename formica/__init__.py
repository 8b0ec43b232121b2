"""VWAP calculation, trading signals, performance monitoring and a VWAP strategy for OHLCV data."""

__version__ = "0.1.0"
__all__ = ["core", "vwap", "signals", "performance", "strategies"]