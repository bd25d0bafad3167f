from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple


@dataclass(frozen=True)
class Candle:
    """
    Candle (OHLCV) for one interval bucket, as returned by the upstream.

    timestamp: open time of the bucket in epoch milliseconds
    open/high/low/close: prices during the bucket
    volume: traded volume during the bucket
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class CacheEntry:
    """
    Latest candle series fetched for one symbol.

    symbol: uppercase store key
    candles: upstream order, never re-sorted by the store
    last_update: when the refresher last wrote this entry (UTC)
    """
    symbol: str
    candles: Tuple[Candle, ...]
    last_update: datetime
