from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from candle_cache.models.market import CacheEntry


class CandleOut(BaseModel):
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class CacheEntryOut(BaseModel):
    symbol: str
    candles: List[CandleOut]
    last_update: datetime

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> "CacheEntryOut":
        return cls(
            symbol=entry.symbol,
            candles=[
                CandleOut(
                    timestamp=c.timestamp,
                    open=c.open,
                    high=c.high,
                    low=c.low,
                    close=c.close,
                    volume=c.volume,
                )
                for c in entry.candles
            ],
            last_update=entry.last_update,
        )


class SymbolsResponse(BaseModel):
    symbols: List[str]
    count: int


class HealthResponse(BaseModel):
    """
    Liveness + freshness probe.

    last_update / symbol_update are left out of the JSON until the
    refresher / discovery loop has written at least once.
    """

    status: str = "healthy"
    symbol_count: int
    last_update: Optional[datetime] = None
    symbol_update: Optional[datetime] = None
