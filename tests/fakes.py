from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Union

from candle_cache.models.market import Candle
from candle_cache.providers.base import MarketDataProvider
from candle_cache.providers.errors import TransportError


def make_candles(n: int, start_ms: int = 1_700_000_000_000) -> List[Candle]:
    return [
        Candle(
            timestamp=start_ms + i * 3_600_000,
            open=100.0 + i,
            high=101.0 + i,
            low=99.0 + i,
            close=100.5 + i,
            volume=1000.0,
        )
        for i in range(n)
    ]


class FakeProvider(MarketDataProvider):
    """
    Scripted in-memory provider.

    symbol_results: consumed one per list_symbols() call; an Exception is raised
    candles: symbol -> candles returned by fetch_candles
    failing: symbols whose fetch_candles always raises TransportError
    """

    def __init__(
        self,
        symbol_results: Optional[Sequence[Union[List[str], Exception]]] = None,
        candles: Optional[Dict[str, List[Candle]]] = None,
        failing: Sequence[str] = (),
        yield_points: int = 0,
    ) -> None:
        self.symbol_results = list(symbol_results or [])
        self.candles = candles or {}
        self.failing = set(failing)
        self.yield_points = yield_points

        self.list_calls = 0
        self.fetch_calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_symbols(self) -> List[str]:
        self.list_calls += 1
        result = self.symbol_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def fetch_candles(self, symbol, interval, start_ms, end_ms):
        self.fetch_calls.append((symbol, interval, start_ms, end_ms))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            for _ in range(self.yield_points):
                await asyncio.sleep(0)
            if symbol in self.failing:
                raise TransportError(f"Failed to send request: {symbol} unreachable")
            return list(self.candles.get(symbol, []))
        finally:
            self.in_flight -= 1
