from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from candle_cache.models.market import Candle
from candle_cache.providers.errors import ProviderError, RetryExhaustedError

log = logging.getLogger("market_data_provider")


class MarketDataProvider(ABC):
    """
    Provider contract (interface).

    Any provider must implement:
    - list_symbols(): current tradable universe
    - fetch_candles(): candle history for one symbol and time range

    Both raise ProviderError (or a subclass) on failure. Implementations
    must be safe to call concurrently from many tasks.
    """

    @abstractmethod
    async def list_symbols(self) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_candles(
        self,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
    ) -> List[Candle]:
        raise NotImplementedError

    async def fetch_candles_with_retry(
        self,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
        max_retries: int = 3,
    ) -> List[Candle]:
        """
        fetch_candles with exponential backoff.

        After failed attempt k (0-indexed) we sleep 2**k seconds if another
        attempt remains: 1s, 2s, 4s, ... Nothing is slept after the last one.
        """
        attempts = max(1, max_retries)
        last_err: Optional[ProviderError] = None

        for attempt in range(attempts):
            try:
                return await self.fetch_candles(symbol, interval, start_ms, end_ms)
            except ProviderError as e:
                last_err = e
                if attempt < attempts - 1:
                    backoff = 2 ** attempt
                    log.debug(
                        "fetch_candles failed symbol=%s attempt=%d/%d backoff=%ds error=%s",
                        symbol,
                        attempt + 1,
                        attempts,
                        backoff,
                        e,
                    )
                    await asyncio.sleep(backoff)

        raise RetryExhaustedError(attempts, last_err)

    async def close(self) -> None:
        return None
