from __future__ import annotations

import asyncio
import logging
from typing import List

from candle_cache.candles.store import CandleStore
from candle_cache.providers.base import MarketDataProvider
from candle_cache.providers.errors import ProviderError

log = logging.getLogger("symbol_discovery")


async def discover_symbols_once(
    store: CandleStore,
    provider: MarketDataProvider,
    last_known_good: List[str],
) -> List[str]:
    """
    One discovery cycle. Returns the new last-known-good universe.

    - non-empty result: publish it
    - empty result: suspicious, publish nothing
    - failure: republish last-known-good (if any) so symbol_update keeps moving
    """
    log.info("Fetching symbol universe")
    try:
        symbols = await provider.list_symbols()
    except ProviderError as e:
        log.error("Failed to fetch symbols: %s", e)
        return _republish(store, last_known_good)
    except Exception:
        log.exception("Unexpected error while fetching symbols")
        return _republish(store, last_known_good)

    if not symbols:
        log.warning("Received empty symbol list, keeping previous universe (%d symbols)", len(last_known_good))
        return last_known_good

    log.info("Discovered %d symbols", len(symbols))
    store.set_symbols(symbols)
    return list(symbols)


def _republish(store: CandleStore, last_known_good: List[str]) -> List[str]:
    if last_known_good:
        log.info("Using cached symbol list (%d symbols)", len(last_known_good))
        store.set_symbols(last_known_good)
    return last_known_good


async def symbol_discovery_loop(
    store: CandleStore,
    provider: MarketDataProvider,
    interval_seconds: float,
) -> None:
    """
    Background loop:
    periodically publish the upstream symbol universe into the store.
    Never exits on upstream failure; stops only when cancelled.
    """
    log.info("Symbol discovery started interval=%ss", interval_seconds)
    last_known_good: List[str] = []

    while True:
        last_known_good = await discover_symbols_once(store, provider, last_known_good)
        await asyncio.sleep(interval_seconds)
