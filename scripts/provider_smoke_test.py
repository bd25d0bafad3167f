import os
import sys

# Add repo root to Python import path so `import candle_cache...` works
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import asyncio

from candle_cache.candles.store import CandleStore
from candle_cache.config import get_settings
from candle_cache.jobs.candle_refresher import RefreshOptions, refresh_candles_once
from candle_cache.providers.loader import get_provider


async def main(limit: int = 5):
    """
    Hits the real upstream once: list the universe, then run one refresh
    cycle over the first `limit` symbols and print what landed in the store.
    """
    settings = get_settings()
    provider = get_provider(settings)
    store = CandleStore()

    try:
        symbols = await provider.list_symbols()
        print(f"Universe: {len(symbols)} symbols, first {limit}: {symbols[:limit]}")

        summary = await refresh_candles_once(
            store,
            provider,
            RefreshOptions.from_settings(settings),
            symbols[:limit],
        )
        print(f"Cached {summary.succeeded}/{summary.total} symbols")

        for symbol, entry in store.get_all_candles().items():
            last = entry.candles[-1] if entry.candles else None
            print(f"  {symbol}: {len(entry.candles)} candles, last={last}")
    finally:
        await provider.close()


if __name__ == "__main__":
    asyncio.run(main())
