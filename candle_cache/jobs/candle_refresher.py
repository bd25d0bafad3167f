from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from candle_cache.candles.store import CandleStore, normalize_symbol, utcnow
from candle_cache.config import Settings
from candle_cache.providers.base import MarketDataProvider
from candle_cache.providers.errors import ProviderError

log = logging.getLogger("candle_refresher")

MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class RefreshOptions:
    interval: str = "1h"
    candle_days: int = 7
    max_retries: int = 3
    batch_size: int = 10
    batch_delay_seconds: float = 0.2
    refresh_interval_seconds: float = 300.0
    empty_symbols_retry_seconds: float = 5.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshOptions":
        return cls(
            interval=settings.candle_interval,
            candle_days=settings.candle_days,
            max_retries=settings.max_retries,
            batch_size=settings.batch_size,
            batch_delay_seconds=settings.batch_delay_ms / 1000.0,
            refresh_interval_seconds=settings.refresh_interval_min * 60.0,
            empty_symbols_retry_seconds=settings.empty_symbols_retry_seconds,
        )


@dataclass(frozen=True)
class RefreshSummary:
    total: int
    succeeded: int
    batches: int
    start_ms: int
    end_ms: int

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


def lookback_window(candle_days: int) -> tuple[int, int]:
    """(start_ms, end_ms) ending now, shared by every symbol in one cycle."""
    end_ms = int(utcnow().timestamp() * 1000)
    return end_ms - candle_days * MS_PER_DAY, end_ms


def _batches(symbols: List[str], size: int) -> List[List[str]]:
    size = max(1, size)
    return [symbols[i:i + size] for i in range(0, len(symbols), size)]


def _unique_by_key(symbols: List[str]) -> List[str]:
    """
    Drop symbols that map to an already-seen store key (kPEPE / KPEPE).
    First spelling wins, so one entry gets exactly one write per cycle.
    """
    seen: set[str] = set()
    out: List[str] = []
    for sym in symbols:
        key = normalize_symbol(sym)
        if key in seen:
            log.warning("Skipping %s: same store key as an earlier symbol (%s)", sym, key)
            continue
        seen.add(key)
        out.append(sym)
    return out


async def _refresh_symbol(
    store: CandleStore,
    provider: MarketDataProvider,
    symbol: str,
    options: RefreshOptions,
    start_ms: int,
    end_ms: int,
) -> bool:
    """
    Fetch + store one symbol. Never raises: after retries are exhausted the
    entry is overwritten with an empty series instead of keeping stale data.
    """
    try:
        candles = await provider.fetch_candles_with_retry(
            symbol,
            options.interval,
            start_ms,
            end_ms,
            options.max_retries,
        )
    except ProviderError as e:
        log.error("Failed to fetch %s: %s", symbol, e)
    except Exception:
        log.exception("Unexpected error while fetching %s", symbol)
    else:
        store.set_candles(symbol, candles)
        return True

    store.set_candles(symbol, [])
    return False


async def refresh_candles_once(
    store: CandleStore,
    provider: MarketDataProvider,
    options: RefreshOptions,
    symbols: Optional[List[str]] = None,
) -> RefreshSummary:
    """
    One refresh cycle over `symbols` (default: the store's current universe).

    Batches run sequentially; members of a batch are fetched concurrently and
    joined before the next batch starts, with batch_delay_seconds in between.
    """
    if symbols is None:
        symbols = store.get_symbols()
    symbols = _unique_by_key(symbols)

    start_ms, end_ms = lookback_window(options.candle_days)
    batches = _batches(symbols, options.batch_size)
    success_count = 0

    log.info("Found %d symbols, starting candle fetch", len(symbols))

    for idx, batch in enumerate(batches, start=1):
        log.info("Fetching batch %d/%d (%d symbols)", idx, len(batches), len(batch))

        results = await asyncio.gather(
            *(_refresh_symbol(store, provider, sym, options, start_ms, end_ms) for sym in batch)
        )
        success_count += sum(1 for ok in results if ok)

        if idx < len(batches):
            await asyncio.sleep(options.batch_delay_seconds)

    summary = RefreshSummary(
        total=len(symbols),
        succeeded=success_count,
        batches=len(batches),
        start_ms=start_ms,
        end_ms=end_ms,
    )
    log.info(
        "Cached %d/%d symbols in %d batches (%d failed)",
        summary.succeeded,
        summary.total,
        summary.batches,
        summary.failed,
    )
    return summary


async def candle_refresh_loop(
    store: CandleStore,
    provider: MarketDataProvider,
    options: RefreshOptions,
) -> None:
    """
    Background loop:
    periodically refresh candle history for the whole universe into the store.
    Waits (short interval) until symbol discovery has published something.
    """
    log.info(
        "Candle refresher started interval=%s days=%d batch_size=%d",
        options.interval,
        options.candle_days,
        options.batch_size,
    )

    while True:
        symbols = store.get_symbols()
        if not symbols:
            log.info("No symbols available yet, skipping fetch")
            await asyncio.sleep(options.empty_symbols_retry_seconds)
            continue

        await refresh_candles_once(store, provider, options, symbols)
        await asyncio.sleep(options.refresh_interval_seconds)
