from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from candle_cache.models.market import CacheEntry, Candle


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


@dataclass
class CandleStore:
    """
    In-memory candle cache + freshness tracking.

    entries[SYMBOL]     -> latest CacheEntry written by the candle refresher
    symbols             -> current universe, as published by symbol discovery
    last_candle_update  -> last time any entry was written
    last_symbol_update  -> last time the universe was (re)published

    One lock guards everything. Route handlers run in FastAPI's thread pool
    while the refresh loops run on the event loop, so reads and writes can
    interleave. Critical sections only swap or copy references: entries are
    frozen, so handing them out never leaks a mutable alias.
    """
    entries: Dict[str, CacheEntry] = field(default_factory=dict)
    symbols: List[str] = field(default_factory=list)
    last_candle_update: Optional[datetime] = None
    last_symbol_update: Optional[datetime] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @staticmethod
    def _advance(previous: Optional[datetime]) -> datetime:
        """Current time, never earlier than the previous value (clock steps back)."""
        now = utcnow()
        if previous is not None and now < previous:
            return previous
        return now

    def set_candles(self, symbol: str, candles: Iterable[Candle]) -> CacheEntry:
        """Upsert the entry for symbol and advance both freshness timestamps."""
        key = normalize_symbol(symbol)
        series = tuple(candles)

        with self._lock:
            # last_candle_update bounds every entry's last_update from above.
            now = self._advance(self.last_candle_update)
            entry = CacheEntry(symbol=key, candles=series, last_update=now)
            self.entries[key] = entry
            self.last_candle_update = now
        return entry

    def get_candles(self, symbol: str) -> Optional[CacheEntry]:
        key = normalize_symbol(symbol)
        with self._lock:
            return self.entries.get(key)

    def get_all_candles(self) -> Dict[str, CacheEntry]:
        """Snapshot of every entry, consistent at a single instant."""
        with self._lock:
            return dict(self.entries)

    def set_symbols(self, symbols: Iterable[str]) -> None:
        universe = list(symbols)
        with self._lock:
            self.symbols = universe
            self.last_symbol_update = self._advance(self.last_symbol_update)

    def get_symbols(self) -> List[str]:
        with self._lock:
            return list(self.symbols)

    def get_last_candle_update(self) -> Optional[datetime]:
        with self._lock:
            return self.last_candle_update

    def get_last_symbol_update(self) -> Optional[datetime]:
        with self._lock:
            return self.last_symbol_update
