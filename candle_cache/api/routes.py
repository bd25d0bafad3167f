from __future__ import annotations

from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Response

from candle_cache.candles.store import CandleStore, normalize_symbol
from candle_cache.models.api import CacheEntryOut, HealthResponse, SymbolsResponse
from candle_cache.state import store as app_store

router = APIRouter()


def get_store() -> CandleStore:
    return app_store


def etag(dt: datetime) -> str:
    """Quoted Unix seconds, e.g. "1700000000"."""
    return f'"{int(dt.timestamp())}"'


@router.get("/api/candles", response_model=Dict[str, CacheEntryOut])
def all_candles(response: Response, store: CandleStore = Depends(get_store)):
    entries = store.get_all_candles()
    last = store.get_last_candle_update()

    if last is not None:
        response.headers["ETag"] = etag(last)

    return {symbol: CacheEntryOut.from_entry(entry) for symbol, entry in entries.items()}


@router.get("/api/candles/{symbol}", response_model=CacheEntryOut)
def symbol_candles(symbol: str, response: Response, store: CandleStore = Depends(get_store)):
    """
    One cached entry, case-insensitive.

    An entry with zero candles (upstream kept failing) is still a 200.
    """
    key = normalize_symbol(symbol)
    if not key:
        raise HTTPException(status_code=400, detail="Symbol required")

    entry = store.get_candles(key)
    if entry is None:
        raise HTTPException(status_code=404, detail="Symbol not found")

    response.headers["ETag"] = etag(entry.last_update)
    return CacheEntryOut.from_entry(entry)


@router.get("/api/symbols", response_model=SymbolsResponse)
def symbols(store: CandleStore = Depends(get_store)):
    universe = store.get_symbols()
    return SymbolsResponse(symbols=universe, count=len(universe))


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
def health(store: CandleStore = Depends(get_store)):
    return HealthResponse(
        status="healthy",
        symbol_count=len(store.get_symbols()),
        last_update=store.get_last_candle_update(),
        symbol_update=store.get_last_symbol_update(),
    )
