from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

import httpx

from candle_cache.models.market import Candle
from candle_cache.providers.base import MarketDataProvider
from candle_cache.providers.errors import DecodeError, TransportError, UpstreamStatusError

log = logging.getLogger("hyperliquid_provider")

DEFAULT_BASE_URL = "https://api.hyperliquid.xyz"


class HyperliquidProvider(MarketDataProvider):
    """
    Hyperliquid provider (REST only).

    Every request is a POST to {base_url}/info whose JSON body has a "type":
    - "meta"            -> perpetual universe
    - "candleSnapshot"  -> candle history for one coin/interval/range

    The info endpoint is public; an API key, when configured, is sent as a
    bearer token for gateways that front it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        raw_base = (base_url or DEFAULT_BASE_URL).rstrip("/")

        # Accept either the root or the full /info URL
        if raw_base.endswith("/info"):
            raw_base = raw_base[: -len("/info")]

        self.base_url = raw_base
        self.info_url = f"{raw_base}/info"

        # Sent per request so an injected client gets them too
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    # -------------------------
    # Public interface used by the app
    # -------------------------
    async def list_symbols(self) -> List[str]:
        """
        Returns names of tradable perpetuals.

        Entries with an empty name or "isDelisted": true are dropped.
        """
        data = await self._post({"type": "meta"})

        universe = data.get("universe") if isinstance(data, dict) else None
        if not isinstance(universe, list):
            raise DecodeError(f"Failed to parse response: expected object with 'universe' list, got {type(data).__name__}")

        out: List[str] = []
        for item in universe:
            if not isinstance(item, dict):
                raise DecodeError(f"Failed to parse response: universe item is {type(item).__name__}")

            name = item.get("name")
            if not isinstance(name, str):
                raise DecodeError(f"Failed to parse response: universe item name is {type(name).__name__}")

            if not name or item.get("isDelisted", False) is True:
                continue
            out.append(name)

        return out

    async def fetch_candles(
        self,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
    ) -> List[Candle]:
        """
        Returns candles in the order the upstream sent them.

        Hyperliquid sends OHLCV values as strings:
          {"t": 1700000000000, "o": "35000.0", "h": "...", "l": "...", "c": "...", "v": "...", "n": 42}
        """
        body = {
            "type": "candleSnapshot",
            "req": {
                "coin": symbol,
                "interval": interval,
                "startTime": int(start_ms),
                "endTime": int(end_ms),
            },
        }
        data = await self._post(body)

        if not isinstance(data, list):
            raise DecodeError(f"Failed to parse response: expected candle list for {symbol}, got {type(data).__name__}")

        return [self._parse_candle(row) for row in data]

    # -------------------------
    # HTTP
    # -------------------------
    async def _post(self, body: dict) -> Any:
        try:
            resp = await self._client.post(self.info_url, json=body, headers=self.headers)
        except httpx.TransportError as e:
            raise TransportError(f"Failed to send request: {e!r}") from e

        if not resp.is_success:
            raise UpstreamStatusError(resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"Failed to parse response: {e}") from e

    # -------------------------
    # Row parsing
    # -------------------------
    def _parse_candle(self, row: Any) -> Candle:
        if not isinstance(row, dict):
            raise DecodeError(f"Failed to parse response: candle row is {type(row).__name__}")

        t = row.get("t")
        if isinstance(t, bool) or not isinstance(t, int):
            raise DecodeError(f"Failed to parse response: candle 't' must be an integer, got {t!r}")

        return Candle(
            timestamp=t,
            open=self._parse_float(row, "o"),
            high=self._parse_float(row, "h"),
            low=self._parse_float(row, "l"),
            close=self._parse_float(row, "c"),
            volume=self._parse_float(row, "v"),
        )

    def _parse_float(self, row: dict, key: str) -> float:
        raw = row.get(key)
        if raw is None or isinstance(raw, bool):
            raise DecodeError(f"Failed to parse response: candle '{key}' missing or invalid ({raw!r})")

        try:
            value = float(raw)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Failed to parse response: candle '{key}'={raw!r} is not a number") from e

        if not math.isfinite(value):
            raise DecodeError(f"Failed to parse response: candle '{key}'={raw!r} is not finite")
        return value
