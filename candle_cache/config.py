# candle_cache/config.py
import logging
import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()

log = logging.getLogger("config")


@dataclass(frozen=True)
class Settings:
    # App config
    app_env: str
    log_level: str
    port: int
    cors_origins: list[str]

    # Provider config
    provider: str
    upstream_base_url: str
    upstream_api_key: str
    upstream_timeout_seconds: float

    # Candle refresh
    candle_interval: str
    candle_days: int
    refresh_interval_min: int
    max_retries: int
    batch_size: int
    batch_delay_ms: int
    empty_symbols_retry_seconds: float

    # Symbol discovery
    symbol_refresh_interval_min: int


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Invalid %s=%r, using default %d", name, raw, default)
        return default
    return max(minimum, value)


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    return max(minimum, value)


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    """
    cors_origins = [s.strip() for s in os.getenv("CORS_ORIGINS", "*").split(",") if s.strip()]

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=_env_int("PORT", 3000, minimum=1),
        cors_origins=cors_origins or ["*"],
        provider=os.getenv("PROVIDER", "HYPERLIQUID"),
        upstream_base_url=os.getenv("UPSTREAM_BASE_URL", "https://api.hyperliquid.xyz"),
        upstream_api_key=os.getenv("UPSTREAM_API_KEY", "").strip(),
        upstream_timeout_seconds=_env_float("UPSTREAM_TIMEOUT_SECONDS", 10.0, minimum=0.1),
        candle_interval=os.getenv("CANDLE_INTERVAL", "1h").strip() or "1h",
        candle_days=_env_int("CANDLE_DAYS", 7, minimum=1),
        refresh_interval_min=_env_int("REFRESH_INTERVAL_MIN", 5, minimum=1),
        max_retries=_env_int("MAX_RETRIES", 3, minimum=1),
        batch_size=_env_int("BATCH_SIZE", 10, minimum=1),
        batch_delay_ms=_env_int("BATCH_DELAY_MS", 200),
        empty_symbols_retry_seconds=_env_float("EMPTY_SYMBOLS_RETRY_SECONDS", 5.0, minimum=0.1),
        symbol_refresh_interval_min=_env_int("SYMBOL_REFRESH_INTERVAL_MIN", 60, minimum=1),
    )
