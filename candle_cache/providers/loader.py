from candle_cache.config import Settings
from candle_cache.providers.base import MarketDataProvider
from candle_cache.providers.hyperliquid import HyperliquidProvider


def get_provider(settings: Settings) -> MarketDataProvider:
    """
    Provider loader / factory.

    Reads PROVIDER from settings and returns an instance of the selected provider.
    This is the single place that knows about concrete providers.
    """
    provider_name = settings.provider.strip().upper()

    if provider_name == "HYPERLIQUID":
        return HyperliquidProvider(
            base_url=settings.upstream_base_url,
            api_key=settings.upstream_api_key,
            timeout_seconds=settings.upstream_timeout_seconds,
        )

    raise ValueError(f"Unknown PROVIDER='{settings.provider}'. Expected: HYPERLIQUID")
