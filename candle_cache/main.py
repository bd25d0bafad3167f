import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from candle_cache.api.middleware import log_requests
from candle_cache.api.routes import router as api_router
from candle_cache.config import get_settings
from candle_cache.jobs.candle_refresher import RefreshOptions, candle_refresh_loop
from candle_cache.jobs.symbol_discovery import symbol_discovery_loop
from candle_cache.providers.loader import get_provider
from candle_cache.state import store

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
log = logging.getLogger("candle_cache")

provider = get_provider(settings)
refresh_options = RefreshOptions.from_settings(settings)

app = FastAPI(title="Candle Cache API", version="0.1.0")
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)
app.middleware("http")(log_requests)
app.include_router(api_router)

_tasks: list[asyncio.Task] = []


@app.on_event("startup")
async def _startup():
    log.info(
        "Starting env=%s provider=%s candle_interval=%s history=%dd",
        settings.app_env,
        provider.__class__.__name__,
        settings.candle_interval,
        settings.candle_days,
    )
    log.info(
        "Refresh intervals - candles: %dm, symbols: %dm",
        settings.refresh_interval_min,
        settings.symbol_refresh_interval_min,
    )

    # Symbol discovery (publishes the universe)
    _tasks.append(
        asyncio.create_task(
            symbol_discovery_loop(
                store=store,
                provider=provider,
                interval_seconds=settings.symbol_refresh_interval_min * 60,
            )
        )
    )

    # Candle refresh (reads the universe, writes candles)
    _tasks.append(
        asyncio.create_task(
            candle_refresh_loop(
                store=store,
                provider=provider,
                options=refresh_options,
            )
        )
    )


@app.on_event("shutdown")
async def _shutdown():
    for task in _tasks:
        task.cancel()
    await asyncio.gather(*_tasks, return_exceptions=True)
    _tasks.clear()

    await provider.close()
