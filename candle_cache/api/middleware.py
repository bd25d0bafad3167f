from __future__ import annotations

import logging
import time

from fastapi import Request

log = logging.getLogger("candle_cache")


async def log_requests(request: Request, call_next):
    """
    One line per request: method, path, status, latency.
    Unhandled errors are logged with traceback and re-raised.
    """
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.exception("%s %s failed after %.1fms", request.method, request.url.path, elapsed_ms)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    log.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response
