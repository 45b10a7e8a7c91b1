"""
Access log middleware

One structured line per request. The voter id is attached once the
identity dependency has resolved it; admin and anonymous calls log None.
"""

import time

from fastapi import Request

from config import get_logger

logger = get_logger(__name__).bind(component="api")

# Scraped every few seconds; logging them drowns out real traffic
_QUIET_PATHS = frozenset({"/metrics", "/api/health"})


async def log_requests(request: Request, call_next):
    if request.url.path in _QUIET_PATHS:
        return await call_next(request)

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            "request failed",
            method=request.method,
            path=request.url.path,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            error=str(e),
        )
        raise

    logger.info(
        "request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
        voter_id=getattr(request.state, "voter_id", None),
    )
    return response
