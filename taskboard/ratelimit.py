from __future__ import annotations

import hashlib
import logging

from fastapi import HTTPException, Request

from taskboard.config import settings
from taskboard.redis_client import redis_client

logger = logging.getLogger(__name__)

def _client_key(request: Request) -> str:
    ip = (request.client.host if request.client else "unknown").strip()
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()[:24]

def rate_limit(name: str, limit_per_window: int, window_seconds: int):
    """
    Fixed-window limit per client address: INCR the window's counter and set
    its TTL on first hit. Auth forms use it against credential stuffing.
    """

    async def _dep(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        key = f"rl:{name}:{_client_key(request)}"
        try:
            pipe = redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            count, _ = pipe.execute()
        except Exception:
            # fail-open if redis is down
            logger.warning("Rate limiter unavailable for %s; allowing request", name)
            return

        if int(count) > int(limit_per_window):
            logger.info("Rate limited %s count=%s", name, count)
            raise HTTPException(
                status_code=429,
                detail="rate_limited",
                headers={"Retry-After": str(window_seconds)},
            )

    return _dep
