from __future__ import annotations

import logging
from typing import Optional

from redis import asyncio as aioredis
from .config import get_settings

log = logging.getLogger(__name__)

_client: Optional[aioredis.Redis] = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        url = get_settings().REDIS_URL
        if not url:
            raise RuntimeError("REDIS_URL is not set")
        _client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


async def redis_health() -> Optional[bool]:
    """None when Redis is not configured for this deployment."""
    if not get_settings().REDIS_URL:
        return None
    try:
        pong = await get_redis().ping()
        return bool(pong)
    except Exception:
        log.warning("redis_health_failed", exc_info=True)
        return False
