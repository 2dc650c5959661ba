from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple

from redis import asyncio as aioredis


class OtpStore:
    """Keyed code storage with set-with-expiry and compare-and-delete."""

    async def put(self, email: str, code: str, ttl_seconds: int) -> None:
        raise NotImplementedError

    async def consume_if_match(self, email: str, code: str) -> bool:
        raise NotImplementedError

    async def discard(self, email: str) -> None:
        raise NotImplementedError

    async def discard_if_match(self, email: str, code: str) -> None:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    """Process-local store. Not shared between instances.

    Each method runs to completion without awaiting, so check-and-delete is
    atomic with respect to other requests on the same event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, email: str) -> Optional[str]:
        entry = self._entries.get(email)
        if entry is None:
            return None
        code, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[email]
            return None
        return code

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
        return len(expired)

    async def put(self, email: str, code: str, ttl_seconds: int) -> None:
        self.purge_expired()
        self._entries[email] = (code, self._clock() + ttl_seconds)

    async def consume_if_match(self, email: str, code: str) -> bool:
        stored = self._live(email)
        if stored is None or stored != code:
            return False
        del self._entries[email]
        return True

    async def discard(self, email: str) -> None:
        self._entries.pop(email, None)

    async def discard_if_match(self, email: str, code: str) -> None:
        entry = self._entries.get(email)
        if entry is not None and entry[0] == code:
            del self._entries[email]


# GET + DEL in one server-side step; returns 1 when the code matched
_CONSUME_LUA = """
local v = redis.call('GET', KEYS[1])
if v and v == ARGV[1] then
  redis.call('DEL', KEYS[1])
  return 1
end
return 0
"""


class RedisOtpStore(OtpStore):
    """Shared store for multi-instance deployments; TTL is enforced by Redis."""

    def __init__(self, client: aioredis.Redis, prefix: str = "otp:") -> None:
        self._redis = client
        self._prefix = prefix

    def _key(self, email: str) -> str:
        return f"{self._prefix}{email}"

    async def put(self, email: str, code: str, ttl_seconds: int) -> None:
        # overwrite any previous code
        await self._redis.set(self._key(email), code, ex=ttl_seconds)

    async def consume_if_match(self, email: str, code: str) -> bool:
        matched = await self._redis.eval(_CONSUME_LUA, 1, self._key(email), code)
        return int(matched) == 1

    async def discard(self, email: str) -> None:
        await self._redis.delete(self._key(email))

    async def discard_if_match(self, email: str, code: str) -> None:
        await self._redis.eval(_CONSUME_LUA, 1, self._key(email), code)
