from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

from ..observability.metrics import OTP_ISSUED, OTP_VERIFIED
from .otp_store import OtpStore

log = logging.getLogger(__name__)


class OtpRegistry:
    """Issues numeric one-time codes per email and checks them exactly once.

    NoEntry -issue-> Pending -verify ok-> NoEntry. A wrong guess leaves the
    pending code in place; a new issue replaces it; the store drops it after
    ``ttl_seconds``.
    """

    def __init__(self, store: OtpStore, *, ttl_seconds: int = 600, length: int = 6) -> None:
        if length < 1:
            raise ValueError("length must be positive")
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.length = length

    def generate(self) -> str:
        # uniform over 000000..999999
        return "".join(secrets.choice("0123456789") for _ in range(self.length))

    async def issue(self, email: str) -> str:
        code = self.generate()
        await self._store.put(email, code, self.ttl_seconds)
        OTP_ISSUED.inc()
        log.info("otp_issued", extra={"extra": f"email={email} ttl={self.ttl_seconds}"})
        return code

    async def verify(self, email: str, supplied: Any) -> bool:
        if not isinstance(supplied, str):
            OTP_VERIFIED.labels(result="invalid").inc()
            return False
        ok = await self._store.consume_if_match(email, supplied)
        OTP_VERIFIED.labels(result="verified" if ok else "invalid").inc()
        return ok

    async def invalidate(self, email: str, code: Optional[str] = None) -> None:
        """Drop the pending code; with ``code``, only if it is still the one pending."""
        if code is None:
            await self._store.discard(email)
        else:
            await self._store.discard_if_match(email, code)
