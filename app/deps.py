"""FastAPI dependency wiring for the OTP registry and the mailer."""
from __future__ import annotations

from fastapi import Request

from .config import Settings
from .redis_client import get_redis
from .services.mailer import SMTPMailer
from .services.otp import OtpRegistry
from .services.otp_store import InMemoryOtpStore, OtpStore, RedisOtpStore


def build_otp_store(settings: Settings) -> OtpStore:
    if settings.OTP_BACKEND == "redis":
        return RedisOtpStore(get_redis())
    return InMemoryOtpStore()


def build_otp_registry(settings: Settings) -> OtpRegistry:
    return OtpRegistry(
        build_otp_store(settings),
        ttl_seconds=settings.OTP_TTL_SECONDS,
        length=settings.OTP_LENGTH,
    )


def get_otp_registry(request: Request) -> OtpRegistry:
    return request.app.state.otp_registry


def get_mailer(request: Request) -> SMTPMailer:
    return request.app.state.mailer
