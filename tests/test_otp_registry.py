import asyncio

import pytest

from app.services.otp import OtpRegistry
from app.services.otp_store import InMemoryOtpStore, RedisOtpStore


async def test_issued_code_is_six_ascii_digits(otp_registry):
    for _ in range(50):
        code = await otp_registry.issue("a@x.com")
        assert len(code) == 6
        assert all(c in "0123456789" for c in code)


async def test_issue_then_verify_succeeds_exactly_once(otp_registry):
    code = await otp_registry.issue("a@x.com")
    assert await otp_registry.verify("a@x.com", code) is True
    assert await otp_registry.verify("a@x.com", code) is False


async def test_verify_without_issue_fails(otp_registry):
    assert await otp_registry.verify("nobody@x.com", "000000") is False
    assert await otp_registry.verify("nobody@x.com", "") is False


async def test_reissue_invalidates_first_code(otp_registry, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(otp_registry, "generate", lambda: next(codes))
    first = await otp_registry.issue("a@x.com")
    second = await otp_registry.issue("a@x.com")
    assert await otp_registry.verify("a@x.com", first) is False
    assert await otp_registry.verify("a@x.com", second) is True


async def test_wrong_guess_keeps_pending_code(otp_registry, monkeypatch):
    monkeypatch.setattr(otp_registry, "generate", lambda: "123456")
    await otp_registry.issue("a@x.com")
    assert await otp_registry.verify("a@x.com", "654321") is False
    assert await otp_registry.verify("a@x.com", "654321") is False
    assert await otp_registry.verify("a@x.com", "123456") is True


async def test_comparison_is_exact(otp_registry, monkeypatch):
    monkeypatch.setattr(otp_registry, "generate", lambda: "012345")
    await otp_registry.issue("a@x.com")
    assert await otp_registry.verify("a@x.com", " 012345") is False
    assert await otp_registry.verify("a@x.com", "012345 ") is False
    assert await otp_registry.verify("a@x.com", "12345") is False
    assert await otp_registry.verify("a@x.com", "012345") is True


async def test_codes_are_scoped_per_email(otp_registry, monkeypatch):
    monkeypatch.setattr(otp_registry, "generate", lambda: "999999")
    await otp_registry.issue("a@x.com")
    assert await otp_registry.verify("b@x.com", "999999") is False
    assert await otp_registry.verify("a@x.com", "999999") is True


async def test_code_expires_after_ttl(otp_registry, clock):
    code = await otp_registry.issue("a@x.com")
    clock.advance(599)
    assert await otp_registry.verify("a@x.com", "wrong!") is False
    clock.advance(1)
    assert await otp_registry.verify("a@x.com", code) is False


async def test_invalidate_drops_pending_code(otp_registry):
    code = await otp_registry.issue("a@x.com")
    await otp_registry.invalidate("a@x.com")
    assert await otp_registry.verify("a@x.com", code) is False


async def test_put_purges_expired_entries(clock):
    store = InMemoryOtpStore(clock=clock)
    await store.put("old@x.com", "111111", 10)
    clock.advance(11)
    await store.put("new@x.com", "222222", 10)
    assert len(store) == 1


async def test_concurrent_verifies_consume_once(otp_registry):
    code = await otp_registry.issue("a@x.com")
    results = await asyncio.gather(*[otp_registry.verify("a@x.com", code) for _ in range(10)])
    assert results.count(True) == 1


def test_length_must_be_positive(otp_store):
    with pytest.raises(ValueError):
        OtpRegistry(otp_store, length=0)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisOtpStore."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    async def eval(self, script, numkeys, key, code):
        assert numkeys == 1
        if self.data.get(key) == code:
            del self.data[key]
            return 1
        return 0

    async def delete(self, key):
        self.data.pop(key, None)


async def test_redis_store_sets_ttl_and_consumes_once():
    fake = FakeRedis()
    registry = OtpRegistry(RedisOtpStore(fake), ttl_seconds=600)
    code = await registry.issue("a@x.com")
    assert fake.data["otp:a@x.com"] == code
    assert fake.ttls["otp:a@x.com"] == 600
    assert await registry.verify("a@x.com", "nope") is False
    assert "otp:a@x.com" in fake.data
    assert await registry.verify("a@x.com", code) is True
    assert await registry.verify("a@x.com", code) is False


async def test_redis_store_discard():
    fake = FakeRedis()
    store = RedisOtpStore(fake, prefix="hbc:otp:")
    await store.put("a@x.com", "123456", 60)
    await store.discard("a@x.com")
    assert fake.data == {}


async def test_invalidate_with_code_spares_a_newer_code(otp_registry, monkeypatch):
    monkeypatch.setattr(otp_registry, "generate", lambda: "111111")
    await otp_registry.issue("a@x.com")
    monkeypatch.setattr(otp_registry, "generate", lambda: "222222")
    await otp_registry.issue("a@x.com")

    await otp_registry.invalidate("a@x.com", "111111")
    assert await otp_registry.verify("a@x.com", "222222") is True


async def test_invalidate_with_code_drops_matching_code(otp_registry, monkeypatch):
    monkeypatch.setattr(otp_registry, "generate", lambda: "111111")
    await otp_registry.issue("a@x.com")
    await otp_registry.invalidate("a@x.com", "111111")
    assert await otp_registry.verify("a@x.com", "111111") is False


async def test_redis_store_discard_if_match():
    fake = FakeRedis()
    store = RedisOtpStore(fake)
    await store.put("a@x.com", "222222", 60)
    await store.discard_if_match("a@x.com", "111111")
    assert fake.data == {"otp:a@x.com": "222222"}
    await store.discard_if_match("a@x.com", "222222")
    assert fake.data == {}
