import os
import shutil
import tempfile
from pathlib import Path

# Settings are read once; point them at a throwaway SQLite file before importing the app.
# Overrides any exported DATABASE_URL; the schema fixture drops every table.
TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="hbc-tests-")) / "test_members.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["ENV"] = "test"
os.environ["OTP_BACKEND"] = "memory"
os.environ["METRICS_ENABLED"] = "true"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# IMPORTANT: import engine/SessionLocal only after the environment is set
from app.db import engine, SessionLocal  # noqa: E402
from app.deps import get_mailer, get_otp_registry  # noqa: E402
from app.domain.errors import DeliveryError  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402
from app.repos import submissions as submissions_repo  # noqa: E402
from app.services.otp import OtpRegistry  # noqa: E402
from app.services.otp_store import InMemoryOtpStore  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(TEST_DB_PATH.parent, ignore_errors=True)


# Fresh schema per test, created on the SAME loop as the test function.
# Dispose the engine afterwards so no pooled connection outlives its loop.
@pytest_asyncio.fixture
async def _db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(_db_schema):
    async with SessionLocal() as s:
        yield s


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMailer:
    """Records messages instead of talking SMTP; set ``fail`` to simulate a rejection."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    async def send_mail(self, *, to, subject, html, display_name, headers=None):
        if self.fail:
            raise DeliveryError("550 mailbox unavailable")
        self.sent.append(
            {"to": to, "subject": subject, "html": html, "display_name": display_name, "headers": headers}
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store(clock):
    return InMemoryOtpStore(clock=clock)


@pytest.fixture
def otp_registry(otp_store):
    return OtpRegistry(otp_store, ttl_seconds=600)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest_asyncio.fixture
async def client(_db_schema, otp_registry, mailer):
    app.dependency_overrides[get_otp_registry] = lambda: otp_registry
    app.dependency_overrides[get_mailer] = lambda: mailer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ---------- helpers ----------
def form_payload(**overrides) -> dict:
    body = {
        "name": "Asha Rao",
        "email": "a@x.com",
        "phone": "+919876543210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "employmentType": "business owner",
        "businessName": "Rao Textiles",
        "businessCategory": "Retail",
        "businessDescription": "Handloom sarees",
        "businessWebsite": "https://raotextiles.example",
        "businessSocialMedia": "@raotextiles",
        "professionalWebsite": None,
        "professionalSocialMedia": None,
        "workExperience": None,
        "servicesOffered": "Wholesale supply",
        "lookingFor": "Distributors",
        "agreeToRules": True,
    }
    body.update(overrides)
    return body


async def mk_member(db, email: str, phone: str, **fields):
    row = await submissions_repo.insert(db, {"email": email, "phone": phone, **fields})
    await db.commit()
    return row
