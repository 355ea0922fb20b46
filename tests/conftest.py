"""Pytest configuration.

The application modules read their configuration at import time, so the
database URL and email settings are pinned here before anything from
``backend/`` is imported:

1. Every test run uses its own temporary SQLite file
2. Tables are dropped and recreated for each test that needs the database
3. The engine is disposed after each test so no pooled connection outlives
   the event loop it was opened on
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="impactolocal-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SEED_TEST_DATA"] = "false"
os.environ["EMAIL_API_KEY"] = ""
os.environ["EMAIL_FROM_ADDRESS"] = ""

from datetime import datetime, timedelta, timezone  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from database import create_tables, delete_tables, engine  # noqa: E402
from repositories.application import ApplicationRepository  # noqa: E402
from repositories.auth import UserRepository  # noqa: E402
from repositories.event import EventRepository  # noqa: E402
from services.email import EmailClient  # noqa: E402


EMAIL_API_URL = "https://email.test/emails"


@pytest_asyncio.fixture
async def db():
    """Fresh schema for one test."""
    await delete_tables()
    await create_tables()
    yield
    await engine.dispose()


@pytest.fixture
def event_start():
    """A fixed, timezone-aware start instant for time-sensitive tests."""
    return datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)


def make_email_client(handler) -> EmailClient:
    """EmailClient whose HTTP calls are answered by ``handler``."""
    return EmailClient(
        api_url=EMAIL_API_URL,
        api_key="test-key",
        from_address="noreply@impactolocal.pt",
        from_name="ImpactoLocal",
        timeout=1,
        transport=httpx.MockTransport(handler),
    )


def unreachable_email_handler(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected email request to {request.url}")


async def create_scenario(
    volunteer_email: str | None = "ana.silva@example.pt",
    status: str = "pending",
    event_date: datetime | None = None,
    duration: str | None = "2h",
):
    """Organization + volunteer + open event + one application.

    Returns a dict with the ORM rows keyed by role.
    """
    organization = await UserRepository.create_profile(
        "Associação Mãos Dadas", "organization", email="contacto@maosdadas.pt"
    )
    volunteer = await UserRepository.create_profile("Ana Silva", "volunteer", email=volunteer_email)
    event = await EventRepository.create_event(
        organization.id,
        "Limpeza da praia",
        event_date or datetime.now(timezone.utc) + timedelta(days=3),
        duration=duration,
    )
    application = await ApplicationRepository.create_application(
        event.id, volunteer.id, message="Gostava de ajudar"
    )
    if status != "pending":
        await ApplicationRepository.apply_transition(application.id, expected_version=0, values={"status": status})
        details = await ApplicationRepository.get_application_with_details(application.id)
        application = details["application"]

    return {
        "organization": organization,
        "volunteer": volunteer,
        "event": event,
        "application": application,
    }
