import re
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.auth import get_services
from app.core.config import settings
from app.db.session import build_memory_stores
from app.main import app
from app.services.container import build_services

DEFAULT_PASSWORD = "pw12345678"


class FakeClock:
    """Controllable "now" for TTL tests."""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    """Keeps every delivered message instead of sending it."""

    def __init__(self):
        self.messages = []

    async def notify(self, address: str, message: str) -> None:
        self.messages.append((address, message))

    def messages_to(self, address: str) -> list:
        return [message for to, message in self.messages if to == address]

    def last_code(self, address: str) -> str | None:
        for message in reversed(self.messages_to(address)):
            match = re.search(r"code is (\d+)", message)
            if match:
                return match.group(1)
        return None

    def last_invitation_token(self, address: str) -> str | None:
        for message in reversed(self.messages_to(address)):
            match = re.search(r"invitation=([\w-]+)", message)
            if match:
                return match.group(1)
        return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def stores():
    return build_memory_stores()


@pytest.fixture
def services(stores, notifier, clock):
    return build_services(stores, notifier, settings, clock=clock)


@pytest.fixture
def current_code(stores):
    """Read the active verification code of an account straight from the store."""
    async def _current_code(account_id: str) -> str:
        code = await stores.codes.get(account_id)
        assert code is not None, "no active code"
        return code.code
    return _current_code


@pytest.fixture
def onboard(services, current_code):
    """Register and verify an account, returning the verified account."""
    async def _onboard(email: str, name: str | None = None, password: str = DEFAULT_PASSWORD):
        result = await services.onboarding.register(email, password, name)
        code = await current_code(result.account.id)
        verified = await services.onboarding.verify_email(result.account.id, code)
        return verified.account
    return _onboard


@pytest.fixture
def befriended(services, onboard):
    """Two verified accounts that are friends."""
    async def _befriended(email_a: str = "alice@x.com", email_b: str = "bob@x.com"):
        a = await onboard(email_a, name=email_a.split("@")[0].title())
        b = await onboard(email_b, name=email_b.split("@")[0].title())
        await services.friendships.create_bidirectional(a.id, b.id)
        return a, b
    return _befriended


@pytest_asyncio.fixture
async def client(services):
    """HTTP client against the app wired to in-memory services."""
    app.dependency_overrides[get_services] = lambda: services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_db():
    """Mock MongoDB database whose collections record the calls made on them."""
    collections = {}

    def collection(name):
        if name not in collections:
            mock_collection = MagicMock()
            mock_collection.find_one = AsyncMock(return_value=None)
            mock_collection.insert_one = AsyncMock()
            mock_collection.update_one = AsyncMock()
            mock_collection.replace_one = AsyncMock()
            mock_collection.find_one_and_update = AsyncMock(return_value=None)
            mock_collection.find_one_and_delete = AsyncMock(return_value=None)
            collections[name] = mock_collection
        return collections[name]

    db = MagicMock()
    db.__getitem__.side_effect = collection
    return db
