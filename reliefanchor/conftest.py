# reliefanchor/conftest.py
import sys
import pytest
from pathlib import Path

from fastapi.testclient import TestClient

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from reliefanchor.core.clock import FixedClock
from reliefanchor.core.database import build_engine
from reliefanchor.features.billing.service import BillingService
from reliefanchor.features.chat.service import ChatService
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.features.recovery.service import RecoveryService
from reliefanchor.features.sessions.service import SessionManager
from reliefanchor.features.storage.service import InMemoryKeyValueStore, SqlKeyValueStore
from reliefanchor.features.wellness.service import WellnessService
from reliefanchor.tests.mocks import FakeChatProvider

TEST_SECRET = "test-salt"
TEST_TODAY = "2025-01-10"


@pytest.fixture
def clock():
    return FixedClock(today=TEST_TODAY)


@pytest.fixture
def storage():
    return InMemoryKeyValueStore()


@pytest.fixture
def sql_engine():
    """Fresh in-memory SQLite engine per test."""
    engine = build_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_storage(sql_engine):
    return SqlKeyValueStore(sql_engine)


@pytest.fixture
def entitlements(storage, clock):
    return EntitlementStore(storage, clock, secret=TEST_SECRET, max_free_messages=5)


@pytest.fixture
def sessions(storage, entitlements):
    return SessionManager(storage, entitlements)


@pytest.fixture
def ctx(sessions):
    """Logged-in context for the default test profile."""
    return sessions.login("user@example.com")


@pytest.fixture
def recovery(entitlements, clock):
    return RecoveryService(entitlements, clock, secret=TEST_SECRET)


@pytest.fixture
def billing(entitlements, clock):
    return BillingService(entitlements, clock)


@pytest.fixture
def wellness(storage, clock):
    return WellnessService(storage, clock)


@pytest.fixture
def chat_provider():
    return FakeChatProvider()


@pytest.fixture
def chat(entitlements, wellness, chat_provider, clock):
    return ChatService(entitlements, wellness, chat_provider, clock)


@pytest.fixture
def client(storage, clock, chat_provider):
    """TestClient over an app wired to in-memory storage and the fixed clock."""
    from reliefanchor.main import create_app

    app = create_app(storage=storage, clock=clock, chat_provider=chat_provider)
    with TestClient(app) as test_client:
        yield test_client
