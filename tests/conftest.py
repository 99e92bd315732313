from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from printshop.api.deps import get_notifier
from printshop.core.config import Settings
from printshop.db.session import get_store
from printshop.db.store import InMemoryRecordStore
from printshop.main import app
from printshop.services.commission_engine import CommissionEngine
from printshop.services.expense_service import ExpenseBook
from printshop.services.installment_planner import InstallmentPlanner
from printshop.services.notification_service import NotificationService
from printshop.services.order_ledger import OrderLedger
from tests.factories import FIXED_NOW


@pytest.fixture
def store():
    """Fresh in-process record store."""
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def test_settings():
    """Settings with defaults only (no .env)."""
    return Settings(_env_file=None, COMMISSION_PERCENTAGE=Decimal("10"))


@pytest_asyncio.fixture
async def notifier(store, test_settings):
    """Notifier that finishes its deliveries before the test ends."""
    service = NotificationService(store, test_settings)
    yield service
    await service.drain()


@pytest.fixture
def ledger(store, notifier, clock):
    return OrderLedger(store, notifier, clock)


@pytest.fixture
def planner(store, clock):
    return InstallmentPlanner(store, clock)


@pytest.fixture
def engine(store, notifier, clock, test_settings):
    return CommissionEngine(store, notifier, clock, config=test_settings)


@pytest.fixture
def book(store, clock):
    return ExpenseBook(store, clock)


@pytest.fixture
def client(store):
    """FastAPI test client backed by the in-memory store.

    Used without the context manager so startup (MongoDB) does not run.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
