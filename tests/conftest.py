"""
Pytest configuration and fixtures.
"""
import time
import uuid
from datetime import date
from typing import Any, Callable, Dict, Iterator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from gateway.core.config import Settings
from gateway.database.database import Database
from gateway.database.models import Merchant
from gateway.main import create_app
from gateway.services.merchant_service import TEST_MERCHANT, seed_test_merchant
from gateway.services.settlement import SettlementPolicy, SettlementWorker


@pytest.fixture
def database_url(tmp_path) -> str:
    # file-backed so request sessions and settlement threads get their own connections
    return f"sqlite:///{tmp_path / 'gateway_test.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Test-mode settings: settlement resolves immediately and succeeds."""
    return Settings(
        DATABASE_URL=database_url,
        DATABASE_CONNECT_RETRIES=1,
        DATABASE_CONNECT_RETRY_DELAY=0,
        TEST_MODE=True,
        TEST_PROCESSING_DELAY=0,
        TEST_PAYMENT_SUCCESS=True,
        SETTLEMENT_SHUTDOWN_TIMEOUT=5,
        SEED_TEST_MERCHANT=True,
    )


@pytest.fixture
def database(database_url: str) -> Iterator[Database]:
    database = Database(database_url)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database: Database) -> Iterator[Session]:
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def merchant(db: Session) -> Merchant:
    seed_test_merchant(db)
    return db.get(Merchant, TEST_MERCHANT["id"])


@pytest.fixture
def other_merchant(db: Session) -> Merchant:
    other = Merchant(
        id=str(uuid.uuid4()),
        name="Other Merchant",
        email="other@example.com",
        api_key="key_other_456",
        api_secret="secret_other_456",
    )
    db.add(other)
    db.commit()
    return other


@pytest.fixture
def policy() -> SettlementPolicy:
    return SettlementPolicy(test_mode=True, test_delay_ms=0, test_success=True)


@pytest_asyncio.fixture
async def settlement(database: Database, policy: SettlementPolicy):
    worker = SettlementWorker(database.SessionLocal, policy)
    await worker.start()
    yield worker
    await worker.shutdown(timeout=5)


@pytest.fixture
def make_client(test_settings: Settings, database: Database) -> Iterator[Callable[..., TestClient]]:
    """Build a started TestClient, optionally overriding settings."""
    clients = []

    def _make(raise_server_exceptions: bool = True, **overrides: Any) -> TestClient:
        settings = test_settings
        if overrides:
            values = {key: getattr(test_settings, key) for key in vars(test_settings)}
            values.update(overrides)
            settings = Settings(**values)
        app = create_app(settings=settings, database=database)
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-Api-Key": TEST_MERCHANT["api_key"], "X-Api-Secret": TEST_MERCHANT["api_secret"]}


@pytest.fixture
def valid_card() -> Dict[str, str]:
    return {
        "number": "4111 1111 1111 1111",
        "expiry_month": "12",
        "expiry_year": str(date.today().year + 3),
        "cvv": "123",
        "holder_name": "John Doe",
    }


def wait_for_settlement(client: TestClient, payment_id: str, timeout: float = 5.0) -> Dict[str, Any]:
    """Poll the public payment endpoint until the payment leaves processing."""
    deadline = time.monotonic() + timeout
    while True:
        payment = client.get(f"/api/v1/payments/{payment_id}/public").json()
        if payment["status"] != "processing" or time.monotonic() > deadline:
            return payment
        time.sleep(0.02)
