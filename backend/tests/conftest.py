"""Shared test configuration and fixtures for backend tests.

Key principles:
- All HTTP calls go through the local ASGI app via httpx.AsyncClient.
- Each test gets its own isolated database: a real MongoDB when MONGO_URL is
  set, otherwise an in-memory mongomock-motor client.
- The Razorpay adapter is stubbed; no test talks to the real gateway.
- AnyIO is the single async runner (@pytest.mark.anyio).
"""

from typing import Any, AsyncGenerator, Dict, List

import os
import sys
from pathlib import Path
import uuid

import pytest
import httpx
from httpx import ASGITransport
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorClient

# Ensure backend root is on sys.path so that `server` module is importable
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from server import app
from renthub.db import get_db
from renthub.services.payments import payment_signature


MONGO_URL = os.environ.get("MONGO_URL")

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"

OWNER_ID = "O1"
TENANT_ID = "T1"


@pytest.fixture(autouse=True)
def razorpay_env(monkeypatch) -> None:
    """Deterministic gateway credentials; reacceptance off unless a test enables it."""

    monkeypatch.setenv("RAZORPAY_KEY_ID", TEST_KEY_ID)
    monkeypatch.setenv("RAZORPAY_KEY_SECRET", TEST_KEY_SECRET)
    monkeypatch.delenv("ALLOW_REACCEPTANCE", raising=False)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force pytest-anyio to use asyncio event loop."""

    return "asyncio"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[Any, None]:
    """Function-scoped isolated database for each test."""

    db_name = f"renthub_test_{uuid.uuid4().hex}"
    if MONGO_URL:
        client = AsyncIOMotorClient(MONGO_URL)
        try:
            yield client[db_name]
        finally:
            await client.drop_database(db_name)
            client.close()
    else:
        client = AsyncMongoMockClient()
        yield client[db_name]


@pytest.fixture(scope="function")
async def app_with_overrides(test_db) -> AsyncGenerator[Any, None]:
    """FastAPI app instance whose get_db dependency points to test_db."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def async_client(app_with_overrides) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = ASGITransport(app=app_with_overrides)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", timeout=30.0) as client:
        yield client


@pytest.fixture
def seed_account(test_db):
    """Factory inserting a bare account document (signup is not part of this service)."""

    async def _seed(account_id: str, name: str | None = None, **extra: Any) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "_id": account_id,
            "name": name or account_id,
            "email": f"{account_id.lower()}@renthub.test",
            "password": "hashed-elsewhere",
            "products": [],
            "bookings": [],
            "notifications": [],
        }
        doc.update(extra)
        await test_db.accounts.insert_one(doc)
        return doc

    return _seed


@pytest.fixture
async def owner_and_tenant(seed_account) -> Dict[str, Any]:
    owner = await seed_account(OWNER_ID, "Owner One")
    tenant = await seed_account(TENANT_ID, "Tenant One")
    return {"owner": owner, "tenant": tenant}


@pytest.fixture
def fake_gateway(monkeypatch) -> List[Dict[str, Any]]:
    """Stub razorpay_adapter.create_order and record every call."""

    from renthub.services import razorpay_adapter

    calls: List[Dict[str, Any]] = []

    async def fake_create_order(*, amount: int, currency: str, receipt: str) -> Dict[str, Any]:
        calls.append({"amount": amount, "currency": currency, "receipt": receipt})
        return {
            "id": f"order_test_{len(calls)}",
            "entity": "order",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }

    monkeypatch.setattr(razorpay_adapter, "create_order", fake_create_order)
    return calls


def sign(order_id: str, payment_id: str) -> str:
    return payment_signature(order_id, payment_id, TEST_KEY_SECRET)


async def create_booking(client: httpx.AsyncClient, price: float = 500) -> str:
    """File the reference booking T1 -> O1 and return its id."""

    resp = await client.post(
        f"/api/bookings/{OWNER_ID}",
        json={"from": TENANT_ID, "to": OWNER_ID, "date": "2024-05-01", "time": "10:00", "price": price},
    )
    assert resp.status_code == 201, resp.text
    listing = await client.get(f"/api/bookings/{OWNER_ID}")
    return listing.json()["bookings"][-1]["id"]


async def notifications_of(client: httpx.AsyncClient, account_id: str) -> List[Dict[str, Any]]:
    resp = await client.get(f"/api/{account_id}/notifications")
    assert resp.status_code == 200, resp.text
    return resp.json()["notifications"]
