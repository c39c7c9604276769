"""
Shared pytest fixtures for testing the Kadig service.

Uses an in-memory SQLite database for fast, isolated tests. The Pluggy
and BCB APIs are replaced with httpx.MockTransport fakes.
"""

import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kadig.clients.bcb import BCBClient, get_bcb_client
from kadig.clients.pluggy import PluggyClient, get_pluggy_client
from kadig.database import Base, get_session
from kadig.main import app
from kadig.models import Investment, Portfolio, User
from kadig.services.admin import generate_api_key, hash_api_key


# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for pytest-asyncio."""
    return "asyncio"


class FakePluggyAPI:
    """In-memory stand-in for the Pluggy REST API.

    Items live in `items`; their investments and accounts in the dicts of
    the same name. Unknown items answer 404 like the real API.
    """

    def __init__(self):
        self.items: dict[str, dict] = {}
        self.investments: dict[str, list[dict]] = {}
        self.accounts: dict[str, list[dict]] = {}
        self.deleted: list[str] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self.unreachable = False

    def add_item(self, item_id: str, investments=None, accounts=None, **fields) -> None:
        self.items[item_id] = {"id": item_id, "status": "UPDATED", **fields}
        self.investments[item_id] = investments or []
        self.accounts[item_id] = accounts or []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path

        if path == "/auth":
            body = json.loads(request.content)
            if body.get("clientId") != "test-id":
                return httpx.Response(401, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"apiKey": "pluggy-key"})

        if request.headers.get("X-API-KEY") != "pluggy-key":
            return httpx.Response(403, json={"message": "Forbidden"})
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "Upstream failure"})

        if path == "/connect_token":
            return httpx.Response(200, json={"accessToken": "connect-token-123"})
        if path == "/items" and request.method == "GET":
            return httpx.Response(200, json={"results": list(self.items.values())})

        if path.startswith("/items/"):
            item_id = path.split("/")[-1]
            if item_id not in self.items:
                return httpx.Response(404, json={"message": "Item not found"})
            if request.method == "DELETE":
                del self.items[item_id]
                self.deleted.append(item_id)
                return httpx.Response(204)
            return httpx.Response(200, json=self.items[item_id])

        if path in ("/investments", "/accounts"):
            item_id = request.url.params.get("itemId")
            if item_id not in self.items:
                return httpx.Response(404, json={"message": "Item not found"})
            source = self.investments if path == "/investments" else self.accounts
            results = source[item_id]
            return httpx.Response(200, json={"total": len(results), "results": results})

        return httpx.Response(404, json={"message": "Not found"})


def failing_bcb_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="Service unavailable")


@pytest.fixture
def pluggy_api():
    """Fake Pluggy API state for a test."""
    return FakePluggyAPI()


@pytest.fixture
def pluggy_client(pluggy_api):
    """Pluggy client wired to the fake API."""
    return PluggyClient(
        client_id="test-id",
        client_secret="test-secret",
        base_url="https://pluggy.test",
        transport=httpx.MockTransport(pluggy_api.handler),
    )


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine, pluggy_api):
    """Provide a FastAPI test client with test database.

    Overrides the session dependency and points the outbound clients at
    fakes: Pluggy at `pluggy_api`, BCB at an API that always fails (so
    analytics use their default indicators).
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session() as session:
            yield session

    async def override_pluggy_client():
        async with PluggyClient(
            client_id="test-id",
            client_secret="test-secret",
            base_url="https://pluggy.test",
            transport=httpx.MockTransport(pluggy_api.handler),
        ) as client:
            yield client

    def override_bcb_client():
        return BCBClient(
            base_url="https://bcb.test",
            transport=httpx.MockTransport(failing_bcb_handler),
        )

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_pluggy_client] = override_pluggy_client
    app.dependency_overrides[get_bcb_client] = override_bcb_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Helper fixtures for creating test data ---

@pytest_asyncio.fixture
async def user_with_key(test_session):
    """Create a user and return (user, api_key)."""
    api_key = generate_api_key()
    user = User(id="investor1", api_key_hash=hash_api_key(api_key))
    test_session.add(user)
    await test_session.commit()
    return user, api_key


@pytest.fixture
def auth_headers(user_with_key):
    """X-API-Key header for the sample user."""
    _, api_key = user_with_key
    return {"X-API-Key": api_key}


@pytest_asyncio.fixture
async def sample_portfolio(test_session, user_with_key):
    """The sample user's first (primary, selected) portfolio."""
    user, _ = user_with_key
    portfolio = Portfolio(
        id="pf-main",
        user_id=user.id,
        name="Principal",
        is_primary=True,
        is_selected=True,
    )
    test_session.add(portfolio)
    await test_session.commit()
    await test_session.refresh(portfolio)
    return portfolio


@pytest_asyncio.fixture
async def sample_investment(test_session, sample_portfolio):
    """100 units bought at 10.00, now quoted at 12.00."""
    investment = Investment(
        id="inv-petr",
        user_id=sample_portfolio.user_id,
        portfolio_id=sample_portfolio.id,
        asset_name="Petrobras PN",
        asset_type="Ações",
        ticker="PETR4",
        quantity=Decimal("100"),
        purchase_price=Decimal("10.00"),
        current_price=Decimal("12.00"),
        total_invested=Decimal("1000.00"),
        current_value=Decimal("1200.00"),
        gain_percent=Decimal("20.0000"),
    )
    test_session.add(investment)
    sample_portfolio.total_value = Decimal("1200.00")
    sample_portfolio.total_gain = Decimal("200.00")
    sample_portfolio.cdi_percent = Decimal("20.0000")
    await test_session.commit()
    await test_session.refresh(investment)
    return investment
