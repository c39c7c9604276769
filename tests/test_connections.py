"""Tests for Open Finance connections and investment sync."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from kadig.models import SOURCE_PLUGGY, Investment, Notification, PluggyConnection
from kadig.services import connections as connection_service
from kadig.services.connections import map_investment, map_investment_type


CDB = {
    "id": "pi-cdb",
    "name": "CDB Itaú 110% CDI",
    "type": "FIXED_INCOME",
    "balance": 1050.0,
    "amountOriginal": 1000.0,
    "amountProfit": 50.0,
    "dueDate": "2026-01-15T00:00:00.000Z",
}

PETR = {
    "id": "pi-petr",
    "name": "Petrobras PN",
    "type": "EQUITY",
    "code": "PETR4",
    "quantity": 10,
    "balance": 380.0,
    "amount": 350.0,
}


@pytest_asyncio.fixture
async def connection(test_session, user_with_key):
    """A registered connection to item-1."""
    user, _ = user_with_key
    conn = PluggyConnection(
        id="conn-1",
        user_id=user.id,
        item_id="item-1",
        connector_name="Itaú",
        status="UPDATED",
    )
    test_session.add(conn)
    await test_session.commit()
    return conn


# =============================================================================
# Mapping
# =============================================================================


class TestMapInvestment:

    def test_fixed_income(self):
        imported = map_investment(CDB)

        assert imported.pluggy_investment_id == "pi-cdb"
        assert imported.asset_type == "Renda Fixa"
        assert imported.quantity == Decimal("1")
        assert imported.current_value == Decimal("1050.00")
        assert imported.total_invested == Decimal("1000.00")
        assert imported.gain_percent == Decimal("5.0000")
        assert imported.maturity_date == date(2026, 1, 15)
        assert imported.ticker is None

    def test_equity(self):
        imported = map_investment(PETR)

        assert imported.ticker == "PETR4"
        assert imported.quantity == Decimal("10")
        assert imported.purchase_price == Decimal("35")
        assert imported.current_price == Decimal("38")
        assert imported.total_invested == Decimal("350.00")
        assert imported.gain_percent == Decimal("8.5714")

    def test_unknown_type(self):
        assert map_investment_type("LOTTERY") == "Outros"
        assert map_investment_type(None) == "Outros"

    def test_missing_figures(self):
        imported = map_investment({"id": "pi-x"})

        assert imported.asset_name == "Investimento"
        assert imported.current_value == Decimal("0.00")
        assert imported.gain_percent == Decimal("0")


# =============================================================================
# Registration and connect tokens
# =============================================================================


class TestRegister:

    @pytest.mark.asyncio
    async def test_register(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/connections",
            json={"item_id": "item-9", "connector_id": 201, "connector_name": "Nubank"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["item_id"] == "item-9"
        assert data["status"] == "PENDING"
        assert data["connector_name"] == "Nubank"

    @pytest.mark.asyncio
    async def test_register_again_updates(self, test_client, auth_headers, connection):
        response = await test_client.post(
            "/api/v1/connections",
            json={"item_id": "item-1", "connector_name": "Itaú Unibanco", "status": "UPDATING"},
            headers=auth_headers,
        )

        assert response.json()["id"] == "conn-1"
        assert response.json()["status"] == "UPDATING"

        response = await test_client.get("/api/v1/connections", headers=auth_headers)
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_item_of_another_user(self, test_client, connection):
        response = await test_client.post("/admin/users", json={"user_id": "other"})
        headers = {"X-API-Key": response.json()["api_key"]}

        response = await test_client.post(
            "/api/v1/connections", json={"item_id": "item-1"}, headers=headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_connect_token(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/connections/connect-token", json={}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"access_token": "connect-token-123"}

    @pytest.mark.asyncio
    async def test_connect_token_upstream_failure(self, test_client, auth_headers, pluggy_api):
        pluggy_api.fail_with = 500

        response = await test_client.post(
            "/api/v1/connections/connect-token", json={}, headers=auth_headers
        )
        assert response.status_code == 502


# =============================================================================
# Sync
# =============================================================================


class TestSync:

    @pytest.mark.asyncio
    async def test_imports_into_oldest_portfolio(
        self, test_client, test_session, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1", investments=[CDB, PETR])

        response = await test_client.post(
            "/api/v1/connections/conn-1/sync", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "connection_id": "conn-1",
            "portfolio_id": "pf-main",
            "created": 2,
            "updated": 0,
            "deleted": 0,
        }

        response = await test_client.get("/api/v1/investments", headers=auth_headers)
        investments = response.json()["investments"]
        assert [i["asset_name"] for i in investments] == ["CDB Itaú 110% CDI", "Petrobras PN"]
        assert all(i["source"] == SOURCE_PLUGGY for i in investments)

        response = await test_client.get("/api/v1/portfolios/pf-main", headers=auth_headers)
        assert Decimal(response.json()["total_value"]) == Decimal("1430.00")

    @pytest.mark.asyncio
    async def test_resync_updates_and_removes(
        self, test_client, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1", investments=[CDB, PETR])
        await test_client.post("/api/v1/connections/conn-1/sync", headers=auth_headers)

        pluggy_api.investments["item-1"] = [dict(CDB, balance=1080.0)]
        response = await test_client.post(
            "/api/v1/connections/conn-1/sync", headers=auth_headers
        )

        data = response.json()
        assert (data["created"], data["updated"], data["deleted"]) == (0, 1, 1)

        response = await test_client.get("/api/v1/investments", headers=auth_headers)
        [investment] = response.json()["investments"]
        assert Decimal(investment["current_value"]) == Decimal("1080.00")

    @pytest.mark.asyncio
    async def test_manual_positions_survive_sync(
        self, test_client, auth_headers, pluggy_api, connection, sample_investment
    ):
        pluggy_api.add_item("item-1", investments=[])

        response = await test_client.post(
            "/api/v1/connections/conn-1/sync", headers=auth_headers
        )

        assert response.json()["deleted"] == 0
        response = await test_client.get("/api/v1/investments/inv-petr", headers=auth_headers)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_into_chosen_portfolio(
        self, test_client, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1", investments=[CDB])
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Open Finance"}, headers=auth_headers
        )
        target_id = response.json()["id"]

        response = await test_client.post(
            "/api/v1/connections/conn-1/sync",
            json={"portfolio_id": target_id},
            headers=auth_headers,
        )
        assert response.json()["portfolio_id"] == target_id

    @pytest.mark.asyncio
    async def test_unknown_connection(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/connections/nope/sync", headers=auth_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_orphaned_connection(
        self, test_client, test_session, auth_headers, connection, sample_portfolio
    ):
        """An item the aggregator no longer knows is removed and the user told."""
        response = await test_client.post(
            "/api/v1/connections/conn-1/sync", headers=auth_headers
        )

        assert response.status_code == 404
        assert "no longer exists" in response.json()["detail"]
        assert "Itaú" in response.json()["detail"]

        response = await test_client.get("/api/v1/connections", headers=auth_headers)
        assert response.json() == []

        result = await test_session.execute(select(Notification.title))
        assert result.scalars().all() == ["Connection removed"]

    @pytest.mark.asyncio
    async def test_upstream_failure(
        self, test_client, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1")
        pluggy_api.fail_with = 500

        response = await test_client.post(
            "/api/v1/connections/conn-1/sync", headers=auth_headers
        )

        assert response.status_code == 502
        response = await test_client.get("/api/v1/connections", headers=auth_headers)
        assert len(response.json()) == 1


class TestSyncAll:

    @pytest.mark.asyncio
    async def test_mixed_outcomes(
        self, test_client, test_session, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        test_session.add(
            PluggyConnection(id="conn-2", user_id="investor1", item_id="item-gone")
        )
        await test_session.commit()
        pluggy_api.add_item("item-1", investments=[PETR])

        response = await test_client.post("/api/v1/connections/sync", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [r["connection_id"] for r in data["results"]] == ["conn-1"]
        assert data["orphaned"] == ["conn-2"]
        assert data["failed"] == []

        response = await test_client.get("/api/v1/connections", headers=auth_headers)
        [remaining] = response.json()
        assert remaining["id"] == "conn-1"
        assert remaining["status"] == "UPDATED"

    @pytest.mark.asyncio
    async def test_creates_open_finance_portfolio(
        self, test_client, auth_headers, pluggy_api, connection
    ):
        pluggy_api.add_item("item-1", investments=[CDB])

        await test_client.post("/api/v1/connections/sync", headers=auth_headers)

        response = await test_client.get("/api/v1/portfolios", headers=auth_headers)
        [portfolio] = response.json()
        assert portfolio["name"] == "Open Finance"
        assert portfolio["is_primary"] is True
        assert Decimal(portfolio["total_value"]) == Decimal("1050.00")

    @pytest.mark.asyncio
    async def test_failures_are_listed(
        self, test_client, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1")
        pluggy_api.fail_with = 500

        response = await test_client.post("/api/v1/connections/sync", headers=auth_headers)

        assert response.json()["failed"] == ["conn-1"]

    @pytest.mark.asyncio
    async def test_unreachable_aggregator_is_listed(
        self, test_session, pluggy_api, pluggy_client, connection, sample_portfolio
    ):
        pluggy_api.unreachable = True

        async with pluggy_client as client:
            result = await connection_service.sync_all(test_session, client, "investor1")

        assert result.failed == ["conn-1"]
        assert result.results == []
        assert result.orphaned == []

    @pytest.mark.asyncio
    async def test_unreachable_aggregator_over_http(
        self, test_client, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.unreachable = True

        response = await test_client.post("/api/v1/connections/sync", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["failed"] == ["conn-1"]

        response = await test_client.post(
            "/api/v1/connections/connect-token", json={}, headers=auth_headers
        )
        assert response.status_code == 502
        assert "unreachable" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_no_connections(self, test_client, auth_headers):
        response = await test_client.post("/api/v1/connections/sync", headers=auth_headers)

        assert response.json() == {"results": [], "orphaned": [], "failed": []}


# =============================================================================
# Refresh, details and disconnect
# =============================================================================


class TestConnectionLifecycle:

    @pytest.mark.asyncio
    async def test_refresh(self, test_client, auth_headers, pluggy_api, connection):
        pluggy_api.add_item(
            "item-1",
            status="LOGIN_ERROR",
            connector={"id": 201, "name": "Itaú Unibanco", "primaryColor": "EC7000"},
        )

        response = await test_client.post(
            "/api/v1/connections/conn-1/refresh", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "LOGIN_ERROR"
        assert data["connector_name"] == "Itaú Unibanco"
        assert data["connector_primary_color"] == "EC7000"

    @pytest.mark.asyncio
    async def test_details(self, test_client, auth_headers, pluggy_api, connection):
        pluggy_api.add_item("item-1", investments=[CDB], accounts=[{"id": "acc-1"}])

        response = await test_client.get(
            "/api/v1/connections/conn-1/details", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["connection"]["id"] == "conn-1"
        assert data["accounts"] == [{"id": "acc-1"}]
        assert data["investments"][0]["id"] == "pi-cdb"

    @pytest.mark.asyncio
    async def test_details_orphaned(self, test_client, auth_headers, connection):
        response = await test_client.get(
            "/api/v1/connections/conn-1/details", headers=auth_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_disconnect_keeps_positions(
        self, test_client, test_session, auth_headers, pluggy_api, connection, sample_portfolio
    ):
        pluggy_api.add_item("item-1", investments=[CDB])
        await test_client.post("/api/v1/connections/conn-1/sync", headers=auth_headers)

        response = await test_client.delete("/api/v1/connections/conn-1", headers=auth_headers)

        assert response.status_code == 204
        assert pluggy_api.deleted == ["item-1"]
        result = await test_session.execute(select(Investment.pluggy_investment_id))
        assert result.scalars().all() == ["pi-cdb"]

    @pytest.mark.asyncio
    async def test_disconnect_when_already_gone(self, test_client, auth_headers, connection):
        response = await test_client.delete("/api/v1/connections/conn-1", headers=auth_headers)

        assert response.status_code == 204
        response = await test_client.get("/api/v1/connections", headers=auth_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_disconnect_unknown(self, test_client, auth_headers):
        response = await test_client.delete("/api/v1/connections/nope", headers=auth_headers)
        assert response.status_code == 404
