"""Tests for investment API endpoints."""

from decimal import Decimal

import pytest


class TestCreateInvestment:
    """Tests for POST /api/v1/investments."""

    @pytest.mark.asyncio
    async def test_unit_priced(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.post(
            "/api/v1/investments",
            json={
                "asset_name": "Vale ON",
                "asset_type": "acao",
                "ticker": "vale3",
                "quantity": "10",
                "purchase_price": "60.00",
                "current_price": "66.00",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        investment = data["investment"]
        assert investment["portfolio_id"] == "pf-main"
        assert investment["ticker"] == "VALE3"
        assert Decimal(investment["total_invested"]) == Decimal("600.00")
        assert Decimal(investment["current_value"]) == Decimal("660.00")
        assert Decimal(investment["gain_percent"]) == Decimal("10")
        assert investment["source"] == "manual"

        [movement] = data["movements"]
        assert movement["type"] == "application"
        assert Decimal(movement["total_value"]) == Decimal("600.00")
        assert data["closed"] is False

    @pytest.mark.asyncio
    async def test_amount_only(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.post(
            "/api/v1/investments",
            json={
                "asset_name": "CDB Banco X 110% CDI",
                "asset_type": "renda_fixa_pos",
                "amount": "5000",
                "current_value": "5100",
                "maturity_date": "2027-06-15",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        investment = response.json()["investment"]
        assert investment["quantity"] is None
        assert investment["maturity_date"] == "2027-06-15"
        assert Decimal(investment["current_value"]) == Decimal("5100.00")

    @pytest.mark.asyncio
    async def test_quantity_without_price(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/investments",
            json={"asset_name": "Vale ON", "asset_type": "acao", "quantity": "10"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_neither_quantity_nor_amount(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/investments",
            json={"asset_name": "Vale ON", "asset_type": "acao"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_portfolio(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.post(
            "/api/v1/investments",
            json={
                "asset_name": "CDB",
                "asset_type": "renda_fixa_pos",
                "amount": "100",
                "portfolio_id": "nope",
            },
            headers=auth_headers,
        )
        assert response.status_code == 404


class TestReadInvestments:

    @pytest.mark.asyncio
    async def test_list_and_search(self, test_client, auth_headers, sample_investment):
        response = await test_client.get("/api/v1/investments", headers=auth_headers)
        assert [i["id"] for i in response.json()["investments"]] == ["inv-petr"]

        response = await test_client.get(
            "/api/v1/investments", params={"search": "PETRO"}, headers=auth_headers
        )
        assert len(response.json()["investments"]) == 1

        response = await test_client.get(
            "/api/v1/investments", params={"portfolio_id": "other"}, headers=auth_headers
        )
        assert response.json()["investments"] == []

    @pytest.mark.asyncio
    async def test_get_one(self, test_client, auth_headers, sample_investment):
        response = await test_client.get("/api/v1/investments/inv-petr", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["asset_name"] == "Petrobras PN"

    @pytest.mark.asyncio
    async def test_get_unknown(self, test_client, auth_headers):
        response = await test_client.get("/api/v1/investments/nope", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Investment not found"


class TestLedgerFlows:

    @pytest.mark.asyncio
    async def test_application(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/applications",
            json={"quantity": "50", "unit_price": "14"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        investment = response.json()["investment"]
        assert Decimal(investment["quantity"]) == Decimal("150")
        assert Decimal(investment["purchase_price"]) == Decimal("11.33333333")

    @pytest.mark.asyncio
    async def test_partial_redemption(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/redemptions",
            json={"quantity": "25"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["closed"] is False
        assert Decimal(data["investment"]["current_value"]) == Decimal("900.00")
        assert data["movements"][0]["type"] == "redemption"
        assert data["movements"][0]["investment_id"] == "inv-petr"

        response = await test_client.get("/api/v1/portfolios/pf-main", headers=auth_headers)
        assert Decimal(response.json()["total_value"]) == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_total_redemption(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/redemptions",
            json={"total": True},
            headers=auth_headers,
        )

        data = response.json()
        assert data["closed"] is True
        assert data["investment"] is None
        assert data["movements"][0]["investment_id"] is None

        response = await test_client.get("/api/v1/investments/inv-petr", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_redemption_needs_something(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/redemptions", json={}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_redeem_units_of_amount_only_position(
        self, test_client, auth_headers, sample_portfolio
    ):
        response = await test_client.post(
            "/api/v1/investments",
            json={"asset_name": "Poupança", "asset_type": "poupanca", "amount": "1000"},
            headers=auth_headers,
        )
        investment_id = response.json()["investment"]["id"]

        response = await test_client.post(
            f"/api/v1/investments/{investment_id}/redemptions",
            json={"quantity": "1"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_redeem_unknown(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/investments/nope/redemptions", json={"total": True}, headers=auth_headers
        )
        assert response.status_code == 404


class TestTransfer:

    @pytest.mark.asyncio
    async def test_move(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Dividendos"}, headers=auth_headers
        )
        target_id = response.json()["id"]

        response = await test_client.post(
            "/api/v1/investments/inv-petr/transfer",
            json={"target_portfolio_id": target_id},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["investment"]["portfolio_id"] == target_id
        assert [m["type"] for m in data["movements"]] == ["transfer_out", "transfer_in"]

    @pytest.mark.asyncio
    async def test_same_portfolio(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/transfer",
            json={"target_portfolio_id": "pf-main"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_target(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/transfer",
            json={"target_portfolio_id": "nope"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_mode(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/inv-petr/transfer",
            json={"target_portfolio_id": "pf-main", "mode": "swap"},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestMaintenance:

    @pytest.mark.asyncio
    async def test_update(self, test_client, auth_headers, sample_investment):
        response = await test_client.put(
            "/api/v1/investments/inv-petr",
            json={"quantity": "80", "purchase_price": "10", "current_price": "11"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["current_value"]) == Decimal("880.00")
        assert Decimal(data["total_invested"]) == Decimal("800.00")

    @pytest.mark.asyncio
    async def test_bulk_delete(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/bulk-delete",
            json={"ids": ["inv-petr", "nope"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"deleted": 1}

    @pytest.mark.asyncio
    async def test_bulk_delete_requires_ids(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/investments/bulk-delete", json={"ids": []}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_prices(self, test_client, auth_headers, sample_investment):
        response = await test_client.post(
            "/api/v1/investments/prices",
            json={"quotes": {"PETR4": {"price": "13.50", "volatility": "28"}}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"updated": 1, "portfolios": 1}

        response = await test_client.get("/api/v1/investments/inv-petr", headers=auth_headers)
        data = response.json()
        assert Decimal(data["current_value"]) == Decimal("1350.00")
        assert Decimal(data["volatility"]) == Decimal("28")
