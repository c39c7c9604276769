"""Tests for portfolio API endpoints."""

from datetime import date
from decimal import Decimal

import pytest

from kadig import telemetry
from kadig.models import Movement, MovementType, PortfolioHistory


class TestCreatePortfolio:
    """Tests for POST /api/v1/portfolios."""

    @pytest.mark.asyncio
    async def test_first_is_primary_and_selected(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Aposentadoria"}, headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Aposentadoria"
        assert data["is_primary"] is True
        assert data["is_selected"] is True
        assert Decimal(data["total_value"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_second_is_neither(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Cripto"}, headers=auth_headers
        )

        data = response.json()
        assert data["is_primary"] is False
        assert data["is_selected"] is False

    @pytest.mark.asyncio
    async def test_empty_name(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": ""}, headers=auth_headers
        )
        assert response.status_code == 422


class TestReadPortfolios:

    @pytest.mark.asyncio
    async def test_list_newest_first(self, test_client, auth_headers, sample_portfolio):
        await test_client.post("/api/v1/portfolios", json={"name": "Nova"}, headers=auth_headers)

        response = await test_client.get("/api/v1/portfolios", headers=auth_headers)

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Nova", "Principal"]

    @pytest.mark.asyncio
    async def test_get_one(self, test_client, auth_headers, sample_investment):
        response = await test_client.get("/api/v1/portfolios/pf-main", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_value"] == "1200.00"
        assert data["total_gain"] == "200.00"

    @pytest.mark.asyncio
    async def test_get_unknown(self, test_client, auth_headers):
        response = await test_client.get("/api/v1/portfolios/nope", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Portfolio not found"

    @pytest.mark.asyncio
    async def test_other_users_portfolio(self, test_client, sample_portfolio):
        """A portfolio belonging to someone else is reported as not found."""
        response = await test_client.post("/admin/users", json={"user_id": "intruder"})
        headers = {"X-API-Key": response.json()["api_key"]}

        response = await test_client.get("/api/v1/portfolios/pf-main", headers=headers)
        assert response.status_code == 404


class TestSummary:
    """Tests for GET /api/v1/portfolios/summary."""

    @pytest.mark.asyncio
    async def test_no_portfolios(self, test_client, auth_headers):
        response = await test_client.get("/api/v1/portfolios/summary", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_value"]) == Decimal("0")
        assert data["portfolio_count"] == 0
        assert data["portfolios"] == []

    @pytest.mark.asyncio
    async def test_with_positions(self, test_client, auth_headers, sample_investment):
        response = await test_client.get("/api/v1/portfolios/summary", headers=auth_headers)

        data = response.json()
        assert Decimal(data["total_value"]) == Decimal("1200.00")
        assert Decimal(data["total_invested"]) == Decimal("1000.00")
        assert Decimal(data["total_gain"]) == Decimal("200.00")
        assert Decimal(data["average_cdi_percent"]) == Decimal("20")
        assert data["portfolio_count"] == 1


class TestModifyPortfolio:

    @pytest.mark.asyncio
    async def test_rename(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.patch(
            "/api/v1/portfolios/pf-main", json={"name": "Longo Prazo"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Longo Prazo"

    @pytest.mark.asyncio
    async def test_select(self, test_client, auth_headers, sample_portfolio):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Outra"}, headers=auth_headers
        )
        other_id = response.json()["id"]

        response = await test_client.post(
            f"/api/v1/portfolios/{other_id}/select", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["is_selected"] is True

        response = await test_client.get("/api/v1/portfolios", headers=auth_headers)
        selected = [p["id"] for p in response.json() if p["is_selected"]]
        assert selected == [other_id]

    @pytest.mark.asyncio
    async def test_select_unknown(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/portfolios/nope/select", headers=auth_headers
        )
        assert response.status_code == 404


class TestDeletePortfolio:

    @pytest.mark.asyncio
    async def test_deletes_positions_and_keeps_movements(
        self, test_client, test_session, auth_headers, sample_investment
    ):
        test_session.add(
            Movement(
                id="mov-1",
                user_id="investor1",
                portfolio_id="pf-main",
                investment_id=sample_investment.id,
                type=MovementType.APPLICATION,
                asset_name="Petrobras PN",
                total_value=Decimal("1000.00"),
                portfolio_name="Principal",
                movement_date=date(2024, 1, 2),
            )
        )
        await test_session.commit()

        response = await test_client.delete("/api/v1/portfolios/pf-main", headers=auth_headers)
        assert response.status_code == 204

        response = await test_client.get("/api/v1/investments", headers=auth_headers)
        assert response.json()["investments"] == []

        response = await test_client.get("/api/v1/movements", headers=auth_headers)
        [movement] = response.json()
        assert movement["investment_id"] is None
        assert movement["portfolio_id"] is None
        assert movement["portfolio_name"] == "Principal"

    @pytest.mark.asyncio
    async def test_successor_becomes_primary_and_selected(
        self, test_client, auth_headers, sample_portfolio
    ):
        response = await test_client.post(
            "/api/v1/portfolios", json={"name": "Reserva"}, headers=auth_headers
        )
        successor_id = response.json()["id"]

        await test_client.delete("/api/v1/portfolios/pf-main", headers=auth_headers)

        response = await test_client.get(
            f"/api/v1/portfolios/{successor_id}", headers=auth_headers
        )
        data = response.json()
        assert data["is_primary"] is True
        assert data["is_selected"] is True

    @pytest.mark.asyncio
    async def test_delete_drops_portfolio_gauges(
        self, monkeypatch, test_client, auth_headers, sample_portfolio
    ):
        monkeypatch.setitem(telemetry._portfolio_values, "pf-main", 1200.0)
        monkeypatch.setitem(telemetry._portfolio_gains, "pf-main", 200.0)

        response = await test_client.delete("/api/v1/portfolios/pf-main", headers=auth_headers)

        assert response.status_code == 204
        assert "pf-main" not in telemetry._portfolio_values
        assert "pf-main" not in telemetry._portfolio_gains

    @pytest.mark.asyncio
    async def test_delete_unknown(self, test_client, auth_headers):
        response = await test_client.delete("/api/v1/portfolios/nope", headers=auth_headers)
        assert response.status_code == 404


class TestHistory:
    """Tests for GET /api/v1/portfolios/{id}/history."""

    @pytest.mark.asyncio
    async def test_snapshots_oldest_first(
        self, test_client, test_session, auth_headers, sample_portfolio
    ):
        for day, value in [(date(2024, 2, 1), "1100.00"), (date(2024, 1, 1), "1000.00")]:
            test_session.add(
                PortfolioHistory(
                    id=f"h-{day.isoformat()}",
                    user_id="investor1",
                    portfolio_id="pf-main",
                    snapshot_date=day,
                    total_value=Decimal(value),
                    total_invested=Decimal("1000.00"),
                    total_gain=Decimal(value) - Decimal("1000.00"),
                    gain_percent=Decimal("0"),
                )
            )
        await test_session.commit()

        response = await test_client.get(
            "/api/v1/portfolios/pf-main/history", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert [p["snapshot_date"] for p in data] == ["2024-01-01", "2024-02-01"]
        assert data[1]["total_value"] == "1100.00"

        response = await test_client.get(
            "/api/v1/portfolios/pf-main/history",
            params={"since": "2024-01-15"},
            headers=auth_headers,
        )
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_unknown_portfolio(self, test_client, auth_headers):
        response = await test_client.get(
            "/api/v1/portfolios/nope/history", headers=auth_headers
        )
        assert response.status_code == 404
