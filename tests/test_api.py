"""
Tests for FastAPI endpoints.
"""

import pytest

from kadig._version import VERSION


@pytest.mark.asyncio
async def test_health_endpoint(test_client):
    """Test that /health returns status ok."""
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_version_endpoint(test_client):
    """Test that /api/version returns version information."""
    response = await test_client.get("/api/version")

    assert response.status_code == 200
    data = response.json()
    assert data["version"] == VERSION
    assert data["api_version"] == "v1"
    assert data["min_client_version"] == "0.1.0"


# ============================================================================
# Authentication
# ============================================================================


@pytest.mark.asyncio
async def test_missing_api_key(test_client):
    response = await test_client.get("/api/v1/portfolios")

    assert response.status_code == 401
    assert response.json()["detail"] == "Missing API key"


@pytest.mark.asyncio
async def test_invalid_api_key(test_client, user_with_key):
    response = await test_client.get(
        "/api/v1/portfolios", headers={"X-API-Key": "sk_not-a-real-key"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid API key"


@pytest.mark.asyncio
async def test_valid_api_key(test_client, auth_headers):
    response = await test_client.get("/api/v1/portfolios", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == []
