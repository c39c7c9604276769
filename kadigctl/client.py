"""HTTP client for the Kadig API."""

from typing import Any

import httpx


class APIError(Exception):
    """API request error."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


def _drop_none(params: dict) -> dict:
    return {k: v for k, v in params.items() if v is not None}


class KadigClient:
    """Client for the Kadig API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make an HTTP request."""
        headers = kwargs.pop("headers", {})
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if "params" in kwargs:
            kwargs["params"] = _drop_none(kwargs["params"])

        with httpx.Client(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            response = client.request(method, path, headers=headers, **kwargs)

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
            raise APIError(response.status_code, str(detail))

        if response.status_code == 204:
            return None
        return response.json()

    def health(self) -> dict:
        return self._request("GET", "/health")

    def version(self) -> dict:
        return self._request("GET", "/api/version")

    # Admin endpoints
    def create_user(self, user_id: str) -> dict:
        """Create a user and return its API key (shown once)."""
        return self._request("POST", "/admin/users", json={"user_id": user_id})

    def list_users(self) -> list[dict]:
        return self._request("GET", "/admin/users")

    def run_snapshots(self) -> dict:
        """Snapshot every portfolio for today."""
        return self._request("POST", "/admin/snapshots")

    # Profile endpoints
    def create_profile(self, **fields) -> dict:
        return self._request("POST", "/api/v1/profile", json=_drop_none(fields))

    def get_profile(self) -> dict:
        return self._request("GET", "/api/v1/profile")

    # Portfolio endpoints
    def list_portfolios(self) -> list[dict]:
        return self._request("GET", "/api/v1/portfolios")

    def create_portfolio(self, name: str) -> dict:
        return self._request("POST", "/api/v1/portfolios", json={"name": name})

    def rename_portfolio(self, portfolio_id: str, name: str) -> dict:
        return self._request("PATCH", f"/api/v1/portfolios/{portfolio_id}", json={"name": name})

    def select_portfolio(self, portfolio_id: str) -> dict:
        return self._request("POST", f"/api/v1/portfolios/{portfolio_id}/select")

    def delete_portfolio(self, portfolio_id: str) -> None:
        return self._request("DELETE", f"/api/v1/portfolios/{portfolio_id}")

    def portfolio_summary(self) -> dict:
        """Totals across all portfolios."""
        return self._request("GET", "/api/v1/portfolios/summary")

    def portfolio_history(self, portfolio_id: str, since: str | None = None) -> list[dict]:
        return self._request(
            "GET", f"/api/v1/portfolios/{portfolio_id}/history", params={"since": since}
        )

    # Investment endpoints
    def list_investments(
        self, portfolio_id: str | None = None, search: str | None = None
    ) -> list[dict]:
        response = self._request(
            "GET",
            "/api/v1/investments",
            params={"portfolio_id": portfolio_id, "search": search},
        )
        return response["investments"]

    def get_investment(self, investment_id: str) -> dict:
        return self._request("GET", f"/api/v1/investments/{investment_id}")

    def create_investment(self, **fields) -> dict:
        """Open a position. Returns the position and its initial movement."""
        return self._request("POST", "/api/v1/investments", json=_drop_none(fields))

    def add_application(self, investment_id: str, **fields) -> dict:
        return self._request(
            "POST",
            f"/api/v1/investments/{investment_id}/applications",
            json=_drop_none(fields),
        )

    def add_redemption(self, investment_id: str, **fields) -> dict:
        return self._request(
            "POST",
            f"/api/v1/investments/{investment_id}/redemptions",
            json=_drop_none(fields),
        )

    def transfer_investment(self, investment_id: str, target_portfolio_id: str, mode: str) -> dict:
        return self._request(
            "POST",
            f"/api/v1/investments/{investment_id}/transfer",
            json={"target_portfolio_id": target_portfolio_id, "mode": mode},
        )

    def delete_investments(self, ids: list[str]) -> dict:
        return self._request("POST", "/api/v1/investments/bulk-delete", json={"ids": ids})

    def update_prices(self, quotes: dict[str, dict]) -> dict:
        """Revalue positions from quotes keyed by ticker."""
        return self._request("POST", "/api/v1/investments/prices", json={"quotes": quotes})

    # Movement endpoints
    def list_movements(
        self,
        portfolio_id: str | None = None,
        movement_type: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict]:
        return self._request(
            "GET",
            "/api/v1/movements",
            params={
                "portfolio_id": portfolio_id,
                "type": movement_type,
                "limit": limit,
                "offset": offset,
            },
        )

    # Analytics endpoints
    def analytics(self, report: str, portfolio_id: str | None = None, **params) -> dict:
        """Fetch one analytics report (risk-return, projection, ...)."""
        return self._request(
            "GET",
            f"/api/v1/analytics/{report}",
            params={"portfolio_id": portfolio_id, **params},
        )

    # Connection endpoints
    def list_connections(self) -> list[dict]:
        return self._request("GET", "/api/v1/connections")

    def sync_connections(self) -> dict:
        return self._request("POST", "/api/v1/connections/sync")

    def sync_connection(self, connection_id: str, portfolio_id: str | None = None) -> dict:
        kwargs = {"json": {"portfolio_id": portfolio_id}} if portfolio_id else {}
        return self._request("POST", f"/api/v1/connections/{connection_id}/sync", **kwargs)

    def refresh_connection(self, connection_id: str) -> dict:
        return self._request("POST", f"/api/v1/connections/{connection_id}/refresh")

    def disconnect(self, connection_id: str) -> None:
        return self._request("DELETE", f"/api/v1/connections/{connection_id}")

    # Notification endpoints
    def list_notifications(self, unread: bool = False) -> list[dict]:
        return self._request("GET", "/api/v1/notifications", params={"unread": unread})

    def mark_read(self, notification_id: str) -> dict:
        return self._request("POST", f"/api/v1/notifications/{notification_id}/read")
