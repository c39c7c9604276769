"""Async HTTP client for the Pluggy Open Finance aggregator."""

import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PLUGGY_API_URL = os.getenv("PLUGGY_API_URL", "https://api.pluggy.ai")


class PluggyError(Exception):
    """Aggregator request error."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Pluggy HTTP {status_code}: {detail}")


class ItemNotFoundError(PluggyError):
    """The aggregator no longer knows the item (connection was removed remotely)."""

    def __init__(self, item_id: str, detail: str = "Item not found"):
        self.item_id = item_id
        super().__init__(404, detail)


class PluggyClient:
    """Client for the Pluggy REST API.

    Authenticates lazily with the client credentials and reuses the API key
    for the lifetime of the client.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.client_id = client_id if client_id is not None else os.getenv("PLUGGY_CLIENT_ID")
        self.client_secret = (
            client_secret if client_secret is not None else os.getenv("PLUGGY_CLIENT_SECRET")
        )
        self.base_url = (base_url or PLUGGY_API_URL).rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._api_key: str | None = None

    async def __aenter__(self) -> "PluggyClient":
        """Enter async context."""
        self._client = self._new_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""
        await self.aclose()

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self._timeout, transport=self._transport
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating one if needed."""
        if self._client is None:
            self._client = self._new_client()
        return self._client

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return body.get("message") or body.get("detail") or response.text
        return response.text

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, turning transport failures into PluggyError(502)."""
        try:
            return await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Pluggy %s %s unreachable: %s", method, path, e)
            raise PluggyError(502, f"Aggregator unreachable: {e}") from e

    async def authenticate(self) -> str:
        """Exchange the client credentials for an API key."""
        if not self.client_id or not self.client_secret:
            raise PluggyError(500, "Pluggy credentials not configured")

        response = await self._send(
            "POST", "/auth", json={"clientId": self.client_id, "clientSecret": self.client_secret}
        )
        if response.status_code >= 400:
            detail = self._detail(response)
            logger.error("Pluggy authentication failed: %s", detail)
            raise PluggyError(response.status_code, detail)

        self._api_key = response.json()["apiKey"]
        return self._api_key

    async def _request(
        self, method: str, path: str, item_id: str | None = None, **kwargs
    ) -> Any:
        """Make an authenticated request.

        A 404 on an item-scoped call raises ItemNotFoundError.
        """
        if self._api_key is None:
            await self.authenticate()

        headers = kwargs.pop("headers", {})
        headers["X-API-KEY"] = self._api_key
        response = await self._send(method, path, headers=headers, **kwargs)

        if response.status_code >= 400:
            detail = self._detail(response)
            if response.status_code == 404 and item_id is not None:
                raise ItemNotFoundError(item_id, detail)
            logger.warning("Pluggy %s %s failed: %s %s", method, path, response.status_code, detail)
            raise PluggyError(response.status_code, detail)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def create_connect_token(self, item_id: str | None = None) -> dict:
        """Create a token for the Connect widget (update mode when item_id is given)."""
        body = {"itemId": item_id} if item_id else {}
        return await self._request("POST", "/connect_token", json=body)

    async def list_items(self) -> list[dict]:
        data = await self._request("GET", "/items")
        return data.get("results", []) if data else []

    async def get_item(self, item_id: str) -> dict:
        return await self._request("GET", f"/items/{item_id}", item_id=item_id)

    async def get_accounts(self, item_id: str) -> list[dict]:
        data = await self._request(
            "GET", "/accounts", item_id=item_id, params={"itemId": item_id}
        )
        return data.get("results", []) if data else []

    async def get_investments(self, item_id: str) -> list[dict]:
        data = await self._request(
            "GET", "/investments", item_id=item_id, params={"itemId": item_id}
        )
        return data.get("results", []) if data else []

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", f"/items/{item_id}", item_id=item_id)


async def get_pluggy_client() -> PluggyClient:
    """Dependency that provides an aggregator client, closed after the request.

    Overridden in tests with a client on an httpx.MockTransport.
    """
    async with PluggyClient() as client:
        yield client
