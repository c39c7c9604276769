"""Pydantic schemas for Open Finance connections."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ConnectTokenRequest(BaseModel):
    item_id: str | None = Field(None, description="Existing item, for update mode")


class ConnectTokenResponse(BaseModel):
    access_token: str


class ConnectionCreate(BaseModel):
    """Request schema for registering a connection after the widget succeeds."""

    item_id: str = Field(..., min_length=1)
    connector_id: int | None = None
    connector_name: str | None = None
    connector_image_url: str | None = None
    connector_primary_color: str | None = None
    status: str | None = None


class ConnectionResponse(BaseModel):
    id: str
    item_id: str
    connector_id: int | None
    connector_name: str | None
    connector_image_url: str | None
    connector_primary_color: str | None
    status: str | None
    last_updated_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ConnectionDetailsResponse(BaseModel):
    """Accounts and investments the aggregator holds for a connection."""

    connection: ConnectionResponse
    accounts: list[dict[str, Any]] = Field(default_factory=list)
    investments: list[dict[str, Any]] = Field(default_factory=list)


class SyncRequest(BaseModel):
    portfolio_id: str | None = Field(
        None, description="Target portfolio (defaults to the oldest one)"
    )


class SyncResultResponse(BaseModel):
    connection_id: str
    portfolio_id: str
    created: int
    updated: int
    deleted: int


class SyncAllResponse(BaseModel):
    results: list[SyncResultResponse] = Field(default_factory=list)
    orphaned: list[str] = Field(
        default_factory=list, description="Connections removed because the item vanished"
    )
    failed: list[str] = Field(default_factory=list)
