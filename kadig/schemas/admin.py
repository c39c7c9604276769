"""Pydantic schemas for admin endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request schema for creating a user."""

    user_id: str = Field(..., min_length=1, max_length=255, description="Unique user ID")


class UserResponse(BaseModel):
    """Response schema for a newly created user (includes API key)."""

    user_id: str
    api_key: str
    created_at: datetime


class UserListItem(BaseModel):
    """Response schema for a user in list view."""

    user_id: str
    created_at: datetime


class SnapshotRunResponse(BaseModel):
    """Outcome of a snapshot run."""

    processed: int = Field(..., description="Portfolios snapshotted")
    errors: int = Field(..., description="Portfolios that failed")
    snapshot_date: str
