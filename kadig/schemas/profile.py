"""Pydantic schemas for onboarding profile endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ProfileCreate(BaseModel):
    """Request schema for completing onboarding."""

    full_name: str = Field(..., max_length=255, description="User's full name")
    experience: Literal["beginner", "intermediate", "advanced"] | None = Field(
        None, description="Investing experience"
    )
    risk_tolerance: Literal["conservative", "moderate", "aggressive"] = Field(
        ..., description="Appetite for risk"
    )

    @field_validator("full_name")
    @classmethod
    def name_has_two_chars(cls, v: str) -> str:
        """Names shorter than two characters are rejected."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("full_name must have at least 2 characters")
        return v


class ProfileResponse(BaseModel):
    """Response schema for a profile."""

    user_id: str
    full_name: str
    experience: str | None
    risk_tolerance: str
    investor_profile: str = Field(..., description="Display label, e.g. Moderado")
    created_at: datetime

    model_config = {"from_attributes": True}
