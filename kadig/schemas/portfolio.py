"""Pydantic schemas for portfolio endpoints."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class PortfolioCreate(BaseModel):
    """Request schema for creating a portfolio."""

    name: str = Field(..., min_length=1, max_length=255, description="Portfolio name")


class PortfolioUpdate(BaseModel):
    """Request schema for renaming a portfolio."""

    name: str = Field(..., min_length=1, max_length=255, description="New name")


class PortfolioResponse(BaseModel):
    """Response schema for portfolio data."""

    id: str
    name: str
    total_value: Decimal = Field(..., description="Market value of all positions")
    total_gain: Decimal = Field(..., description="Value minus amount invested")
    cdi_percent: Decimal = Field(..., description="Return on invested capital, in percent")
    is_primary: bool
    is_selected: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PortfolioSummaryResponse(BaseModel):
    """Totals across all of a user's portfolios."""

    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    average_cdi_percent: Decimal = Field(
        ..., description="Mean return percent across portfolios"
    )
    portfolio_count: int
    portfolios: list[PortfolioResponse] = Field(default_factory=list)


class HistoryPointResponse(BaseModel):
    """One daily snapshot."""

    portfolio_id: str
    snapshot_date: date
    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    cdi_accumulated: Decimal | None = None
    ipca_accumulated: Decimal | None = None

    model_config = {"from_attributes": True}
