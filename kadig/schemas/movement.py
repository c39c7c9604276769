"""Pydantic schemas for the movement ledger."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel

from kadig.models import MovementType


class MovementResponse(BaseModel):
    """Response schema for a ledger entry."""

    id: str
    portfolio_id: str | None
    investment_id: str | None
    type: MovementType
    asset_name: str
    asset_type: str | None
    ticker: str | None
    quantity: Decimal | None
    unit_price: Decimal | None
    total_value: Decimal
    portfolio_name: str | None
    target_portfolio_name: str | None
    notes: str | None
    movement_date: date
    created_at: datetime

    model_config = {"from_attributes": True}
