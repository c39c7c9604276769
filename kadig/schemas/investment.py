"""Pydantic schemas for investment (position) endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from kadig.schemas.movement import MovementResponse


class InvestmentCreate(BaseModel):
    """Request schema for adding a position.

    Unit-priced assets send quantity and purchase_price. Assets tracked by
    amount only (fixed income, savings) send amount and optionally
    current_value.
    """

    asset_name: str = Field(..., min_length=1, max_length=255)
    asset_type: str = Field(..., min_length=1, max_length=100)
    ticker: str | None = Field(None, max_length=50)
    portfolio_id: str | None = Field(
        None, description="Target portfolio (defaults to the selected one)"
    )
    quantity: Decimal | None = Field(None, gt=0)
    purchase_price: Decimal | None = Field(None, gt=0, description="Price paid per unit")
    current_price: Decimal | None = Field(None, gt=0, description="Current quote per unit")
    amount: Decimal | None = Field(None, gt=0, description="Total amount invested")
    current_value: Decimal | None = Field(None, ge=0, description="Current value (amount-only)")
    maturity_date: date | None = None
    movement_date: date | None = None

    @model_validator(mode="after")
    def quantity_or_amount(self) -> "InvestmentCreate":
        if self.quantity is None and self.amount is None:
            raise ValueError("Provide quantity and purchase_price, or amount")
        if self.quantity is not None and self.purchase_price is None and self.amount is None:
            raise ValueError("purchase_price is required with quantity")
        return self


class InvestmentUpdate(BaseModel):
    """Request schema for correcting a position by hand."""

    quantity: Decimal = Field(..., gt=0)
    purchase_price: Decimal = Field(..., ge=0)
    current_price: Decimal | None = Field(None, gt=0)
    total_invested: Decimal | None = Field(None, ge=0)
    asset_name: str | None = Field(None, min_length=1, max_length=255)
    ticker: str | None = Field(None, max_length=50)
    maturity_date: date | None = None


class ApplicationCreate(BaseModel):
    """Request schema for adding money to a position."""

    quantity: Decimal | None = Field(None, gt=0)
    unit_price: Decimal | None = Field(None, gt=0)
    amount: Decimal | None = Field(None, gt=0, description="Cash put in")
    movement_date: date | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def quantity_or_amount(self) -> "ApplicationCreate":
        if self.quantity is None and self.amount is None:
            raise ValueError("Provide quantity or amount")
        return self


class RedemptionCreate(BaseModel):
    """Request schema for taking money out of a position."""

    total: bool = Field(False, description="Redeem the whole position")
    quantity: Decimal | None = Field(None, gt=0, description="Units to redeem")
    amount: Decimal | None = Field(None, gt=0, description="Gross cash received")
    movement_date: date | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def something_to_redeem(self) -> "RedemptionCreate":
        if not self.total and self.quantity is None and self.amount is None:
            raise ValueError("Provide quantity or amount, or set total")
        return self


class TransferRequest(BaseModel):
    """Request schema for moving or copying a position to another portfolio."""

    target_portfolio_id: str
    mode: Literal["move", "copy"] = "move"
    movement_date: date | None = None


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted: int


class PriceQuote(BaseModel):
    """A market quote for one ticker."""

    price: Decimal = Field(..., gt=0)
    volatility: Decimal | None = Field(None, ge=0, description="Annualised, in percent")


class PriceUpdateRequest(BaseModel):
    quotes: dict[str, PriceQuote] = Field(..., description="Quotes keyed by ticker")


class PriceUpdateResponse(BaseModel):
    updated: int = Field(..., description="Positions revalued")
    portfolios: int = Field(..., description="Portfolios whose totals were recomputed")


class InvestmentResponse(BaseModel):
    """Response schema for a position."""

    id: str
    portfolio_id: str
    asset_name: str
    asset_type: str
    ticker: str | None
    quantity: Decimal | None
    purchase_price: Decimal | None
    current_price: Decimal | None
    total_invested: Decimal
    current_value: Decimal
    gain_percent: Decimal
    volatility: Decimal | None
    source: str
    maturity_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvestmentListResponse(BaseModel):
    investments: list[InvestmentResponse] = Field(default_factory=list)


class LedgerResponse(BaseModel):
    """Result of a ledger flow: the position after the event and its movements."""

    investment: InvestmentResponse | None = Field(
        None, description="None when the position was closed"
    )
    movements: list[MovementResponse] = Field(default_factory=list)
    closed: bool = False
