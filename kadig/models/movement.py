"""
Movement model - the investment ledger.

Records every application, redemption and transfer. Movements are
append-only: they are never modified or deleted.
"""

import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kadig.database import Base, utcnow


class MovementType(enum.Enum):
    """Kind of ledger event."""

    APPLICATION = "application"  # Money put into a position
    REDEMPTION = "redemption"  # Money taken out of a position
    TRANSFER_OUT = "transfer_out"  # Position left this portfolio
    TRANSFER_IN = "transfer_in"  # Position arrived in this portfolio


class Movement(Base):
    """A single ledger entry."""

    __tablename__ = "movements"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    portfolio_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("portfolios.id", ondelete="SET NULL"), nullable=True
    )

    # NULL when the position no longer exists (total redemption)
    investment_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("investments.id", ondelete="SET NULL"), nullable=True
    )

    type: Mapped[MovementType] = mapped_column(Enum(MovementType), nullable=False)

    # Snapshot of the asset at the time of the event
    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    asset_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ticker: Mapped[str | None] = mapped_column(String(50), nullable=True)

    quantity: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    total_value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Portfolio names are denormalised so the ledger survives renames/deletes
    portfolio_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    target_portfolio_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    movement_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"Movement(id={self.id!r}, {self.type.value} {self.asset_name!r} "
            f"value={self.total_value})"
        )
