"""
Investment model - a single position held in a portfolio.

Positions are created manually or imported from Pluggy. A position whose
quantity or value reaches zero is deleted, never stored at zero.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kadig.database import Base, utcnow

SOURCE_MANUAL = "manual"
SOURCE_PLUGGY = "pluggy"


class Investment(Base):
    """A holding with quantity, cost basis and current value."""

    __tablename__ = "investments"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Owning portfolio
    portfolio_id: Mapped[str] = mapped_column(
        String, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True
    )

    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    asset_type: Mapped[str] = mapped_column(String(100), nullable=False)
    ticker: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # NULL for assets tracked by amount only (fixed income, savings)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    # Average price paid per unit
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    # Last known market price per unit
    current_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    # Cost basis
    total_invested: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # Market value
    current_value: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    gain_percent: Mapped[Decimal] = mapped_column(
        Numeric(12, 4), nullable=False, default=Decimal("0")
    )

    # Annualised volatility in percent, from the last quote batch
    volatility: Mapped[Decimal | None] = mapped_column(Numeric(8, 4), nullable=True)

    # "manual" or "pluggy"
    source: Mapped[str] = mapped_column(String(20), nullable=False, default=SOURCE_MANUAL)

    # Aggregator identifiers for imported positions
    pluggy_investment_id: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True
    )
    pluggy_item_id: Mapped[str | None] = mapped_column(String, nullable=True)

    maturity_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    portfolio: Mapped["Portfolio"] = relationship(back_populates="investments")

    # Database constraints
    __table_args__ = (
        CheckConstraint("quantity IS NULL OR quantity > 0", name="check_quantity_positive"),
        CheckConstraint("current_value >= 0", name="check_value_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"Investment(id={self.id!r}, asset={self.asset_name!r}, "
            f"quantity={self.quantity}, current_value={self.current_value})"
        )


from kadig.models.portfolio import Portfolio
