"""
Portfolio model - a named grouping of positions.

Totals are denormalised: they are recomputed from the portfolio's
investments after every mutation (see services.portfolios.recalculate_totals).
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kadig.database import Base, utcnow


class Portfolio(Base):
    """A user's portfolio."""

    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Sum of current_value over the portfolio's investments
    total_value: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # total_value - sum(total_invested)
    total_gain: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # Return on invested capital, in percent
    cdi_percent: Mapped[Decimal] = mapped_column(
        Numeric(12, 4), nullable=False, default=Decimal("0")
    )

    # The user's first portfolio
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Exactly one portfolio per user is selected
    is_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="portfolios")
    investments: Mapped[list["Investment"]] = relationship(
        back_populates="portfolio", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"Portfolio(id={self.id!r}, name={self.name!r}, total_value={self.total_value})"


from kadig.models.investment import Investment
from kadig.models.user import User
