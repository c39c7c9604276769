"""
PortfolioHistory model - one snapshot per portfolio per day.

Written by the snapshot job, read by historical-return analytics.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kadig.database import Base, utcnow


class PortfolioHistory(Base):
    """Daily portfolio snapshot."""

    __tablename__ = "portfolio_history"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    portfolio_id: Mapped[str] = mapped_column(
        String, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False
    )

    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    total_invested: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    total_gain: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    gain_percent: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)

    # Benchmarks accumulated over the previous 12 months, in percent
    cdi_accumulated: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)
    ipca_accumulated: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("portfolio_id", "snapshot_date", name="uq_history_portfolio_date"),
    )

    def __repr__(self) -> str:
        return (
            f"PortfolioHistory(portfolio={self.portfolio_id!r}, "
            f"date={self.snapshot_date}, total_value={self.total_value})"
        )
