"""History service - daily portfolio snapshots."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kadig import telemetry
from kadig.clients.bcb import Indicators
from kadig.models import Portfolio, PortfolioHistory
from kadig.services import portfolios as portfolio_service
from kadig.services.portfolios import new_id

logger = logging.getLogger(__name__)


@dataclass
class SnapshotRun:
    processed: int
    errors: int
    snapshot_date: date


@dataclass
class HistoryPoint:
    """Value of all the user's portfolios on one day."""

    snapshot_date: date
    total_value: Decimal
    total_invested: Decimal


async def snapshot_portfolio(
    session: AsyncSession,
    portfolio: Portfolio,
    snapshot_date: date,
    indicators: Indicators | None = None,
) -> PortfolioHistory:
    """Recompute a portfolio's totals and upsert its snapshot for the day."""
    totals = await portfolio_service.recalculate_totals(session, portfolio)

    result = await session.execute(
        select(PortfolioHistory).where(
            PortfolioHistory.portfolio_id == portfolio.id,
            PortfolioHistory.snapshot_date == snapshot_date,
        )
    )
    snapshot = result.scalar_one_or_none()
    if snapshot is None:
        snapshot = PortfolioHistory(
            id=new_id(),
            user_id=portfolio.user_id,
            portfolio_id=portfolio.id,
            snapshot_date=snapshot_date,
        )
        session.add(snapshot)

    snapshot.total_value = totals.total_value
    snapshot.total_invested = totals.total_invested
    snapshot.total_gain = totals.total_gain
    snapshot.gain_percent = totals.gain_percent
    if indicators is not None:
        snapshot.cdi_accumulated = Decimal(str(round(indicators.cdi_12m, 4)))
        snapshot.ipca_accumulated = Decimal(str(round(indicators.ipca_12m, 4)))
    return snapshot


async def take_snapshots(
    session: AsyncSession,
    indicators: Indicators | None = None,
    snapshot_date: date | None = None,
    user_id: str | None = None,
) -> SnapshotRun:
    """Snapshot every portfolio (or every portfolio of one user).

    Each portfolio commits on its own; one failing is logged and counted
    without stopping the rest.
    """
    snapshot_date = snapshot_date or date.today()

    query = select(Portfolio.id).order_by(Portfolio.created_at)
    if user_id is not None:
        query = query.where(Portfolio.user_id == user_id)
    portfolio_ids = list((await session.execute(query)).scalars().all())

    processed = 0
    errors = 0
    for portfolio_id in portfolio_ids:
        try:
            portfolio = await session.get(Portfolio, portfolio_id)
            if portfolio is None:
                continue
            await snapshot_portfolio(session, portfolio, snapshot_date, indicators)
            await session.commit()
            processed += 1
        except Exception:
            await session.rollback()
            errors += 1
            logger.exception("Snapshot failed for portfolio %s", portfolio_id)

    telemetry.record_snapshots(processed, errors)
    logger.info(
        "Snapshot %s complete: %d processed, %d errors", snapshot_date, processed, errors
    )
    return SnapshotRun(processed=processed, errors=errors, snapshot_date=snapshot_date)


async def get_history(
    session: AsyncSession,
    user_id: str,
    portfolio_id: str | None = None,
    since: date | None = None,
) -> list[PortfolioHistory]:
    """Get snapshots oldest first, for one portfolio or all of the user's."""
    query = select(PortfolioHistory).where(PortfolioHistory.user_id == user_id)
    if portfolio_id is not None:
        query = query.where(PortfolioHistory.portfolio_id == portfolio_id)
    if since is not None:
        query = query.where(PortfolioHistory.snapshot_date >= since)

    result = await session.execute(
        query.order_by(PortfolioHistory.snapshot_date, PortfolioHistory.portfolio_id)
    )
    return list(result.scalars().all())


async def get_value_series(
    session: AsyncSession,
    user_id: str,
    portfolio_id: str | None = None,
    since: date | None = None,
) -> list[HistoryPoint]:
    """Snapshot values summed per day, oldest first. Defaults to the last year."""
    if since is None:
        since = date.today() - timedelta(days=365)

    points: dict[date, HistoryPoint] = {}
    for row in await get_history(session, user_id, portfolio_id, since):
        point = points.get(row.snapshot_date)
        if point is None:
            points[row.snapshot_date] = HistoryPoint(
                snapshot_date=row.snapshot_date,
                total_value=row.total_value,
                total_invested=row.total_invested,
            )
        else:
            point.total_value += row.total_value
            point.total_invested += row.total_invested

    return [points[day] for day in sorted(points)]
