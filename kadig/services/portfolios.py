"""Portfolio service - creation, selection and denormalised totals."""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kadig import telemetry
from kadig.models import Investment, Movement, Portfolio, PortfolioHistory
from kadig.services.positions import PERCENT_STEP, ZERO, money

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_NAME = "Minha Carteira"


@dataclass
class PortfolioTotals:
    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percent: Decimal


@dataclass
class UserSummary:
    """Totals across all of a user's portfolios."""

    total_value: Decimal
    total_invested: Decimal
    total_gain: Decimal
    average_cdi_percent: Decimal
    portfolios: list[Portfolio]


def new_id() -> str:
    return str(uuid.uuid4())


async def list_portfolios(session: AsyncSession, user_id: str) -> list[Portfolio]:
    """Get the user's portfolios, newest first."""
    result = await session.execute(
        select(Portfolio)
        .where(Portfolio.user_id == user_id)
        .order_by(Portfolio.created_at.desc())
    )
    return list(result.scalars().all())


async def get_portfolio(
    session: AsyncSession, user_id: str, portfolio_id: str
) -> Portfolio | None:
    """Get a portfolio, or None if it doesn't exist or belongs to someone else."""
    result = await session.execute(
        select(Portfolio).where(Portfolio.id == portfolio_id, Portfolio.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_selected_portfolio(session: AsyncSession, user_id: str) -> Portfolio | None:
    result = await session.execute(
        select(Portfolio).where(Portfolio.user_id == user_id, Portfolio.is_selected.is_(True))
    )
    return result.scalars().first()


async def get_oldest_portfolio(session: AsyncSession, user_id: str) -> Portfolio | None:
    result = await session.execute(
        select(Portfolio)
        .where(Portfolio.user_id == user_id)
        .order_by(Portfolio.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_portfolio(
    session: AsyncSession, user_id: str, name: str, commit: bool = True
) -> Portfolio:
    """Create a portfolio.

    The user's first portfolio becomes primary and selected.

    Args:
        session: Database session
        user_id: Owner
        name: Portfolio name
        commit: Commit immediately; ledger flows pass False and commit once at the end

    Returns:
        The created portfolio
    """
    existing = await get_oldest_portfolio(session, user_id)
    is_first = existing is None

    portfolio = Portfolio(
        id=new_id(),
        user_id=user_id,
        name=name,
        total_value=Decimal("0.00"),
        total_gain=Decimal("0.00"),
        cdi_percent=Decimal("0"),
        is_primary=is_first,
        is_selected=is_first,
    )
    session.add(portfolio)

    if commit:
        await session.commit()
        await session.refresh(portfolio)
    else:
        await session.flush()

    logger.info("Portfolio %s created for user %s (%s)", portfolio.id, user_id, name)
    return portfolio


async def rename_portfolio(
    session: AsyncSession, user_id: str, portfolio_id: str, name: str
) -> Portfolio | None:
    portfolio = await get_portfolio(session, user_id, portfolio_id)
    if portfolio is None:
        return None

    portfolio.name = name
    await session.commit()
    await session.refresh(portfolio)
    return portfolio


async def select_portfolio(
    session: AsyncSession, user_id: str, portfolio_id: str
) -> Portfolio | None:
    """Mark one portfolio as selected and clear the flag on the others."""
    portfolio = await get_portfolio(session, user_id, portfolio_id)
    if portfolio is None:
        return None

    await session.execute(
        update(Portfolio)
        .where(Portfolio.user_id == user_id, Portfolio.id != portfolio_id)
        .values(is_selected=False)
    )
    portfolio.is_selected = True
    await session.commit()
    await session.refresh(portfolio)
    return portfolio


async def delete_portfolio(session: AsyncSession, user_id: str, portfolio_id: str) -> bool:
    """Delete a portfolio and its positions.

    Ledger entries are kept with their portfolio detached. When the deleted
    portfolio was primary or selected, the oldest remaining one takes over.

    Returns:
        False if the portfolio wasn't found
    """
    portfolio = await get_portfolio(session, user_id, portfolio_id)
    if portfolio is None:
        return False

    was_primary = portfolio.is_primary
    was_selected = portfolio.is_selected

    investment_ids = select(Investment.id).where(Investment.portfolio_id == portfolio_id)
    await session.execute(
        update(Movement)
        .where(Movement.investment_id.in_(investment_ids))
        .values(investment_id=None)
    )
    await session.execute(
        update(Movement).where(Movement.portfolio_id == portfolio_id).values(portfolio_id=None)
    )
    await session.execute(delete(Investment).where(Investment.portfolio_id == portfolio_id))
    await session.execute(
        delete(PortfolioHistory).where(PortfolioHistory.portfolio_id == portfolio_id)
    )
    await session.delete(portfolio)
    await session.flush()

    if was_primary or was_selected:
        successor = await get_oldest_portfolio(session, user_id)
        if successor is not None:
            if was_primary:
                successor.is_primary = True
            if was_selected:
                successor.is_selected = True

    await session.commit()
    telemetry.forget_portfolio(portfolio_id)
    logger.info("Portfolio %s deleted for user %s", portfolio_id, user_id)
    return True


async def compute_totals(session: AsyncSession, portfolio_id: str) -> PortfolioTotals:
    """Sum the portfolio's positions without touching the portfolio row."""
    result = await session.execute(
        select(Investment.current_value, Investment.total_invested).where(
            Investment.portfolio_id == portfolio_id
        )
    )
    total_value = ZERO
    total_invested = ZERO
    for current_value, invested in result.all():
        total_value += current_value
        total_invested += invested

    total_gain = total_value - total_invested
    gain_percent = ZERO
    if total_invested > 0:
        gain_percent = (total_gain / total_invested * 100).quantize(PERCENT_STEP)

    return PortfolioTotals(
        total_value=money(total_value),
        total_invested=money(total_invested),
        total_gain=money(total_gain),
        gain_percent=gain_percent,
    )


async def recalculate_totals(session: AsyncSession, portfolio: Portfolio) -> PortfolioTotals:
    """Recompute a portfolio's denormalised totals from its positions.

    Does not commit; callers commit once with the rest of their changes.
    """
    await session.flush()
    totals = await compute_totals(session, portfolio.id)

    portfolio.total_value = totals.total_value
    portfolio.total_gain = totals.total_gain
    portfolio.cdi_percent = totals.gain_percent
    return totals


async def recalculate_by_id(session: AsyncSession, portfolio_ids: set[str]) -> None:
    """Recompute totals for several portfolios by id."""
    if not portfolio_ids:
        return
    result = await session.execute(select(Portfolio).where(Portfolio.id.in_(portfolio_ids)))
    for portfolio in result.scalars().all():
        await recalculate_totals(session, portfolio)


async def get_summary(session: AsyncSession, user_id: str) -> UserSummary:
    """Totals across all the user's portfolios."""
    portfolios = await list_portfolios(session, user_id)

    total_value = sum((p.total_value for p in portfolios), ZERO)
    total_gain = sum((p.total_gain for p in portfolios), ZERO)
    average_cdi = ZERO
    if portfolios:
        average_cdi = (sum((p.cdi_percent for p in portfolios), ZERO) / len(portfolios)).quantize(
            PERCENT_STEP
        )

    for p in portfolios:
        telemetry.record_portfolio_value(p.id, float(p.total_value), float(p.total_gain))

    return UserSummary(
        total_value=money(total_value),
        total_invested=money(total_value - total_gain),
        total_gain=money(total_gain),
        average_cdi_percent=average_cdi,
        portfolios=portfolios,
    )
