"""Investment service - positions and the movement ledger.

Each flow loads the rows it needs, runs the position arithmetic, appends
the ledger entries, recomputes the affected portfolio totals and commits
once, so a failure leaves nothing half-written.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kadig import telemetry
from kadig.models import SOURCE_MANUAL, Investment, Movement, MovementType, Portfolio
from kadig.schemas.investment import (
    ApplicationCreate,
    InvestmentCreate,
    InvestmentUpdate,
    PriceQuote,
    RedemptionCreate,
    TransferRequest,
)
from kadig.services import portfolios as portfolio_service
from kadig.services.analytics import AssetSnapshot
from kadig.services.portfolios import new_id
from kadig.services.positions import (
    PositionState,
    apply_application,
    apply_redemption,
    edit_position,
    open_amount_position,
    open_position,
    revalue,
)

logger = logging.getLogger(__name__)


@dataclass
class LedgerResult:
    """A position after a ledger event and the movements that recorded it."""

    investment: Investment | None
    movements: list[Movement] = field(default_factory=list)
    closed: bool = False


def position_state(investment: Investment) -> PositionState:
    return PositionState(
        quantity=investment.quantity,
        purchase_price=investment.purchase_price,
        current_price=investment.current_price,
        total_invested=investment.total_invested,
        current_value=investment.current_value,
        gain_percent=investment.gain_percent,
    )


def _store_state(investment: Investment, state: PositionState) -> None:
    investment.quantity = state.quantity
    investment.purchase_price = state.purchase_price
    investment.current_price = state.current_price
    investment.total_invested = state.total_invested
    investment.current_value = state.current_value
    investment.gain_percent = state.gain_percent


def _record_movement(
    session: AsyncSession,
    user_id: str,
    movement_type: MovementType,
    investment: Investment,
    portfolio: Portfolio,
    total_value: Decimal,
    quantity: Decimal | None = None,
    unit_price: Decimal | None = None,
    movement_date: date | None = None,
    notes: str | None = None,
    target_portfolio: Portfolio | None = None,
    linked: bool = True,
) -> Movement:
    """Append a ledger entry. linked=False leaves investment_id empty."""
    movement = Movement(
        id=new_id(),
        user_id=user_id,
        portfolio_id=portfolio.id,
        investment_id=investment.id if linked else None,
        type=movement_type,
        asset_name=investment.asset_name,
        asset_type=investment.asset_type,
        ticker=investment.ticker,
        quantity=quantity,
        unit_price=unit_price,
        total_value=total_value,
        portfolio_name=portfolio.name,
        target_portfolio_name=target_portfolio.name if target_portfolio else None,
        notes=notes,
        movement_date=movement_date or date.today(),
    )
    session.add(movement)
    telemetry.record_movement(movement_type.value, total_value)
    logger.info(
        "%s of %s on %r (%s) by user %s",
        movement_type.value,
        total_value,
        investment.asset_name,
        portfolio.name,
        user_id,
    )
    return movement


async def delete_positions(session: AsyncSession, investment_ids: list[str]) -> None:
    """Delete positions, detaching the ledger entries that pointed at them."""
    await session.execute(
        update(Movement)
        .where(Movement.investment_id.in_(investment_ids))
        .values(investment_id=None)
    )
    await session.execute(delete(Investment).where(Investment.id.in_(investment_ids)))


async def _commit_and_refresh(session: AsyncSession, *rows) -> None:
    await session.commit()
    for row in rows:
        if row is not None:
            await session.refresh(row)


async def get_investment(
    session: AsyncSession, user_id: str, investment_id: str
) -> Investment | None:
    """Get a position, or None if it doesn't exist or belongs to someone else."""
    result = await session.execute(
        select(Investment).where(Investment.id == investment_id, Investment.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def list_investments(
    session: AsyncSession,
    user_id: str,
    portfolio_id: str | None = None,
    search: str | None = None,
) -> list[Investment]:
    """Get the user's positions, largest first.

    Args:
        session: Database session
        user_id: Owner
        portfolio_id: Only positions in this portfolio
        search: Case-insensitive match on asset name or ticker
    """
    query = select(Investment).where(Investment.user_id == user_id)
    if portfolio_id is not None:
        query = query.where(Investment.portfolio_id == portfolio_id)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                Investment.asset_name.ilike(pattern),
                Investment.ticker.ilike(pattern),
            )
        )
    result = await session.execute(
        query.order_by(Investment.current_value.desc(), Investment.created_at)
    )
    return list(result.scalars().all())


async def create_investment(
    session: AsyncSession, user_id: str, data: InvestmentCreate
) -> LedgerResult | None:
    """Add a position and record the initial application.

    Without a portfolio_id the position goes to the selected portfolio; a
    user with no portfolio gets one named "Minha Carteira".

    Returns:
        None if the requested portfolio wasn't found

    Raises:
        ValueError: If the figures don't describe a valid position
    """
    if data.portfolio_id is not None:
        portfolio = await portfolio_service.get_portfolio(session, user_id, data.portfolio_id)
        if portfolio is None:
            return None
    else:
        portfolio = await portfolio_service.get_selected_portfolio(session, user_id)
        if portfolio is None:
            portfolio = await portfolio_service.get_oldest_portfolio(session, user_id)
        if portfolio is None:
            portfolio = await portfolio_service.create_portfolio(
                session, user_id, portfolio_service.DEFAULT_PORTFOLIO_NAME, commit=False
            )

    if data.quantity is not None:
        purchase_price = data.purchase_price or data.amount / data.quantity
        state = open_position(
            data.quantity,
            purchase_price,
            market_price=data.current_price,
            total_invested=data.amount,
        )
    else:
        state = open_amount_position(data.amount, data.current_value)

    investment = Investment(
        id=new_id(),
        user_id=user_id,
        portfolio_id=portfolio.id,
        asset_name=data.asset_name,
        asset_type=data.asset_type,
        ticker=data.ticker.upper() if data.ticker else None,
        maturity_date=data.maturity_date,
        source=SOURCE_MANUAL,
    )
    _store_state(investment, state)
    session.add(investment)

    movement = _record_movement(
        session,
        user_id,
        MovementType.APPLICATION,
        investment,
        portfolio,
        total_value=state.total_invested,
        quantity=state.quantity,
        unit_price=state.purchase_price,
        movement_date=data.movement_date,
        notes="Initial application",
    )

    await portfolio_service.recalculate_totals(session, portfolio)
    await _commit_and_refresh(session, investment, movement)
    return LedgerResult(investment=investment, movements=[movement])


async def add_application(
    session: AsyncSession, user_id: str, investment_id: str, data: ApplicationCreate
) -> LedgerResult | None:
    """Add money to an existing position.

    Returns:
        None if the position wasn't found
    """
    investment = await get_investment(session, user_id, investment_id)
    if investment is None:
        return None
    portfolio = await portfolio_service.get_portfolio(session, user_id, investment.portfolio_id)

    result = apply_application(
        position_state(investment),
        quantity=data.quantity,
        unit_price=data.unit_price,
        amount=data.amount,
    )
    _store_state(investment, result.state)

    movement = _record_movement(
        session,
        user_id,
        MovementType.APPLICATION,
        investment,
        portfolio,
        total_value=result.amount,
        quantity=result.quantity,
        unit_price=result.unit_price if result.quantity is not None else None,
        movement_date=data.movement_date,
        notes=data.notes,
    )

    await portfolio_service.recalculate_totals(session, portfolio)
    await _commit_and_refresh(session, investment, movement)
    return LedgerResult(investment=investment, movements=[movement])


async def add_redemption(
    session: AsyncSession, user_id: str, investment_id: str, data: RedemptionCreate
) -> LedgerResult | None:
    """Take money out of a position.

    A partial redemption that leaves something behind keeps the row and
    links the movement to it. A total redemption, or a partial one that
    empties the position, deletes the row and records an unlinked movement.

    Returns:
        None if the position wasn't found
    """
    investment = await get_investment(session, user_id, investment_id)
    if investment is None:
        return None
    portfolio = await portfolio_service.get_portfolio(session, user_id, investment.portfolio_id)

    result = apply_redemption(
        position_state(investment),
        quantity=data.quantity,
        amount=data.amount,
        total=data.total,
    )

    if result.closed:
        default_notes = "Total redemption" if data.total else "Complete redemption"
    else:
        default_notes = "Partial redemption"

    movement = _record_movement(
        session,
        user_id,
        MovementType.REDEMPTION,
        investment,
        portfolio,
        total_value=result.amount,
        quantity=result.quantity,
        unit_price=result.unit_price,
        movement_date=data.movement_date,
        notes=data.notes or default_notes,
        linked=not result.closed,
    )

    if result.closed:
        await delete_positions(session, [investment.id])
        await portfolio_service.recalculate_totals(session, portfolio)
        await _commit_and_refresh(session, movement)
        return LedgerResult(investment=None, movements=[movement], closed=True)

    _store_state(investment, result.state)
    await portfolio_service.recalculate_totals(session, portfolio)
    await _commit_and_refresh(session, investment, movement)
    return LedgerResult(investment=investment, movements=[movement])


async def transfer_investment(
    session: AsyncSession, user_id: str, investment_id: str, data: TransferRequest
) -> LedgerResult | None:
    """Move or copy a position to another of the user's portfolios.

    move: the position changes portfolio; a transfer_out is recorded on the
    source and a transfer_in on the target. copy: a duplicate position is
    created in the target and recorded there as an application.

    Returns:
        None if the position or the target portfolio wasn't found

    Raises:
        ValueError: If the target is the position's own portfolio
    """
    investment = await get_investment(session, user_id, investment_id)
    if investment is None:
        return None
    target = await portfolio_service.get_portfolio(session, user_id, data.target_portfolio_id)
    if target is None:
        return None
    if target.id == investment.portfolio_id:
        raise ValueError("Position is already in that portfolio")

    source = await portfolio_service.get_portfolio(session, user_id, investment.portfolio_id)

    if data.mode == "move":
        investment.portfolio_id = target.id
        movements = [
            _record_movement(
                session,
                user_id,
                MovementType.TRANSFER_OUT,
                investment,
                source,
                total_value=investment.current_value,
                quantity=investment.quantity,
                unit_price=investment.current_price,
                movement_date=data.movement_date,
                notes=f"Transferred to {target.name}",
                target_portfolio=target,
            ),
            _record_movement(
                session,
                user_id,
                MovementType.TRANSFER_IN,
                investment,
                target,
                total_value=investment.current_value,
                quantity=investment.quantity,
                unit_price=investment.current_price,
                movement_date=data.movement_date,
                notes=f"Received from {source.name}",
                target_portfolio=source,
            ),
        ]
        await portfolio_service.recalculate_totals(session, source)
        await portfolio_service.recalculate_totals(session, target)
        await _commit_and_refresh(session, investment, *movements)
        return LedgerResult(investment=investment, movements=movements)

    copy = Investment(
        id=new_id(),
        user_id=user_id,
        portfolio_id=target.id,
        asset_name=investment.asset_name,
        asset_type=investment.asset_type,
        ticker=investment.ticker,
        volatility=investment.volatility,
        maturity_date=investment.maturity_date,
        source=SOURCE_MANUAL,
    )
    _store_state(copy, position_state(investment))
    session.add(copy)

    movement = _record_movement(
        session,
        user_id,
        MovementType.APPLICATION,
        copy,
        target,
        total_value=copy.total_invested,
        quantity=copy.quantity,
        unit_price=copy.purchase_price,
        movement_date=data.movement_date,
        notes=f"Copied from {source.name}",
    )
    await portfolio_service.recalculate_totals(session, target)
    await _commit_and_refresh(session, copy, movement)
    return LedgerResult(investment=copy, movements=[movement])


async def update_investment(
    session: AsyncSession, user_id: str, investment_id: str, data: InvestmentUpdate
) -> Investment | None:
    """Correct a position's figures by hand. No movement is recorded."""
    investment = await get_investment(session, user_id, investment_id)
    if investment is None:
        return None

    state = edit_position(
        data.quantity,
        data.purchase_price,
        current_price=data.current_price,
        total_invested=data.total_invested,
    )
    _store_state(investment, state)
    if data.asset_name is not None:
        investment.asset_name = data.asset_name
    if data.ticker is not None:
        investment.ticker = data.ticker.upper() or None
    if data.maturity_date is not None:
        investment.maturity_date = data.maturity_date

    portfolio = await portfolio_service.get_portfolio(session, user_id, investment.portfolio_id)
    await portfolio_service.recalculate_totals(session, portfolio)
    await _commit_and_refresh(session, investment)
    logger.info("Position %s edited by user %s", investment.id, user_id)
    return investment


async def delete_investments(session: AsyncSession, user_id: str, ids: list[str]) -> int:
    """Delete several of the user's positions.

    Ids that don't exist or belong to someone else are ignored.

    Returns:
        Number of positions deleted
    """
    result = await session.execute(
        select(Investment.id, Investment.portfolio_id).where(
            Investment.user_id == user_id, Investment.id.in_(ids)
        )
    )
    rows = result.all()
    if not rows:
        return 0

    await delete_positions(session, [row.id for row in rows])
    await portfolio_service.recalculate_by_id(session, {row.portfolio_id for row in rows})
    await session.commit()

    logger.info("Deleted %d positions for user %s", len(rows), user_id)
    return len(rows)


async def update_prices(
    session: AsyncSession, user_id: str, quotes: dict[str, PriceQuote]
) -> tuple[int, int]:
    """Mark the user's positions to market from a batch of quotes.

    Args:
        quotes: Quotes keyed by ticker (case-insensitive)

    Returns:
        Tuple of (positions revalued, portfolios recomputed)
    """
    by_ticker = {ticker.upper(): quote for ticker, quote in quotes.items()}
    if not by_ticker:
        return 0, 0

    result = await session.execute(
        select(Investment).where(
            Investment.user_id == user_id, Investment.ticker.in_(list(by_ticker))
        )
    )
    positions = list(result.scalars().all())

    touched = set()
    for investment in positions:
        quote = by_ticker[investment.ticker.upper()]
        _store_state(investment, revalue(position_state(investment), quote.price))
        if quote.volatility is not None:
            investment.volatility = quote.volatility
        touched.add(investment.portfolio_id)

    await portfolio_service.recalculate_by_id(session, touched)
    await session.commit()

    logger.info(
        "Revalued %d positions across %d portfolios for user %s",
        len(positions),
        len(touched),
        user_id,
    )
    return len(positions), len(touched)


def to_asset_snapshot(investment: Investment) -> AssetSnapshot:
    """The figures analytics need from a position."""
    return AssetSnapshot(
        name=investment.asset_name,
        asset_type=investment.asset_type,
        ticker=investment.ticker,
        value=float(investment.current_value),
        invested=float(investment.total_invested),
        gain_percent=float(investment.gain_percent),
        volatility=float(investment.volatility) if investment.volatility is not None else None,
    )


async def asset_snapshots(
    session: AsyncSession, user_id: str, portfolio_id: str | None = None
) -> list[AssetSnapshot]:
    return [
        to_asset_snapshot(inv)
        for inv in await list_investments(session, user_id, portfolio_id=portfolio_id)
    ]
