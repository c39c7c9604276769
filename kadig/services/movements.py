"""Movement service - reading the ledger."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.models import Movement, MovementType


async def list_movements(
    session: AsyncSession,
    user_id: str,
    portfolio_id: str | None = None,
    movement_type: MovementType | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Movement]:
    """Get the user's ledger, newest first.

    Args:
        session: Database session
        user_id: Owner
        portfolio_id: Only entries recorded on this portfolio
        movement_type: Only entries of this type
        limit: Maximum entries to return
        offset: Entries to skip
    """
    query = select(Movement).where(Movement.user_id == user_id)
    if portfolio_id is not None:
        query = query.where(Movement.portfolio_id == portfolio_id)
    if movement_type is not None:
        query = query.where(Movement.type == movement_type)

    result = await session.execute(
        query.order_by(Movement.movement_date.desc(), Movement.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
