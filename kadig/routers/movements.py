"""Movement ledger endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.database import get_session
from kadig.models import MovementType, User
from kadig.schemas.movement import MovementResponse
from kadig.services import movements as movement_service

router = APIRouter()


@router.get(
    "/movements",
    response_model=list[MovementResponse],
    summary="List your movements",
)
async def list_movements(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    type: MovementType | None = Query(None, description="Only this movement type"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[MovementResponse]:
    """Your ledger of applications, redemptions and transfers, newest first."""
    movements = await movement_service.list_movements(
        session,
        user.id,
        portfolio_id=portfolio_id,
        movement_type=type,
        limit=limit,
        offset=offset,
    )
    return [MovementResponse.model_validate(m) for m in movements]
