"""Admin API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.clients.bcb import BCBClient, fetch_indicators, get_bcb_client
from kadig.database import get_session
from kadig.schemas.admin import SnapshotRunResponse, UserCreate, UserListItem, UserResponse
from kadig.services import admin as admin_service
from kadig.services import history as history_service

router = APIRouter()


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
async def create_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Register a new user.

    Returns the user details including the API key.
    **Store the API key securely - it cannot be retrieved later.**
    """
    try:
        user, api_key = await admin_service.create_user(session, data)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with ID '{data.user_id}' already exists",
        )
    return UserResponse(user_id=user.id, api_key=api_key, created_at=user.created_at)


@router.get(
    "/users",
    response_model=list[UserListItem],
    summary="List all users",
)
async def list_users(
    session: AsyncSession = Depends(get_session),
) -> list[UserListItem]:
    users = await admin_service.list_users(session)
    return [UserListItem(user_id=u.id, created_at=u.created_at) for u in users]


@router.post(
    "/snapshots",
    response_model=SnapshotRunResponse,
    summary="Snapshot every portfolio",
)
async def run_snapshots(
    session: AsyncSession = Depends(get_session),
    bcb: BCBClient = Depends(get_bcb_client),
) -> SnapshotRunResponse:
    """Record today's value of every portfolio, with accumulated CDI and IPCA.

    Meant to be called once a day by a scheduler. Portfolios that fail are
    counted in **errors** and do not stop the run.
    """
    indicators = await fetch_indicators(bcb)
    run = await history_service.take_snapshots(session, indicators)
    return SnapshotRunResponse(
        processed=run.processed,
        errors=run.errors,
        snapshot_date=run.snapshot_date.isoformat(),
    )
