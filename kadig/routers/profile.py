"""Onboarding profile endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.profile import ProfileCreate, ProfileResponse
from kadig.services import profiles as profile_service

router = APIRouter()


@router.post(
    "/profile",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Complete onboarding",
)
async def create_profile(
    data: ProfileCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Store your onboarding answers. Can only be done once.

    Your **investor_profile** is derived from **risk_tolerance**:
    conservative -> Conservador, moderate -> Moderado, aggressive -> Arrojado.
    """
    try:
        profile = await profile_service.create_profile(session, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ProfileResponse.model_validate(profile)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Get your profile",
)
async def get_profile(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    profile = await profile_service.get_profile(session, user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse.model_validate(profile)
