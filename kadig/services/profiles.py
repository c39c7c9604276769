"""Profile service - onboarding answers."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.models import Profile
from kadig.schemas.profile import ProfileCreate
from kadig.services.portfolios import new_id

logger = logging.getLogger(__name__)

INVESTOR_PROFILES = {
    "conservative": "Conservador",
    "moderate": "Moderado",
    "aggressive": "Arrojado",
}


def investor_profile_for(risk_tolerance: str) -> str:
    """Display label for a risk tolerance."""
    try:
        return INVESTOR_PROFILES[risk_tolerance]
    except KeyError:
        raise ValueError(f"Unknown risk tolerance: {risk_tolerance}")


async def get_profile(session: AsyncSession, user_id: str) -> Profile | None:
    result = await session.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def create_profile(session: AsyncSession, user_id: str, data: ProfileCreate) -> Profile:
    """Store the onboarding answers.

    Raises:
        ValueError: If the user already completed onboarding
    """
    if await get_profile(session, user_id) is not None:
        raise ValueError("Profile already exists")

    profile = Profile(
        id=new_id(),
        user_id=user_id,
        full_name=data.full_name,
        experience=data.experience,
        risk_tolerance=data.risk_tolerance,
        investor_profile=investor_profile_for(data.risk_tolerance),
    )
    session.add(profile)
    await session.commit()
    await session.refresh(profile)

    logger.info("Onboarding completed for user %s (%s)", user_id, profile.investor_profile)
    return profile
