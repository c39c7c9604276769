"""
Profile model - onboarding answers for a user.

Set once during onboarding; one row per user.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kadig.database import Base, utcnow


class Profile(Base):
    """Investor profile collected at onboarding."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # beginner / intermediate / advanced
    experience: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # conservative / moderate / aggressive
    risk_tolerance: Mapped[str] = mapped_column(String(20), nullable=False)

    # Display label derived from risk tolerance (e.g. "Moderado")
    investor_profile: Mapped[str] = mapped_column(String(50), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    user: Mapped["User"] = relationship(back_populates="profile")

    def __repr__(self) -> str:
        return f"Profile(user={self.user_id!r}, investor_profile={self.investor_profile!r})"


from kadig.models.user import User
