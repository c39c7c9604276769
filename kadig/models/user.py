"""
User model - the owner of portfolios, positions and connections.

Users authenticate with an API key; only its SHA-256 hash is stored.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kadig.database import Base, utcnow


class User(Base):
    """An application user."""

    __tablename__ = "users"

    # Primary key: unique user identifier
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # API key hash for authentication (SHA-256 hash of the API key)
    api_key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    portfolios: Mapped[list["Portfolio"]] = relationship(
        back_populates="user", passive_deletes=True
    )
    profile: Mapped["Profile"] = relationship(back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"User(id={self.id!r})"


# Import at end to avoid circular imports
from kadig.models.portfolio import Portfolio
from kadig.models.profile import Profile
