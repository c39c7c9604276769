"""
PluggyConnection model - an institution linked through the aggregator.

item_id is the aggregator's identifier for the link. The row is removed
when the user disconnects or the aggregator no longer knows the item.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kadig.database import Base, utcnow


class PluggyConnection(Base):
    """A linked bank or broker account."""

    __tablename__ = "pluggy_connections"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    item_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    # Connector (institution) metadata
    connector_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    connector_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    connector_image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    connector_primary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Aggregator item status: PENDING, UPDATING, UPDATED, LOGIN_ERROR, OUTDATED
    status: Mapped[str | None] = mapped_column(String(30), nullable=True)

    last_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"PluggyConnection(item_id={self.item_id!r}, status={self.status!r})"
