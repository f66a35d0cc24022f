from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Text, ForeignKey, Integer, Float, Index
from datetime import datetime
from typing import TYPE_CHECKING
from app.db.base import Base
from app.utils.clock import utcnow

if TYPE_CHECKING:
    from app.db.models.user import User


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_start", "user_id", "start_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Strava ids are global, not per athlete: this is the sync idempotency key.
    strava_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)  # open set: Run, Ride, Swim, ...
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    distance: Mapped[float | None] = mapped_column(Float, nullable=True)     # meters
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)     # seconds
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="activities")
