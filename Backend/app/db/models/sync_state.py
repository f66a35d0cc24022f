from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, Text, UniqueConstraint, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.utils.clock import utcnow

Provider = String(16)


class SyncState(Base):
    """
    Outcome of the most recent activity sync per user and provider.
    Informational only: nothing in the sync path reads it back.
    """
    __tablename__ = "sync_state"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_sync_state_user_provider"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    provider: Mapped[str] = mapped_column(Provider, nullable=False)

    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[str | None] = mapped_column(String(16), nullable=True)     # ok|error
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # consecutive failures
    last_fetched: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_saved: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
