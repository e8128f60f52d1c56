"""Rate limit counter table."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedAsDataclass, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase, MappedAsDataclass):
    pass


class RateLimitCounter(Base):
    """Request counter for one user, period type and window.

    Rows are created on the first request of a window and never deleted here;
    past windows form the usage history.
    """

    __tablename__ = "rate_limit_counters"
    __table_args__ = (
        Index(
            "rate_limit_counters_user_period_idx",
            "user_id",
            "period_type",
            "period_start",
            unique=True,
        ),
        Index("rate_limit_counters_user_type_idx", "user_id", "period_type"),
    )

    # Key
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, insert_default=uuid.uuid4, init=False)

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), init=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), init=False)
