"""
Outbox Model

Side effects (notification emails) are recorded as outbox rows in the same
transaction as the state change that causes them and delivered later by a
worker with at-least-once semantics. ``dedupe_key`` is unique, so enqueueing
the same message twice is a no-op.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import String, Text, JSON, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base
from database.types import UTCDateTime, enum_column


class OutboxStatus(str, PyEnum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class OutboxTopic(str, PyEnum):
    """Kinds of messages the outbox carries."""

    INTERVIEW_INVITE = "interview.invite"
    INTERVIEW_REMINDER_24H = "interview.reminder_24h"
    INTERVIEW_REMINDER_1H = "interview.reminder_1h"
    INTERVIEW_RESCHEDULED = "interview.rescheduled"
    INTERVIEW_CANCELLED = "interview.cancelled"
    INTERVIEW_COMPLETED = "interview.completed"


class OutboxMessage(Base):
    __tablename__ = "outbox_messages"
    __table_args__ = (
        Index("idx_outbox_messages_status_available", "status", "available_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    topic: Mapped[OutboxTopic] = mapped_column(
        enum_column(OutboxTopic, length=64), nullable=False
    )
    dedupe_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[OutboxStatus] = mapped_column(
        enum_column(OutboxStatus), nullable=False, default=OutboxStatus.PENDING
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text)

    available_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
