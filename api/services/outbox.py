"""
Transactional outbox for interview notifications.

Messages are enqueued in the caller's transaction and delivered later by the
outbox worker. Enqueueing is idempotent on ``dedupe_key``; delivery is
at-least-once, so consumers must tolerate a repeat.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.utils.datetime import isoformat
from database.models.candidates import Candidate
from database.models.interviews import Interview
from database.models.jobs import Job
from database.models.outbox import OutboxMessage, OutboxStatus, OutboxTopic

logger = logging.getLogger(__name__)

MAX_BACKOFF = timedelta(hours=1)


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    return sqlite_insert if dialect == "sqlite" else pg_insert


async def enqueue(
    session: AsyncSession,
    topic: OutboxTopic,
    dedupe_key: str,
    payload: dict[str, Any],
    now: datetime,
    available_at: Optional[datetime] = None,
) -> bool:
    """
    Record a message in the current transaction.

    Returns:
        False when a message with the same dedupe key already exists
    """
    insert = _insert_for(session)
    stmt = (
        insert(OutboxMessage)
        .values(
            topic=topic,
            dedupe_key=dedupe_key,
            payload=payload,
            status=OutboxStatus.PENDING,
            attempts=0,
            available_at=available_at or now,
            created_at=now,
        )
        .on_conflict_do_nothing(index_elements=["dedupe_key"])
    )
    result = await session.execute(stmt)
    inserted = result.rowcount > 0
    if not inserted:
        logger.debug(f"Outbox message {dedupe_key} already enqueued")
    return inserted


def notification_payload(
    interview: Interview,
    candidate: Candidate,
    job: Job,
    **extra: Any,
) -> dict[str, Any]:
    """Payload shared by every interview notification."""
    payload = {
        "interview_id": interview.id,
        "to": candidate.email,
        "candidate_name": candidate.full_name,
        "job_title": job.title,
        "company_name": job.company_name,
        "interview_link": interview.interview_link,
        "scheduled_at": isoformat(interview.scheduled_at),
        "timezone": interview.candidate_timezone,
        "duration_minutes": interview.duration_minutes,
        "grace_minutes": settings.start_grace_minutes,
    }
    payload.update(extra)
    return payload


def _backoff(attempts: int) -> timedelta:
    return min(timedelta(minutes=2 ** attempts), MAX_BACKOFF)


async def deliver_pending(
    session: AsyncSession,
    deliver: Callable[[OutboxMessage], Awaitable[None]],
    now: datetime,
    batch_size: int = 50,
    max_attempts: Optional[int] = None,
) -> dict[str, int]:
    """
    Deliver due messages one by one, committing after each.

    A failed delivery is retried with exponential backoff until
    ``max_attempts`` is reached, after which the message is marked failed.
    """
    max_attempts = max_attempts or settings.outbox_max_attempts
    result = await session.execute(
        select(OutboxMessage)
        .where(
            OutboxMessage.status == OutboxStatus.PENDING,
            OutboxMessage.available_at <= now,
        )
        .order_by(OutboxMessage.available_at)
        .limit(batch_size)
        .with_for_update(skip_locked=True)
    )
    messages = result.scalars().all()

    stats = {"delivered": 0, "retrying": 0, "failed": 0}
    for message in messages:
        try:
            await deliver(message)
        except Exception as e:
            message.attempts += 1
            message.last_error = str(e)[:1000]
            if message.attempts >= max_attempts:
                message.status = OutboxStatus.FAILED
                stats["failed"] += 1
                logger.error(
                    f"Outbox message {message.dedupe_key} failed permanently "
                    f"after {message.attempts} attempts: {e}"
                )
            else:
                message.available_at = now + _backoff(message.attempts)
                stats["retrying"] += 1
                logger.warning(f"Outbox message {message.dedupe_key} failed, will retry: {e}")
        else:
            message.status = OutboxStatus.DELIVERED
            message.delivered_at = now
            message.attempts += 1
            stats["delivered"] += 1
        await session.commit()

    return stats
