"""
Time-driven reconciliation of interview status.

The status sweep advances interviews nobody touches: it never reads a row and
then writes it back, every pass is one conditional bulk update, so it is safe
to run concurrently with candidate requests and with other sweeper instances.
Each pass commits on its own; a failing pass is logged and reported without
stopping the others. Running the sweep twice in a row moves nothing the
second time.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import ColumnElement
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services import outbox
from core.config import settings
from core.lifecycle import (
    ActivityType,
    InterviewStatus,
    LifecyclePolicy,
)
from core.utils.datetime import isoformat
from database.models.interviews import Interview
from database.models.outbox import OutboxTopic
from database.repositories.interviews import InterviewRepository

logger = logging.getLogger(__name__)

REMINDER_WINDOW = timedelta(minutes=15)
REMINDER_STATUSES = (InterviewStatus.SCHEDULED, InterviewStatus.READY)


async def _run_pass(
    session: AsyncSession,
    name: str,
    sources: list[InterviewStatus],
    target: InterviewStatus,
    predicate: ColumnElement[bool],
    now: datetime,
    activity: Optional[tuple[ActivityType, str]],
    errors: list[str],
) -> int:
    repo = InterviewRepository(session)
    try:
        moved = await repo.bulk_transition(sources, target, predicate, now)
        if activity is not None:
            activity_type, notes = activity
            for interview_id, candidate_id in moved:
                repo.append_activity(
                    candidate_id,
                    activity_type,
                    now,
                    new_value=target.value,
                    metadata={"interview_id": interview_id},
                    notes=notes,
                )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Status sweep pass {name} failed: {e}")
        errors.append(f"{name}: {e.__class__.__name__}")
        return 0

    if moved:
        logger.info(f"Status sweep pass {name} moved {len(moved)} interview(s)")
    return len(moved)


async def run_status_sweep(
    session: AsyncSession,
    now: datetime,
    policy: Optional[LifecyclePolicy] = None,
) -> dict[str, Any]:
    """
    Run the four status passes.

    Returns:
        Counts per pass plus ``total_updated``, ``errors`` and ``timestamp``
    """
    policy = policy or LifecyclePolicy.from_settings(settings)
    errors: list[str] = []
    summary: dict[str, Any] = {}

    summary["scheduled_to_ready"] = await _run_pass(
        session,
        "scheduled_to_ready",
        [InterviewStatus.SCHEDULED],
        InterviewStatus.READY,
        Interview.scheduled_at.is_not(None) & (Interview.scheduled_at <= now),
        now,
        None,
        errors,
    )
    summary["ready_to_missed"] = await _run_pass(
        session,
        "ready_to_missed",
        [InterviewStatus.SCHEDULED, InterviewStatus.READY],
        InterviewStatus.MISSED,
        Interview.scheduled_at.is_not(None)
        & (Interview.scheduled_at <= now - policy.missed_after),
        now,
        (
            ActivityType.INTERVIEW_MISSED,
            "Candidate did not start the interview within the allowed window",
        ),
        errors,
    )
    summary["in_progress_to_abandoned"] = await _run_pass(
        session,
        "in_progress_to_abandoned",
        [InterviewStatus.IN_PROGRESS],
        InterviewStatus.ABANDONED,
        Interview.updated_at <= now - policy.idle_timeout,
        now,
        (ActivityType.INTERVIEW_ABANDONED, "Interview was abandoned due to inactivity"),
        errors,
    )
    summary["expired"] = await _run_pass(
        session,
        "expired",
        [InterviewStatus.PENDING, InterviewStatus.SCHEDULED, InterviewStatus.READY],
        InterviewStatus.EXPIRED,
        Interview.expires_at <= now,
        now,
        (ActivityType.INTERVIEW_EXPIRED, "Interview link expired before it was used"),
        errors,
    )

    summary["total_updated"] = sum(summary.values())
    summary["errors"] = errors
    summary["timestamp"] = isoformat(now)
    return summary


async def _enqueue_reminders(
    session: AsyncSession,
    topic: OutboxTopic,
    lead: timedelta,
    now: datetime,
    stamp_sent: bool,
) -> tuple[int, int]:
    repo = InterviewRepository(session)
    interviews = await repo.find_scheduled_between(
        now + lead, now + lead + REMINDER_WINDOW, REMINDER_STATUSES, reminder_unsent=stamp_sent
    )
    enqueued = 0
    for interview in interviews:
        if not interview.candidate or not interview.candidate.email or not interview.job:
            continue
        dedupe_key = f"{topic.value}:{interview.id}:{isoformat(interview.scheduled_at)}"
        if await outbox.enqueue(
            session,
            topic,
            dedupe_key,
            outbox.notification_payload(interview, interview.candidate, interview.job),
            now,
        ):
            enqueued += 1
        if stamp_sent:
            await repo.update_if_status(
                interview.id, REMINDER_STATUSES, now, reminder_sent_at=now
            )
    await session.commit()
    return len(interviews), enqueued


async def run_reminder_sweep(session: AsyncSession, now: datetime) -> dict[str, Any]:
    """
    Enqueue 24-hour and 1-hour reminder emails for upcoming interviews.

    Idempotent: dedupe keys include the scheduled time, so a rescheduled
    interview gets fresh reminders and a repeated run enqueues nothing new.
    """
    errors: list[str] = []
    checked = 0
    counts = {"reminders_24h": 0, "reminders_1h": 0}

    for key, topic, lead, stamp in (
        ("reminders_24h", OutboxTopic.INTERVIEW_REMINDER_24H, timedelta(hours=24), True),
        ("reminders_1h", OutboxTopic.INTERVIEW_REMINDER_1H, timedelta(hours=1), False),
    ):
        try:
            found, enqueued = await _enqueue_reminders(session, topic, lead, now, stamp)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Reminder sweep {key} failed: {e}")
            errors.append(f"{key}: {e.__class__.__name__}")
            continue
        checked += found
        counts[key] = enqueued

    if any(counts.values()):
        logger.info(f"Reminder sweep enqueued {counts}")
    return {
        "total_checked": checked,
        **counts,
        "errors": errors,
        "timestamp": isoformat(now),
    }
