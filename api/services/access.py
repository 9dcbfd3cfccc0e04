"""
Access gate for the public candidate flow.

A candidate reaches an interview through a link whose path segment is the
access token. Staff tooling uses the interview id plus a ``token`` query
parameter. Both shapes go through ``authorize``; every failure raises the same
``InvalidToken`` so callers cannot probe which part was wrong.
"""

import hmac
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    Conflict,
    DatabaseError,
    InterviewExpired,
    InvalidStatus,
    InvalidToken,
    TooEarly,
)
from core.lifecycle import (
    InterviewStatus,
    LifecycleEvent,
    LifecyclePolicy,
    can_apply,
    decide,
    evaluate_start,
)
from core.utils.datetime import isoformat
from database.models.interviews import Interview
from database.repositories.interviews import InterviewRepository

logger = logging.getLogger(__name__)


def _same(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


async def lookup_by_access_token(session: AsyncSession, token: str) -> Optional[Interview]:
    """Interview whose access token is ``token``."""
    if not token:
        return None
    return await InterviewRepository(session).get_by_token(token)


async def lookup_by_interview_id(
    session: AsyncSession, interview_id: str, token: str
) -> Optional[Interview]:
    """Interview ``interview_id``, only if ``token`` is its access token."""
    if not interview_id or not token:
        return None
    interview = await InterviewRepository(session).get(interview_id)
    if interview is None or not _same(interview.access_token, token):
        return None
    return interview


async def authorize(
    session: AsyncSession, route_id: str, token: Optional[str] = None
) -> Interview:
    """
    Resolve the interview a public request is allowed to act on.

    Raises:
        InvalidToken: unknown token, unknown id, or id/token mismatch
    """
    if token is None:
        interview = await lookup_by_access_token(session, route_id)
    else:
        interview = await lookup_by_interview_id(session, route_id, token)
        if interview is None and _same(route_id, token):
            interview = await lookup_by_access_token(session, token)

    if interview is None:
        raise InvalidToken()
    return interview


def _job_summary(interview: Interview) -> Optional[dict[str, Any]]:
    job = interview.job
    if job is None:
        return None
    return {"title": job.title, "department": job.department, "company_name": job.company_name}


async def preflight(
    session: AsyncSession,
    route_id: str,
    token: Optional[str],
    now: datetime,
    policy: Optional[LifecyclePolicy] = None,
) -> dict[str, Any]:
    """Read-only "can I start" check. Never changes the interview."""
    policy = policy or LifecyclePolicy.from_settings(settings)
    interview = await authorize(session, route_id, token)
    await session.refresh(interview, attribute_names=["job"])

    window = evaluate_start(
        interview.status, interview.scheduled_at, interview.expires_at, now, policy
    )
    return {
        "interview_id": interview.id,
        "status": InterviewStatus(interview.status).value,
        "can_start": window.can_start,
        "reason": window.reason,
        "resumable": window.resumable,
        "duration_minutes": interview.duration_minutes,
        "total_questions": interview.total_questions,
        "questions_answered": interview.questions_answered,
        "job": _job_summary(interview),
        "scheduled_at": isoformat(interview.scheduled_at),
        "expires_at": isoformat(interview.expires_at),
        "minutes_until_start": window.minutes_until_start,
        "can_start_at": isoformat(window.can_start_at),
    }


async def expire_interview(
    session: AsyncSession, interview: Interview, now: datetime
) -> None:
    """Move an interview found past its expiry to ``expired`` and commit."""
    if not can_apply(interview.status, LifecycleEvent.EXPIRE):
        return
    repo = InterviewRepository(session)
    interview_id = interview.id
    decided = decide(interview.status, LifecycleEvent.EXPIRE)
    try:
        await repo.transition(interview_id, decided, now)
        repo.append_activity(
            interview.candidate_id,
            decided.activity_type,
            now,
            old_value=decided.source.value,
            new_value=decided.target.value,
            metadata={"interview_id": interview_id},
            notes="Interview expired before it was completed",
        )
        await session.commit()
    except Conflict:
        # the sweep or another request moved it first
        await session.rollback()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to expire interview {interview_id}: {e}")
        raise DatabaseError() from e


async def start_interview(
    session: AsyncSession,
    route_id: str,
    token: Optional[str],
    force_start: bool,
    now: datetime,
    policy: Optional[LifecyclePolicy] = None,
) -> dict[str, Any]:
    """
    Start (or resume) an interview and return its questions.

    Raises:
        InvalidToken, InterviewExpired, InvalidStatus, TooEarly, Conflict
    """
    policy = policy or LifecyclePolicy.from_settings(settings)
    repo = InterviewRepository(session)
    interview = await authorize(session, route_id, token)
    interview_id = interview.id

    window = evaluate_start(
        interview.status,
        interview.scheduled_at,
        interview.expires_at,
        now,
        policy,
        force_start=force_start,
    )
    if window.expired:
        await expire_interview(session, interview, now)
        raise InterviewExpired()
    if window.too_early:
        raise TooEarly(
            window.minutes_until_start,
            scheduled_at=interview.scheduled_at,
            can_start_at=window.can_start_at,
        )
    if not window.can_start:
        raise InvalidStatus(interview.status, window.reason)

    if not window.resumable:
        decided = decide(interview.status, LifecycleEvent.START)
        try:
            await repo.transition(interview_id, decided, now, started_at=now)
            repo.append_activity(
                interview.candidate_id,
                decided.activity_type,
                now,
                old_value=decided.source.value,
                new_value=decided.target.value,
                metadata={"interview_id": interview_id, "force_start": force_start},
            )
            await session.commit()
        except Conflict:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Failed to start interview {interview_id}: {e}")
            raise DatabaseError() from e
        await session.refresh(interview)
        logger.info(f"Interview {interview_id} started")

    questions = await repo.get_questions(interview_id)
    return {
        "interview_id": interview_id,
        "status": InterviewStatus(interview.status).value,
        "questions": [q.public_view() for q in questions],
        "total_duration_minutes": interview.duration_minutes,
        "started_at": isoformat(interview.started_at),
        "expires_at": isoformat(interview.expires_at),
    }
