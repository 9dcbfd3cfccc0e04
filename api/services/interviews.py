"""Interview service functions for staff: read, reschedule, cancel and review."""

from typing import Any, Dict, Optional
from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services import outbox
from core.config import settings
from core.exceptions import (
    Conflict,
    DatabaseError,
    InterviewNotFound,
    InvalidScheduleTime,
    InvalidStatus,
)
from core.lifecycle import (
    InterviewStatus,
    LifecycleEvent,
    LifecyclePolicy,
    compute_expires_at,
    decide,
    is_terminal,
)
from core.utils.datetime import ensure_utc, format_for_humans, isoformat
from database.models.interviews import Interview, InterviewQuestion
from database.models.outbox import OutboxTopic
from database.repositories.interviews import InterviewRepository

logger = logging.getLogger(__name__)


def _value(enum_or_none) -> Optional[str]:
    return getattr(enum_or_none, "value", enum_or_none)


def interview_to_dict(interview: Interview) -> Dict[str, Any]:
    """Staff view of an interview without its questions."""
    return {
        "id": interview.id,
        "candidate_id": interview.candidate_id,
        "job_id": interview.job_id,
        "status": _value(interview.status),
        "scheduled_at": isoformat(interview.scheduled_at),
        "expires_at": isoformat(interview.expires_at),
        "started_at": isoformat(interview.started_at),
        "completed_at": isoformat(interview.completed_at),
        "created_at": isoformat(interview.created_at),
        "updated_at": isoformat(interview.updated_at),
        "duration_minutes": interview.duration_minutes,
        "total_questions": interview.total_questions,
        "questions_answered": interview.questions_answered,
        "interview_link": interview.interview_link,
        "candidate_timezone": interview.candidate_timezone,
        "custom_message": interview.custom_message,
        "model_used": interview.model_used,
        "overall_score": interview.overall_score,
        "recommendation": _value(interview.recommendation),
        "summary": interview.summary,
        "strengths": list(interview.strengths or []),
        "concerns": list(interview.concerns or []),
        "defaulted_evaluations": interview.defaulted_evaluations,
        "reviewed_at": isoformat(interview.reviewed_at),
        "reviewed_by": interview.reviewed_by,
    }


def question_to_dict(question: InterviewQuestion) -> Dict[str, Any]:
    """Staff view of a question, including rubric and evaluation."""
    return {
        "id": question.id,
        "order": question.question_order,
        "question": question.question_text,
        "context": question.question_context,
        "category": question.category,
        "difficulty": question.difficulty,
        "scoring_rubric": question.scoring_rubric,
        "estimated_time_minutes": question.estimated_time_minutes,
        "candidate_answer": question.candidate_answer,
        "answered_at": isoformat(question.answered_at),
        "time_spent_seconds": question.time_spent_seconds,
        "ai_score": question.ai_score,
        "ai_feedback": question.ai_feedback,
        "ai_evaluation_breakdown": question.ai_evaluation_breakdown,
        "evaluation_status": _value(question.evaluation_status),
    }


async def _require(repo: InterviewRepository, interview_id: str) -> Interview:
    interview = await repo.get(interview_id)
    if interview is None:
        raise InterviewNotFound(interview_id=interview_id)
    return interview


async def list_interviews(
    session: AsyncSession,
    status: Optional[InterviewStatus] = None,
    candidate_id: Optional[str] = None,
    job_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List interviews with filtering."""
    interviews, total = await InterviewRepository(session).list_interviews(
        status=status, candidate_id=candidate_id, job_id=job_id, limit=limit, offset=offset
    )
    return {
        "interviews": [interview_to_dict(i) for i in interviews],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


async def get_interview(session: AsyncSession, interview_id: str) -> Dict[str, Any]:
    """Interview details with candidate, job and questions."""
    interview = await InterviewRepository(session).get_detail(interview_id)
    if interview is None:
        raise InterviewNotFound(interview_id=interview_id)

    data = interview_to_dict(interview)
    data["candidate"] = {
        "id": interview.candidate.id,
        "full_name": interview.candidate.full_name,
        "email": interview.candidate.email,
        "stage": _value(interview.candidate.stage),
    }
    data["job"] = {
        "id": interview.job.id,
        "title": interview.job.title,
        "department": interview.job.department,
    }
    data["questions"] = [question_to_dict(q) for q in interview.questions]
    return data


async def reschedule_interview(
    session: AsyncSession,
    interview_id: str,
    new_scheduled_at: datetime,
    *,
    now: datetime,
    reason: Optional[str] = None,
    notify: bool = True,
    policy: Optional[LifecyclePolicy] = None,
) -> Dict[str, Any]:
    """
    Move a not-yet-started interview to a new time.

    ``expires_at`` is recomputed from the new time. Rescheduling to the time the
    interview already has, or rescheduling a terminal interview, returns the
    current state unchanged.
    """
    policy = policy or LifecyclePolicy.from_settings(settings)
    repo = InterviewRepository(session)
    interview = await _require(repo, interview_id)

    if is_terminal(interview.status):
        return {**interview_to_dict(interview), "changed": False}

    new_scheduled_at = ensure_utc(new_scheduled_at)
    if new_scheduled_at <= now:
        raise InvalidScheduleTime()

    if (
        interview.status == InterviewStatus.SCHEDULED
        and ensure_utc(interview.scheduled_at) == new_scheduled_at
    ):
        return {**interview_to_dict(interview), "changed": False}

    decided = decide(interview.status, LifecycleEvent.RESCHEDULE)
    old_scheduled_at = interview.scheduled_at
    try:
        await repo.transition(
            interview.id,
            decided,
            now,
            scheduled_at=new_scheduled_at,
            expires_at=compute_expires_at(new_scheduled_at, policy),
            reminder_sent_at=None,
        )
        repo.append_activity(
            interview.candidate_id,
            decided.activity_type,
            now,
            old_value=isoformat(old_scheduled_at),
            new_value=isoformat(new_scheduled_at),
            metadata={"interview_id": interview.id, "reason": reason},
            notes=f"AI Interview rescheduled to {format_for_humans(new_scheduled_at)}",
        )
        await session.flush()
        await session.refresh(interview)

        if notify:
            candidate = await repo.get_candidate(interview.candidate_id)
            job = await repo.get_job(interview.job_id)
            await outbox.enqueue(
                session,
                OutboxTopic.INTERVIEW_RESCHEDULED,
                f"{OutboxTopic.INTERVIEW_RESCHEDULED.value}:{interview.id}:{isoformat(new_scheduled_at)}",
                outbox.notification_payload(
                    interview, candidate, job, old_scheduled_at=isoformat(old_scheduled_at)
                ),
                now,
            )
        await session.commit()
    except Conflict:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to reschedule interview {interview_id}: {e}")
        raise DatabaseError() from e

    logger.info(f"Interview {interview.id} rescheduled to {isoformat(new_scheduled_at)}")
    return {**interview_to_dict(interview), "changed": True}


async def cancel_interview(
    session: AsyncSession,
    interview_id: str,
    *,
    now: datetime,
    reason: Optional[str] = None,
    notify: bool = True,
) -> Dict[str, Any]:
    """Cancel a not-yet-started interview. A terminal interview is returned unchanged."""
    repo = InterviewRepository(session)
    interview = await _require(repo, interview_id)

    if is_terminal(interview.status):
        return {**interview_to_dict(interview), "changed": False}

    decided = decide(interview.status, LifecycleEvent.CANCEL)
    try:
        await repo.transition(interview.id, decided, now)
        repo.append_activity(
            interview.candidate_id,
            decided.activity_type,
            now,
            old_value=decided.source.value,
            new_value=decided.target.value,
            metadata={"interview_id": interview.id, "reason": reason},
            notes=reason,
        )
        await session.flush()
        await session.refresh(interview)

        if notify:
            candidate = await repo.get_candidate(interview.candidate_id)
            job = await repo.get_job(interview.job_id)
            await outbox.enqueue(
                session,
                OutboxTopic.INTERVIEW_CANCELLED,
                f"{OutboxTopic.INTERVIEW_CANCELLED.value}:{interview.id}",
                outbox.notification_payload(interview, candidate, job, reason=reason),
                now,
            )
        await session.commit()
    except Conflict:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to cancel interview {interview_id}: {e}")
        raise DatabaseError() from e

    logger.info(f"Interview {interview.id} cancelled")
    return {**interview_to_dict(interview), "changed": True}


async def mark_reviewed(
    session: AsyncSession,
    interview_id: str,
    *,
    now: datetime,
    reviewer: Optional[str] = None,
) -> Dict[str, Any]:
    """Flag a completed interview as reviewed. Reviewing twice returns the current state."""
    repo = InterviewRepository(session)
    interview = await _require(repo, interview_id)

    if interview.status != InterviewStatus.COMPLETED:
        raise InvalidStatus(
            interview.status, "Only completed interviews can be marked as reviewed"
        )
    if interview.reviewed_at is not None:
        return {**interview_to_dict(interview), "already_reviewed": True}

    try:
        updated = await repo.update_if_status(
            interview.id,
            [InterviewStatus.COMPLETED],
            now,
            reviewed_at=now,
            reviewed_by=reviewer,
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to mark interview {interview_id} reviewed: {e}")
        raise DatabaseError() from e

    await session.refresh(interview)
    if not updated:
        raise InvalidStatus(interview.status)
    return {**interview_to_dict(interview), "already_reviewed": False}


async def clear_review(
    session: AsyncSession, interview_id: str, *, now: datetime
) -> Dict[str, Any]:
    """Remove the review flag. Clearing an unreviewed interview is a no-op."""
    repo = InterviewRepository(session)
    interview = await _require(repo, interview_id)

    if interview.reviewed_at is None:
        return interview_to_dict(interview)

    try:
        await repo.update_if_status(
            interview.id,
            [InterviewStatus.COMPLETED],
            now,
            reviewed_at=None,
            reviewed_by=None,
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to clear review on interview {interview_id}: {e}")
        raise DatabaseError() from e

    await session.refresh(interview)
    return interview_to_dict(interview)
