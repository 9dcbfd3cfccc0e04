"""
Interview scheduling.

Creates an interview for a (candidate, job) pair: validates the time, enforces
one active interview per pair, generates the personalised question set, issues
the access token and records the side effects (activity, stage move, invite).
"""

import asyncio
import logging
import secrets
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agents.common.schemas import QuestionSet
from api.schemas.interviews import ScheduleInterviewRequest
from api.services import outbox
from api.services.interviews import interview_to_dict
from core.config import settings
from core.exceptions import (
    CandidateNotFound,
    DatabaseError,
    InterviewExists,
    InvalidScheduleTime,
    JobNotFound,
    QuestionGenerationFailed,
)
from core.lifecycle import (
    ActivityType,
    InterviewStatus,
    LifecyclePolicy,
    compute_expires_at,
)
from core.utils.datetime import ensure_utc, format_for_humans, isoformat
from database.models.candidates import CandidateStage
from database.models.interviews import Interview, InterviewQuestion
from database.models.outbox import OutboxTopic
from database.repositories.interviews import InterviewRepository

logger = logging.getLogger(__name__)


def generate_access_token() -> str:
    """Unguessable URL-safe bearer token (256 bits)."""
    return secrets.token_urlsafe(32)


def build_interview_link(access_token: str) -> str:
    return f"{settings.app_url.rstrip('/')}/interview/{access_token}"


async def _generate_questions(generator, job, candidate, timeout: float) -> QuestionSet:
    try:
        return await asyncio.wait_for(
            generator.generate(job.requirements(), candidate.profile()),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Question generation timed out after {timeout}s")
        raise QuestionGenerationFailed(
            "Question generation timed out", timeout_seconds=timeout
        ) from e
    except Exception as e:
        logger.error(f"Failed to generate questions: {e}")
        raise QuestionGenerationFailed() from e


def _build_questions(interview_id: str, question_set: QuestionSet) -> list[InterviewQuestion]:
    return [
        InterviewQuestion(
            interview_id=interview_id,
            question_order=index,
            question_text=q.question,
            question_context=q.context,
            category=q.category,
            difficulty=q.difficulty,
            scoring_rubric=[c.model_dump() for c in q.scoring_rubric],
            estimated_time_minutes=q.estimated_time,
        )
        for index, q in enumerate(question_set.questions, start=1)
    ]


async def schedule_interview(
    session: AsyncSession,
    request: ScheduleInterviewRequest,
    *,
    generator,
    now: datetime,
    policy: Optional[LifecyclePolicy] = None,
    generation_timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Schedule an AI interview.

    Args:
        session: Database session
        request: Validated schedule request
        generator: Question generator exposing ``async generate(job, candidate)``
        now: Current time
        policy: Lifecycle time policy, from settings when omitted
        generation_timeout: Hard limit for question generation in seconds

    Returns:
        ``{interview, interview_link, questions_generated, warnings}``

    Raises:
        InvalidScheduleTime, CandidateNotFound, JobNotFound, InterviewExists,
        QuestionGenerationFailed, DatabaseError
    """
    policy = policy or LifecyclePolicy.from_settings(settings)
    timeout = generation_timeout or settings.question_generation_timeout_seconds
    repo = InterviewRepository(session)

    scheduled_at = ensure_utc(request.scheduled_at)
    if scheduled_at is not None and scheduled_at <= now:
        raise InvalidScheduleTime(scheduled_at=isoformat(scheduled_at))

    candidate = await repo.get_candidate(request.candidate_id)
    if candidate is None:
        raise CandidateNotFound(candidate_id=request.candidate_id)
    job = await repo.get_job(request.job_id)
    if job is None:
        raise JobNotFound(job_id=request.job_id)

    candidate_id, job_id = candidate.id, job.id
    existing = await repo.find_active_for_pair(candidate_id, job_id)
    if existing is not None:
        raise InterviewExists(existing.id, existing.status)

    question_set = await _generate_questions(generator, job, candidate, timeout)

    access_token = generate_access_token()
    interview_link = build_interview_link(access_token)
    interview = Interview(
        candidate_id=candidate.id,
        job_id=job.id,
        access_token=access_token,
        status=InterviewStatus.SCHEDULED if scheduled_at else InterviewStatus.PENDING,
        scheduled_at=scheduled_at,
        expires_at=compute_expires_at(scheduled_at or now, policy),
        duration_minutes=request.duration_minutes,
        total_questions=len(question_set.questions),
        questions_answered=0,
        interview_link=interview_link,
        candidate_timezone=request.timezone,
        custom_message=request.custom_message,
        model_used=getattr(generator, "model", None),
        strengths=[],
        concerns=[],
        created_at=now,
        updated_at=now,
    )

    try:
        repo.add_interview(interview)
        await session.flush()

        when = format_for_humans(scheduled_at, request.timezone) if scheduled_at else "immediate start"
        repo.append_activity(
            candidate.id,
            ActivityType.INTERVIEW_SCHEDULED,
            now,
            new_value=InterviewStatus(interview.status).value,
            metadata={
                "interview_id": interview.id,
                "scheduled_at": isoformat(scheduled_at),
                "duration_minutes": request.duration_minutes,
            },
            notes=f"AI Interview scheduled for {when}",
        )

        current_stage = CandidateStage(candidate.stage)
        next_stage = current_stage.advance_to(CandidateStage.AI_INTERVIEW)
        if next_stage != current_stage:
            await repo.touch_candidate(candidate.id, now, stage=next_stage)
            repo.append_activity(
                candidate.id,
                ActivityType.STAGE_CHANGED,
                now,
                old_value=current_stage.value,
                new_value=next_stage.value,
                metadata={"interview_id": interview.id},
            )
        else:
            await repo.touch_candidate(candidate.id, now)

        if request.send_immediate_invite:
            await outbox.enqueue(
                session,
                OutboxTopic.INTERVIEW_INVITE,
                f"{OutboxTopic.INTERVIEW_INVITE.value}:{interview.id}",
                outbox.notification_payload(
                    interview, candidate, job, custom_message=request.custom_message
                ),
                now,
            )
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        existing = await repo.find_active_for_pair(candidate_id, job_id)
        if existing is not None:
            raise InterviewExists(existing.id, existing.status) from e
        logger.error(f"Failed to create interview: {e}")
        raise DatabaseError() from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to create interview: {e}")
        raise DatabaseError() from e

    warnings: list[str] = []
    try:
        repo.add_questions(_build_questions(interview.id, question_set))
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        await session.refresh(interview)
        logger.warning(f"Failed to insert questions for interview {interview.id}: {e}")
        warnings.append(
            "Interview created but its questions could not be saved; "
            "regenerate them before the candidate starts"
        )

    logger.info(
        f"Interview {interview.id} scheduled for candidate {candidate_id} "
        f"with {len(question_set.questions)} questions"
    )
    return {
        "interview": interview_to_dict(interview),
        "interview_link": interview_link,
        "questions_generated": len(question_set.questions),
        "warnings": warnings,
    }
