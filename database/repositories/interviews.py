"""
Interview repository.

Transactional access to interviews, their questions and the candidate activity
trail. Every status change goes through ``transition`` or ``bulk_transition``,
which are conditional updates gated on the status the caller observed. The
repository never commits; callers own the transaction boundary.

Conditional updates bypass the identity map, so interview reads always
repopulate from the database.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import Conflict
from core.lifecycle import (
    ACTIVE_STATUSES,
    ActivityType,
    InterviewStatus,
    Transition,
)
from core.scoring import EvaluationStatus
from database.models.candidates import Candidate, CandidateActivity
from database.models.interviews import Interview, InterviewQuestion
from database.models.jobs import Job

logger = logging.getLogger(__name__)


class InterviewRepository:
    """Data access for the interview lifecycle, bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ==================== Reads ==================== #
    async def get(self, interview_id: str, with_questions: bool = False) -> Optional[Interview]:
        query = (
            select(Interview)
            .where(Interview.id == interview_id)
            .execution_options(populate_existing=True)
        )
        if with_questions:
            query = query.options(selectinload(Interview.questions))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_token(self, access_token: str) -> Optional[Interview]:
        result = await self.session.execute(
            select(Interview)
            .where(Interview.access_token == access_token)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_detail(self, interview_id: str) -> Optional[Interview]:
        """Interview with questions, candidate and job loaded."""
        result = await self.session.execute(
            select(Interview)
            .options(
                selectinload(Interview.questions),
                selectinload(Interview.candidate),
                selectinload(Interview.job),
            )
            .where(Interview.id == interview_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_active_for_pair(
        self, candidate_id: str, job_id: str
    ) -> Optional[Interview]:
        """The non-terminal interview of a (candidate, job) pair, if any."""
        result = await self.session.execute(
            select(Interview)
            .where(
                Interview.candidate_id == candidate_id,
                Interview.job_id == job_id,
                Interview.status.in_(list(ACTIVE_STATUSES)),
            )
            .order_by(Interview.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_interviews(
        self,
        status: Optional[InterviewStatus] = None,
        candidate_id: Optional[str] = None,
        job_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[Interview], int]:
        query = select(Interview)
        if status:
            query = query.where(Interview.status == status)
        if candidate_id:
            query = query.where(Interview.candidate_id == candidate_id)
        if job_id:
            query = query.where(Interview.job_id == job_id)

        total_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar() or 0

        result = await self.session.execute(
            query.order_by(Interview.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all(), total

    async def find_scheduled_between(
        self,
        start: datetime,
        end: datetime,
        statuses: Iterable[InterviewStatus],
        reminder_unsent: bool = False,
    ) -> Sequence[Interview]:
        """Interviews in ``statuses`` whose scheduled time falls in [start, end)."""
        query = (
            select(Interview)
            .options(selectinload(Interview.candidate), selectinload(Interview.job))
            .where(
                Interview.status.in_(list(statuses)),
                Interview.scheduled_at.is_not(None),
                Interview.scheduled_at >= start,
                Interview.scheduled_at < end,
            )
        )
        if reminder_unsent:
            query = query.where(Interview.reminder_sent_at.is_(None))
        result = await self.session.execute(query.order_by(Interview.scheduled_at))
        return result.scalars().all()

    async def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return await self.session.get(Candidate, candidate_id)

    async def get_job(self, job_id: str) -> Optional[Job]:
        return await self.session.get(Job, job_id)

    async def get_questions(self, interview_id: str) -> Sequence[InterviewQuestion]:
        result = await self.session.execute(
            select(InterviewQuestion)
            .where(InterviewQuestion.interview_id == interview_id)
            .order_by(InterviewQuestion.question_order)
        )
        return result.scalars().all()

    async def get_question(
        self, interview_id: str, question_id: str
    ) -> Optional[InterviewQuestion]:
        result = await self.session.execute(
            select(InterviewQuestion).where(
                InterviewQuestion.id == question_id,
                InterviewQuestion.interview_id == interview_id,
            )
        )
        return result.scalar_one_or_none()

    async def count_answered(self, interview_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(InterviewQuestion)
            .where(
                InterviewQuestion.interview_id == interview_id,
                InterviewQuestion.candidate_answer.is_not(None),
            )
        )
        return result.scalar() or 0

    # ==================== Writes ==================== #
    def add_interview(self, interview: Interview) -> Interview:
        self.session.add(interview)
        return interview

    def add_questions(self, questions: Iterable[InterviewQuestion]) -> None:
        self.session.add_all(list(questions))

    async def transition(
        self,
        interview_id: str,
        decided: Transition,
        now: datetime,
        **values: Any,
    ) -> None:
        """
        Apply a decided transition, gated on the status it was decided from.

        Raises:
            Conflict: the row is no longer in ``decided.source``
        """
        result = await self.session.execute(
            update(Interview)
            .where(Interview.id == interview_id, Interview.status == decided.source)
            .values(status=decided.target, updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info(
                f"Conditional {decided.event.value} on interview {interview_id} "
                f"lost the race (expected {decided.source.value})"
            )
            raise Conflict(
                "Interview status changed concurrently, re-fetch and retry",
                interview_id=interview_id,
                expected_status=decided.source.value,
            )

    async def update_if_status(
        self,
        interview_id: str,
        statuses: Iterable[InterviewStatus],
        now: datetime,
        **values: Any,
    ) -> bool:
        """Update fields without a status change while the status is one of ``statuses``."""
        result = await self.session.execute(
            update(Interview)
            .where(Interview.id == interview_id, Interview.status.in_(list(statuses)))
            .values(updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def bulk_transition(
        self,
        source: InterviewStatus | Iterable[InterviewStatus],
        target: InterviewStatus,
        predicate,
        now: datetime,
    ) -> list[tuple[str, str]]:
        """
        Move every row in ``source`` matching ``predicate`` to ``target``.

        Returns (interview_id, candidate_id) of the rows actually moved.
        """
        sources = [source] if isinstance(source, InterviewStatus) else list(source)
        result = await self.session.execute(
            update(Interview)
            .where(and_(Interview.status.in_(sources), predicate))
            .values(status=target, updated_at=now)
            .returning(Interview.id, Interview.candidate_id)
            .execution_options(synchronize_session=False)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def save_answer(
        self,
        question: InterviewQuestion,
        answer: str,
        time_spent_seconds: Optional[int],
        now: datetime,
    ) -> None:
        question.candidate_answer = answer
        question.answered_at = now
        if time_spent_seconds is not None:
            question.time_spent_seconds = time_spent_seconds
        await self.session.flush()

    def record_evaluation(
        self,
        question: InterviewQuestion,
        score: float,
        feedback: str,
        breakdown: Optional[list],
        status: EvaluationStatus,
    ) -> None:
        question.ai_score = score
        question.ai_feedback = feedback
        question.ai_evaluation_breakdown = breakdown
        question.evaluation_status = status

    def append_activity(
        self,
        candidate_id: str,
        activity_type: ActivityType,
        now: datetime,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        notes: Optional[str] = None,
        is_internal: bool = False,
    ) -> CandidateActivity:
        activity = CandidateActivity(
            candidate_id=candidate_id,
            activity_type=activity_type,
            old_value=old_value,
            new_value=new_value,
            activity_metadata=metadata,
            notes=notes,
            is_internal=is_internal,
            created_at=now,
        )
        self.session.add(activity)
        return activity

    async def touch_candidate(self, candidate_id: str, now: datetime, **values: Any) -> None:
        await self.session.execute(
            update(Candidate)
            .where(Candidate.id == candidate_id)
            .values(last_activity_at=now, **values)
            .execution_options(synchronize_session=False)
        )
