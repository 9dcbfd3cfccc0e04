"""
Answer submission pipeline.

``save_answer`` persists a single answer without any AI call so the client can
autosave on every change. ``submit_interview`` is the terminal operation:
answers are committed first, then scored concurrently with a per-call timeout,
and the verdict is written in one transaction guarded by a conditional status
update. A scoring failure never blocks completion; the question gets a neutral
score and is flagged ``defaulted`` so ``reevaluate_defaulted`` can fix it later.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agents.scoring.agent import ScoringRequest
from api.schemas.interviews import AnswerSubmission
from api.services import outbox
from api.services.access import authorize, expire_interview
from core.config import settings
from core.exceptions import (
    AlreadyCompleted,
    Conflict,
    DatabaseError,
    InterviewExpired,
    InterviewNotFound,
    InvalidStatus,
    QuestionNotFound,
)
from core.lifecycle import (
    ANSWERABLE_STATUSES,
    ActivityType,
    InterviewStatus,
    LifecycleEvent,
    decide,
)
from core.scoring import (
    NEUTRAL_SCORE,
    UNAVAILABLE_FEEDBACK,
    EvaluationStatus,
    InterviewVerdict,
    QuestionResult,
    build_verdict,
)
from core.utils.datetime import ensure_utc, isoformat
from database.models.candidates import Candidate
from database.models.interviews import Interview, InterviewQuestion
from database.models.jobs import Job
from database.models.outbox import OutboxTopic
from database.repositories.interviews import InterviewRepository

logger = logging.getLogger(__name__)


# ==================== Scoring fan-out ==================== #
def _defaulted(question_id: str) -> QuestionResult:
    return QuestionResult(
        question_id=question_id,
        score=NEUTRAL_SCORE,
        feedback=UNAVAILABLE_FEEDBACK,
        breakdown=[],
        status=EvaluationStatus.DEFAULTED,
    )


async def score_answers(
    scorer,
    requests: Sequence[ScoringRequest],
    *,
    timeout: Optional[float] = None,
    concurrency: Optional[int] = None,
) -> list[QuestionResult]:
    """
    Score answers with bounded concurrency and a timeout per call.

    Never raises for a scoring failure: a failed or timed out call yields a
    neutral ``defaulted`` result. Results keep the order of ``requests``.
    """
    timeout = timeout or settings.scoring_timeout_seconds
    semaphore = asyncio.Semaphore(concurrency or settings.scoring_concurrency)

    async def score_one(request: ScoringRequest) -> QuestionResult:
        async with semaphore:
            try:
                evaluation = await asyncio.wait_for(scorer.score(request), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Scoring question {request.question_id} timed out after {timeout}s"
                )
                return _defaulted(request.question_id)
            except Exception as e:
                logger.warning(f"Scoring question {request.question_id} failed: {e}")
                return _defaulted(request.question_id)

        return QuestionResult(
            question_id=request.question_id,
            score=max(0.0, min(10.0, float(evaluation.score))),
            feedback=evaluation.feedback,
            breakdown=[b.model_dump() for b in evaluation.breakdown],
            status=EvaluationStatus.SCORED,
        )

    return list(await asyncio.gather(*(score_one(r) for r in requests)))


def _job_context(job: Optional[Job]) -> str:
    if job is None:
        return "Role"
    return f"{job.title or 'Role'} ({job.level or ''}): {(job.description or '')[:500]}"


def _scoring_request(
    question: InterviewQuestion, job: Optional[Job], candidate: Optional[Candidate]
) -> ScoringRequest:
    return ScoringRequest(
        question_id=question.id,
        question_text=question.question_text,
        category=question.category,
        answer=question.candidate_answer or "",
        rubric=question.scoring_rubric or [],
        job_context=_job_context(job),
        candidate_background=candidate.background() if candidate else "Candidate",
    )


def _verdict_values(verdict: InterviewVerdict) -> dict[str, Any]:
    return {
        "overall_score": verdict.overall_score,
        "recommendation": verdict.recommendation,
        "summary": verdict.summary,
        "strengths": verdict.strengths,
        "concerns": verdict.concerns,
        "defaulted_evaluations": verdict.defaulted_evaluations,
    }


async def _mirror_to_candidate(
    repo: InterviewRepository,
    interview: Interview,
    verdict: InterviewVerdict,
    questions_answered: int,
    now: datetime,
) -> None:
    await repo.touch_candidate(
        interview.candidate_id,
        now,
        ai_score=verdict.overall_score,
        ai_summary=verdict.summary,
        ai_strengths=verdict.strengths,
        ai_concerns=verdict.concerns,
        ai_score_breakdown={
            "source": "interview",
            "interview_id": interview.id,
            "recommendation": verdict.recommendation.value,
            "questions_answered": questions_answered,
            "defaulted_evaluations": verdict.defaulted_evaluations,
            "completed_at": isoformat(now),
        },
    )


# ==================== Save answer ==================== #
async def save_answer(
    session: AsyncSession,
    route_id: str,
    token: Optional[str],
    question_id: str,
    answer: str,
    time_spent_seconds: Optional[int],
    now: datetime,
) -> dict[str, Any]:
    """
    Persist one answer immediately, without scoring.

    Raises:
        InvalidToken, InvalidStatus, InterviewExpired, QuestionNotFound, Conflict
    """
    repo = InterviewRepository(session)
    interview = await authorize(session, route_id, token)
    interview_id = interview.id

    if interview.status not in ANSWERABLE_STATUSES:
        raise InvalidStatus(
            interview.status,
            f"Cannot save answer for interview with status: {InterviewStatus(interview.status).value}",
        )
    if now > ensure_utc(interview.expires_at):
        await expire_interview(session, interview, now)
        raise InterviewExpired()

    question = await repo.get_question(interview_id, question_id)
    if question is None:
        raise QuestionNotFound(question_id=question_id)

    try:
        await repo.save_answer(question, answer, time_spent_seconds, now)
        answered = await repo.count_answered(interview_id)
        # the status guard keeps answers immutable once the interview is terminal
        still_open = await repo.update_if_status(
            interview_id, ANSWERABLE_STATUSES, now, questions_answered=answered
        )
        if not still_open:
            await session.rollback()
            raise Conflict(
                "Interview status changed while saving the answer",
                interview_id=interview_id,
            )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to save answer for interview {interview_id}: {e}")
        raise DatabaseError() from e

    return {
        "success": True,
        "question_id": question_id,
        "questions_answered": answered,
        "saved_at": isoformat(now),
    }


# ==================== Submit interview ==================== #
async def submit_interview(
    session: AsyncSession,
    route_id: str,
    token: Optional[str],
    answers: Iterable[AnswerSubmission],
    *,
    scorer,
    now: datetime,
    scoring_timeout: Optional[float] = None,
    scoring_concurrency: Optional[int] = None,
) -> dict[str, Any]:
    """
    Submit all answers, score them and complete the interview.

    Every question that holds an answer after this submission is scored,
    including answers saved earlier through ``save_answer``.

    Raises:
        InvalidToken, AlreadyCompleted, InvalidStatus, InterviewExpired,
        QuestionNotFound, Conflict, DatabaseError
    """
    repo = InterviewRepository(session)
    interview = await authorize(session, route_id, token)
    interview_id = interview.id
    observed_status = InterviewStatus(interview.status)

    if observed_status == InterviewStatus.COMPLETED:
        raise AlreadyCompleted()
    if observed_status not in ANSWERABLE_STATUSES:
        raise InvalidStatus(
            observed_status,
            f"Cannot submit answers for interview with status: {observed_status.value}",
        )
    if now > ensure_utc(interview.expires_at):
        await expire_interview(session, interview, now)
        raise InterviewExpired()

    questions = await repo.get_questions(interview_id)
    by_id = {q.id: q for q in questions}

    # 1. answers are durable before any scoring call
    answers = list(answers)
    matched = 0
    try:
        for submitted in answers:
            question = by_id.get(submitted.question_id)
            if question is None:
                logger.warning(
                    f"Question {submitted.question_id} not found in interview {interview_id}"
                )
                continue
            matched += 1
            question.candidate_answer = submitted.answer
            question.answered_at = now
            if submitted.time_spent_seconds is not None:
                question.time_spent_seconds = submitted.time_spent_seconds
        if answers and matched == 0:
            await session.rollback()
            raise QuestionNotFound("None of the submitted answers match this interview")

        answered = [q for q in questions if q.candidate_answer is not None]
        if not answered:
            await session.rollback()
            raise QuestionNotFound("No answered questions to submit")

        if not await repo.update_if_status(
            interview_id, [observed_status], now, questions_answered=len(answered)
        ):
            await session.rollback()
            raise Conflict(
                "Interview status changed during submission", interview_id=interview_id
            )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to persist answers for interview {interview_id}: {e}")
        raise DatabaseError() from e

    # 2. bounded fan-out scoring
    candidate = await repo.get_candidate(interview.candidate_id)
    job = await repo.get_job(interview.job_id)
    results = await score_answers(
        scorer,
        [_scoring_request(q, job, candidate) for q in answered],
        timeout=scoring_timeout,
        concurrency=scoring_concurrency,
    )
    verdict = build_verdict(results)

    # 3. one transaction for evaluations, completion and side effects
    decided = decide(observed_status, LifecycleEvent.SUBMIT)
    try:
        for question, result in zip(answered, results):
            repo.record_evaluation(
                question, result.score, result.feedback, result.breakdown, result.status
            )
        await session.flush()
        await repo.transition(
            interview_id,
            decided,
            now,
            completed_at=now,
            questions_answered=len(answered),
            **_verdict_values(verdict),
        )
        await _mirror_to_candidate(repo, interview, verdict, len(answered), now)
        repo.append_activity(
            interview.candidate_id,
            ActivityType.INTERVIEW_COMPLETED,
            now,
            old_value=decided.source.value,
            new_value=decided.target.value,
            metadata={
                "interview_id": interview_id,
                "overall_score": verdict.overall_score,
                "questions_answered": len(answered),
                "recommendation": verdict.recommendation.value,
                "defaulted_evaluations": verdict.defaulted_evaluations,
            },
            notes=f"Completed AI interview with score: {verdict.overall_score}%",
        )
        if candidate is not None and job is not None:
            await outbox.enqueue(
                session,
                OutboxTopic.INTERVIEW_COMPLETED,
                f"{OutboxTopic.INTERVIEW_COMPLETED.value}:{interview_id}",
                outbox.notification_payload(interview, candidate, job),
                now,
            )
        await session.commit()
    except Conflict:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to complete interview {interview_id}: {e}")
        raise DatabaseError() from e

    if verdict.defaulted_evaluations:
        logger.warning(
            f"Interview {interview_id} completed with "
            f"{verdict.defaulted_evaluations} defaulted evaluation(s)"
        )
    logger.info(f"Interview {interview_id} completed with score {verdict.overall_score}")
    return {
        "interview_id": interview_id,
        "status": InterviewStatus.COMPLETED.value,
        "overall_score": verdict.overall_score,
        "recommendation": verdict.recommendation.value,
        "summary": verdict.summary,
        "strengths": verdict.strengths,
        "concerns": verdict.concerns,
        "defaulted_evaluations": verdict.defaulted_evaluations,
    }


# ==================== Re-evaluation ==================== #
def _stored_result(question: InterviewQuestion) -> QuestionResult:
    return QuestionResult(
        question_id=question.id,
        score=question.ai_score if question.ai_score is not None else NEUTRAL_SCORE,
        feedback=question.ai_feedback or "",
        breakdown=question.ai_evaluation_breakdown or [],
        status=EvaluationStatus(question.evaluation_status or EvaluationStatus.SCORED),
    )


async def reevaluate_defaulted(
    session: AsyncSession,
    interview_id: str,
    *,
    scorer,
    now: datetime,
    scoring_timeout: Optional[float] = None,
    scoring_concurrency: Optional[int] = None,
) -> dict[str, Any]:
    """
    Re-score the questions of a completed interview whose score was defaulted.

    Targets are flagged ``pending_retry`` while they are being re-scored. The
    interview result fields are re-aggregated from the current per-question
    results. Answers are never modified.

    Raises:
        InterviewNotFound, InvalidStatus, DatabaseError
    """
    repo = InterviewRepository(session)
    interview = await repo.get_detail(interview_id)
    if interview is None:
        raise InterviewNotFound(interview_id=interview_id)
    if interview.status != InterviewStatus.COMPLETED:
        raise InvalidStatus(
            interview.status, "Only completed interviews can be re-evaluated"
        )

    answered = [q for q in interview.questions if q.candidate_answer is not None]
    targets = [
        q
        for q in answered
        if q.evaluation_status in (EvaluationStatus.DEFAULTED, EvaluationStatus.PENDING_RETRY)
    ]
    if not targets:
        return {
            "interview_id": interview_id,
            "rescored": 0,
            "still_defaulted": 0,
            "overall_score": interview.overall_score,
            "recommendation": getattr(interview.recommendation, "value", interview.recommendation),
        }

    try:
        for question in targets:
            question.evaluation_status = EvaluationStatus.PENDING_RETRY
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise DatabaseError() from e

    results = await score_answers(
        scorer,
        [_scoring_request(q, interview.job, interview.candidate) for q in targets],
        timeout=scoring_timeout,
        concurrency=scoring_concurrency,
    )

    old_score = interview.overall_score
    rescored = 0
    try:
        for question, result in zip(targets, results):
            if result.defaulted:
                question.evaluation_status = EvaluationStatus.DEFAULTED
                continue
            rescored += 1
            repo.record_evaluation(
                question, result.score, result.feedback, result.breakdown, result.status
            )
        verdict = build_verdict([_stored_result(q) for q in answered])
        await session.flush()
        if not await repo.update_if_status(
            interview_id, [InterviewStatus.COMPLETED], now, **_verdict_values(verdict)
        ):
            await session.rollback()
            raise Conflict("Interview changed during re-evaluation", interview_id=interview_id)
        await _mirror_to_candidate(repo, interview, verdict, len(answered), now)
        repo.append_activity(
            interview.candidate_id,
            ActivityType.INTERVIEW_REEVALUATED,
            now,
            old_value=str(old_score) if old_score is not None else None,
            new_value=str(verdict.overall_score),
            metadata={
                "interview_id": interview_id,
                "rescored": rescored,
                "still_defaulted": verdict.defaulted_evaluations,
            },
            is_internal=True,
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to store re-evaluation for interview {interview_id}: {e}")
        raise DatabaseError() from e

    logger.info(
        f"Interview {interview_id} re-evaluated: {rescored} rescored, "
        f"score {old_score} -> {verdict.overall_score}"
    )
    return {
        "interview_id": interview_id,
        "rescored": rescored,
        "still_defaulted": verdict.defaulted_evaluations,
        "overall_score": verdict.overall_score,
        "recommendation": verdict.recommendation.value,
    }
