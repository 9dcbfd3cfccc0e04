"""
Interview scheduling and management endpoints.

Staff-facing REST API for scheduling, listing, rescheduling, cancelling,
reviewing and re-evaluating AI interviews.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_answer_scorer, get_clock, get_db, get_question_generator
from api.schemas.interviews import (
    CancelRequest,
    RescheduleRequest,
    ReviewRequest,
    ScheduleInterviewRequest,
    ScheduleInterviewResponse,
)
from api.services import interviews as interview_service
from api.services import scheduling, submissions
from core.lifecycle import InterviewStatus

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.post(
    "/schedule",
    status_code=status.HTTP_201_CREATED,
    response_model=ScheduleInterviewResponse,
    summary="Schedule Interview",
    description="Create an AI interview for a candidate and job, generate its questions and queue the invite.",
)
async def schedule_interview(
    request: ScheduleInterviewRequest,
    session: AsyncSession = Depends(get_db),
    generator=Depends(get_question_generator),
    now: datetime = Depends(get_clock),
):
    return await scheduling.schedule_interview(session, request, generator=generator, now=now)


@router.get(
    "",
    summary="List Interviews",
    description="List interviews with optional filtering.",
)
async def list_interviews(
    status_filter: Optional[InterviewStatus] = Query(None, alias="status", description="Filter by status"),
    candidate_id: Optional[str] = Query(None, description="Filter by candidate"),
    job_id: Optional[str] = Query(None, description="Filter by job"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db),
):
    return await interview_service.list_interviews(
        session,
        status=status_filter,
        candidate_id=candidate_id,
        job_id=job_id,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{interview_id}",
    summary="Get Interview Details",
    description="Interview with candidate, job, questions, answers and evaluations.",
)
async def get_interview(
    interview_id: str = Path(..., description="Interview ID"),
    session: AsyncSession = Depends(get_db),
):
    return await interview_service.get_interview(session, interview_id)


@router.post(
    "/{interview_id}/reschedule",
    summary="Reschedule Interview",
    description="Move a not-yet-started interview to a new time and notify the candidate.",
)
async def reschedule_interview(
    interview_id: str = Path(..., description="Interview ID"),
    request: RescheduleRequest = Body(...),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await interview_service.reschedule_interview(
        session,
        interview_id,
        request.scheduled_at,
        now=now,
        reason=request.reason,
        notify=request.notify_candidate,
    )


@router.post(
    "/{interview_id}/cancel",
    summary="Cancel Interview",
    description="Cancel an interview that has not finished. Cancelling twice returns the current state.",
)
async def cancel_interview(
    interview_id: str = Path(..., description="Interview ID"),
    request: CancelRequest = Body(default=CancelRequest()),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await interview_service.cancel_interview(
        session,
        interview_id,
        now=now,
        reason=request.reason,
        notify=request.notify_candidate,
    )


@router.post(
    "/{interview_id}/review",
    summary="Mark Reviewed",
    description="Flag a completed interview as reviewed by staff.",
)
async def mark_reviewed(
    interview_id: str = Path(..., description="Interview ID"),
    request: ReviewRequest = Body(default=ReviewRequest()),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await interview_service.mark_reviewed(
        session, interview_id, now=now, reviewer=request.reviewer
    )


@router.delete(
    "/{interview_id}/review",
    summary="Clear Review",
    description="Remove the reviewed flag from an interview.",
)
async def clear_review(
    interview_id: str = Path(..., description="Interview ID"),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await interview_service.clear_review(session, interview_id, now=now)


@router.post(
    "/{interview_id}/reevaluate",
    summary="Re-evaluate Defaulted Answers",
    description="Re-score answers whose evaluation fell back to the neutral default.",
)
async def reevaluate_interview(
    interview_id: str = Path(..., description="Interview ID"),
    session: AsyncSession = Depends(get_db),
    scorer=Depends(get_answer_scorer),
    now: datetime = Depends(get_clock),
):
    return await submissions.reevaluate_defaulted(session, interview_id, scorer=scorer, now=now)
