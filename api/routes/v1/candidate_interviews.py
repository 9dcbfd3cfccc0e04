"""
Public candidate interview endpoints.

No staff session: every request is authorized by the interview access token,
either as the route segment itself or alongside the interview id.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_answer_scorer, get_clock, get_db
from api.schemas.interviews import (
    SaveAnswerRequest,
    StartInterviewRequest,
    SubmitInterviewRequest,
    SubmitInterviewResponse,
)
from api.services import access, submissions

router = APIRouter(prefix="/interviews", tags=["candidate-interviews"])


@router.get(
    "/{route_id}/start",
    summary="Interview Pre-flight",
    description="Whether the interview can be started now. Never changes state.",
)
async def preflight(
    route_id: str = Path(..., description="Access token, or interview ID with ?token="),
    token: Optional[str] = Query(None, description="Access token when the route is the interview ID"),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await access.preflight(session, route_id, token, now)


@router.post(
    "/{route_id}/start",
    summary="Start Interview",
    description="Start or resume the interview and return its questions.",
)
async def start_interview(
    route_id: str = Path(..., description="Access token, or interview ID with a token in the body"),
    request: StartInterviewRequest = Body(default=StartInterviewRequest()),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await access.start_interview(
        session, route_id, request.token, request.force_start, now
    )


@router.patch(
    "/{route_id}/submit",
    summary="Save Answer",
    description="Autosave a single answer without scoring it.",
)
async def save_answer(
    route_id: str = Path(..., description="Access token or interview ID"),
    request: SaveAnswerRequest = Body(...),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await submissions.save_answer(
        session,
        route_id,
        request.token,
        request.question_id,
        request.answer,
        request.time_spent_seconds,
        now,
    )


@router.post(
    "/{route_id}/submit",
    response_model=SubmitInterviewResponse,
    summary="Submit Interview",
    description="Submit all answers, score them and complete the interview.",
)
async def submit_interview(
    route_id: str = Path(..., description="Access token or interview ID"),
    request: SubmitInterviewRequest = Body(...),
    session: AsyncSession = Depends(get_db),
    scorer=Depends(get_answer_scorer),
    now: datetime = Depends(get_clock),
):
    return await submissions.submit_interview(
        session, route_id, request.token, request.answers, scorer=scorer, now=now
    )
