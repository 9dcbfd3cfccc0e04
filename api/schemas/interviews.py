"""Interview-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class ScheduleInterviewRequest(BaseModel):
    """Schema for scheduling an AI interview."""

    candidate_id: str = Field(min_length=1, description="Candidate to interview")
    job_id: str = Field(min_length=1, description="Job the interview is for")
    scheduled_at: Optional[datetime] = Field(
        None, description="Start time; omit to let the candidate start immediately"
    )
    duration_minutes: int = Field(default=30, ge=15, le=120, description="Interview length")
    send_immediate_invite: bool = Field(default=True, description="Email the link right away")
    custom_message: Optional[str] = Field(None, max_length=2000, description="Note for the candidate")
    timezone: Optional[str] = Field(
        None, max_length=64, description="Candidate IANA timezone, used in emails"
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject unknown IANA timezone names."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class ScheduleInterviewResponse(BaseModel):
    interview: dict[str, Any]
    interview_link: str
    questions_generated: int
    warnings: list[str] = Field(default_factory=list)


class RescheduleRequest(BaseModel):
    scheduled_at: datetime = Field(description="New start time, must be in the future")
    reason: Optional[str] = Field(None, max_length=1000)
    notify_candidate: bool = True


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)
    notify_candidate: bool = True


class ReviewRequest(BaseModel):
    reviewer: Optional[str] = Field(None, max_length=255, description="Who reviewed the result")


class StartInterviewRequest(BaseModel):
    token: Optional[str] = Field(None, description="Access token when the route carries the interview id")
    force_start: bool = Field(default=False, description="Skip the early-start window check")


class SaveAnswerRequest(BaseModel):
    """Single answer autosave."""

    token: Optional[str] = None
    question_id: str = Field(min_length=1)
    answer: str = Field(min_length=1, description="Answer cannot be empty")
    time_spent_seconds: Optional[int] = Field(None, ge=0)


class AnswerSubmission(BaseModel):
    question_id: str = Field(min_length=1)
    answer: str = Field(min_length=1, description="Answer cannot be empty")
    time_spent_seconds: Optional[int] = Field(None, ge=0)


class SubmitInterviewRequest(BaseModel):
    """Final submission of all answers."""

    token: Optional[str] = None
    answers: list[AnswerSubmission] = Field(min_length=1)


class SubmitInterviewResponse(BaseModel):
    interview_id: str
    status: str
    overall_score: int = Field(ge=0, le=100)
    recommendation: str
    summary: str
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    defaulted_evaluations: int = 0
