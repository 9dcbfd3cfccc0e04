"""
Interview domain errors.

Every error carries a stable ``code`` for programmatic handling, the HTTP
status the API layer should answer with, and a ``details`` dict with whatever
the caller needs to decide its next action (current status, existing id, ...).
"""

from datetime import datetime
from typing import Any, Optional


class InterviewError(Exception):
    """Base class for all interview lifecycle errors."""

    code = "INTERVIEW_ERROR"
    status_code = 400
    default_message = "Interview operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = {k: v for k, v in details.items() if v is not None}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


# ==================== Not found ==================== #
class NotFound(InterviewError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class CandidateNotFound(NotFound):
    code = "CANDIDATE_NOT_FOUND"
    default_message = "Candidate not found"


class JobNotFound(NotFound):
    code = "JOB_NOT_FOUND"
    default_message = "Job not found"


class InterviewNotFound(NotFound):
    code = "NOT_FOUND"
    default_message = "Interview not found"


class QuestionNotFound(NotFound):
    code = "QUESTION_NOT_FOUND"
    default_message = "Question not found for this interview"


# ==================== Access ==================== #
class InvalidToken(InterviewError):
    """Unknown token and mismatched route are reported identically."""

    code = "INVALID_TOKEN"
    status_code = 401
    default_message = "Invalid interview or access token"


# ==================== Lifecycle ==================== #
class InvalidStatus(InterviewError):
    code = "INVALID_STATUS"
    status_code = 400
    default_message = "Operation not allowed in the current interview status"

    def __init__(self, current_status: Any, message: Optional[str] = None, **details: Any):
        status_value = getattr(current_status, "value", current_status)
        self.current_status = status_value
        super().__init__(
            message or f"Interview is {status_value}",
            status=status_value,
            **details,
        )


class AlreadyCompleted(InvalidStatus):
    code = "ALREADY_COMPLETED"

    def __init__(self, message: Optional[str] = None):
        super().__init__("completed", message or "Interview has already been completed")


class InvalidScheduleTime(InterviewError):
    code = "INVALID_SCHEDULE_TIME"
    default_message = "Scheduled time must be in the future"


class InterviewExpired(InterviewError):
    code = "INTERVIEW_EXPIRED"
    status_code = 410
    default_message = "This interview has expired"


class TooEarly(InterviewError):
    code = "TOO_EARLY"
    status_code = 425
    default_message = "Interview has not started yet"

    def __init__(
        self,
        minutes_until_start: int,
        scheduled_at: Optional[datetime] = None,
        can_start_at: Optional[datetime] = None,
    ):
        self.minutes_until_start = minutes_until_start
        super().__init__(
            minutes_until_start=minutes_until_start,
            scheduled_at=scheduled_at.isoformat() if scheduled_at else None,
            can_start_at=can_start_at.isoformat() if can_start_at else None,
        )


class InterviewExists(InterviewError):
    code = "INTERVIEW_EXISTS"
    status_code = 409
    default_message = "Candidate already has an active interview for this job"

    def __init__(self, interview_id: str, status: Any):
        self.interview_id = interview_id
        self.status = getattr(status, "value", status)
        super().__init__(interview_id=interview_id, status=self.status)


class Conflict(InterviewError):
    """A conditional update lost a race; re-fetch before retrying."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Interview was modified concurrently"


# ==================== Infrastructure ==================== #
class UpstreamUnavailable(InterviewError):
    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503
    default_message = "AI service unavailable"


class QuestionGenerationFailed(UpstreamUnavailable):
    code = "QUESTION_GENERATION_FAILED"
    status_code = 502
    default_message = "Failed to generate interview questions"


class DatabaseError(InterviewError):
    """Storage failure; the operation is safe to retry."""

    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "A database error occurred"
