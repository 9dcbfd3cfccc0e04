"""
AI Interview Models

Timed, token-gated interviews and their ordered question sets.

An interview owns 8-10 questions generated for the candidate/job pair. The
access token is the only credential of the public candidate flow. Status
changes are applied as conditional updates by the repository; answer fields
of a question become immutable once the owning interview is terminal.
"""

import uuid
from datetime import datetime
from typing import Any, TYPE_CHECKING

from sqlalchemy import (
    String,
    Text,
    JSON,
    Integer,
    Float,
    ForeignKey,
    Index,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.lifecycle import InterviewStatus
from core.scoring import EvaluationStatus, Recommendation
from database.engine import Base
from database.types import UTCDateTime, enum_column

if TYPE_CHECKING:
    from database.models.candidates import Candidate
    from database.models.jobs import Job


_ACTIVE_PREDICATE = text("status IN ('pending', 'scheduled', 'ready', 'in_progress')")


# ==================== Interview ===================== #
class Interview(Base):
    """
    One AI interview for a (candidate, job) pair.
    At most one row per pair may be in a non-terminal status.
    """

    __tablename__ = "ai_interviews"
    __table_args__ = (
        Index(
            "uq_ai_interviews_active_pair",
            "candidate_id",
            "job_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("idx_ai_interviews_status_scheduled", "status", "scheduled_at"),
        Index("idx_ai_interviews_status_expires", "status", "expires_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    candidate_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_token: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True, index=True
    )
    status: Mapped[InterviewStatus] = mapped_column(
        enum_column(InterviewStatus), nullable=False, default=InterviewStatus.PENDING
    )

    # Timing
    scheduled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Configuration
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_answered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    interview_link: Mapped[str | None] = mapped_column(String(1000))
    candidate_timezone: Mapped[str | None] = mapped_column(String(64))
    custom_message: Mapped[str | None] = mapped_column(Text)
    model_used: Mapped[str | None] = mapped_column(String(100))

    # Results, populated on completion
    overall_score: Mapped[int | None] = mapped_column(Integer)
    recommendation: Mapped[Recommendation | None] = mapped_column(
        enum_column(Recommendation)
    )
    summary: Mapped[str | None] = mapped_column(Text)
    strengths: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    concerns: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    defaulted_evaluations: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Review flag, only set on completed interviews
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    reviewed_by: Mapped[str | None] = mapped_column(String(255))

    candidate: Mapped["Candidate"] = relationship(
        "Candidate", back_populates="interviews"
    )
    job: Mapped["Job"] = relationship("Job", back_populates="interviews")
    questions: Mapped[list["InterviewQuestion"]] = relationship(
        "InterviewQuestion",
        back_populates="interview",
        order_by="InterviewQuestion.question_order",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Interview(id={self.id}, status={self.status})>"


# ==================== Questions ===================== #
class InterviewQuestion(Base):
    """A question of an interview with the candidate's answer and its evaluation."""

    __tablename__ = "interview_questions"
    __table_args__ = (
        UniqueConstraint(
            "interview_id", "question_order", name="uq_interview_questions_order"
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    interview_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("ai_interviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_order: Mapped[int] = mapped_column(Integer, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_context: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    scoring_rubric: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    estimated_time_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3
    )

    # Answer
    candidate_answer: Mapped[str | None] = mapped_column(Text)
    answered_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer)

    # Evaluation
    ai_score: Mapped[float | None] = mapped_column(Float)
    ai_feedback: Mapped[str | None] = mapped_column(Text)
    ai_evaluation_breakdown: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    evaluation_status: Mapped[EvaluationStatus | None] = mapped_column(
        enum_column(EvaluationStatus)
    )

    interview: Mapped["Interview"] = relationship(
        "Interview", back_populates="questions"
    )

    def public_view(self) -> dict[str, Any]:
        """Question as shown to the candidate; rubric and scores stay hidden."""
        return {
            "id": self.id,
            "order": self.question_order,
            "question": self.question_text,
            "category": self.category,
            "difficulty": self.difficulty,
            "estimated_time_minutes": self.estimated_time_minutes,
            "answer": self.candidate_answer,
        }
