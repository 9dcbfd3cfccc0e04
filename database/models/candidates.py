"""
Candidate Models

Boundary model for candidates plus the append-only activity trail the
interview lifecycle writes to. The pipeline stage is an explicit partial
order that only ever advances; ``rejected`` sits outside the order and is
never moved by the interview service.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING

from sqlalchemy import String, Text, JSON, Integer, Boolean, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.lifecycle import ActivityType
from database.engine import Base
from database.types import UTCDateTime, enum_column

if TYPE_CHECKING:
    from database.models.interviews import Interview


# ==================== Candidate Enums ===================== #
class CandidateStage(str, PyEnum):
    """Hiring pipeline stage of a candidate."""

    APPLIED = "applied"
    SCREENING = "screening"
    AI_INTERVIEW = "ai_interview"
    PHONE_SCREEN = "phone_screen"
    TECHNICAL = "technical"
    ONSITE = "onsite"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"

    @property
    def rank(self) -> int | None:
        """Position in the forward pipeline, None for stages outside it."""
        return _STAGE_RANKS.get(self)

    def precedes(self, other: "CandidateStage") -> bool:
        """True when both stages are ordered and ``self`` comes first."""
        if self.rank is None or other.rank is None:
            return False
        return self.rank < other.rank

    def advance_to(self, target: "CandidateStage") -> "CandidateStage":
        """Return ``target`` if it is further along, otherwise stay put."""
        return target if self.precedes(target) else self


_STAGE_RANKS = {
    stage: index
    for index, stage in enumerate(
        (
            CandidateStage.APPLIED,
            CandidateStage.SCREENING,
            CandidateStage.AI_INTERVIEW,
            CandidateStage.PHONE_SCREEN,
            CandidateStage.TECHNICAL,
            CandidateStage.ONSITE,
            CandidateStage.OFFER,
            CandidateStage.HIRED,
        )
    )
}


# ==================== Models ===================== #
class Candidate(Base):
    """Candidate profile as far as the interview service needs it."""

    __tablename__ = "candidates"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    stage: Mapped[CandidateStage] = mapped_column(
        enum_column(CandidateStage), nullable=False, default=CandidateStage.APPLIED
    )

    # Profile used to personalise questions
    github_url: Mapped[str | None] = mapped_column(String(500))
    linkedin_url: Mapped[str | None] = mapped_column(String(500))
    resume_text: Mapped[str | None] = mapped_column(Text)
    extracted_skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Profile-level AI results, mirrored from the latest completed interview
    ai_score: Mapped[int | None] = mapped_column(Integer)
    ai_summary: Mapped[str | None] = mapped_column(Text)
    ai_strengths: Mapped[list[str] | None] = mapped_column(JSON)
    ai_concerns: Mapped[list[str] | None] = mapped_column(JSON)
    ai_score_breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    last_activity_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    interviews: Mapped[list["Interview"]] = relationship(
        "Interview", back_populates="candidate"
    )
    activities: Mapped[list["CandidateActivity"]] = relationship(
        "CandidateActivity", back_populates="candidate"
    )

    def profile(self) -> dict[str, Any]:
        """Candidate profile in the shape the question generator expects."""
        if self.github_url:
            source = "github"
        elif self.linkedin_url:
            source = "linkedin"
        else:
            source = "resume"
        return {
            "source": source,
            "name": self.full_name,
            "url": self.github_url or self.linkedin_url,
            "bio": self.ai_summary,
            "skills": list(self.extracted_skills or []),
            "experience": [self.resume_text[:500]] if self.resume_text else [],
        }

    def background(self) -> str:
        """One-line background used as evaluation context."""
        skills = ", ".join(self.extracted_skills or [])
        return f"{self.full_name or 'Candidate'} - Skills: {skills}"


class CandidateActivity(Base):
    """
    Append-only activity trail for a candidate.
    Rows are never updated or deleted by the interview service.
    """

    __tablename__ = "candidate_activities"
    __table_args__ = (
        Index("idx_candidate_activities_candidate_created", "candidate_id", "created_at"),
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
    activity_type: Mapped[ActivityType] = mapped_column(
        enum_column(ActivityType, length=64), nullable=False, index=True
    )
    old_value: Mapped[str | None] = mapped_column(String(255))
    new_value: Mapped[str | None] = mapped_column(String(255))
    activity_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)
    notes: Mapped[str | None] = mapped_column(Text)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    candidate: Mapped["Candidate"] = relationship(
        "Candidate", back_populates="activities"
    )
