"""
Job Models

Boundary model for job postings. Job records are owned by the ATS; the
interview service only reads the requirements used to seed question
generation and answer evaluation.
"""

import uuid
from datetime import datetime
from typing import Any, TYPE_CHECKING

from sqlalchemy import String, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base
from database.types import UTCDateTime

if TYPE_CHECKING:
    from database.models.interviews import Interview


class Job(Base):
    """Job posting an AI interview is conducted for."""

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100))
    company_name: Mapped[str | None] = mapped_column(String(255))
    level: Mapped[str] = mapped_column(String(50), nullable=False, default="mid")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    required_skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    nice_to_have_skills: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    interviews: Mapped[list["Interview"]] = relationship(
        "Interview", back_populates="job"
    )

    def requirements(self) -> dict[str, Any]:
        """Job requirements in the shape the question generator expects."""
        return {
            "title": self.title,
            "level": self.level or "mid",
            "description": self.description or "",
            "required_skills": list(self.required_skills or []),
            "nice_to_have": list(self.nice_to_have_skills or []),
        }
