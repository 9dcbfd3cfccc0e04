"""Importing this package registers every table on ``Base.metadata``."""

from database.models.candidates import Candidate, CandidateActivity, CandidateStage
from database.models.jobs import Job
from database.models.interviews import Interview, InterviewQuestion
from database.models.outbox import OutboxMessage, OutboxStatus, OutboxTopic

__all__ = [
    "Candidate",
    "CandidateActivity",
    "CandidateStage",
    "Job",
    "Interview",
    "InterviewQuestion",
    "OutboxMessage",
    "OutboxStatus",
    "OutboxTopic",
]
