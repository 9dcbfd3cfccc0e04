"""
Structured output schemas for the interview agents.

The model is asked to answer with JSON matching these schemas; responses are
validated here before anything reaches the database.
"""

from typing import Literal

from pydantic import BaseModel, Field, ConfigDict

QuestionCategory = Literal[
    "technical", "behavioral", "system-design", "problem-solving", "culture-fit"
]
QuestionDifficulty = Literal["easy", "medium", "hard"]

MIN_QUESTIONS = 8
MAX_QUESTIONS = 10


class ScoringCriterion(BaseModel):
    """One weighted aspect of a question's scoring rubric."""

    model_config = ConfigDict(populate_by_name=True)

    aspect: str = Field(..., description="What is being evaluated")
    weight: int = Field(..., ge=1, le=5, description="Importance score 1-5")
    excellent: str = Field(..., description="What an excellent answer looks like")
    good: str = Field(..., description="What a good answer looks like")
    needs_work: str = Field(
        ..., alias="needsWork", description="What indicates needs improvement"
    )


class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: QuestionCategory
    difficulty: QuestionDifficulty
    question: str = Field(..., min_length=1)
    context: str = Field("", description="Why this question is relevant for this candidate")
    scoring_rubric: list[ScoringCriterion] = Field(
        default_factory=list, alias="scoringRubric"
    )
    estimated_time: int = Field(5, ge=1, le=30, alias="estimatedTime")


class QuestionSet(BaseModel):
    """A personalised question set; always 8-10 questions."""

    model_config = ConfigDict(populate_by_name=True)

    job_title: str = Field("", alias="jobTitle")
    candidate_name: str = Field("", alias="candidateName")
    questions: list[GeneratedQuestion] = Field(
        ..., min_length=MIN_QUESTIONS, max_length=MAX_QUESTIONS
    )
    total_estimated_time: int = Field(0, alias="totalEstimatedTime")


class AspectScore(BaseModel):
    aspect: str
    score: float = Field(..., ge=0, le=10)
    notes: str = ""


class AnswerEvaluation(BaseModel):
    """Evaluation of one answer against its rubric."""

    score: float = Field(..., ge=0, le=10)
    feedback: str
    breakdown: list[AspectScore] = Field(default_factory=list)
