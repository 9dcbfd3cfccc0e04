"""Aggregation of per-question scores into an interview verdict."""

import math
from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Iterable, Sequence

NEUTRAL_SCORE = 5.0
UNAVAILABLE_FEEDBACK = "Evaluation unavailable - answer recorded for manual review"
MAX_HIGHLIGHTS = 5
STRENGTH_THRESHOLD = 7
CONCERN_THRESHOLD = 4


class Recommendation(str, PyEnum):
    """Five-tier hiring verdict derived from the overall score."""

    STRONG_YES = "strong_yes"
    YES = "yes"
    MAYBE = "maybe"
    NO = "no"
    STRONG_NO = "strong_no"


class EvaluationStatus(str, PyEnum):
    """How a question's score was obtained."""

    SCORED = "scored"
    DEFAULTED = "defaulted"
    PENDING_RETRY = "pending_retry"


RECOMMENDATION_THRESHOLDS: tuple[tuple[int, Recommendation], ...] = (
    (85, Recommendation.STRONG_YES),
    (70, Recommendation.YES),
    (55, Recommendation.MAYBE),
    (40, Recommendation.NO),
)


@dataclass(frozen=True)
class QuestionResult:
    """Score and feedback for one answered question."""

    question_id: str
    score: float
    feedback: str
    breakdown: list
    status: EvaluationStatus = EvaluationStatus.SCORED

    @property
    def defaulted(self) -> bool:
        return self.status != EvaluationStatus.SCORED


@dataclass(frozen=True)
class InterviewVerdict:
    overall_score: int
    recommendation: Recommendation
    strengths: list[str]
    concerns: list[str]
    summary: str
    defaulted_evaluations: int


def aggregate_score(scores: Sequence[float]) -> int:
    """
    Mean of 0-10 question scores scaled to 0-100, rounded half up.

    Raises:
        ValueError: no scores were given
    """
    if not scores:
        raise ValueError("Cannot aggregate an empty score list")
    mean = sum(scores) / len(scores)
    overall = math.floor(mean * 10 + 0.5)
    return max(0, min(100, overall))


def recommendation_for(overall_score: int) -> Recommendation:
    for threshold, recommendation in RECOMMENDATION_THRESHOLDS:
        if overall_score >= threshold:
            return recommendation
    return Recommendation.STRONG_NO


def _headline(feedback: str, fallback: str) -> str:
    return feedback.split(".")[0].strip() or fallback


def bucket_feedback(results: Iterable[QuestionResult]) -> tuple[list[str], list[str]]:
    """Strengths from scores >= 7, concerns from scores <= 4; defaulted scores are skipped."""
    strengths: list[str] = []
    concerns: list[str] = []
    for result in results:
        if result.defaulted:
            continue
        if result.score >= STRENGTH_THRESHOLD:
            strengths.append(_headline(result.feedback, "Strong performance"))
        elif result.score <= CONCERN_THRESHOLD:
            concerns.append(_headline(result.feedback, "Needs improvement"))
    return strengths[:MAX_HIGHLIGHTS], concerns[:MAX_HIGHLIGHTS]


def build_summary(
    overall_score: int,
    strengths: Sequence[str],
    concerns: Sequence[str],
    defaulted_evaluations: int = 0,
) -> str:
    parts = [
        f"Candidate completed the interview with an overall score of {overall_score}%."
    ]
    if strengths:
        parts.append(f"Strengths include: {'; '.join(strengths[:3])}.")
    if concerns:
        parts.append(f"Areas for improvement: {'; '.join(concerns[:3])}.")
    if defaulted_evaluations:
        noun = "answer" if defaulted_evaluations == 1 else "answers"
        parts.append(
            f"{defaulted_evaluations} {noun} could not be evaluated automatically "
            "and received a neutral score pending manual review."
        )
    return " ".join(parts)


def build_verdict(results: Sequence[QuestionResult]) -> InterviewVerdict:
    """Aggregate per-question results into the final interview verdict."""
    overall = aggregate_score([r.score for r in results])
    strengths, concerns = bucket_feedback(results)
    defaulted = sum(1 for r in results if r.defaulted)
    return InterviewVerdict(
        overall_score=overall,
        recommendation=recommendation_for(overall),
        strengths=strengths,
        concerns=concerns,
        summary=build_summary(overall, strengths, concerns, defaulted),
        defaulted_evaluations=defaulted,
    )
