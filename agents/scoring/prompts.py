"""Answer scoring prompt templates."""

from agents.common.prompts import ANALYTICAL_TONE, ANSWER_SCORING_GUIDELINES, JSON_OUTPUT


SCORING_SYSTEM_PROMPT = f"""{ANALYTICAL_TONE}

You are evaluating a candidate's interview answer. Provide fair, constructive feedback.

{ANSWER_SCORING_GUIDELINES}

Evaluate each aspect of the scoring rubric and provide specific, actionable feedback.
Start the feedback with one sentence that summarises the answer's quality.

{JSON_OUTPUT}
"""


def format_rubric(rubric: list[dict]) -> str:
    if not rubric:
        return "- No rubric provided; judge correctness, depth and clarity"
    return "\n".join(
        f"- {r.get('aspect')} (weight: {r.get('weight')}): "
        f"Excellent: {r.get('excellent')}, Good: {r.get('good')}, "
        f"Needs Work: {r.get('needs_work', r.get('needsWork'))}"
        for r in rubric
    )


def build_scoring_prompt(
    question_text: str,
    category: str,
    rubric: list[dict],
    answer: str,
    job_context: str,
    candidate_background: str,
) -> str:
    return f"""
QUESTION: {question_text}
CATEGORY: {category}

SCORING RUBRIC:
{format_rubric(rubric)}

CANDIDATE'S ANSWER:
{answer}

JOB CONTEXT: {job_context}

CANDIDATE BACKGROUND: {candidate_background}

Evaluate this answer against each aspect of the scoring rubric."""
