"""Shared prompt templates for agents."""

# System prompts
ANALYTICAL_TONE = """You are an analytical expert who provides detailed, evidence-based assessments.
Focus on objectivity, fairness, and what the candidate actually said or did."""

INTERVIEWER_PERSONA = """You are an expert technical recruiter and interviewer with 15+ years
of experience hiring engineers at top technology companies."""

# Common instructions
JSON_OUTPUT = """Your response must be valid JSON that matches the requested schema exactly.
Do not include any markdown formatting or code blocks.
Ensure all strings are properly escaped."""

# Scoring guidelines for a single answer
ANSWER_SCORING_GUIDELINES = """Scoring scale (0-10):
- 9-10: Exceptional answer, demonstrates deep expertise
- 7-8: Strong answer, shows good understanding
- 5-6: Adequate answer, meets basic expectations
- 3-4: Weak answer, shows gaps in understanding
- 0-2: Poor answer, does not address the question"""

QUESTION_CATEGORIES = """Question categories:
- technical: Coding challenges, algorithm design, language-specific questions
- behavioral: Leadership, teamwork, conflict resolution, past experiences
- system-design: Architecture decisions, scalability, trade-offs
- problem-solving: Debugging scenarios, optimization challenges
- culture-fit: Values alignment, collaboration style"""


def format_list(items, empty: str = "None specified") -> str:
    """Comma-joined list for prompt interpolation."""
    values = [str(item) for item in items or [] if item]
    return ", ".join(values) if values else empty
