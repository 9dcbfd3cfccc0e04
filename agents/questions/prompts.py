"""Question generation prompt templates."""

from agents.common.prompts import (
    INTERVIEWER_PERSONA,
    JSON_OUTPUT,
    QUESTION_CATEGORIES,
    format_list,
)


QUESTION_SYSTEM_PROMPT = f"""{INTERVIEWER_PERSONA}

Your task is to generate highly targeted, personalized interview questions that:
1. Match the job requirements exactly
2. Leverage the candidate's specific background (projects, skills, experience)
3. Test both technical depth and behavioral fit
4. Progress from warm-up to challenging questions
5. Include clear, actionable scoring rubrics

CRITICAL RULES:
- Generate EXACTLY 8-10 questions total
- Questions must reference specific details from the candidate's profile
- Each question must have a multi-dimensional scoring rubric
- Balance technical (60%) and behavioral (40%) questions
- Difficulty should ladder: 2-3 easy, 4-5 medium, 2-3 hard
- Every question must have clear "excellent/good/needs work" criteria

{QUESTION_CATEGORIES}

{JSON_OUTPUT}
"""


def build_question_prompt(job: dict, candidate: dict) -> str:
    """User prompt with job details, candidate profile and the skill overlap."""
    candidate_skills = {s.lower() for s in candidate.get("skills", [])}
    required = job.get("required_skills", [])
    matching = [s for s in required if s.lower() in candidate_skills]
    gaps = [s for s in required if s.lower() not in candidate_skills]
    experience = "\n".join(f"  - {e}" for e in candidate.get("experience", [])) or "  - Not provided"

    return f"""JOB DETAILS:
- Title: {job.get("title", "")}
- Level: {job.get("level", "mid")}
- Required Skills: {format_list(required)}
- Nice-to-Have: {format_list(job.get("nice_to_have"))}
- Description: {job.get("description", "")}

CANDIDATE PROFILE:
- Name: {candidate.get("name", "")}
- Source: {candidate.get("source", "resume")}
- Bio: {candidate.get("bio") or "Not provided"}
- Skills: {format_list(candidate.get("skills"))}
- Experience:
{experience}

ANALYSIS:
- Matching Skills: {format_list(matching, "None directly matching")}
- Skill Gaps to Probe: {format_list(gaps, "All required skills present")}

INSTRUCTIONS:
Generate 8-10 interview questions that:
1. Start with 2-3 warm-up questions about their specific projects/experience
2. Include 3-4 deep technical questions on required skills
3. Add 2-3 behavioral questions relevant to {job.get("level", "mid")} level
4. End with 1-2 challenging questions testing system thinking

For each question:
- Reference specific details from their profile
- Explain why this question matters for the role
- Provide a 3-tier scoring rubric with concrete examples
- Assign realistic time estimates (5-15 minutes per question)"""
