"""Question generation agent for personalised AI interviews."""

from typing import Dict, Any

from agents.base import BaseAgent
from agents.common.schemas import QuestionSet
from agents.questions.prompts import QUESTION_SYSTEM_PROMPT, build_question_prompt
from agents.registry import register_agent


@register_agent("questions")
class QuestionGenerationAgent(BaseAgent):
    """Generates 8-10 rubric-backed questions for a candidate/job pair."""

    def __init__(self, **kwargs):
        super().__init__(
            name="questions",
            instructions=QUESTION_SYSTEM_PROMPT,
            temperature=0.7,
            **kwargs,
        )

    async def generate(self, job: Dict[str, Any], candidate: Dict[str, Any]) -> QuestionSet:
        """Generate a question set.

        Args:
            job: Job requirements (title, level, description, required_skills, nice_to_have)
            candidate: Candidate profile (name, source, bio, skills, experience)

        Raises:
            AgentResponseError: the model did not return a valid 8-10 question set
        """
        return await self.run_structured(build_question_prompt(job, candidate), QuestionSet)

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        question_set = await self.generate(
            input_data.get("job", {}), input_data.get("candidate", {})
        )
        return {
            "status": "success",
            "questions": question_set.model_dump(),
        }
