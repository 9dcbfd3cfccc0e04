"""Answer scoring agent used by the submission pipeline."""

from dataclasses import dataclass, field
from typing import Dict, Any

from agents.base import BaseAgent
from agents.common.schemas import AnswerEvaluation
from agents.registry import register_agent
from agents.scoring.prompts import SCORING_SYSTEM_PROMPT, build_scoring_prompt


@dataclass
class ScoringRequest:
    """Everything needed to score one answer."""

    question_id: str
    question_text: str
    category: str
    answer: str
    rubric: list = field(default_factory=list)
    job_context: str = ""
    candidate_background: str = ""


@register_agent("scoring")
class AnswerScoringAgent(BaseAgent):
    """Scores one free-text answer against its rubric on a 0-10 scale."""

    def __init__(self, **kwargs):
        super().__init__(
            name="scoring",
            instructions=SCORING_SYSTEM_PROMPT,
            temperature=0.5,
            **kwargs,
        )

    async def score(self, request: ScoringRequest) -> AnswerEvaluation:
        """Score an answer. Timeouts are applied by the caller.

        Raises:
            AgentResponseError: the model returned no valid evaluation
        """
        prompt = build_scoring_prompt(
            request.question_text,
            request.category,
            request.rubric,
            request.answer,
            request.job_context,
            request.candidate_background,
        )
        return await self.run_structured(prompt, AnswerEvaluation)

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        evaluation = await self.score(ScoringRequest(**input_data))
        return {"status": "success", "evaluation": evaluation.model_dump()}
