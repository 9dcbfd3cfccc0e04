"""
Agents package for Gemini-backed AI agents.

Each agent follows a consistent structure with agent.py and prompts.py.
"""

from agents.registry import registry, register_agent
from agents.base import BaseAgent, AgentResponseError

# Import all agents to register them
from agents.questions.agent import QuestionGenerationAgent
from agents.scoring.agent import AnswerScoringAgent, ScoringRequest

__all__ = [
    "registry",
    "register_agent",
    "BaseAgent",
    "AgentResponseError",
    "QuestionGenerationAgent",
    "AnswerScoringAgent",
    "ScoringRequest",
]
