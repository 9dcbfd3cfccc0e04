"""Base agent class for all Gemini-backed agents."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar

from google.genai import types
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class AgentResponseError(Exception):
    """The model answered with something that does not match the schema."""


class BaseAgent(ABC):
    """Base class for all AI agents using the google-genai client."""

    def __init__(
        self,
        name: str,
        instructions: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        client: Any = None,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            model: Gemini model to use, defaults to the configured one
            temperature: Sampling temperature
            client: Pre-built ``genai.Client``, created lazily when omitted
        """
        from core.config import settings

        self.name = name
        self.instructions = instructions
        self.model = model or settings.gemini_model
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        """Get or create the google-genai client."""
        if self._client is None:
            from google import genai
            from core.config import settings

            self._client = genai.Client(api_key=settings.google_api_key)
        return self._client

    @abstractmethod
    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results."""
        pass

    async def run(self, prompt: str) -> str:
        """Run the agent with a prompt and return the raw text response."""
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=self.instructions,
                temperature=self.temperature,
            ),
        )
        return response.text

    async def run_structured(self, prompt: str, schema: Type[SchemaT]) -> SchemaT:
        """Run the agent and validate its JSON answer against ``schema``.

        Raises:
            AgentResponseError: empty or non-conforming response
        """
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=self.instructions,
                temperature=self.temperature,
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        if not response.text:
            raise AgentResponseError(f"{self.name}: empty response from model")
        try:
            return schema.model_validate_json(response.text)
        except ValidationError as e:
            logger.warning(f"{self.name}: response failed validation: {e}")
            raise AgentResponseError(f"{self.name}: invalid response: {e}") from e
