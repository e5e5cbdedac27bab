"""
Language-model client used by the matching engine.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import openai
from loguru import logger
from openai import AsyncOpenAI

from shared.config import Settings, get_settings
from shared.errors import ServiceError

SYSTEM_PROMPT = """You are an expert technical recruiter with deep knowledge of software engineering roles, skills, and career progression. Your task is to evaluate how well a candidate's profile matches a specific job posting.

Consider:
- Years of experience alignment
- Technical skill overlap
- Relevance of previous roles
- Seniority level match

IMPORTANT: Respond ONLY with valid JSON in the exact format specified. No other text."""

SERVICE_NAME = "ai-matching"

# Transient failures worth another attempt
RETRYABLE_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


@dataclass(frozen=True)
class ModelConfig:
    """Model parameters for one completion call."""

    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 1000


class LLMClient(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def complete(self, prompt: str, config: ModelConfig) -> str: ...


class OpenAIClient:
    """LLMClient backed by the OpenAI chat completions API."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key.get_secret_value()
            )
        return self._client

    async def complete(self, prompt: str, config: ModelConfig) -> str:
        """
        Send the prompt and return the raw message content.

        Returns:
            Message content, empty string if the model returned nothing

        Raises:
            ServiceError: retryable for rate limits, timeouts and server errors
        """
        try:
            response = await self.client.chat.completions.create(
                model=config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                response_format={"type": "json_object"},  # Force JSON response
            )
        except RETRYABLE_ERRORS as e:
            logger.warning(f"OpenAI request failed (retryable): {e}")
            raise ServiceError(
                f"OpenAI request failed: {type(e).__name__}",
                SERVICE_NAME,
                "LLM_UNAVAILABLE",
                retryable=True,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI request rejected: {e}")
            raise ServiceError(
                f"OpenAI request rejected: {type(e).__name__}",
                SERVICE_NAME,
                "LLM_REQUEST_REJECTED",
                retryable=False,
            )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
