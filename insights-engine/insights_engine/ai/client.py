"""
Shared OpenAI-compatible completion client and error mapping.

The gateway signals rate limiting with HTTP 429 and exhausted credits with
HTTP 402; both get their own exception so callers can show distinct messages.
Everything else collapses into AnalysisFailedError. Nothing is retried.
"""

import logging
from typing import Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ..config import settings

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base class for completion failures."""

    status_code: int = 500
    default_message = "AI analysis failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class RateLimitExceededError(AIServiceError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again in a moment."


class CreditsExhaustedError(AIServiceError):
    status_code = 402
    default_message = "AI usage limit reached. Please add credits to continue."


class AnalysisFailedError(AIServiceError):
    status_code = 500


class AIServiceNotConfiguredError(AIServiceError):
    status_code = 503
    default_message = "AI_API_KEY not configured"


def create_client() -> Optional[AsyncOpenAI]:
    if not settings.AI_API_KEY:
        return None
    return AsyncOpenAI(
        api_key=settings.AI_API_KEY,
        base_url=settings.AI_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT * 4,
        max_retries=0,
    )


class CompletionClient:
    """Thin request/response wrapper around chat.completions.create."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None) -> None:
        self._client = client if client is not None else create_client()
        self.model = model or settings.AI_MODEL

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        failure_message: str = AnalysisFailedError.default_message,
    ) -> Optional[str]:
        """
        Run one completion and return the raw text.

        Raises:
            AIServiceNotConfiguredError: No API key / client
            RateLimitExceededError: Upstream HTTP 429
            CreditsExhaustedError: Upstream HTTP 402
            AnalysisFailedError: Any other failure
        """
        if self._client is None:
            logger.warning("AI API key not configured")
            raise AIServiceNotConfiguredError()

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.RateLimitError as e:
            logger.warning(f"AI gateway rate limit: {e}")
            raise RateLimitExceededError() from e
        except openai.APIStatusError as e:
            if e.status_code == 402:
                logger.warning(f"AI gateway credits exhausted: {e}")
                raise CreditsExhaustedError() from e
            logger.error(f"AI API error: {e.status_code} {e}")
            raise AnalysisFailedError(f"{failure_message}: {e.status_code}") from e
        except openai.OpenAIError as e:
            logger.error(f"AI request error: {e}")
            raise AnalysisFailedError(failure_message) from e

        if not response.choices:
            return None
        return response.choices[0].message.content
