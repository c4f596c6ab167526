"""Chat-completion client for chapter and section generation.

Talks to any OpenAI-compatible endpoint through the ``openai`` SDK. The
default base URL is Gemini's OpenAI-compatible API; Together AI works with
the same client by pointing ``LLM_BASE_URL`` at it.
"""

import asyncio
import logging
import re

import openai
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Reasoning models wrap their scratchpad in <think> tags
_THINK_RE = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_SELF_INTRO_RE = re.compile(r"^I'm DeepSeek-R1.*?help you\.\s*", re.IGNORECASE)

MIN_REPLY_CHARS = 50
RETRY_BACKOFF_SECONDS = 2.0

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class LLMError(Exception):
    """Raised when the provider fails or keeps returning unusable replies."""


class LLMClient:
    """Async chat-completion client with retry on empty or transient failures."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        max_retries: int = 3,
        backoff_seconds: float = RETRY_BACKOFF_SECONDS,
    ):
        self.client = client
        self.model = model
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds

    @classmethod
    def from_settings(cls, settings) -> "LLMClient":
        client = AsyncOpenAI(
            api_key=settings.gemini_api_key,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
            max_retries=0,
        )
        return cls(client, settings.llm_model, max_retries=settings.llm_max_retries)

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 4000,
        temperature: float = 0.7,
        min_length: int = MIN_REPLY_CHARS,
    ) -> str:
        """Send a chat conversation and return the cleaned assistant reply.

        Args:
            messages: OpenAI-style message list.
            max_tokens: Completion token cap.
            temperature: Sampling temperature.
            min_length: Replies shorter than this (after cleaning) are retried.

        Returns:
            The reply text with reasoning blocks stripped.

        Raises:
            LLMError: If every attempt failed or the provider rejected the request.
        """
        last_error = "no attempts made"
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except _TRANSIENT_ERRORS as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning("LLM call failed (attempt %d/%d): %s", attempt, self.max_retries, last_error)
            except openai.OpenAIError as e:
                raise LLMError(f"LLM request rejected: {e}") from e
            else:
                reply = clean_reply(response.choices[0].message.content if response.choices else None)
                if len(reply) >= min_length:
                    return reply
                last_error = f"reply too short ({len(reply)} chars)"
                logger.warning("Short LLM reply (attempt %d/%d): %s", attempt, self.max_retries, last_error)

            if attempt < self.max_retries:
                await asyncio.sleep(self.backoff_seconds * attempt)

        raise LLMError(f"LLM failed after {self.max_retries} attempts: {last_error}")


def clean_reply(content: str | None) -> str:
    """Strip reasoning blocks and model self-introductions from a reply."""
    if not content:
        return ""
    text = _THINK_RE.sub("", content)
    text = _SELF_INTRO_RE.sub("", text.strip())
    return text.strip()
