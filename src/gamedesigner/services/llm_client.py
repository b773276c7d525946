import logging
from typing import List, Protocol, Sequence

from openai import APIError, APIStatusError, AsyncOpenAI

from ..errors import LlmRequestFailed
from ..models import ChatMessage
from ..settings import Settings, get_settings

logger = logging.getLogger(__name__)


class LanguageModelClient(Protocol):
    """Turns an ordered list of role-tagged messages into response text."""

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        ...


class OpenRouterClient:
    """Chat completion client for an OpenAI-compatible endpoint (OpenRouter by default).

    Retries are disabled; every call is bounded by the configured timeout.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        timeout_seconds: float = 120.0,
        referer: str = "game_designer_mcp",
        title: str = "Game Designer MCP",
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
            default_headers={
                "HTTP-Referer": referer,
                "X-Title": title,
            },
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Send `messages` and return the first choice's content.

        Raises LlmRequestFailed on transport errors, non-success status or an
        empty choice list.
        """
        payload: List[dict] = [m.to_dict() for m in messages]
        logger.debug("LLM request model=%s messages=%d", self._model, len(payload))
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except APIStatusError as e:
            logger.error("LLM API returned status %s: %s", e.status_code, e.message)
            raise LlmRequestFailed(
                f"LLM API request failed with status {e.status_code}: {e.message}"
            ) from e
        except APIError as e:
            logger.error("LLM API request failed: %s", e)
            raise LlmRequestFailed(f"LLM API request failed: {e}") from e

        if not response.choices:
            raise LlmRequestFailed("LLM API returned no choices")
        content = response.choices[0].message.content or ""
        logger.debug("LLM response (%d chars): %s", len(content), content[:500])
        return content


def build_llm_client(settings: Settings | None = None) -> OpenRouterClient | None:
    """Return an OpenRouterClient if an API key is configured, else None."""
    settings = settings or get_settings()
    api_key = (settings.openrouter_api_key or "").strip()
    if not api_key:
        logger.warning("OPENROUTER_API_KEY not set; designer LLM disabled")
        return None
    return OpenRouterClient(
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
        referer=settings.llm_app_referer,
        title=settings.llm_app_title,
    )
