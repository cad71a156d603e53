"""
LLM client — async wrapper around an OpenAI-compatible chat completions API.

Accepts role-tagged content blocks (text and base64 images) as sent by the
browser form and returns the completion as a list of text blocks.
"""

import openai
from openai import AsyncOpenAI
from structlog import get_logger

from bugticket.core.config import Settings
from bugticket.core.exceptions import (
    LLMAPIError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from bugticket.models.api import ChatMessage, GenerateResponse, ImageBlock, TextBlock

logger = get_logger()


def to_openai_messages(messages: list[ChatMessage]) -> list[dict]:
    """Convert content blocks to chat-completions message parts."""
    converted = []
    for message in messages:
        if isinstance(message.content, str):
            converted.append({"role": message.role, "content": message.content})
            continue

        parts = []
        for block in message.content:
            if isinstance(block, ImageBlock):
                source = block.source
                parts.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{source.media_type};base64,{source.data}"},
                })
            else:
                parts.append({"type": "text", "text": block.text})
        converted.append({"role": message.role, "content": parts})
    return converted


class TicketGenerator:
    """Sends ticket prompts to the LLM provider."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._settings.llm_api_key,
                base_url=self._settings.OPENAI_BASE_URL,
                timeout=self._settings.LLM_TIMEOUT_SECONDS,
            )
        return self._client

    async def generate(self, messages: list[ChatMessage]) -> GenerateResponse:
        """Run one completion.

        Raises:
            UpstreamTimeoutError: the provider did not answer in time.
            UpstreamUnavailableError: the provider could not be reached.
            LLMAPIError: the provider answered with an error status.
        """
        model = self._settings.LLM_MODEL
        logger.info(
            "llm_call_start",
            model=model,
            messages_count=len(messages),
        )

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=to_openai_messages(messages),
                max_tokens=self._settings.LLM_MAX_TOKENS,
            )
        except openai.APITimeoutError as e:
            logger.error("llm_call_timeout", model=model)
            raise UpstreamTimeoutError(
                "The AI service took too long to respond. Please try again."
            ) from e
        except openai.APIConnectionError as e:
            logger.error("llm_call_unreachable", model=model, error=str(e))
            raise UpstreamUnavailableError("Could not reach the AI service.") from e
        except openai.APIStatusError as e:
            logger.error("llm_call_failed", model=model, status=e.status_code, error=e.message)
            raise LLMAPIError(
                e.message or "Failed to generate ticket",
                status_code=e.status_code,
            ) from e

        choice = response.choices[0]
        text = choice.message.content or ""
        logger.debug("llm_raw_response", raw=text[:500])

        usage = response.usage
        logger.info(
            "llm_call_complete",
            model=response.model,
            finish_reason=choice.finish_reason,
            tokens_prompt=usage.prompt_tokens if usage else None,
            tokens_completion=usage.completion_tokens if usage else None,
        )

        return GenerateResponse(
            id=response.id or "",
            model=response.model or model,
            content=[TextBlock(text=text)],
            stop_reason=choice.finish_reason,
            usage={
                "input_tokens": usage.prompt_tokens if usage else None,
                "output_tokens": usage.completion_tokens if usage else None,
            },
        )
