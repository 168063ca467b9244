import logging
from typing import Protocol, Sequence

import anthropic
from openai import AsyncOpenAI

from swift.config import Settings
from swift.errors import MissingCompletionError
from swift.middleware.metrics import COMPLETION_REQUESTS
from swift.schemas.assistant import Message

logger = logging.getLogger("swift")


class Completer(Protocol):
    provider: str

    async def complete(
        self, transcript: str, history: Sequence[Message], system_prompt: str
    ) -> str: ...


def _conversation(history: Sequence[Message], transcript: str) -> list[dict]:
    messages = [{"role": m.role, "content": m.content} for m in history]
    messages.append({"role": "user", "content": transcript})
    return messages


class OpenAILLM:
    provider = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    async def complete(
        self, transcript: str, history: Sequence[Message], system_prompt: str
    ) -> str:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                *_conversation(history, transcript),
            ],
        )
        COMPLETION_REQUESTS.labels(provider=self.provider).inc()

        reply = completion.choices[0].message.content if completion.choices else None
        if not reply:
            raise MissingCompletionError("No response generated from OpenAI")
        return reply


class ClaudeLLM:
    provider = "anthropic"

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str = "claude-3-5-haiku-20241022",
        max_tokens: int = 256,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def complete(
        self, transcript: str, history: Sequence[Message], system_prompt: str
    ) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            messages=_conversation(history, transcript),
        )
        COMPLETION_REQUESTS.labels(provider=self.provider).inc()

        reply = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not reply:
            raise MissingCompletionError("No response generated from Anthropic")
        return reply


def load_llm(settings: Settings, openai_client: AsyncOpenAI) -> Completer:
    """Completion backend selected by settings.completion_provider."""
    provider = settings.completion_provider

    if provider == "openai":
        logger.info("Initializing OpenAI completion client (%s)", settings.completion_model)
        return OpenAILLM(openai_client, settings.completion_model)
    if provider == "anthropic":
        logger.info("Initializing Claude completion client (%s)", settings.claude_model)
        kwargs = {}
        if settings.provider_timeout_s is not None:
            kwargs["timeout"] = settings.provider_timeout_s
        client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key, **kwargs)
        return ClaudeLLM(client, settings.claude_model, settings.claude_max_tokens)

    raise ValueError(f"Invalid completion provider: {provider}")
