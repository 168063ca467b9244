"""HTTP client for the assistant endpoint.

Sends one turn (typed text or WAV audio) together with the conversation so
far, and returns the spoken reply plus the metadata the server puts in the
response headers.
"""

import json
import logging
from typing import Literal, Sequence
from urllib.parse import unquote

import httpx
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger("swift.client")

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."
FALLBACK_MESSAGE = "An error occurred."


class AssistantError(Exception):
    """A failed exchange, carrying the text to show the user."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    latencies: dict[str, int] | None = None

    def to_field(self) -> str:
        return json.dumps({"role": self.role, "content": self.content})


class Exchange(BaseModel):
    transcript: str
    reply: str
    latencies: dict[str, int]
    audio: bytes


class AssistantClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float | None = 60.0,
        http: httpx.Client | None = None,
    ):
        self._http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def send(
        self,
        input: str | bytes,
        messages: Sequence[ChatMessage],
        language: str = "en",
    ) -> Exchange:
        """Submit one turn.

        `input` is typed text or WAV bytes. Raises AssistantError when the
        server answers with an error or leaves out the transcript, reply or
        audio.
        """
        # Every field is a multipart part; text parts carry no filename
        fields = [("message", (None, m.to_field())) for m in messages]
        fields.append(("language", (None, language)))
        if isinstance(input, str):
            fields.append(("input", (None, input)))
        else:
            fields.append(("input", ("audio.wav", input, "audio/wav")))

        try:
            response = self._http.post("/api", files=fields)
        except httpx.HTTPError as e:
            logger.error("Assistant request failed: %s", e)
            raise AssistantError(FALLBACK_MESSAGE) from e

        transcript = unquote(response.headers.get("X-Transcript", ""))
        reply = unquote(response.headers.get("X-Response", ""))

        if not response.is_success or not transcript or not reply or not response.content:
            if response.status_code == 429:
                raise AssistantError(RATE_LIMIT_MESSAGE, 429)
            raise AssistantError(response.text or FALLBACK_MESSAGE, response.status_code)

        raw_latencies = response.headers.get("X-Latencies", "")
        try:
            latencies = json.loads(unquote(raw_latencies)) if raw_latencies else {}
            exchange = Exchange(
                transcript=transcript,
                reply=reply,
                latencies=latencies,
                audio=response.content,
            )
        except ValueError as e:
            logger.error("Malformed assistant response: %s", e)
            raise AssistantError(FALLBACK_MESSAGE, response.status_code) from e
        return exchange

    def test_tts(self) -> bytes:
        response = self._http.get("/api/test-tts")
        if not response.is_success:
            raise AssistantError(response.text or FALLBACK_MESSAGE, response.status_code)
        return response.content

    def close(self):
        self._http.close()
