import logging
from typing import AsyncIterator

import httpx

from swift.config import Settings
from swift.errors import SynthesisError
from swift.middleware.metrics import SYNTHESIS_FAILURES

logger = logging.getLogger("swift")


class SynthesizedAudio:
    """MP3 audio from the TTS provider, either fully buffered or still streaming."""

    def __init__(
        self,
        content: bytes | None = None,
        stream: AsyncIterator[bytes] | None = None,
        response: httpx.Response | None = None,
    ):
        self.content = content
        self.stream = stream
        self._response = response

    @property
    def streamed(self) -> bool:
        return self.stream is not None

    async def aclose(self):
        if self._response is not None:
            await self._response.aclose()


class ElevenLabsTTS:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        voices: dict[str, str],
        model_id: str = "eleven_multilingual_v2",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        streaming: bool = False,
    ):
        self.client = client
        self.api_key = api_key
        self.voices = voices
        self.model_id = model_id
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.streaming = streaming

    def voice_for(self, language: str) -> str:
        return self.voices.get(language) or self.voices["en"]

    async def synthesize(self, text: str, language: str = "en") -> SynthesizedAudio:
        """Synthesize text to MP3.

        Raises SynthesisError on a transport error, a non-2xx status or an
        empty body. In streaming mode the status and the first chunk are
        checked before anything is handed back, so a failure never leaves
        partial audio behind.
        """
        voice_id = self.voice_for(language)
        path = f"/v1/text-to-speech/{voice_id}"
        params = None
        if self.streaming:
            path += "/stream"
            params = {"optimize_streaming_latency": 0}

        request = self.client.build_request(
            "POST",
            path,
            params=params,
            headers={
                "Accept": "audio/mpeg",
                "xi-api-key": self.api_key,
            },
            json={
                "text": text,
                "model_id": self.model_id,
                "voice_settings": {
                    "stability": self.stability,
                    "similarity_boost": self.similarity_boost,
                },
            },
        )

        try:
            response = await self.client.send(request, stream=self.streaming)
        except httpx.HTTPError as e:
            self._fail("Eleven Labs request failed: %s", e)

        if not response.is_success:
            await response.aclose()
            self._fail(
                "Eleven Labs API error: %s %s", response.status_code, response.reason_phrase
            )

        if not self.streaming:
            if not response.content:
                self._fail("Eleven Labs API error: %s", "no audio data generated")
            logger.info("[TTS] %d chars -> %d bytes", len(text), len(response.content))
            return SynthesizedAudio(content=response.content)

        chunks = response.aiter_bytes()
        try:
            first = await anext(chunks)
        except StopAsyncIteration:
            await response.aclose()
            self._fail("Eleven Labs API error: %s", "empty audio stream")
        except httpx.HTTPError as e:
            await response.aclose()
            self._fail("Eleven Labs stream failed: %s", e)

        async def relay():
            yield first
            async for chunk in chunks:
                yield chunk

        logger.info("[TTS] %d chars -> streaming", len(text))
        return SynthesizedAudio(stream=relay(), response=response)

    @staticmethod
    def _fail(msg: str, *args):
        logger.error(msg, *args)
        SYNTHESIS_FAILURES.inc()
        raise SynthesisError(msg % args)


def load_tts(settings: Settings, client: httpx.AsyncClient | None = None) -> ElevenLabsTTS:
    logger.info(
        "Initializing Eleven Labs TTS (%s, streaming=%s)",
        settings.eleven_labs_model_id,
        settings.tts_streaming,
    )
    if client is None:
        kwargs = {}
        if settings.provider_timeout_s is not None:
            kwargs["timeout"] = settings.provider_timeout_s
        client = httpx.AsyncClient(base_url=settings.eleven_labs_base_url, **kwargs)

    return ElevenLabsTTS(
        client,
        api_key=settings.eleven_labs_api_key,
        voices=settings.voices,
        model_id=settings.eleven_labs_model_id,
        stability=settings.voice_stability,
        similarity_boost=settings.voice_similarity_boost,
        streaming=settings.tts_streaming,
    )
