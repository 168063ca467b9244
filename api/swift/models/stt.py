import logging

from openai import AsyncOpenAI

from swift.config import Settings
from swift.errors import InvalidAudioError
from swift.schemas.assistant import AudioInput

logger = logging.getLogger("swift")

WHISPER_LANGUAGES = {"en", "el"}


class WhisperSTT:
    def __init__(self, client: AsyncOpenAI, model: str = "whisper-1"):
        self.client = client
        self.model = model

    async def transcribe(self, input: str | AudioInput, language: str) -> str:
        """Turn the request input into a transcript.

        Text input is returned unchanged. Audio goes to the Whisper API once;
        an empty result or a provider failure raises InvalidAudioError.
        """
        if isinstance(input, str):
            return input

        try:
            transcription = await self.client.audio.transcriptions.create(
                file=(input.filename, input.data, input.content_type),
                model=self.model,
                language=language if language in WHISPER_LANGUAGES else "en",
            )
        except Exception as e:
            logger.error("Transcription error: %s", e)
            raise InvalidAudioError(str(e)) from e

        text = (transcription.text or "").strip()
        if not text:
            raise InvalidAudioError("empty transcription")

        logger.info("[STT] %d bytes -> '%s'", len(input.data), text[:100])
        return text


def load_stt(settings: Settings, client: AsyncOpenAI) -> WhisperSTT:
    logger.info("Initializing Whisper STT client (%s)", settings.transcription_model)
    return WhisperSTT(client, settings.transcription_model)
