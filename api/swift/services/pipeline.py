import logging
from typing import Mapping

from swift.config import Settings
from swift.middleware.metrics import INPUT_KIND
from swift.models.model_manager import ModelManager
from swift.models.tts import SynthesizedAudio
from swift.schemas.assistant import AssistantRequest
from swift.services.prompt import build_system_prompt, client_location, client_time
from swift.services.timing import LatencyTimer

logger = logging.getLogger("swift")


async def run_voice_pipeline(
    models: ModelManager,
    req: AssistantRequest,
    headers: Mapping[str, str],
    settings: Settings,
    request_id: str = "",
) -> dict:
    """Voice pipeline: transcribe -> complete -> synthesize.

    Each step waits for the previous one. Any step failure propagates as an
    AssistantError subclass (or the provider's own exception) and later steps
    are not called.
    """
    timer = LatencyTimer(request_id)
    INPUT_KIND.labels(kind="audio" if req.is_audio else "text").inc()

    with timer.measure("transcription"):
        transcript = await models.stt.transcribe(req.input, req.language)
    logger.info("[%s] Transcript: '%s'", request_id, transcript[:100])

    system_prompt = build_system_prompt(
        req.language,
        location=client_location(headers, settings.geo_header_prefix),
        time=client_time(headers, settings.geo_header_prefix),
        name=settings.assistant_name,
        provider=models.llm.provider,
    )

    with timer.measure("textCompletion"):
        reply = await models.llm.complete(transcript, req.message, system_prompt)
    logger.info("[%s] Reply (%s): '%s'", request_id, models.llm.provider, reply[:100])

    with timer.measure("speechSynthesis"):
        audio = await models.tts.synthesize(reply, req.language)

    return {
        "transcript": transcript,
        "reply": reply,
        "audio": audio,
        "latencies": timer.latencies(),
    }


async def run_test_phrase(models: ModelManager, settings: Settings) -> SynthesizedAudio:
    """Synthesize the fixed test phrase with the English voice."""
    return await models.tts.synthesize(settings.test_phrase, "en")
