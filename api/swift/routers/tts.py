import logging

from fastapi import APIRouter
from fastapi.responses import Response

from swift.dependencies import ModelsDep, SettingsDep
from swift.errors import AssistantError
from swift.schemas.assistant import ErrorResponse
from swift.services.audio import audio_response, error_response
from swift.services.pipeline import run_test_phrase

logger = logging.getLogger("swift")
router = APIRouter()


@router.get(
    "/api/test-tts",
    summary="Synthesize a fixed test phrase",
    response_class=Response,
    responses={
        200: {"content": {"audio/mpeg": {}}},
        500: {"model": ErrorResponse},
    },
)
async def speak_test_phrase(models: ModelsDep, settings: SettingsDep):
    """Checks the text-to-speech provider end to end, without transcription or completion."""
    try:
        audio = await run_test_phrase(models, settings)
    except AssistantError as e:
        return error_response(e)
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        return error_response(e)

    return audio_response(audio)
