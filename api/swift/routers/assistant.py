import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from swift.dependencies import ModelsDep, RequestIdDep, SettingsDep
from swift.errors import AssistantError, InvalidRequestError
from swift.middleware.metrics import PIPELINE_ERRORS
from swift.schemas.assistant import AssistantRequest, ErrorResponse
from swift.services.audio import audio_response, error_response, metadata_headers
from swift.services.pipeline import run_voice_pipeline

logger = logging.getLogger("swift")
router = APIRouter()


async def _parse(request: Request, max_upload_bytes: int) -> AssistantRequest:
    try:
        form = await request.form()
    except Exception as e:
        raise InvalidRequestError(f"unreadable form data: {e}") from e
    return await AssistantRequest.from_form(form, max_upload_bytes)


@router.post(
    "/api",
    summary="Voice assistant exchange",
    response_class=Response,
    responses={
        200: {"content": {"audio/mpeg": {}}},
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def assistant(
    request: Request,
    models: ModelsDep,
    settings: SettingsDep,
    request_id: RequestIdDep,
):
    """Answer one spoken or typed turn with synthesized speech.

    Multipart fields: `input` (text or audio file), repeated `message`
    (JSON `{"role", "content"}`, oldest first) and `language` (`en` or `el`).

    The reply audio is the body (`audio/mpeg`). `X-Transcript`, `X-Response`
    and `X-Latencies` carry the URL-encoded transcript, reply text and step
    durations in milliseconds.
    """
    try:
        req = await _parse(request, settings.upload_max_bytes)
        result = await run_voice_pipeline(
            models, req, request.headers, settings, request_id
        )
    except AssistantError as e:
        log = logger.warning if e.status_code < 500 else logger.error
        log("[%s] %s: %s", request_id, e.message, e.detail)
        PIPELINE_ERRORS.labels(kind=e.kind).inc()
        return error_response(e)
    except Exception as e:
        logger.error("[%s] Unexpected error: %s", request_id, e, exc_info=True)
        PIPELINE_ERRORS.labels(kind="unexpected").inc()
        return error_response(e)

    headers = metadata_headers(result["transcript"], result["reply"], result["latencies"])
    return audio_response(result["audio"], headers)
