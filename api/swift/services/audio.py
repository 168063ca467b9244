from urllib.parse import quote

from fastapi.responses import JSONResponse, Response, StreamingResponse

from swift.errors import AssistantError
from swift.models.tts import SynthesizedAudio
from swift.schemas.assistant import Latencies

AUDIO_MEDIA_TYPE = "audio/mpeg"

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


def encode_header(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def metadata_headers(transcript: str, reply: str, latencies: Latencies) -> dict[str, str]:
    return {
        "X-Transcript": encode_header(transcript),
        "X-Response": encode_header(reply),
        "X-Latencies": encode_header(latencies.model_dump_json(by_alias=True)),
    }


def audio_response(audio: SynthesizedAudio, headers: dict[str, str] | None = None) -> Response:
    """Audio body plus metadata headers, buffered or relayed chunk by chunk."""
    if not audio.streamed:
        return Response(content=audio.content, media_type=AUDIO_MEDIA_TYPE, headers=headers)

    async def body():
        try:
            async for chunk in audio.stream:
                yield chunk
        finally:
            await audio.aclose()

    return StreamingResponse(body(), media_type=AUDIO_MEDIA_TYPE, headers=headers)


def error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, AssistantError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())
    return JSONResponse(
        status_code=500,
        content={"error": AssistantError.message, "details": str(exc)},
    )

