import logging

from fastapi import APIRouter, Request

from swift import __version__
from swift.dependencies import SettingsDep
from swift.schemas.health import HealthResponse

logger = logging.getLogger("swift")
router = APIRouter()


@router.get("/api/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request, settings: SettingsDep):
    """Reports configured providers and Redis reachability.

    Redis only backs rate limiting, so an unreachable Redis degrades the
    status without failing the check. `redis_connected` is null when rate
    limiting is disabled.
    """
    redis_ok = None
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is not None:
        redis_ok = await limiter.ping()

    return HealthResponse(
        status="degraded" if redis_ok is False else "healthy",
        version=__version__,
        completion_provider=settings.completion_provider,
        tts_streaming=settings.tts_streaming,
        providers_configured={
            "openai": bool(settings.openai_api_key),
            "anthropic": bool(settings.anthropic_api_key),
            "eleven_labs": bool(settings.eleven_labs_api_key),
        },
        redis_connected=redis_ok,
    )
