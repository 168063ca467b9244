import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swift import __version__
from swift.config import Settings, settings as default_settings
from swift.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from swift.models.model_manager import ModelManager
from swift.routers import assistant, health, tts

logger = logging.getLogger("swift")

API_DESCRIPTION = """
# Swift Voice API

A fast voice assistant: speak or type, get a spoken answer back.

## Pipeline

**Voice:** Audio → STT (Whisper) → LLM (GPT / Claude) → TTS (Eleven Labs) → Audio

**Text:** Text → LLM → TTS → Audio

Conversation history is held by the client and sent with every request;
the server keeps no sessions.

## Supported languages

| Code | Language |
|------|----------|
| `en` | English |
| `el` | Greek |
"""

METADATA_HEADERS = ["X-Transcript", "X-Response", "X-Latencies"]


def create_app(
    settings: Settings | None = None,
    models: ModelManager | None = None,
) -> FastAPI:
    """Build the application.

    Provider clients are created in the lifespan from settings unless
    `models` is given, in which case they are used as-is and left open.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Swift Voice starting up")
        logger.info(
            "Completion: %s, TTS streaming: %s",
            settings.completion_provider,
            settings.tts_streaming,
        )

        owns_models = app.state.models is None
        if owns_models:
            app.state.models = ModelManager.from_settings(settings)

        yield

        if owns_models:
            await app.state.models.aclose()
        if app.state.rate_limiter is not None:
            await app.state.rate_limiter.aclose()
        logger.info("Swift Voice shutting down")

    app = FastAPI(
        title="Swift Voice API",
        description=API_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "assistant", "description": "Voice assistant exchange"},
            {"name": "tts", "description": "Text-to-Speech check"},
            {"name": "health", "description": "Server state and provider configuration"},
        ],
    )
    app.state.settings = settings
    app.state.models = models
    app.state.rate_limiter = None

    # CORS, with the metadata headers readable by browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=METADATA_HEADERS,
    )

    if settings.rate_limit_enabled:
        app.state.rate_limiter = RateLimiter(
            settings.redis_url, settings.rate_limit_per_hour
        )
        app.add_middleware(RateLimitMiddleware)

    # Prometheus metrics
    if settings.prometheus_enabled:
        from swift.middleware.metrics import setup_metrics

        setup_metrics(app)

    app.include_router(assistant.router, tags=["assistant"])
    app.include_router(tts.router, tags=["tts"])
    app.include_router(health.router, tags=["health"])
    return app


app = create_app()
