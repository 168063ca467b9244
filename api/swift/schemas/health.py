from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    version: str
    completion_provider: str
    tts_streaming: bool
    providers_configured: dict[str, bool]
    redis_connected: bool | None
