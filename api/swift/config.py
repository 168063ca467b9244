from pydantic_settings import BaseSettings
from typing import Dict, List, Literal, Optional


class Settings(BaseSettings):
    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    # Provider credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    eleven_labs_api_key: str = ""

    # Speech-to-text
    transcription_model: str = "whisper-1"

    # Text completion: "openai" or "anthropic"
    completion_provider: Literal["openai", "anthropic"] = "openai"
    completion_model: str = "gpt-4o-mini"
    claude_model: str = "claude-3-5-haiku-20241022"
    claude_max_tokens: int = 256
    assistant_name: str = "Swift"

    # Text-to-speech
    eleven_labs_base_url: str = "https://api.elevenlabs.io"
    eleven_labs_model_id: str = "eleven_multilingual_v2"
    voices: Dict[str, str] = {
        "en": "21m00Tcm4TlvDq8ikWAM",  # Rachel
        "el": "AZnzlk1XvdvUeBnXmlld",  # Elli
    }
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.75
    tts_streaming: bool = False
    test_phrase: str = "Test me now"

    # None keeps each client library's default timeout
    provider_timeout_s: Optional[float] = None

    # Request hints set by the edge network
    geo_header_prefix: str = "x-vercel-ip-"
    request_id_header: str = "x-vercel-id"

    # Redis (rate limiting)
    redis_url: str = "redis://localhost:6379/0"
    rate_limit_enabled: bool = True
    rate_limit_per_hour: int = 100

    # Monitoring
    prometheus_enabled: bool = True

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Limits
    upload_max_bytes: int = 10 * 1024 * 1024  # 10 MB

    model_config = {
        "env_file": ["../.env", ".env"],
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
