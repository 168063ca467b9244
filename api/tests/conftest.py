import json
from types import SimpleNamespace
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient

from swift.config import Settings
from swift.main import create_app
from swift.models.llm import OpenAILLM
from swift.models.model_manager import ModelManager
from swift.models.stt import WhisperSTT
from swift.models.tts import load_tts

FAKE_MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00fake-mpeg-frames"


class FakeOpenAI:
    """Stands in for AsyncOpenAI: records calls, answers with canned text."""

    def __init__(self, transcript="What time is it?", reply="It is noon.",
                 transcribe_error=None, complete_error=None):
        self.transcript = transcript
        self.reply = reply
        self.transcribe_error = transcribe_error
        self.complete_error = complete_error
        self.transcribe_calls = []
        self.complete_calls = []
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._transcribe))
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._complete))

    async def _transcribe(self, **kwargs):
        self.transcribe_calls.append(kwargs)
        if self.transcribe_error:
            raise self.transcribe_error
        return SimpleNamespace(text=self.transcript)

    async def _complete(self, **kwargs):
        self.complete_calls.append(kwargs)
        if self.complete_error:
            raise self.complete_error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeElevenLabs:
    """httpx handler playing the Eleven Labs text-to-speech API."""

    def __init__(self, status=200, body=FAKE_MP3):
        self.status = status
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.body)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test",
        "eleven_labs_api_key": "xi-test",
        "rate_limit_enabled": False,
        "prometheus_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_models(settings: Settings, openai: FakeOpenAI, eleven_labs: FakeElevenLabs) -> ModelManager:
    http = httpx.AsyncClient(
        base_url=settings.eleven_labs_base_url,
        transport=httpx.MockTransport(eleven_labs),
    )
    return ModelManager(
        stt=WhisperSTT(openai, settings.transcription_model),
        llm=OpenAILLM(openai, settings.completion_model),
        tts=load_tts(settings, http),
    )


def clear_settings_env(monkeypatch):
    """Drop every environment variable Settings would read."""
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    clear_settings_env(monkeypatch)


def decode_header(response: httpx.Response, name: str) -> str:
    return unquote(response.headers.get(name, ""))


@pytest.fixture()
def settings():
    return make_settings()


@pytest.fixture()
def openai():
    return FakeOpenAI()


@pytest.fixture()
def eleven_labs():
    return FakeElevenLabs()


@pytest.fixture()
def app(settings, openai, eleven_labs):
    return create_app(settings, make_models(settings, openai, eleven_labs))


@pytest.fixture()
def client(app):
    return TestClient(app)
