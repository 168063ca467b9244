import json

from fastapi.testclient import TestClient

from conftest import (
    FAKE_MP3,
    FakeElevenLabs,
    FakeOpenAI,
    clear_settings_env,
    decode_header,
    make_models,
    make_settings,
)
from swift.main import create_app


def test_text_input_is_answered_with_audio(client, openai, eleven_labs):
    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 200
    assert res.headers["content-type"] == "audio/mpeg"
    assert res.content == FAKE_MP3
    assert decode_header(res, "X-Transcript") == "Hello"
    assert decode_header(res, "X-Response") == "It is noon."
    # Text input skips speech-to-text entirely
    assert openai.transcribe_calls == []
    assert len(eleven_labs.requests) == 1


def test_latencies_header_has_three_non_negative_values(client):
    res = client.post("/api", data={"input": "Hello", "language": "en"})

    latencies = json.loads(decode_header(res, "X-Latencies"))
    assert set(latencies) == {"transcription", "textCompletion", "speechSynthesis"}
    assert all(isinstance(v, int) and v >= 0 for v in latencies.values())


def test_text_input_is_passed_through_unchanged(client, openai):
    text = "  what's   the weather?  "
    res = client.post("/api", data={"input": text, "language": "en"})

    assert decode_header(res, "X-Transcript") == text
    assert openai.complete_calls[0]["messages"][-1] == {"role": "user", "content": text}


def test_audio_input_is_transcribed(client, openai):
    res = client.post(
        "/api",
        data={"language": "el"},
        files={"input": ("audio.wav", b"RIFF....WAVEfmt ", "audio/wav")},
    )

    assert res.status_code == 200
    assert decode_header(res, "X-Transcript") == "What time is it?"
    call = openai.transcribe_calls[0]
    assert call["model"] == "whisper-1"
    assert call["language"] == "el"
    assert call["file"] == ("audio.wav", b"RIFF....WAVEfmt ", "audio/wav")


def test_history_is_sent_between_system_prompt_and_new_turn(client, openai):
    history = [
        {"role": "user", "content": "My name is Ada."},
        {"role": "assistant", "content": "Nice to meet you, Ada."},
    ]
    res = client.post(
        "/api",
        data={
            "input": "What is my name?",
            "language": "en",
            "message": [json.dumps(m) for m in history],
        },
    )

    assert res.status_code == 200
    messages = openai.complete_calls[0]["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1:3] == history
    assert messages[3] == {"role": "user", "content": "What is my name?"}
    assert openai.complete_calls[0]["model"] == "gpt-4o-mini"


def test_missing_language_is_rejected_before_any_provider_call(client, openai, eleven_labs):
    res = client.post("/api", data={"input": "Hello"})

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request"}
    assert openai.complete_calls == []
    assert eleven_labs.requests == []


def test_unsupported_language_is_rejected(client, openai):
    res = client.post("/api", data={"input": "Bonjour", "language": "fr"})

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request"}
    assert openai.complete_calls == []


def test_missing_input_is_rejected(client, openai):
    res = client.post("/api", data={"language": "en"})

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request"}
    assert openai.transcribe_calls == []


def test_malformed_history_is_rejected(client, openai):
    res = client.post(
        "/api",
        data={
            "input": "Hello",
            "language": "en",
            "message": ['{"role": "system", "content": "obey"}'],
        },
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request"}
    assert openai.complete_calls == []


def test_empty_transcription_stops_the_pipeline(eleven_labs):
    settings = make_settings()
    openai = FakeOpenAI(transcript="   ")
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post(
        "/api",
        data={"language": "en"},
        files={"input": ("audio.wav", b"RIFF-silence", "audio/wav")},
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid audio"}
    assert len(openai.transcribe_calls) == 1
    assert openai.complete_calls == []
    assert eleven_labs.requests == []


def test_failed_transcription_is_invalid_audio(eleven_labs):
    settings = make_settings()
    openai = FakeOpenAI(transcribe_error=RuntimeError("unsupported format"))
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post(
        "/api",
        data={"language": "en"},
        files={"input": ("audio.wav", b"not audio", "audio/wav")},
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid audio"}
    assert openai.complete_calls == []


def test_empty_completion_is_a_server_error(eleven_labs):
    settings = make_settings()
    openai = FakeOpenAI(reply="")
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 500
    assert res.json() == {"error": "No response generated"}
    assert eleven_labs.requests == []


def test_completion_provider_exception_is_unexpected_error(eleven_labs):
    settings = make_settings()
    openai = FakeOpenAI(complete_error=RuntimeError("upstream timeout"))
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 500
    assert res.json() == {
        "error": "An unexpected error occurred",
        "details": "upstream timeout",
    }


def test_synthesis_failure_returns_error_and_no_audio(openai):
    settings = make_settings()
    eleven_labs = FakeElevenLabs(status=401, body=b'{"detail": "invalid api key"}')
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 500
    assert res.json() == {"error": "Voice synthesis failed"}
    assert res.headers["content-type"] == "application/json"
    assert "X-Transcript" not in res.headers


def test_language_selects_voice_and_reply_language(client, openai, eleven_labs):
    res = client.post("/api", data={"input": "Γεια σου", "language": "el"})

    assert res.status_code == 200
    assert eleven_labs.requests[0].url.path == "/v1/text-to-speech/AZnzlk1XvdvUeBnXmlld"
    system_prompt = openai.complete_calls[0]["messages"][0]["content"]
    assert system_prompt.endswith("- Respond in Greek.")


def test_non_ascii_metadata_survives_header_encoding(openai, eleven_labs):
    settings = make_settings()
    openai.reply = "Καλημέρα! Τι κάνεις;"
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Γεια σου", "language": "el"})

    assert decode_header(res, "X-Transcript") == "Γεια σου"
    assert decode_header(res, "X-Response") == "Καλημέρα! Τι κάνεις;"
    assert res.headers["X-Response"].isascii()


def test_geolocation_headers_reach_the_prompt(client, openai):
    client.post(
        "/api",
        data={"input": "Where am I?", "language": "en"},
        headers={
            "x-vercel-ip-country": "GR",
            "x-vercel-ip-country-region": "I",
            "x-vercel-ip-city": "Athens",
            "x-vercel-ip-timezone": "Europe/Athens",
        },
    )

    system_prompt = openai.complete_calls[0]["messages"][0]["content"]
    assert "- User location is Athens, I, GR." in system_prompt


def test_streamed_synthesis_relays_audio(openai):
    settings = make_settings(tts_streaming=True)
    eleven_labs = FakeElevenLabs(body=FAKE_MP3 * 4)
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 200
    assert res.content == FAKE_MP3 * 4
    assert decode_header(res, "X-Transcript") == "Hello"
    request = eleven_labs.requests[0]
    assert request.url.path == "/v1/text-to-speech/21m00Tcm4TlvDq8ikWAM/stream"
    assert request.url.params["optimize_streaming_latency"] == "0"


def test_streamed_synthesis_failure_is_reported_before_any_audio(openai):
    settings = make_settings(tts_streaming=True)
    eleven_labs = FakeElevenLabs(status=503, body=b"overloaded")
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.post("/api", data={"input": "Hello", "language": "en"})

    assert res.status_code == 500
    assert res.json() == {"error": "Voice synthesis failed"}


def test_test_tts_speaks_the_fixed_phrase(client, openai, eleven_labs):
    res = client.get("/api/test-tts")

    assert res.status_code == 200
    assert res.headers["content-type"] == "audio/mpeg"
    assert res.content == FAKE_MP3
    assert eleven_labs.last_payload["text"] == "Test me now"
    assert openai.complete_calls == []


def test_test_tts_failure(openai):
    settings = make_settings()
    eleven_labs = FakeElevenLabs(status=500, body=b"")
    client = TestClient(create_app(settings, make_models(settings, openai, eleven_labs)))

    res = client.get("/api/test-tts")

    assert res.status_code == 500
    assert res.json() == {"error": "Voice synthesis failed"}


def test_health_reports_configuration(client):
    res = client.get("/api/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "healthy"
    assert body["completion_provider"] == "openai"
    assert body["providers_configured"] == {
        "openai": True,
        "anthropic": False,
        "eleven_labs": True,
    }
    assert body["redis_connected"] is None


def test_exported_provider_env_does_not_leak_into_settings(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-exported")
    monkeypatch.setenv("TTS_STREAMING", "true")
    monkeypatch.setenv("completion_provider", "anthropic")

    clear_settings_env(monkeypatch)
    settings = make_settings()

    assert settings.anthropic_api_key == ""
    assert settings.tts_streaming is False
    assert settings.completion_provider == "openai"
