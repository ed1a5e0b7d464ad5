import pytest
import requests
from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    RateLimitedError,
)
from app.services.gemini import GeminiClient, extract_json


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


def reply(text):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def test_generate_posts_prompt_and_returns_text(monkeypatch):
    captured = {}

    def fake_post(url, params=None, json=None, timeout=None):
        captured.update(url=url, params=params, body=json, timeout=timeout)
        return FakeResponse(payload=reply("Hello plan"))

    monkeypatch.setattr(requests, "post", fake_post)
    client = GeminiClient(api_key="g-key", model="gemini-test")

    text = client.generate(
        "plan something",
        system_instruction="be helpful",
        max_output_tokens=123,
        temperature=0.5,
    )

    assert text == "Hello plan"
    assert captured["url"] == f"{settings.GEMINI_BASE_URL}/models/gemini-test:generateContent"
    assert captured["params"] == {"key": "g-key"}
    body = captured["body"]
    assert body["contents"][0]["parts"][0]["text"] == "plan something"
    assert body["systemInstruction"]["parts"][0]["text"] == "be helpful"
    assert body["generationConfig"] == {"maxOutputTokens": 123, "temperature": 0.5}
    assert all(s["threshold"] == "BLOCK_NONE" for s in body["safetySettings"])


def test_generate_without_key_raises():
    with pytest.raises(ConfigurationError):
        GeminiClient(api_key="").generate("hi")


@pytest.mark.parametrize(
    "response, error",
    [
        (FakeResponse(status_code=429, payload={}), RateLimitedError),
        (FakeResponse(status_code=500, payload={"error": "boom"}), ProviderError),
        (FakeResponse(payload={"candidates": []}), EmptyResponseError),
        (FakeResponse(payload=reply("   ")), EmptyResponseError),
        (FakeResponse(payload={"candidates": "bad"}), ProviderError),
    ],
)
def test_generate_error_mapping(monkeypatch, response, error):
    monkeypatch.setattr(requests, "post", lambda *a, **k: response)
    with pytest.raises(error):
        GeminiClient(api_key="g-key").generate("hi")


def test_rate_limited_is_a_provider_error():
    assert issubclass(RateLimitedError, ProviderError)
    assert issubclass(EmptyResponseError, ProviderError)


def test_extract_json_strips_fences():
    assert extract_json('```json\n["restaurant", "park"]\n```') == ["restaurant", "park"]
    assert extract_json('[{"id": "a"}]') == [{"id": "a"}]


def test_extract_json_rejects_prose():
    with pytest.raises(ValueError):
        extract_json("Sure! Here are some places.")


def test_generate_can_request_json(monkeypatch):
    captured = {}

    def fake_post(url, params=None, json=None, timeout=None):
        captured["body"] = json
        return FakeResponse(payload=reply('["park"]'))

    monkeypatch.setattr(requests, "post", fake_post)

    GeminiClient(api_key="g-key").generate("pick", response_mime_type="application/json")

    assert captured["body"]["generationConfig"]["responseMimeType"] == "application/json"
    assert "systemInstruction" not in captured["body"]
