import io
import json
from urllib.error import URLError

import pytest

import assistant
from assistant import (
    FALLBACK_REPLY,
    AssistantError,
    FinanceAssistant,
    Turn,
    build_payload,
    extract_reply,
)
from config import Settings


def _settings(api_key: str = "secret") -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        timezone="Asia/Jakarta",
        page_size=20,
        assistant_api_url="https://example.test/v1beta/models/",
        assistant_api_key=api_key,
        assistant_model="gemini-2.0-flash",
        assistant_timeout_secs=3,
    )


class _Response(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def test_payload_orders_prompt_history_and_primer() -> None:
    payload = build_payload(
        [Turn("user", "How do I save?"), Turn("bot", "Start small.")],
        "And invest?",
    )
    roles = [item["role"] for item in payload["contents"]]
    texts = [item["parts"][0]["text"] for item in payload["contents"]]
    assert roles == ["user", "user", "model", "user", "model"]
    assert texts[0] == assistant.SYSTEM_PROMPT
    assert texts[3] == "And invest?"
    assert texts[-1] == assistant.PRIMER


def test_extract_reply_falls_back_when_no_candidate() -> None:
    assert extract_reply({}) == FALLBACK_REPLY
    assert extract_reply({"candidates": []}) == FALLBACK_REPLY
    ok = {"candidates": [{"content": {"parts": [{"text": "Budget first."}]}}]}
    assert extract_reply(ok) == "Budget first."


def test_ask_posts_to_model_endpoint(monkeypatch) -> None:
    seen = {}

    def fake_urlopen(req, timeout):
        seen["url"] = req.full_url
        seen["timeout"] = timeout
        seen["body"] = json.loads(req.data.decode("utf-8"))
        body = {"candidates": [{"content": {"parts": [{"text": "Hi!"}]}}]}
        return _Response(json.dumps(body).encode("utf-8"))

    monkeypatch.setattr(assistant, "get_settings", _settings)
    monkeypatch.setattr(assistant, "urlopen", fake_urlopen)

    reply = FinanceAssistant().ask([], "Hello")
    assert reply == "Hi!"
    assert seen["url"] == (
        "https://example.test/v1beta/models/gemini-2.0-flash:generateContent?key=secret"
    )
    assert seen["timeout"] == 3
    assert seen["body"]["contents"][1]["parts"][0]["text"] == "Hello"


def test_ask_wraps_transport_errors(monkeypatch) -> None:
    def failing_urlopen(req, timeout):
        raise URLError("no route")

    monkeypatch.setattr(assistant, "get_settings", _settings)
    monkeypatch.setattr(assistant, "urlopen", failing_urlopen)

    with pytest.raises(AssistantError):
        FinanceAssistant().ask([], "Hello")


def test_missing_api_key_is_reported(monkeypatch) -> None:
    monkeypatch.setattr(assistant, "get_settings", lambda: _settings(api_key=""))
    with pytest.raises(AssistantError):
        FinanceAssistant().ask([], "Hello")
