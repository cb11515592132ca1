from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Sequence
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from config import get_settings


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are FinPal, a friendly and knowledgeable personal finance assistant "
    "for the My Wallet app. Give helpful advice, explain financial concepts and "
    "answer questions about personal finance. Keep an encouraging, easy to "
    "understand tone. Focus on personal finance, budgeting, savings and "
    "investing, especially in the Indonesian context."
)
PRIMER = "Sure, as FinPal I will answer:"
FALLBACK_REPLY = "Sorry, I can't respond right now."


class AssistantError(RuntimeError):
    pass


@dataclass(frozen=True)
class Turn:
    sender: str  # "user" | "bot"
    text: str


def build_payload(history: Sequence[Turn], message: str) -> dict[str, object]:
    contents = [{"role": "user", "parts": [{"text": SYSTEM_PROMPT}]}]
    for turn in history:
        role = "user" if turn.sender == "user" else "model"
        contents.append({"role": role, "parts": [{"text": turn.text}]})
    contents.append({"role": "user", "parts": [{"text": message}]})
    contents.append({"role": "model", "parts": [{"text": PRIMER}]})
    return {"contents": contents}


def extract_reply(payload: dict) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return FALLBACK_REPLY
    return text or FALLBACK_REPLY


class FinanceAssistant:
    def __init__(self) -> None:
        self.settings = get_settings()

    def endpoint(self) -> str:
        if not self.settings.assistant_api_key:
            raise AssistantError("Assistant API key is not configured")
        base = self.settings.assistant_api_url.rstrip("/")
        model = quote(self.settings.assistant_model, safe="-._")
        key = quote(self.settings.assistant_api_key, safe="")
        return f"{base}/{model}:generateContent?key={key}"

    def ask(self, history: Sequence[Turn], message: str) -> str:
        body = json.dumps(build_payload(history, message)).encode("utf-8")
        req = Request(
            self.endpoint(),
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(req, timeout=self.settings.assistant_timeout_secs) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except (URLError, TimeoutError, json.JSONDecodeError) as exc:
            logger.warning(f"assistant_request_failed: error={exc}")
            raise AssistantError("Failed to reach the assistant service") from exc
        return extract_reply(payload)
