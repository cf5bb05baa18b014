"""Gemini text generation over the REST ``generateContent`` endpoint.

``generate`` never raises for remote failures: it returns ``Ok(text)`` or
``Err(reason)`` so callers branch on the type instead of inspecting text.
"""
import os
import json
import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import requests
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
ERROR_PREFIX = "Si è verificato un errore"
ERROR_TEXT = (
    f"{ERROR_PREFIX} durante la generazione del contenuto. "
    "Controlla la console per i dettagli."
)

HEADERS = {"content-type": "application/json"}

Prompt = Union[str, List[Dict[str, Any]]]


@dataclass(frozen=True)
class Ok:
    text: str

    ok = True

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class Err:
    reason: str
    # validation messages are shown verbatim; remote failures are not
    user_facing: bool = False

    ok = False

    def as_text(self) -> str:
        return self.reason if self.user_facing else ERROR_TEXT


class TransportError(Exception):
    pass


def _setting(name: str, default: Optional[str] = None) -> Optional[str]:
    if has_app_context() and current_app.config.get(name):
        return current_app.config[name]
    return os.getenv(name, default)


def _post_with_retry(url: str, payload: Dict[str, Any], retries: int = 2, timeout: int = 30) -> requests.Response:
    last = None
    for i in range(retries + 1):
        try:
            return requests.post(url, headers=HEADERS, data=json.dumps(payload), timeout=timeout)
        except requests.RequestException as e:
            last = e
            if i < retries:
                time.sleep(min(2 ** i, 8))
    raise TransportError(str(last) if last else "request failed")


def _parts(prompt: Prompt) -> List[Dict[str, Any]]:
    if isinstance(prompt, str):
        return [{"text": prompt}]
    return list(prompt)


def build_payload(prompt: Prompt, schema: Optional[Dict[str, Any]] = None, search: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": _parts(prompt)}]}
    if schema is not None:
        payload["generationConfig"] = {
            "responseMimeType": "application/json",
            "responseSchema": schema,
        }
    if search:
        payload["tools"] = [{"google_search": {}}]
    return payload


def _candidate_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def generate(prompt: Prompt, schema: Optional[Dict[str, Any]] = None, search: bool = False):
    """Ask the model for text.

    ``prompt`` is a string or a list of parts (``{"text": ...}`` or
    ``{"inline_data": {"mime_type": ..., "data": ...}}``). ``schema`` asks for
    JSON output following an OpenAPI-style schema; ``search`` enables Google
    Search grounding.
    """
    api_key = _setting("GEMINI_API_KEY")
    if not api_key:
        logger.error("GEMINI_API_KEY not set")
        return Err("GEMINI_API_KEY not set")

    model = _setting("GEMINI_MODEL", DEFAULT_MODEL)
    base = _setting("GEMINI_API_URL", DEFAULT_API_URL).rstrip("/")
    url = f"{base}/{model}:generateContent?key={api_key}"

    try:
        res = _post_with_retry(url, build_payload(prompt, schema, search))
    except TransportError as e:
        logger.error(f"Gemini request failed: {e}")
        return Err(str(e))

    if res.status_code != 200:
        logger.error(f"Gemini error: {res.status_code} {res.text[:200]}")
        return Err(f"Gemini error: {res.status_code}")
    try:
        data = res.json()
    except ValueError:
        logger.error("Invalid JSON from Gemini")
        return Err("Invalid JSON from Gemini")

    text = _candidate_text(data)
    if not text:
        logger.error("Gemini returned no candidates")
        return Err("Empty response")
    return Ok(text)
