"""Transports that send one prompt to a text-generation provider.

A transport returns the raw response text. Turning that text into a plan is
the caller's job (see ``dailyflow.ai``).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import httpx
import requests
from google import genai
from google.genai import errors, types

from .errors import ServiceError

logger = logging.getLogger(__name__)

OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
LOCAL_ENDPOINT = "http://localhost:1234/v1/chat/completions"


class PlanTransport(Protocol):
    def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        system_instruction: str,
        temperature: float,
    ) -> str: ...


class GeminiTransport:
    def __init__(self, api_key: str, model: str):
        self.model = model
        self._client = genai.Client(api_key=api_key)

    def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        system_instruction: str,
        temperature: float,
    ) -> str:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            system_instruction=system_instruction,
            temperature=temperature,
        )
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except errors.APIError as exc:
            logger.error("Gemini API error: %s", exc)
            raise ServiceError(str(exc)) from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise ServiceError(f"Gemini request failed: {exc}") from exc
        return response.text or ""


class OpenAICompatibleTransport:
    """Chat-completions transport for OpenAI and local OpenAI-style servers."""

    def __init__(self, endpoint: str, api_key: str, model: str, timeout: float = 120.0):
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self._api_key = api_key.strip()

    def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        system_instruction: str,
        temperature: float,
    ) -> str:
        system = (
            f"{system_instruction}\n"
            "Reply with a single JSON object that validates against this JSON schema:\n"
            f"{json.dumps(to_json_schema(schema))}"
        )
        payload = {
            "model": self.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }
        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                headers=_auth_headers(self._api_key),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Chat completion request failed: %s", exc)
            raise ServiceError(f"AI request failed: {exc}") from exc

        if response.status_code != 200:
            raise ServiceError(f"AI request failed ({response.status_code}): {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError("AI provider returned non-JSON response.") from exc
        return _extract_openai_text(data)


def resolve_endpoint(provider: str, endpoint: str) -> str:
    custom = endpoint.strip()
    if custom:
        return custom
    if provider == "local":
        return LOCAL_ENDPOINT
    return OPENAI_ENDPOINT


def to_json_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert the Gemini-style schema (upper-case types) to JSON Schema."""
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.lower()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: to_json_schema(sub) for name, sub in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = to_json_schema(value)
        else:
            converted[key] = value
    return converted


def _auth_headers(api_key: str) -> dict[str, str]:
    if not api_key:
        return {}
    return {"Authorization": f"Bearer {api_key}"}


def _extract_openai_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise ServiceError("OpenAI-style response was not an object.")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ServiceError("OpenAI-style response missing choices.")
    message = choices[0].get("message", {}) if isinstance(choices[0], dict) else {}
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks: list[str] = []
        for entry in content:
            if isinstance(entry, dict):
                text = entry.get("text")
                if isinstance(text, str):
                    chunks.append(text)
        return "\n".join(chunks)
    return ""
