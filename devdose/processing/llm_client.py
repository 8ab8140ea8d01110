"""
Completion clients: Gemini through google-genai, or a local Ollama server.

Both expose ``async complete(system, prompt) -> str`` and raise
``CompletionError`` for anything that prevented a usable response.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import httpx
import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from devdose.config.settings import ConfigurationError, LLMSettings, get_settings

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """The completion service failed or returned nothing."""


class CompletionClient(Protocol):
    async def complete(self, system: str, prompt: str) -> str: ...


class GeminiCompletionClient:
    """Gemini via the SDK's native async client."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        self._settings = settings or get_settings().llm
        if client is None:
            if not self._settings.api_key:
                raise ConfigurationError("GEMINI_API_KEY is required when LLM_PROVIDER=gemini")
            client = genai.Client(api_key=self._settings.api_key)
        self._client = client

    async def complete(self, system: str, prompt: str) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=self._settings.temperature,
            top_p=self._settings.top_p,
            top_k=self._settings.top_k,
            max_output_tokens=self._settings.max_output_tokens,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._settings.model,
                contents=prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise CompletionError(f"Gemini request failed: {exc}") from exc

        text = response.text
        if not text:
            raise CompletionError("Gemini returned an empty response")
        return text


class OllamaCompletionClient:
    """Ollama's ``/api/generate`` endpoint, called off the event loop."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings().llm
        self._session = session or requests.Session()

    async def complete(self, system: str, prompt: str) -> str:
        return await asyncio.to_thread(self._generate, system, prompt)

    def _generate(self, system: str, prompt: str) -> str:
        url = f"{self._settings.ollama_url.rstrip('/')}/api/generate"
        payload = {
            "model": self._settings.model,
            "system": system,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self._settings.temperature,
                "top_p": self._settings.top_p,
                "top_k": self._settings.top_k,
                "num_predict": self._settings.max_output_tokens,
            },
        }
        try:
            response = self._session.post(url, json=payload, timeout=self._settings.request_timeout)
        except requests.RequestException as exc:
            raise CompletionError(f"Ollama request failed: {exc}") from exc

        if response.status_code >= 400:
            raise CompletionError(
                f"Ollama returned {response.status_code}: {response.text[:200]}"
            )
        try:
            text = response.json().get("response", "")
        except ValueError as exc:
            raise CompletionError("Ollama returned a non-JSON body") from exc
        if not text:
            raise CompletionError("Ollama returned an empty response")
        return text


def create_completion_client(settings: Optional[LLMSettings] = None) -> CompletionClient:
    settings = settings or get_settings().llm
    if settings.provider == "gemini":
        logger.info("Using Gemini model %s", settings.model)
        return GeminiCompletionClient(settings)
    if settings.provider == "ollama":
        logger.info("Using Ollama model %s at %s", settings.model, settings.ollama_url)
        return OllamaCompletionClient(settings)
    raise ConfigurationError(f"Unknown LLM_PROVIDER: {settings.provider!r}")
