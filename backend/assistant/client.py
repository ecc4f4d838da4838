"""HTTP client for the OpenRouter chat-completions API."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

__all__ = [
    "CompletionClient",
    "CompletionError",
    "CompletionNotConfigured",
    "build_completion_client",
]


class CompletionError(Exception):
    """The completion endpoint failed or returned an unusable body."""


class CompletionNotConfigured(CompletionError):
    """No API key is configured."""


class CompletionClient:
    """
    Text-in/text-out wrapper over an OpenAI-compatible chat endpoint.

    Instances are cheap; views build one per request through
    ``build_completion_client`` so tests can substitute their own.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        app_title: str = "",
        referer: str = "",
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()
        self.app_title = app_title
        self.referer = referer

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Send one user prompt (plus optional system prompt) and return the reply text."""
        if not self.is_configured:
            raise CompletionNotConfigured("OPENROUTER_API_KEY is not set")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                json={
                    "model": self.model,
                    "messages": messages,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                },
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("assistant: completion request failed: %s", exc)
            raise CompletionError(str(exc)) from exc

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise CompletionError("Malformed completion response") from exc
        if not isinstance(content, str) or not content.strip():
            raise CompletionError("Empty completion response")
        return content.strip()


def build_completion_client(session: Optional[requests.Session] = None) -> CompletionClient:
    return CompletionClient(
        getattr(settings, "OPENROUTER_API_KEY", ""),
        base_url=getattr(settings, "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        model=getattr(settings, "OPENROUTER_MODEL", ""),
        timeout=float(getattr(settings, "AI_REQUEST_TIMEOUT", 30)),
        session=session,
        app_title=getattr(settings, "AI_APP_TITLE", ""),
        referer=getattr(settings, "FRONTEND_ORIGIN", ""),
    )
