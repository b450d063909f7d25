"""Thin wrapper over the OpenAI chat-completions API.

Builds the SDK client lazily so that a missing API key only matters when a
completion is actually requested.  SDK errors are translated into
:class:`~topicscout.errors.ProviderError`.
"""

from __future__ import annotations

import logging

import openai

from topicscout.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
_PROVIDER = "openai"


class LLMClient:
    """Synchronous chat-completion client."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        base_url: str = "",
        timeout: float = 30.0,
        client: openai.OpenAI | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 150,
        temperature: float | None = None,
    ) -> str:
        """Return the stripped text of the first choice."""
        kwargs: dict = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = self._get_client().chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise ProviderError(
                f"OpenAI request timed out after {self.timeout:g}s", provider=_PROVIDER,
            ) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(
                f"OpenAI API error (status {exc.status_code}): {exc.message}",
                provider=_PROVIDER,
                details={"status_code": exc.status_code},
            ) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"OpenAI request failed: {exc}", provider=_PROVIDER) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ProviderError("OpenAI response contains no choices", provider=_PROVIDER)
        message = choices[0].message
        return ((message.content if message else "") or "").strip()

    def _get_client(self) -> openai.OpenAI:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            kwargs: dict = {"api_key": self.api_key, "timeout": self.timeout}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = openai.OpenAI(**kwargs)
        return self._client

    def __repr__(self) -> str:
        return f"LLMClient(model={self.model!r}, available={self.available})"
