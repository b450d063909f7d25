"""Exceptions raised by topicscout.

Everything inherits from ``TopicScoutError`` so callers can catch the whole
family in one clause.  Third-party errors (httpx, openai) are translated into
these at the collaborator boundary.
"""

from __future__ import annotations

from typing import Any


class TopicScoutError(Exception):
    """Base exception for all topicscout errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ProviderError(TopicScoutError):
    """A search, contents or LLM provider call failed."""

    def __init__(
        self,
        message: str = "Provider call failed",
        provider: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider


class SearchTimeoutError(ProviderError):
    """The search call exceeded its time bound.

    Kept distinct from other provider failures so the caller can show a
    retry-oriented message instead of a generic one.
    """

    def __init__(self, timeout: float, provider: str = "exa") -> None:
        super().__init__(
            f"Search took longer than {timeout:g} seconds. "
            "Please try again with a more specific topic.",
            provider=provider,
            details={"timeout": timeout},
        )
        self.timeout = timeout


class ConfigurationError(TopicScoutError):
    """Invalid rule configuration or missing settings."""


class RuleNotFoundError(ConfigurationError, KeyError):
    """No rule with the given id exists in the store."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Rule not found: {rule_id!r}", details={"rule_id": rule_id})
        self.rule_id = rule_id

    def __str__(self) -> str:
        return self.args[0]


class PresetNotFoundError(ConfigurationError, KeyError):
    """No built-in preset with the given id exists."""

    def __init__(self, preset_id: str) -> None:
        super().__init__(f"Preset not found: {preset_id!r}", details={"preset_id": preset_id})
        self.preset_id = preset_id

    def __str__(self) -> str:
        return self.args[0]


class ProtectedRuleError(ConfigurationError):
    """The default rule cannot be deleted."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Rule {rule_id!r} is protected and cannot be deleted",
                         details={"rule_id": rule_id})
        self.rule_id = rule_id
