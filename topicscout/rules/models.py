"""Categorization rule value objects.

Rules are immutable: the store replaces a rule wholesale on update, and the
scoring engine receives rules by value.  ``to_dict``/``from_dict`` produce
flat JSON-compatible objects with the camelCase keys used by stored rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping

from topicscout.errors import ConfigurationError

# Fixed dimension order, also the tie-break order for the principal factor.
DIMENSIONS = ("relevance", "quality", "freshness", "external_score")


@dataclass(frozen=True)
class Weights:
    relevance: float = 50
    quality: float = 25
    freshness: float = 20
    external_score: float = 5

    @property
    def total(self) -> float:
        return self.relevance + self.quality + self.freshness + self.external_score

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.relevance, self.quality, self.freshness, self.external_score)

    def normalized(self) -> Weights:
        """Scale weights to sum to 1.  A zero total yields all-zero weights."""
        total = self.total
        if total <= 0:
            return Weights(0.0, 0.0, 0.0, 0.0)
        return Weights(*(w / total for w in self.as_tuple()))

    def to_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "quality": self.quality,
            "freshness": self.freshness,
            "externalScore": self.external_score,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Weights:
        """Build weights from a mapping; missing dimensions keep their defaults."""
        defaults = cls()
        external = data.get(
            "external_score",
            data.get("externalScore", data.get("exaScore", defaults.external_score)),
        )
        return cls(
            relevance=float(data.get("relevance", defaults.relevance)),
            quality=float(data.get("quality", defaults.quality)),
            freshness=float(data.get("freshness", defaults.freshness)),
            external_score=float(external),
        )


@dataclass(frozen=True)
class Thresholds:
    expand_threshold: float = 85
    min_word_count: int = 100
    max_days_for_fresh: int = 30

    def to_dict(self) -> dict[str, float]:
        return {
            "expandThreshold": self.expand_threshold,
            "minWordCount": self.min_word_count,
            "maxDaysForFresh": self.max_days_for_fresh,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Thresholds:
        return cls(
            expand_threshold=float(data.get("expand_threshold", data.get("expandThreshold", 85))),
            min_word_count=int(data.get("min_word_count", data.get("minWordCount", 100))),
            max_days_for_fresh=int(data.get("max_days_for_fresh", data.get("maxDaysForFresh", 30))),
        )


@dataclass(frozen=True)
class QualityFactors:
    preferred_domains: tuple[str, ...] = ()
    keyword_bonus: tuple[str, ...] = ()
    minimum_content_length: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferredDomains": list(self.preferred_domains),
            "keywordBonus": list(self.keyword_bonus),
            "minimumContentLength": self.minimum_content_length,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QualityFactors:
        return cls(
            preferred_domains=_as_tuple(data.get("preferred_domains", data.get("preferredDomains", ()))),
            keyword_bonus=_as_tuple(data.get("keyword_bonus", data.get("keywordBonus", ()))),
            minimum_content_length=int(
                data.get("minimum_content_length", data.get("minimumContentLength", 100))
            ),
        )


@dataclass(frozen=True)
class RuleBody:
    """The configurable part of a rule: everything except identity and state."""

    name: str
    description: str = ""
    weights: Weights = field(default_factory=Weights)
    thresholds: Thresholds = field(default_factory=Thresholds)
    quality_factors: QualityFactors = field(default_factory=QualityFactors)

    def validate(self) -> None:
        validate_rule(self.weights, self.thresholds, self.quality_factors)


@dataclass(frozen=True)
class CategorizationRule:
    id: str
    name: str
    description: str
    weights: Weights
    thresholds: Thresholds
    quality_factors: QualityFactors
    is_active: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def body(self) -> RuleBody:
        return RuleBody(
            name=self.name,
            description=self.description,
            weights=self.weights,
            thresholds=self.thresholds,
            quality_factors=self.quality_factors,
        )

    def with_changes(self, **changes: Any) -> CategorizationRule:
        return replace(self, **changes)

    def validate(self) -> None:
        validate_rule(self.weights, self.thresholds, self.quality_factors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "weights": self.weights.to_dict(),
            "thresholds": self.thresholds.to_dict(),
            "qualityFactors": self.quality_factors.to_dict(),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CategorizationRule:
        now = datetime.now(timezone.utc)
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            weights=Weights.from_dict(data.get("weights", {})),
            thresholds=Thresholds.from_dict(data.get("thresholds", {})),
            quality_factors=QualityFactors.from_dict(data.get("qualityFactors", {})),
            is_active=bool(data.get("isActive", False)),
            created_at=_parse_timestamp(data.get("createdAt")) or now,
            updated_at=_parse_timestamp(data.get("updatedAt")) or now,
        )


@dataclass(frozen=True)
class CategorizationPreset:
    """Read-only template used to seed new rules."""

    id: str
    name: str
    description: str
    icon: str
    body: RuleBody

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "rules": {
                "weights": self.body.weights.to_dict(),
                "thresholds": self.body.thresholds.to_dict(),
                "qualityFactors": self.body.quality_factors.to_dict(),
            },
        }


def validate_rule(weights: Weights, thresholds: Thresholds, quality_factors: QualityFactors) -> None:
    """Raise ConfigurationError if a rule body cannot be scored sensibly."""
    for name, value in zip(DIMENSIONS, weights.as_tuple()):
        if value < 0:
            raise ConfigurationError(f"Weight {name!r} must be non-negative, got {value}")
    if weights.total <= 0:
        raise ConfigurationError("At least one weight must be positive")
    if not 0 <= thresholds.expand_threshold <= 100:
        raise ConfigurationError(
            f"expandThreshold must be within 0-100, got {thresholds.expand_threshold}"
        )
    if thresholds.min_word_count <= 0:
        raise ConfigurationError(f"minWordCount must be positive, got {thresholds.min_word_count}")
    if thresholds.max_days_for_fresh <= 0:
        raise ConfigurationError(
            f"maxDaysForFresh must be positive, got {thresholds.max_days_for_fresh}"
        )
    if quality_factors.minimum_content_length <= 0:
        raise ConfigurationError(
            f"minimumContentLength must be positive, got {quality_factors.minimum_content_length}"
        )


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(v) for v in value)
