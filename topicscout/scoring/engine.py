"""Weighting and decision engine.

Combines the relevance, quality and freshness sub-scores with the
provider's own score using a rule's weight vector, then thresholds the
rounded result into *expand* / *do not expand* with a short justification.

``priority`` (0–100 integer) is the canonical score.  ``final_score`` is
``priority / 100`` for callers that expect a 0–1 fraction.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from topicscout.fetchers.base import CandidateRecord
from topicscout.rules.models import DIMENSIONS, CategorizationRule
from topicscout.scoring.freshness import score_freshness
from topicscout.scoring.quality import score_quality
from topicscout.scoring.relevance import score_relevance

logger = logging.getLogger(__name__)

REASON_SEPARATOR = " • "

# Sub-score a dimension must reach to be cited in the reasoning.
_BARS = {
    "relevance": 85.0,
    "quality": 90.0,
    "freshness": 95.0,
    "external_score": 40.0,
}
_PRINCIPAL_REASONS = {
    "relevance": "High topical relevance (principal factor)",
    "quality": "Excellent content quality (principal factor)",
    "freshness": "Very recent content (principal factor)",
    "external_score": "High search score (principal factor)",
}
_SUPPORTING_REASONS = {
    "relevance": "Good topical relevance",
    "quality": "Acceptable content quality",
    "freshness": "Recent content",
    "external_score": "Good search score",
}


class Category(str, Enum):
    EXPAND = "expand"
    DO_NOT_EXPAND = "not_expand"


@dataclass(frozen=True)
class ScoreBreakdown:
    relevance: float
    quality: float
    freshness: float
    external_score: float

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in DIMENSIONS}

    def to_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "quality": self.quality,
            "freshness": self.freshness,
            "externalScore": self.external_score,
        }


@dataclass(frozen=True)
class CategorizedRecord:
    """A candidate record plus its decision."""

    title: str
    url: str
    published_date: datetime | None
    author: str | None
    external_score: float | None
    text: str | None
    category: Category
    reasoning: str
    priority: int
    breakdown: ScoreBreakdown | None = None

    @property
    def final_score(self) -> float:
        return self.priority / 100

    @property
    def is_expand_worthy(self) -> bool:
        return self.category is Category.EXPAND

    def with_text(self, text: str) -> CategorizedRecord:
        return replace(self, text=text)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "publishedDate": self.published_date.isoformat() if self.published_date else None,
            "author": self.author,
            "externalScore": self.external_score,
            "text": self.text,
            "category": self.category.value,
            "reasoning": self.reasoning,
            "priority": self.priority,
            "finalScore": self.final_score,
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
        }


def compute_breakdown(
    record: CandidateRecord,
    topic: str,
    rule: CategorizationRule,
    now: datetime | None = None,
) -> ScoreBreakdown:
    text = record.text or ""
    return ScoreBreakdown(
        relevance=score_relevance(text, record.title or "", topic or ""),
        quality=score_quality(
            text, record.url or "", rule.quality_factors, rule.thresholds.min_word_count,
        ),
        freshness=score_freshness(record.published_date, rule.thresholds.max_days_for_fresh, now),
        external_score=(record.external_score or 0.0) * 100,
    )


def weighted_score(breakdown: ScoreBreakdown, rule: CategorizationRule) -> float:
    """Weighted average of the sub-scores.  All-zero weights give 0."""
    if rule.weights.total <= 0:
        logger.warning("Rule %s has no positive weight, scoring as 0", rule.id)
    weights = rule.weights.normalized()
    return sum(
        score * weight
        for score, weight in zip(_scores(breakdown), weights.as_tuple())
    )


def to_priority(score: float) -> int:
    """Round half up and clamp to 0–100."""
    return max(0, min(100, math.floor(score + 0.5)))


def build_reasoning(
    breakdown: ScoreBreakdown,
    rule: CategorizationRule,
    priority: int,
) -> str:
    scores = breakdown.as_dict()
    weights = dict(zip(DIMENSIONS, rule.weights.normalized().as_tuple()))
    reasons: list[str] = []

    if any(w > 0 for w in weights.values()):
        # max() keeps the first of equal weights, i.e. the fixed dimension order
        principal = max(DIMENSIONS, key=lambda name: weights[name])
        if scores[principal] >= _BARS[principal]:
            reasons.append(_PRINCIPAL_REASONS[principal])

    if not reasons:
        reasons = [_SUPPORTING_REASONS[n] for n in DIMENSIONS if scores[n] >= _BARS[n]]

    if reasons:
        return REASON_SEPARATOR.join(reasons)

    threshold = rule.thresholds.expand_threshold
    if priority < threshold:
        return f"Score {priority}/100 below the threshold of {threshold:g}"
    return f"Score {priority}/100 meets the threshold of {threshold:g}"


def categorize_record(
    record: CandidateRecord,
    topic: str,
    rule: CategorizationRule,
    now: datetime | None = None,
) -> CategorizedRecord:
    """Score and categorize one record.  Never raises on missing fields."""
    breakdown = compute_breakdown(record, topic, rule, now)
    priority = to_priority(weighted_score(breakdown, rule))
    category = (
        Category.EXPAND if priority >= rule.thresholds.expand_threshold
        else Category.DO_NOT_EXPAND
    )
    return CategorizedRecord(
        title=record.title,
        url=record.url,
        published_date=record.published_date,
        author=record.author,
        external_score=record.external_score,
        text=record.text,
        category=category,
        reasoning=build_reasoning(breakdown, rule, priority),
        priority=priority,
        breakdown=breakdown,
    )


def _scores(breakdown: ScoreBreakdown) -> tuple[float, float, float, float]:
    return (breakdown.relevance, breakdown.quality, breakdown.freshness, breakdown.external_score)
