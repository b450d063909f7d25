"""Built-in categorization presets.

Presets are process-wide constants.  The store seeds its protected default
rule from the ``balanced`` preset.
"""

from __future__ import annotations

from types import MappingProxyType

from topicscout.rules.models import (
    CategorizationPreset,
    QualityFactors,
    RuleBody,
    Thresholds,
    Weights,
)

DEFAULT_RULE_ID = "default"

BALANCED = CategorizationPreset(
    id="balanced",
    name="Balanced",
    description="Even-handed configuration suited to most topics",
    icon="⚖️",
    body=RuleBody(
        name="Balanced",
        weights=Weights(relevance=50, quality=25, freshness=20, external_score=5),
        thresholds=Thresholds(expand_threshold=85, min_word_count=100, max_days_for_fresh=30),
        quality_factors=QualityFactors(
            preferred_domains=("reuters.com", "bbc.com", "elpais.com", "expansion.com", ".edu", ".gov"),
            keyword_bonus=("datos", "estadística", "estudio", "investigación", "análisis"),
            minimum_content_length=100,
        ),
    ),
)

QUALITY_FOCUSED = CategorizationPreset(
    id="quality-focused",
    name="Quality first",
    description="Favours content quality over the other factors",
    icon="🏆",
    body=RuleBody(
        name="Quality first",
        weights=Weights(relevance=30, quality=50, freshness=15, external_score=5),
        thresholds=Thresholds(expand_threshold=90, min_word_count=200, max_days_for_fresh=90),
        quality_factors=QualityFactors(
            preferred_domains=(
                "nature.com", "science.org", "reuters.com", "bbc.com", ".edu", ".gov", "arxiv.org",
            ),
            keyword_bonus=("investigación", "estudio", "datos", "análisis", "evidencia", "método"),
            minimum_content_length=200,
        ),
    ),
)

FRESHNESS_FOCUSED = CategorizationPreset(
    id="freshness-focused",
    name="Freshness first",
    description="Favours recent and trending content",
    icon="🚀",
    body=RuleBody(
        name="Freshness first",
        weights=Weights(relevance=40, quality=20, freshness=35, external_score=5),
        thresholds=Thresholds(expand_threshold=80, min_word_count=50, max_days_for_fresh=7),
        quality_factors=QualityFactors(
            preferred_domains=("twitter.com", "reddit.com", "medium.com", "linkedin.com"),
            keyword_bonus=("trending", "viral", "breaking", "último", "nuevo", "reciente"),
            minimum_content_length=50,
        ),
    ),
)

RELEVANCE_FOCUSED = CategorizationPreset(
    id="relevance-focused",
    name="Relevance first",
    description="Maximises topical relevance",
    icon="🎯",
    body=RuleBody(
        name="Relevance first",
        weights=Weights(relevance=70, quality=15, freshness=10, external_score=5),
        thresholds=Thresholds(expand_threshold=85, min_word_count=75, max_days_for_fresh=60),
        quality_factors=QualityFactors(
            preferred_domains=("wikipedia.org", "britannica.com", ".edu"),
            keyword_bonus=("definición", "concepto", "explicación", "guía", "tutorial"),
            minimum_content_length=75,
        ),
    ),
)

PRESETS: MappingProxyType[str, CategorizationPreset] = MappingProxyType({
    p.id: p for p in (BALANCED, QUALITY_FOCUSED, FRESHNESS_FOCUSED, RELEVANCE_FOCUSED)
})

DEFAULT_RULE_BODY = RuleBody(
    name="Default configuration",
    description="Standard system configuration",
    weights=BALANCED.body.weights,
    thresholds=BALANCED.body.thresholds,
    quality_factors=BALANCED.body.quality_factors,
)


def get_preset(preset_id: str) -> CategorizationPreset | None:
    return PRESETS.get(preset_id)
