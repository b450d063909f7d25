"""Content quality heuristic.

Starts from a high base and adds small bonuses:

1. Length: tiered on the rule's minimum word count ``m``
   (> 5m: +8, > 2m: +6, > m: +4, > 0.5m: +2)
2. Data presence: numbers, amounts, percentages or a configured keyword: +4
3. Source: URL contains one of the preferred domains: +3
"""

from __future__ import annotations

import re

from topicscout.rules.models import QualityFactors

BASE_SCORE = 85.0

# (multiple of min_word_count, bonus), checked in order
_LENGTH_TIERS = (
    (5.0, 8.0),
    (2.0, 6.0),
    (1.0, 4.0),
    (0.5, 2.0),
)
DATA_BONUS = 4.0
DOMAIN_BONUS = 3.0

_NUMERIC_PATTERN = r"\d+[%$€]?|\d+\.\d+"


def score_quality(
    text: str,
    url: str,
    quality_factors: QualityFactors,
    min_word_count: int,
) -> float:
    """Return a quality score in [0, 100]."""
    score = BASE_SCORE
    score += _length_bonus(len(text.split()), min_word_count)
    if _has_data(text, quality_factors.keyword_bonus):
        score += DATA_BONUS
    if _is_preferred_domain(url, quality_factors.preferred_domains):
        score += DOMAIN_BONUS
    return max(0.0, min(score, 100.0))


def _length_bonus(word_count: int, min_word_count: int) -> float:
    for multiple, bonus in _LENGTH_TIERS:
        if word_count > min_word_count * multiple:
            return bonus
    return 0.0


def _data_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = [_NUMERIC_PATTERN] + [re.escape(k) for k in keywords if k]
    return re.compile("|".join(alternatives), re.IGNORECASE)


def _has_data(text: str, keywords: tuple[str, ...]) -> bool:
    return _data_pattern(keywords).search(text) is not None


def _is_preferred_domain(url: str, domains: tuple[str, ...]) -> bool:
    url_lower = url.lower()
    return any(d.lower() in url_lower for d in domains if d)
