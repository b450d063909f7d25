"""Freshness: a recency sub-score tiered on the rule's "fresh" window.

Undated results score 85.  Future dates give a negative age and land in
the freshest tier.
"""

from __future__ import annotations

from datetime import datetime, timezone

UNDATED_SCORE = 85.0

# (multiple of max_days_for_fresh, score), checked in order
_AGE_TIERS = (
    (0.25, 98.0),
    (1.0, 95.0),
    (3.0, 90.0),
    (12.0, 85.0),
)
STALE_SCORE = 80.0

_SECONDS_PER_DAY = 86400.0


def days_since(published: datetime, now: datetime | None = None) -> float:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return (now - published).total_seconds() / _SECONDS_PER_DAY


def score_freshness(
    published: datetime | None,
    max_days_for_fresh: int,
    now: datetime | None = None,
) -> float:
    """Return a freshness score in [0, 100]."""
    if published is None:
        return UNDATED_SCORE
    age = days_since(published, now)
    for multiple, score in _AGE_TIERS:
        if age <= max_days_for_fresh * multiple:
            return score
    return STALE_SCORE
