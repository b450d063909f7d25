"""Placeholder results shown when live research yields nothing.

These are already categorized; they never pass through the scoring
engine and carry no score breakdown.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from topicscout.scoring.engine import Category, CategorizedRecord


def _slug(topic: str) -> str:
    return re.sub(r"\s+", "-", topic.strip().lower())


def mock_results(topic: str, now: datetime | None = None) -> list[CategorizedRecord]:
    now = now or datetime.now(timezone.utc)
    slug = _slug(topic)
    return [
        CategorizedRecord(
            title=f"Latest trends in {topic} - 2025 analysis",
            url=f"https://example.com/{slug}-trends-2025",
            published_date=now - timedelta(days=2),
            author="Research Team",
            external_score=0.92,
            text=(
                f"A complete overview of the latest trends in {topic}. This analysis covers "
                "the most important developments of the year, including technological "
                "innovation, market shifts and future outlook. Experts stress the importance "
                "of keeping up to date in this fast-moving field."
            ),
            category=Category.EXPAND,
            reasoning="Up-to-date content with high relevance and in-depth analysis",
            priority=92,
        ),
        CategorizedRecord(
            title=f"Beginner's guide to {topic}",
            url=f"https://example.com/{slug}-guide",
            published_date=now - timedelta(days=180),
            author="General Editor",
            external_score=0.58,
            text=(
                f"A basic introduction to {topic} covering fundamental concepts. "
                "General information that can serve as a starting point."
            ),
            category=Category.DO_NOT_EXPAND,
            reasoning="Basic and outdated information",
            priority=58,
        ),
        CategorizedRecord(
            title=f"The future impact of {topic} on society",
            url=f"https://example.com/{slug}-future-impact",
            published_date=now - timedelta(days=7),
            author="Dr. Ana Futurista",
            external_score=0.85,
            text=(
                f"A forward-looking analysis of how {topic} will transform society in the "
                "coming years. The study examines several scenarios and their likely "
                "consequences, based on current data and emerging trends. It includes "
                "interviews with leading experts in the field."
            ),
            category=Category.EXPAND,
            reasoning="High-quality forward-looking analysis of recent content",
            priority=85,
        ),
    ]
