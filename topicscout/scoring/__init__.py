"""Heuristic scoring and the expand / do-not-expand decision."""

from topicscout.scoring.engine import (
    Category,
    CategorizedRecord,
    ScoreBreakdown,
    categorize_record,
)
from topicscout.scoring.freshness import score_freshness
from topicscout.scoring.quality import score_quality
from topicscout.scoring.relevance import score_relevance

__all__ = [
    "Category",
    "CategorizedRecord",
    "ScoreBreakdown",
    "categorize_record",
    "score_freshness",
    "score_quality",
    "score_relevance",
]
