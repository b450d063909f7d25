"""Topical relevance: how well a result matches the research topic.

Every topic token longer than two characters is looked for as a substring
of the title and body.  The base score starts high (60 with no matches,
80–95 with matches) so that UI percentages read as confident; a title
bonus of up to 10 points is added on top.
"""

from __future__ import annotations

MIN_TOKEN_LENGTH = 3

NO_MATCH_SCORE = 60.0
MATCH_BASE = 80.0
MATCH_SPAN = 15.0
TITLE_BONUS_SPAN = 10.0


def tokenize_topic(topic: str) -> list[str]:
    """Lowercased, de-duplicated whitespace tokens longer than two characters."""
    tokens: list[str] = []
    for token in topic.lower().split():
        if len(token) >= MIN_TOKEN_LENGTH and token not in tokens:
            tokens.append(token)
    return tokens


def score_relevance(text: str, title: str, topic: str) -> float:
    """Return a relevance score in [0, 100]."""
    tokens = tokenize_topic(topic)
    total_words = len(tokens) or 1

    title_lower = title.lower()
    combined = f"{title_lower} {text.lower()}"

    matches = sum(1 for t in tokens if t in combined)
    title_matches = sum(1 for t in tokens if t in title_lower)

    score = MATCH_BASE + (matches / total_words) * MATCH_SPAN if matches else NO_MATCH_SCORE
    if title_matches:
        score += (title_matches / total_words) * TITLE_BONUS_SPAN
    return max(0.0, min(score, 100.0))
