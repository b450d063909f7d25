"""LLM agents used by the research pipeline.

``QueryAgent`` rewrites a topic into a focused search query and
``SummaryAgent`` condenses an article into two or three sentences.
"""

from __future__ import annotations

import logging

from topicscout.errors import ConfigurationError, ProviderError
from topicscout.llm.client import LLMClient

logger = logging.getLogger(__name__)

QUERY_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates search queries based on user "
    "questions. Generate a focused search query for finding recent, relevant news "
    "articles and content. Return only the search query, nothing else."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are an assistant that writes concise article summaries. Provide a short "
    "summary that captures the main points in 2-3 sentences."
)

SUMMARY_INPUT_CHARS = 3000
_EXTRACTIVE_SENTENCES = 3
_MIN_SENTENCE_CHARS = 10


def extractive_summary(text: str, max_sentences: int = _EXTRACTIVE_SENTENCES) -> str:
    """First few substantial sentences of *text*, or ``""`` if there are none."""
    sentences = [s.strip() for s in text.split(".") if len(s.strip()) > _MIN_SENTENCE_CHARS]
    if not sentences:
        return ""
    return ". ".join(sentences[:max_sentences]) + "."


class QueryAgent:
    """Best-effort search query optimisation."""

    def __init__(self, client: LLMClient, max_tokens: int = 50) -> None:
        self.client = client
        self.max_tokens = max_tokens

    def optimize(self, topic: str) -> str:
        """Return an optimised query, or *topic* unchanged on any failure."""
        if not self.client.available:
            return topic
        try:
            query = self.client.complete(
                QUERY_SYSTEM_PROMPT,
                f"Generate a search query for: {topic}",
                max_tokens=self.max_tokens,
            )
        except (ProviderError, ConfigurationError) as exc:
            logger.warning("Query optimisation failed, using the topic as-is: %s", exc)
            return topic
        if not query:
            return topic
        logger.info("Optimised query %r -> %r", topic, query)
        return query


class SummaryAgent:
    """Summarise article text.

    Without a configured LLM, falls back to an extractive summary.
    LLM failures raise :class:`ProviderError`.
    """

    def __init__(
        self,
        client: LLMClient,
        max_tokens: int = 150,
        temperature: float = 0.3,
    ) -> None:
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def summarize(self, text: str, title: str = "") -> str:
        if not self.client.available:
            return extractive_summary(text)
        summary = self.client.complete(
            SUMMARY_SYSTEM_PROMPT,
            f"Title: {title}\n\nContent: {text[:SUMMARY_INPUT_CHARS]}",
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        logger.debug("Summarised %s", title[:50])
        return summary
