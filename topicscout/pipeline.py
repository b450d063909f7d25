"""Research orchestration.

Runs the optimise query → search → summarise → score → partition cycle for
one topic.  ``CategorizationPipeline`` is the core and propagates provider
errors; ``fetch_research_results`` is the caller-facing policy that falls
back to mock results on anything but a search timeout.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol

from topicscout.config import AppConfig
from topicscout.errors import SearchTimeoutError
from topicscout.fetchers.base import CandidateRecord, SearchOptions, Searcher, normalize_records
from topicscout.fetchers.exa import ExaSearchClient
from topicscout.fetchers.mock import mock_results
from topicscout.llm.agents import QueryAgent, SummaryAgent
from topicscout.llm.client import LLMClient
from topicscout.rules.models import CategorizationRule
from topicscout.rules.store import RulesStore
from topicscout.scoring.engine import Category, CategorizedRecord, categorize_record

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "Content unavailable"
ELLIPSIS = "..."


class Summarizer(Protocol):
    def summarize(self, text: str, title: str = "") -> str: ...


class QueryOptimizer(Protocol):
    def optimize(self, topic: str) -> str: ...


@dataclass
class CategorizationResult:
    """Both buckets, each ordered by priority descending."""

    expand_worthy: list[CategorizedRecord] = field(default_factory=list)
    not_expand_worthy: list[CategorizedRecord] = field(default_factory=list)

    @property
    def ranked(self) -> list[CategorizedRecord]:
        return sort_by_priority([*self.expand_worthy, *self.not_expand_worthy])

    def __len__(self) -> int:
        return len(self.expand_worthy) + len(self.not_expand_worthy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "expandWorthy": [r.to_dict() for r in self.expand_worthy],
            "notExpandWorthy": [r.to_dict() for r in self.not_expand_worthy],
        }


def sort_by_priority(records: Iterable[CategorizedRecord]) -> list[CategorizedRecord]:
    """Stable sort, highest priority first; ties keep input order."""
    return sorted(records, key=lambda r: r.priority, reverse=True)


def partition(records: Iterable[CategorizedRecord]) -> CategorizationResult:
    ranked = sort_by_priority(records)
    return CategorizationResult(
        expand_worthy=sort_by_priority(r for r in ranked if r.category is Category.EXPAND),
        not_expand_worthy=sort_by_priority(r for r in ranked if r.category is not Category.EXPAND),
    )


class CategorizationPipeline:
    """Summarise, score and bucket candidate records for a topic."""

    def __init__(
        self,
        searcher: Searcher | None = None,
        summarizer: Summarizer | None = None,
        query_optimizer: QueryOptimizer | None = None,
        rules_store: RulesStore | None = None,
        concurrency: int = 1,
        summary_min_chars: int = 200,
        snippet_chars: int = 300,
        placeholder: str = DEFAULT_PLACEHOLDER,
    ) -> None:
        self.searcher = searcher
        self.summarizer = summarizer
        self.query_optimizer = query_optimizer
        self.rules_store = rules_store or RulesStore()
        self.concurrency = max(1, concurrency)
        self.summary_min_chars = summary_min_chars
        self.snippet_chars = snippet_chars
        self.placeholder = placeholder

    def resolve_rule(self, rule: CategorizationRule | None = None) -> CategorizationRule:
        return rule if rule is not None else self.rules_store.get_active_rule()

    def process(
        self,
        topic: str,
        records: Iterable[CandidateRecord | Mapping[str, Any]],
        rule: CategorizationRule | None = None,
        now: datetime | None = None,
    ) -> list[CategorizedRecord]:
        """Categorize *records* and return them sorted by priority."""
        batch = normalize_records(records)
        rule = self.resolve_rule(rule)
        summaries = self._summarize_all(batch)

        categorized = []
        for record, summary in zip(batch, summaries):
            # scoring always sees the full original text
            result = categorize_record(record, topic, rule, now)
            categorized.append(result.with_text(self._display_text(record.text, summary)))

        logger.info("Categorized %d records for %r with rule %s", len(categorized), topic, rule.id)
        return sort_by_priority(categorized)

    def categorize(
        self,
        topic: str,
        records: Iterable[CandidateRecord | Mapping[str, Any]],
        rule: CategorizationRule | None = None,
        now: datetime | None = None,
    ) -> CategorizationResult:
        result = partition(self.process(topic, records, rule, now))
        logger.info(
            "Categorization complete: %d expand, %d do not expand",
            len(result.expand_worthy), len(result.not_expand_worthy),
        )
        return result

    def research(
        self,
        topic: str,
        options: SearchOptions | None = None,
        rule: CategorizationRule | None = None,
    ) -> CategorizationResult:
        """Search for *topic* and categorize what comes back.

        Provider errors, including :class:`SearchTimeoutError`, propagate.
        """
        if self.searcher is None:
            raise ValueError("research() needs a searcher")
        query = self.query_optimizer.optimize(topic) if self.query_optimizer else topic
        records = self.searcher.search_and_contents(query, options or SearchOptions())
        logger.info("Search returned %d records for %r", len(records), query)
        if not records:
            return CategorizationResult()
        return self.categorize(topic, records, rule)

    def _summarize_all(self, records: list[CandidateRecord]) -> list[str | None]:
        if self.summarizer is None:
            return [None] * len(records)
        if self.concurrency <= 1 or len(records) <= 1:
            return [self._summarize_one(r) for r in records]
        # map() yields in input order regardless of completion order
        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            return list(pool.map(self._summarize_one, records))

    def _summarize_one(self, record: CandidateRecord) -> str | None:
        text = record.text or ""
        if len(text) <= self.summary_min_chars:
            return None
        try:
            return self.summarizer.summarize(text, record.title) or None
        except Exception as exc:
            logger.warning("Summary failed for %s: %s", record.url or record.title, exc)
            return None

    def _display_text(self, text: str | None, summary: str | None) -> str:
        if summary:
            return summary
        if text:
            return text[: self.snippet_chars] + ELLIPSIS
        return self.placeholder


def fetch_research_results(
    pipeline: CategorizationPipeline,
    topic: str,
    options: SearchOptions | None = None,
    rule: CategorizationRule | None = None,
) -> CategorizationResult:
    """Research *topic*, substituting mock results when nothing usable comes back.

    A blank topic raises ValueError.  Search timeouts are re-raised so the
    caller can ask the user to retry.
    """
    if not topic or not topic.strip():
        raise ValueError("The research topic must not be empty")
    try:
        result = pipeline.research(topic, options, rule)
    except SearchTimeoutError:
        raise
    except Exception:
        logger.exception("Research for %r failed, using mock results", topic)
        return partition(mock_results(topic))
    if not len(result):
        logger.info("No results for %r, using mock results", topic)
        return partition(mock_results(topic))
    return result


def build_pipeline(config: AppConfig, rules_store: RulesStore | None = None) -> CategorizationPipeline:
    """Wire the configured search and LLM collaborators into a pipeline."""
    searcher = ExaSearchClient(
        api_key=config.search.resolved_api_key,
        base_url=config.search.base_url,
        timeout=config.search.timeout,
        contents_limit=config.search.contents_limit,
    )
    llm = LLMClient(
        api_key=config.llm.resolved_api_key,
        model=config.llm.model,
        base_url=config.llm.base_url,
        timeout=config.llm.timeout,
    )
    if not llm.available:
        logger.warning("OPENAI_API_KEY is not configured, summaries will be extractive")
    return CategorizationPipeline(
        searcher=searcher,
        summarizer=SummaryAgent(
            llm,
            max_tokens=config.llm.summary_max_tokens,
            temperature=config.llm.temperature,
        ),
        query_optimizer=(
            QueryAgent(llm, max_tokens=config.llm.query_max_tokens)
            if config.llm.optimize_query else None
        ),
        rules_store=rules_store,
        concurrency=config.llm.concurrency,
        summary_min_chars=config.pipeline.summary_min_chars,
        snippet_chars=config.pipeline.snippet_chars,
        placeholder=config.pipeline.placeholder,
    )


def default_search_options(config: AppConfig) -> SearchOptions:
    return SearchOptions(
        num_results=config.search.num_results,
        include_domains=list(config.search.include_domains),
        exclude_domains=list(config.search.exclude_domains),
        days_back=config.search.days_back,
    )
