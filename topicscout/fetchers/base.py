"""Candidate records and the search collaborator protocol."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateRecord:
    """One raw search result, normalised at ingestion."""

    title: str
    url: str
    published_date: datetime | None = None
    author: str | None = None
    external_score: float | None = None  # provider-native relevance, 0–1
    text: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CandidateRecord:
        """Build a record from a loosely-typed provider payload.

        Accepts both the provider's camelCase keys (``publishedDate``,
        ``score``) and snake_case.  Malformed values become ``None``.
        """
        published = data.get("publishedDate", data.get("published_date"))
        score = data.get("externalScore", data.get("external_score", data.get("score")))
        return cls(
            title=str(data.get("title") or "").strip(),
            url=str(data.get("url") or "").strip(),
            published_date=parse_published_date(published),
            author=_optional_str(data.get("author")),
            external_score=_optional_float(score),
            text=_optional_str(data.get("text")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "publishedDate": self.published_date.isoformat() if self.published_date else None,
            "author": self.author,
            "externalScore": self.external_score,
            "text": self.text,
        }


@dataclass
class SearchOptions:
    num_results: int = 10
    include_domains: list[str] = field(default_factory=list)
    exclude_domains: list[str] = field(default_factory=list)
    days_back: int = 30


class Searcher(Protocol):
    """Interface of the external search collaborator."""

    def search_and_contents(self, query: str, options: SearchOptions) -> list[CandidateRecord]:
        """Search for *query* and return records with page contents attached."""
        ...


def parse_published_date(value: Any) -> datetime | None:
    """Coerce an ISO date string, ``date`` or ``datetime`` to an aware UTC datetime.

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            logger.debug("Unparseable published date %r", value)
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_records(raw: Iterable[CandidateRecord | Mapping[str, Any]]) -> list[CandidateRecord]:
    """Validate a batch of records, keeping the first occurrence of each URL."""
    records: list[CandidateRecord] = []
    seen: set[str] = set()
    for item in raw:
        record = item if isinstance(item, CandidateRecord) else CandidateRecord.from_dict(item)
        if record.url:
            if record.url in seen:
                logger.debug("Dropping duplicate result %s", record.url)
                continue
            seen.add(record.url)
        records.append(record)
    return records


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
