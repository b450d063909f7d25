"""Search collaborators and candidate record ingestion."""

from topicscout.fetchers.base import (
    CandidateRecord,
    SearchOptions,
    Searcher,
    normalize_records,
)
from topicscout.fetchers.exa import ExaSearchClient

__all__ = [
    "CandidateRecord",
    "ExaSearchClient",
    "SearchOptions",
    "Searcher",
    "normalize_records",
]
