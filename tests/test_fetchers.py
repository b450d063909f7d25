"""Tests for candidate record ingestion, the Exa client and mock results."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from topicscout.errors import ConfigurationError, ProviderError, SearchTimeoutError
from topicscout.fetchers.base import (
    CandidateRecord,
    SearchOptions,
    normalize_records,
    parse_published_date,
)
from topicscout.fetchers.exa import ExaSearchClient
from topicscout.fetchers.mock import mock_results
from topicscout.scoring.engine import Category


def _search_item(n: int, **kwargs) -> dict:
    item = {
        "title": f"Article {n}",
        "url": f"https://news.example/{n}",
        "publishedDate": "2025-06-01T08:00:00.000Z",
        "author": "Reporter",
        "score": 0.5,
    }
    item.update(kwargs)
    return item


def _client(handler, **kwargs) -> ExaSearchClient:
    defaults = dict(api_key="test-key", base_url="https://exa.test", timeout=5.0)
    defaults.update(kwargs)
    return ExaSearchClient(transport=httpx.MockTransport(handler), **defaults)


class TestCandidateRecord:
    def test_from_provider_payload(self):
        record = CandidateRecord.from_dict(_search_item(1, text="body"))
        assert record.title == "Article 1"
        assert record.external_score == 0.5
        assert record.published_date == datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)
        assert record.text == "body"

    def test_malformed_values_become_none(self):
        record = CandidateRecord.from_dict({
            "title": None, "url": "u", "publishedDate": "yesterday", "score": "high",
        })
        assert record.title == ""
        assert record.published_date is None
        assert record.external_score is None

    def test_bool_and_nan_scores_rejected(self):
        assert CandidateRecord.from_dict({"url": "u", "score": True}).external_score is None
        assert CandidateRecord.from_dict({"url": "u", "score": float("nan")}).external_score is None

    def test_parse_plain_date(self):
        assert parse_published_date(date(2025, 1, 2)) == datetime(2025, 1, 2, tzinfo=timezone.utc)

    def test_normalize_drops_duplicate_urls(self):
        records = normalize_records([
            _search_item(1, title="first"),
            _search_item(1, title="second"),
            {"title": "no url"},
            {"title": "no url either"},
        ])
        assert [r.title for r in records] == ["first", "no url", "no url either"]


class TestExaSearch:
    def test_request_body_and_auth(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": [_search_item(1)]})

        options = SearchOptions(num_results=7, include_domains=["a.com"], days_back=10)
        results = _client(handler).search("ai", options)

        assert results == [_search_item(1)]
        assert seen["path"] == "/search"
        assert seen["auth"] == "Bearer test-key"
        body = seen["body"]
        assert body["query"] == "ai"
        assert body["numResults"] == 7
        assert body["type"] == "neural"
        assert body["includeDomains"] == ["a.com"]
        assert "excludeDomains" not in body
        assert body["startPublishedDate"] == (date.today() - timedelta(days=10)).isoformat()

    def test_timeout_is_distinct(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(SearchTimeoutError) as exc_info:
            _client(handler, timeout=30.0).search("ai")
        assert exc_info.value.timeout == 30.0
        assert "30 seconds" in str(exc_info.value)

    def test_http_error_is_provider_error(self):
        def handler(request):
            return httpx.Response(401, text="bad key")

        with pytest.raises(ProviderError) as exc_info:
            _client(handler).search("ai")
        assert not isinstance(exc_info.value, SearchTimeoutError)
        assert exc_info.value.details["status_code"] == 401

    def test_missing_api_key(self):
        client = ExaSearchClient(api_key="", transport=httpx.MockTransport(lambda r: None))
        with pytest.raises(ConfigurationError):
            client.search("ai")


class TestSearchAndContents:
    def test_merges_contents_for_top_results(self):
        requested = {}

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if request.url.path == "/search":
                items = [_search_item(i) for i in range(7)]
                items[6]["text"] = "search text"
                return httpx.Response(200, json={"results": items})
            requested["ids"] = body["ids"]
            assert body["text"] is True
            return httpx.Response(200, json={"results": [
                {"url": url, "text": f"full {url}"} for url in body["ids"][:3]
            ]})

        records = _client(handler, contents_limit=5).search_and_contents("ai")

        assert requested["ids"] == [f"https://news.example/{i}" for i in range(5)]
        assert len(records) == 7
        assert records[0].text == "full https://news.example/0"
        assert records[4].text == ""
        assert records[6].text == "search text"

    def test_contents_failure_keeps_search_results(self, caplog):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/search":
                return httpx.Response(200, json={"results": [_search_item(1)]})
            return httpx.Response(500, text="boom")

        records = _client(handler).search_and_contents("ai")
        assert [r.url for r in records] == ["https://news.example/1"]
        assert records[0].text == ""
        assert "fetching contents" in caplog.text

    def test_empty_search(self):
        def handler(request):
            assert request.url.path == "/search"
            return httpx.Response(200, json={"results": []})

        assert _client(handler).search_and_contents("ai") == []

    def test_skips_items_without_title_and_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/search":
                return httpx.Response(200, json={"results": [{"score": 0.3}, _search_item(2)]})
            return httpx.Response(200, json={"results": []})

        records = _client(handler).search_and_contents("ai")
        assert [r.title for r in records] == ["Article 2"]


class TestMockResults:
    def test_shape(self):
        now = datetime(2025, 6, 15, tzinfo=timezone.utc)
        results = mock_results("Machine Learning", now=now)

        assert len(results) == 3
        assert results[0].url == "https://example.com/machine-learning-trends-2025"
        assert results[0].published_date == now - timedelta(days=2)
        assert [r.category for r in results] == [
            Category.EXPAND, Category.DO_NOT_EXPAND, Category.EXPAND,
        ]
        assert [r.priority for r in results] == [92, 58, 85]
        assert all("Machine Learning" in r.title for r in results)
