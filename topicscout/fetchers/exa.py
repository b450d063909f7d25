"""Client for the Exa neural search API.

Uses two endpoints:
  POST {base_url}/search    -- ranked results published since a cutoff date
  POST {base_url}/contents  -- full page text for a list of result URLs

Only the top few results get their full text fetched; the rest keep
whatever text the search endpoint returned.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import httpx

from topicscout.errors import ConfigurationError, ProviderError, SearchTimeoutError
from topicscout.fetchers.base import CandidateRecord, SearchOptions, normalize_records

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.exa.ai"
_REQUEST_TIMEOUT = 30.0
_CONTENTS_LIMIT = 5
_PROVIDER = "exa"


class ExaSearchClient:
    """Search the web through Exa and attach page contents to the results."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = _REQUEST_TIMEOUT,
        contents_limit: int = _CONTENTS_LIMIT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.contents_limit = contents_limit
        self._transport = transport

    def search(self, query: str, options: SearchOptions | None = None) -> list[dict[str, Any]]:
        """Run a neural search and return the raw result items."""
        options = options or SearchOptions()
        cutoff = date.today() - timedelta(days=options.days_back)
        body: dict[str, Any] = {
            "query": query,
            "numResults": options.num_results,
            "startPublishedDate": cutoff.isoformat(),
            "type": "neural",
        }
        if options.include_domains:
            body["includeDomains"] = list(options.include_domains)
        if options.exclude_domains:
            body["excludeDomains"] = list(options.exclude_domains)

        logger.debug("exa: search request %s", body)
        with self._client() as client:
            data = self._request(client, "/search", body)
        results = data.get("results") or []
        logger.info("exa: %d results for %r", len(results), query)
        return results

    def fetch_contents(self, urls: list[str]) -> list[dict[str, Any]]:
        """Fetch full text for *urls*.  Failures are logged and yield ``[]``."""
        if not urls:
            return []
        try:
            with self._client() as client:
                data = self._request(client, "/contents", {"ids": urls, "text": True})
        except ProviderError as exc:
            logger.warning("exa: fetching contents for %d URLs failed: %s", len(urls), exc)
            return []
        results = data.get("results") or []
        logger.info("exa: fetched contents for %d of %d URLs", len(results), len(urls))
        return results

    def search_and_contents(
        self, query: str, options: SearchOptions | None = None,
    ) -> list[CandidateRecord]:
        """Search, then merge full page text into the top results by URL."""
        items = self.search(query, options)
        if not items:
            return []

        urls = [item["url"] for item in items[: self.contents_limit] if item.get("url")]
        texts = {
            content["url"]: content.get("text")
            for content in self.fetch_contents(urls)
            if content.get("url")
        }

        records: list[CandidateRecord] = []
        for item in items:
            record = self._parse(item, texts.get(item.get("url")))
            if record:
                records.append(record)
        return normalize_records(records)

    def _client(self) -> httpx.Client:
        if not self.api_key:
            raise ConfigurationError("EXA_API_KEY is not configured")
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

    def _request(self, client: httpx.Client, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = client.post(path, json=body)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as exc:
            raise SearchTimeoutError(self.timeout, provider=_PROVIDER) from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Exa API error: {exc.response.status_code} {exc.response.reason_phrase}"
                f" - {exc.response.text}",
                provider=_PROVIDER,
                details={"status_code": exc.response.status_code, "path": path},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"Exa request failed: {exc}", provider=_PROVIDER) from exc

    def _parse(self, item: dict[str, Any], content_text: str | None) -> CandidateRecord | None:
        title = (item.get("title") or "").strip()
        url = (item.get("url") or "").strip()
        if not title and not url:
            return None
        return CandidateRecord.from_dict({
            **item,
            "title": title,
            "url": url,
            "text": content_text or item.get("text") or "",
        })
