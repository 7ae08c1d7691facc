from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import feedparser
import httpx

from . import transport
from .config import AggregatorConfig, SourceConfig
from .exceptions import ConfigError, SourceUnavailable
from .models import FetchDiagnostic, NormalizedRecord
from .parser import parse_feed_entry, parse_reddit_post, parse_search_article

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    records: List[NormalizedRecord] = field(default_factory=list)
    diagnostic: Optional[FetchDiagnostic] = None


class SourceAdapter:
    """
    Fetch one target of one source and return normalized records.

    `fetch` never raises: any failure becomes an empty result and a diagnostic
    with ok=False. Subclasses implement `_fetch`, raising SourceUnavailable for
    failures they recognise.
    """

    kind = "source"

    def __init__(self, target: str, *, client: httpx.Client, retries: int = 3,
                 max_items: Optional[int] = None) -> None:
        self.target = target
        self.client = client
        self.retries = retries
        self.max_items = max_items
        self._status: Optional[int] = None

    def fetch(self) -> FetchResult:
        try:
            records = self._fetch()
        except SourceUnavailable as e:
            logger.warning("%s source unavailable for %r: %s", self.kind, self.target, e)
            return self._failed(str(e), e.status)
        except httpx.HTTPError as e:
            logger.warning("%s request failed for %r: %s", self.kind, self.target, e)
            return self._failed(f"{type(e).__name__}: {e}")
        except Exception as e:  # adapters must not abort the run
            logger.warning("%s adapter error for %r", self.kind, self.target, exc_info=True)
            return self._failed(f"{type(e).__name__}: {e}")

        if self.max_items and self.max_items > 0:
            records = records[: self.max_items]
        logger.info("%s %r returned %d records", self.kind, self.target, len(records))
        return FetchResult(
            records=records,
            diagnostic=FetchDiagnostic(source=self.kind, target=self.target, ok=True,
                                       count=len(records), status=self._status),
        )

    def _failed(self, error: str, status: Optional[int] = None) -> FetchResult:
        return FetchResult(
            records=[],
            diagnostic=FetchDiagnostic(source=self.kind, target=self.target, ok=False,
                                       status=status, error=error),
        )

    def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        response = transport.get(self.client, url, retries=self.retries, **kwargs)
        self._status = response.status_code
        if not response.is_success:
            raise SourceUnavailable(
                f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                status=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailable(f"Malformed JSON body: {e}", status=response.status_code) from e
        if not isinstance(data, dict):
            raise SourceUnavailable("Unexpected JSON body shape", status=response.status_code)
        return data

    def _fetch(self) -> List[NormalizedRecord]:  # pragma: no cover - interface
        raise NotImplementedError


class SearchAdapter(SourceAdapter):
    """Keyed search API (GNews): one request per query string."""

    kind = "search"

    def __init__(self, query: str, *, config: AggregatorConfig, **kwargs: Any) -> None:
        super().__init__(query, **kwargs)
        self.config = config

    def _fetch(self) -> List[NormalizedRecord]:
        if not self.config.search_api_key:
            raise SourceUnavailable("missing_key")
        response = self._get(
            self.config.search_endpoint,
            params={
                "q": self.target,
                "lang": self.config.search_lang,
                "country": self.config.search_country,
                "max": self.config.search_max,
                "token": self.config.search_api_key,
            },
        )
        data = self._json(response)
        articles = data.get("articles")
        if not isinstance(articles, list):
            raise SourceUnavailable("Response has no 'articles' list", status=response.status_code)
        return [parse_search_article(a) for a in articles if isinstance(a, dict)]


class RedditAdapter(SourceAdapter):
    """Link-aggregator API: one request per channel (subreddit)."""

    kind = "reddit"

    def __init__(self, channel: str, *, config: AggregatorConfig, **kwargs: Any) -> None:
        super().__init__(channel, **kwargs)
        self.config = config

    def _fetch(self) -> List[NormalizedRecord]:
        url = f"{self.config.reddit_base_url.rstrip('/')}/r/{self.target}/top.json"
        response = self._get(
            url,
            params={"limit": self.config.reddit_limit, "t": self.config.reddit_period},
            headers={"User-Agent": self.config.user_agent},
        )
        data = self._json(response)
        listing = data.get("data")
        children = listing.get("children") if isinstance(listing, dict) else None
        if not isinstance(children, list):
            raise SourceUnavailable("Listing has no 'children' list", status=response.status_code)

        records: List[NormalizedRecord] = []
        for child in children:
            post = child.get("data") if isinstance(child, dict) else None
            if isinstance(post, dict):
                records.append(parse_reddit_post(post, self.target))
        return records


class FeedAdapter(SourceAdapter):
    """RSS/Atom feed: fetch the document text and parse it with feedparser."""

    kind = "feed"

    def _fetch(self) -> List[NormalizedRecord]:
        response = self._get(self.target)
        # bytes, so feedparser does its own encoding detection
        feed = feedparser.parse(response.content)

        entries = getattr(feed, "entries", None)
        if not isinstance(entries, list):
            entries = []
        if getattr(feed, "bozo", 0) and not entries:
            exc = getattr(feed, "bozo_exception", None)
            msg = "Invalid RSS/Atom feed"
            if exc:
                msg += f" ({exc})"
            raise SourceUnavailable(msg, status=response.status_code)

        feed_title = (feed.feed.get("title") or "").strip() if isinstance(feed.feed, dict) else ""
        return [parse_feed_entry(e, feed_title) for e in entries]


def build_adapters(source: SourceConfig, config: AggregatorConfig, client: httpx.Client) -> List[SourceAdapter]:
    """Expand a configured source into one adapter per query, channel or feed URL."""
    common: Dict[str, Any] = {"client": client, "retries": config.http_retries}
    if source.kind == "search":
        return [SearchAdapter(q, config=config, max_items=source.max_items, **common)
                for q in source.targets]
    if source.kind == "reddit":
        return [RedditAdapter(c, config=config, max_items=source.max_items, **common)
                for c in source.targets]
    if source.kind == "feed":
        return [FeedAdapter(u, max_items=source.max_items or config.feed_max_items, **common)
                for u in source.targets]
    raise ConfigError(f"Unknown source kind: {source.kind!r}")
