from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigError

SOURCE_KINDS = ("search", "reddit", "feed")

# NEET-PG topic: postgraduate medical entrance news in India.
STRICT_KEYWORDS: Tuple[str, ...] = (
    "neet pg", "neet-pg", "nbems", "nbe", "fmge",
    "pg counselling", "pg medical", "md ms", "dnb",
    "postgraduate medical", "neet ss",
    "gujarat neet pg", "tamil nadu neet pg",
    "karnataka neet pg", "delhi neet pg", "maharashtra neet pg",
    "rajasthan neet pg", "haryana neet pg", "punjab neet pg",
)

BROAD_KEYWORDS: Tuple[str, ...] = (
    "neet", "medical counselling", "postgraduate",
    "medical admissions", "pg admissions",
)

REDDIT_CHANNELS: Tuple[str, ...] = ("neet", "medicalschool")

RSS_FEEDS: Tuple[str, ...] = (
    "https://timesofindia.indiatimes.com/rssfeeds/913168846.cms",
    "https://www.indiatoday.in/education-today/rss",
    "https://www.news-medical.net/news/Medical-News-feed.aspx",
)


def build_query(keywords: Iterable[str]) -> str:
    """Quote each keyword and OR them together, as the search API expects."""
    return " OR ".join(f'"{k}"' for k in keywords if k)


@dataclass(frozen=True)
class SourceConfig:
    kind: str  # "search" | "reddit" | "feed"
    targets: Tuple[str, ...]  # queries, channel names or feed URLs
    max_items: Optional[int] = None


@dataclass(frozen=True)
class TierConfig:
    name: str
    sources: Tuple[SourceConfig, ...]
    include_terms: Optional[Tuple[str, ...]] = None
    exclude_terms: Optional[Tuple[str, ...]] = None
    min_records: int = 1

    @property
    def query(self) -> str:
        return " | ".join(t for s in self.sources for t in s.targets)


@dataclass
class AggregatorConfig:
    tiers: List[TierConfig] = field(default_factory=list)
    include_terms: Tuple[str, ...] = ()
    exclude_terms: Tuple[str, ...] = ()
    max_age: timedelta = timedelta(hours=48)
    max_articles: int = 100
    max_workers: int = 8

    search_endpoint: str = "https://gnews.io/api/v4/search"
    search_api_key: Optional[str] = None
    search_lang: str = "en"
    search_country: str = "in"
    search_max: int = 100

    reddit_base_url: str = "https://www.reddit.com"
    reddit_limit: int = 20
    reddit_period: str = "week"

    feed_max_items: int = 30

    user_agent: str = "topic-news/1.0"
    http_timeout: float = 15.0
    http_retries: int = 3

    cache_path: str = "news-cache.json"

    def terms_for(self, tier: TierConfig) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        include = tier.include_terms if tier.include_terms is not None else self.include_terms
        exclude = tier.exclude_terms if tier.exclude_terms is not None else self.exclude_terms
        return include, exclude


def default_config() -> AggregatorConfig:
    return AggregatorConfig(
        tiers=[
            TierConfig("strict_gnews", (SourceConfig("search", (build_query(STRICT_KEYWORDS),)),)),
            TierConfig("broad_gnews", (SourceConfig("search", (build_query(BROAD_KEYWORDS),)),)),
            TierConfig(
                "alternate",
                (
                    SourceConfig("reddit", REDDIT_CHANNELS),
                    SourceConfig("feed", RSS_FEEDS),
                ),
            ),
        ],
        include_terms=STRICT_KEYWORDS + BROAD_KEYWORDS,
    )


def _terms(value: Any, key: str) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str) or not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of strings")
    return tuple(str(v).lower() for v in value if str(v).strip())


def _source_from_dict(data: Dict[str, Any]) -> SourceConfig:
    if not isinstance(data, dict):
        raise ConfigError("Each source must be a JSON object")
    kind = data.get("kind")
    if kind not in SOURCE_KINDS:
        raise ConfigError(f"Unknown source kind: {kind!r}")
    targets = data.get("targets")
    if targets is None and kind == "search" and data.get("keywords"):
        targets = [build_query(data["keywords"])]
    if not isinstance(targets, list) or not targets:
        raise ConfigError(f"Source of kind {kind!r} needs a non-empty 'targets' list")
    max_items = data.get("max_items")
    if max_items is not None:
        max_items = int(max_items)
    return SourceConfig(kind=kind, targets=tuple(str(t) for t in targets), max_items=max_items)


def _tier_from_dict(data: Dict[str, Any]) -> TierConfig:
    if not isinstance(data, dict):
        raise ConfigError("Each tier must be a JSON object")
    name = data.get("name")
    sources = data.get("sources")
    if not isinstance(name, str) or not name:
        raise ConfigError("Every tier needs a 'name'")
    if not isinstance(sources, list) or not sources:
        raise ConfigError(f"Tier {name!r} needs a non-empty 'sources' list")
    return TierConfig(
        name=name,
        sources=tuple(_source_from_dict(s) for s in sources),
        include_terms=_terms(data.get("include_terms"), "include_terms"),
        exclude_terms=_terms(data.get("exclude_terms"), "exclude_terms"),
        min_records=int(data.get("min_records", 1)),
    )


def config_from_dict(data: Dict[str, Any], base: Optional[AggregatorConfig] = None) -> AggregatorConfig:
    """Overlay a parsed JSON config document on `base` (defaults if omitted)."""
    cfg = base or default_config()
    if not isinstance(data, dict):
        raise ConfigError("Config document must be a JSON object")
    changes: Dict[str, Any] = {}
    try:
        if "tiers" in data:
            if not isinstance(data["tiers"], list) or not data["tiers"]:
                raise ConfigError("'tiers' must be a non-empty list")
            changes["tiers"] = [_tier_from_dict(t) for t in data["tiers"]]
        for key in ("include_terms", "exclude_terms"):
            if key in data:
                changes[key] = _terms(data[key], key) or ()
        if "max_age_hours" in data:
            changes["max_age"] = timedelta(hours=float(data["max_age_hours"]))
        for key in ("max_articles", "max_workers", "search_max", "reddit_limit", "feed_max_items", "http_retries"):
            if key in data:
                changes[key] = int(data[key])
        if "http_timeout" in data:
            changes["http_timeout"] = float(data["http_timeout"])
        for key in ("search_endpoint", "search_lang", "search_country", "reddit_base_url",
                    "reddit_period", "user_agent", "cache_path"):
            if key in data:
                changes[key] = str(data[key])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e
    return replace(cfg, **changes)


def load_config(path: Optional[str] = None, env_file: Optional[str] = None) -> AggregatorConfig:
    """
    Build the run configuration.

    Order: built-in defaults, then the JSON file at `path` (if any), then
    environment variables (after loading `.env`).
    """
    load_dotenv(env_file)
    cfg = default_config()

    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
        cfg = config_from_dict(data, cfg)

    changes: Dict[str, Any] = {}
    key = os.getenv("GNEWS_API_KEY")
    if key:
        changes["search_api_key"] = key
    cache = os.getenv("TOPIC_NEWS_CACHE_FILE")
    if cache:
        changes["cache_path"] = cache
    try:
        hours = os.getenv("TOPIC_NEWS_MAX_AGE_HOURS")
        if hours:
            changes["max_age"] = timedelta(hours=float(hours))
        timeout = os.getenv("TOPIC_NEWS_HTTP_TIMEOUT")
        if timeout:
            changes["http_timeout"] = float(timeout)
    except ValueError as e:
        raise ConfigError(f"Invalid environment value: {e}") from e
    return replace(cfg, **changes)
