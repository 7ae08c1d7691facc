from datetime import datetime, timedelta, timezone

import httpx

from topic_news.config import AggregatorConfig
from topic_news.models import NormalizedRecord

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_record(title="NEET PG update", link="https://news.example.com/a", age=timedelta(hours=1),
                summary="", source="test", image=None):
    return NormalizedRecord(
        title=title,
        summary=summary,
        link=link,
        published_at=None if age is None else NOW - age,
        image=image,
        source=source,
    )


def make_config(tiers=(), **overrides):
    options = dict(
        tiers=list(tiers),
        include_terms=("neet pg", "nbems"),
        search_api_key="test-key",
        http_retries=1,
        max_workers=4,
    )
    options.update(overrides)
    return AggregatorConfig(**options)


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))
