from datetime import datetime, timezone

import httpx
from tenacity import wait_none

from topic_news.config import SourceConfig
from topic_news.fetcher import FeedAdapter, RedditAdapter, SearchAdapter, build_adapters

from .helpers import make_config, mock_client

FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Edu Feed</title>
    <item>
      <title><![CDATA[NEET PG 2026 results declared]]></title>
      <link>https://edu.example.com/neet-pg-results/</link>
      <pubDate>Mon, 19 Oct 2026 08:00:00 GMT</pubDate>
      <description><![CDATA[<p>NBEMS has declared the results.</p>]]></description>
      <enclosure url="https://edu.example.com/img.jpg" type="image/jpeg" length="100"/>
    </item>
    <item>
      <title>Only a title</title>
    </item>
    <item>
      <description>No title here</description>
      <link>https://edu.example.com/untitled</link>
    </item>
  </channel>
</rss>
"""


def test_search_adapter_maps_articles_and_sends_query():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"totalArticles": 1, "articles": [{
            "title": "NEET PG cut-off revised",
            "description": "NBEMS revised the cut-off",
            "url": "https://news.example.com/cutoff",
            "publishedAt": "2026-10-19T09:00:00Z",
            "source": {"name": "Example Times"},
        }, "not an article"]})

    adapter = SearchAdapter('"neet pg"', config=make_config(), client=mock_client(handler), retries=1)
    result = adapter.fetch()

    assert seen["q"] == '"neet pg"'
    assert seen["token"] == "test-key"
    assert seen["country"] == "in"
    assert [r.title for r in result.records] == ["NEET PG cut-off revised"]
    assert result.diagnostic.ok
    assert result.diagnostic.count == 1
    assert result.diagnostic.status == 200


def test_search_adapter_non_2xx_is_empty_with_status():
    client = mock_client(lambda request: httpx.Response(429, json={"errors": ["quota"]}))
    result = SearchAdapter("q", config=make_config(), client=client, retries=1).fetch()
    assert result.records == []
    assert not result.diagnostic.ok
    assert result.diagnostic.status == 429


def test_search_adapter_malformed_body_is_empty():
    client = mock_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    result = SearchAdapter("q", config=make_config(), client=client, retries=1).fetch()
    assert result.records == []
    assert not result.diagnostic.ok

    client = mock_client(lambda request: httpx.Response(200, json={"articles": "nope"}))
    result = SearchAdapter("q", config=make_config(), client=client, retries=1).fetch()
    assert result.records == []
    assert not result.diagnostic.ok


def test_search_adapter_without_key_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"articles": []})

    config = make_config(search_api_key=None)
    result = SearchAdapter("q", config=config, client=mock_client(handler), retries=1).fetch()
    assert calls == []
    assert result.records == []
    assert result.diagnostic.error == "missing_key"


def test_transport_error_is_empty_result():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = FeedAdapter("https://down.example.com/rss", client=mock_client(handler), retries=1).fetch()
    assert result.records == []
    assert not result.diagnostic.ok
    assert "ConnectError" in result.diagnostic.error


def test_reddit_adapter_flattens_listing():
    def handler(request):
        assert request.url.path == "/r/neet/top.json"
        assert request.url.params["t"] == "week"
        return httpx.Response(200, json={"data": {"children": [
            {"kind": "t3", "data": {"title": "NEET PG mock test", "permalink": "/r/neet/comments/1/x/",
                                    "created_utc": 1760860800}},
            {"kind": "t3", "data": {"title": "Second", "url": "https://elsewhere.example.com/y"}},
            {"kind": "t3"},
        ]}})

    result = RedditAdapter("neet", config=make_config(), client=mock_client(handler), retries=1).fetch()
    assert [r.link for r in result.records] == [
        "https://reddit.com/r/neet/comments/1/x/",
        "https://elsewhere.example.com/y",
    ]
    assert all(r.image is None for r in result.records)
    assert result.records[0].source == "reddit/neet"


def test_reddit_adapter_bad_listing_is_empty():
    client = mock_client(lambda request: httpx.Response(200, json={"data": None}))
    result = RedditAdapter("neet", config=make_config(), client=client, retries=1).fetch()
    assert result.records == []
    assert not result.diagnostic.ok


def test_feed_adapter_tolerates_missing_tags_and_cdata():
    client = mock_client(lambda request: httpx.Response(200, text=FEED_XML))
    result = FeedAdapter("https://edu.example.com/rss", client=client, retries=1).fetch()

    first, second, third = result.records
    assert first.title == "NEET PG 2026 results declared"
    assert first.summary == "NBEMS has declared the results."
    assert first.link == "https://edu.example.com/neet-pg-results/"
    assert first.published_at == datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
    assert first.image == "https://edu.example.com/img.jpg"
    assert first.source == "Edu Feed"

    assert second.title == "Only a title"
    assert second.link == ""
    assert second.summary == ""
    assert second.published_at is None

    assert third.title == ""
    assert third.summary == "No title here"


def test_feed_adapter_caps_items():
    client = mock_client(lambda request: httpx.Response(200, text=FEED_XML))
    result = FeedAdapter("https://edu.example.com/rss", client=client, retries=1, max_items=1).fetch()
    assert len(result.records) == 1


def test_feed_adapter_garbage_document_never_raises():
    client = mock_client(lambda request: httpx.Response(200, text="definitely <<< not xml"))
    result = FeedAdapter("https://edu.example.com/rss", client=client, retries=1).fetch()
    assert result.records == []


def test_build_adapters_one_per_target():
    config = make_config(feed_max_items=5)
    client = mock_client(lambda request: httpx.Response(200))
    adapters = build_adapters(SourceConfig("feed", ("https://a.example.com", "https://b.example.com")), config, client)
    assert [a.target for a in adapters] == ["https://a.example.com", "https://b.example.com"]
    assert all(a.max_items == 5 for a in adapters)


def test_transport_error_is_retried_then_succeeds(monkeypatch):
    monkeypatch.setattr("topic_news.transport.RETRY_WAIT", wait_none())
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, text=FEED_XML)

    result = FeedAdapter("https://edu.example.com/rss", client=mock_client(handler), retries=3).fetch()

    assert len(calls) == 2
    assert result.diagnostic.ok
    assert len(result.records) == 3


def test_http_error_status_is_not_retried(monkeypatch):
    monkeypatch.setattr("topic_news.transport.RETRY_WAIT", wait_none())
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    result = SearchAdapter("q", config=make_config(), client=mock_client(handler), retries=3).fetch()

    assert len(calls) == 1
    assert result.records == []
    assert not result.diagnostic.ok
    assert result.diagnostic.status == 503


def test_transport_errors_exhaust_retries(monkeypatch):
    monkeypatch.setattr("topic_news.transport.RETRY_WAIT", wait_none())
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    result = FeedAdapter("https://edu.example.com/rss", client=mock_client(handler), retries=3).fetch()

    assert len(calls) == 3
    assert result.records == []
    assert "ReadTimeout" in result.diagnostic.error
