from __future__ import annotations

import calendar
import html
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from .models import NormalizedRecord


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Convert whatever a source gives us as a date into an aware UTC datetime.

    Accepts datetimes, epoch seconds, struct_time (assumed UTC, as feedparser
    produces), ISO-8601 strings and RFC 2822 strings. Anything else, or a
    value that fails to parse, yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, time.struct_time):
        try:
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    iso = s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s
    try:
        return parse_timestamp(datetime.fromisoformat(iso))
    except ValueError:
        pass
    try:
        return parse_timestamp(parsedate_to_datetime(s))
    except (TypeError, ValueError, IndexError):
        return None


def strip_html(value: Optional[str]) -> str:
    if not value:
        return ""
    if "<" not in value:
        return " ".join(value.split())
    return BeautifulSoup(value, "html.parser").get_text(" ", strip=True)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _url(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().startswith("http"):
        return value.strip()
    return None


def parse_search_article(article: Dict[str, Any]) -> NormalizedRecord:
    """Map one article object of the keyed search API (GNews shape)."""
    source = article.get("source")
    name = source.get("name") if isinstance(source, dict) else None
    return NormalizedRecord(
        title=_text(article.get("title")),
        summary=_text(article.get("description")) or _text(article.get("content")),
        link=_text(article.get("url")),
        published_at=parse_timestamp(article.get("publishedAt")),
        image=_url(article.get("image")),
        source=_text(name) or "GNews",
    )


def _reddit_image(post: Dict[str, Any]) -> Optional[str]:
    preview = post.get("preview")
    if isinstance(preview, dict):
        images = preview.get("images")
        if isinstance(images, list) and images and isinstance(images[0], dict):
            src = images[0].get("source")
            if isinstance(src, dict) and _url(src.get("url")):
                # reddit escapes ampersands in preview URLs
                return html.unescape(src["url"].strip())
    return _url(post.get("thumbnail"))


def parse_reddit_post(post: Dict[str, Any], channel: str) -> NormalizedRecord:
    """Map the ``data`` object of one link-aggregator listing child."""
    permalink = _text(post.get("permalink"))
    if permalink:
        link = "https://reddit.com" + permalink
    else:
        link = _text(post.get("url"))
    return NormalizedRecord(
        title=_text(post.get("title")),
        summary=_text(post.get("selftext")),
        link=link,
        published_at=parse_timestamp(post.get("created_utc")),
        image=_reddit_image(post),
        source=f"reddit/{channel}",
    )


def _entry_date(entry: Dict[str, Any]) -> Optional[datetime]:
    # Priority: published -> updated -> created; parsed forms first.
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        dt = parse_timestamp(entry.get(key))
        if dt:
            return dt
    for key in ("published", "updated", "created", "pubDate"):
        dt = parse_timestamp(entry.get(key))
        if dt:
            return dt
    return None


def _entry_image(entry: Dict[str, Any]) -> Optional[str]:
    for enclosure in entry.get("enclosures") or []:
        if isinstance(enclosure, dict) and _url(enclosure.get("href")):
            return enclosure["href"].strip()
    for media in entry.get("media_content") or []:
        if isinstance(media, dict) and _url(media.get("url")):
            return media["url"].strip()
    for thumb in entry.get("media_thumbnail") or []:
        if isinstance(thumb, dict) and _url(thumb.get("url")):
            return thumb["url"].strip()
    return None


def parse_feed_entry(entry: Dict[str, Any], feed_title: str) -> NormalizedRecord:
    """
    Map a raw feed entry (from feedparser) to a NormalizedRecord.

    Title, description, link and date are each optional. Body text prefers the
    full content block over the summary, with markup removed.
    """
    body = None
    content = entry.get("content")
    if isinstance(content, list) and content and isinstance(content[0], dict):
        body = content[0].get("value")
    body = body or entry.get("summary") or entry.get("description")

    return NormalizedRecord(
        title=_text(entry.get("title")),
        summary=strip_html(body),
        link=_text(entry.get("link")),
        published_at=_entry_date(entry),
        image=_entry_image(entry),
        source=feed_title or "RSS Feed",
    )
