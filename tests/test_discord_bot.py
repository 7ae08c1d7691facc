import pytest

pytest.importorskip("discord")

import discord_bot  # noqa: E402


def test_format_news_lists_newest_items():
    payload = {"articles": [
        {"title": "NEET PG results", "source": "Edu", "publishedAt": "2026-10-19T11:00:00Z",
         "link": "https://x.com/a"},
        {"title": "", "source": None, "publishedAt": None, "link": ""},
    ]}
    text = discord_bot.format_news(payload, limit=3)
    assert "**NEET PG results**" in text
    assert "*Edu - 2026-10-19 11:00*" in text
    assert "<https://x.com/a>" in text
    assert "(untitled)" in text


def test_format_news_empty_payload():
    assert discord_bot.format_news({"count": 0, "articles": []}) == "No news cached yet."


def test_format_news_truncates_long_messages():
    payload = {"articles": [{"title": "x" * 3000, "source": "s", "publishedAt": None, "link": ""}]}
    assert len(discord_bot.format_news(payload)) == 2000
