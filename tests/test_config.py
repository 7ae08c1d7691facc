import json
from datetime import timedelta

import pytest

from topic_news.config import (
    BROAD_KEYWORDS,
    STRICT_KEYWORDS,
    build_query,
    config_from_dict,
    default_config,
    load_config,
)
from topic_news.exceptions import ConfigError


def test_build_query():
    assert build_query(["neet pg", "nbems"]) == '"neet pg" OR "nbems"'


def test_default_config_tiers():
    config = default_config()
    assert [t.name for t in config.tiers] == ["strict_gnews", "broad_gnews", "alternate"]
    assert [s.kind for s in config.tiers[2].sources] == ["reddit", "feed"]
    assert config.include_terms == STRICT_KEYWORDS + BROAD_KEYWORDS
    assert config.max_age == timedelta(hours=48)
    assert config.max_articles == 100


def test_config_from_dict_overrides():
    config = config_from_dict({
        "include_terms": ["NEET PG"],
        "exclude_terms": ["sponsored"],
        "max_age_hours": 24,
        "tiers": [
            {"name": "strict", "sources": [{"kind": "search", "keywords": ["neet pg", "fmge"]}]},
            {"name": "feeds", "min_records": 3,
             "sources": [{"kind": "feed", "targets": ["https://a.example.com/rss"], "max_items": 10}]},
        ],
    })
    assert config.include_terms == ("neet pg",)
    assert config.exclude_terms == ("sponsored",)
    assert config.max_age == timedelta(hours=24)
    assert config.tiers[0].sources[0].targets == ('"neet pg" OR "fmge"',)
    assert config.tiers[1].min_records == 3
    assert config.tiers[1].sources[0].max_items == 10


def test_tier_terms_override_global():
    config = config_from_dict({
        "include_terms": ["neet pg"],
        "tiers": [{"name": "t", "include_terms": ["fmge"], "sources": [{"kind": "reddit", "targets": ["neet"]}]}],
    })
    include, exclude = config.terms_for(config.tiers[0])
    assert include == ("fmge",)
    assert exclude == ()


@pytest.mark.parametrize("doc", [
    [],
    {"tiers": []},
    {"tiers": [{"name": "x", "sources": [{"kind": "ftp", "targets": ["a"]}]}]},
    {"tiers": [{"name": "x", "sources": [{"kind": "feed"}]}]},
    {"tiers": [{"sources": [{"kind": "feed", "targets": ["a"]}]}]},
    {"include_terms": "neet pg"},
    {"max_articles": "lots"},
])
def test_malformed_config_raises(doc):
    with pytest.raises(ConfigError):
        config_from_dict(doc)


def test_load_config_reads_file_and_env(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max_articles": 5}), encoding="utf-8")
    monkeypatch.setenv("GNEWS_API_KEY", "from-env")
    monkeypatch.setenv("TOPIC_NEWS_CACHE_FILE", str(tmp_path / "cache.json"))
    monkeypatch.setenv("TOPIC_NEWS_MAX_AGE_HOURS", "12")

    config = load_config(str(path), env_file=str(tmp_path / "missing.env"))

    assert config.max_articles == 5
    assert config.search_api_key == "from-env"
    assert config.cache_path == str(tmp_path / "cache.json")
    assert config.max_age == timedelta(hours=12)


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{nope", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path), env_file=str(tmp_path / "missing.env"))
