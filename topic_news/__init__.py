"""
topic_news

Aggregates topical news from a keyed search API, a link-aggregator API and
RSS/Atom feeds into one deduplicated, time-bounded snapshot.

Core ideas:
- Input: tiers of sources (strict query → broad query → alternate sources)
- Process: fetch (concurrently) → relevance filter → recency window → merge (newest first)
- Output: a Snapshot persisted to a single JSON file; when every tier comes
  back empty the previous snapshot is served unchanged

Example
-------
from topic_news import NewsAggregator, SnapshotStore, load_config

config = load_config()
aggregator = NewsAggregator(config, SnapshotStore(config.cache_path))
result = aggregator.run()

for item in result.articles:
    print(item.published_at, item.source, item.title)
"""
from .config import AggregatorConfig, SourceConfig, TierConfig, default_config, load_config
from .core import NewsAggregator, process_records
from .dedup import merge
from .models import NormalizedRecord, RunResult, Snapshot
from .serving import load_latest
from .store import SnapshotStore

__all__ = [
    "AggregatorConfig",
    "SourceConfig",
    "TierConfig",
    "default_config",
    "load_config",
    "NewsAggregator",
    "process_records",
    "merge",
    "NormalizedRecord",
    "RunResult",
    "Snapshot",
    "load_latest",
    "SnapshotStore",
]
