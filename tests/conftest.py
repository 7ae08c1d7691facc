import pytest

from topic_news.store import SnapshotStore

from .helpers import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "news-cache.json")
