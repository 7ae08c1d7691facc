from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from .models import NormalizedRecord


def within_window(record: NormalizedRecord, max_age: timedelta, now: datetime) -> bool:
    """True iff the record has a date and is at most `max_age` old (inclusive)."""
    if record.published_at is None:
        # no date: freshness cannot be shown
        return False
    return now - record.published_at <= max_age


def apply_window(records: Iterable[NormalizedRecord], max_age: timedelta, now: datetime) -> List[NormalizedRecord]:
    return [r for r in records if within_window(r, max_age, now)]
