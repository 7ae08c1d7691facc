from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from .models import NormalizedRecord
from .normalizer import canonical_url, identity_key, identity_keys


def _sort_key(item: NormalizedRecord) -> Tuple[bool, float]:
    if item.published_at is None:
        return (True, 0.0)
    return (False, -item.published_at.timestamp())


def _fresher(candidate: NormalizedRecord, current: NormalizedRecord) -> bool:
    if candidate.published_at is None:
        return False
    if current.published_at is None:
        return True
    return candidate.published_at > current.published_at


def merge(items: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
    """
    Collapse records that describe the same story and sort newest first.

    Two records are the same story when they share a canonical URL or a
    normalized title; the relation is transitive. Each group keeps its most
    recently published record (undated counts as oldest, ties keep the first
    seen), with the link replaced by its canonical form. Undated records sort
    last; ties keep input order, so merging a merged list changes nothing.
    """
    records = list(items)
    parent = list(range(len(records)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    owner: Dict[str, int] = {}
    for i, it in enumerate(records):
        for key in identity_keys(it) or [identity_key(it)]:
            j = owner.setdefault(key, i)
            if j == i:
                continue
            a, b = find(i), find(j)
            if a != b:
                parent[max(a, b)] = min(a, b)

    winners: Dict[int, NormalizedRecord] = {}
    for i, it in enumerate(records):
        root = find(i)
        best = winners.get(root)
        if best is None or _fresher(it, best):
            winners[root] = it

    out: List[NormalizedRecord] = []
    for root in sorted(winners):
        it = winners[root]
        url = canonical_url(it.link)
        out.append(replace(it, link=url) if url and url != it.link else it)

    out.sort(key=_sort_key)
    return out
