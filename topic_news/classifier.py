from __future__ import annotations

from typing import Iterable, List, Optional

from .models import NormalizedRecord


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    t = text.lower()
    return any(k.lower() in t for k in keywords if k)


def searchable_text(record: NormalizedRecord) -> str:
    return f"{record.title} {record.summary}".lower()


def is_relevant(record: NormalizedRecord,
                include_terms: Optional[Iterable[str]],
                exclude_terms: Optional[Iterable[str]] = None,
                ) -> bool:
    """
    Keyword relevance test over title + summary.

    Matching is plain case-insensitive substring search, so a term also
    matches inside longer words ("nbe" matches "nbems"). An exclude hit always
    rejects, even when an include term matched. An empty include set accepts
    everything that is not excluded.
    """
    text = searchable_text(record)

    if exclude_terms and _contains_any(text, exclude_terms):
        return False

    include = [k for k in include_terms or () if k]
    if include and not _contains_any(text, include):
        return False

    return True


def filter_relevant(records: Iterable[NormalizedRecord],
                    include_terms: Optional[Iterable[str]],
                    exclude_terms: Optional[Iterable[str]] = None,
                    ) -> List[NormalizedRecord]:
    include = list(include_terms or ())
    exclude = list(exclude_terms or ())
    return [r for r in records if is_relevant(r, include, exclude)]
