from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render an aware datetime as ISO-8601 UTC with a trailing ``Z``."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class NormalizedRecord:
    """
    One news item after adaptation, regardless of which source produced it.

    WARNING: Do not change fields lightly. The snapshot file and every consumer
    of it depend on this shape.
    """
    title: str
    summary: str
    link: str
    published_at: Optional[datetime]
    image: Optional[str] = None
    source: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "link": self.link,
            "publishedAt": format_timestamp(self.published_at),
            "image": self.image,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizedRecord":
        from .parser import parse_timestamp  # local import to avoid circular

        return cls(
            title=str(data.get("title") or ""),
            summary=str(data.get("summary") or ""),
            link=str(data.get("link") or ""),
            published_at=parse_timestamp(data.get("publishedAt")),
            image=data.get("image") or None,
            source=str(data.get("source") or "unknown"),
        )


@dataclass(frozen=True)
class FetchDiagnostic:
    """Observability record for a single adapter invocation."""
    source: str
    target: str
    ok: bool
    count: int = 0
    status: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "ok": self.ok,
            "count": self.count,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class Snapshot:
    """The persisted result of the most recent successful aggregation run."""
    fetched_at: datetime
    articles: List[NormalizedRecord] = field(default_factory=list)
    used_source: str = "none"
    used_query: str = ""
    diagnostics: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.articles)

    @classmethod
    def empty(cls, fetched_at: Optional[datetime] = None) -> "Snapshot":
        return cls(fetched_at=fetched_at or datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fetchedAt": format_timestamp(self.fetched_at),
            "count": self.count,
            "articles": [a.to_dict() for a in self.articles],
            "usedSource": self.used_source,
            "usedQuery": self.used_query,
            "diagnostics": self.diagnostics,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        from .parser import parse_timestamp  # local import to avoid circular

        raw_articles = data.get("articles")
        if not isinstance(raw_articles, list):
            raw_articles = []
        diagnostics = data.get("diagnostics")
        return cls(
            fetched_at=parse_timestamp(data.get("fetchedAt")) or datetime.fromtimestamp(0, tz=timezone.utc),
            articles=[NormalizedRecord.from_dict(a) for a in raw_articles if isinstance(a, dict)],
            used_source=str(data.get("usedSource") or "none"),
            used_query=str(data.get("usedQuery") or ""),
            diagnostics=diagnostics if isinstance(diagnostics, dict) else {},
        )


@dataclass
class RunResult:
    """Outcome of one orchestrator run, returned to whoever triggered it."""
    status: str
    snapshot: Snapshot
    tier: Optional[str] = None
    persisted: bool = False
    error: Optional[str] = None
    duration_ms: int = 0
    diagnostics: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    SUCCEEDED = "succeeded"
    SERVED_STALE = "served_stale"

    @property
    def stale(self) -> bool:
        return self.status == self.SERVED_STALE

    @property
    def articles(self) -> List[NormalizedRecord]:
        return self.snapshot.articles

    def summary(self) -> Dict[str, Any]:
        return {
            "ok": self.error is None,
            "status": self.status,
            "stale": self.stale,
            "saved": self.snapshot.count if self.persisted else 0,
            "count": self.snapshot.count,
            "usedSource": self.tier or self.snapshot.used_source,
            "usedQuery": self.snapshot.used_query,
            "persisted": self.persisted,
            "error": self.error,
            "durationMs": self.duration_ms,
            "debug": self.diagnostics,
        }
