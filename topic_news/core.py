from __future__ import annotations

import concurrent.futures as _fut
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from . import transport
from .classifier import filter_relevant
from .config import AggregatorConfig, TierConfig
from .dedup import merge
from .exceptions import PersistenceError, SnapshotNotFound, TierExhausted
from .fetcher import FetchResult, SourceAdapter, build_adapters
from .models import NormalizedRecord, RunResult, Snapshot
from .store import SnapshotStore
from .window import apply_window

logger = logging.getLogger(__name__)

Diagnostics = Dict[str, List[Dict[str, Any]]]


def process_records(
    records: Iterable[NormalizedRecord],
    *,
    include_terms: Optional[Sequence[str]],
    exclude_terms: Optional[Sequence[str]],
    max_age: timedelta,
    now: datetime,
    limit: Optional[int] = None,
) -> List[NormalizedRecord]:
    """Relevance filter → recency window → merge → cap, for one tier's raw records."""
    relevant = filter_relevant(records, include_terms, exclude_terms)
    fresh = apply_window(relevant, max_age, now)
    merged = merge(fresh)
    if limit and limit > 0:
        merged = merged[:limit]
    return merged


class NewsAggregator:
    """
    High-level API: run the tiered fetch and keep the snapshot store current.

    Pipeline per tier: fetch (all adapters concurrently) → filter → window →
    merge. The first tier that yields records wins and is persisted; later
    tiers are only tried when earlier ones come back empty. When every tier is
    empty the stored snapshot is returned untouched.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        store: Optional[SnapshotStore] = None,
        *,
        client: Optional[httpx.Client] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.store = store or SnapshotStore(config.cache_path)
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def run(self) -> RunResult:
        started = time.monotonic()
        now = self._clock()
        diagnostics: Diagnostics = {}

        client = self._client or transport.build_client(self.config.http_timeout, self.config.user_agent)
        try:
            try:
                tier, records = self._run_tiers(client, now, diagnostics)
            except TierExhausted as e:
                logger.warning("%s; serving last snapshot", e)
                result = self._serve_stale(now, diagnostics)
            else:
                result = self._persist(tier, records, now, diagnostics)
        finally:
            if self._client is None:
                client.close()

        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def run_tier(self, tier: TierConfig, client: httpx.Client, now: datetime,
                 diagnostics: Optional[Diagnostics] = None) -> List[NormalizedRecord]:
        adapters: List[SourceAdapter] = []
        for source in tier.sources:
            adapters.extend(build_adapters(source, self.config, client))

        results = self._fan_out(adapters)
        if diagnostics is not None:
            diagnostics[tier.name] = [r.diagnostic.to_dict() for r in results if r.diagnostic]

        raw = [rec for r in results for rec in r.records]
        include, exclude = self.config.terms_for(tier)
        accepted = process_records(
            raw,
            include_terms=include,
            exclude_terms=exclude,
            max_age=self.config.max_age,
            now=now,
            limit=self.config.max_articles,
        )
        logger.info("Tier %s: %d fetched, %d accepted", tier.name, len(raw), len(accepted))
        return accepted

    def _fan_out(self, adapters: Sequence[SourceAdapter]) -> List[FetchResult]:
        # Barrier: every adapter of the tier finishes before merging.
        if not adapters:
            return []
        max_workers = max(1, min(int(self.config.max_workers or 1), len(adapters)))
        if max_workers == 1:
            return [a.fetch() for a in adapters]
        with _fut.ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = [ex.submit(a.fetch) for a in adapters]
            return [fu.result() for fu in futures]

    def _run_tiers(self, client: httpx.Client, now: datetime,
                   diagnostics: Diagnostics) -> Tuple[TierConfig, List[NormalizedRecord]]:
        partial: Optional[Tuple[TierConfig, List[NormalizedRecord]]] = None
        for tier in self.config.tiers:
            try:
                accepted = self.run_tier(tier, client, now, diagnostics)
            except Exception:  # one broken tier must not stop the next one
                logger.exception("Tier %s failed", tier.name)
                accepted = []

            if accepted and len(accepted) >= tier.min_records:
                return tier, accepted
            if accepted and partial is None:
                partial = (tier, accepted)
            logger.info("Tier %s below threshold (%d < %d), trying next tier",
                        tier.name, len(accepted), max(1, tier.min_records))

        if partial is not None:
            logger.info("No tier reached its threshold; using partial result of %s", partial[0].name)
            return partial
        raise TierExhausted(f"All {len(self.config.tiers)} tiers returned no records")

    def _persist(self, tier: TierConfig, records: List[NormalizedRecord], now: datetime,
                 diagnostics: Diagnostics) -> RunResult:
        snapshot = Snapshot(
            fetched_at=now,
            articles=records,
            used_source=tier.name,
            used_query=tier.query,
            diagnostics=diagnostics,
        )
        result = RunResult(status=RunResult.SUCCEEDED, snapshot=snapshot, tier=tier.name,
                           diagnostics=diagnostics)
        try:
            self.store.write(snapshot)
        except PersistenceError as e:
            logger.error("Snapshot not updated: %s", e)
            result.error = str(e)
        else:
            result.persisted = True
        return result

    def _serve_stale(self, now: datetime, diagnostics: Diagnostics) -> RunResult:
        error = None
        try:
            snapshot = self.store.read()
            tier = "last_cache"
        except SnapshotNotFound:
            logger.warning("No snapshot stored yet; returning empty result")
            snapshot, tier = Snapshot.empty(now), "none"
        except PersistenceError as e:
            logger.error("Stored snapshot unusable: %s", e)
            snapshot, tier, error = Snapshot.empty(now), "none", str(e)
        return RunResult(status=RunResult.SERVED_STALE, snapshot=snapshot, tier=tier,
                         error=error, diagnostics=diagnostics)
