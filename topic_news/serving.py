from __future__ import annotations

import logging
from typing import Any, Dict

from .exceptions import PersistenceError, SnapshotNotFound
from .models import Snapshot
from .store import SnapshotStore

logger = logging.getLogger(__name__)


def load_latest(store: SnapshotStore) -> Dict[str, Any]:
    """
    Read-only accessor for the serving side.

    Always returns a complete payload: the stored snapshot, or the empty
    snapshot shape when nothing has been written yet (or the file is
    unreadable). Never blocks on, or waits for, a running aggregation.
    """
    try:
        return store.read().to_dict()
    except SnapshotNotFound:
        return Snapshot.empty().to_dict()
    except PersistenceError as e:
        logger.error("Serving empty payload, snapshot unreadable: %s", e)
        return Snapshot.empty().to_dict()
