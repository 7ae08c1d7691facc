from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from .exceptions import PersistenceError, SnapshotNotFound
from .models import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Single-slot JSON file holding the last successful aggregation result.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers see either the old or the new document
    and never a partial one. Concurrent writers are not coordinated; the last
    one wins.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> Snapshot:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise SnapshotNotFound(f"No snapshot at {self.path}") from e
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read snapshot {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Snapshot {self.path} is not a JSON object")
        return Snapshot.from_dict(data)

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except OSError:
            return 0o644

    def write(self, snapshot: Snapshot) -> None:
        body = json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2)
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600 files; keep the previous mode, else 0644
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Cannot write snapshot {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary snapshot file %s", tmp_name)
        logger.info("Wrote snapshot with %d articles to %s", snapshot.count, self.path)
