"""JSON sync cursor persisted between runs."""
import json
import logging
import os
import tempfile
from pathlib import Path

from douban_sync.errors import StateError
from douban_sync.models import SyncCursor

logger = logging.getLogger(__name__)


class SyncStateStore:
    """Load and save the cursor of ids seen in the last successful run.

    The cursor only covers the feed's recent-activity window; it is a fast
    pre-filter, the tables themselves decide what is a duplicate.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> SyncCursor:
        """Read the cursor, falling back to an empty one if missing or corrupt."""
        if not self.path.exists():
            logger.debug(f"[STATE] No state file at {self.path}")
            return SyncCursor()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"[STATE] Ignoring unreadable state file {self.path}: {e}")
            return SyncCursor()

        if not isinstance(data, dict):
            logger.warning(f"[STATE] Ignoring malformed state file {self.path}")
            return SyncCursor()

        # lastSyncGuids / lastSync are the keys older state files used
        ids = data.get("knownIds", data.get("lastSyncGuids", []))
        last_sync = data.get("lastSyncTimestamp", data.get("lastSync"))
        if not isinstance(ids, list):
            logger.warning(f"[STATE] Ignoring malformed state file {self.path}")
            return SyncCursor()

        return SyncCursor(
            known_ids={str(i) for i in ids},
            last_sync=last_sync if isinstance(last_sync, str) else None,
        )

    def save(self, cursor: SyncCursor) -> None:
        """Replace the state file atomically (temp file + rename)."""
        payload = {
            "knownIds": sorted(cursor.known_ids),
            "lastSyncTimestamp": cursor.last_sync,
        }
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                delete=False,
                dir=str(self.path.parent),
                prefix=self.path.name,
                suffix=".tmp",
            ) as tmp:
                tmp_path = Path(tmp.name)
                json.dump(payload, tmp, ensure_ascii=False, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise StateError(f"Could not write state file {self.path}: {e}") from e

        logger.debug(f"[STATE] Saved {len(cursor.known_ids)} ids to {self.path}")
