"""Snapshot history under ``<root>/<state_dir>/history/``.

One JSON file per snapshot, named after its timestamp with ``:`` replaced
by ``-`` and the fractional seconds and zone suffix dropped, e.g.
``2024-01-15T10-30-00.json``. Two snapshots taken within the same second
share a file; the later one wins.
"""

from __future__ import annotations

import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..clock import parse_iso
from ..exceptions import CorruptStateError
from ..file_ops import atomic_write_json, read_json
from ..logging_config import get_logger
from .models import HealthSnapshot

logger = get_logger(__name__)

HISTORY_DIR = "history"

_FILENAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})\.json$")


def snapshot_filename(snapshot: HealthSnapshot) -> str:
    safe = re.sub(r"(\.\d+)?(Z|[+-]\d{2}:\d{2})?$", "", snapshot.timestamp, count=1)
    return f"{safe.replace(':', '-')}.json"


def parse_filename_timestamp(filename: str) -> Optional[datetime]:
    match = _FILENAME_RE.match(filename)
    if not match:
        return None
    date, hour, minute, second = match.groups()
    try:
        return datetime.fromisoformat(f"{date}T{hour}:{minute}:{second}").replace(
            tzinfo=timezone.utc
        )
    except ValueError:
        return None


class HistoryStore:
    """Append-only snapshot log with bounded retention."""

    def __init__(self, state_dir: str = ".specter", max_snapshots: int = 100):
        if max_snapshots < 1:
            raise ValueError("max_snapshots must be at least 1")
        self.state_dir = state_dir
        self.max_snapshots = max_snapshots

    def history_dir(self, root_dir: Path) -> Path:
        return Path(root_dir) / self.state_dir / HISTORY_DIR

    def save(self, root_dir: Path, snapshot: HealthSnapshot) -> Path:
        """Persist ``snapshot`` atomically, then prune to ``max_snapshots``."""
        path = self.history_dir(root_dir) / snapshot_filename(snapshot)
        atomic_write_json(path, snapshot.to_dict())
        logger.debug("Saved snapshot %s", path.name)
        self.prune(root_dir)
        return path

    def load_all(self, root_dir: Path) -> list[HealthSnapshot]:
        """All readable snapshots, newest first. Corrupt files are skipped."""
        history_dir = self.history_dir(root_dir)
        if not history_dir.is_dir():
            return []

        loaded: list[tuple[datetime, HealthSnapshot]] = []
        for path in history_dir.glob("*.json"):
            snapshot = self._read(path)
            if snapshot is None:
                continue
            moment = parse_iso(snapshot.timestamp)
            if moment is None:
                logger.debug("Skipping snapshot %s: unparseable timestamp", path.name)
                continue
            loaded.append((moment, snapshot))

        loaded.sort(key=lambda pair: pair[0], reverse=True)
        return [snapshot for _, snapshot in loaded]

    def load_in_range(self, root_dir: Path, start: datetime, end: datetime) -> list[HealthSnapshot]:
        """Snapshots with ``start <= timestamp <= end``, newest first."""
        start, end = _aware(start), _aware(end)
        result = []
        for snapshot in self.load_all(root_dir):
            moment = parse_iso(snapshot.timestamp)
            if moment is not None and start <= moment <= end:
                result.append(snapshot)
        return result

    def latest(self, root_dir: Path) -> Optional[HealthSnapshot]:
        snapshots = self.load_all(root_dir)
        return snapshots[0] if snapshots else None

    def by_id(self, root_dir: Path, snapshot_id: str) -> Optional[HealthSnapshot]:
        for snapshot in self.load_all(root_dir):
            if snapshot.id == snapshot_id:
                return snapshot
        return None

    def count(self, root_dir: Path) -> int:
        return len(self.load_all(root_dir))

    def clear(self, root_dir: Path) -> None:
        history_dir = self.history_dir(root_dir)
        if history_dir.exists():
            shutil.rmtree(history_dir, ignore_errors=True)

    def prune(self, root_dir: Path) -> int:
        """Delete all but the ``max_snapshots`` most recent files. Returns the number removed.

        Recency comes from the snapshot's own timestamp, falling back to
        the filename for unreadable files. Files with neither are left alone.
        Deletion failures are logged and otherwise ignored.
        """
        history_dir = self.history_dir(root_dir)
        if not history_dir.is_dir():
            return 0

        files = list(history_dir.glob("*.json"))
        if len(files) <= self.max_snapshots:
            return 0

        dated: list[tuple[datetime, Path]] = []
        for path in files:
            snapshot = self._read(path)
            moment = parse_iso(snapshot.timestamp) if snapshot else None
            if moment is None:
                moment = parse_filename_timestamp(path.name)
            if moment is not None:
                dated.append((moment, path))

        dated.sort(key=lambda pair: (pair[0], pair[1].name), reverse=True)
        removed = 0
        for _, path in dated[self.max_snapshots :]:
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.debug("Could not prune %s: %s", path.name, e)
        if removed:
            logger.debug("Pruned %d old snapshot(s)", removed)
        return removed

    def _read(self, path: Path) -> Optional[HealthSnapshot]:
        try:
            return HealthSnapshot.from_dict(read_json(path))
        except FileNotFoundError:
            return None
        except CorruptStateError as e:
            logger.debug("Skipping snapshot: %s", e)
            return None
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug("Skipping malformed snapshot %s: %s", path.name, e)
            return None


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)
