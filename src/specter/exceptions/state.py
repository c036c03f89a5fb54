"""Persisted-state exceptions: missing, corrupt or invalid graph and snapshot data."""

from pathlib import Path
from typing import Optional

from .base import SpecterError

NOT_SCANNED_HINT = "No graph found. Run `specter scan` first."


class StateError(SpecterError):
    """Base class for errors concerning files under the state directory."""

    pass


class NotScannedError(StateError):
    """Raised when no knowledge graph exists for a project."""

    def __init__(self, root_dir: Path):
        super().__init__(NOT_SCANNED_HINT, details={"root": str(root_dir)})
        self.root_dir = root_dir


class CorruptStateError(StateError):
    """Raised when a graph or snapshot file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Corrupt state file: {path}", details={"path": str(path), "reason": reason}
        )
        self.path = path
        self.reason = reason


class InvalidGraphError(SpecterError):
    """Raised when graph data violates a structural invariant."""

    def __init__(self, reason: str, node_id: Optional[str] = None):
        details = {"reason": reason}
        if node_id:
            details["node"] = node_id
        super().__init__(f"Invalid graph data: {reason}", details=details)
        self.reason = reason
        self.node_id = node_id
