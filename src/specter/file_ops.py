"""
Safe file operations for Specter.

State files are rewritten in place by repeated runs, so every write goes
through a temporary file in the target directory followed by an atomic
rename. Readers never observe a half-written document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .exceptions import CorruptStateError


def atomic_write_text(filepath: Path, content: str, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``filepath`` atomically.

    Raises:
        OSError: If the directory cannot be created or the rename fails
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{filepath.name}.", suffix=".tmp", dir=filepath.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, filepath)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def atomic_write_json(filepath: Path, data: Any, indent: int = 2) -> None:
    """Serialize ``data`` as JSON and write it atomically."""
    atomic_write_text(filepath, json.dumps(data, indent=indent))


def read_json(filepath: Path) -> Any:
    """Read a JSON document.

    Raises:
        FileNotFoundError: If the file does not exist
        CorruptStateError: If the file exists but cannot be read or parsed
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise CorruptStateError(filepath, f"Read failed: {e}")
    except json.JSONDecodeError as e:
        raise CorruptStateError(filepath, f"Invalid JSON: {e}")
