"""Persistence boundary: reading AST documents and writing context snapshots.

These are the only I/O points of a context request. Everything between
them (indexing, resolution, closure, assembly) is pure and in-memory.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import DocumentNotFoundError, DocumentParseError, SnapshotError
from .models import ContextResult

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "ast-context-"
SNAPSHOT_SUFFIX = ".json"


def load_document(path: Optional[Path]) -> Dict[str, Any]:
    """Read and parse the AST JSON document.

    Raises:
        DocumentNotFoundError: *path* is unset or missing.
        DocumentParseError: the file is unreadable or not valid JSON.
    """
    if path is None:
        raise DocumentNotFoundError("AST_JSON_PATH environment variable is not set")
    path = Path(path).expanduser()
    if not path.is_file():
        raise DocumentNotFoundError(f"AST file not found at path: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocumentParseError(f"Could not parse AST file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        # the indexer copes with any shape; wrap so metadata lookups work
        return {"modules": payload if isinstance(payload, list) else []}
    return payload


class SnapshotStore:
    """Timestamped JSON snapshots of context results in one directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def write(self, result: ContextResult) -> Path:
        """Persist *result* under a fresh name and return its path.

        Existing snapshots are never overwritten.

        Raises:
            SnapshotError: the directory or file could not be written.
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self._fresh_path()
            text = json.dumps(result.to_dict(include_saved_to=False), indent=2, default=str)
            with open(path, "x", encoding="utf-8") as f:
                f.write(text)
        except OSError as exc:
            raise SnapshotError(f"Failed to write snapshot to {self.output_dir}: {exc}") from exc
        logger.info("Context saved to %s", path)
        return path

    def list_snapshots(self) -> List[Path]:
        """Snapshots, newest first."""
        if not self.output_dir.is_dir():
            return []
        found = [
            p for p in self.output_dir.iterdir()
            if p.is_file() and p.name.startswith(SNAPSHOT_PREFIX) and p.name.endswith(SNAPSHOT_SUFFIX)
        ]
        return sorted(found, key=lambda p: p.name, reverse=True)

    def latest(self) -> Optional[Path]:
        snapshots = self.list_snapshots()
        return snapshots[0] if snapshots else None

    def read(self, name: str) -> Dict[str, Any]:
        """Load a snapshot by file name (or path relative to the store)."""
        path = self.output_dir / name
        if not path.is_file():
            raise FileNotFoundError(f"Snapshot '{name}' not found in {self.output_dir}")
        return json.loads(path.read_text(encoding="utf-8"))

    def _fresh_path(self) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        path = self.output_dir / f"{SNAPSHOT_PREFIX}{stamp}{SNAPSHOT_SUFFIX}"
        counter = 1
        while path.exists():
            path = self.output_dir / f"{SNAPSHOT_PREFIX}{stamp}-{counter}{SNAPSHOT_SUFFIX}"
            counter += 1
        return path
