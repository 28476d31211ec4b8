"""Snapshot persistence — save and load the whole tree.

The snapshot is the fast-load baseline: recovery starts from it and
only replays the journal entries it does not yet reflect.  It is
written after every committed operation, after recovery, on an explicit
``persist``, and at shutdown.

A snapshot is never half-written.  ``save`` serializes to a sibling
``.tmp`` file, flushes it to disk, then ``os.replace``s it over the
canonical file, so readers see either the old snapshot or the new one.

Format (JSON)::

    {"version": 1, "root": {"type": "directory", "name": "/", ...}}
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

from py_jfs.errors import FsError, PersistenceError
from py_jfs.fs.tree import FileTree

if TYPE_CHECKING:
    from pathlib import Path

    from py_jfs.logging import Logger

SNAPSHOT_VERSION = 1

_SOURCE = "snapshot"


def dump_tree(tree: FileTree, path: Path) -> None:
    """Atomically write *tree* to *path*.

    Raises:
        PersistenceError: If any step of the write fails.  The canonical
            file is left as it was.

    """
    data = {"version": SNAPSHOT_VERSION, "root": tree.to_dict()}
    tmp = path.with_name(path.name + ".tmp")
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except (OSError, UnicodeError) as e:
        msg = f"Failed to persist file system: {e}"
        raise PersistenceError(msg) from e


def load_tree(path: Path) -> FileTree:
    """Read a tree written by ``dump_tree``.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: If the content is not a valid snapshot.

    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "root" not in data:
        msg = f"Not a snapshot: {path}"
        raise ValueError(msg)
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        msg = f"Unsupported snapshot version: {version}"
        raise ValueError(msg)
    return FileTree.from_dict(data["root"])


class SnapshotStore:
    """The canonical snapshot file for one file system."""

    def __init__(self, path: Path, *, logger: Logger | None = None) -> None:
        """Bind the store to *path* (which need not exist yet)."""
        self._path = path
        self._logger = logger

    @property
    def path(self) -> Path:
        """Return the canonical snapshot path."""
        return self._path

    def save(self, tree: FileTree) -> None:
        """Replace the canonical snapshot with *tree*.

        Raises:
            PersistenceError: If the write fails.

        """
        dump_tree(tree, self._path)
        self._log_debug(f"Snapshot written to {self._path}")

    def load(self) -> FileTree | None:
        """Return the saved tree, or ``None`` if there is no usable snapshot.

        A missing file is the normal first-run case.  A file that cannot
        be decoded is logged and treated the same way.
        """
        if not self._path.exists():
            return None
        try:
            tree = load_tree(self._path)
        except (OSError, ValueError, KeyError, TypeError, FsError) as e:
            if self._logger is not None:
                self._logger.warning(f"Failed to load snapshot: {e}", source=_SOURCE)
            return None
        self._log_debug(f"Snapshot loaded from {self._path}")
        return tree

    def _log_debug(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message, source=_SOURCE)
