"""Tree store — the root directory plus path-level lookups.

``FileTree`` owns the root and answers "which node lives at this path?"
by walking from the root one segment at a time.  Mutation primitives
(insert, remove, deep copy) live on the node model; the tree adds the
path resolution the coordinator needs to find *where* to apply them.

Resolution comes in two flavours:

- ``must_exist=True`` (every foreground operation) — a missing
  directory along the way is a ``NotFoundError``.
- ``must_exist=False`` (journal replay only) — a missing directory is
  created on the spot so a replayed operation can land.

A segment that names a *file* is never treated as a directory, in
either mode.
"""

from __future__ import annotations

from typing import Any

from py_jfs.errors import NotFoundError
from py_jfs.fs.nodes import Directory, Node, node_from_dict
from py_jfs.fs.paths import ROOT_PATH, is_root, segments, split_path


class FileTree:
    """An in-memory directory hierarchy rooted at ``/``."""

    def __init__(self, root: Directory | None = None) -> None:
        """Create a tree, empty unless an existing *root* is supplied."""
        self._root: Directory = root or Directory(name=ROOT_PATH)

    @property
    def root(self) -> Directory:
        """Return the root directory."""
        return self._root

    def resolve_dir(self, path: str, *, must_exist: bool = True) -> Directory:
        """Walk *path* from the root and return the directory it names.

        Args:
            path: Absolute directory path.
            must_exist: When False, missing directories are created.

        Raises:
            NotFoundError: If a segment is missing (and *must_exist*) or
                names a file.

        """
        current = self._root
        for part in segments(path):
            child = current.children.get(part)
            match child:
                case Directory():
                    current = child
                case None if not must_exist:
                    created = Directory(name=part)
                    current.insert(created)
                    current = created
                case _:
                    msg = f"Directory not found: {path}"
                    raise NotFoundError(msg)
        return current

    def parent_of(self, path: str, *, must_exist: bool = True) -> tuple[Directory, str]:
        """Return the directory that holds *path*'s last segment, and that name.

        For the root this is ``(root, "/")``, mirroring ``split_path``.
        """
        parts = split_path(path)
        return self.resolve_dir(parts.parent, must_exist=must_exist), parts.base

    def lookup(self, path: str) -> Node | None:
        """Return the node at *path*, or ``None`` if anything is missing."""
        if is_root(path):
            return self._root
        try:
            parent, name = self.parent_of(path)
        except NotFoundError:
            return None
        return parent.get(name)

    def exists(self, path: str) -> bool:
        """Check whether *path* names any node."""
        return self.lookup(path) is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the whole tree to a dictionary."""
        return self._root.to_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileTree:
        """Rebuild a tree from ``to_dict()`` output.

        Raises:
            ValueError: If the serialized root is not a directory.

        """
        root = node_from_dict(data)
        if not isinstance(root, Directory):
            msg = "Serialized root is not a directory"
            raise ValueError(msg)  # noqa: TRY004
        root.name = ROOT_PATH
        return cls(root)
