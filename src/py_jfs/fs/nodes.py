"""Node model — files and directories as a closed union.

A node is either a ``File`` (text content) or a ``Directory`` (a keyed
collection of child nodes).  There is no shared base class: code that
needs to treat them differently uses ``match`` on the two variants.

Ownership is strict — a directory exclusively owns its children, and a
node is reachable from exactly one parent.  ``deep_copy`` therefore
never shares a node between the original and the copy.

The name lives on the node *and* as the key in the parent's
``children`` dict; ``Directory.insert`` and ``Directory.remove`` keep the
two in step, so callers must rename a node only while it is detached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from time import time
from typing import Any, TypeAlias

from py_jfs.errors import NameCollisionError, NotFoundError


class FileType(StrEnum):
    """The kind of object a node represents."""

    FILE = "file"
    DIRECTORY = "directory"


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time() * 1000)


@dataclass
class File:
    """A named block of text."""

    name: str
    content: str = ""
    created_at: int = field(default_factory=now_ms)

    @property
    def file_type(self) -> FileType:
        """Return ``FileType.FILE``."""
        return FileType.FILE

    @property
    def size(self) -> int:
        """Return the size of the content in UTF-8 bytes."""
        return len(self.content.encode())

    def to_dict(self) -> dict[str, Any]:
        """Serialize this file to a dictionary."""
        return {
            "type": FileType.FILE.value,
            "name": self.name,
            "created_at": self.created_at,
            "content": self.content,
        }


@dataclass
class Directory:
    """A named collection of uniquely named children."""

    name: str
    created_at: int = field(default_factory=now_ms)
    children: dict[str, Node] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]

    @property
    def file_type(self) -> FileType:
        """Return ``FileType.DIRECTORY``."""
        return FileType.DIRECTORY

    def __contains__(self, name: object) -> bool:
        """Return True if a child of either kind uses *name*."""
        return name in self.children

    def is_empty(self) -> bool:
        """Return True if the directory has no children."""
        return not self.children

    def get(self, name: str, kind: FileType | None = None) -> Node | None:
        """Look up a child by name, optionally restricted to one kind.

        Args:
            name: The child's name.
            kind: If set, a child of the other kind counts as absent.

        Returns:
            The child node, or ``None``.

        """
        child = self.children.get(name)
        if child is None or (kind is not None and child.file_type is not kind):
            return None
        return child

    def insert(self, node: Node) -> None:
        """Attach *node* as a child under its own name.

        Raises:
            NameCollisionError: If any child already uses that name.

        """
        if node.name in self.children:
            msg = f"Name already exists: {node.name}"
            raise NameCollisionError(msg)
        self.children[node.name] = node

    def remove(self, name: str) -> Node:
        """Detach and return the child called *name*.

        Raises:
            NotFoundError: If there is no such child.

        """
        try:
            return self.children.pop(name)
        except KeyError:
            msg = f"No such entry: {name}"
            raise NotFoundError(msg) from None

    def to_dict(self) -> dict[str, Any]:
        """Serialize this directory and its whole subtree."""
        return {
            "type": FileType.DIRECTORY.value,
            "name": self.name,
            "created_at": self.created_at,
            "children": [child.to_dict() for child in self.children.values()],
        }


Node: TypeAlias = File | Directory


@dataclass(frozen=True)
class EntryInfo:
    """Read-only summary of one directory entry (returned by list_dir)."""

    name: str
    file_type: FileType
    size: int = 0


def describe(node: Node) -> EntryInfo:
    """Return the listing summary for *node*."""
    match node:
        case File():
            return EntryInfo(name=node.name, file_type=FileType.FILE, size=node.size)
        case Directory():
            return EntryInfo(name=node.name, file_type=FileType.DIRECTORY)


def deep_copy(node: Node) -> Node:
    """Duplicate *node* and everything beneath it.

    The copy keeps names and timestamps but shares no node with the
    source, so mutating one side never shows through on the other.
    """
    match node:
        case File():
            return File(name=node.name, content=node.content, created_at=node.created_at)
        case Directory():
            copy = Directory(name=node.name, created_at=node.created_at)
            for child in node.children.values():
                copy.insert(deep_copy(child))
            return copy


def node_from_dict(data: dict[str, Any]) -> Node:
    """Rebuild a node (and its subtree) from ``to_dict()`` output.

    Raises:
        ValueError: If the ``type`` field names an unknown kind.

    """
    match FileType(data["type"]):
        case FileType.FILE:
            return File(
                name=data["name"],
                content=data.get("content", ""),
                created_at=data.get("created_at", 0),
            )
        case FileType.DIRECTORY:
            directory = Directory(name=data["name"], created_at=data.get("created_at", 0))
            for child_data in data.get("children", []):
                directory.insert(node_from_dict(child_data))
            return directory
