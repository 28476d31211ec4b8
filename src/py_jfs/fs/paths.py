"""Path strings — splitting, segments, and normalisation.

Every path that reaches the file system core is absolute: it starts
with ``/`` and has no trailing ``/`` unless it *is* the root.  The shell
calls ``normalize_path`` on user input to guarantee that shape.

Examples::

    split_path("/docs/a.txt") → PathParts("/docs", "a.txt")
    split_path("/docs")       → PathParts("/", "docs")
    split_path("/")           → PathParts("/", "/")   # root sentinel
"""

from dataclasses import dataclass

SEPARATOR = "/"
ROOT_PATH = SEPARATOR


@dataclass(frozen=True)
class PathParts:
    """An absolute path split into its parent directory and base name."""

    parent: str
    base: str


def is_root(path: str) -> bool:
    """Return True if *path* names the root directory."""
    return path == ROOT_PATH


def split_path(path: str) -> PathParts:
    """Split an absolute path into (parent_path, base_name).

    The root resolves to ``("/", "/")`` as a sentinel pair.
    """
    if is_root(path):
        return PathParts(ROOT_PATH, ROOT_PATH)
    last = path.rfind(SEPARATOR)
    parent = path[:last] if last > 0 else ROOT_PATH
    return PathParts(parent, path[last + 1 :])


def segments(path: str) -> list[str]:
    """Return the non-empty components of *path*, root first."""
    return [part for part in path.split(SEPARATOR) if part]


def join(parent: str, name: str) -> str:
    """Append *name* to the directory path *parent*."""
    return f"{parent.rstrip(SEPARATOR)}{SEPARATOR}{name}"


def normalize_path(raw: str) -> str:
    """Coerce user input into the absolute shape the core expects.

    An empty string becomes the root, a missing leading ``/`` is added,
    and trailing separators are stripped (except for the root itself).
    """
    path = raw.strip()
    if not path.startswith(SEPARATOR):
        path = SEPARATOR + path
    return path.rstrip(SEPARATOR) or ROOT_PATH
