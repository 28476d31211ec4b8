"""Error kinds raised by the journaled file system.

Every failure the core can report is a subclass of ``FsError``.  Each
subclass carries an ``ErrorKind`` tag so callers (the shell, tests) can
branch on *what* went wrong without string matching.

The journaling wrapper never re-wraps these: whatever the mutation
raised is exactly what the caller sees.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Represent the category of a file system failure."""

    NOT_FOUND = "not_found"
    NAME_COLLISION = "name_collision"
    NOT_EMPTY = "not_empty"
    ROOT_IMMUTABLE = "root_immutable"
    INVALID_MOVE = "invalid_move"
    UNKNOWN_OPERATION = "unknown_operation"
    PERSISTENCE_FAILURE = "persistence_failure"
    ARGUMENT_ERROR = "argument_error"


class FsError(Exception):
    """Base class for every file system failure."""

    kind: ErrorKind


class NotFoundError(FsError):
    """Raise when a path, its parent, or a node of the expected kind is absent."""

    kind = ErrorKind.NOT_FOUND


class NameCollisionError(FsError):
    """Raise when the target name is already taken in its directory."""

    kind = ErrorKind.NAME_COLLISION


class NotEmptyError(FsError):
    """Raise when removing a directory that still has children."""

    kind = ErrorKind.NOT_EMPTY


class RootImmutableError(FsError):
    """Raise on any attempt to remove, rename, or duplicate the root."""

    kind = ErrorKind.ROOT_IMMUTABLE


class InvalidMoveError(FsError):
    """Raise when a directory would be moved beneath itself."""

    kind = ErrorKind.INVALID_MOVE


class UnknownOperationError(FsError):
    """Raise when a journal entry names an operation we cannot replay."""

    kind = ErrorKind.UNKNOWN_OPERATION


class PersistenceError(FsError):
    """Raise when the journal or snapshot cannot be read or written."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class ArgumentError(FsError):
    """Raise when a shell command is missing required arguments."""

    kind = ErrorKind.ARGUMENT_ERROR
