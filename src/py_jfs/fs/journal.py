"""Filesystem journaling — the on-disk write-ahead log.

Before changing the tree, we log *what we're about to do*.  If the
process stops mid-operation, the log tells recovery which operations
may not have finished.

Key concepts:

- **Write-ahead logging (WAL)** — log the operation *before* applying it.
- **START / COMMIT** — every operation writes two records sharing one
  id.  A START with no matching COMMIT is *pending*.
- **Append-only** — records are never edited or reordered; the only
  way to shrink the log is an explicit ``clear()``.

On disk the journal is JSON Lines: one object per line, in append
order::

    {"id":1,"op":"MKDIR","ts":1700000000000,"status":"START","params":{"path":"/docs"}}
    {"id":1,"op":"MKDIR","ts":1700000000001,"status":"COMMIT","params":{"path":"/docs"}}

JSON escaping keeps backslashes, quotes, and newlines inside parameter
values from breaking the one-record-per-line framing.
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from py_jfs.errors import PersistenceError, UnknownOperationError
from py_jfs.fs.nodes import now_ms

if TYPE_CHECKING:
    from pathlib import Path

    from py_jfs.logging import Logger

_SOURCE = "journal"


class JournalOp(StrEnum):
    """Represent the type of tree mutation being logged."""

    MKDIR = "MKDIR"
    RMDIR = "RMDIR"
    TOUCH = "TOUCH"
    RM = "RM"
    WRITE = "WRITE"
    CP = "CP"
    MV = "MV"


class Phase(StrEnum):
    """Represent which half of the START/COMMIT pair a record is."""

    START = "START"
    COMMIT = "COMMIT"


@dataclass(frozen=True)
class JournalEntry:
    """A single logged record.

    ``op`` is kept as the raw string read from disk so that a log
    written by another version (with operations we don't know) can
    still be scanned; ``operation`` converts it when we need to act.
    """

    entry_id: int
    op: str
    params: dict[str, str] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    timestamp: int = field(default_factory=now_ms)
    phase: Phase = Phase.START

    @property
    def operation(self) -> JournalOp:
        """Return ``op`` as a ``JournalOp``.

        Raises:
            UnknownOperationError: If ``op`` is not a known operation.

        """
        try:
            return JournalOp(self.op)
        except ValueError:
            msg = f"Unknown journal operation: {self.op}"
            raise UnknownOperationError(msg) from None

    def committed(self, timestamp: int | None = None) -> JournalEntry:
        """Return the COMMIT record that closes this entry."""
        return JournalEntry(
            entry_id=self.entry_id,
            op=self.op,
            params=dict(self.params),
            timestamp=now_ms() if timestamp is None else timestamp,
            phase=Phase.COMMIT,
        )

    def to_line(self) -> str:
        """Encode this entry as one line of JSON (no trailing newline)."""
        return json.dumps(
            {
                "id": self.entry_id,
                "op": self.op,
                "ts": self.timestamp,
                "status": self.phase.value,
                "params": self.params,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def from_line(cls, line: str) -> JournalEntry:
        """Decode one line written by ``to_line()``.

        Raises:
            ValueError: If the line is not a well-formed record.

        """
        data: Any = json.loads(line)
        if not isinstance(data, dict):
            msg = "Journal record is not an object"
            raise ValueError(msg)  # noqa: TRY004
        try:
            params = data.get("params") or {}
            return cls(
                entry_id=int(data["id"]),
                op=str(data["op"]),
                params={str(k): str(v) for k, v in params.items()},
                timestamp=int(data.get("ts", 0)),
                phase=Phase(data["status"]),
            )
        except (KeyError, TypeError, AttributeError) as e:
            msg = f"Malformed journal record: {e}"
            raise ValueError(msg) from e


class Journal:
    """The write-ahead log file.

    Every public method takes the journal's own lock, so an append never
    interleaves with a scan even if callers share the journal across
    threads.
    """

    def __init__(self, path: Path, *, logger: Logger | None = None) -> None:
        """Open (creating if needed) the journal file at *path*.

        Raises:
            PersistenceError: If the file cannot be created.

        """
        self._path = path
        self._logger = logger
        self._lock = threading.Lock()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except OSError as e:
            msg = f"Cannot open journal {path}: {e}"
            raise PersistenceError(msg) from e

    @property
    def path(self) -> Path:
        """Return the journal file path."""
        return self._path

    def append(self, entry: JournalEntry) -> None:
        """Append *entry* as a new line and flush it to disk.

        Raises:
            PersistenceError: If the write fails.

        """
        with self._lock:
            try:
                record = (entry.to_line() + "\n").encode()
                if self._torn_tail():
                    record = b"\n" + record
                with self._path.open("ab") as f:
                    f.write(record)
                    f.flush()
                    os.fsync(f.fileno())
            except (OSError, UnicodeError) as e:
                msg = f"Failed to write journal: {e}"
                raise PersistenceError(msg) from e

    def lines(self) -> list[str]:
        """Return the raw, non-blank lines of the log in append order.

        Bytes that are not valid UTF-8 (a torn append) show up as U+FFFD.
        """
        with self._lock:
            return [raw.decode(errors="replace") for raw in self._read_lines()]

    def entries(self) -> list[JournalEntry]:
        """Return every well-formed entry in append order.

        Malformed lines are skipped (and logged) rather than failing the
        whole scan.
        """
        with self._lock:
            return self._scan()

    def uncommitted_starts(self) -> list[JournalEntry]:
        """Return every START whose id never appears as a COMMIT.

        The result is in the order the ids were first written.
        """
        with self._lock:
            starts: dict[int, JournalEntry] = {}
            commits: set[int] = set()
            for entry in self._scan():
                match entry.phase:
                    case Phase.START:
                        starts[entry.entry_id] = entry
                    case Phase.COMMIT:
                        commits.add(entry.entry_id)
            return [entry for entry_id, entry in starts.items() if entry_id not in commits]

    def max_id(self) -> int:
        """Return the largest id in the log, or 0 for an empty log."""
        with self._lock:
            return max((entry.entry_id for entry in self._scan()), default=0)

    def status(self) -> dict[str, int]:
        """Return a summary of record counts.

        Returns:
            Dict with total, started, committed, and pending counts.

        """
        with self._lock:
            entries = self._scan()
        started = {e.entry_id for e in entries if e.phase is Phase.START}
        committed = {e.entry_id for e in entries if e.phase is Phase.COMMIT}
        return {
            "total": len(entries),
            "started": len(started),
            "committed": len(committed),
            "pending": len(started - committed),
        }

    def clear(self) -> None:
        """Truncate the log to empty.

        Raises:
            PersistenceError: If the file cannot be truncated.

        """
        with self._lock:
            try:
                self._path.write_text("", encoding="utf-8")
            except OSError as e:
                msg = f"Failed to clear journal: {e}"
                raise PersistenceError(msg) from e
        if self._logger is not None:
            self._logger.warning("Journal cleared", source=_SOURCE)

    # -- internals (caller holds the lock) ---------------------------------

    def _read_lines(self) -> list[bytes]:
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            msg = f"Failed to read journal: {e}"
            raise PersistenceError(msg) from e
        # Split bytes, not text: a torn multi-byte character only spoils its own line,
        # and U+2028 inside a record is not a line break.
        return [line for line in data.split(b"\n") if line.strip()]

    def _torn_tail(self) -> bool:
        """Return True if the file ends part-way through a record."""
        try:
            with self._path.open("rb") as f:
                if f.seek(0, os.SEEK_END) == 0:
                    return False
                f.seek(-1, os.SEEK_END)
                return f.read(1) != b"\n"
        except FileNotFoundError:
            return False

    def _scan(self) -> list[JournalEntry]:
        result: list[JournalEntry] = []
        for lineno, line in enumerate(self._read_lines(), start=1):
            try:
                result.append(JournalEntry.from_line(line.decode()))
            except ValueError as e:
                if self._logger is not None:
                    self._logger.warning(f"Skipping line {lineno}: {e}", source=_SOURCE)
        return result
