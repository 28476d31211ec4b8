"""Journaled file system — every mutation wrapped in START → apply → COMMIT.

``JournaledFileSystem`` is the one object the shell talks to.  It owns
the tree, the journal, the snapshot store, and the id sequence, and it
runs recovery before accepting any command.

The commit protocol for a mutating operation:

    1. Allocate the next id.
    2. Append a START record (operation, parameters, timestamp).
    3. Apply the change to the in-memory tree.
    4. Append a COMMIT record with the same id, then save a snapshot.

If step 3 raises, the error reaches the caller unchanged and the START
stays in the log without a COMMIT.  Nothing is rolled back.

Recovery (run once by ``boot``) replays each pending START with the
*tolerant* variant of the same operation: missing parent directories
are created, and "already done" conditions (the name exists, the file
is gone) are silently skipped.  Whatever happens, the entry is then
closed with a COMMIT so it is never replayed again.

Foreground and replay share one dispatcher, ``_apply``, selected by the
``JournalOp`` recorded in the journal.
"""

from __future__ import annotations

import threading
from itertools import count
from typing import TYPE_CHECKING

from py_jfs.errors import (
    ArgumentError,
    FsError,
    InvalidMoveError,
    NameCollisionError,
    NotEmptyError,
    NotFoundError,
    PersistenceError,
    RootImmutableError,
)
from py_jfs.fs.journal import Journal, JournalEntry, JournalOp
from py_jfs.fs.nodes import Directory, EntryInfo, File, FileType, deep_copy, describe
from py_jfs.fs.paths import SEPARATOR, is_root, split_path
from py_jfs.fs.persistence import SnapshotStore
from py_jfs.fs.tree import FileTree
from py_jfs.logging import Logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from py_jfs.config import FsConfig

_SOURCE = "fs"
_RECOVERY = "recovery"


def _param(params: Mapping[str, str], key: str) -> str:
    """Return a required operation parameter."""
    try:
        return params[key]
    except KeyError:
        msg = f"Missing parameter: {key}"
        raise ArgumentError(msg) from None


def _is_within(path: str, ancestor: str) -> bool:
    """Return True if *path* is *ancestor* or lies beneath it."""
    return path == ancestor or path.startswith(ancestor + SEPARATOR)


class JournaledFileSystem:
    """The operation coordinator for a journaled, snapshotted tree.

    Build one with ``boot()`` at startup and call ``shutdown()`` at the
    end; in between, every mutating method is journaled and every
    read-only method goes straight to the tree.
    """

    def __init__(
        self,
        *,
        journal: Journal,
        snapshots: SnapshotStore,
        tree: FileTree | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Assemble a file system from already-opened parts.

        The id sequence is seeded from the largest id in *journal*, so
        new ids never collide with ones from earlier runs.  No recovery
        is performed here; see ``boot``.
        """
        self._journal = journal
        self._snapshots = snapshots
        self._tree = tree or FileTree()
        self._logger = logger or Logger()
        self._lock = threading.RLock()
        self._sequence = count(journal.max_id() + 1)
        self._running = True

    @classmethod
    def boot(cls, config: FsConfig, *, logger: Logger | None = None) -> JournaledFileSystem:
        """Load the snapshot, open the journal, and recover pending work.

        Args:
            config: Where the snapshot and journal live.
            logger: Optional shared logger; a fresh one is created if not
                provided.

        Returns:
            A running file system, ready for commands.

        Raises:
            PersistenceError: If the journal cannot be opened.

        """
        logger = logger or Logger()
        snapshots = SnapshotStore(config.snapshot_path, logger=logger)
        tree = snapshots.load()
        if tree is None:
            logger.info("New file system created", source=_SOURCE)
        else:
            logger.info(f"State loaded from {config.snapshot_path}", source=_SOURCE)
        journal = Journal(config.journal_path, logger=logger)
        jfs = cls(journal=journal, snapshots=snapshots, tree=tree, logger=logger)
        jfs.recover()
        return jfs

    def shutdown(self) -> None:
        """Save a final snapshot and stop.

        A failed save is logged, not raised: shutdown always completes.
        """
        with self._lock:
            if not self._running:
                return
            try:
                self._snapshots.save(self._tree)
            except PersistenceError as e:
                self._logger.error(f"Failed to save state on shutdown: {e}", source=_SOURCE)
            self._running = False
            self._logger.info("File system shut down", source=_SOURCE)

    @property
    def running(self) -> bool:
        """Return True until ``shutdown()`` has been called."""
        return self._running

    @property
    def tree(self) -> FileTree:
        """Return the in-memory tree (for inspection/testing)."""
        return self._tree

    @property
    def journal(self) -> Journal:
        """Return the underlying journal (for inspection/testing)."""
        return self._journal

    @property
    def logger(self) -> Logger:
        """Return the event log shared by every subsystem."""
        return self._logger

    # -- Read-only operations -----------------------------------------------

    def read(self, path: str) -> str:
        """Return the content of the file at *path*.

        Raises:
            NotFoundError: If there is no file at *path*.

        """
        with self._lock:
            node = self._tree.lookup(path)
            if not isinstance(node, File):
                msg = f"File not found: {path}"
                raise NotFoundError(msg)
            return node.content

    def list_dir(self, path: str) -> list[EntryInfo]:
        """Return the direct children of the directory at *path*.

        Raises:
            NotFoundError: If there is no directory at *path*.

        """
        with self._lock:
            directory = self._tree.resolve_dir(path)
            return [describe(child) for child in directory.children.values()]

    def exists(self, path: str) -> bool:
        """Check whether *path* names a file or directory."""
        with self._lock:
            return self._tree.exists(path)

    # -- Journaled operations -----------------------------------------------

    def create_directory(self, path: str) -> None:
        """Create an empty directory; the parent must already exist.

        Raises:
            NotFoundError: If the parent directory does not exist.
            NameCollisionError: If the name is already taken.

        """
        self._journaled(JournalOp.MKDIR, {"path": path})

    def remove_directory(self, path: str) -> None:
        """Remove an empty directory.

        Raises:
            RootImmutableError: If *path* is the root.
            NotFoundError: If there is no directory at *path*.
            NotEmptyError: If the directory has any children.

        """
        self._journaled(JournalOp.RMDIR, {"path": path})

    def create_file(self, path: str) -> None:
        """Create an empty file; the parent must already exist.

        Raises:
            NotFoundError: If the parent directory does not exist.
            NameCollisionError: If the name is already taken.

        """
        self._journaled(JournalOp.TOUCH, {"path": path})

    def delete_file(self, path: str) -> None:
        """Delete the file at *path*.

        Raises:
            NotFoundError: If there is no file at *path*.

        """
        self._journaled(JournalOp.RM, {"path": path})

    def write(self, path: str, content: str) -> None:
        """Replace a file's content, creating the file if needed.

        Raises:
            NotFoundError: If the parent directory does not exist.
            NameCollisionError: If *path* is a directory.

        """
        self._journaled(JournalOp.WRITE, {"path": path, "content": content})

    def copy(self, src: str, dest: str) -> None:
        """Deep-copy *src* to *dest*.

        If *dest* is an existing directory the copy goes inside it under
        the source's own name; otherwise *dest* is the new path.

        Raises:
            RootImmutableError: If *src* is the root.
            NotFoundError: If *src* or *dest*'s parent does not exist.
            NameCollisionError: If the target name is already taken.

        """
        self._journaled(JournalOp.CP, {"src": src, "dest": dest})

    def rename(self, src: str, dest: str) -> None:
        """Move (and possibly rename) *src* to the path *dest*.

        The node itself is moved, so its content and children survive
        unchanged.

        Raises:
            RootImmutableError: If *src* is the root.
            NotFoundError: If *src* or *dest*'s parent does not exist.
            NameCollisionError: If *dest* already exists.
            InvalidMoveError: If *dest* lies inside *src*.

        """
        self._journaled(JournalOp.MV, {"src": src, "dest": dest})

    # -- Journal control ----------------------------------------------------

    def journal_lines(self) -> list[str]:
        """Return the raw journal lines in append order."""
        return self._journal.lines()

    def journal_status(self) -> dict[str, int]:
        """Return journal record counts (total/started/committed/pending)."""
        return self._journal.status()

    def clear_journal(self) -> None:
        """Truncate the journal to empty."""
        with self._lock:
            self._journal.clear()

    def persist(self) -> None:
        """Force a snapshot save outside the commit protocol.

        Raises:
            PersistenceError: If the write fails.

        """
        with self._lock:
            self._snapshots.save(self._tree)
            self._logger.info("State persisted", source=_SOURCE)

    # -- Recovery -----------------------------------------------------------

    def recover(self) -> int:
        """Replay every pending START, close it with a COMMIT, and save.

        Replay failures are logged and skipped; recovery always runs to
        the end.

        Returns:
            The number of pending entries processed.

        """
        with self._lock:
            try:
                pending = self._journal.uncommitted_starts()
            except PersistenceError as e:
                self._logger.error(f"Cannot read journal for recovery: {e}", source=_RECOVERY)
                return 0
            if not pending:
                self._logger.info("Journal clean: no pending operations", source=_RECOVERY)
                return 0

            self._logger.info(f"Recovering {len(pending)} pending operation(s)", source=_RECOVERY)
            for entry in pending:
                self._replay(entry)
            try:
                self._snapshots.save(self._tree)
            except PersistenceError as e:
                self._logger.error(f"Failed to persist after recovery: {e}", source=_RECOVERY)
            self._logger.info("Recovery complete", source=_RECOVERY)
            return len(pending)

    def _replay(self, entry: JournalEntry) -> None:
        """Best-effort re-apply one pending entry, then mark it committed."""
        self._logger.info(
            f"Replaying id={entry.entry_id} op={entry.op} params={entry.params}",
            source=_RECOVERY,
        )
        try:
            self._apply(entry.operation, entry.params, tolerant=True)
        except FsError as e:
            self._logger.warning(f"Replay of id={entry.entry_id} failed: {e}", source=_RECOVERY)
        try:
            self._journal.append(entry.committed())
        except PersistenceError as e:
            self._logger.error(f"Cannot commit id={entry.entry_id}: {e}", source=_RECOVERY)

    # -- Protocol and dispatch ----------------------------------------------

    def _journaled(self, op: JournalOp, params: dict[str, str]) -> None:
        """Run one mutation under the START → apply → COMMIT → save protocol."""
        with self._lock:
            start = JournalEntry(entry_id=next(self._sequence), op=op.value, params=params)
            self._journal.append(start)
            try:
                self._apply(op, params, tolerant=False)
            except FsError as e:
                self._logger.debug(f"id={start.entry_id} {op} failed: {e}", source=_SOURCE)
                raise
            self._journal.append(start.committed())
            self._logger.debug(f"id={start.entry_id} {op} committed", source=_SOURCE)
            self._snapshots.save(self._tree)

    def _apply(self, op: JournalOp, params: Mapping[str, str], *, tolerant: bool) -> None:
        """Apply one operation to the tree.

        With ``tolerant=False`` every precondition is checked before the
        tree is touched and a failure raises.  With ``tolerant=True``
        (replay) missing parents are created and a failed precondition
        means "nothing to do".
        """
        match op:
            case JournalOp.MKDIR:
                self._make_node(Directory(name=""), _param(params, "path"), tolerant=tolerant)
            case JournalOp.TOUCH:
                self._make_node(File(name=""), _param(params, "path"), tolerant=tolerant)
            case JournalOp.RMDIR:
                self._remove_directory(_param(params, "path"), tolerant=tolerant)
            case JournalOp.RM:
                self._delete_file(_param(params, "path"), tolerant=tolerant)
            case JournalOp.WRITE:
                self._write(
                    _param(params, "path"),
                    params.get("content", ""),
                    tolerant=tolerant,
                )
            case JournalOp.CP:
                self._copy(_param(params, "src"), _param(params, "dest"), tolerant=tolerant)
            case JournalOp.MV:
                self._move(_param(params, "src"), _param(params, "dest"), tolerant=tolerant)

    def _reject(self, error: FsError, tolerant: bool) -> None:
        """Raise *error* in the foreground; during replay just note it."""
        if not tolerant:
            raise error
        self._logger.debug(f"Nothing to replay: {error}", source=_RECOVERY)

    def _make_node(self, node: File | Directory, path: str, *, tolerant: bool) -> None:
        if is_root(path):
            self._reject(NameCollisionError("Name already exists: /"), tolerant)
            return
        parent, name = self._tree.parent_of(path, must_exist=not tolerant)
        if name in parent:
            self._reject(NameCollisionError(f"Name already exists: {name}"), tolerant)
            return
        node.name = name
        parent.insert(node)

    def _remove_directory(self, path: str, *, tolerant: bool) -> None:
        if is_root(path):
            self._reject(RootImmutableError("Cannot remove root directory"), tolerant)
            return
        parent, name = self._tree.parent_of(path)
        directory = parent.get(name, FileType.DIRECTORY)
        if directory is None:
            self._reject(NotFoundError(f"Directory not found: {path}"), tolerant)
            return
        if not directory.is_empty():
            self._reject(NotEmptyError(f"Directory not empty: {path}"), tolerant)
            return
        parent.remove(name)

    def _delete_file(self, path: str, *, tolerant: bool) -> None:
        parent, name = self._tree.parent_of(path)
        if parent.get(name, FileType.FILE) is None:
            self._reject(NotFoundError(f"File not found: {path}"), tolerant)
            return
        parent.remove(name)

    def _write(self, path: str, content: str, *, tolerant: bool) -> None:
        if is_root(path):
            self._reject(NameCollisionError("Is a directory: /"), tolerant)
            return
        parent, name = self._tree.parent_of(path, must_exist=not tolerant)
        match parent.get(name):
            case File() as existing:
                existing.content = content
            case Directory():
                self._reject(NameCollisionError(f"Is a directory: {path}"), tolerant)
            case None:
                parent.insert(File(name=name, content=content))

    def _copy(self, src: str, dest: str, *, tolerant: bool) -> None:
        if is_root(src):
            self._reject(RootImmutableError("Cannot copy root directory"), tolerant)
            return
        source = self._tree.lookup(src)
        if source is None:
            self._reject(NotFoundError(f"Source not found: {src}"), tolerant)
            return

        target = self._tree.lookup(dest)
        if isinstance(target, Directory):
            if source.name in target:
                self._reject(
                    NameCollisionError(f"Destination already contains: {source.name}"),
                    tolerant,
                )
                return
            target.insert(deep_copy(source))
            return

        parent, name = self._tree.parent_of(dest, must_exist=not tolerant)
        if name in parent:
            self._reject(NameCollisionError(f"Destination already exists: {dest}"), tolerant)
            return
        duplicate = deep_copy(source)
        duplicate.name = name
        parent.insert(duplicate)

    def _move(self, src: str, dest: str, *, tolerant: bool) -> None:
        if is_root(src):
            self._reject(RootImmutableError("Cannot rename root directory"), tolerant)
            return
        source = self._tree.lookup(src)
        if source is None:
            self._reject(NotFoundError(f"Source not found: {src}"), tolerant)
            return
        if is_root(dest):
            self._reject(NameCollisionError("Destination already exists: /"), tolerant)
            return
        if isinstance(source, Directory) and _is_within(split_path(dest).parent, src):
            self._reject(InvalidMoveError(f"Cannot move {src} beneath itself"), tolerant)
            return

        dest_parent, dest_name = self._tree.parent_of(dest, must_exist=not tolerant)
        if dest_name in dest_parent:
            self._reject(NameCollisionError(f"Destination already exists: {dest}"), tolerant)
            return

        src_parent, _ = self._tree.parent_of(src)
        src_parent.remove(source.name)
        source.name = dest_name
        dest_parent.insert(source)
