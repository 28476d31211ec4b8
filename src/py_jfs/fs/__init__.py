"""File system subsystem — node tree, journal, snapshots, and the coordinator.

Re-exports public symbols so callers can write::

    from py_jfs.fs import JournaledFileSystem, FileTree
"""

from py_jfs.fs.coordinator import JournaledFileSystem
from py_jfs.fs.journal import Journal, JournalEntry, JournalOp, Phase
from py_jfs.fs.nodes import Directory, EntryInfo, File, FileType, Node, deep_copy
from py_jfs.fs.paths import ROOT_PATH, PathParts, normalize_path, split_path
from py_jfs.fs.persistence import SnapshotStore, dump_tree, load_tree
from py_jfs.fs.tree import FileTree

__all__ = [
    "ROOT_PATH",
    "Directory",
    "EntryInfo",
    "File",
    "FileTree",
    "FileType",
    "Journal",
    "JournalEntry",
    "JournalOp",
    "JournaledFileSystem",
    "Node",
    "PathParts",
    "Phase",
    "SnapshotStore",
    "deep_copy",
    "dump_tree",
    "load_tree",
    "normalize_path",
    "split_path",
]
