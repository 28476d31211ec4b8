"""Tests for snapshot persistence (save/load to disk).

The snapshot is the whole tree serialized to JSON.  Saving goes through
a temporary file and an atomic rename, so the canonical file is always
either the previous complete snapshot or the new one.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from py_jfs.errors import PersistenceError
from py_jfs.fs.nodes import Directory, File
from py_jfs.fs.persistence import SNAPSHOT_VERSION, SnapshotStore, dump_tree, load_tree
from py_jfs.fs.tree import FileTree
from py_jfs.logging import Logger, LogLevel


def _sample_tree() -> FileTree:
    """Build a small nested tree with text and empty files."""
    tree = FileTree()
    docs = Directory(name="docs")
    docs.insert(File(name="a.txt", content="hello"))
    docs.insert(File(name="empty.txt"))
    deep = Directory(name="deep")
    deep.insert(File(name="b.txt", content='quotes " and \\ and\nnewlines'))
    docs.insert(deep)
    tree.root.insert(docs)
    tree.root.insert(Directory(name="backup"))
    return tree


# -- Round-trip (save and reload) -----------------------------------------------


class TestRoundTrip:
    """Verify that tree state survives save/load cycles."""

    def test_empty_tree(self, tmp_path: Path) -> None:
        """An empty tree should round-trip correctly."""
        path = tmp_path / "fs.json"
        dump_tree(FileTree(), path)
        assert load_tree(path).root.is_empty()

    def test_nested_tree(self, tmp_path: Path) -> None:
        """Names, kinds, and content match at every level."""
        tree = _sample_tree()
        path = tmp_path / "fs.json"
        dump_tree(tree, path)
        assert load_tree(path).root == tree.root

    def test_unicode_content(self, tmp_path: Path) -> None:
        """Non-ASCII text survives round-trip."""
        tree = FileTree()
        tree.root.insert(File(name="ünï.txt", content="日本語 ✓"))
        path = tmp_path / "fs.json"
        dump_tree(tree, path)
        node = load_tree(path).lookup("/ünï.txt")
        assert isinstance(node, File)
        assert node.content == "日本語 ✓"

    def test_overwrite(self, tmp_path: Path) -> None:
        """Saving twice keeps only the latest tree."""
        path = tmp_path / "fs.json"
        dump_tree(_sample_tree(), path)
        dump_tree(FileTree(), path)
        assert load_tree(path).root.is_empty()


# -- Serialization format ------------------------------------------------------


class TestSerializationFormat:
    """Verify the JSON format is reasonable."""

    def test_output_is_versioned_json(self, tmp_path: Path) -> None:
        """The file is a JSON object with a version and a root."""
        path = tmp_path / "fs.json"
        dump_tree(_sample_tree(), path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == SNAPSHOT_VERSION
        assert data["root"]["name"] == "/"

    def test_no_temp_file_left_behind(self, tmp_path: Path) -> None:
        """A successful save leaves only the canonical file."""
        path = tmp_path / "fs.json"
        dump_tree(_sample_tree(), path)
        assert [p.name for p in tmp_path.iterdir()] == ["fs.json"]

    def test_wrong_version_rejected(self, tmp_path: Path) -> None:
        """load_tree refuses an unknown version."""
        path = tmp_path / "fs.json"
        path.write_text(json.dumps({"version": 99, "root": {}}), encoding="utf-8")
        with pytest.raises(ValueError, match="version"):
            load_tree(path)


# -- Atomicity -----------------------------------------------------------------


class TestAtomicSave:
    """Verify that a failed save leaves the previous snapshot intact."""

    def test_failed_replace_keeps_old_snapshot(self, tmp_path: Path) -> None:
        """If the rename fails, the canonical file is unchanged."""
        path = tmp_path / "fs.json"
        dump_tree(_sample_tree(), path)
        before = path.read_text(encoding="utf-8")

        with (
            patch("py_jfs.fs.persistence.os.replace", side_effect=OSError("disk full")),
            pytest.raises(PersistenceError, match="disk full"),
        ):
            dump_tree(FileTree(), path)

        assert path.read_text(encoding="utf-8") == before

    def test_unwritable_location_raises(self, tmp_path: Path) -> None:
        """A path that cannot be written surfaces as PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(PersistenceError):
            dump_tree(FileTree(), blocker / "fs.json")


# -- SnapshotStore -------------------------------------------------------------


class TestSnapshotStore:
    """Verify the store's save/load and its tolerance of bad files."""

    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        """No snapshot yet means None, not an error."""
        assert SnapshotStore(tmp_path / "fs.json").load() is None

    def test_save_then_load(self, tmp_path: Path) -> None:
        """A saved tree loads back equal."""
        store = SnapshotStore(tmp_path / "fs.json")
        tree = _sample_tree()
        store.save(tree)
        loaded = store.load()
        assert loaded is not None
        assert loaded.root == tree.root

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{not json",
            "[]",
            '{"version": 1}',
            '{"version": 1, "root": {"type": "file", "name": "x"}}',
            '{"version": 1, "root": {"type": "directory", "name": "/", "children": ['
            '{"type": "file", "name": "a"}, {"type": "file", "name": "a"}]}}',
        ],
    )
    def test_corrupt_snapshot_loads_as_none(self, tmp_path: Path, content: str) -> None:
        """Any decode failure is treated as "no snapshot" and logged."""
        path = tmp_path / "fs.json"
        path.write_text(content, encoding="utf-8")
        logger = Logger()
        assert SnapshotStore(path, logger=logger).load() is None
        assert logger.filter(min_level=LogLevel.WARNING, source="snapshot")

    def test_unencodable_content_raises(self, tmp_path: Path) -> None:
        """Text that cannot be stored as UTF-8 surfaces as PersistenceError."""
        tree = FileTree()
        tree.root.insert(File(name="a.txt", content="x\udcffy"))
        with pytest.raises(PersistenceError):
            dump_tree(tree, tmp_path / "fs.json")
        assert list(tmp_path.iterdir()) == []
