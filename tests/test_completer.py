"""Tests for the tab-completion engine.

The Completer class provides context-aware completion for the file
system shell.  Its logic is pure (no I/O) — it analyses the input line
and returns candidate strings, making it fully testable without readline.
"""

from pathlib import Path
from unittest.mock import patch

from py_jfs.completer import Completer
from py_jfs.config import FsConfig
from py_jfs.fs.coordinator import JournaledFileSystem
from py_jfs.shell import Shell


def _completer(tmp_path: Path) -> tuple[Shell, Completer]:
    """Create a shell over a populated file system, plus its completer."""
    shell = Shell(fs=JournaledFileSystem.boot(FsConfig(data_dir=tmp_path)))
    shell.execute("mkdir /docs")
    shell.execute("mkdir /downloads")
    shell.execute("write /docs/notes.txt hi")
    shell.execute("touch /readme")
    return shell, Completer(shell)


class TestCommandCompletion:
    """Verify completion of command names (first word on the line)."""

    def test_empty_line_returns_all_commands(self, tmp_path: Path) -> None:
        """Pressing Tab on a blank line should list every command."""
        shell, completer = _completer(tmp_path)
        assert set(completer.completions("", "")) == set(shell.command_names)

    def test_partial_match(self, tmp_path: Path) -> None:
        """A partial prefix should return only matching commands."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("r", "r") == ["rm", "rmdir"]

    def test_no_match_returns_empty(self, tmp_path: Path) -> None:
        """An unrecognised prefix should return no candidates."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("zzz", "zzz") == []


class TestSubcommandCompletion:
    """Verify completion of journal and log subcommands."""

    def test_all_subcommands(self, tmp_path: Path) -> None:
        """'journal ' should offer every subcommand."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("", "journal ") == ["clear", "show", "status"]

    def test_partial_subcommand(self, tmp_path: Path) -> None:
        """'journal s' narrows to show and status."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("s", "journal s") == ["show", "status"]

    def test_log_subcommands(self, tmp_path: Path) -> None:
        """'log ' offers clear and the known log sources."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("", "log ") == [
            "clear",
            "fs",
            "journal",
            "recovery",
            "snapshot",
        ]


class TestPathCompletion:
    """Verify completion of file system paths."""

    def test_root_listing(self, tmp_path: Path) -> None:
        """'/' lists the root, with directories marked."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("/", "ls /") == ["/docs/", "/downloads/", "/readme"]

    def test_prefix(self, tmp_path: Path) -> None:
        """A name prefix filters the listing."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("/do", "cat /do") == ["/docs/", "/downloads/"]

    def test_nested(self, tmp_path: Path) -> None:
        """Completion walks into subdirectories."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("/docs/n", "cat /docs/n") == ["/docs/notes.txt"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A directory that does not exist offers nothing."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("/ghost/", "ls /ghost/") == []

    def test_non_path_command(self, tmp_path: Path) -> None:
        """Words after a non-path command without a slash get nothing."""
        _shell, completer = _completer(tmp_path)
        assert completer.completions("x", "persist x") == []

    def test_completion_is_not_journaled(self, tmp_path: Path) -> None:
        """Listing for completion does not touch the journal."""
        shell, completer = _completer(tmp_path)
        before = shell.fs.journal_lines()
        completer.completions("/", "ls /")
        assert shell.fs.journal_lines() == before


class TestReadlineCallback:
    """Verify the readline-facing complete() method."""

    def test_complete_state_indexing(self, tmp_path: Path) -> None:
        """complete() returns successive candidates, then None."""
        _shell, completer = _completer(tmp_path)
        with patch("readline.get_line_buffer", return_value="hel"):
            assert completer.complete("hel", 0) == "help"
            assert completer.complete("hel", 1) is None
