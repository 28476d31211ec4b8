"""Tests for the REPL (Read-Eval-Print Loop).

The REPL is the interactive terminal interface.  Its helpers are tested
in isolation, and the loop itself is driven with patched ``input`` so
no terminal is needed.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from py_jfs.config import ENV_HOME
from py_jfs.logging import LogEntry, LogLevel
from py_jfs.repl import PROMPT, format_boot_log, run


class TestFormatBootLog:
    """Verify the boot banner."""

    def test_banner_contains_name_and_entries(self) -> None:
        """The banner names the program and shows boot messages."""
        log = [
            LogEntry(level=LogLevel.INFO, message="New file system created", source="fs"),
            LogEntry(level=LogLevel.WARNING, message="Replay of id=3 failed", source="recovery"),
        ]
        banner = format_boot_log(log)
        assert "PyJFS" in banner
        assert "[INFO] fs: New file system created" in banner
        assert "[WARNING] recovery: Replay of id=3 failed" in banner
        assert "Ready." in banner

    def test_debug_entries_hidden(self) -> None:
        """DEBUG messages are left out of the banner."""
        log = [LogEntry(level=LogLevel.DEBUG, message="Snapshot loaded", source="snapshot")]
        assert "Snapshot loaded" not in format_boot_log(log)

    def test_prompt(self) -> None:
        """The prompt is short and ends with a space."""
        assert PROMPT.endswith(" ")


class TestRun:
    """Drive the loop with scripted input."""

    @pytest.fixture(autouse=True)
    def _data_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Point the REPL's storage at a temporary directory."""
        monkeypatch.setenv(ENV_HOME, str(tmp_path))

    def test_commands_then_exit(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Output of each command is printed; exit saves and says goodbye."""
        script = ["mkdir /docs", "write /docs/a.txt hello", "cat /docs/a.txt", "exit"]
        with patch("builtins.input", side_effect=script):
            run()
        out = capsys.readouterr().out
        assert "PyJFS" in out
        assert "hello" in out
        assert "State saved. Bye." in out
        assert (tmp_path / "fs.json").exists()

    def test_eof_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Ctrl+D ends the session cleanly."""
        with patch("builtins.input", side_effect=EOFError):
            run()
        assert "State saved. Bye." in capsys.readouterr().out

    def test_interrupt_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Ctrl+C ends the session cleanly."""
        with patch("builtins.input", side_effect=KeyboardInterrupt):
            run()
        out = capsys.readouterr().out
        assert "Interrupted." in out
        assert "State saved. Bye." in out

    def test_state_survives_sessions(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A second session sees what the first one wrote."""
        with patch("builtins.input", side_effect=["write /a.txt kept", "exit"]):
            run()
        capsys.readouterr()
        with patch("builtins.input", side_effect=["cat /a.txt", "exit"]):
            run()
        assert "kept" in capsys.readouterr().out
