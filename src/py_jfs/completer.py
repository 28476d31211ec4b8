"""Context-aware tab completer for the file system shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)`` which analyses the input
context and returns a list of candidate strings.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

from py_jfs.errors import FsError
from py_jfs.fs.nodes import FileType
from py_jfs.fs.paths import SEPARATOR, join

if TYPE_CHECKING:
    from py_jfs.shell import Shell

# Commands whose arguments are file system paths.
_PATH_COMMANDS: frozenset[str] = frozenset(
    ["ls", "cat", "rm", "rmdir", "mkdir", "touch", "write", "cp", "mv"]
)

# Commands that accept subcommands as a second word.
_SUBCOMMANDS: dict[str, list[str]] = {
    "journal": ["show", "clear", "status"],
    "log": ["clear", "fs", "journal", "recovery", "snapshot"],
}

_SUBCOMMAND_POSITION = 2


class Completer:
    """Context-aware tab completer for the file system shell."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance.

        Args:
            shell: The shell whose commands and file system are used to
                   generate completion candidates.

        """
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Args:
            text: The partial word being completed.
            state: Index into the candidate list (0, 1, 2, …).

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Sorted list of matching candidates.

        """
        words = line.lstrip().split()

        # No words yet, or still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

        cmd = words[0]
        if cmd in _SUBCOMMANDS and (
            len(words) == 1 or (len(words) == _SUBCOMMAND_POSITION and not line.endswith(" "))
        ):
            return sorted(sub for sub in _SUBCOMMANDS[cmd] if sub.startswith(text))

        if text.startswith(SEPARATOR) or cmd in _PATH_COMMANDS:
            return self._complete_paths(text)
        return []

    def _complete_paths(self, text: str) -> list[str]:
        """Complete file system paths.

        Split the partial path into a directory and a name prefix, list
        the directory, and filter by prefix.  Directories get a trailing
        ``/`` suffix.
        """
        if SEPARATOR not in text:
            return []

        # Split "/foo/ba" into dir="/foo" prefix="ba"
        last_slash = text.rfind(SEPARATOR)
        directory = text[: last_slash + 1] or SEPARATOR
        prefix = text[last_slash + 1 :]

        try:
            entries = self._shell.fs.list_dir(directory.rstrip(SEPARATOR) or SEPARATOR)
        except FsError:
            return []

        candidates: list[str] = []
        for entry in entries:
            if entry.name.startswith(prefix):
                full = join(directory, entry.name)
                if entry.file_type is FileType.DIRECTORY:
                    full += SEPARATOR
                candidates.append(full)
        return sorted(candidates)
