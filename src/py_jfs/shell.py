"""The shell — command interpreter for the journaled file system.

The shell reads a command string, splits it into a command name and
arguments, dispatches to the appropriate handler, and returns a string
result.  It holds no file system logic of its own: every handler calls
one ``JournaledFileSystem`` method.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable and separates concerns (the caller decides how to
      display output).
    - **Command dispatch via a dict.**  Adding a new command means
      writing a method and adding one dict entry.
    - **At most two arguments.**  Everything after the first argument
      is kept verbatim as the second, so ``write /a.txt hello world``
      writes ``hello world``.  One pair of surrounding double quotes
      is stripped from each argument.
"""

from collections.abc import Callable
from typing import TypeAlias

from py_jfs.errors import ArgumentError, FsError
from py_jfs.fs.coordinator import JournaledFileSystem
from py_jfs.fs.nodes import FileType
from py_jfs.fs.paths import ROOT_PATH, normalize_path

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

_QUOTE = '"'


def _unquote(text: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text.startswith(_QUOTE) and text.endswith(_QUOTE):  # noqa: PLR2004
        return text[1:-1]
    return text


def parse_command(line: str) -> tuple[str, list[str]]:
    """Split a command line into ``(name, args)``.

    The name is lower-cased.  ``args`` holds at most two items: the
    first word after the name, and the rest of the line as-is.

    Examples::

        "mkdir /docs"              → ("mkdir", ["/docs"])
        'write /a.txt "hi there"'  → ("write", ["/a.txt", "hi there"])

    """
    parts = line.strip().split(maxsplit=2)
    if not parts:
        return "", []
    name = parts[0].lower()
    return name, [_unquote(part.strip()) for part in parts[1:]]


def _require(args: list[str], count: int, usage: str) -> None:
    """Raise ArgumentError unless *args* holds at least *count* items."""
    if len(args) < count or any(not arg for arg in args[:count]):
        msg = f"Usage: {usage}"
        raise ArgumentError(msg)


class Shell:
    """Command interpreter bound to a running file system.

    The constructor refuses a file system that has already been shut
    down — there would be nowhere for commands to go.
    """

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, fs: JournaledFileSystem) -> None:
        """Create a shell attached to a running file system.

        Raises:
            RuntimeError: If the file system has been shut down.

        """
        if not fs.running:
            msg = "Shell requires a running file system"
            raise RuntimeError(msg)

        self._fs = fs
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "mkdir": self._cmd_mkdir,
            "rmdir": self._cmd_rmdir,
            "touch": self._cmd_touch,
            "rm": self._cmd_rm,
            "cp": self._cmd_cp,
            "mv": self._cmd_mv,
            "write": self._cmd_write,
            "cat": self._cmd_cat,
            "ls": self._cmd_ls,
            "journal": self._cmd_journal,
            "persist": self._cmd_persist,
            "log": self._cmd_log,
            "exit": self._cmd_exit,
        }

    @property
    def fs(self) -> JournaledFileSystem:
        """Return the file system this shell drives."""
        return self._fs

    @property
    def command_names(self) -> list[str]:
        """Return the sorted list of command names."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. "ls /docs").

        Returns:
            The command output, a usage line, or an ``Error:`` message.

        """
        name, args = parse_command(command)
        if not name:
            return ""
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}. Type 'help' for commands."
        try:
            return handler(args)
        except ArgumentError as e:
            return str(e)
        except FsError as e:
            return f"Error: {e}"

    # -- Namespace commands -------------------------------------------------

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create a directory."""
        _require(args, 1, "mkdir <path>")
        self._fs.create_directory(normalize_path(args[0]))
        return ""

    def _cmd_rmdir(self, args: list[str]) -> str:
        """Remove an empty directory."""
        _require(args, 1, "rmdir <path>")
        self._fs.remove_directory(normalize_path(args[0]))
        return ""

    def _cmd_touch(self, args: list[str]) -> str:
        """Create an empty file."""
        _require(args, 1, "touch <path>")
        self._fs.create_file(normalize_path(args[0]))
        return ""

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove a file."""
        _require(args, 1, "rm <path>")
        self._fs.delete_file(normalize_path(args[0]))
        return ""

    def _cmd_cp(self, args: list[str]) -> str:
        """Copy a file or directory tree."""
        _require(args, 2, "cp <src> <dest>")  # noqa: PLR2004
        self._fs.copy(normalize_path(args[0]), normalize_path(args[1]))
        return ""

    def _cmd_mv(self, args: list[str]) -> str:
        """Move or rename a file or directory."""
        _require(args, 2, "mv <src> <dest>")  # noqa: PLR2004
        self._fs.rename(normalize_path(args[0]), normalize_path(args[1]))
        return ""

    def _cmd_write(self, args: list[str]) -> str:
        """Create or replace a file's content."""
        _require(args, 2, "write <path> <content...>")  # noqa: PLR2004
        self._fs.write(normalize_path(args[0]), args[1])
        return ""

    def _cmd_cat(self, args: list[str]) -> str:
        """Read file contents."""
        _require(args, 1, "cat <path>")
        return self._fs.read(normalize_path(args[0]))

    def _cmd_ls(self, args: list[str]) -> str:
        """List directory contents, directories first."""
        path = normalize_path(args[0]) if args else ROOT_PATH
        entries = self._fs.list_dir(path)
        dirs = [f"[DIR]  {e.name}" for e in entries if e.file_type is FileType.DIRECTORY]
        files = [
            f"[FILE] {e.name} ({e.size} bytes)" for e in entries if e.file_type is FileType.FILE
        ]
        return "\n".join(dirs + files)

    # -- Journal and persistence --------------------------------------------

    def _cmd_journal(self, args: list[str]) -> str:
        """Inspect or clear the journal."""
        usage = "Usage: journal <show|clear|status>"
        if not args:
            return usage
        match args[0].lower():
            case "show":
                lines = self._fs.journal_lines()
                return "\n".join(lines) if lines else "(journal empty)"
            case "clear":
                self._fs.clear_journal()
                return "Journal cleared."
            case "status":
                status = self._fs.journal_status()
                return "\n".join(f"{key}: {value}" for key, value in status.items())
            case _:
                return usage

    def _cmd_persist(self, _args: list[str]) -> str:
        """Force a snapshot save."""
        self._fs.persist()
        return "State persisted."

    def _cmd_log(self, args: list[str]) -> str:
        """Show, filter by source, or clear the event log."""
        logger = self._fs.logger
        match args:
            case []:
                entries = logger.entries
            case ["clear", *_]:
                logger.clear()
                return "Log cleared."
            case _:
                entries = logger.filter(source=args[0])
        return "\n".join(str(e) for e in entries) if entries else "No log entries."

    # -- Session ------------------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        lines = [
            "Available commands:",
            "  mkdir <path>             create a directory",
            "  rmdir <path>             remove an empty directory",
            "  touch <path>             create an empty file",
            "  rm <path>                remove a file",
            "  cp <src> <dest>          copy a file or directory tree",
            "  mv <src> <dest>          move or rename",
            "  write <path> <content>   create or replace a file's content",
            "  cat <path>               print a file",
            "  ls [path]                list a directory",
            "  journal show|clear|status",
            "  persist                  save a snapshot now",
            "  log [source|clear]       show, filter, or clear the event log",
            "  exit                     save and quit",
        ]
        return "\n".join(lines)

    def _cmd_exit(self, _args: list[str]) -> str:
        """Shut down the file system and signal the REPL to stop."""
        self._fs.shutdown()
        return self.EXIT_SENTINEL
