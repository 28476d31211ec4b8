"""Interactive REPL (Read-Eval-Print Loop) for the journaled file system.

The REPL boots the file system (load snapshot, open journal, recover),
creates a shell, and enters the classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

This module keeps the I/O loop separate from the shell logic.  The
shell is fully testable (returns strings, no I/O); the REPL is the thin
I/O wrapper that connects it to ``stdin``/``stdout``.
"""

import os
import readline

from py_jfs.completer import Completer
from py_jfs.config import FsConfig
from py_jfs.fs.coordinator import JournaledFileSystem
from py_jfs.logging import LogEntry, Logger, LogLevel
from py_jfs.shell import Shell

PROMPT = "fs> "

_BANNER_WIDTH = 38


def format_boot_log(boot_log: list[LogEntry]) -> str:
    """Format the boot-time log entries into a displayable banner.

    DEBUG entries are left out; the ``log`` command still shows them.

    Args:
        boot_log: Log entries recorded while booting.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = (
        f"\n  {border}\n              PyJFS\n   A journaled file system simulator\n  {border}\n\n"
    )
    body = "\n".join(f"  {entry}" for entry in boot_log if entry.level >= LogLevel.INFO)
    footer = "\nReady. Type 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def run() -> None:
    """Boot the file system and run the interactive REPL.

    This is the ``py-jfs`` console entry point.  It handles:
    - Boot (snapshot load and journal recovery).
    - Shell creation and tab completion.
    - The read-eval-print loop.
    - Graceful handling of Ctrl+C and Ctrl+D.
    - A final snapshot on the way out.
    """
    logger = Logger()
    fs = JournaledFileSystem.boot(FsConfig.from_env(os.environ), logger=logger)
    shell = Shell(fs=fs)

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_boot_log(logger.entries))  # noqa: T201

    try:
        while fs.running:
            try:
                command = input(PROMPT)
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        fs.shutdown()
        print("State saved. Bye.")  # noqa: T201
