"""Storage configuration — where the snapshot and journal live.

A file system instance needs two files on the host: the snapshot (the
whole tree as JSON) and the journal (one JSON record per line).  Both
default to the current directory and can be relocated through
environment variables::

    PYJFS_HOME       directory holding both files (default ".")
    PYJFS_SNAPSHOT   snapshot file name (default "fs.json")
    PYJFS_JOURNAL    journal file name (default "journal.log")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_SNAPSHOT_NAME = "fs.json"
DEFAULT_JOURNAL_NAME = "journal.log"

ENV_HOME = "PYJFS_HOME"
ENV_SNAPSHOT = "PYJFS_SNAPSHOT"
ENV_JOURNAL = "PYJFS_JOURNAL"


@dataclass(frozen=True)
class FsConfig:
    """Locations of the on-disk state for one file system."""

    data_dir: Path = field(default_factory=lambda: Path())
    snapshot_name: str = DEFAULT_SNAPSHOT_NAME
    journal_name: str = DEFAULT_JOURNAL_NAME

    @property
    def snapshot_path(self) -> Path:
        """Return the canonical snapshot file path."""
        return self.data_dir / self.snapshot_name

    @property
    def journal_path(self) -> Path:
        """Return the journal file path."""
        return self.data_dir / self.journal_name

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> FsConfig:
        """Build a config from environment variables.

        Args:
            environ: Usually ``os.environ``; unset or empty keys fall
                back to the defaults.

        Returns:
            The resulting configuration.

        """
        return cls(
            data_dir=Path(environ.get(ENV_HOME) or "."),
            snapshot_name=environ.get(ENV_SNAPSHOT) or DEFAULT_SNAPSHOT_NAME,
            journal_name=environ.get(ENV_JOURNAL) or DEFAULT_JOURNAL_NAME,
        )
