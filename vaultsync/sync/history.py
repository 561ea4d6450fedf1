# vaultsync Sync History
# Append-only log of sync attempts

from datetime import datetime
from pathlib import Path
from typing import Optional

from vaultsync.sync.result import SyncResult
from vaultsync.utils.paths import ensure_dir

HEADER = "# vaultsync history\n"


class SyncHistory:
    """One line per sync attempt, newest last."""

    def __init__(self, path: Path):
        self.path = path

    def format_entry(self, result: SyncResult, when: Optional[datetime] = None) -> str:
        when = when or datetime.now()
        backend = result.backend.value if result.backend else "-"
        entry = f"{when.isoformat(timespec='seconds')} {result.trigger.value} {backend} {result.summary}"
        if result.commit_id:
            entry += f" [{result.commit_id}]"
        return entry

    def record(self, result: SyncResult, when: Optional[datetime] = None) -> str:
        """
        Append an entry for ``result``.

        Returns:
            The line written.
        """
        entry = self.format_entry(result, when)
        ensure_dir(self.path.parent)
        new_file = not self.path.exists()
        with open(self.path, "a", encoding="utf-8") as f:
            if new_file:
                f.write(HEADER)
            f.write(entry.replace("\n", " ") + "\n")
        return entry

    def tail(self, lines: int = 50) -> list[str]:
        """Return the last ``lines`` entries."""
        if not self.path.exists():
            return []
        entries = [
            line
            for line in self.path.read_text(encoding="utf-8").splitlines()
            if line and not line.startswith("#")
        ]
        return entries[-lines:] if lines > 0 else []
