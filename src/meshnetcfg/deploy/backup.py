"""Timestamped backups of configuration files before they are replaced.

Layout::

    /etc/network/backups/
        20250404_101500/
            interfaces
            frr.conf
        20250405_083012/
            ...

Backups are never pruned automatically. Directory names sort in time
order, so the latest backup is the lexicographically greatest.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

from meshnetcfg.constraints.errors import BackupFailed, NoBackupFound
from meshnetcfg.models.artifacts import BackupRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
_BACKUP_NAME_RE = re.compile(r'^\d{8}_\d{6}(_\d+)?$')


class BackupStore:
    """Manages the backup directory for replaced config files."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _new_dir(self, now: datetime) -> Path:
        stamp = now.strftime(TIMESTAMP_FORMAT)
        candidate = self.root / stamp
        n = 1
        while candidate.exists():
            candidate = self.root / f"{stamp}_{n}"
            n += 1
        return candidate

    def create(self, paths: list[Path], now: datetime | None = None) -> BackupRecord:
        """Copy every existing file in ``paths`` into a new backup directory.

        Files that do not exist yet are skipped. Files are stored by base
        name, so two paths sharing a base name cannot be backed up together.

        Raises:
            BackupFailed: If the directory or any copy cannot be written.
        """
        names = [p.name for p in paths]
        if len(set(names)) != len(names):
            raise BackupFailed(f"Backup paths share a file name: {names}")

        target = self._new_dir(now or datetime.now())
        copied: list[str] = []
        try:
            target.mkdir(parents=True)
            for path in paths:
                if not path.exists():
                    continue
                shutil.copy2(path, target / path.name)
                copied.append(path.name)
        except OSError as e:
            raise BackupFailed(f"Could not back up to {target}: {e}") from e

        logger.info("Backed up %s to %s", ", ".join(copied) or "nothing", target)
        return BackupRecord(timestamp=target.name, path=target, files=tuple(copied))

    def records(self) -> list[BackupRecord]:
        """All backups, oldest first."""
        if not self.root.is_dir():
            return []
        records = []
        for entry in self.root.iterdir():
            if not entry.is_dir() or not _BACKUP_NAME_RE.match(entry.name):
                continue
            files = tuple(sorted(f.name for f in entry.iterdir() if f.is_file()))
            records.append(BackupRecord(timestamp=entry.name, path=entry, files=files))
        return sorted(records, key=_sort_key)

    def latest(self) -> BackupRecord:
        """Return the most recent backup.

        Raises:
            NoBackupFound: If the backup directory is missing or empty.
        """
        records = self.records()
        if not records:
            raise NoBackupFound(f"No backups found in {self.root}")
        return records[-1]

    def restore(self, record: BackupRecord, targets: list[Path]) -> list[Path]:
        """Copy backed-up files over their targets, matched by base name.

        Targets with no copy in the backup are left untouched.
        Returns the paths that were restored.
        """
        restored = []
        for target in targets:
            source = record.path / target.name
            if not source.is_file():
                continue
            shutil.copy2(source, target)
            restored.append(target)
            logger.info("Restored %s from %s", target, record.timestamp)
        return restored


def _sort_key(record: BackupRecord) -> tuple[str, int]:
    """Order by timestamp, then numerically by collision suffix ('_10' after '_2')."""
    stamp, suffix = record.timestamp[:15], record.timestamp[16:]
    return (stamp, int(suffix) if suffix else 0)
