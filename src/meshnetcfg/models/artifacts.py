"""Generated file contents and configuration backups."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class GeneratedArtifacts:
    """The rendered configuration for one node.

    Attributes:
        interfaces: Full text of /etc/network/interfaces
        frr_conf: Full text of /etc/frr/frr.conf, empty when FRR
            generation was disabled
        hosts_block: '# Proxmox Mesh Cluster Nodes' block for /etc/hosts,
            or None when hosts entries are not managed
    """

    interfaces: str
    frr_conf: str = ""
    hosts_block: str | None = None


@dataclass(frozen=True, order=True)
class BackupRecord:
    """A timestamped directory holding copies of replaced config files.

    Ordering is by timestamp, so ``max(records)`` is the latest backup.
    """

    timestamp: str
    path: Path = field(compare=False)
    files: tuple[str, ...] = field(default=(), compare=False)

    def __str__(self) -> str:
        return f"{self.timestamp} ({', '.join(self.files) or 'empty'})"
