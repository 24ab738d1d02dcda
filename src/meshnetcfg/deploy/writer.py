"""Transactional replacement of configuration files.

Every destination is first staged as a temporary file in its own
directory and fsynced; only when all files are staged is each one moved
into place with os.replace. A failure while staging removes the
temporaries and leaves every live file untouched.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from meshnetcfg.config import PathsConfig
from meshnetcfg.constraints.errors import GeneratedConfigInvalid, ValidationResult
from meshnetcfg.constraints.interfaces_validation import validate_artifacts
from meshnetcfg.deploy.backup import BackupStore
from meshnetcfg.deploy.lock import ConfigLock
from meshnetcfg.generators.daemons import enable_fabricd
from meshnetcfg.generators.hosts import merge_hosts_block
from meshnetcfg.models.artifacts import BackupRecord, GeneratedArtifacts
from meshnetcfg.models.plan import NetworkPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployResult:
    """What a deployment changed.

    Attributes:
        backup: Backup of the files as they were before the write
        written: Destination files replaced, in write order
        validation: Constraint results for the rendered files
            (warnings only; errors abort before writing)
    """

    backup: BackupRecord
    written: tuple[Path, ...]
    validation: ValidationResult


def _read_or_empty(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def _stage(dest: Path, content: str) -> Path:
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if dest.exists():
            shutil.copymode(dest, tmp)
        else:
            tmp.chmod(0o644)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return tmp


def write_atomically(files: dict[Path, str]) -> list[Path]:
    """Replace every file in ``files`` or none of them.

    Returns the destinations in the order they were replaced.

    Raises:
        OSError: If any file cannot be staged (nothing is replaced) or
            moved into place (earlier files stay replaced).
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for dest, content in files.items():
            staged.append((_stage(dest, content), dest))
    except OSError:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
        raise

    for i, (tmp, dest) in enumerate(staged):
        try:
            os.replace(tmp, dest)
        except OSError:
            for leftover, _ in staged[i:]:
                leftover.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s", dest)
    return [dest for _, dest in staged]


def planned_files(artifacts: GeneratedArtifacts, paths: PathsConfig) -> dict[Path, str]:
    """Compute the final content of every file a deployment touches.

    The daemons and hosts files are edited in place, so their current
    content is read and transformed here.
    """
    files = {paths.interfaces: artifacts.interfaces}
    if artifacts.frr_conf:
        files[paths.frr_conf] = artifacts.frr_conf
        files[paths.frr_daemons] = enable_fabricd(_read_or_empty(paths.frr_daemons))
    if artifacts.hosts_block:
        files[paths.hosts] = merge_hosts_block(_read_or_empty(paths.hosts), artifacts.hosts_block)
    return files


def deploy_artifacts(
    artifacts: GeneratedArtifacts,
    plan: NetworkPlan,
    node_id: int,
    paths: PathsConfig,
) -> DeployResult:
    """Validate, back up and write a node's configuration under the lock.

    Raises:
        GeneratedConfigInvalid: If the rendered files fail validation.
            Nothing is backed up or written.
        BackupFailed: If the backup cannot be taken. Nothing is written.
        OSError: If staging fails. Nothing is written.
    """
    validation = validate_artifacts(artifacts, plan, node_id)
    if validation.has_errors:
        raise GeneratedConfigInvalid(validation)
    for warning in validation.warnings:
        logger.warning("%s", warning)

    with ConfigLock(paths.lock_file):
        files = planned_files(artifacts, paths)
        record = BackupStore(paths.backup_dir).create(list(files))
        written = write_atomically(files)

    for path in written:
        logger.info("Updated %s", path)
    return DeployResult(backup=record, written=tuple(written), validation=validation)
