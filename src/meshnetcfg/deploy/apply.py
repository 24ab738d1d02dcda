"""Node setup and rollback: write configuration, then apply it.

Writing is all-or-nothing and raises on failure. Applying (hostname,
``ifreload``, FRR restart) happens once, after the files are in place;
if it fails the configuration stays written and the error is returned
on the outcome so the reload can be retried on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from meshnetcfg.config import PathsConfig
from meshnetcfg.constraints.errors import ApplyFailed, NoBackupFound
from meshnetcfg.deploy.backup import BackupStore
from meshnetcfg.deploy.lock import ConfigLock
from meshnetcfg.deploy.writer import DeployResult, deploy_artifacts
from meshnetcfg.generators.node import generate_node
from meshnetcfg.models.artifacts import BackupRecord
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import NetworkPlan
from meshnetcfg.supplements import system

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetupOutcome:
    """Result of setting up a node.

    ``deploy`` is always present: files were written. ``apply_error``
    is set when the live reload failed afterwards.
    """

    deploy: DeployResult
    apply_error: ApplyFailed | None = None

    @property
    def ok(self) -> bool:
        return self.apply_error is None


def reload_services(include_frr: bool = True) -> None:
    """Reload the network and (re)start FRR once.

    Raises:
        ApplyFailed: On the first command that fails.
    """
    logger.info("Reloading network configuration")
    system.reload_network()
    if include_frr:
        logger.info("Enabling and restarting FRR")
        system.enable_frr()
        system.restart_frr()


def setup_node(
    identity: NodeIdentity,
    interfaces: InterfaceAssignment,
    plan: NetworkPlan,
    paths: PathsConfig,
    include_frr: bool = True,
    include_hosts: bool = True,
) -> SetupOutcome:
    """Render, write and apply a node's configuration.

    Inputs must already have passed validate_node_request.
    """
    logger.info("Setting up %s with profile %s", identity, plan.name)
    artifacts = generate_node(
        identity, interfaces, plan,
        include_frr=include_frr, include_hosts=include_hosts,
    )
    result = deploy_artifacts(artifacts, plan, identity.node_id, paths)

    try:
        system.set_hostname(identity.hostname, paths.hostname)
        logger.info("Hostname set to %s", identity.hostname)
        reload_services(include_frr)
    except ApplyFailed as e:
        logger.error("Configuration written but not applied: %s", e)
        return SetupOutcome(deploy=result, apply_error=e)
    except OSError as e:
        error = ApplyFailed(["write", str(paths.hostname)], 1, str(e))
        logger.error("Configuration written but not applied: %s", error)
        return SetupOutcome(deploy=result, apply_error=error)

    logger.info("Mesh network setup completed for %s", identity.hostname)
    return SetupOutcome(deploy=result)


def rollback(paths: PathsConfig, plan: NetworkPlan) -> BackupRecord:
    """Restore the latest backup and bring the network back up.

    Stops FRR, removes the profile's OVS bridges, restores the files,
    reloads the network and starts FRR again, then checks that vmbr0
    exists and FRR is running.

    Raises:
        NoBackupFound: If there is no usable backup.
        ApplyFailed: If a service command fails or the restored network
            does not come up.
    """
    store = BackupStore(paths.backup_dir)
    record = store.latest()
    if paths.interfaces.name not in record.files:
        raise NoBackupFound(f"Backup {record.timestamp} has no {paths.interfaces.name}")

    logger.info("Restoring network configuration from %s", record.path)
    with ConfigLock(paths.lock_file):
        system.stop_frr()
        for bridge in plan.bridges:
            if system.delete_ovs_bridge(bridge.name):
                logger.info("Removed OVS bridge %s", bridge.name)
        store.restore(record, [
            paths.interfaces, paths.frr_conf, paths.frr_daemons, paths.hosts,
        ])
        system.reload_network()
        system.start_frr()
    _verify_restoration()

    logger.info("Rollback to %s completed", record.timestamp)
    return record


def _verify_restoration() -> None:
    if not system.interface_exists("vmbr0"):
        raise ApplyFailed(["ip", "link", "show", "vmbr0"], 1, "vmbr0 missing after rollback")
    if not system.frr_is_active():
        raise ApplyFailed(
            ["systemctl", "is-active", "frr"], 1, "FRR not running after rollback",
        )
    logger.info("Restored network verified: vmbr0 present, FRR active")
