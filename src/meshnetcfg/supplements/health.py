"""Live health checks of a configured mesh node.

Compares the running system with what the profile expects: interface
MTUs, OVS bridges with RSTP enabled at the expected priority, FRR
running with OpenFabric configured, and reachability of every other
known node over the cluster and Ceph VLANs.
"""

from __future__ import annotations

import logging

from meshnetcfg.constraints.errors import ApplyFailed, ValidationResult
from meshnetcfg.derivations.addresses import derive_addresses
from meshnetcfg.models.plan import NetworkPlan, VlanRole
from meshnetcfg.supplements import system
from meshnetcfg.utils.ip import strip_prefix

logger = logging.getLogger(__name__)


def check_interface_mtus(plan: NetworkPlan, result: ValidationResult) -> None:
    expected = {"vmbr0": plan.public_mtu}
    for bridge in plan.bridges:
        expected[bridge.name] = plan.fabric_mtu
        for name in bridge.vlan_interfaces:
            expected[name] = plan.fabric_mtu

    for name, mtu in expected.items():
        actual = system.interface_mtu(name)
        if actual is None:
            result.error("interface_missing", f"Interface {name} does not exist", record_id=name)
        elif actual != mtu:
            result.error(
                "mtu_mismatch",
                f"Interface {name} MTU mismatch: expected {mtu}, got {actual}",
                record_id=name,
                field="mtu",
            )
        else:
            logger.info("Interface %s configuration OK", name)


def _ovs_get(bridge: str, column: str) -> str:
    return system.run_command(["ovs-vsctl", "get", "Bridge", bridge, column]).stdout.strip()


def check_ovs_bridges(plan: NetworkPlan, result: ValidationResult) -> None:
    for bridge in plan.bridges:
        name = bridge.name
        exists = system.run_command(["ovs-vsctl", "br-exists", name], check=False)
        if exists.returncode != 0:
            result.error("ovs_bridge_missing", f"OVS bridge {name} does not exist", record_id=name)
            continue
        try:
            rstp = _ovs_get(name, "rstp_enable")
            priority = _ovs_get(name, "other_config:rstp-priority").strip('"')
        except ApplyFailed as e:
            result.error("ovs_query_failed", str(e), record_id=name)
            continue
        if rstp != "true":
            result.error("rstp_disabled", f"RSTP not enabled on bridge {name}", record_id=name)
        elif priority != str(plan.rstp_priority):
            result.error(
                "rstp_priority",
                f"Incorrect RSTP priority on bridge {name}: {priority}",
                record_id=name,
            )
        else:
            logger.info("OVS bridge %s configuration OK", name)


def check_frr(result: ValidationResult) -> None:
    if not system.frr_is_active():
        result.error("frr_not_running", "FRR service not running", record_id="frr")
        return
    try:
        running = system.frr_running_config()
    except ApplyFailed as e:
        result.error("frr_query_failed", str(e), record_id="frr")
        return
    if "router openfabric 1" not in running:
        result.error("frr_missing_router", "OpenFabric not configured", record_id="frr")
    else:
        logger.info("FRR configuration OK")


def ping(address: str, interface: str, count: int = 3) -> bool:
    result = system.run_command(
        ["ping", "-c", str(count), "-W", "1", "-I", interface, address],
        check=False,
    )
    return result.returncode == 0


def check_peers(plan: NetworkPlan, node_id: int, result: ValidationResult) -> None:
    """Ping every other node of the profile over the cluster and Ceph VLANs."""
    targets = []
    for role in (VlanRole.CLUSTER, VlanRole.CEPH):
        vlan = plan.vlan_for(role)
        bridge = plan.bridge_for_vlan(role)
        if vlan is not None and bridge is not None:
            targets.append((role, vlan.interface_name(bridge.name)))

    for hostname, peer_id in plan.nodes:
        if peer_id == node_id:
            continue
        peer = derive_addresses(peer_id, plan)
        for role, iface in targets:
            address = strip_prefix(peer.cluster_ip if role is VlanRole.CLUSTER else peer.ceph_ip)
            if ping(address, iface):
                logger.info("Connectivity to %s via %s OK", address, iface)
            else:
                result.error(
                    "peer_unreachable",
                    f"Cannot reach {hostname} ({address}) via {iface}",
                    record_id=hostname,
                )


def check_live(plan: NetworkPlan, node_id: int | None) -> ValidationResult:
    """Run every live check; peers are skipped when node_id is unknown."""
    result = ValidationResult()
    check_interface_mtus(plan, result)
    check_ovs_bridges(plan, result)
    check_frr(result)
    if node_id is not None:
        check_peers(plan, node_id, result)
    return result
