"""Consistency checks over generated or deployed configuration files.

Runs on the text about to be written (and, for ``check``, on what is
already deployed), so a broken file never reaches /etc:

- interfaces: duplicate bridges and VLAN tags, OVS ports pointing at
  missing bridges or absent from their bridge's port list, MTU drift,
  a NIC shared by two bridges, malformed addresses
- frr.conf: the OpenFabric router, its NET and the fabric interfaces
"""

from __future__ import annotations

import re
from collections import defaultdict

from meshnetcfg.constraints.errors import ValidationResult
from meshnetcfg.derivations.addresses import parse_net_id
from meshnetcfg.models.artifacts import GeneratedArtifacts
from meshnetcfg.models.plan import NetworkPlan
from meshnetcfg.sources.interfaces_parser import IfaceStanza, InterfacesFile, parse_interfaces
from meshnetcfg.utils.ip import is_dotted_quad

_FRR_NET_RE = re.compile(r'^\s*net\s+(\S+)\s*$', re.MULTILINE)
_FRR_INTERFACE_RE = re.compile(r'^interface\s+(\S+)\s*$', re.MULTILINE)
_FRR_ROUTER_RE = re.compile(r'^router openfabric\s+\S+\s*$', re.MULTILINE)


def _is_bridge(stanza: IfaceStanza) -> bool:
    return stanza.ovs_type == "OVSBridge" or stanza.get("bridge-ports") is not None


def _bridge_members(stanza: IfaceStanza) -> list[str]:
    ports = stanza.get("ovs_ports") or stanza.get("bridge-ports") or ""
    return [p for p in ports.split() if p != "none"]


def _check_duplicates(parsed: InterfacesFile, result: ValidationResult) -> None:
    seen: dict[tuple[str, str], IfaceStanza] = {}
    for stanza in parsed.stanzas:
        key = (stanza.name, stanza.family)
        first = seen.get(key)
        if first is None:
            seen[key] = stanza
            continue
        if _is_bridge(stanza) or _is_bridge(first):
            result.error(
                "duplicate_bridge",
                f"Bridge {stanza.name} defined more than once "
                f"(lines {first.line} and {stanza.line})",
                record_id=stanza.name,
            )
        else:
            result.warning(
                "duplicate_stanza",
                f"Interface {stanza.name} defined more than once "
                f"(lines {first.line} and {stanza.line})",
                record_id=stanza.name,
            )


def _check_vlan_tags(parsed: InterfacesFile, result: ValidationResult) -> None:
    by_tag: dict[str, list[str]] = defaultdict(list)
    for stanza in parsed.stanzas:
        if stanza.ovs_type != "OVSIntPort":
            continue
        tag = stanza.ovs_options().get("tag")
        if tag is not None and stanza.name not in by_tag[tag]:
            by_tag[tag].append(stanza.name)

    for tag, names in sorted(by_tag.items()):
        if len(names) > 1:
            result.error(
                "duplicate_vlan_tag",
                f"VLAN tag {tag} assigned to multiple interfaces: {', '.join(names)}",
                record_id=names[1],
                field="ovs_options",
            )


def _check_ovs_membership(parsed: InterfacesFile, result: ValidationResult) -> None:
    bridges = {s.name: s for s in parsed.stanzas if _is_bridge(s)}

    for stanza in parsed.stanzas:
        if stanza.ovs_type not in ("OVSPort", "OVSIntPort"):
            continue
        bridge_name = stanza.get("ovs_bridge")
        if not bridge_name:
            result.error(
                "missing_bridge",
                f"{stanza.ovs_type} {stanza.name} has no ovs_bridge",
                record_id=stanza.name,
                field="ovs_bridge",
            )
            continue
        bridge = bridges.get(bridge_name)
        if bridge is None:
            result.error(
                "missing_bridge",
                f"{stanza.name} refers to undefined bridge {bridge_name}",
                record_id=stanza.name,
                field="ovs_bridge",
            )
            continue
        if stanza.name not in _bridge_members(bridge):
            result.error(
                "port_not_in_bridge",
                f"{stanza.name} is not listed in ovs_ports of {bridge_name}",
                record_id=bridge_name,
                field="ovs_ports",
            )
        if bridge.mtu is not None and stanza.mtu is not None and bridge.mtu != stanza.mtu:
            result.warning(
                "mtu_mismatch",
                f"{stanza.name} MTU {stanza.mtu} differs from {bridge_name} MTU {bridge.mtu}",
                record_id=stanza.name,
                field="ovs_mtu",
            )

    owners: dict[str, list[str]] = defaultdict(list)
    for name, bridge in bridges.items():
        for member in _bridge_members(bridge):
            if name not in owners[member]:
                owners[member].append(name)
    for member, names in sorted(owners.items()):
        if len(names) > 1:
            result.warning(
                "port_on_multiple_bridges",
                f"{member} is a port of several bridges: {', '.join(names)}",
                record_id=member,
            )


def _check_addresses(parsed: InterfacesFile, result: ValidationResult) -> None:
    for stanza in parsed.stanzas:
        if stanza.family != "inet":
            continue
        for key in ("address", "gateway"):
            for value in stanza.get_all(key):
                addr, _, prefix = value.partition("/")
                valid = is_dotted_quad(addr) and (
                    not prefix or (prefix.isdigit() and int(prefix) <= 32)
                )
                if not valid:
                    result.error(
                        "invalid_address",
                        f"Malformed {key} {value!r} on {stanza.name}",
                        record_id=stanza.name,
                        field=key,
                    )


def validate_interfaces_text(text: str) -> ValidationResult:
    """Run every interfaces-file constraint over the given text."""
    parsed = parse_interfaces(text)
    result = ValidationResult()
    _check_duplicates(parsed, result)
    _check_vlan_tags(parsed, result)
    _check_ovs_membership(parsed, result)
    _check_addresses(parsed, result)
    return result


def validate_frr_config(
    text: str,
    node_id: int | None = None,
    fabric_interfaces: tuple[str, ...] = (),
) -> ValidationResult:
    """Check an frr.conf for the OpenFabric router, NET and interfaces.

    Args:
        node_id: When given, the NET must encode this node id.
        fabric_interfaces: Interface names that must have a stanza.
    """
    result = ValidationResult()

    if not _FRR_ROUTER_RE.search(text):
        result.error("frr_missing_router", "OpenFabric router 'router openfabric' not configured")

    nets = _FRR_NET_RE.findall(text)
    if not nets:
        result.error("frr_missing_net", "No OpenFabric NET configured", field="net")
    for net in nets:
        try:
            encoded = parse_net_id(net)
        except ValueError:
            result.error("frr_invalid_net", f"Malformed NET {net!r}", field="net")
            continue
        if node_id is not None and encoded != node_id:
            result.error(
                "frr_net_mismatch",
                f"NET {net} encodes node {encoded}, expected node {node_id}",
                field="net",
            )

    configured = set(_FRR_INTERFACE_RE.findall(text))
    if "lo" not in configured:
        result.warning("frr_missing_loopback", "No loopback interface stanza", record_id="lo")
    for iface in fabric_interfaces:
        if iface not in configured:
            result.error(
                "frr_missing_interface",
                f"Fabric interface {iface} has no OpenFabric stanza",
                record_id=iface,
            )

    return result


def frr_net_node_id(text: str) -> int | None:
    """Node id encoded in the first well-formed NET of an frr.conf.

    >>> frr_net_node_id(' net 49.0001.1000.0000.005e.00\\n')
    94
    >>> frr_net_node_id('router openfabric 1\\n') is None
    True
    """
    for net in _FRR_NET_RE.findall(text):
        try:
            return parse_net_id(net)
        except ValueError:
            continue
    return None


def validate_artifacts(
    artifacts: GeneratedArtifacts,
    plan: NetworkPlan,
    node_id: int,
) -> ValidationResult:
    """Validate a node's rendered files before they are written."""
    combined = ValidationResult()
    combined.extend(validate_interfaces_text(artifacts.interfaces))

    parsed = parse_interfaces(artifacts.interfaces)
    for iface in plan.fabric_interfaces():
        if not parsed.find(iface):
            combined.error(
                "missing_interface",
                f"Fabric interface {iface} missing from interfaces file",
                record_id=iface,
            )

    if artifacts.frr_conf:
        combined.extend(validate_frr_config(
            artifacts.frr_conf,
            node_id=node_id,
            fabric_interfaces=plan.fabric_interfaces(),
        ))
    return combined
