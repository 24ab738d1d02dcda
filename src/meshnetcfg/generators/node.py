"""Render every artifact for one node."""

from __future__ import annotations

from meshnetcfg.derivations.addresses import derive_addresses
from meshnetcfg.generators.frr import generate_frr_config
from meshnetcfg.generators.hosts import generate_hosts_block
from meshnetcfg.generators.interfaces import generate_interfaces
from meshnetcfg.models.artifacts import GeneratedArtifacts
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import NetworkPlan


def generate_node(
    identity: NodeIdentity,
    interfaces: InterfaceAssignment,
    plan: NetworkPlan,
    include_frr: bool = True,
    include_hosts: bool = True,
) -> GeneratedArtifacts:
    """Render the interfaces file, frr.conf and hosts block for a node.

    Inputs must already have passed validate_node_request.
    """
    addresses = derive_addresses(identity.node_id, plan)
    hosts_block = generate_hosts_block(plan) if include_hosts else None
    return GeneratedArtifacts(
        interfaces=generate_interfaces(
            identity, interfaces, plan, addresses, frr_hooks=include_frr,
        ),
        frr_conf=generate_frr_config(identity, plan, addresses) if include_frr else "",
        hosts_block=hosts_block or None,
    )
