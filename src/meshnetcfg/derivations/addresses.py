"""Node id → address plan and OpenFabric NET derivation.

All addresses of a node share its node id as the last octet:

    public   192.168.51.{id}/24   (vmbr0)
    pvecm    10.50.10.{id}/24     (VLAN 50, only in profiles with vmbr1)
    cluster  10.55.10.{id}/24     (VLAN 55)
    ceph     10.60.10.{id}/24     (VLAN 60)

The NET is 49.0001.1000.0000.00XX.00 where XX is the node id in two
lowercase hex digits.
"""

from __future__ import annotations

import re

from meshnetcfg.models.addressing import AddressPlan
from meshnetcfg.models.plan import MESH, NetworkPlan, VlanRole

NET_ID_TEMPLATE = "49.0001.1000.0000.00{hex}.00"
_NET_ID_RE = re.compile(r'^49\.0001\.1000\.0000\.00([0-9a-f]{2})\.00$')
_TRAILING_DIGITS_RE = re.compile(r'(\d+)$')


def _address(prefix: str, node_id: int) -> str:
    return f"{prefix}{node_id}/24"


def derive_addresses(node_id: int, plan: NetworkPlan = MESH) -> AddressPlan:
    """Derive every address of a node from its (already validated) id.

    >>> derive_addresses(94).cluster_ip
    '10.55.10.94/24'
    >>> derive_addresses(94).pvecm_ip
    '10.50.10.94/24'
    """
    cluster = plan.vlan_for(VlanRole.CLUSTER)
    ceph = plan.vlan_for(VlanRole.CEPH)
    pvecm = plan.vlan_for(VlanRole.PVECM)
    if cluster is None or ceph is None:
        raise ValueError(f"Profile {plan.name!r} lacks a cluster or Ceph VLAN")

    return AddressPlan(
        node_id=node_id,
        public_ip=_address(plan.public_prefix, node_id),
        cluster_ip=_address(cluster.prefix, node_id),
        ceph_ip=_address(ceph.prefix, node_id),
        pvecm_ip=_address(pvecm.prefix, node_id) if pvecm else None,
        net_id=derive_net_id(node_id),
    )


def derive_net_id(node_id: int) -> str:
    """Format the OpenFabric NET for a node id.

    >>> derive_net_id(90)
    '49.0001.1000.0000.005a.00'
    >>> derive_net_id(94)
    '49.0001.1000.0000.005e.00'
    >>> derive_net_id(1)
    '49.0001.1000.0000.0001.00'
    """
    if not 0 <= node_id <= 255:
        raise ValueError(f"Node id {node_id} does not fit in two hex digits")
    return NET_ID_TEMPLATE.format(hex=f"{node_id:02x}")


def parse_net_id(net_id: str) -> int:
    """Recover the node id embedded in a NET.

    >>> parse_net_id('49.0001.1000.0000.005e.00')
    94
    """
    match = _NET_ID_RE.match(net_id.strip())
    if match is None:
        raise ValueError(f"Not a mesh NET: {net_id!r}")
    return int(match.group(1), 16)


def node_id_from_hostname(hostname: str, plan: NetworkPlan) -> int | None:
    """Guess a node id from a hostname for unattended setup.

    Uses the profile's node table when the hostname is listed there,
    otherwise the trailing digits of the hostname. Returns None when
    neither applies.

    >>> from meshnetcfg.models.plan import CLUSTER
    >>> node_id_from_hostname('pve', CLUSTER)
    90
    >>> node_id_from_hostname('node-17', MESH)
    17
    >>> node_id_from_hostname('storage', MESH) is None
    True
    """
    known = plan.node_id_for(hostname)
    if known is not None:
        return known
    match = _TRAILING_DIGITS_RE.search(hostname)
    if match is None:
        return None
    return int(match.group(1))
