"""Network plan models: VLANs, OVS bridges, node-id policies and profiles.

A NetworkPlan is the single parameter object that selects between the
mesh layouts this tool knows how to build. Everything that used to
differ between near-identical setup scripts (VLAN numbering, MTUs,
which bridges exist, which node ids are accepted) lives here.

Canonical VLAN mapping used by every built-in profile:

    VLAN 50  pvecm    Proxmox corosync traffic, on vmbr1
    VLAN 55  cluster  OpenFabric cluster fabric, on vmbr2 (loopback /32)
    VLAN 60  ceph     Ceph storage traffic, on vmbr2
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class VlanRole(enum.Enum):
    """Traffic class carried by a VLAN sub-interface."""

    PVECM = "pvecm"
    CLUSTER = "cluster"
    CEPH = "ceph"


class UplinkRole(enum.Enum):
    """Which assigned NIC is the uplink port of an OVS bridge."""

    CLUSTER = "cluster"
    CEPH = "ceph"


@dataclass(frozen=True)
class VlanSpec:
    """A tagged OVS internal port on a fabric bridge.

    Attributes:
        id: 802.1Q tag (e.g. 55)
        role: Traffic class this VLAN carries
        prefix: Address prefix up to the last octet (e.g. '10.55.10.')
        fabric: True if the interface takes part in OpenFabric routing
    """

    id: int
    role: VlanRole
    prefix: str
    fabric: bool = True

    def interface_name(self, bridge: str) -> str:
        """Return the OVS internal port name on the given bridge.

        >>> VlanSpec(55, VlanRole.CLUSTER, '10.55.10.').interface_name('vmbr2')
        'vmbr2.55'
        """
        return f"{bridge}.{self.id}"


@dataclass(frozen=True)
class BridgeSpec:
    """An OVS bridge with one physical uplink and tagged internal ports."""

    name: str
    uplink: UplinkRole
    vlans: tuple[VlanSpec, ...] = ()

    @property
    def vlan_interfaces(self) -> tuple[str, ...]:
        return tuple(v.interface_name(self.name) for v in self.vlans)


@dataclass(frozen=True)
class NodeIdPolicy:
    """Accepted node ids: either an inclusive range or a closed whitelist.

    Exactly one form is used. When ``allowed`` is non-empty it is the
    whitelist and ``minimum``/``maximum`` are ignored.
    """

    minimum: int = 1
    maximum: int = 255
    allowed: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if self.allowed:
            if any(n < 0 or n > 255 for n in self.allowed):
                raise ValueError(f"Node id whitelist out of 0-255: {self.allowed!r}")
        elif not 0 <= self.minimum <= self.maximum <= 255:
            raise ValueError(
                f"Invalid node id range: {self.minimum}-{self.maximum}"
            )

    @property
    def is_whitelist(self) -> bool:
        return bool(self.allowed)

    def accepts(self, node_id: int) -> bool:
        """Check whether a node id is allowed by this policy.

        >>> NodeIdPolicy(1, 255).accepts(94)
        True
        >>> NodeIdPolicy(allowed=(90, 91)).accepts(92)
        False
        """
        if self.allowed:
            return node_id in self.allowed
        return self.minimum <= node_id <= self.maximum

    def describe(self) -> str:
        if self.allowed:
            return "one of " + ", ".join(str(n) for n in self.allowed)
        return f"{self.minimum}-{self.maximum}"


@dataclass(frozen=True)
class DefaultInterfaces:
    """NIC names offered as defaults for prompts and --auto."""

    public: str = "eth0"
    cluster: str = "eth1"
    ceph: str = "eth2"


@dataclass(frozen=True)
class NetworkPlan:
    """A named mesh layout (a profile).

    Attributes:
        name: Profile name used on the command line (e.g. 'mesh')
        public_prefix: Public network prefix up to the last octet
        public_gateway: Default gateway on the public bridge
        public_mtu: MTU of vmbr0 (1500, or 9000 for jumbo frames)
        public_vlan_aware: Emit 'bridge-vlan-aware yes' on vmbr0
        fabric_mtu: MTU of every OVS bridge, port and internal port
        bridges: OVS bridges in the order they are rendered
        node_ids: Which node ids this profile accepts
        nodes: Known cluster members as (hostname, node_id) pairs
        interfaces: Default NIC names
        rstp_path_cost: RSTP path cost on every uplink port
        rstp_priority: RSTP bridge priority
        post_up_sleep: Seconds to wait after bringing a bridge up
    """

    name: str
    public_prefix: str = "192.168.51."
    public_gateway: str = "192.168.51.1"
    public_mtu: int = 1500
    public_vlan_aware: bool = False
    fabric_mtu: int = 9000
    bridges: tuple[BridgeSpec, ...] = ()
    node_ids: NodeIdPolicy = field(default_factory=NodeIdPolicy)
    nodes: tuple[tuple[str, int], ...] = ()
    interfaces: DefaultInterfaces = field(default_factory=DefaultInterfaces)
    rstp_path_cost: int = 150
    rstp_priority: int = 32768
    post_up_sleep: int = 10
    description: str = ""

    @property
    def vlans(self) -> tuple[VlanSpec, ...]:
        return tuple(v for b in self.bridges for v in b.vlans)

    def vlan_for(self, role: VlanRole) -> VlanSpec | None:
        """Return the VLAN carrying the given traffic class, if any."""
        for vlan in self.vlans:
            if vlan.role is role:
                return vlan
        return None

    def bridge_for_vlan(self, role: VlanRole) -> BridgeSpec | None:
        for bridge in self.bridges:
            if any(v.role is role for v in bridge.vlans):
                return bridge
        return None

    def uplink_roles(self) -> tuple[UplinkRole, ...]:
        return tuple(b.uplink for b in self.bridges)

    @property
    def needs_cluster_interface(self) -> bool:
        """True if a PVECM uplink NIC must be assigned."""
        return UplinkRole.CLUSTER in self.uplink_roles()

    def fabric_interfaces(self) -> tuple[str, ...]:
        """VLAN interface names that run OpenFabric, in render order."""
        return tuple(
            v.interface_name(b.name)
            for b in self.bridges
            for v in b.vlans
            if v.fabric
        )

    def node_hostname(self, node_id: int) -> str | None:
        for hostname, nid in self.nodes:
            if nid == node_id:
                return hostname
        return None

    def node_id_for(self, hostname: str) -> int | None:
        for name, nid in self.nodes:
            if name == hostname:
                return nid
        return None


PVECM_VLAN = VlanSpec(id=50, role=VlanRole.PVECM, prefix="10.50.10.")
CLUSTER_VLAN = VlanSpec(id=55, role=VlanRole.CLUSTER, prefix="10.55.10.")
CEPH_VLAN = VlanSpec(id=60, role=VlanRole.CEPH, prefix="10.60.10.")

_PVECM_BRIDGE = BridgeSpec(name="vmbr1", uplink=UplinkRole.CLUSTER, vlans=(PVECM_VLAN,))
_FABRIC_BRIDGE = BridgeSpec(
    name="vmbr2", uplink=UplinkRole.CEPH, vlans=(CLUSTER_VLAN, CEPH_VLAN),
)

_FIVE_NODES = (
    ("pve", 90),
    ("pve1", 91),
    ("pve2", 92),
    ("pve3", 93),
    ("pve4", 94),
)

MESH = NetworkPlan(
    name="mesh",
    bridges=(_PVECM_BRIDGE, _FABRIC_BRIDGE),
    node_ids=NodeIdPolicy(1, 255),
    description="PVECM bridge plus cluster/Ceph fabric bridge, any node id 1-255",
)

CLUSTER = NetworkPlan(
    name="cluster",
    public_mtu=9000,
    public_vlan_aware=True,
    bridges=(_PVECM_BRIDGE, _FABRIC_BRIDGE),
    node_ids=NodeIdPolicy(allowed=tuple(nid for _, nid in _FIVE_NODES)),
    nodes=_FIVE_NODES,
    interfaces=DefaultInterfaces(public="eth1", cluster="eth3", ceph="eth2"),
    description="Fixed five-node cluster pve..pve4 (ids 90-94), jumbo public bridge",
)

FABRIC = NetworkPlan(
    name="fabric",
    bridges=(_FABRIC_BRIDGE,),
    node_ids=NodeIdPolicy(1, 254),
    nodes=_FIVE_NODES,
    interfaces=DefaultInterfaces(public="eth0", cluster="", ceph="eth1"),
    description="First-boot layout: single fabric bridge with VLANs 55 and 60",
)

BUILTIN_PLANS: dict[str, NetworkPlan] = {p.name: p for p in (MESH, CLUSTER, FABRIC)}
