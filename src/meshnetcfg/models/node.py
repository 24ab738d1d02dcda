"""Node models: the identity of a Proxmox node and its NIC assignment."""

from __future__ import annotations

from dataclasses import dataclass

from meshnetcfg.models.plan import NetworkPlan, UplinkRole


@dataclass(frozen=True)
class NodeIdentity:
    """A single mesh member.

    Attributes:
        hostname: Short hostname (e.g. 'pve4')
        node_id: Last octet shared by all of the node's addresses (e.g. 94)
    """

    hostname: str
    node_id: int

    def __str__(self) -> str:
        return f"{self.hostname} (node {self.node_id})"


@dataclass(frozen=True)
class InterfaceAssignment:
    """Physical NICs chosen for each role on a node.

    Attributes:
        public: Uplink of the vmbr0 Linux bridge
        cluster: Uplink of the PVECM OVS bridge (vmbr1), None when the
            profile has no PVECM bridge
        ceph: Uplink of the cluster/Ceph fabric OVS bridge (vmbr2)
    """

    public: str
    cluster: str | None
    ceph: str

    def uplink(self, role: UplinkRole) -> str:
        """Return the NIC name serving as uplink for the given role."""
        name = self.cluster if role is UplinkRole.CLUSTER else self.ceph
        if not name:
            raise ValueError(f"No interface assigned for {role.value} uplink")
        return name

    def required_names(self, plan: NetworkPlan) -> list[str]:
        """NIC names the plan actually uses, in prompt order."""
        names = [self.public]
        for role in plan.uplink_roles():
            names.append(self.uplink(role))
        return names
