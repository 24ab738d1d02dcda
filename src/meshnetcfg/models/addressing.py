"""Derived per-node addressing: interface addresses and the OpenFabric NET."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AddressPlan:
    """All addresses of one node, derived from its node id.

    Every address is stored in interface notation ('10.55.10.94/24'),
    which is exactly how it appears in the interfaces file.

    Attributes:
        node_id: The shared last octet
        public_ip: Address of vmbr0
        cluster_ip: Address on the cluster fabric VLAN (55)
        ceph_ip: Address on the Ceph VLAN (60)
        pvecm_ip: Address on the PVECM VLAN (50), None if the profile
            has no PVECM VLAN
        net_id: OpenFabric network entity title
    """

    node_id: int
    public_ip: str
    cluster_ip: str
    ceph_ip: str
    pvecm_ip: str | None
    net_id: str

    @property
    def cluster_host(self) -> str:
        """Cluster address without prefix length, used as the loopback /32.

        >>> AddressPlan(94, '192.168.51.94/24', '10.55.10.94/24',
        ...             '10.60.10.94/24', None, '').cluster_host
        '10.55.10.94'
        """
        return self.cluster_ip.split("/")[0]

    def addresses(self) -> list[str]:
        """All assigned addresses in public, pvecm, cluster, ceph order."""
        result = [self.public_ip]
        if self.pvecm_ip is not None:
            result.append(self.pvecm_ip)
        result.extend([self.cluster_ip, self.ceph_ip])
        return result
