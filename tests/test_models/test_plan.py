"""Tests for network plan models and the built-in profiles."""

import pytest

from meshnetcfg.models.plan import (
    BUILTIN_PLANS,
    CLUSTER,
    FABRIC,
    MESH,
    NodeIdPolicy,
    UplinkRole,
    VlanRole,
)


class TestNodeIdPolicy:
    def test_range_bounds_inclusive(self):
        policy = NodeIdPolicy(1, 255)
        assert policy.accepts(1)
        assert policy.accepts(255)
        assert not policy.accepts(0)
        assert not policy.accepts(256)

    def test_whitelist(self):
        policy = NodeIdPolicy(allowed=(90, 91, 92, 93, 94))
        assert policy.is_whitelist
        assert policy.accepts(94)
        assert not policy.accepts(95)
        assert not policy.accepts(1)

    def test_describe(self):
        assert NodeIdPolicy(1, 254).describe() == "1-254"
        assert NodeIdPolicy(allowed=(90, 91)).describe() == "one of 90, 91"

    def test_invalid_range_rejected(self):
        with pytest.raises(ValueError):
            NodeIdPolicy(10, 5)
        with pytest.raises(ValueError):
            NodeIdPolicy(1, 300)

    def test_whitelist_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            NodeIdPolicy(allowed=(90, 256))


class TestBuiltinPlans:
    def test_registry(self):
        assert set(BUILTIN_PLANS) == {"mesh", "cluster", "fabric"}

    def test_canonical_vlans(self):
        for plan in (MESH, CLUSTER):
            assert plan.vlan_for(VlanRole.PVECM).id == 50
            assert plan.vlan_for(VlanRole.CLUSTER).id == 55
            assert plan.vlan_for(VlanRole.CEPH).id == 60
        assert FABRIC.vlan_for(VlanRole.PVECM) is None
        assert FABRIC.vlan_for(VlanRole.CLUSTER).id == 55

    def test_vlan_tags_unique_per_plan(self):
        for plan in BUILTIN_PLANS.values():
            tags = [v.id for v in plan.vlans]
            assert len(tags) == len(set(tags))

    def test_fabric_interfaces(self):
        assert MESH.fabric_interfaces() == ("vmbr1.50", "vmbr2.55", "vmbr2.60")
        assert FABRIC.fabric_interfaces() == ("vmbr2.55", "vmbr2.60")

    def test_bridge_for_vlan(self):
        assert MESH.bridge_for_vlan(VlanRole.PVECM).name == "vmbr1"
        assert MESH.bridge_for_vlan(VlanRole.CEPH).name == "vmbr2"

    def test_uplinks(self):
        assert MESH.uplink_roles() == (UplinkRole.CLUSTER, UplinkRole.CEPH)
        assert MESH.needs_cluster_interface
        assert not FABRIC.needs_cluster_interface

    def test_cluster_profile(self):
        assert CLUSTER.public_mtu == 9000
        assert CLUSTER.public_vlan_aware
        assert CLUSTER.node_ids.is_whitelist
        assert CLUSTER.node_hostname(94) == "pve4"
        assert CLUSTER.node_id_for("pve") == 90
        assert CLUSTER.node_hostname(95) is None

    def test_mesh_defaults(self):
        assert MESH.public_mtu == 1500
        assert MESH.fabric_mtu == 9000
        assert MESH.nodes == ()
        assert MESH.node_ids.describe() == "1-255"
