"""Tests for node identity, NIC assignment and address plan models."""

import pytest

from meshnetcfg.models.addressing import AddressPlan
from meshnetcfg.models.artifacts import BackupRecord
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import FABRIC, MESH, UplinkRole


class TestNodeIdentity:
    def test_str(self):
        assert str(NodeIdentity("pve4", 94)) == "pve4 (node 94)"

    def test_frozen(self):
        identity = NodeIdentity("pve4", 94)
        with pytest.raises(AttributeError):
            identity.node_id = 95


class TestInterfaceAssignment:
    def test_uplink_roles(self):
        nics = InterfaceAssignment("eth0", "eth1", "eth2")
        assert nics.uplink(UplinkRole.CLUSTER) == "eth1"
        assert nics.uplink(UplinkRole.CEPH) == "eth2"

    def test_missing_cluster_uplink(self):
        nics = InterfaceAssignment("eth0", None, "eth1")
        with pytest.raises(ValueError):
            nics.uplink(UplinkRole.CLUSTER)

    def test_required_names_follow_plan(self):
        assert InterfaceAssignment("eth0", "eth1", "eth2").required_names(MESH) == [
            "eth0", "eth1", "eth2",
        ]
        assert InterfaceAssignment("eth0", None, "eth1").required_names(FABRIC) == [
            "eth0", "eth1",
        ]


class TestAddressPlan:
    def test_addresses_order(self):
        plan = AddressPlan(
            94, "192.168.51.94/24", "10.55.10.94/24", "10.60.10.94/24",
            "10.50.10.94/24", "49.0001.1000.0000.005e.00",
        )
        assert plan.addresses() == [
            "192.168.51.94/24", "10.50.10.94/24", "10.55.10.94/24", "10.60.10.94/24",
        ]
        assert plan.cluster_host == "10.55.10.94"

    def test_addresses_without_pvecm(self):
        plan = AddressPlan(3, "192.168.51.3/24", "10.55.10.3/24", "10.60.10.3/24", None, "")
        assert len(plan.addresses()) == 3


class TestBackupRecord:
    def test_ordered_by_timestamp(self, tmp_path):
        older = BackupRecord("20250101_000000", tmp_path / "a")
        newer = BackupRecord("20250102_000000", tmp_path / "b")
        assert max([newer, older]) is newer

    def test_str(self, tmp_path):
        record = BackupRecord("20250101_000000", tmp_path, ("interfaces", "frr.conf"))
        assert str(record) == "20250101_000000 (interfaces, frr.conf)"
