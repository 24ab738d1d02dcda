"""Tests for the FRR daemons toggle, .link files and the node renderer."""

import pytest

from meshnetcfg.generators.daemons import enable_fabricd, fabricd_enabled
from meshnetcfg.generators.links import generate_link_files, link_file_name, plan_renames
from meshnetcfg.generators.node import generate_node
from meshnetcfg.models.plan import CLUSTER, MESH
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity

DEBIAN_DAEMONS = "bgpd=no\nospfd=no\nfabricd=no\nvrrpd=no\n\nvtysh_enable=yes\n"


class TestDaemons:
    def test_enable(self):
        text = enable_fabricd(DEBIAN_DAEMONS)
        assert "fabricd=yes\n" in text
        assert "fabricd=no" not in text
        assert fabricd_enabled(text)

    def test_idempotent(self):
        once = enable_fabricd(DEBIAN_DAEMONS)
        assert enable_fabricd(once) == once

    def test_missing_file_content(self):
        assert enable_fabricd("") == "fabricd=yes\n"

    def test_no_trailing_newline(self):
        assert enable_fabricd("zebra=yes") == "zebra=yes\nfabricd=yes\n"

    def test_disabled(self):
        assert not fabricd_enabled(DEBIAN_DAEMONS)


class TestLinks:
    def test_plan_and_render(self):
        renames = plan_renames(["enp1s0", "enp2s0"], "eth")
        assert renames == [("enp1s0", "eth0"), ("enp2s0", "eth1")]

        files = generate_link_files([("AA:BB:CC:00:11:22", "eth0")])
        assert files == {
            link_file_name("eth0"): "[Match]\nMACAddress=aa:bb:cc:00:11:22\n\n[Link]\nName=eth0\n",
        }

    def test_repeated_interface(self):
        with pytest.raises(ValueError, match="enp1s0 selected more than once"):
            plan_renames(["enp1s0", "enp1s0"], "eth")


class TestGenerateNode:
    def test_all_artifacts(self, pve4, mesh_nics):
        artifacts = generate_node(pve4, mesh_nics, MESH)
        assert "iface vmbr2.55 inet static" in artifacts.interfaces
        assert "router openfabric 1" in artifacts.frr_conf
        assert artifacts.hosts_block is None

    def test_hosts_block_for_node_table(self):
        nics = InterfaceAssignment("eth1", "eth3", "eth2")
        artifacts = generate_node(NodeIdentity("pve4", 94), nics, CLUSTER)
        assert artifacts.hosts_block.startswith("# Proxmox Mesh Cluster Nodes\n")

    def test_without_frr_or_hosts(self):
        nics = InterfaceAssignment("eth1", "eth3", "eth2")
        artifacts = generate_node(
            NodeIdentity("pve4", 94), nics, CLUSTER, include_frr=False, include_hosts=False,
        )
        assert artifacts.frr_conf == ""
        assert artifacts.hosts_block is None
        assert "frr.service" not in artifacts.interfaces

    def test_identical_input_identical_output(self, pve4, mesh_nics):
        assert generate_node(pve4, mesh_nics, MESH) == generate_node(pve4, mesh_nics, MESH)
