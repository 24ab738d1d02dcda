"""Tests for the frr.conf generator."""

import textwrap

from meshnetcfg.derivations.addresses import derive_addresses
from meshnetcfg.generators.frr import generate_frr_config
from meshnetcfg.models.node import NodeIdentity
from meshnetcfg.models.plan import CLUSTER, FABRIC, MESH


def _render(identity, plan):
    return generate_frr_config(identity, plan, derive_addresses(identity.node_id, plan))


class TestGenerateFrrConfig:
    def test_node_94_full_output(self, pve4):
        expected = textwrap.dedent("""\
            frr defaults traditional
            hostname pve4
            log syslog warning
            ip forwarding
            no ipv6 forwarding
            service integrated-vtysh-config

            interface lo
             ip address 10.55.10.94/32
             ip router openfabric 1
             openfabric passive

            interface vmbr2.55
             ip router openfabric 1
             openfabric csnp-interval 2
             openfabric hello-interval 1
             openfabric hello-multiplier 2

            interface vmbr2.60
             ip router openfabric 1
             openfabric csnp-interval 2
             openfabric hello-interval 1
             openfabric hello-multiplier 2

            line vty

            router openfabric 1
             net 49.0001.1000.0000.005e.00
             lsp-gen-interval 1
             max-lsp-lifetime 600
             lsp-refresh-interval 180
        """)
        assert _render(pve4, FABRIC) == expected

    def test_node_90(self):
        text = _render(NodeIdentity("pve", 90), CLUSTER)
        assert " net 49.0001.1000.0000.005a.00\n" in text
        assert " ip address 10.55.10.90/32\n" in text
        assert "hostname pve\n" in text

    def test_every_fabric_interface_routed(self, pve4):
        text = _render(pve4, MESH)
        for iface in MESH.fabric_interfaces():
            assert f"interface {iface}\n ip router openfabric 1\n" in text

    def test_deterministic(self, pve4):
        assert _render(pve4, MESH) == _render(pve4, MESH)
