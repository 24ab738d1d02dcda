"""Tests for the interfaces file parser."""

import textwrap

from meshnetcfg.sources.interfaces_parser import parse_interfaces

PROXMOX_DEFAULT = textwrap.dedent("""\
    # network interface settings; autogenerated
    # Please do NOT modify this file directly

    auto lo
    iface lo inet loopback

    iface eno1 inet manual

    auto vmbr0
    iface vmbr0 inet static
    \taddress 192.168.51.10/24
    \tgateway 192.168.51.1
    \tbridge-ports eno1
    \tbridge-stp off
    \tbridge-fd 0

    source /etc/network/interfaces.d/*
""")


class TestParseInterfaces:
    def test_proxmox_default_file(self):
        parsed = parse_interfaces(PROXMOX_DEFAULT)
        assert parsed.names == ["lo", "eno1", "vmbr0"]
        assert parsed.auto == ["lo", "vmbr0"]
        assert parsed.sources == ["/etc/network/interfaces.d/*"]

        vmbr0 = parsed.first("vmbr0")
        assert vmbr0.family == "inet"
        assert vmbr0.method == "static"
        assert vmbr0.get("address") == "192.168.51.10/24"
        assert vmbr0.line == 10

    def test_dash_and_underscore_equivalent(self):
        parsed = parse_interfaces(PROXMOX_DEFAULT)
        assert parsed.first("vmbr0").get("bridge_ports") == "eno1"

    def test_continuation_lines(self):
        text = textwrap.dedent("""\
            iface eth2 inet manual
                ovs_type OVSPort
                ovs_options other_config:rstp-enable=true \\
                    vlan_mode=native-untagged
        """)
        eth2 = parse_interfaces(text).first("eth2")
        assert eth2.ovs_options() == {
            "other_config:rstp-enable": "true",
            "vlan_mode": "native-untagged",
        }

    def test_comments_inside_stanza(self):
        text = "iface vmbr2 inet manual\n    # ports\n    ovs_mtu 9000\n"
        vmbr2 = parse_interfaces(text).first("vmbr2")
        assert vmbr2.options == [("ovs_mtu", "9000")]
        assert vmbr2.mtu == 9000

    def test_repeated_options_kept_in_order(self):
        text = "iface vmbr2.55 inet static\n    post-up a\n    post-up b\n"
        assert parse_interfaces(text).first("vmbr2.55").get_all("post-up") == ["a", "b"]

    def test_allow_hotplug_counts_as_auto(self):
        parsed = parse_interfaces("allow-hotplug eth3\niface eth3 inet dhcp\n")
        assert parsed.auto == ["eth3"]
        assert parsed.first("eth3").method == "dhcp"

    def test_malformed_iface_line_skipped(self):
        parsed = parse_interfaces("iface broken\n    mtu 9000\niface ok inet manual\n")
        assert parsed.names == ["ok"]
        assert parsed.first("ok").options == []

    def test_find_missing(self):
        parsed = parse_interfaces(PROXMOX_DEFAULT)
        assert parsed.find("vmbr9") == []
        assert parsed.first("vmbr9") is None
