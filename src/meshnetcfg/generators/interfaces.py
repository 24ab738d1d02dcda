"""/etc/network/interfaces generator.

Produces ifupdown2 stanzas in a fixed order:

  1. loopback
  2. public NIC (manual) and the vmbr0 Linux bridge with the public address
  3. per OVS bridge in the profile: the uplink OVSPort with RSTP options,
     the OVSBridge itself, then one OVSIntPort per tagged VLAN

Each VLAN internal port restarts FRR once it comes up so that fabricd
picks up the new interface.
"""

from __future__ import annotations

from typing import NamedTuple

from meshnetcfg.generators.base import template
from meshnetcfg.models.addressing import AddressPlan
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import NetworkPlan, VlanRole

RSTP_PORT_OPTIONS = (
    "other_config:rstp-enable=true",
    "other_config:rstp-path-cost={path_cost}",
    "other_config:rstp-port-admin-edge=false",
    "other_config:rstp-port-auto-edge=false",
    "other_config:rstp-port-mcheck=true",
    "vlan_mode=native-untagged",
)

FRR_RESTART_HOOK = "/usr/bin/systemctl restart frr.service"


class _VlanView(NamedTuple):
    name: str       # e.g. "vmbr2.55"
    tag: int
    address: str    # e.g. "10.55.10.94/24"


class _BridgeView(NamedTuple):
    name: str       # e.g. "vmbr2"
    uplink: str     # e.g. "eth2"
    ports: list[str]
    vlans: list[_VlanView]


_INTERFACES_TEMPLATE = template("""\
# Proxmox mesh network for {{ hostname }} (node {{ node_id }}, profile {{ profile }})
# Generated by meshnetcfg; manual changes are overwritten on the next run.

auto lo
iface lo inet loopback

auto {{ public }}
iface {{ public }} inet manual

auto vmbr0
iface vmbr0 inet static
    address {{ public_ip }}
    gateway {{ gateway }}
    bridge-ports {{ public }}
    bridge-stp off
    bridge-fd 0
{% if vlan_aware %}
    bridge-vlan-aware yes
{% endif %}
    mtu {{ public_mtu }}
{% for bridge in bridges %}

auto {{ bridge.uplink }}
iface {{ bridge.uplink }} inet manual
    ovs_type OVSPort
    ovs_bridge {{ bridge.name }}
    ovs_mtu {{ mtu }}
    ovs_options {{ port_options }}

auto {{ bridge.name }}
iface {{ bridge.name }} inet manual
    ovs_type OVSBridge
    ovs_ports {{ bridge.ports | join(" ") }}
    ovs_mtu {{ mtu }}
    up ovs-vsctl set Bridge ${IFACE} rstp_enable=true other_config:rstp-priority={{ rstp_priority }}
    post-up sleep {{ post_up_sleep }}
{% for vlan in bridge.vlans %}

auto {{ vlan.name }}
iface {{ vlan.name }} inet static
    address {{ vlan.address }}
    ovs_type OVSIntPort
    ovs_bridge {{ bridge.name }}
    ovs_mtu {{ mtu }}
    ovs_options tag={{ vlan.tag }}
{% if frr_hooks %}
    post-up {{ restart_hook }}
{% endif %}
{% endfor %}
{% endfor %}
""")


def _vlan_address(role: VlanRole, addresses: AddressPlan) -> str:
    if role is VlanRole.CLUSTER:
        return addresses.cluster_ip
    if role is VlanRole.CEPH:
        return addresses.ceph_ip
    if addresses.pvecm_ip is None:
        raise ValueError("Profile has a PVECM VLAN but no PVECM address was derived")
    return addresses.pvecm_ip


def _bridge_views(
    interfaces: InterfaceAssignment,
    plan: NetworkPlan,
    addresses: AddressPlan,
) -> list[_BridgeView]:
    views = []
    for bridge in plan.bridges:
        uplink = interfaces.uplink(bridge.uplink)
        vlans = [
            _VlanView(
                name=vlan.interface_name(bridge.name),
                tag=vlan.id,
                address=_vlan_address(vlan.role, addresses),
            )
            for vlan in bridge.vlans
        ]
        views.append(_BridgeView(
            name=bridge.name,
            uplink=uplink,
            ports=[uplink] + [v.name for v in vlans],
            vlans=vlans,
        ))
    return views


def generate_interfaces(
    identity: NodeIdentity,
    interfaces: InterfaceAssignment,
    plan: NetworkPlan,
    addresses: AddressPlan,
    frr_hooks: bool = True,
) -> str:
    """Render the complete interfaces file for one node.

    Args:
        frr_hooks: Add the FRR restart post-up hook to VLAN ports.
            Disabled when the node is set up without routing.
    """
    port_options = " ".join(RSTP_PORT_OPTIONS).format(path_cost=plan.rstp_path_cost)
    return _INTERFACES_TEMPLATE.render(
        hostname=identity.hostname,
        node_id=identity.node_id,
        profile=plan.name,
        public=interfaces.public,
        public_ip=addresses.public_ip,
        gateway=plan.public_gateway,
        vlan_aware=plan.public_vlan_aware,
        public_mtu=plan.public_mtu,
        mtu=plan.fabric_mtu,
        bridges=_bridge_views(interfaces, plan, addresses),
        port_options=port_options,
        rstp_priority=plan.rstp_priority,
        post_up_sleep=plan.post_up_sleep,
        frr_hooks=frr_hooks,
        restart_hook=FRR_RESTART_HOOK,
    )
