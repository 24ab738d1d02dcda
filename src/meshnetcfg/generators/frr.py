"""/etc/frr/frr.conf generator for OpenFabric (fabricd).

The cluster fabric address is announced from the loopback as a passive
/32 host route; every fabric VLAN interface runs OpenFabric with short
hello/CSNP timers so that a broken mesh link is routed around quickly.
"""

from __future__ import annotations

from meshnetcfg.generators.base import template
from meshnetcfg.models.addressing import AddressPlan
from meshnetcfg.models.node import NodeIdentity
from meshnetcfg.models.plan import NetworkPlan

FABRIC_NAME = "1"

INTERFACE_TIMERS = (
    ("csnp-interval", 2),
    ("hello-interval", 1),
    ("hello-multiplier", 2),
)

ROUTER_TIMERS = (
    ("lsp-gen-interval", 1),
    ("max-lsp-lifetime", 600),
    ("lsp-refresh-interval", 180),
)

_FRR_TEMPLATE = template("""\
frr defaults traditional
hostname {{ hostname }}
log syslog warning
ip forwarding
no ipv6 forwarding
service integrated-vtysh-config

interface lo
 ip address {{ loopback }}/32
 ip router openfabric {{ fabric }}
 openfabric passive
{% for iface in fabric_interfaces %}

interface {{ iface }}
 ip router openfabric {{ fabric }}
{% for name, value in interface_timers %}
 openfabric {{ name }} {{ value }}
{% endfor %}
{% endfor %}

line vty

router openfabric {{ fabric }}
 net {{ net_id }}
{% for name, value in router_timers %}
 {{ name }} {{ value }}
{% endfor %}
""")


def generate_frr_config(
    identity: NodeIdentity,
    plan: NetworkPlan,
    addresses: AddressPlan,
) -> str:
    """Render frr.conf for one node."""
    return _FRR_TEMPLATE.render(
        hostname=identity.hostname,
        loopback=addresses.cluster_host,
        fabric=FABRIC_NAME,
        fabric_interfaces=plan.fabric_interfaces(),
        interface_timers=INTERFACE_TIMERS,
        net_id=addresses.net_id,
        router_timers=ROUTER_TIMERS,
    )
