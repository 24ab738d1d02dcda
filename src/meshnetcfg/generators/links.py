"""systemd .link files for persistent NIC renaming.

Produces one ``10-rename-<name>.link`` per renamed NIC, matched by MAC
address. The files live in /etc/systemd/network and take effect after
the initramfs is rebuilt and the node rebooted.
"""

from __future__ import annotations

from meshnetcfg.generators.base import template

_LINK_TEMPLATE = template("""\
[Match]
MACAddress={{ mac }}

[Link]
Name={{ name }}
""")


def link_file_name(new_name: str) -> str:
    """
    >>> link_file_name('eth0')
    '10-rename-eth0.link'
    """
    return f"10-rename-{new_name}.link"


def generate_link_files(renames: list[tuple[str, str]]) -> dict[str, str]:
    """Generate .link files for (mac, new_name) pairs.

    Returns a dict mapping file names to file contents.
    """
    return {
        link_file_name(new_name): _LINK_TEMPLATE.render(mac=mac.lower(), name=new_name)
        for mac, new_name in renames
    }


def plan_renames(selected: list[str], prefix: str) -> list[tuple[str, str]]:
    """Pair the selected NICs with sequential names in selection order.

    >>> plan_renames(['enp1s0', 'enp2s0'], 'eth')
    [('enp1s0', 'eth0'), ('enp2s0', 'eth1')]

    Raises:
        ValueError: If a NIC is selected more than once.
    """
    seen = set()
    for name in selected:
        if name in seen:
            raise ValueError(f"Interface {name} selected more than once")
        seen.add(name)
    return [(old, f"{prefix}{i}") for i, old in enumerate(selected)]
