"""/etc/hosts block listing every known mesh member.

Each node resolves to its cluster fabric address, the one announced on
the loopback and reachable over any surviving mesh path.
"""

from __future__ import annotations

from meshnetcfg.derivations.addresses import derive_addresses
from meshnetcfg.generators.base import template
from meshnetcfg.models.plan import NetworkPlan
from meshnetcfg.utils.ip import is_dotted_quad

HOSTS_MARKER = "# Proxmox Mesh Cluster Nodes"

_HOSTS_TEMPLATE = template("""\
{{ marker }}
{% for ip, hostname in entries %}
{{ ip }} {{ hostname }}
{% endfor %}
""")


def generate_hosts_block(plan: NetworkPlan) -> str:
    """Render the hosts block for the profile's node table.

    Returns an empty string for profiles without a node table.
    """
    if not plan.nodes:
        return ""
    entries = [
        (derive_addresses(node_id, plan).cluster_host, hostname)
        for hostname, node_id in sorted(plan.nodes, key=lambda n: n[1])
    ]
    return _HOSTS_TEMPLATE.render(marker=HOSTS_MARKER, entries=entries)


def _entry_subnet(line: str) -> str | None:
    """The /24 of a hosts entry's address, or None for other lines.

    >>> _entry_subnet('10.55.10.90 pve')
    '10.55.10'
    >>> _entry_subnet('# comment') is None
    True
    """
    parts = line.split()
    if len(parts) < 2 or not is_dotted_quad(parts[0]):
        return None
    return parts[0].rsplit(".", 1)[0]


def merge_hosts_block(existing: str, block: str) -> str:
    """Insert the hosts block into an existing hosts file.

    An earlier block is removed first, so re-running setup does not
    duplicate entries. Only the marker line and the entries directly
    under it whose address lies in a subnet the new block uses are
    removed; anything else a user added there is kept.
    """
    owned = {_entry_subnet(line) for line in block.splitlines()} - {None}
    kept: list[str] = []
    in_block = False
    for line in existing.splitlines():
        if line.strip() == HOSTS_MARKER:
            in_block = True
            continue
        if in_block:
            if not line.strip():
                in_block = False
            elif _entry_subnet(line) in owned:
                continue
        kept.append(line)

    while kept and not kept[-1].strip():
        kept.pop()

    if not block:
        return "\n".join(kept) + "\n" if kept else ""
    head = "\n".join(kept) + "\n\n" if kept else ""
    return head + block
