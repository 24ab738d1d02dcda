"""Input validators for node identity and interface selection.

Each validator returns None on success and raises a MeshConfigError
subclass on failure. validate_node_request runs all of them in the order
a user supplies the values and is called before anything is rendered.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from meshnetcfg.constraints.errors import (
    InterfaceNotFound,
    InvalidHostname,
    InvalidInterfaceName,
    InvalidIp,
    InvalidNodeId,
)
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import NetworkPlan, NodeIdPolicy
from meshnetcfg.supplements.system import interface_exists
from meshnetcfg.utils.ip import is_dotted_quad

HOSTNAME_RE = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$')
_INTERFACE_NAME_RE = re.compile(r'^[a-zA-Z0-9_-]+$')
_DIGITS_RE = re.compile(r'^[0-9]+$')


def validate_hostname(hostname: str) -> None:
    """Reject anything but 1-63 alphanumerics with internal hyphens."""
    if not isinstance(hostname, str) or not HOSTNAME_RE.fullmatch(hostname):
        raise InvalidHostname(f"Invalid hostname format: {hostname!r}")


def parse_node_id(value: int | str) -> int:
    """Convert user input to an integer node id.

    Accepts ints and strings of ASCII digits; rejects bools, signs,
    whitespace and anything else.

    >>> parse_node_id('94')
    94
    """
    if isinstance(value, bool):
        raise InvalidNodeId(f"Node id must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and _DIGITS_RE.fullmatch(value):
        return int(value)
    raise InvalidNodeId(f"Node id must be an integer, got {value!r}")


def validate_node_id(node_id: int | str, policy: NodeIdPolicy) -> int:
    """Check a node id against one explicit policy; return it as an int."""
    value = parse_node_id(node_id)
    if not policy.accepts(value):
        raise InvalidNodeId(
            f"Invalid node id {value}: must be {policy.describe()}"
        )
    return value


def validate_ip(address: str) -> None:
    """Require exactly four dot-separated integers, each in 0-255."""
    if not isinstance(address, str) or not is_dotted_quad(address):
        raise InvalidIp(f"Invalid IPv4 address: {address!r}")


def validate_interface_name(name: str) -> None:
    if not isinstance(name, str) or not _INTERFACE_NAME_RE.fullmatch(name):
        raise InvalidInterfaceName(
            f"Invalid interface name: {name!r}. "
            "Use only letters, numbers, dashes or underscores."
        )


def validate_interface_exists(
    name: str,
    exists: Callable[[str], bool] = interface_exists,
) -> None:
    """Require that the NIC is present right now.

    Best effort: the interface can still vanish before it is used.
    """
    validate_interface_name(name)
    if not exists(name):
        raise InterfaceNotFound(name)


def validate_node_request(
    identity: NodeIdentity,
    interfaces: InterfaceAssignment,
    plan: NetworkPlan,
    exists: Callable[[str], bool] | None = interface_exists,
) -> None:
    """Validate everything needed to render a node's configuration.

    Pass ``exists=None`` to skip the interface existence check, e.g.
    when rendering configuration for another host.
    """
    validate_hostname(identity.hostname)
    validate_node_id(identity.node_id, plan.node_ids)
    if plan.needs_cluster_interface and not interfaces.cluster:
        raise InvalidInterfaceName(
            f"Profile {plan.name!r} needs a PVECM (vmbr1) interface"
        )
    for name in interfaces.required_names(plan):
        if exists is None:
            validate_interface_name(name)
        else:
            validate_interface_exists(name, exists)
