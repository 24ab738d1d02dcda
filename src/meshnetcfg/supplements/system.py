"""Host queries and actions through external commands.

Everything that touches the running system goes through run_command so
that a non-zero exit surfaces as ApplyFailed and tests can patch a
single subprocess.run call site.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from meshnetcfg.constraints.errors import ApplyFailed

logger = logging.getLogger(__name__)

_MTU_RE = re.compile(r'\bmtu (\d+)')
_LINK_LINE_RE = re.compile(r'^\d+:\s+([^:@\s]+)(?:@\S+)?:')
_VIRTUAL_PREFIXES = ("lo", "vmbr", "tap", "fwln", "fwpr", "fwbr", "veth", "ovs-system")

SYS_CLASS_NET = Path("/sys/class/net")


def run_command(
    argv: list[str],
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an external command and capture its output.

    Raises:
        ApplyFailed: If check is set and the command exits non-zero, or
            the binary does not exist.
    """
    logger.debug("Running: %s", " ".join(argv))
    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ApplyFailed(argv, 127, str(e)) from e
    except subprocess.TimeoutExpired as e:
        raise ApplyFailed(argv, -1, f"timed out after {timeout} seconds") from e

    if check and result.returncode != 0:
        raise ApplyFailed(argv, result.returncode, result.stderr)
    return result


def interface_exists(name: str) -> bool:
    """Check whether a network interface is present (``ip link show``)."""
    try:
        result = run_command(["ip", "link", "show", name], check=False)
    except ApplyFailed:
        return False
    return result.returncode == 0


def interface_mtu(name: str) -> int | None:
    """Return the current MTU of an interface, or None if it is absent."""
    try:
        result = run_command(["ip", "link", "show", name])
    except ApplyFailed:
        return None
    match = _MTU_RE.search(result.stdout)
    return int(match.group(1)) if match else None


def list_physical_interfaces() -> list[str]:
    """List NIC names, skipping loopback, bridges and Proxmox firewall links."""
    result = run_command(["ip", "-o", "link", "show"])
    names = []
    for line in result.stdout.splitlines():
        match = _LINK_LINE_RE.match(line)
        if match is None:
            continue
        name = match.group(1)
        if name.startswith(_VIRTUAL_PREFIXES):
            continue
        names.append(name)
    return names


def interface_mac(name: str, sys_class_net: Path = SYS_CLASS_NET) -> str:
    """Read the permanent-looking MAC address of an interface from sysfs.

    Raises:
        FileNotFoundError: If the interface has no address file.
    """
    return (sys_class_net / name / "address").read_text().strip()


def ovs_available() -> bool:
    """Check that Open vSwitch userspace tools are installed."""
    try:
        result = run_command(["ovs-vsctl", "--version"], check=False)
    except ApplyFailed:
        return False
    return result.returncode == 0


def reload_network() -> None:
    run_command(["ifreload", "-a"])


def enable_frr() -> None:
    run_command(["systemctl", "enable", "frr.service"])


def start_frr() -> None:
    run_command(["systemctl", "start", "frr.service"])


def stop_frr() -> None:
    run_command(["systemctl", "stop", "frr.service"])


def restart_frr() -> None:
    run_command(["systemctl", "restart", "frr.service"])


def frr_is_active() -> bool:
    result = run_command(["systemctl", "is-active", "--quiet", "frr"], check=False)
    return result.returncode == 0


def frr_running_config() -> str:
    return run_command(["vtysh", "-c", "show running-config"]).stdout


def set_hostname(hostname: str, hostname_file: Path) -> None:
    """Persist the hostname and apply it to the running system."""
    hostname_file.write_text(hostname + "\n", encoding="utf-8")
    run_command(["hostnamectl", "set-hostname", hostname])


def delete_ovs_bridge(bridge: str) -> bool:
    """Remove an OVS bridge; returns False if it did not exist."""
    result = run_command(["ovs-vsctl", "--if-exists", "del-br", bridge], check=False)
    return result.returncode == 0


def update_initramfs() -> None:
    run_command(["update-initramfs", "-u", "-k", "all"])
