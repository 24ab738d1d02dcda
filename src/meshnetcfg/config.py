"""Load tool configuration from meshnetcfg.toml.

The file is optional: without one, the built-in profiles and the
standard Proxmox paths are used.
"""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from meshnetcfg.models.plan import (
    BUILTIN_PLANS,
    DefaultInterfaces,
    NetworkPlan,
    NodeIdPolicy,
)

DEFAULT_CONFIG_LOCATIONS = (
    Path("meshnetcfg.toml"),
    Path("/etc/meshnetcfg/meshnetcfg.toml"),
)


@dataclass
class PathsConfig:
    """Files the tool reads and replaces on the node."""

    interfaces: Path = field(default_factory=lambda: Path("/etc/network/interfaces"))
    frr_conf: Path = field(default_factory=lambda: Path("/etc/frr/frr.conf"))
    frr_daemons: Path = field(default_factory=lambda: Path("/etc/frr/daemons"))
    hosts: Path = field(default_factory=lambda: Path("/etc/hosts"))
    hostname: Path = field(default_factory=lambda: Path("/etc/hostname"))
    backup_dir: Path = field(default_factory=lambda: Path("/etc/network/backups"))
    lock_file: Path = field(default_factory=lambda: Path("/run/lock/meshnetcfg.lock"))
    link_dir: Path = field(default_factory=lambda: Path("/etc/systemd/network"))


@dataclass
class LoggingConfig:
    """Log file location and default level."""

    file: Path | None = field(default_factory=lambda: Path("/var/log/meshnetcfg.log"))
    level: str = "INFO"


@dataclass
class MeshConfig:
    """Full tool configuration.

    Combines the known profiles (built-in plus any declared in the TOML
    file) with file locations and logging settings.
    """

    paths: PathsConfig = field(default_factory=PathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    default_profile: str = "mesh"
    profiles: dict[str, NetworkPlan] = field(default_factory=lambda: dict(BUILTIN_PLANS))
    source: Path | None = None

    def profile(self, name: str | None = None) -> NetworkPlan:
        """Look up a profile by name (default profile if None).

        Raises:
            KeyError: If no such profile exists.
        """
        key = name or self.default_profile
        if key not in self.profiles:
            known = ", ".join(sorted(self.profiles))
            raise KeyError(f"Unknown profile {key!r} (known: {known})")
        return self.profiles[key]


def _build_paths(data: dict) -> PathsConfig:
    section = data.get("paths", {})
    defaults = PathsConfig()
    return PathsConfig(**{
        f.name: Path(section[f.name]) if f.name in section else getattr(defaults, f.name)
        for f in dataclasses.fields(PathsConfig)
    })


def _build_logging(data: dict) -> LoggingConfig:
    section = data.get("logging", {})
    config = LoggingConfig()
    if "file" in section:
        config.file = Path(section["file"]) if section["file"] else None
    if "level" in section:
        config.level = str(section["level"]).upper()
    return config


def _build_node_ids(section: dict, base: NodeIdPolicy) -> NodeIdPolicy:
    if "node_ids" in section and "node_id_range" in section:
        raise ValueError("Use either node_ids (whitelist) or node_id_range, not both")
    if "node_ids" in section:
        return NodeIdPolicy(allowed=tuple(int(n) for n in section["node_ids"]))
    if "node_id_range" in section:
        low, high = section["node_id_range"]
        return NodeIdPolicy(minimum=int(low), maximum=int(high))
    return base


def _build_profile(name: str, section: dict, known: dict[str, NetworkPlan]) -> NetworkPlan:
    """Build a custom profile from a [profiles.<name>] table.

    Unset keys are inherited from the ``base`` profile (default 'mesh').
    """
    base_name = section.get("base", "mesh")
    if base_name not in known:
        raise ValueError(f"Profile {name!r}: unknown base profile {base_name!r}")
    base = known[base_name]

    overrides: dict = {"name": name, "description": section.get("description", "")}
    for key in ("public_prefix", "public_gateway"):
        if key in section:
            overrides[key] = str(section[key])
    for key in ("public_mtu", "fabric_mtu", "rstp_path_cost", "rstp_priority", "post_up_sleep"):
        if key in section:
            overrides[key] = int(section[key])
    if "public_vlan_aware" in section:
        overrides["public_vlan_aware"] = bool(section["public_vlan_aware"])

    overrides["node_ids"] = _build_node_ids(section, base.node_ids)

    if "nodes" in section:
        overrides["nodes"] = tuple(
            sorted(((str(h), int(n)) for h, n in section["nodes"].items()), key=lambda x: x[1])
        )
    if "interfaces" in section:
        iface = section["interfaces"]
        overrides["interfaces"] = DefaultInterfaces(
            public=iface.get("public", base.interfaces.public),
            cluster=iface.get("cluster", base.interfaces.cluster),
            ceph=iface.get("ceph", base.interfaces.ceph),
        )

    return dataclasses.replace(base, **overrides)


def _build_profiles(data: dict) -> dict[str, NetworkPlan]:
    profiles = dict(BUILTIN_PLANS)
    for name, section in data.get("profiles", {}).items():
        profiles[name] = _build_profile(name, section, profiles)
    return profiles


def _find_config() -> Path | None:
    for candidate in DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Path | str | None = None) -> MeshConfig:
    """Load configuration from a TOML file.

    If config_path is None, looks for meshnetcfg.toml in the current
    directory and then /etc/meshnetcfg/, falling back to defaults.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        ValueError: If a profile definition is inconsistent.
    """
    if config_path is None:
        found = _find_config()
        if found is None:
            return MeshConfig()
        config_path = found
    else:
        config_path = Path(config_path)

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = _build_profiles(data)
    default_profile = data.get("defaults", {}).get("profile", "mesh")
    if default_profile not in profiles:
        raise ValueError(f"Default profile {default_profile!r} is not defined")

    return MeshConfig(
        paths=_build_paths(data),
        logging=_build_logging(data),
        default_profile=default_profile,
        profiles=profiles,
        source=config_path,
    )
