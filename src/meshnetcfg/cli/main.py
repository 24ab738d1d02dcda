"""CLI entry point for meshnetcfg.

Subcommands:
    setup      Configure this node's mesh network and apply it.
    generate   Render configuration for one or all nodes without touching the system.
    check      Validate the deployed files (and optionally the live system).
    reload     Re-run the network reload and FRR restart.
    rollback   Restore the most recent backup.
    rename     Write systemd .link files for persistent NIC names.
    profiles   List the known network profiles.
"""

from __future__ import annotations

import argparse
import logging
import os
import socket
import sys
from pathlib import Path

logger = logging.getLogger("meshnetcfg.cli")


def _load_config(args: argparse.Namespace):
    """Load tool config, handling errors.

    Runs before logging is configured (the log level and file come from
    the config), so failures are printed to stderr directly.
    """
    from meshnetcfg.config import load_config

    config_path = getattr(args, "config", None)
    try:
        return load_config(config_path)
    except FileNotFoundError:
        path = config_path or "meshnetcfg.toml"
        print(f"Error: config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        sys.exit(1)


def _setup_logging(args: argparse.Namespace, config) -> None:
    from meshnetcfg.utils.log import setup_logging

    level = "DEBUG" if args.verbose else config.logging.level
    log_file = Path(args.log_file) if args.log_file else config.logging.file
    setup_logging(level, log_file)


def _get_profile(config, name: str | None):
    try:
        return config.profile(name)
    except KeyError as e:
        logger.error("%s", e.args[0])
        return None


def _require_root() -> bool:
    if os.geteuid() != 0:
        logger.error("This command must be run as root")
        return False
    return True


def _prompt(label: str, default: str | None = None) -> str:
    """Ask for a value on stdin, returning the default on empty input."""
    suffix = f" [{default}]" if default else ""
    answer = input(f"{label}{suffix}: ").strip()
    return answer or (default or "")


def _confirm(question: str) -> bool:
    return input(f"{question} [y/N]: ").strip().lower() in ("y", "yes")


def _short_hostname() -> str:
    return socket.gethostname().split(".")[0]


def _collect_node(args: argparse.Namespace, plan):
    """Resolve hostname, node id and NIC names from flags, defaults and prompts.

    With --auto nothing is prompted for: the hostname defaults to this
    machine's, the node id comes from the profile's node table or the
    hostname's trailing digits, and NICs default to the profile's.
    """
    from meshnetcfg.constraints.errors import InvalidNodeId
    from meshnetcfg.constraints.validators import validate_node_id
    from meshnetcfg.derivations.addresses import node_id_from_hostname
    from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity

    defaults = plan.interfaces
    auto = args.auto

    hostname = args.hostname
    if hostname is None:
        hostname = _short_hostname() if auto else _prompt("Hostname", _short_hostname())

    raw_node = args.node
    if raw_node is None:
        guess = node_id_from_hostname(hostname, plan)
        if auto:
            if guess is None:
                raise InvalidNodeId(
                    f"Cannot derive a node id from hostname {hostname!r}; use --node"
                )
            raw_node = str(guess)
        else:
            raw_node = _prompt(
                f"Node id ({plan.node_ids.describe()})",
                str(guess) if guess is not None else None,
            )
    node_id = validate_node_id(raw_node, plan.node_ids)

    def pick(value: str | None, label: str, default: str) -> str:
        if value is not None:
            return value
        return default if auto else _prompt(label, default)

    public = pick(args.eth0, "Public interface (vmbr0)", defaults.public)
    cluster = None
    if plan.needs_cluster_interface:
        cluster = pick(args.eth1, "PVECM interface (vmbr1)", defaults.cluster)
    ceph = pick(args.eth2, "Ceph/cluster fabric interface", defaults.ceph)

    return NodeIdentity(hostname, node_id), InterfaceAssignment(public, cluster, ceph)


def _print_summary(identity, interfaces, plan) -> None:
    from meshnetcfg.derivations.addresses import derive_addresses

    addresses = derive_addresses(identity.node_id, plan)
    print(f"Node:     {identity}")
    print(f"Profile:  {plan.name}")
    print(f"Public:   {interfaces.public} -> vmbr0 {addresses.public_ip}")
    if addresses.pvecm_ip and interfaces.cluster:
        print(f"PVECM:    {interfaces.cluster} -> {addresses.pvecm_ip}")
    print(f"Fabric:   {interfaces.ceph} -> cluster {addresses.cluster_ip}, "
          f"ceph {addresses.ceph_ip}")
    print(f"NET:      {addresses.net_id}")


# ---------------------------------------------------------------------------
# Subcommand: setup
# ---------------------------------------------------------------------------

def cmd_setup(args: argparse.Namespace) -> int:
    """Configure and apply this node's mesh network."""
    from meshnetcfg.constraints.errors import MeshConfigError
    from meshnetcfg.constraints.interfaces_validation import validate_artifacts
    from meshnetcfg.constraints.validators import validate_node_request
    from meshnetcfg.deploy.apply import setup_node
    from meshnetcfg.deploy.writer import planned_files
    from meshnetcfg.generators.node import generate_node
    from meshnetcfg.supplements import system

    config = _load_config(args)
    _setup_logging(args, config)
    plan = _get_profile(config, args.profile)
    if plan is None:
        return 1

    if not (args.check or args.dry_run) and not _require_root():
        return 1

    include_frr = not args.no_frr
    include_hosts = not args.no_hosts
    try:
        identity, interfaces = _collect_node(args, plan)
        validate_node_request(
            identity, interfaces, plan,
            exists=None if args.force else system.interface_exists,
        )
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1

    artifacts = generate_node(
        identity, interfaces, plan,
        include_frr=include_frr, include_hosts=include_hosts,
    )
    validation = validate_artifacts(artifacts, plan, identity.node_id)
    if validation.has_errors:
        logger.error("Generated configuration is invalid:\n%s", validation.report())
        return 1

    if args.check:
        _print_summary(identity, interfaces, plan)
        print()
        print(validation.report())
        return 0

    if args.dry_run:
        for path, content in planned_files(artifacts, config.paths).items():
            print(f"# === {path} ===")
            print(content, end="" if content.endswith("\n") else "\n")
        print("# === commands ===")
        print(f"hostnamectl set-hostname {identity.hostname}")
        print("ifreload -a")
        if include_frr:
            print("systemctl enable frr.service")
            print("systemctl restart frr.service")
        return 0

    if not system.ovs_available():
        logger.error("Open vSwitch is not installed (ovs-vsctl not found); "
                     "install openvswitch-switch first")
        return 1

    if not (args.auto or args.force):
        _print_summary(identity, interfaces, plan)
        if not _confirm("Write this configuration and reload the network?"):
            logger.info("Aborted by user")
            return 1

    try:
        outcome = setup_node(
            identity, interfaces, plan, config.paths,
            include_frr=include_frr, include_hosts=include_hosts,
        )
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Failed to write configuration: %s", e)
        return 1

    logger.info("Backup saved in %s", outcome.deploy.backup.path)
    if not outcome.ok:
        logger.error(
            "Configuration persisted but not applied; fix the problem and run "
            "'meshnetcfg reload'"
        )
        return 1
    return 0


# ---------------------------------------------------------------------------
# Subcommand: generate
# ---------------------------------------------------------------------------

def _generate_targets(args: argparse.Namespace, plan) -> list:
    """Nodes to render: every table entry with --all-nodes, else --node."""
    from meshnetcfg.constraints.errors import InvalidHostname
    from meshnetcfg.constraints.validators import validate_node_id
    from meshnetcfg.models.node import NodeIdentity

    if args.all_nodes:
        return [NodeIdentity(h, n) for h, n in sorted(plan.nodes, key=lambda x: x[1])]

    node_id = validate_node_id(args.node, plan.node_ids)
    hostname = args.hostname or plan.node_hostname(node_id)
    if hostname is None:
        raise InvalidHostname(f"No hostname known for node {node_id}; use --hostname")
    return [NodeIdentity(hostname, node_id)]


def cmd_generate(args: argparse.Namespace) -> int:
    """Render configuration files for one or more nodes."""
    from meshnetcfg.constraints.errors import MeshConfigError
    from meshnetcfg.constraints.interfaces_validation import validate_artifacts
    from meshnetcfg.constraints.validators import validate_node_request
    from meshnetcfg.generators.node import generate_node
    from meshnetcfg.models.node import InterfaceAssignment

    config = _load_config(args)
    _setup_logging(args, config)
    plan = _get_profile(config, args.profile)
    if plan is None:
        return 1

    if not args.all_nodes and args.node is None:
        logger.error("Give --node or --all-nodes")
        return 1
    if args.all_nodes and not plan.nodes:
        logger.error("Profile %r has no node table", plan.name)
        return 1

    defaults = plan.interfaces
    interfaces = InterfaceAssignment(
        public=args.eth0 or defaults.public,
        cluster=(args.eth1 or defaults.cluster) if plan.needs_cluster_interface else None,
        ceph=args.eth2 or defaults.ceph,
    )

    outputs: dict[str, str] = {}
    try:
        targets = _generate_targets(args, plan)
        for identity in targets:
            validate_node_request(identity, interfaces, plan, exists=None)
            artifacts = generate_node(
                identity, interfaces, plan,
                include_frr=not args.no_frr, include_hosts=False,
            )
            validation = validate_artifacts(artifacts, plan, identity.node_id)
            if validation.has_errors:
                logger.error("Generated configuration for %s is invalid:\n%s",
                             identity, validation.report())
                return 1
            outputs[f"interfaces.{identity.hostname}"] = artifacts.interfaces
            if artifacts.frr_conf:
                outputs[f"frr.conf.{identity.hostname}"] = artifacts.frr_conf
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1

    if args.output_dir and not args.stdout:
        out_dir = Path(args.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in outputs.items():
            (out_dir / filename).write_text(content, encoding="utf-8")
            print(f"  wrote {out_dir / filename} ({len(content)} bytes)")
        print(f"\nGenerated {len(outputs)} config file(s).")
    else:
        for filename, content in outputs.items():
            if len(outputs) > 1:
                print(f"# === {filename} ===")
            print(content, end="")
    return 0


# ---------------------------------------------------------------------------
# Subcommand: check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Validate the deployed configuration files.

    Without --node the node id comes from the profile's node table, or
    else from the NET in the deployed frr.conf. The NET is only compared
    against a node id that did not come from the NET itself.
    """
    from meshnetcfg.constraints.errors import MeshConfigError, ValidationResult
    from meshnetcfg.constraints.interfaces_validation import (
        frr_net_node_id,
        validate_frr_config,
        validate_interfaces_text,
    )
    from meshnetcfg.constraints.validators import validate_node_id
    from meshnetcfg.generators.daemons import fabricd_enabled
    from meshnetcfg.supplements.health import check_live

    config = _load_config(args)
    _setup_logging(args, config)
    plan = _get_profile(config, args.profile)
    if plan is None:
        return 1
    paths = config.paths

    try:
        if args.node is not None:
            node_id = validate_node_id(args.node, plan.node_ids)
        else:
            node_id = plan.node_id_for(_short_hostname())
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1

    result = ValidationResult()
    try:
        result.extend(validate_interfaces_text(paths.interfaces.read_text(encoding="utf-8")))
    except FileNotFoundError:
        result.error("missing_file", f"{paths.interfaces} does not exist",
                     record_id=str(paths.interfaces))

    if not args.no_frr:
        try:
            frr_text = paths.frr_conf.read_text(encoding="utf-8")
        except FileNotFoundError:
            result.error("missing_file", f"{paths.frr_conf} does not exist",
                         record_id=str(paths.frr_conf))
        else:
            result.extend(validate_frr_config(frr_text, node_id, plan.fabric_interfaces()))
            if node_id is None:
                node_id = frr_net_node_id(frr_text)
                if node_id is not None:
                    logger.info("Using node id %d from the deployed NET", node_id)
        try:
            if not fabricd_enabled(paths.frr_daemons.read_text(encoding="utf-8")):
                result.error("fabricd_disabled", "fabricd is not enabled",
                             record_id=str(paths.frr_daemons))
        except FileNotFoundError:
            result.error("missing_file", f"{paths.frr_daemons} does not exist",
                         record_id=str(paths.frr_daemons))

    if args.live:
        if node_id is None:
            logger.warning("Node id unknown; skipping peer reachability (use --node)")
        result.extend(check_live(plan, node_id))

    print(result.report())
    return 1 if result.has_errors else 0


# ---------------------------------------------------------------------------
# Subcommand: reload
# ---------------------------------------------------------------------------

def cmd_reload(args: argparse.Namespace) -> int:
    """Re-apply the written configuration."""
    from meshnetcfg.constraints.errors import ApplyFailed
    from meshnetcfg.deploy.apply import reload_services

    config = _load_config(args)
    _setup_logging(args, config)
    if not _require_root():
        return 1

    try:
        reload_services(include_frr=not args.no_frr)
    except ApplyFailed as e:
        logger.error("%s", e)
        return 1
    logger.info("Network configuration reloaded")
    return 0


# ---------------------------------------------------------------------------
# Subcommand: rollback
# ---------------------------------------------------------------------------

def cmd_rollback(args: argparse.Namespace) -> int:
    """Restore the most recent backup."""
    from meshnetcfg.constraints.errors import MeshConfigError
    from meshnetcfg.deploy.apply import rollback
    from meshnetcfg.deploy.backup import BackupStore

    config = _load_config(args)
    _setup_logging(args, config)
    plan = _get_profile(config, args.profile)
    if plan is None:
        return 1
    if not _require_root():
        return 1

    try:
        latest = BackupStore(config.paths.backup_dir).latest()
        if not args.yes and not _confirm(f"Restore backup {latest.timestamp}?"):
            logger.info("Aborted by user")
            return 1
        record = rollback(config.paths, plan)
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Failed to restore backup: %s", e)
        return 1

    print(f"Restored {', '.join(record.files)} from {record.path}")
    return 0


# ---------------------------------------------------------------------------
# Subcommand: rename
# ---------------------------------------------------------------------------

def _select_interfaces(available: list[str]) -> list[str]:
    print("Available interfaces:")
    for i, name in enumerate(available, start=1):
        print(f"  {i}) {name}")
    answer = _prompt("Interfaces to rename, in order (numbers separated by spaces)")
    selected = []
    for token in answer.split():
        if not token.isdigit() or not 1 <= int(token) <= len(available):
            raise ValueError(f"Invalid selection: {token!r}")
        name = available[int(token) - 1]
        if name in selected:
            raise ValueError(f"Interface {name} already selected")
        selected.append(name)
    return selected


def cmd_rename(args: argparse.Namespace) -> int:
    """Write .link files giving the selected NICs sequential names.

    Existing .link files are backed up under <backup_dir>/links first.
    """
    from meshnetcfg.constraints.errors import MeshConfigError
    from meshnetcfg.constraints.validators import validate_interface_name
    from meshnetcfg.deploy.backup import BackupStore
    from meshnetcfg.deploy.writer import write_atomically
    from meshnetcfg.generators.links import generate_link_files, plan_renames
    from meshnetcfg.supplements import system

    config = _load_config(args)
    _setup_logging(args, config)
    if not args.dry_run and not _require_root():
        return 1

    try:
        validate_interface_name(args.prefix)
        selected = args.interfaces or _select_interfaces(system.list_physical_interfaces())
        if not selected:
            logger.error("No interfaces selected")
            return 1
        renames = []
        for old, new in plan_renames(selected, args.prefix):
            validate_interface_name(old)
            renames.append((system.interface_mac(old), new))
            logger.info("%s will be renamed to %s", old, new)
    except (MeshConfigError, ValueError) as e:
        logger.error("%s", e)
        return 1
    except FileNotFoundError as e:
        logger.error("Cannot read MAC address: %s", e)
        return 1

    link_dir = config.paths.link_dir
    link_files = generate_link_files(renames)
    if args.dry_run:
        for filename, content in link_files.items():
            print(f"# === {link_dir / filename} ===")
            print(content, end="")
        return 0

    if not args.yes and not _confirm(f"Write {len(link_files)} link file(s) to {link_dir}?"):
        logger.info("Aborted by user")
        return 1

    try:
        existing = sorted(link_dir.glob("*.link")) if link_dir.is_dir() else []
        if existing:
            BackupStore(config.paths.backup_dir / "links").create(existing)
        write_atomically({link_dir / name: text for name, text in link_files.items()})
        if not args.no_initramfs:
            system.update_initramfs()
    except MeshConfigError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Failed to write link files: %s", e)
        return 1

    logger.info("Wrote %d link file(s); reboot to apply the new names", len(link_files))
    return 0


# ---------------------------------------------------------------------------
# Subcommand: profiles
# ---------------------------------------------------------------------------

def cmd_profiles(args: argparse.Namespace) -> int:
    """List known profiles and their address plan."""
    config = _load_config(args)

    for name, plan in sorted(config.profiles.items()):
        marker = " (default)" if name == config.default_profile else ""
        print(f"{name}{marker}: {plan.description}")
        print(f"  node ids:  {plan.node_ids.describe()}")
        print(f"  vmbr0:     {plan.public_prefix}<id>/24 gw {plan.public_gateway}, "
              f"mtu {plan.public_mtu}")
        for bridge in plan.bridges:
            print(f"  {bridge.name}:     {bridge.uplink.value} uplink, mtu {plan.fabric_mtu}")
            for vlan in bridge.vlans:
                print(f"    VLAN {vlan.id:>3d}: {vlan.role.value:<8s} {vlan.prefix}<id>/24")
        if plan.nodes:
            nodes = ", ".join(f"{h}={n}" for h, n in plan.nodes)
            print(f"  nodes:     {nodes}")
        print()

    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _add_node_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--node", help="Node id (last octet of every address)")
    parser.add_argument("--hostname", help="Node hostname")
    parser.add_argument("--eth0", help="Public interface (vmbr0 uplink)")
    parser.add_argument("--eth1", help="PVECM interface (vmbr1 uplink)")
    parser.add_argument("--eth2", help="Ceph/cluster fabric interface (vmbr2 uplink)")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="meshnetcfg",
        description="Configure Proxmox full-mesh networking with OVS and FRR OpenFabric",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to meshnetcfg.toml (default: ./meshnetcfg.toml, /etc/meshnetcfg/)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug messages",
    )
    parser.add_argument(
        "--log-file",
        help="Log file (default from config, /var/log/meshnetcfg.log)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # setup
    setup_parser = subparsers.add_parser("setup", help="Configure this node and apply it")
    _add_node_args(setup_parser)
    setup_parser.add_argument("--profile", help="Network profile (default from config)")
    setup_parser.add_argument(
        "--auto", action="store_true",
        help="Do not prompt; use defaults for anything not given",
    )
    setup_parser.add_argument(
        "--check", action="store_true",
        help="Validate inputs and render, but write nothing",
    )
    setup_parser.add_argument(
        "--dry-run", action="store_true",
        help="Print the files and commands instead of applying them",
    )
    setup_parser.add_argument("--no-frr", action="store_true", help="Skip FRR configuration")
    setup_parser.add_argument("--no-hosts", action="store_true", help="Do not edit /etc/hosts")
    setup_parser.add_argument(
        "--force", action="store_true",
        help="Skip the interface existence check and confirmation",
    )

    # generate
    gen_parser = subparsers.add_parser("generate", help="Render configuration files")
    _add_node_args(gen_parser)
    gen_parser.add_argument("--profile", help="Network profile (default from config)")
    gen_parser.add_argument(
        "--all-nodes", action="store_true",
        help="Render every node in the profile's node table",
    )
    gen_parser.add_argument("--output-dir", help="Write interfaces.<host> and frr.conf.<host> here")
    gen_parser.add_argument("--stdout", action="store_true", help="Print to stdout")
    gen_parser.add_argument("--no-frr", action="store_true", help="Skip frr.conf")

    # check
    check_parser = subparsers.add_parser("check", help="Validate deployed configuration")
    check_parser.add_argument("--profile", help="Network profile (default from config)")
    check_parser.add_argument(
        "--node", help="Node id (default: from the node table or the deployed NET)",
    )
    check_parser.add_argument("--no-frr", action="store_true", help="Skip FRR checks")
    check_parser.add_argument(
        "--live", action="store_true",
        help="Also check MTUs, OVS, FRR and peer reachability on the running system",
    )

    # reload
    reload_parser = subparsers.add_parser("reload", help="Reload network and restart FRR")
    reload_parser.add_argument("--no-frr", action="store_true", help="Only reload the network")

    # rollback
    rollback_parser = subparsers.add_parser("rollback", help="Restore the latest backup")
    rollback_parser.add_argument("--profile", help="Profile whose OVS bridges are removed")
    rollback_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask")

    # rename
    rename_parser = subparsers.add_parser("rename", help="Persistently rename NICs")
    rename_parser.add_argument(
        "interfaces", nargs="*",
        help="NICs to rename, in order (default: choose interactively)",
    )
    rename_parser.add_argument("--prefix", default="eth", help="New name prefix (default: eth)")
    rename_parser.add_argument("--dry-run", action="store_true", help="Print the .link files")
    rename_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask")
    rename_parser.add_argument(
        "--no-initramfs", action="store_true",
        help="Do not run update-initramfs",
    )

    # profiles
    subparsers.add_parser("profiles", help="List network profiles")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "setup": cmd_setup,
        "generate": cmd_generate,
        "check": cmd_check,
        "reload": cmd_reload,
        "rollback": cmd_rollback,
        "rename": cmd_rename,
        "profiles": cmd_profiles,
    }

    try:
        return commands[args.command](args)
    except (KeyboardInterrupt, EOFError):
        print(file=sys.stderr)
        logger.error("Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
