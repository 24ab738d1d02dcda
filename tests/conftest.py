"""Shared test fixtures for meshnetcfg."""

import logging
import textwrap

import pytest

from meshnetcfg.config import PathsConfig
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so tests do not share streams."""
    yield
    logger = logging.getLogger("meshnetcfg")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def paths(tmp_path):
    """PathsConfig with every file under a temporary /etc."""
    etc = tmp_path / "etc"
    (etc / "network").mkdir(parents=True)
    (etc / "frr").mkdir()
    return PathsConfig(
        interfaces=etc / "network" / "interfaces",
        frr_conf=etc / "frr" / "frr.conf",
        frr_daemons=etc / "frr" / "daemons",
        hosts=etc / "hosts",
        hostname=etc / "hostname",
        backup_dir=etc / "network" / "backups",
        lock_file=tmp_path / "run" / "meshnetcfg.lock",
        link_dir=etc / "systemd" / "network",
    )


@pytest.fixture
def config_file(tmp_path, paths):
    """A meshnetcfg.toml pointing every path at the temporary tree."""
    config = tmp_path / "meshnetcfg.toml"
    config.write_text(textwrap.dedent(f"""\
        [paths]
        interfaces = "{paths.interfaces}"
        frr_conf = "{paths.frr_conf}"
        frr_daemons = "{paths.frr_daemons}"
        hosts = "{paths.hosts}"
        hostname = "{paths.hostname}"
        backup_dir = "{paths.backup_dir}"
        lock_file = "{paths.lock_file}"
        link_dir = "{paths.link_dir}"

        [logging]
        file = ""
    """))
    return config


@pytest.fixture
def pve4():
    return NodeIdentity("pve4", 94)


@pytest.fixture
def mesh_nics():
    return InterfaceAssignment(public="eth0", cluster="eth1", ceph="eth2")
