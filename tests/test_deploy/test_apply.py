"""Tests for node setup, reload and rollback with the system calls mocked."""

import subprocess
from unittest.mock import patch

import pytest

from meshnetcfg.constraints.errors import ApplyFailed, NoBackupFound
from meshnetcfg.deploy.apply import reload_services, rollback, setup_node
from meshnetcfg.deploy.backup import BackupStore
from meshnetcfg.models.plan import MESH


class FakeRun:
    """Stand-in for subprocess.run that records commands."""

    def __init__(self, fail_on=None):
        self.commands = []
        self.fail_on = fail_on

    def __call__(self, argv, **kwargs):
        self.commands.append(list(argv))
        returncode = 1 if self.fail_on and argv[:len(self.fail_on)] == self.fail_on else 0
        return subprocess.CompletedProcess(argv, returncode, stdout="", stderr="boom")


@pytest.fixture
def fake_run():
    run = FakeRun()
    with patch("meshnetcfg.supplements.system.subprocess.run", run):
        yield run


class TestReloadServices:
    def test_order(self, fake_run):
        reload_services()
        assert fake_run.commands == [
            ["ifreload", "-a"],
            ["systemctl", "enable", "frr.service"],
            ["systemctl", "restart", "frr.service"],
        ]

    def test_without_frr(self, fake_run):
        reload_services(include_frr=False)
        assert fake_run.commands == [["ifreload", "-a"]]

    def test_failure_raises(self):
        run = FakeRun(fail_on=["ifreload"])
        with patch("meshnetcfg.supplements.system.subprocess.run", run):
            with pytest.raises(ApplyFailed) as excinfo:
                reload_services()
        assert excinfo.value.returncode == 1
        assert run.commands == [["ifreload", "-a"]]


class TestSetupNode:
    def test_writes_and_applies(self, fake_run, paths, pve4, mesh_nics):
        outcome = setup_node(pve4, mesh_nics, MESH, paths)

        assert outcome.ok
        assert "iface vmbr2.55 inet static" in paths.interfaces.read_text()
        assert "net 49.0001.1000.0000.005e.00" in paths.frr_conf.read_text()
        assert paths.hostname.read_text() == "pve4\n"
        assert ["hostnamectl", "set-hostname", "pve4"] in fake_run.commands
        assert fake_run.commands[-1] == ["systemctl", "restart", "frr.service"]

    def test_reload_failure_keeps_files(self, paths, pve4, mesh_nics):
        run = FakeRun(fail_on=["ifreload"])
        with patch("meshnetcfg.supplements.system.subprocess.run", run):
            outcome = setup_node(pve4, mesh_nics, MESH, paths)

        assert not outcome.ok
        assert outcome.apply_error.command == ["ifreload", "-a"]
        assert "vmbr2.55" in paths.interfaces.read_text()
        assert ["systemctl", "restart", "frr.service"] not in run.commands

    def test_rerun_is_stable(self, fake_run, paths, pve4, mesh_nics):
        setup_node(pve4, mesh_nics, MESH, paths)
        first = paths.interfaces.read_text()
        setup_node(pve4, mesh_nics, MESH, paths)
        assert paths.interfaces.read_text() == first
        assert len(BackupStore(paths.backup_dir).records()) == 2


class TestRollback:
    def test_restores_latest_backup(self, fake_run, paths, pve4, mesh_nics):
        paths.interfaces.write_text("auto lo\niface lo inet loopback\n")
        setup_node(pve4, mesh_nics, MESH, paths)
        fake_run.commands.clear()

        record = rollback(paths, MESH)

        assert record.files == ("interfaces",)
        assert paths.interfaces.read_text() == "auto lo\niface lo inet loopback\n"
        assert fake_run.commands == [
            ["systemctl", "stop", "frr.service"],
            ["ovs-vsctl", "--if-exists", "del-br", "vmbr1"],
            ["ovs-vsctl", "--if-exists", "del-br", "vmbr2"],
            ["ifreload", "-a"],
            ["systemctl", "start", "frr.service"],
            ["ip", "link", "show", "vmbr0"],
            ["systemctl", "is-active", "--quiet", "frr"],
        ]

    def test_no_backup(self, fake_run, paths):
        with pytest.raises(NoBackupFound):
            rollback(paths, MESH)
        assert fake_run.commands == []

    def test_backup_without_interfaces(self, fake_run, paths):
        paths.frr_conf.write_text("router openfabric 1\n")
        BackupStore(paths.backup_dir).create([paths.frr_conf])
        with pytest.raises(NoBackupFound):
            rollback(paths, MESH)

    def test_missing_vmbr0_after_restore(self, paths):
        paths.interfaces.write_text("auto lo\niface lo inet loopback\n")
        BackupStore(paths.backup_dir).create([paths.interfaces])
        run = FakeRun(fail_on=["ip", "link", "show", "vmbr0"])
        with patch("meshnetcfg.supplements.system.subprocess.run", run):
            with pytest.raises(ApplyFailed, match="vmbr0 missing"):
                rollback(paths, MESH)
        assert ["systemctl", "is-active", "--quiet", "frr"] not in run.commands

    def test_frr_down_after_restore(self, paths):
        paths.interfaces.write_text("auto lo\niface lo inet loopback\n")
        BackupStore(paths.backup_dir).create([paths.interfaces])
        run = FakeRun(fail_on=["systemctl", "is-active"])
        with patch("meshnetcfg.supplements.system.subprocess.run", run):
            with pytest.raises(ApplyFailed, match="FRR not running"):
                rollback(paths, MESH)
        assert paths.interfaces.read_text() == "auto lo\niface lo inet loopback\n"
