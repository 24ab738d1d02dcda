"""Tests for configuration loading."""

import textwrap
from pathlib import Path

import pytest

from meshnetcfg.config import DEFAULT_CONFIG_LOCATIONS, load_config
from meshnetcfg.models.plan import BUILTIN_PLANS, MESH


class TestLoadConfig:
    def test_example_config(self):
        """Load meshnetcfg.example.toml from the project root."""
        project_root = Path(__file__).parent.parent.parent
        config = load_config(project_root / "meshnetcfg.example.toml")

        assert config.default_profile == "mesh"
        assert config.paths.interfaces == Path("/etc/network/interfaces")
        lab = config.profile("lab")
        assert lab.public_prefix == "10.0.0."
        assert lab.node_ids.describe() == "one of 11, 12, 13"
        assert lab.nodes == (("lab1", 11), ("lab2", 12), ("lab3", 13))

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for location in DEFAULT_CONFIG_LOCATIONS:
            if location.is_absolute() and location.exists():
                pytest.skip("system-wide config present")
        config = load_config()
        assert config.source is None
        assert config.profiles == BUILTIN_PLANS
        assert config.profile() is MESH
        assert config.paths.lock_file == Path("/run/lock/meshnetcfg.lock")

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_paths_and_logging(self, tmp_path):
        path = tmp_path / "meshnetcfg.toml"
        path.write_text(textwrap.dedent("""\
            [paths]
            interfaces = "/tmp/interfaces"
            backup_dir = "/tmp/backups"

            [logging]
            file = ""
            level = "debug"
        """))
        config = load_config(path)
        assert config.paths.interfaces == Path("/tmp/interfaces")
        assert config.paths.backup_dir == Path("/tmp/backups")
        assert config.paths.frr_conf == Path("/etc/frr/frr.conf")
        assert config.logging.file is None
        assert config.logging.level == "DEBUG"
        assert config.source == path

    def test_custom_profile_inherits_from_base(self, tmp_path):
        path = tmp_path / "meshnetcfg.toml"
        path.write_text(textwrap.dedent("""\
            [defaults]
            profile = "jumbo"

            [profiles.jumbo]
            base = "cluster"
            public_gateway = "192.168.51.254"
            node_id_range = [1, 20]
            description = "Jumbo frames everywhere"

            [profiles.jumbo.interfaces]
            public = "enp1s0"
        """))
        config = load_config(path)
        jumbo = config.profile()
        assert jumbo.name == "jumbo"
        assert jumbo.public_mtu == 9000
        assert jumbo.public_gateway == "192.168.51.254"
        assert jumbo.node_ids.describe() == "1-20"
        assert jumbo.interfaces.public == "enp1s0"
        assert jumbo.interfaces.cluster == "eth3"
        assert jumbo.bridges == BUILTIN_PLANS["cluster"].bridges

    def test_node_ids_and_range_conflict(self, tmp_path):
        path = tmp_path / "meshnetcfg.toml"
        path.write_text("[profiles.x]\nnode_ids = [1]\nnode_id_range = [1, 2]\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_base(self, tmp_path):
        path = tmp_path / "meshnetcfg.toml"
        path.write_text('[profiles.x]\nbase = "nope"\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_default_profile(self, tmp_path):
        path = tmp_path / "meshnetcfg.toml"
        path.write_text('[defaults]\nprofile = "nope"\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_profile_lookup(self):
        from meshnetcfg.config import MeshConfig

        with pytest.raises(KeyError, match="Unknown profile"):
            MeshConfig().profile("nope")
