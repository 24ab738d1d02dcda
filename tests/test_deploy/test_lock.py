"""Tests for the configuration write lock."""

import pytest

from meshnetcfg.deploy.lock import ConfigLock


class TestConfigLock:
    def test_creates_lock_file(self, tmp_path):
        path = tmp_path / "run" / "meshnetcfg.lock"
        with ConfigLock(path):
            assert path.exists()

    def test_second_holder_blocked(self, tmp_path):
        path = tmp_path / "meshnetcfg.lock"
        with ConfigLock(path):
            with pytest.raises(BlockingIOError):
                with ConfigLock(path, blocking=False):
                    pass

    def test_released_on_exit(self, tmp_path):
        path = tmp_path / "meshnetcfg.lock"
        with ConfigLock(path):
            pass
        with ConfigLock(path, blocking=False):
            pass

    def test_released_on_error(self, tmp_path):
        path = tmp_path / "meshnetcfg.lock"
        with pytest.raises(RuntimeError):
            with ConfigLock(path):
                raise RuntimeError("boom")
        with ConfigLock(path, blocking=False):
            pass
