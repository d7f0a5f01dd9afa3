"""
Unit tests for the permission toggler.
"""

import os
import stat

import pytest

from shepherd_scaffold.core.permissions import (
    apply_permissions,
    make_config_read_only,
    make_config_writable,
    read_only_preset,
    writable_preset,
)


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.fixture
def sites_default(tmp_path):
    base = tmp_path / "sites" / "default"
    base.mkdir(parents=True)
    for name in ("settings.php", "settings.local.php", "services.yml"):
        (base / name).write_text("")
    yield base
    # Leave the tree removable for tmp_path cleanup.
    os.chmod(base, 0o755)


class TestApplyPermissions:
    """Test applying a path to mode mapping."""

    def test_missing_path_does_not_abort(self, tmp_path):
        existing = tmp_path / "existing.php"
        existing.write_text("")
        existing.chmod(0o644)
        missing = tmp_path / "missing.php"

        report = apply_permissions({missing: 0o444, existing: 0o444})

        assert _mode(existing) == 0o444
        assert report.applied == [(existing, 0o444)]
        assert [path for path, _ in report.errors] == [missing]
        assert not report.ok

    def test_chmod_failure_is_recorded(self, tmp_path, monkeypatch):
        locked = tmp_path / "locked.php"
        other = tmp_path / "other.php"
        locked.write_text("")
        other.write_text("")
        real_chmod = os.chmod

        def fake_chmod(path, mode):
            if str(path) == str(locked):
                raise PermissionError("Operation not permitted")
            real_chmod(path, mode)

        monkeypatch.setattr("shepherd_scaffold.core.permissions.os.chmod", fake_chmod)

        report = apply_permissions({locked: 0o444, other: 0o444})

        assert report.applied == [(other, 0o444)]
        assert report.errors[0][0] == locked
        assert "Operation not permitted" in report.errors[0][1]

    def test_empty_mapping(self):
        report = apply_permissions({})
        assert report.ok
        assert report.applied == []


class TestPresets:
    """Test the config writable and read-only presets."""

    def test_writable_preset_opens_directory_first(self, tmp_path):
        preset = writable_preset(tmp_path)

        assert list(preset)[0] == tmp_path
        assert preset[tmp_path] == 0o775
        assert preset[tmp_path / "settings.php"] == 0o664
        assert preset[tmp_path / "settings.local.php"] == 0o664
        assert preset[tmp_path / "services.yml"] == 0o664

    def test_read_only_preset_closes_directory_last(self, tmp_path):
        preset = read_only_preset(tmp_path)

        assert list(preset)[-1] == tmp_path
        assert preset[tmp_path] == 0o555
        assert preset[tmp_path / "settings.php"] == 0o444
        assert preset[tmp_path / "settings.local.php"] == 0o444
        assert preset[tmp_path / "services.yml"] == 0o664

    def test_read_only_then_writable(self, sites_default):
        report = make_config_read_only(sites_default)

        assert report.ok
        assert _mode(sites_default) == 0o555
        assert _mode(sites_default / "settings.php") == 0o444
        assert _mode(sites_default / "services.yml") == 0o664

        report = make_config_writable(sites_default)

        assert report.ok
        assert _mode(sites_default) == 0o775
        assert _mode(sites_default / "settings.local.php") == 0o664

    def test_missing_local_settings(self, sites_default):
        (sites_default / "settings.local.php").unlink()

        report = make_config_read_only(sites_default)

        assert len(report.errors) == 1
        assert _mode(sites_default) == 0o555
        assert _mode(sites_default / "settings.php") == 0o444
