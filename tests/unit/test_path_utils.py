"""
Unit tests for project path resolution.
"""

import json

import pytest

from shepherd_scaffold.exceptions import PathResolutionError
from shepherd_scaffold.utils.path_utils import get_vendor_dir, resolve_project_paths


class TestGetVendorDir:
    """Test locating the Composer vendor directory."""

    def test_default(self, tmp_path):
        assert get_vendor_dir(tmp_path) == tmp_path / "vendor"

    def test_configured_override(self, tmp_path):
        assert get_vendor_dir(tmp_path, "lib") == tmp_path / "lib"

    def test_absolute_configured_override(self, tmp_path):
        target = tmp_path / "elsewhere" / "vendor"
        assert get_vendor_dir(tmp_path, str(target)) == target

    def test_configured_wins_over_composer_json(self, tmp_path):
        (tmp_path / "composer.json").write_text(json.dumps({"config": {"vendor-dir": "app/vendor"}}))
        assert get_vendor_dir(tmp_path, "lib") == tmp_path / "lib"

    def test_ignores_process_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COMPOSER_VENDOR_DIR", "lib")
        assert get_vendor_dir(tmp_path) == tmp_path / "vendor"

    def test_composer_json_vendor_dir(self, tmp_path):
        (tmp_path / "composer.json").write_text(json.dumps({"config": {"vendor-dir": "app/vendor"}}))
        assert get_vendor_dir(tmp_path) == tmp_path / "app" / "vendor"

    def test_malformed_composer_json(self, tmp_path):
        (tmp_path / "composer.json").write_text("{not json")
        assert get_vendor_dir(tmp_path) == tmp_path / "vendor"

    def test_defaults_to_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_vendor_dir().resolve() == (tmp_path / "vendor").resolve()


class TestResolveProjectPaths:
    """Test deriving project paths from the vendor directory."""

    def test_paths(self, tmp_path):
        paths = resolve_project_paths(tmp_path / "vendor")
        root = tmp_path.resolve()

        assert paths.project_root == root
        assert paths.web_root == root / "web"
        assert paths.settings_file == root / "web" / "sites" / "default" / "settings.php"
        assert paths.sites_default == root / "web" / "sites" / "default"
        assert paths.default_settings_file.name == "default.settings.php"
        assert paths.local_settings_file.name == "settings.local.php"
        assert paths.services_file.name == "services.yml"

    def test_creates_missing_vendor_dir(self, tmp_path):
        resolve_project_paths(tmp_path / "vendor")
        assert (tmp_path / "vendor").is_dir()

    def test_symlinked_vendor_dir(self, tmp_path):
        real_vendor = tmp_path / "real" / "vendor"
        real_vendor.mkdir(parents=True)
        link = tmp_path / "project" / "vendor"
        link.parent.mkdir()
        link.symlink_to(real_vendor)

        paths = resolve_project_paths(link)

        assert paths.project_root == (tmp_path / "real").resolve()

    def test_vendor_path_is_a_file(self, tmp_path):
        (tmp_path / "vendor").write_text("")

        with pytest.raises(PathResolutionError) as exc_info:
            resolve_project_paths(tmp_path / "vendor")
        assert exc_info.value.error_code == "path_resolution"
