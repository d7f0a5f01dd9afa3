"""
Configuration settings for shepherd-scaffold.

This module contains the constants shared by the scaffold, build and dsh
commands, and loads per-project overrides from ``shepherd.yml``.
"""

import copy
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exceptions import ConfigurationError

# Version information
VERSION = "1.0.0"

# Sentinel markers delimiting the managed block in settings.php
SETTINGS_START_MARKER = "START SHEPHERD CONFIG"
SETTINGS_END_MARKER = "END SHEPHERD CONFIG"
HASH_SALT_PLACEHOLDER = "{{ HASH_SALT }}"
HASH_SALT_BYTES = 55

# Project layout relative to the project root
WEB_DIR = "web"
SITES_DEFAULT = "sites/default"
SETTINGS_FILE = "settings.php"
DEFAULT_SETTINGS_FILE = "default.settings.php"
LOCAL_SETTINGS_FILE = "settings.local.php"
SERVICES_FILE = "services.yml"
CONFIG_SYNC_DIR = "config-sync"
FILE_PUBLIC_PATH = "sites/default/files"
SHARED_DIRS = ["shared", "shared/public", "shared/private", "shared/tmp"]
EXECUTABLE_SCRIPTS = ["dsh", "dsh_bash"]
PROJECT_CONFIG_FILE = "shepherd.yml"

# Directory modes
SHARED_DIR_MODE = 0o755
EXECUTABLE_MODE = 0o755

# Composer script events the scaffold responds to
SCAFFOLD_EVENTS = ("post-install-cmd", "post-update-cmd", "post-create-project-cmd")

# Environment that skips development-only scaffolding
LIVE_ENVIRONMENT = "live"

# Prefix of secret files loaded from SHEPHERD_SECRET_PATH
SECRET_FILE_PREFIX = "SHEPHERD_"

# Default project configuration (used if shepherd.yml doesn't exist)
DEFAULT_PROJECT_CONFIG: Dict[str, Any] = {
    "web_user": "www-data",
    "application_root": "/code/web",
    "file_paths": ["/shared/public", "/shared/private", "/shared/tmp"],
    "services_yml": "web/sites/default/services.yml",
    "compose": {
        "service": "web",
        "shell": "bash",
        "domain": None,
    },
}

# shepherd.yml keys that must hold a non-empty string
STRING_KEYS = ("web_user", "application_root", "services_yml")


def get_package_dir() -> Path:
    """Get the installed shepherd_scaffold package directory."""
    return Path(__file__).parent.parent.absolute()


def get_assets_dir() -> Path:
    """Get the directory holding the bundled template assets."""
    return get_package_dir() / "assets"


def get_settings_template_path() -> Path:
    """Get the path to the settings.php block template."""
    return get_assets_dir() / "settings.template"


def get_scaffold_manifest_path() -> Path:
    """Get the path to the file-mapping manifest."""
    return get_assets_dir() / "scaffold.yml"


def get_default_config() -> Dict[str, Any]:
    """Default configuration for projects without a shepherd.yml"""
    return copy.deepcopy(DEFAULT_PROJECT_CONFIG)


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _invalid(config_path: Path, key: str, value: Any, expected: str) -> ConfigurationError:
    return ConfigurationError(
        f"Invalid '{key}' in {config_path}: expected {expected}, got {value!r}",
        error_code="invalid_config",
        details={"config_file": str(config_path), "key": key},
    )


def validate_project_config(config: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
    """Check the types of a merged project configuration.

    A single ``file_paths`` string is wrapped in a list. Anything else of the
    wrong type raises ``ConfigurationError``.
    """
    for key in STRING_KEYS:
        value = config.get(key)
        if not isinstance(value, str) or not value:
            raise _invalid(config_path, key, value, "a non-empty string")

    file_paths = config.get("file_paths")
    if file_paths is None:
        config["file_paths"] = []
    elif isinstance(file_paths, str):
        config["file_paths"] = [file_paths]
    elif not isinstance(file_paths, list) or not all(isinstance(p, str) and p for p in file_paths):
        raise _invalid(config_path, "file_paths", file_paths, "a path or a list of paths")

    compose = config.get("compose")
    if not isinstance(compose, dict):
        raise _invalid(config_path, "compose", compose, "a mapping")
    for key in ("service", "shell"):
        if not isinstance(compose.get(key), str) or not compose[key]:
            raise _invalid(config_path, f"compose.{key}", compose.get(key), "a non-empty string")
    if compose.get("domain") is not None and not isinstance(compose["domain"], str):
        raise _invalid(config_path, "compose.domain", compose["domain"], "a string")
    return config


def get_project_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load project configuration from shepherd.yml merged over the defaults.

    An unreadable or malformed file falls back to the defaults so that a
    broken override never blocks a build.

    Raises:
        ConfigurationError: if a value in shepherd.yml has the wrong type.
    """
    config = get_default_config()
    root = project_root or Path.cwd()
    config_path = root / PROJECT_CONFIG_FILE
    if config_path.exists():
        try:
            with open(config_path) as f:
                overrides = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return config
        if not isinstance(overrides, dict):
            raise _invalid(config_path, "(top level)", overrides, "a mapping")
        _merge(config, overrides)
        validate_project_config(config, config_path)
    return config


def get_file_paths(config: Dict[str, Any]) -> List[str]:
    """Shared directories whose ownership the build resets."""
    file_paths = config.get("file_paths") or []
    if isinstance(file_paths, str):
        return [file_paths]
    return list(file_paths)


def get_sites_default(application_root: str) -> str:
    """Absolute sites/default directory under the application root."""
    return f"{application_root.rstrip('/')}/{SITES_DEFAULT}"
