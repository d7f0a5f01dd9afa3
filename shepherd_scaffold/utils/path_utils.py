"""
Path utilities for shepherd-scaffold.

This module resolves the project layout from the Composer vendor directory.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.settings import (
    DEFAULT_SETTINGS_FILE,
    LOCAL_SETTINGS_FILE,
    SERVICES_FILE,
    SETTINGS_FILE,
    SITES_DEFAULT,
    WEB_DIR,
)
from ..exceptions import PathResolutionError
from .logging import log_info, log_warning


@dataclass(frozen=True)
class ProjectPaths:
    """Absolute paths derived once per invocation from the vendor directory."""

    project_root: Path
    web_root: Path
    settings_file: Path

    @property
    def sites_default(self) -> Path:
        return self.settings_file.parent

    @property
    def default_settings_file(self) -> Path:
        return self.sites_default / DEFAULT_SETTINGS_FILE

    @property
    def local_settings_file(self) -> Path:
        return self.sites_default / LOCAL_SETTINGS_FILE

    @property
    def services_file(self) -> Path:
        return self.sites_default / SERVICES_FILE


def get_vendor_dir(start: Optional[Path] = None, configured: Optional[str] = None) -> Path:
    """Locate the configured vendor directory.

    Resolution order follows Composer: ``configured`` (the
    ``COMPOSER_VENDOR_DIR`` value from ``ShepherdConfig``), then
    ``config.vendor-dir`` in ``composer.json``, then ``vendor``. Relative
    values are taken relative to ``start`` (the current directory by default).
    """
    base = start or Path.cwd()

    vendor_dir = configured
    if not vendor_dir:
        composer_json = base / "composer.json"
        if composer_json.exists():
            try:
                with open(composer_json, encoding="utf-8") as f:
                    data = json.load(f)
                vendor_dir = (data.get("config") or {}).get("vendor-dir")
            except (OSError, ValueError, AttributeError) as e:
                log_warning(f"Could not read vendor-dir from {composer_json}: {e}")
    if not vendor_dir:
        vendor_dir = "vendor"

    path = Path(vendor_dir)
    if not path.is_absolute():
        path = base / path
    return path


def resolve_project_paths(vendor_dir: Path) -> ProjectPaths:
    """Derive the project, web and settings paths from the vendor directory.

    The vendor directory is created when missing, matching Composer's own
    ``ensureDirectoryExists`` before it normalises the path.

    Raises:
        PathResolutionError: if the directory cannot be created or resolved.
    """
    try:
        vendor_dir.mkdir(parents=True, exist_ok=True)
        vendor_path = vendor_dir.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(
            f"Unable to resolve vendor directory {vendor_dir}: {e}",
            error_code="path_resolution",
            details={"vendor_dir": str(vendor_dir)},
        ) from e

    if not vendor_path.is_dir():
        raise PathResolutionError(
            f"Vendor path {vendor_path} is not a directory",
            error_code="path_resolution",
            details={"vendor_dir": str(vendor_path)},
        )

    project_root = vendor_path.parent
    web_root = project_root / WEB_DIR
    settings_file = web_root / SITES_DEFAULT / SETTINGS_FILE
    log_info(f"Project root: {project_root}")
    return ProjectPaths(project_root=project_root, web_root=web_root, settings_file=settings_file)
