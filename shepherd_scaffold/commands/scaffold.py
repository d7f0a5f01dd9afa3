"""
Scaffold command for shepherd-scaffold.

This module handles the Composer post-install, post-update and
post-create-project events: it copies scaffold files into the project,
creates settings.php with the Shepherd block, and prepares the local
development directories.
"""

import shutil
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config.environment import ShepherdConfig
from ..config.settings import (
    CONFIG_SYNC_DIR,
    EXECUTABLE_MODE,
    EXECUTABLE_SCRIPTS,
    SCAFFOLD_EVENTS,
    SHARED_DIR_MODE,
    SHARED_DIRS,
    get_assets_dir,
    get_scaffold_manifest_path,
)
from ..core.permissions import PermissionReport, apply_permissions
from ..core.settings_generator import SettingsGenerator
from ..exceptions import ConfigurationError, TemplateReadError, WriteError
from ..utils.logging import log_info, log_success, print_plain
from ..utils.path_utils import ProjectPaths


class ScaffoldManager:
    """Manages project scaffolding on Composer events."""

    def __init__(self,
                 config: ShepherdConfig,
                 paths: ProjectPaths,
                 manifest_path: Optional[Path] = None,
                 assets_dir: Optional[Path] = None):
        """Initialize scaffold manager.

        Args:
            config: Environment configuration read at process start.
            paths: Project paths resolved from the vendor directory.
            manifest_path: File-mapping manifest. Defaults to the bundled one.
            assets_dir: Directory the manifest sources are read from.
        """
        self.config = config
        self.paths = paths
        self.project_root = paths.project_root
        self.manifest_path = manifest_path or get_scaffold_manifest_path()
        self.assets_dir = assets_dir or get_assets_dir()
        self.settings_generator = SettingsGenerator(paths)

    def post_install(self, event_name: str, recopy: bool = False) -> bool:
        """Run the scaffold for a Composer event.

        Args:
            event_name: One of the Composer script events in SCAFFOLD_EVENTS.
            recopy: Always recopy default.settings.php before appending.

        Returns:
            True if the settings block was written during this run.
        """
        if event_name not in SCAFFOLD_EVENTS:
            raise ConfigurationError(
                f"Unsupported event '{event_name}', expected one of: {', '.join(SCAFFOLD_EVENTS)}",
                error_code="unsupported_event",
            )
        log_info(f"Handling {event_name}")

        self.apply_file_mapping()

        print_plain("Creating settings.php file if not present.")
        written = self.populate_settings_file(recopy=recopy)

        # Some things are only really required for dev.
        if not self.config.is_live:
            print_plain("Ensuring shared filesystem folder exists.")
            self.ensure_shared()
            self.ensure_config_sync()
            print_plain("Ensuring dsh utility scripts are executable.")
            self.make_executable()

        log_success("Shepherd scaffold completed")
        return written

    def populate_settings_file(self, recopy: bool = False) -> bool:
        """Create settings.php and inject the Shepherd settings."""
        return self.settings_generator.ensure_settings_file(recopy=recopy)

    def _mkdirs(self, directories: List[Path], mode: int) -> None:
        for directory in directories:
            try:
                directory.mkdir(mode=mode, parents=True, exist_ok=True)
            except OSError as e:
                raise WriteError(
                    f"Unable to create directory {directory}: {e}",
                    error_code="mkdir_failed",
                    details={"path": str(directory)},
                ) from e

    def ensure_config_sync(self) -> None:
        """Ensure that the config sync directory exists."""
        self._mkdirs([self.project_root / CONFIG_SYNC_DIR], SHARED_DIR_MODE)

    def ensure_shared(self) -> None:
        """Ensure that the shared files directories exist."""
        directories = [self.project_root / name for name in SHARED_DIRS]
        directories.append(self.paths.sites_default)
        self._mkdirs(directories, SHARED_DIR_MODE)

    def make_executable(self) -> PermissionReport:
        """Ensure that the dsh scripts are executable."""
        return apply_permissions({self.project_root / name: EXECUTABLE_MODE for name in EXECUTABLE_SCRIPTS})

    def load_manifest(self) -> Dict[str, Dict[str, Any]]:
        """Load the file-mapping manifest: destination -> {source, overwrite}."""
        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise TemplateReadError(
                f"Unable to read scaffold manifest {self.manifest_path}: {e}",
                error_code="manifest_read",
                details={"manifest": str(self.manifest_path)},
            ) from e

        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, dict):
            raise TemplateReadError(
                f"Scaffold manifest {self.manifest_path} has no 'files' mapping",
                error_code="manifest_read",
            )

        mapping: Dict[str, Dict[str, Any]] = {}
        for destination, entry in files.items():
            if isinstance(entry, str):
                entry = {"source": entry}
            entry = entry or {}
            mapping[destination] = {
                "source": entry.get("source", destination),
                "overwrite": bool(entry.get("overwrite", False)),
            }
        return mapping

    def apply_file_mapping(self) -> List[Path]:
        """Copy manifest files into the project.

        Existing destinations are only replaced when the entry is flagged
        ``overwrite: true``.

        Returns:
            Destinations that were written.
        """
        written: List[Path] = []
        for destination, entry in self.load_manifest().items():
            target = self.project_root / destination
            if target.exists() and not entry["overwrite"]:
                log_info(f"Skipping {destination}, already exists")
                continue

            source = self.assets_dir / entry["source"]
            if not source.exists():
                raise TemplateReadError(
                    f"Scaffold source not found: {source}",
                    error_code="template_read",
                    details={"source": str(source)},
                )
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
            except OSError as e:
                raise WriteError(
                    f"Unable to write {target}: {e}",
                    error_code="scaffold_write",
                    details={"destination": str(target)},
                ) from e
            log_info(f"Scaffolded {destination}")
            written.append(target)
        return written
