"""
Drupal build orchestration for shepherd-scaffold.

This module provides the build pipeline and the individual build and
development tasks. Each task shells out through ``CommandRunner`` and raises
``BuildStepError`` when its command fails; ``run_build`` turns the first
failure into a ``BuildResult`` without running any later step.
"""

import os
import pwd
import shlex
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config.environment import ShepherdConfig
from ..config.settings import get_default_config, get_file_paths, get_sites_default
from ..exceptions import BuildStepError
from ..utils.logging import format_duration, log_error, log_info, log_phase, log_success, print_plain
from .command_runner import CommandRunner
from .permissions import PermissionReport, make_config_read_only, make_config_writable, apply_permissions

# Pipeline step names, in execution order
STEP_INSTALL_PROFILE = "install-profile"
STEP_XDEBUG_DISABLE = "xdebug-disable"
STEP_COMPOSER_VALIDATE = "composer-validate"
STEP_COMPOSER_INSTALL = "composer-install"
STEP_FILES_OWNER = "files-owner"
STEP_CONFIG_WRITABLE = "config-writable"
STEP_SITE_INSTALL = "site-install"
STEP_CONFIG_READ_ONLY = "config-read-only"
STEP_INSTALL_CACHE_REBUILD = "install-cache-rebuild"
STEP_SITE_IDENTITY = "site-identity"
STEP_CACHE_REBUILD = "cache-rebuild"
STEP_FINAL_FILES_OWNER = "final-files-owner"
STEP_XDEBUG_ENABLE = "xdebug-enable"

BUILD_STEPS = (
    STEP_INSTALL_PROFILE,
    STEP_XDEBUG_DISABLE,
    STEP_COMPOSER_VALIDATE,
    STEP_COMPOSER_INSTALL,
    STEP_FILES_OWNER,
    STEP_CONFIG_WRITABLE,
    STEP_SITE_INSTALL,
    STEP_CONFIG_READ_ONLY,
    STEP_INSTALL_CACHE_REBUILD,
    STEP_SITE_IDENTITY,
    STEP_CACHE_REBUILD,
    STEP_FINAL_FILES_OWNER,
    STEP_XDEBUG_ENABLE,
)

DISTRIBUTION_INSTALL_FLAGS = "--prefer-dist --no-dev --optimize-autoloader"
REWRITE_BASE_PLACEHOLDER = "# RewriteBase /drupal"
FILES_DIR_MODE = 0o755
CLEAN_APPLICATION_DIRS = ("core", "modules/contrib", "profiles/contrib", "themes/contrib", "sites/all")
CLEAN_PROJECT_DIRS = ("bin", "vendor")
TWIG_DEBUG_REPLACEMENTS = (
    ("debug: false", "debug: true"),
    ("auto_reload: null", "auto_reload: true"),
    ("cache: true", "cache: false"),
)
ADMIN_NAME_QUERY = (
    "SELECT name from users u LEFT JOIN users_field_data ud ON u.uid = ud.uid WHERE u.uid = 1"
)
RESET_ADMIN_PASSWORD = "password"


@dataclass
class BuildResult:
    """Outcome of a pipeline run."""

    success: bool
    failed_step: Optional[str] = None
    message: str = ""
    completed_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


def get_local_user() -> str:
    """Return the name of the user running the build."""
    return pwd.getpwuid(os.getuid()).pw_name


class BuildOrchestrator:
    """Runs Drupal build steps for a Shepherd project."""

    def __init__(self,
                 config: ShepherdConfig,
                 project_root: Optional[Path] = None,
                 project_config: Optional[Dict[str, Any]] = None,
                 runner: Optional[CommandRunner] = None,
                 local_user: Optional[str] = None):
        """Initialize the orchestrator.

        Args:
            config: Environment configuration read at process start.
            project_root: Project root; commands run from here. Defaults to cwd.
            project_config: Merged shepherd.yml settings. Defaults to built-ins.
            runner: Command runner, replaced by a fake in tests.
            local_user: Group owner for shared directories. Defaults to the
                current user.
        """
        self.config = config
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.project_config = project_config or get_default_config()
        self.runner = runner or CommandRunner(cwd=self.project_root)
        self._local_user = local_user

        self.web_user: str = self.project_config["web_user"]
        self.application_root: str = self.project_config["application_root"]
        self.file_paths: List[str] = get_file_paths(self.project_config)
        self.sites_default = Path(get_sites_default(self.application_root))

        services_yml = Path(self.project_config["services_yml"])
        self.services_yml = services_yml if services_yml.is_absolute() else self.project_root / services_yml

    @property
    def local_user(self) -> str:
        if self._local_user is None:
            self._local_user = get_local_user()
        return self._local_user

    # Command helpers

    def _exec(self, step: str, args: Sequence[str], message: str, capture: bool = False):
        result = self.runner.run(args, capture=capture)
        if not result.ok:
            raise BuildStepError(
                message,
                error_code="build_step_failed",
                details={"command": " ".join(result.args), "returncode": result.returncode},
                step=step,
            )
        return result

    def _drush(self, step: str, message: str, *args: str, capture: bool = False):
        return self._exec(step, ["drush", *args], message, capture=capture)

    # Pipeline

    def require_install_profile(self) -> str:
        """Projects must declare which install profile to use."""
        if not self.config.install_profile:
            raise BuildStepError(
                "Install profile environment variable is not set.",
                error_code="missing_install_profile",
                step=STEP_INSTALL_PROFILE,
            )
        return self.config.install_profile

    def build_steps(self) -> List[Tuple[str, Callable[[], Any]]]:
        """The ordered steps of a full build."""
        return [
            (STEP_INSTALL_PROFILE, self.require_install_profile),
            (STEP_XDEBUG_DISABLE, self.xdebug_disable),
            (STEP_COMPOSER_VALIDATE, self.composer_validate),
            (STEP_COMPOSER_INSTALL, self.composer_install),
            (STEP_FILES_OWNER, self.set_files_owner),
            (STEP_CONFIG_WRITABLE, self.config_writable),
            (STEP_SITE_INSTALL, self.site_install),
            (STEP_CONFIG_READ_ONLY, self.config_read_only),
            (STEP_INSTALL_CACHE_REBUILD, lambda: self.cache_rebuild(STEP_INSTALL_CACHE_REBUILD)),
            (STEP_SITE_IDENTITY, self.sync_site_identity),
            (STEP_CACHE_REBUILD, self.cache_rebuild),
            (STEP_FINAL_FILES_OWNER, lambda: self.set_files_owner(STEP_FINAL_FILES_OWNER)),
            (STEP_XDEBUG_ENABLE, self.xdebug_enable),
        ]

    def run_build(self) -> BuildResult:
        """Perform a full build, stopping at the first failed step."""
        start = time.monotonic()
        result = BuildResult(success=True)

        for step, action in self.build_steps():
            if step == STEP_SITE_IDENTITY and not self.config.site.uuid:
                log_info("SITE_UUID not set, skipping site identity sync")
                result.skipped_steps.append(step)
                continue

            log_phase(step)
            try:
                action()
            except BuildStepError as e:
                result.success = False
                result.failed_step = e.step or step
                result.message = e.message
                result.duration = time.monotonic() - start
                log_error(f"APP_ERROR: {e.message}")
                return result
            result.completed_steps.append(step)

        result.duration = time.monotonic() - start
        log_success(f"Total build duration: {format_duration(result.duration)}")
        return result

    def distribution_build(self, flags: str = DISTRIBUTION_INSTALL_FLAGS) -> None:
        """Build the code base for automated deployments without installing."""
        self.composer_validate()
        self.composer_install(flags)
        self.set_site_path()

    # Build tasks

    def composer_validate(self) -> None:
        """Validate composer files with publish checks off."""
        self._exec(
            STEP_COMPOSER_VALIDATE,
            ["composer", "validate", "--no-check-publish"],
            "Composer validate failed.",
        )

    def composer_install(self, flags: str = "") -> None:
        """Run composer install to fetch the application code."""
        args = ["composer", "install", "--no-progress", "--no-interaction"]
        if flags:
            args.extend(shlex.split(flags))
        self._exec(STEP_COMPOSER_INSTALL, args, "Composer install failed.")

    def set_files_owner(self, step: str = STEP_FILES_OWNER) -> None:
        """Give the web user ownership of the shared files directories."""
        print_plain("Setting ownership and permissions.")
        for raw_path in self.file_paths:
            path = Path(raw_path)
            try:
                path.mkdir(parents=True, exist_ok=True)
                shutil.chown(path, user=self.web_user, group=self.local_user)
                os.chmod(path, FILES_DIR_MODE)
            except (OSError, LookupError) as e:
                raise BuildStepError(
                    "File ownership failed.",
                    error_code="files_owner_failed",
                    details={"path": str(path), "error": str(e)},
                    step=step,
                ) from e

    def config_writable(self) -> PermissionReport:
        """Make configuration files writable."""
        return make_config_writable(self.sites_default)

    def config_read_only(self) -> PermissionReport:
        """Make configuration files read only."""
        return make_config_read_only(self.sites_default)

    def site_install(self) -> None:
        """Run drush site-install with the configured profile.

        Configuration is locked down again even when the install fails.
        """
        profile = self.require_install_profile()
        args = [
            "drush", "site-install", profile, "-y",
            "install_configure_form.enable_update_status_module=NULL",
            "install_configure_form.enable_update_status_emails=NULL",
        ]
        for option, value in self.config.site_install_options().items():
            args.append(f"--{option}={value}")

        result = self.runner.run(args)
        if not result.ok:
            self.config_read_only()
            raise BuildStepError(
                "drush site-install failed.",
                error_code="build_step_failed",
                details={"returncode": result.returncode},
                step=STEP_SITE_INSTALL,
            )

    def build_install(self) -> None:
        """Install Drupal: writable config, site-install, read-only config, cache rebuild."""
        self.config_writable()
        self.site_install()
        self.config_read_only()
        self.cache_rebuild()

    def sync_site_identity(self) -> None:
        """Force the site UUID to the configured value and import config."""
        uuid = self.config.site.uuid
        if not uuid:
            return
        self._drush(STEP_SITE_IDENTITY, "Setting site UUID failed.",
                    "config-set", "system.site", "uuid", uuid, "-y")
        self.cache_rebuild(STEP_SITE_IDENTITY)
        if self.config.should_import_config:
            self._drush(STEP_SITE_IDENTITY, "Configuration import failed.", "cim", "-y", "--partial")
        else:
            log_info("IMPORT_CONFIG disabled, skipping configuration import")

    def set_site_path(self) -> None:
        """Set the RewriteBase value in .htaccess for sites served from a sub path."""
        site_path = self.config.site.path
        if not site_path:
            return
        print_plain("Setting site path.")
        htaccess = Path(self.application_root) / ".htaccess"
        try:
            content = htaccess.read_text(encoding="utf-8")
            replacement = f"\n  RewriteBase /{site_path.lstrip('/')}\n"
            htaccess.write_text(content.replace(REWRITE_BASE_PLACEHOLDER, replacement), encoding="utf-8")
        except OSError as e:
            raise BuildStepError(
                "Couldn't update .htaccess file with path.",
                error_code="site_path_failed",
                details={"path": str(htaccess), "error": str(e)},
                step="site-path",
            ) from e

    def build_clean(self) -> None:
        """Remove build artefacts in preparation for a new build."""
        apply_permissions({self.sites_default: 0o755})
        targets = [Path(self.application_root) / name for name in CLEAN_APPLICATION_DIRS]
        targets += [self.project_root / name for name in CLEAN_PROJECT_DIRS]
        for target in targets:
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                elif target.exists() or target.is_symlink():
                    target.unlink()
            except OSError as e:
                raise BuildStepError(
                    "Build clean failed.",
                    error_code="build_clean_failed",
                    details={"path": str(target), "error": str(e)},
                    step="build-clean",
                ) from e
            log_info(f"Removed {target}")

    def build_update(self) -> None:
        """Run all pending Drupal database updates."""
        self._drush("build-update", "Running drupal updates failed.", "-y", "updatedb")

    # Development tasks

    def cache_rebuild(self, step: str = STEP_CACHE_REBUILD) -> None:
        """Rebuild Drupal caches."""
        self._drush(step, "Running cache-rebuild failed.", "cr")

    def xdebug_enable(self) -> None:
        """Enable xdebug for the CLI, only where xdebug is configured."""
        if self.config.xdebug_enabled:
            self._exec(STEP_XDEBUG_ENABLE, ["sudo", "phpenmod", "-v", "ALL", "-s", "cli", "xdebug"],
                       "Running xdebug enable failed.")

    def xdebug_disable(self) -> None:
        """Disable xdebug for the CLI, only where xdebug is configured."""
        if self.config.xdebug_enabled:
            self._exec(STEP_XDEBUG_DISABLE, ["sudo", "phpdismod", "-v", "ALL", "-s", "cli", "xdebug"],
                       "Running xdebug disable failed.")

    def update_services(self, enable: bool = True) -> None:
        """Toggle the twig debug parameters in services.yml."""
        try:
            content = self.services_yml.read_text(encoding="utf-8")
        except OSError as e:
            raise BuildStepError(
                f"Unable to read {self.services_yml}.",
                error_code="services_read_failed",
                details={"error": str(e)},
                step="twig-debug",
            ) from e
        for disabled, enabled in TWIG_DEBUG_REPLACEMENTS:
            old, new = (disabled, enabled) if enable else (enabled, disabled)
            content = content.replace(old, new)
        try:
            self.services_yml.write_text(content, encoding="utf-8")
        except OSError as e:
            raise BuildStepError(
                f"Unable to write {self.services_yml}.",
                error_code="services_write_failed",
                details={"error": str(e)},
                step="twig-debug",
            ) from e

    def twig_debug_enable(self) -> None:
        """Turn on twig debug mode, auto reload on and caching off."""
        self.config_writable()
        self.aggregate_assets_disable(cache_clear=False)
        self.update_services(True)
        self.config_read_only()
        self.cache_rebuild()

    def twig_debug_disable(self) -> None:
        """Turn off twig debug mode, auto reload off and caching on."""
        self.config_writable()
        self.update_services(False)
        self.config_read_only()
        self.cache_rebuild()

    def _set_aggregation(self, value: str, message: str, cache_clear: bool) -> None:
        for asset in ("js", "css"):
            self._drush("aggregate-assets", message,
                        "cset", "system.performance", f"{asset}.preprocess", value, "-y")
        if cache_clear:
            self.cache_rebuild()

    def aggregate_assets_disable(self, cache_clear: bool = True) -> None:
        """Disable JS and CSS aggregation."""
        self._set_aggregation("0", "Aggregate disable failed.", cache_clear)

    def aggregate_assets_enable(self, cache_clear: bool = True) -> None:
        """Enable JS and CSS aggregation."""
        self._set_aggregation("1", "Aggregate enable failed.", cache_clear)

    def import_db(self, sql_file: str) -> None:
        """Import a database dump, then reset the admin password."""
        start = time.monotonic()
        self._drush("import-db", "Database import failed.", "-y", "sql-drop")
        self._drush("import-db", "Database import failed.", "sqlq", f"--file={sql_file}")
        self._drush("import-db", "Database import failed.", "cr")
        self.reset_admin_pass()
        print_plain(f"Duration: {format_duration(time.monotonic() - start)}")

    def reset_admin_pass(self) -> str:
        """Reset the password of user 1 and return its name."""
        result = self._drush("reset-admin-pass", "Admin password lookup failed.",
                             "sqlq", ADMIN_NAME_QUERY, capture=True)
        admin_user = result.stdout.strip()
        self._drush("reset-admin-pass", "Admin password reset failed.",
                    "upwd", admin_user, RESET_ADMIN_PASSWORD)
        print_plain(f"Database imported, {admin_user} password is: {RESET_ADMIN_PASSWORD}")
        return admin_user

    def export_db(self, name: str = "dump") -> None:
        """Export the database to a gzipped sql file."""
        start = time.monotonic()
        self._drush("export-db", "Database export failed.", "sql-dump", "--gzip", f"--result-file={name}.sql")
        print_plain(f"Duration: {format_duration(time.monotonic() - start)}")
        print_plain(f"Database {name}.sql.gz exported")

    # Lint tasks

    def lint_php(self, path: str = "") -> None:
        """Run coding standards checks and static analysis."""
        args = ["phpcs"] + ([path] if path else [])
        self._exec("lint-php", args, "Code linting failed.")
        self._exec("lint-php", ["phpstan", "analyze", "--no-progress"], "Code analyzing failed.")

    def lint_fix(self, path: str = "") -> None:
        """Fix coding standards violations."""
        args = ["phpcbf"] + ([path] if path else [])
        self._exec("lint-fix", args, "Code fixing failed.")
