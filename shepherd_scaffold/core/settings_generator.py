"""
settings.php generation for shepherd-scaffold.

The managed block is a static PHP fragment stored in ``assets/settings.template``.
Its ``getenv()`` calls are evaluated by Drupal on every request; the only value
baked in at generation time is the default hash salt.
"""

import base64
import re
import secrets
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from ..config.environment import ShepherdConfig, env_flag
from ..config.settings import (
    CONFIG_SYNC_DIR,
    FILE_PUBLIC_PATH,
    HASH_SALT_BYTES,
    HASH_SALT_PLACEHOLDER,
    SECRET_FILE_PREFIX,
    SETTINGS_START_MARKER,
    get_settings_template_path,
)
from ..exceptions import TemplateReadError, WriteError
from ..utils.logging import log_info, log_success
from ..utils.path_utils import ProjectPaths

# The default salt baked into the block: getenv('HASH_SALT') ?: '<salt>'
BAKED_HASH_SALT = re.compile(r"getenv\('HASH_SALT'\) \?: '([^']*)'")
MASK = "********"


def generate_hash_salt(num_bytes: int = HASH_SALT_BYTES) -> str:
    """Generate a random hash salt free of ``+``, ``/`` and ``=``."""
    return base64.urlsafe_b64encode(secrets.token_bytes(num_bytes)).decode("ascii").rstrip("=")


class SettingsGenerator:
    """Creates settings.php and appends the Shepherd block exactly once."""

    def __init__(self, paths: ProjectPaths, template_path: Optional[Path] = None):
        self.paths = paths
        self.template_path = template_path or get_settings_template_path()

    def read_template(self) -> str:
        """Read the settings block template asset."""
        try:
            return self.template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateReadError(
                f"Unable to read settings template {self.template_path}: {e}",
                error_code="template_read",
                details={"template": str(self.template_path)},
            ) from e

    def generate_settings(self, hash_salt: Optional[str] = None) -> str:
        """Return the settings block with the hash salt substituted."""
        template = self.read_template()
        return template.replace(HASH_SALT_PLACEHOLDER, hash_salt or generate_hash_salt())

    def has_managed_block(self) -> bool:
        """Check whether settings.php already carries the Shepherd block."""
        settings_file = self.paths.settings_file
        if not settings_file.exists():
            return False
        try:
            content = settings_file.read_text(encoding="utf-8")
        except OSError as e:
            raise WriteError(
                f"Unable to read {settings_file}: {e}",
                error_code="settings_read",
                details={"settings_file": str(settings_file)},
            ) from e
        return SETTINGS_START_MARKER in content

    def copy_default_settings(self, recopy: bool = False) -> bool:
        """Copy default.settings.php into place.

        Only copies when settings.php is absent unless ``recopy`` is set, in
        which case anything previously written to settings.php is discarded.

        Returns:
            True if a copy was made.
        """
        settings_file = self.paths.settings_file
        if settings_file.exists() and not recopy:
            return False

        default_file = self.paths.default_settings_file
        if not default_file.exists():
            raise TemplateReadError(
                f"Default settings file not found: {default_file}",
                error_code="template_read",
                details={"template": str(default_file)},
            )
        try:
            settings_file.parent.mkdir(parents=True, exist_ok=True)
            if settings_file.exists():
                # A previous build may have left settings.php read-only.
                settings_file.chmod(0o664)
            shutil.copyfile(default_file, settings_file)
        except OSError as e:
            raise WriteError(
                f"Unable to create {settings_file}: {e}",
                error_code="settings_write",
                details={"settings_file": str(settings_file)},
            ) from e
        log_info(f"Copied {default_file.name} to {settings_file}")
        return True

    def append_settings(self, block: str) -> None:
        settings_file = self.paths.settings_file
        try:
            with open(settings_file, "a", encoding="utf-8") as f:
                f.write(block)
        except OSError as e:
            raise WriteError(
                f"Unable to write {settings_file}: {e}",
                error_code="settings_write",
                details={"settings_file": str(settings_file)},
            ) from e

    def ensure_settings_file(self, recopy: bool = False) -> bool:
        """Create settings.php if needed and append the Shepherd block once.

        Args:
            recopy: Always recopy default.settings.php first (destructive).

        Returns:
            True if the block was appended, False if it was already present.
        """
        self.copy_default_settings(recopy=recopy)

        if self.has_managed_block():
            log_info("settings.php already contains the Shepherd configuration")
            return False

        self.append_settings(self.generate_settings())
        log_success(f"Shepherd configuration written to {self.paths.settings_file}")
        return True


def _default(value: Optional[str], fallback: Any) -> Any:
    # PHP's ?: treats "" and "0" as unset.
    return value if env_flag(value) else fallback


def _read_value_file(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8").strip()
    except OSError:
        return None


def read_baked_hash_salt(settings_file: Path) -> Optional[str]:
    """Return the default hash salt written into settings.php, if any."""
    try:
        match = BAKED_HASH_SALT.search(settings_file.read_text(encoding="utf-8"))
    except OSError:
        return None
    return match.group(1) if match else None


def preview_settings(config: ShepherdConfig,
                     mask_secrets: bool = True,
                     paths: Optional[ProjectPaths] = None) -> Dict[str, Any]:
    """Model the values Drupal resolves from the Shepherd block for ``config``.

    Mirrors the conditionals of ``settings.template`` so a configuration can be
    checked without booting Drupal. Only keys the block would set are present.

    Args:
        config: Environment snapshot to resolve against.
        mask_secrets: Replace passwords, tokens, salts and secrets with a mask.
        paths: Project paths. When given, the hash salt baked into settings.php
            is reported if ``HASH_SALT`` is unset, and the config sync
            directory is made absolute.
    """
    db = config.database
    result: Dict[str, Any] = {}

    def secret(value: Any) -> Any:
        return MASK if (mask_secrets and value) else value

    if env_flag(db.sqlite_database) and not env_flag(db.host):
        database = {
            "driver": "sqlite",
            "database": db.sqlite_database,
            "prefix": _default(db.prefix, ""),
        }
    else:
        if env_flag(db.password_file):
            password = _read_value_file(db.password_file)
        else:
            password = _default(db.password, "password")
        database = {
            "driver": _default(db.driver, "mysql"),
            "database": _default(db.name, "drupal"),
            "username": _default(db.user, "user"),
            "password": secret(password),
            "host": _default(db.host, "127.0.0.1"),
            "port": _default(db.port, "3306"),
            "prefix": _default(db.prefix, ""),
        }
    result["databases"] = {"default": {"default": database}}

    if env_flag(config.hash_salt):
        hash_salt = secret(config.hash_salt)
    else:
        baked = read_baked_hash_salt(paths.settings_file) if paths else None
        hash_salt = secret(baked) if baked else "(baked default)"

    if paths:
        config_sync = str(paths.project_root / CONFIG_SYNC_DIR)
    else:
        config_sync = f"DRUPAL_ROOT/../{CONFIG_SYNC_DIR}"

    settings: Dict[str, Any] = {
        "file_public_path": FILE_PUBLIC_PATH,
        "file_private_path": _default(config.private_dir, "/shared/private"),
        "file_temp_path": _default(config.tmp_dir, "/shared/tmp"),
        "hash_salt": hash_salt,
        "config_sync_directory": config_sync,
        "shepherd_site_id": config.site_id,
        "shepherd_url": config.url,
    }
    if env_flag(config.token_file):
        token = _read_value_file(config.token_file)
    else:
        token = config.token
    settings["shepherd_token"] = secret(token)

    cache = config.cache
    if cache.redis_enabled:
        connection = {
            "interface": "PhpRedis",
            "host": _default(cache.redis_host, "redis"),
            "port": _default(cache.redis_port, "6379"),
        }
        if env_flag(cache.redis_password):
            connection["password"] = secret(cache.redis_password)
        settings["redis.connection"] = connection
        settings["cache_prefix"] = {"default": _default(cache.redis_prefix, "")}
        settings["cache"] = {"default": "cache.backend.redis"}
    elif cache.memcache_enabled:
        server = f"{_default(cache.memcache_host, 'memcached')}:{_default(cache.memcache_port, '11211')}"
        settings["memcache"] = {
            "servers": {server: "default"},
            "bins": {"default": "default"},
            "key_prefix": _default(cache.memcache_prefix, ""),
        }
        settings["cache"] = {"default": "cache.backend.memcache"}

    if env_flag(config.secret_path):
        secret_dir = Path(config.secret_path)
        if secret_dir.is_dir():
            for secret_file in sorted(secret_dir.glob(f"{SECRET_FILE_PREFIX}*")):
                settings[secret_file.name] = secret(_read_value_file(str(secret_file)))

    if config.reverse_proxy:
        settings["reverse_proxy"] = True
        settings["reverse_proxy_header"] = _default(config.reverse_proxy_header, "X_CLUSTER_CLIENT_IP")
        settings["reverse_proxy_addresses"] = list(config.reverse_proxy_addresses)

    if config.trusted_host_patterns:
        settings["trusted_host_patterns"] = list(config.trusted_host_patterns)

    result["settings"] = settings
    return result
