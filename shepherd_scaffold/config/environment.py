"""
Environment-driven configuration for shepherd-scaffold.

All recognised environment variables are read once, at process start, into a
``ShepherdConfig`` which is then handed to every component. Components never
call ``os.environ`` themselves; the one exception is dsh, whose CLI hands the
process environment to ``ComposeManager`` for docker compose to inherit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .settings import LIVE_ENVIRONMENT


def env_flag(value: Optional[str]) -> bool:
    """Interpret an environment value with PHP truthiness.

    The generated settings block tests flags with ``if (getenv(...))`` so an
    unset variable, an empty string and ``"0"`` are all false.
    """
    return value not in (None, "", "0")


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma separated environment value as PHP's ``explode`` does.

    Entries are kept verbatim, whitespace and empty items included. A falsy
    value (see ``env_flag``) gives an empty list.
    """
    if not env_flag(value):
        return []
    return value.split(",")


@dataclass(frozen=True)
class DatabaseConfig:
    driver: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    name: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    password_file: Optional[str] = None
    prefix: Optional[str] = None
    sqlite_database: Optional[str] = None


@dataclass(frozen=True)
class CacheConfig:
    redis_enabled: bool = False
    redis_host: Optional[str] = None
    redis_port: Optional[str] = None
    redis_password: Optional[str] = None
    redis_prefix: Optional[str] = None
    memcache_enabled: bool = False
    memcache_host: Optional[str] = None
    memcache_port: Optional[str] = None
    memcache_prefix: Optional[str] = None


@dataclass(frozen=True)
class SiteConfig:
    title: Optional[str] = None
    mail: Optional[str] = None
    admin_email: Optional[str] = None
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    uuid: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class ShepherdConfig:
    """Snapshot of every environment variable the tool recognises."""

    environment: Optional[str] = None
    install_profile: Optional[str] = None
    site_id: Optional[str] = None
    url: Optional[str] = None
    token: Optional[str] = None
    token_file: Optional[str] = None
    secret_path: Optional[str] = None
    reverse_proxy: bool = False
    reverse_proxy_header: Optional[str] = None
    reverse_proxy_addresses: List[str] = field(default_factory=list)
    site: SiteConfig = field(default_factory=SiteConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    private_dir: Optional[str] = None
    tmp_dir: Optional[str] = None
    hash_salt: Optional[str] = None
    trusted_host_patterns: List[str] = field(default_factory=list)
    import_config: Optional[str] = None
    xdebug_config: Optional[str] = None
    composer_vendor_dir: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShepherdConfig":
        """Build a configuration from ``environ`` (defaults to ``os.environ``)."""
        env: Mapping[str, str] = os.environ if environ is None else environ
        get = env.get

        return cls(
            environment=get("SHEPHERD_ENVIRONMENT"),
            install_profile=get("SHEPHERD_INSTALL_PROFILE") or None,
            site_id=get("SHEPHERD_SITE_ID"),
            url=get("SHEPHERD_URL"),
            token=get("SHEPHERD_TOKEN"),
            token_file=get("SHEPHERD_TOKEN_FILE"),
            secret_path=get("SHEPHERD_SECRET_PATH"),
            reverse_proxy=env_flag(get("SHEPHERD_REVERSE_PROXY")),
            reverse_proxy_header=get("SHEPHERD_REVERSE_PROXY_HEADER"),
            reverse_proxy_addresses=split_list(get("SHEPHERD_REVERSE_PROXY_ADDRESSES")),
            site=SiteConfig(
                title=get("SITE_TITLE") or None,
                mail=get("SITE_MAIL") or None,
                admin_email=get("SITE_ADMIN_EMAIL") or None,
                admin_username=get("SITE_ADMIN_USERNAME") or None,
                admin_password=get("SITE_ADMIN_PASSWORD") or None,
                uuid=get("SITE_UUID") or None,
                path=get("WEB_PATH") or None,
            ),
            database=DatabaseConfig(
                driver=get("DATABASE_DRIVER"),
                host=get("DATABASE_HOST"),
                port=get("DATABASE_PORT"),
                name=get("DATABASE_NAME"),
                user=get("DATABASE_USER"),
                password=get("DATABASE_PASSWORD"),
                password_file=get("DATABASE_PASSWORD_FILE"),
                prefix=get("DATABASE_PREFIX"),
                sqlite_database=get("SQLITE_DATABASE"),
            ),
            cache=CacheConfig(
                redis_enabled=env_flag(get("REDIS_ENABLED")),
                redis_host=get("REDIS_HOST"),
                redis_port=get("REDIS_PORT"),
                redis_password=get("REDIS_PASSWORD"),
                redis_prefix=get("REDIS_PREFIX"),
                memcache_enabled=env_flag(get("MEMCACHE_ENABLED")),
                memcache_host=get("MEMCACHE_HOST"),
                memcache_port=get("MEMCACHE_PORT"),
                memcache_prefix=get("MEMCACHE_PREFIX"),
            ),
            private_dir=get("PRIVATE_DIR"),
            tmp_dir=get("TMP_DIR"),
            hash_salt=get("HASH_SALT"),
            trusted_host_patterns=split_list(get("TRUSTED_HOST_PATTERNS")),
            import_config=get("IMPORT_CONFIG"),
            xdebug_config=get("XDEBUG_CONFIG"),
            composer_vendor_dir=get("COMPOSER_VENDOR_DIR") or None,
        )

    @property
    def is_live(self) -> bool:
        return self.environment == LIVE_ENVIRONMENT

    @property
    def xdebug_enabled(self) -> bool:
        return env_flag(self.xdebug_config)

    @property
    def should_import_config(self) -> bool:
        """Partial config import runs unless IMPORT_CONFIG is explicitly falsy."""
        if not self.import_config:
            return True
        return self.import_config.strip().lower() not in ("", "0", "false", "no", "off")

    def site_install_options(self) -> Dict[str, str]:
        """drush site-install options for the values that are set."""
        options = {
            "account-mail": self.site.admin_email,
            "account-name": self.site.admin_username,
            "account-pass": self.site.admin_password,
            "site-name": self.site.title,
            "site-mail": self.site.mail,
        }
        return {key: value for key, value in options.items() if value}
