"""
File permission management for shepherd-scaffold.

Permission changes are applied per path and never abort the remaining set: a
missing path or a failed chmod is logged and recorded in the report.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Tuple, Union

from ..config.settings import LOCAL_SETTINGS_FILE, SERVICES_FILE, SETTINGS_FILE
from ..utils.logging import log_error, log_info, log_warning

PathLike = Union[str, Path]


@dataclass
class PermissionReport:
    """Outcome of applying a path to mode mapping."""

    applied: List[Tuple[Path, int]] = field(default_factory=list)
    errors: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def apply_permissions(mapping: Mapping[PathLike, int]) -> PermissionReport:
    """Set each existing path to its mode, in mapping order."""
    report = PermissionReport()
    for raw_path, mode in mapping.items():
        path = Path(raw_path)
        if not path.exists():
            message = f"{path}: file does not exist"
            log_warning(message)
            report.errors.append((path, message))
            continue
        try:
            os.chmod(path, mode)
        except OSError as e:
            message = f"{path}: unable to set mode {oct(mode)}: {e}"
            log_error(message)
            report.errors.append((path, message))
            continue
        log_info(f"Set {path} to {oct(mode)}")
        report.applied.append((path, mode))
    return report


def writable_preset(sites_default: PathLike) -> Dict[Path, int]:
    """Modes that let a build rewrite settings; the directory comes first."""
    base = Path(sites_default)
    return {
        base: 0o775,
        base / SERVICES_FILE: 0o664,
        base / SETTINGS_FILE: 0o664,
        base / LOCAL_SETTINGS_FILE: 0o664,
    }


def read_only_preset(sites_default: PathLike) -> Dict[Path, int]:
    """Modes that lock settings down again; the directory goes last.

    services.yml stays group-writable so the twig debug toggles keep working.
    """
    base = Path(sites_default)
    return {
        base / SERVICES_FILE: 0o664,
        base / SETTINGS_FILE: 0o444,
        base / LOCAL_SETTINGS_FILE: 0o444,
        base: 0o555,
    }


def make_config_writable(sites_default: PathLike) -> PermissionReport:
    return apply_permissions(writable_preset(sites_default))


def make_config_read_only(sites_default: PathLike) -> PermissionReport:
    return apply_permissions(read_only_preset(sites_default))
