"""
.env support for dsh.

The project's .env file supplies values such as PROJECT, DOMAIN and
SHEPHERD_INSTALL_PROFILE to docker compose.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple

from .logging import log_warning

QUOTES = ('"', "'")


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export "):].lstrip()

    # Values may themselves contain "="
    name, raw = line.split("=", 1)
    name, raw = name.strip(), raw.strip()
    if not name:
        return None
    if len(raw) >= 2 and raw[0] in QUOTES and raw[-1] == raw[0]:
        raw = raw[1:-1]
    return name, raw


def load_env_file(env_path: Path) -> Dict[str, str]:
    """Read KEY=VALUE pairs from a .env file.

    Blank lines, comments and lines without ``=`` are skipped. A leading
    ``export`` and matching surrounding quotes are removed.

    Returns:
        The parsed values; empty when the file is missing or unreadable.
    """
    if not env_path.exists():
        return {}

    values: Dict[str, str] = {}
    try:
        with open(env_path, encoding="utf-8") as f:
            for line in f:
                parsed = _parse_line(line)
                if parsed:
                    values[parsed[0]] = parsed[1]
    except OSError as e:
        log_warning(f"Failed to read .env file at {env_path}: {e}")
        return {}
    return values
