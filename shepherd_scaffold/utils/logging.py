"""
Logging and output utilities for shepherd-scaffold.

This module provides colored output in the format the build tasks print:
one prefixed line per message, errors on stderr.
"""

from typing import Optional
from rich.console import Console

# Initialize console for colored output
console = Console()
error_console = Console(stderr=True)

# Global verbose mode flag
_verbose_mode = False


# Color constants
class Colors:
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"


def set_verbose(enabled: bool) -> None:
    """Set verbose mode for logging output."""
    global _verbose_mode
    _verbose_mode = enabled


def log_info(message: str) -> None:
    """Log an info message (only shown in verbose mode)."""
    if _verbose_mode:
        console.print(f"[{Colors.BLUE}][INFO][/{Colors.BLUE}] {message}")


def log_success(message: str) -> None:
    """Log a success message."""
    console.print(f"[{Colors.GREEN}][SUCCESS][/{Colors.GREEN}] {message}")


def log_warning(message: str) -> None:
    """Log a warning message (only shown in verbose mode)."""
    if _verbose_mode:
        console.print(f"[{Colors.YELLOW}][WARNING][/{Colors.YELLOW}] {message}")


def log_error(message: str) -> None:
    """Log an error message to stderr."""
    error_console.print(f"[{Colors.RED}][ERROR][/{Colors.RED}] {message}")


def log_phase(message: str) -> None:
    """Log a build step message."""
    console.print(f"[{Colors.PURPLE}][STEP][/{Colors.PURPLE}] {message}")


def print_plain(message: str) -> None:
    """Print plain text without any prefix."""
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def format_duration(seconds: float) -> str:
    """Format a duration the way build summaries print it, e.g. ``2m 05s``."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


def error_exit(message: str, exit_code: int = 1, detail: Optional[str] = None) -> None:
    """Log an error and exit."""
    log_error(message)
    if detail:
        log_error(detail)
    raise SystemExit(exit_code)
