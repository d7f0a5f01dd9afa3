"""
Shared helpers and decorators for shepherd CLI commands.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click

from shepherd_scaffold.config.environment import ShepherdConfig
from shepherd_scaffold.config.settings import get_project_config
from shepherd_scaffold.exceptions import ShepherdError
from shepherd_scaffold.utils.logging import error_exit, set_verbose


@dataclass
class CliState:
    """Configuration assembled once per invocation and shared by commands."""

    config: ShepherdConfig
    project_root: Path
    project_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "CliState":
        root = Path(project_root or Path.cwd()).resolve()
        return cls(
            config=ShepherdConfig.from_env(),
            project_root=root,
            project_config=get_project_config(root),
        )


def verbose_callback(_: click.Context, __: click.Option, value: bool) -> bool:
    """Callback used by --verbose option on the root CLI."""
    set_verbose(value)
    return value


def add_verbose_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add the shared verbose flag to a command."""
    return click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose output (show INFO and WARNING messages)",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(func)


def add_project_root_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add the --project-root option to a root group."""
    return click.option(
        "--project-root",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Project root directory (default: current directory)",
    )(func)


def command_wrapper(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator turning ShepherdError into an error message and exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ShepherdError as exc:
            error_exit(exc.message, exit_code=exc.exit_code)

    return wrapper
