"""
Click CLI framework for the shepherd command.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from shepherd_scaffold.cli.helpers import CliState, add_project_root_option, add_verbose_option
from shepherd_scaffold.cli_commands import register_all_commands
from shepherd_scaffold.config.settings import VERSION
from shepherd_scaffold.exceptions import ShepherdError
from shepherd_scaffold.utils.logging import error_exit, log_error


def _build_cli() -> click.Group:
    @click.group(
        help="""Shepherd: build and scaffold helpers for Drupal sites

Scaffold settings.php on Composer events and run the Drupal build
steps with stop-on-first-failure semantics.

Examples:
    shepherd scaffold --event post-install-cmd
    shepherd build
    shepherd dev cache-rebuild
    shepherd settings preview
"""
    )
    @click.version_option(version=VERSION, prog_name="shepherd")
    @add_verbose_option
    @add_project_root_option
    @click.pass_context
    def cli(ctx: click.Context, project_root: Optional[Path]):
        try:
            ctx.obj = CliState.load(project_root)
        except ShepherdError as exc:
            error_exit(exc.message, exit_code=exc.exit_code)

    register_all_commands(cli)
    return cli


cli = _build_cli()


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        log_error("Operation cancelled by user")
        sys.exit(1)
    except Exception as exc:
        log_error(f"Unexpected error: {exc}")
        sys.exit(1)


__all__ = ["cli", "main"]
