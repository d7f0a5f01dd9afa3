"""
PHP lint commands.
"""

from __future__ import annotations

import click

from shepherd_scaffold.cli.helpers import CliState, add_verbose_option, command_wrapper
from shepherd_scaffold.cli_commands.build import make_orchestrator


def register_commands(cli) -> None:
    @cli.group()
    def lint():
        """Coding standards checks for PHP files."""

    @lint.command("php")
    @click.argument("path", default="")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def lint_php(state: CliState, path: str):
        """Run phpcs and phpstan."""
        make_orchestrator(state).lint_php(path)

    @lint.command("fix")
    @click.argument("path", default="")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def lint_fix(state: CliState, path: str):
        """Fix coding standards violations with phpcbf."""
        make_orchestrator(state).lint_fix(path)
