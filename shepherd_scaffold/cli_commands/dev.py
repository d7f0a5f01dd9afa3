"""
Development task commands.
"""

from __future__ import annotations

import click

from shepherd_scaffold.cli.helpers import CliState, add_verbose_option, command_wrapper
from shepherd_scaffold.cli_commands.build import make_orchestrator


def register_commands(cli) -> None:
    @cli.group()
    def dev():
        """Development tasks for a running site."""

    @dev.command("cache-rebuild")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def cache_rebuild(state: CliState):
        """Rebuild Drupal caches."""
        make_orchestrator(state).cache_rebuild()

    @dev.command("composer-validate")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def composer_validate(state: CliState):
        """Validate composer files with publish checks off."""
        make_orchestrator(state).composer_validate()

    @dev.command("xdebug-enable")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def xdebug_enable(state: CliState):
        """Enable xdebug for the CLI (only where XDEBUG_CONFIG is set)."""
        make_orchestrator(state).xdebug_enable()

    @dev.command("xdebug-disable")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def xdebug_disable(state: CliState):
        """Disable xdebug for the CLI (only where XDEBUG_CONFIG is set)."""
        make_orchestrator(state).xdebug_disable()

    @dev.command("twig-debug-enable")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def twig_debug_enable(state: CliState):
        """Turn on twig debug mode, auto reload on and caching off."""
        make_orchestrator(state).twig_debug_enable()

    @dev.command("twig-debug-disable")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def twig_debug_disable(state: CliState):
        """Turn off twig debug mode, auto reload off and caching on."""
        make_orchestrator(state).twig_debug_disable()

    @dev.command("aggregate-assets-enable")
    @click.option("--no-cache-clear", is_flag=True, default=False, help="Skip the cache rebuild")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def aggregate_assets_enable(state: CliState, no_cache_clear: bool):
        """Enable JS and CSS aggregation."""
        make_orchestrator(state).aggregate_assets_enable(cache_clear=not no_cache_clear)

    @dev.command("aggregate-assets-disable")
    @click.option("--no-cache-clear", is_flag=True, default=False, help="Skip the cache rebuild")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def aggregate_assets_disable(state: CliState, no_cache_clear: bool):
        """Disable JS and CSS aggregation."""
        make_orchestrator(state).aggregate_assets_disable(cache_clear=not no_cache_clear)

    @dev.command("config-writable")
    @add_verbose_option
    @click.pass_obj
    def config_writable(state: CliState):
        """Make configuration files writable."""
        make_orchestrator(state).config_writable()

    @dev.command("config-read-only")
    @add_verbose_option
    @click.pass_obj
    def config_read_only(state: CliState):
        """Make configuration files read only."""
        make_orchestrator(state).config_read_only()

    @dev.command("import-db")
    @click.argument("sql_file")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def import_db(state: CliState, sql_file: str):
        """Import a database dump and reset the admin password."""
        make_orchestrator(state).import_db(sql_file)

    @dev.command("export-db")
    @click.argument("name", default="dump")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def export_db(state: CliState, name: str):
        """Export the database to NAME.sql.gz."""
        make_orchestrator(state).export_db(name)

    @dev.command("reset-admin-pass")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def reset_admin_pass(state: CliState):
        """Reset the password of user 1."""
        make_orchestrator(state).reset_admin_pass()
