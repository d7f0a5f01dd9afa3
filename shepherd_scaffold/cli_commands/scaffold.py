"""
Scaffold command run from Composer scripts.
"""

from __future__ import annotations

import click

from shepherd_scaffold.cli.helpers import CliState, add_verbose_option, command_wrapper
from shepherd_scaffold.commands.scaffold import ScaffoldManager
from shepherd_scaffold.config.settings import SCAFFOLD_EVENTS
from shepherd_scaffold.utils.path_utils import get_vendor_dir, resolve_project_paths


def register_commands(cli) -> None:
    @cli.command()
    @click.option(
        "--event",
        "event_name",
        type=click.Choice(SCAFFOLD_EVENTS),
        default="post-install-cmd",
        show_default=True,
        help="Composer event that triggered the scaffold",
    )
    @click.option(
        "--recopy",
        is_flag=True,
        default=False,
        help="Always recopy default.settings.php, discarding anything added to settings.php",
    )
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def scaffold(state: CliState, event_name: str, recopy: bool):
        """Scaffold settings.php and local development files."""
        vendor_dir = get_vendor_dir(state.project_root, state.config.composer_vendor_dir)
        paths = resolve_project_paths(vendor_dir)
        ScaffoldManager(state.config, paths).post_install(event_name, recopy=recopy)
