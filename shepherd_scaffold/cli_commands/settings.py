"""
settings.php generation and inspection commands.
"""

from __future__ import annotations

import click
import yaml

from shepherd_scaffold.cli.helpers import CliState, add_verbose_option, command_wrapper
from shepherd_scaffold.core.settings_generator import SettingsGenerator, generate_hash_salt, preview_settings
from shepherd_scaffold.utils.logging import print_plain
from shepherd_scaffold.utils.path_utils import get_vendor_dir, resolve_project_paths


def register_commands(cli) -> None:
    @cli.group()
    def settings():
        """Generate and inspect the Shepherd settings.php block."""

    @settings.command("generate")
    @click.option("--recopy", is_flag=True, default=False,
                  help="Always recopy default.settings.php first")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def generate(state: CliState, recopy: bool):
        """Create settings.php and append the Shepherd block if missing."""
        vendor_dir = get_vendor_dir(state.project_root, state.config.composer_vendor_dir)
        paths = resolve_project_paths(vendor_dir)
        if not SettingsGenerator(paths).ensure_settings_file(recopy=recopy):
            print_plain("settings.php already contains the Shepherd configuration.")

    @settings.command("preview")
    @click.option("--unmask", is_flag=True, default=False, help="Show secret values")
    @click.pass_obj
    @command_wrapper
    def preview(state: CliState, unmask: bool):
        """Show the settings Drupal resolves from the current environment."""
        # Previewing never creates the vendor directory.
        vendor_dir = get_vendor_dir(state.project_root, state.config.composer_vendor_dir)
        paths = resolve_project_paths(vendor_dir) if vendor_dir.is_dir() else None
        resolved = preview_settings(state.config, mask_secrets=not unmask, paths=paths)
        print_plain(yaml.safe_dump(resolved, default_flow_style=False, sort_keys=False).rstrip())

    @settings.command("salt")
    def salt():
        """Print a freshly generated hash salt."""
        print_plain(generate_hash_salt())
