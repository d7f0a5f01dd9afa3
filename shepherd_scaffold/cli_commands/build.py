"""
Build commands.
"""

from __future__ import annotations

import click

from shepherd_scaffold.cli.helpers import CliState, add_verbose_option, command_wrapper
from shepherd_scaffold.core.build_orchestrator import DISTRIBUTION_INSTALL_FLAGS, BuildOrchestrator
from shepherd_scaffold.core.command_runner import CommandRunner
from shepherd_scaffold.utils.logging import error_exit


def make_orchestrator(state: CliState) -> BuildOrchestrator:
    """Build an orchestrator wired to the invocation's configuration."""
    return BuildOrchestrator(
        state.config,
        project_root=state.project_root,
        project_config=state.project_config,
        runner=CommandRunner(cwd=state.project_root),
    )


def register_commands(cli) -> None:
    @cli.command()
    @add_verbose_option
    @click.pass_obj
    def build(state: CliState):
        """Perform a full build on the project."""
        result = make_orchestrator(state).run_build()
        if not result.success:
            error_exit(f"Build failed at step '{result.failed_step}': {result.message}",
                       exit_code=result.exit_code)

    @cli.command("distribution-build")
    @click.option("--flags", default=DISTRIBUTION_INSTALL_FLAGS, show_default=True,
                  help="Flags passed to composer install")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def distribution_build(state: CliState, flags: str):
        """Build the code base for automated deployments without installing."""
        make_orchestrator(state).distribution_build(flags)

    @cli.command("build-install")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def build_install(state: CliState):
        """Install Drupal with the configured profile."""
        make_orchestrator(state).build_install()

    @cli.command("build-clean")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def build_clean(state: CliState):
        """Remove build artefacts in preparation for a new build."""
        make_orchestrator(state).build_clean()

    @cli.command("build-update")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def build_update(state: CliState):
        """Run all pending Drupal database updates."""
        make_orchestrator(state).build_update()

    @cli.command("build-set-files-owner")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def build_set_files_owner(state: CliState):
        """Give the web user ownership of the shared files directories."""
        make_orchestrator(state).set_files_owner()

    @cli.command("set-site-path")
    @add_verbose_option
    @click.pass_obj
    @command_wrapper
    def set_site_path(state: CliState):
        """Set the .htaccess RewriteBase from WEB_PATH."""
        make_orchestrator(state).set_site_path()
