"""
Click CLI for dsh, the local development wrapper around docker compose.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from shepherd_scaffold.cli.helpers import add_project_root_option, add_verbose_option, command_wrapper
from shepherd_scaffold.config.settings import VERSION, get_project_config
from shepherd_scaffold.core.compose_manager import ComposeManager
from shepherd_scaffold.exceptions import ShepherdError
from shepherd_scaffold.utils.logging import error_exit, log_error


def _run(ok: bool, action: str) -> None:
    if not ok:
        error_exit(f"dsh {action} failed")


def _build_dsh() -> click.Group:
    @click.group(
        help="""dsh: local development environment for Shepherd projects

Wraps docker compose using the docker-compose.<platform>.yml file in the
project root.

Examples:
    dsh start
    dsh shell
    dsh logs -f
    dsh stop
"""
    )
    @click.version_option(version=VERSION, prog_name="dsh")
    @add_verbose_option
    @add_project_root_option
    @click.pass_context
    def dsh(ctx: click.Context, project_root: Optional[Path]):
        root = Path(project_root or Path.cwd()).resolve()
        try:
            ctx.obj = ComposeManager(
                project_root=root,
                project_config=get_project_config(root),
                environ=os.environ,
            )
        except ShepherdError as exc:
            error_exit(exc.message, exit_code=exc.exit_code)

    @dsh.command()
    @click.pass_obj
    def start(manager: ComposeManager):
        """Start the project containers."""
        _run(manager.start(), "start")

    @dsh.command(context_settings=dict(ignore_unknown_options=True))
    @click.argument("command", nargs=-1, type=click.UNPROCESSED)
    @click.pass_obj
    def shell(manager: ComposeManager, command: Tuple[str, ...]):
        """Open a shell in the web container, or run COMMAND there."""
        _run(manager.shell(list(command)), "shell")

    @dsh.command()
    @click.pass_obj
    def stop(manager: ComposeManager):
        """Stop the project containers."""
        _run(manager.stop(), "stop")

    @dsh.command()
    @click.pass_obj
    def down(manager: ComposeManager):
        """Stop and remove the project containers."""
        _run(manager.down(), "down")

    @dsh.command()
    @click.pass_obj
    def purge(manager: ComposeManager):
        """Remove containers, volumes and locally built images."""
        _run(manager.purge(), "purge")

    @dsh.command()
    @click.pass_obj
    def status(manager: ComposeManager):
        """Show the state of the project containers."""
        _run(manager.status(), "status")

    @dsh.command()
    @click.option("--follow", "-f", is_flag=True, default=False, help="Follow log output")
    @click.argument("services", nargs=-1)
    @click.pass_obj
    def logs(manager: ComposeManager, follow: bool, services: Tuple[str, ...]):
        """Show container logs."""
        _run(manager.logs(follow=follow, services=list(services)), "logs")

    @dsh.command()
    @click.pass_obj
    def pull(manager: ComposeManager):
        """Pull the latest container images."""
        _run(manager.pull(), "pull")

    @dsh.command("setup-nfs")
    @click.pass_obj
    @command_wrapper
    def setup_nfs(manager: ComposeManager):
        """Export the project over NFS (macOS only)."""
        _run(manager.setup_nfs(), "setup-nfs")

    @dsh.command("teardown-nfs")
    @click.pass_obj
    @command_wrapper
    def teardown_nfs(manager: ComposeManager):
        """Remove the project NFS export (macOS only)."""
        _run(manager.teardown_nfs(), "teardown-nfs")

    return dsh


dsh = _build_dsh()


def main():
    """Main entry point for dsh."""
    try:
        dsh()
    except KeyboardInterrupt:
        log_error("Operation cancelled by user")
        sys.exit(1)
    except Exception as exc:
        log_error(f"Unexpected error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
