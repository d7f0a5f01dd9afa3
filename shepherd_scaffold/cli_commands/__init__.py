"""
CLI command registration entry points.
"""

from __future__ import annotations

from typing import Callable, List


def register_all_commands(cli) -> None:
    """Register every command group with the root CLI instance."""
    for register in _collect_registrars():
        register(cli)


def _collect_registrars() -> List[Callable]:
    from . import build, dev, lint, scaffold, settings

    return [
        scaffold.register_commands,
        settings.register_commands,
        build.register_commands,
        dev.register_commands,
        lint.register_commands,
    ]
