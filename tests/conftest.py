"""
Pytest configuration and fixtures for shepherd-scaffold tests.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from shepherd_scaffold.cli import cli
from shepherd_scaffold.core.command_runner import CommandResult
from shepherd_scaffold.utils.logging import set_verbose
from shepherd_scaffold.utils.path_utils import ProjectPaths, resolve_project_paths

DEFAULT_SETTINGS_CONTENT = "<?php\n\n// Default Drupal settings.\n$databases = [];\n"


class FakeRunner:
    """Records commands instead of running them.

    ``failures`` maps a command fragment to the exit code returned for any
    command containing it; ``stdout`` does the same for captured output.
    """

    def __init__(self,
                 failures: Optional[Dict[str, int]] = None,
                 stdout: Optional[Dict[str, str]] = None):
        self.failures = failures or {}
        self.stdout = stdout or {}
        self.calls: List[List[str]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.inputs: List[Optional[str]] = []

    def run(self, args, capture=False, cwd=None, env=None, input_text=None) -> CommandResult:
        cmd = [str(arg) for arg in args]
        self.calls.append(cmd)
        self.envs.append(env)
        self.inputs.append(input_text)
        joined = " ".join(cmd)
        returncode = next((code for fragment, code in self.failures.items() if fragment in joined), 0)
        output = next((out for fragment, out in self.stdout.items() if fragment in joined), "")
        return CommandResult(cmd, returncode, output, "")

    @property
    def commands(self) -> List[str]:
        return [" ".join(call) for call in self.calls]


@pytest.fixture(autouse=True)
def reset_verbose():
    """Keep --verbose from leaking between tests."""
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def shepherd_cli():
    """The root shepherd click group."""
    return cli


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """A Composer project with a vendor directory and Drupal's default settings."""
    root = tmp_path / "project"
    (root / "vendor").mkdir(parents=True)
    sites_default = root / "web" / "sites" / "default"
    sites_default.mkdir(parents=True)
    (sites_default / "default.settings.php").write_text(DEFAULT_SETTINGS_CONTENT)
    return root


@pytest.fixture
def project_paths(project_dir) -> ProjectPaths:
    return resolve_project_paths(project_dir / "vendor")
