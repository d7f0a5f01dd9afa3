"""
External command execution for shepherd-scaffold.

Every build step and dsh action shells out through ``CommandRunner`` so that
tests can substitute a recording fake.
"""

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..utils.logging import log_error, log_info


@dataclass
class CommandResult:
    """Result of one external command."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands synchronously, one at a time."""

    def __init__(self, cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None):
        self.cwd = cwd
        self.env = env

    def run(self,
            args: Sequence[str],
            capture: bool = False,
            cwd: Optional[Path] = None,
            env: Optional[Dict[str, str]] = None,
            input_text: Optional[str] = None) -> CommandResult:
        """Run a command and wait for it.

        Output streams straight to the terminal unless ``capture`` is set. A
        missing executable is reported as exit code 127 rather than raised.
        """
        cmd = [str(arg) for arg in args]
        working_dir = cwd or self.cwd
        log_info(f"Running: {shlex.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd,
                cwd=working_dir,
                env=env or self.env,
                input=input_text,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            log_error(f"Command not found: {cmd[0]}")
            return CommandResult(cmd, 127, "", str(e))
        except OSError as e:
            log_error(f"Failed to run {cmd[0]}: {e}")
            return CommandResult(cmd, 126, "", str(e))

        return CommandResult(
            cmd,
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )
