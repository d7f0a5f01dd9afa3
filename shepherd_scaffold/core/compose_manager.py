"""
Docker Compose management for the dsh developer tool.

Each public method maps to one compose action against the platform specific
compose file scaffolded into the project, and returns True on success.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from ..config.settings import get_default_config
from ..exceptions import ComposeError
from ..utils.env_loader import load_env_file
from ..utils.logging import log_error, log_info, log_success, log_warning
from .command_runner import CommandRunner

DEFAULT_DOMAINS = {
    "linux": "172.17.0.1.nip.io",
    "darwin": "127.0.0.1.nip.io",
}
NFS_EXPORTS_FILE = Path("/etc/exports")
NFS_CONF_FILE = Path("/etc/nfs.conf")
NFS_CONF_LINE = "nfs.server.mount.require_resv_port = 0"
NFS_VOLUME = "nfsmount"


def get_compose_command() -> List[str]:
    """Get the appropriate docker compose command."""
    try:
        subprocess.run(["docker", "compose", "version"],
                       capture_output=True, check=True)
        return ["docker", "compose"]
    except (subprocess.CalledProcessError, FileNotFoundError):
        return ["docker-compose"]


def get_platform() -> str:
    """Host platform name used to pick the compose file."""
    return "darwin" if sys.platform == "darwin" else "linux"


class ComposeManager:
    """Runs docker compose actions for a Shepherd project."""

    def __init__(self,
                 project_root: Optional[Path] = None,
                 project_config: Optional[Dict] = None,
                 runner: Optional[CommandRunner] = None,
                 platform: Optional[str] = None,
                 compose_cmd: Optional[List[str]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            environ: Process environment forwarded to docker compose. The dsh
                CLI passes ``os.environ``; nothing is inherited when omitted.
        """
        self.project_root = Path(project_root or Path.cwd()).resolve()
        self.project_config = project_config or get_default_config()
        self.platform = platform or get_platform()
        self.runner = runner or CommandRunner(cwd=self.project_root)
        self._compose_cmd = compose_cmd

        compose = self.project_config.get("compose") or {}
        self.service = compose.get("service") or "web"
        self.shell_command = compose.get("shell") or "bash"
        self.env = self._load_environment(environ or {}, compose.get("domain"))

    @property
    def compose_cmd(self) -> List[str]:
        if self._compose_cmd is None:
            self._compose_cmd = get_compose_command()
        return self._compose_cmd

    @property
    def compose_file(self) -> Path:
        return self.project_root / f"docker-compose.{self.platform}.yml"

    @property
    def project_name(self) -> str:
        return self.env["PROJECT"]

    @property
    def url(self) -> str:
        return f"http://{self.env['PROJECT']}.{self.env['DOMAIN']}"

    def _load_environment(self, environ: Mapping[str, str],
                          configured_domain: Optional[str]) -> Dict[str, str]:
        """Environment for compose: process env, then .env, then defaults."""
        env = dict(environ)
        for key, value in load_env_file(self.project_root / ".env").items():
            env.setdefault(key, value)
        env.setdefault("PROJECT", self.project_root.name)
        env.setdefault("DOMAIN", configured_domain or DEFAULT_DOMAINS[self.platform])
        env.setdefault("USER_ID", str(os.getuid()))
        env.setdefault("GROUP_ID", str(os.getgid()))
        env["PWD"] = str(self.project_root)
        return env

    def _compose(self, *args: str) -> bool:
        if not self.compose_file.exists():
            log_error(f"Compose file not found: {self.compose_file}")
            return False
        cmd = [*self.compose_cmd, "-p", self.project_name, "-f", str(self.compose_file), *args]
        result = self.runner.run(cmd, cwd=self.project_root, env=self.env)
        if not result.ok:
            log_error(f"docker compose {' '.join(args)} failed with exit code {result.returncode}")
        return result.ok

    def start(self) -> bool:
        """Start the project containers in the background."""
        if self.platform == "darwin" and not self.nfs_configured():
            log_warning("NFS is not configured, run 'dsh setup-nfs' first")
        if not self._compose("up", "-d"):
            return False
        log_success(f"Started {self.project_name}: {self.url}")
        return True

    def shell(self, command: Optional[List[str]] = None) -> bool:
        """Open a shell (or run ``command``) in the web container."""
        args = list(command) if command else [self.shell_command]
        return self._compose("exec", self.service, *args)

    def stop(self) -> bool:
        """Stop the project containers."""
        return self._compose("stop")

    def down(self) -> bool:
        """Stop and remove the project containers and networks."""
        return self._compose("down")

    def purge(self) -> bool:
        """Remove containers, networks, volumes and locally built images."""
        return self._compose("down", "--volumes", "--remove-orphans", "--rmi", "local")

    def status(self) -> bool:
        """Show the state of the project containers."""
        return self._compose("ps")

    def logs(self, follow: bool = False, services: Optional[List[str]] = None) -> bool:
        """Show container logs."""
        args = ["logs"]
        if follow:
            args.append("--follow")
        args.extend(services or [])
        return self._compose(*args)

    def pull(self) -> bool:
        """Pull the latest images for all services."""
        return self._compose("pull")

    # macOS NFS

    def _require_darwin(self) -> None:
        if self.platform != "darwin":
            raise ComposeError(
                "NFS setup is only supported on macOS",
                error_code="unsupported_platform",
                details={"platform": self.platform},
            )

    def nfs_export_line(self) -> str:
        return f'"{self.project_root}" -alldirs -mapall={os.getuid()}:{os.getgid()} localhost'

    def nfs_configured(self) -> bool:
        try:
            return self.nfs_export_line() in NFS_EXPORTS_FILE.read_text()
        except OSError:
            return False

    def _append_as_root(self, path: Path, line: str) -> bool:
        result = self.runner.run(["sudo", "tee", "-a", str(path)], capture=True, input_text=f"{line}\n")
        return result.ok

    def setup_nfs(self) -> bool:
        """Export the project directory over NFS for the darwin compose file."""
        self._require_darwin()
        if self.nfs_configured():
            log_info(f"{NFS_EXPORTS_FILE} already exports {self.project_root}")
        elif not self._append_as_root(NFS_EXPORTS_FILE, self.nfs_export_line()):
            log_error(f"Failed to update {NFS_EXPORTS_FILE}")
            return False

        try:
            nfs_conf = NFS_CONF_FILE.read_text() if NFS_CONF_FILE.exists() else ""
        except OSError:
            nfs_conf = ""
        if NFS_CONF_LINE not in nfs_conf and not self._append_as_root(NFS_CONF_FILE, NFS_CONF_LINE):
            log_error(f"Failed to update {NFS_CONF_FILE}")
            return False

        if not self.runner.run(["sudo", "nfsd", "restart"]).ok:
            log_error("Failed to restart nfsd")
            return False
        log_success("NFS configured")
        return True

    def teardown_nfs(self) -> bool:
        """Remove the project NFS export and its docker volume."""
        self._require_darwin()
        escaped = str(self.project_root).replace("/", "\\/")
        if not self.runner.run(["sudo", "sed", "-i", "", f"/^\"{escaped}\"/d", str(NFS_EXPORTS_FILE)]).ok:
            log_error(f"Failed to update {NFS_EXPORTS_FILE}")
            return False
        if not self.runner.run(["sudo", "nfsd", "restart"]).ok:
            log_error("Failed to restart nfsd")
            return False
        volume = f"{self.project_name}_{NFS_VOLUME}"
        if not self.runner.run(["docker", "volume", "rm", "-f", volume], capture=True).ok:
            log_warning(f"Could not remove volume {volume}")
        log_success("NFS export removed")
        return True
