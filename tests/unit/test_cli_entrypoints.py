import os

import pytest
from click.testing import CliRunner

from shepherd_scaffold.cli.dsh import dsh
from shepherd_scaffold.config.settings import SETTINGS_START_MARKER, VERSION
from shepherd_scaffold.exceptions import ComposeError

from conftest import FakeRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("SHEPHERD_ENVIRONMENT", "SHEPHERD_INSTALL_PROFILE", "COMPOSER_VENDOR_DIR",
                 "DATABASE_HOST", "XDEBUG_CONFIG", "SITE_UUID", "WEB_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_help_lists_command_groups(runner, shepherd_cli):
    result = runner.invoke(shepherd_cli, ["--help"])
    assert result.exit_code == 0
    for command in ("scaffold", "settings", "build", "dev", "lint", "distribution-build"):
        assert command in result.output


def test_version(runner, shepherd_cli):
    result = runner.invoke(shepherd_cli, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.output


def test_settings_salt(runner, shepherd_cli):
    result = runner.invoke(shepherd_cli, ["settings", "salt"])
    assert result.exit_code == 0
    assert len(result.output.strip()) == 74


def test_settings_preview_sqlite(runner, shepherd_cli, monkeypatch):
    monkeypatch.setenv("SQLITE_DATABASE", "/tmp/site.sqlite")

    result = runner.invoke(shepherd_cli, ["settings", "preview"])

    assert result.exit_code == 0
    assert "driver: sqlite" in result.output
    assert "cache:" not in result.output


def test_scaffold_command(runner, shepherd_cli, project_dir):
    result = runner.invoke(shepherd_cli, ["--project-root", str(project_dir), "scaffold"])

    assert result.exit_code == 0, result.output
    settings_file = project_dir / "web" / "sites" / "default" / "settings.php"
    assert SETTINGS_START_MARKER in settings_file.read_text()
    assert (project_dir / "config-sync").is_dir()


def test_scaffold_uses_composer_vendor_dir(runner, shepherd_cli, project_dir, monkeypatch, tmp_path):
    monkeypatch.setenv("COMPOSER_VENDOR_DIR", str(project_dir / "vendor"))
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()

    result = runner.invoke(shepherd_cli, ["--project-root", str(elsewhere), "scaffold"])

    assert result.exit_code == 0, result.output
    assert (project_dir / "web" / "sites" / "default" / "settings.php").exists()
    assert not (elsewhere / "vendor").exists()


def test_scaffold_command_is_idempotent(runner, shepherd_cli, project_dir):
    runner.invoke(shepherd_cli, ["--project-root", str(project_dir), "scaffold"])
    settings_file = project_dir / "web" / "sites" / "default" / "settings.php"
    first = settings_file.read_bytes()

    result = runner.invoke(shepherd_cli, ["--project-root", str(project_dir), "settings", "generate"])

    assert result.exit_code == 0
    assert settings_file.read_bytes() == first


def test_scaffold_missing_default_settings(runner, shepherd_cli, project_dir):
    (project_dir / "web" / "sites" / "default" / "default.settings.php").unlink()

    result = runner.invoke(shepherd_cli, ["--project-root", str(project_dir), "scaffold"])

    assert result.exit_code == 1


def test_scaffold_rejects_unknown_event(runner, shepherd_cli, project_dir):
    result = runner.invoke(shepherd_cli, ["--project-root", str(project_dir), "scaffold", "--event", "pre-install-cmd"])
    assert result.exit_code == 2


def test_build_without_install_profile(runner, shepherd_cli, monkeypatch, tmp_path):
    fake = FakeRunner()
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "build"])

    assert result.exit_code == 1
    assert fake.calls == []


def test_build_success(runner, shepherd_cli, monkeypatch, tmp_path):
    app_root = tmp_path / "web"
    sites_default = app_root / "sites" / "default"
    sites_default.mkdir(parents=True)
    (tmp_path / "shepherd.yml").write_text(
        f"application_root: {app_root}\nfile_paths:\n  - {tmp_path / 'shared'}\n"
    )
    fake = FakeRunner()
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)
    monkeypatch.setattr("shepherd_scaffold.core.build_orchestrator.shutil.chown", lambda *a, **kw: None)
    monkeypatch.setattr("shepherd_scaffold.core.build_orchestrator.get_local_user", lambda: "builder")
    monkeypatch.setenv("SHEPHERD_INSTALL_PROFILE", "standard")

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "build"])
    os.chmod(sites_default, 0o755)

    assert result.exit_code == 0, result.output
    assert "drush site-install standard" in " ".join(fake.commands)


def test_build_failure_exit_code(runner, shepherd_cli, monkeypatch, tmp_path):
    fake = FakeRunner(failures={"composer validate": 1})
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)
    monkeypatch.setenv("SHEPHERD_INSTALL_PROFILE", "standard")

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "build"])

    assert result.exit_code == 1
    assert fake.commands == ["composer validate --no-check-publish"]


def test_invalid_project_config_exit_code(runner, shepherd_cli, monkeypatch, tmp_path):
    (tmp_path / "shepherd.yml").write_text("application_root:\n")
    fake = FakeRunner()
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)
    monkeypatch.setenv("SHEPHERD_INSTALL_PROFILE", "standard")

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "build"])

    assert result.exit_code == 1
    assert fake.calls == []


def test_dev_cache_rebuild(runner, shepherd_cli, monkeypatch, tmp_path):
    fake = FakeRunner()
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "dev", "cache-rebuild"])

    assert result.exit_code == 0
    assert fake.commands == ["drush cr"]


def test_lint_failure(runner, shepherd_cli, monkeypatch, tmp_path):
    fake = FakeRunner(failures={"phpcs": 1})
    monkeypatch.setattr("shepherd_scaffold.cli_commands.build.CommandRunner", lambda cwd=None: fake)

    result = runner.invoke(shepherd_cli, ["--project-root", str(tmp_path), "lint", "php"])

    assert result.exit_code == 1


class FakeComposeManager:
    instances = []

    def __init__(self, project_root=None, project_config=None, environ=None, result=True):
        self.project_root = project_root
        self.project_config = project_config
        self.environ = environ
        self.result = result
        self.calls = []
        FakeComposeManager.instances.append(self)

    def __getattr__(self, name):
        def action(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self.result
        return action


@pytest.fixture
def fake_compose(monkeypatch):
    FakeComposeManager.instances = []
    monkeypatch.setattr("shepherd_scaffold.cli.dsh.ComposeManager", FakeComposeManager)
    return FakeComposeManager


def test_dsh_start(runner, fake_compose, tmp_path):
    result = runner.invoke(dsh, ["--project-root", str(tmp_path), "start"])

    assert result.exit_code == 0
    manager = fake_compose.instances[0]
    assert manager.project_root == tmp_path.resolve()
    assert manager.environ is os.environ
    assert manager.calls == [("start", (), {})]


def test_dsh_shell_passes_arguments(runner, fake_compose, tmp_path):
    result = runner.invoke(dsh, ["--project-root", str(tmp_path), "shell", "drush", "-y", "cr"])

    assert result.exit_code == 0
    assert fake_compose.instances[0].calls == [("shell", (["drush", "-y", "cr"],), {})]


def test_dsh_logs_follow(runner, fake_compose, tmp_path):
    runner.invoke(dsh, ["--project-root", str(tmp_path), "logs", "-f", "web"])

    assert fake_compose.instances[0].calls == [("logs", (), {"follow": True, "services": ["web"]})]


def test_dsh_failure_exit_code(runner, monkeypatch, tmp_path):
    monkeypatch.setattr(
        "shepherd_scaffold.cli.dsh.ComposeManager",
        lambda **kwargs: FakeComposeManager(result=False),
    )

    result = runner.invoke(dsh, ["--project-root", str(tmp_path), "stop"])

    assert result.exit_code == 1


def test_dsh_invalid_project_config(runner, fake_compose, tmp_path):
    (tmp_path / "shepherd.yml").write_text("compose: web\n")

    result = runner.invoke(dsh, ["--project-root", str(tmp_path), "start"])

    assert result.exit_code == 1
    assert fake_compose.instances == []


def test_dsh_setup_nfs_unsupported(runner, monkeypatch, tmp_path):
    class LinuxManager(FakeComposeManager):
        def setup_nfs(self):
            raise ComposeError("NFS setup is only supported on macOS")

    monkeypatch.setattr("shepherd_scaffold.cli.dsh.ComposeManager", LinuxManager)

    result = runner.invoke(dsh, ["--project-root", str(tmp_path), "setup-nfs"])

    assert result.exit_code == 1
