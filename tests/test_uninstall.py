import subprocess
from pathlib import Path
from unittest.mock import patch

from servicectl.install import Installer
from servicectl.manifest import ManifestStore, ServiceManifest
from servicectl.request import resolve_install, resolve_uninstall
from servicectl.uninstall import Uninstaller
from tests.fakes import FakeSupervisor


def _install(tool_config, **kwargs):
    kwargs.setdefault("exec_start", "/usr/bin/true")
    request = resolve_install(tool_config, "root", **kwargs)
    return Installer(request, tool_config, FakeSupervisor()).run()


def _uninstall(tool_config, supervisor=None, name="svcA", **kwargs):
    request = resolve_uninstall(name, **kwargs)
    return Uninstaller(request, tool_config, supervisor or FakeSupervisor()).run()


class TestUninstaller:
    def test_install_then_uninstall(self, tool_config):
        installed = _install(tool_config, name="svcA")
        unit = Path(installed.manifest.unit_path)
        manifest = Path(installed.manifest_path)
        assert unit.is_file() and manifest.is_file()

        result = _uninstall(tool_config)
        assert not unit.exists()
        assert not manifest.exists()
        assert result.had_manifest is True
        assert result.unit_removed is True

    def test_created_env_file_is_removed(self, tool_config):
        installed = _install(tool_config, name="svcA")
        env = Path(installed.manifest.env_file)
        assert env.is_file()
        result = _uninstall(tool_config)
        assert result.env_file_removed is True
        assert not env.exists()

    def test_preexisting_env_file_is_preserved(self, tool_config, tmp_path):
        env = tmp_path / "svcB"
        env.write_text("FOO=1")
        _install(tool_config, name="svcB", exec_start="/bin/x", env_file=str(env))
        result = _uninstall(tool_config, name="svcB")
        assert result.env_file_removed is False
        assert env.read_text() == "FOO=1"

    def test_purge_env_overrides_provenance(self, tool_config, tmp_path):
        env = tmp_path / "svcB"
        env.write_text("FOO=1")
        _install(tool_config, name="svcB", exec_start="/bin/x", env_file=str(env))
        result = _uninstall(tool_config, name="svcB", purge_env=True)
        assert result.env_file_removed is True
        assert not env.exists()

    def test_supervisor_sequence(self, tool_config):
        supervisor = FakeSupervisor()
        _uninstall(tool_config, supervisor)
        assert supervisor.ops() == ["stop_and_disable", "reload"]


class TestUninstallWithoutManifest:
    def _leftovers(self, tool_config, name="svcA"):
        unit_dir = Path(tool_config.paths.unit_dir)
        unit_dir.mkdir(parents=True, exist_ok=True)
        unit = unit_dir / f"{name}.service"
        unit.write_text("[Unit]\n")
        env = Path(tool_config.paths.env_dir, name)
        env.write_text("# Add KEY=value here\n")
        return unit, env

    def test_never_installed_is_success(self, tool_config):
        result = _uninstall(tool_config, name="svcNeverInstalled")
        assert result.had_manifest is False
        assert result.unit_removed is False
        assert result.env_file_removed is False
        assert result.warnings == []

    def test_unit_removed_env_file_kept(self, tool_config):
        unit, env = self._leftovers(tool_config)
        result = _uninstall(tool_config)
        assert not unit.exists()
        assert env.exists()
        assert result.env_file_removed is False

    def test_purge_env_removes_conventional_env_file(self, tool_config):
        _, env = self._leftovers(tool_config)
        _uninstall(tool_config, purge_env=True)
        assert not env.exists()


class TestBestEffortSteps:
    def test_deactivate_failure_continues(self, tool_config):
        installed = _install(tool_config, name="svcA")
        supervisor = FakeSupervisor(fail={"stop_and_disable"})
        result = _uninstall(tool_config, supervisor)
        assert [w.step for w in result.warnings] == ["deactivate"]
        assert not Path(installed.manifest.unit_path).exists()
        assert not Path(installed.manifest_path).exists()

    def test_reload_failure_continues(self, tool_config):
        installed = _install(tool_config, name="svcA")
        result = _uninstall(tool_config, FakeSupervisor(fail={"reload"}))
        assert [w.step for w in result.warnings] == ["reload"]
        assert not Path(installed.manifest_path).exists()

    def test_uses_recorded_paths(self, tool_config, tmp_path):
        unit = tmp_path / "elsewhere.service"
        unit.write_text("[Unit]\n")
        env = tmp_path / "elsewhere.env"
        env.write_text("A=1\n")
        ManifestStore(tool_config.paths.manifest_dir).save(ServiceManifest(
            name="svcA", unit_path=str(unit), env_file=str(env),
            env_file_created=True, run_as="root", description="svcA service",
        ))
        _uninstall(tool_config)
        assert not unit.exists()
        assert not env.exists()


class TestPurgeUser:
    @patch("servicectl.uninstall.delete_user")
    @patch("servicectl.uninstall.user_exists", return_value=True)
    def test_deletes_named_user(self, mock_exists, mock_delete, tool_config):
        result = _uninstall(tool_config, purge_user="svcweb")
        mock_delete.assert_called_once_with("svcweb")
        assert result.user_removed is True

    @patch("servicectl.uninstall.delete_user")
    @patch("servicectl.uninstall.user_exists", return_value=False)
    def test_missing_user_is_ok(self, mock_exists, mock_delete, tool_config):
        result = _uninstall(tool_config, purge_user="svcweb")
        mock_delete.assert_not_called()
        assert result.user_removed is False
        assert result.warnings == []

    @patch("servicectl.uninstall.delete_user")
    @patch("servicectl.uninstall.user_exists")
    def test_no_purge_without_flag(self, mock_exists, mock_delete, tool_config):
        _install(tool_config, name="svcA", user="svcweb")
        _uninstall(tool_config)
        mock_exists.assert_not_called()
        mock_delete.assert_not_called()

    @patch("servicectl.uninstall.user_exists", return_value=True)
    def test_delete_failure_is_warning(self, mock_exists, tool_config):
        installed = _install(tool_config, name="svcA")
        err = subprocess.CalledProcessError(8, ["userdel"], stderr="user svcweb is currently used by process 1")
        with patch("servicectl.uninstall.delete_user", side_effect=err):
            result = _uninstall(tool_config, purge_user="svcweb")
        assert result.user_removed is False
        assert result.warnings[0].step == "purge-user"
        assert "currently used" in result.warnings[0].message
        assert not Path(installed.manifest_path).exists()


class TestIncompleteManifest:
    def _write(self, tool_config, data: bytes):
        store = ManifestStore(tool_config.paths.manifest_dir)
        Path(store.root).mkdir()
        Path(store.path_for("svcA")).write_bytes(data)
        return Path(store.path_for("svcA"))

    def _leftovers(self, tool_config):
        unit_dir = Path(tool_config.paths.unit_dir)
        unit_dir.mkdir()
        unit = unit_dir / "svcA.service"
        unit.write_text("[Unit]\n")
        env = Path(tool_config.paths.env_dir, "svcA")
        env.write_text("FOO=1\n")
        return unit, env

    def test_missing_unit_path_uses_conventional_unit(self, tool_config):
        unit, env = self._leftovers(tool_config)
        manifest = self._write(tool_config, b"RUN_AS=root\nENV_CREATED=0\n")
        result = _uninstall(tool_config)
        assert result.had_manifest is True
        assert result.unit_removed is True
        assert not unit.exists()
        assert env.read_text() == "FOO=1\n"
        assert not manifest.exists()

    def test_creation_flag_without_env_path_preserves_env_file(self, tool_config):
        _, env = self._leftovers(tool_config)
        self._write(tool_config, b"ENV_CREATED=1\n")
        result = _uninstall(tool_config)
        assert result.env_file_removed is False
        assert env.exists()

    def test_undecodable_manifest_falls_back_to_inference(self, tool_config):
        unit, env = self._leftovers(tool_config)
        manifest = self._write(tool_config, b"ENV_CREATED=1\nDESC=\xff\xfe\n")
        result = _uninstall(tool_config)
        assert [w.step for w in result.warnings] == ["manifest"]
        assert result.had_manifest is False
        assert not unit.exists()
        assert env.read_text() == "FOO=1\n"
        assert not manifest.exists()
