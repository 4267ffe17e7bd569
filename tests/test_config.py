"""Tests for LauncherConfig and ConfigManager."""

import configparser
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from webstart_cli.exceptions import ConfigurationError
from webstart_cli.models import LauncherConfig
from webstart_cli.storage import ConfigManager


@pytest.mark.unit
class TestLauncherConfig:
    """Test suite for the configuration model."""

    def test_defaults(self) -> None:
        config = LauncherConfig()

        assert config.trust is False
        assert config.verify is True
        assert config.max_attempts == 3
        assert config.target_path == Path(".").resolve()

    @pytest.mark.parametrize("max_attempts", [0, 11])
    def test_max_attempts_range(self, max_attempts: int) -> None:
        with pytest.raises(ValidationError):
            LauncherConfig(max_attempts=max_attempts)

    def test_negative_timeout(self) -> None:
        with pytest.raises(ValidationError):
            LauncherConfig(read_timeout=-1)

    def test_empty_command(self) -> None:
        with pytest.raises(ValidationError):
            LauncherConfig(java_command="  ")

    def test_target_dir_must_not_be_a_file(self, tmp_path: Path) -> None:
        path = tmp_path / "file"
        path.write_text("x")

        with pytest.raises(ValidationError):
            LauncherConfig(target_dir=str(path))

    def test_explicit_command_is_used_as_given(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("JAVA_HOME", str(tmp_path))

        assert LauncherConfig(java_command="/opt/jdk/bin/java").resolve_java_command() == (
            "/opt/jdk/bin/java"
        )

    @pytest.mark.skipif(sys.platform == "win32", reason="tool names without .exe")
    def test_default_command_uses_java_home(self, monkeypatch, tmp_path: Path) -> None:
        """Test that JAVA_HOME/bin is preferred when the default command is configured."""
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        (bin_dir / "java").write_text("")
        (bin_dir / "jarsigner").write_text("")
        monkeypatch.setenv("JAVA_HOME", str(tmp_path))

        config = LauncherConfig()

        assert config.resolve_java_command() == str(bin_dir / "java")
        assert config.resolve_jarsigner_command() == str(bin_dir / "jarsigner")

    def test_ini_keys_exclude_internal_fields(self) -> None:
        keys = LauncherConfig.get_ini_keys()

        assert "target_dir" in keys
        assert "trust" not in keys
        assert "descriptor_url" not in keys


@pytest.mark.unit
class TestConfigManager:
    """Test suite for the INI configuration file."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = ConfigManager(tmp_path / "config.ini").load_config()

        assert config == LauncherConfig(config_path=str(tmp_path))

    def test_values_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text(
            "[DEFAULT]\n"
            "target_dir = ~/jars\n"
            "verify = false\n"
            "max_attempts = 5\n"
            "retry_delay = 0.5\n"
        )

        config = ConfigManager(path).load_config()

        assert config.target_dir == "~/jars"
        assert config.verify is False
        assert config.max_attempts == 5
        assert config.retry_delay == 0.5

    def test_cli_options_override_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nverify = true\ntarget_dir = from-file\n")

        config = ConfigManager(path).load_config(
            {"verify": False, "trust": True, "descriptor_url": "file:///app.jnlp"}
        )

        assert config.verify is False
        assert config.trust is True
        assert config.target_dir == "from-file"
        assert config.descriptor_url == "file:///app.jnlp"

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_attempts = lots\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_out_of_range_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_attempts = 50\n")

        with pytest.raises(ConfigurationError, match="validation"):
            ConfigManager(path).load_config()

    def test_unknown_keys_are_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\ncolour = blue\nverify = no\n")

        config = ConfigManager(path).load_config()

        assert config.verify is False

    def test_save_new_config(self, tmp_path: Path) -> None:
        """Test that a saved file holds every INI key and loads back the same."""
        path = tmp_path / "nested" / "config.ini"
        manager = ConfigManager(path)

        manager.save_new_config({"max_attempts": 4, "verify": False})

        parser = configparser.ConfigParser()
        parser.read(path)
        assert set(parser["DEFAULT"]) == LauncherConfig.get_ini_keys()
        assert parser["DEFAULT"]["verify"] == "false"
        config = manager.load_config()
        assert config.max_attempts == 4
        assert config.verify is False
        assert config.java_command == "java"
