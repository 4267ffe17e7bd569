"""Tests for the command-line interface."""

import io
import socket
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from webstart_cli import __version__
from webstart_cli.cli.app import EXIT_FAILURE, EXIT_LAUNCH_ERROR, app
from webstart_cli.cli.progress_manager import ProgressManager

runner = CliRunner()

INFO_JNLP = """<jnlp codebase="http://127.0.0.1:{port}/">
    <information><title>CLI Sample</title><vendor>Acme</vendor></information>
    <resources><jar href="sample.jar" main="true"/></resources>
    <application-desc main-class="Hello"/>
</jnlp>
"""


def _unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.ini"
    path.write_text(
        f"[DEFAULT]\ntarget_dir = {tmp_path / 'jars'}\nmax_attempts = 1\nretry_delay = 0\n"
    )
    return path


@pytest.fixture
def descriptor_file(tmp_path: Path) -> Path:
    path = tmp_path / "app.jnlp"
    path.write_text(INFO_JNLP.format(port=_unused_port()))
    return path


@pytest.mark.unit
class TestCli:
    """Test suite for the webstart command."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_descriptor_prints_usage(self, config_file: Path) -> None:
        result = runner.invoke(app, ["--config", str(config_file)])

        assert result.exit_code == EXIT_FAILURE
        assert "Usage: webstart" in result.output

    def test_info(self, config_file: Path, descriptor_file: Path) -> None:
        """Test that --info shows the descriptor without downloading anything."""
        result = runner.invoke(
            app, ["--config", str(config_file), "--info", descriptor_file.as_uri()]
        )

        assert result.exit_code == 0
        assert "CLI Sample" in result.output
        assert not (config_file.parent / "jars").exists()

    def test_unreadable_descriptor(self, config_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(config_file), (tmp_path / "missing.jnlp").as_uri()]
        )

        assert result.exit_code == EXIT_LAUNCH_ERROR
        assert "DescriptorError" in result.output

    def test_download_failure(self, config_file: Path, descriptor_file: Path) -> None:
        result = runner.invoke(app, ["--config", str(config_file), descriptor_file.as_uri()])

        assert result.exit_code == EXIT_LAUNCH_ERROR
        assert "DownloadError" in result.output

    def test_missing_local_jar(
        self, config_file: Path, descriptor_file: Path, tmp_path: Path
    ) -> None:
        """Test that --jar skips the download and reports a jar that is not there."""
        result = runner.invoke(
            app,
            [
                "--config",
                str(config_file),
                "--jar",
                str(tmp_path / "missing.jar"),
                descriptor_file.as_uri(),
            ],
        )

        assert result.exit_code == EXIT_LAUNCH_ERROR
        assert "ConfigurationError" in result.output
        assert "DownloadError" not in result.output

    def test_invalid_config(self, tmp_path: Path, descriptor_file: Path) -> None:
        path = tmp_path / "bad.ini"
        path.write_text("[DEFAULT]\nmax_attempts = 0\n")

        result = runner.invoke(app, ["--config", str(path), descriptor_file.as_uri()])

        assert result.exit_code == EXIT_LAUNCH_ERROR
        assert "ConfigurationError" in result.output

    def test_init_and_show_config(self, tmp_path: Path) -> None:
        path = tmp_path / "new" / "config.ini"

        result = runner.invoke(app, ["--config", str(path), "--init-config"])
        assert result.exit_code == 0
        assert path.is_file()

        result = runner.invoke(app, ["--config", str(path), "--show-config"])
        assert result.exit_code == 0
        assert "max_attempts" in result.output


@pytest.mark.unit
class TestProgressManager:
    """Test suite for the rich progress reporter."""

    async def test_display_stops_when_transfers_finish(self) -> None:
        """Test that the live display only runs while a transfer is active."""
        manager = ProgressManager(Console(file=io.StringIO()))

        async with manager:
            manager.start("a.jar", 100)
            manager.start("b.jar", None)
            assert manager.progress.live.is_started
            manager.advance("a.jar", 50)
            manager.finish("a.jar", True)
            assert manager.progress.live.is_started
            manager.finish("b.jar", False)
            assert not manager.progress.live.is_started

        assert manager.progress.tasks == []

    async def test_disabled_manager_ignores_updates(self) -> None:
        manager = ProgressManager(Console(file=io.StringIO()), enabled=False)

        manager.start("a.jar", 100)
        manager.advance("a.jar", 10)
        manager.finish("a.jar", True)

        assert not manager.progress.live.is_started
