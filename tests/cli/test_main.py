"""Tests for the asmgraph command group."""

from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from asmgraph.cli.main import cli

runner = CliRunner()


class TestCliGroup:
    """Group-level options."""

    def test_version(self) -> None:
        """--version prints the program name and version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "asmgraph" in result.output
        assert "0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        """Every command is registered."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("analyze", "parse", "hot", "common", "report"):
            assert name in result.output

    def test_missing_config_file_fails(self, tmp_path: Path) -> None:
        """-c with a missing file is CONFIG_FILE_NOT_FOUND."""
        result = runner.invoke(
            cli, ["--root", str(tmp_path), "-c", str(tmp_path / "nope.yaml"), "hot"]
        )
        assert result.exit_code != 0
        assert "CONFIG_FILE_NOT_FOUND" in result.output

    def test_invalid_project_config_fails(self, tmp_path: Path) -> None:
        """Invalid config values stop the CLI before any command runs."""
        (tmp_path / ".asmgraph").mkdir()
        (tmp_path / ".asmgraph" / "config.yaml").write_text("build:\n  jobs: 0\n")
        result = runner.invoke(cli, ["--root", str(tmp_path), "hot"])
        assert result.exit_code != 0
        assert "CONFIG_INVALID_VALUE" in result.output

    def test_config_file_sets_snapshot_path(self, tmp_path: Path) -> None:
        """Commands read storage.snapshot_path from the config."""
        config = tmp_path / "cfg.yaml"
        config.write_text("storage:\n  snapshot_path: custom/graph.json\n")
        result = runner.invoke(cli, ["--root", str(tmp_path), "-c", str(config), "hot"])
        assert result.exit_code != 0
        assert "custom/graph.json" in result.output
