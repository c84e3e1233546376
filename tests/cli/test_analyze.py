"""Tests for asmgraph analyze and asmgraph parse."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from asmgraph.build.assembly import AssemblyCommand
from asmgraph.cli.main import cli
from asmgraph.core.errors import BuildError
from asmgraph.graph import read_snapshot

runner = CliRunner()


def _listing(name: str) -> str:
    return (
        "\t.globl\tshared\n"
        "\t.type\tshared, @function\n"
        "shared:\n\tret\n\t.size\tshared, .-shared\n"
        f"\t.type\t{name}, @function\n"
        f"{name}:\n\tcall\tshared\n\tret\n\t.size\t{name}, .-{name}\n"
    )


def _fake_compiler(command: AssemblyCommand, *, timeout_sec: float = 600.0) -> Path:
    stem = Path(command.source).stem
    if stem == "broken":
        raise BuildError.compiler_failed(command.source, 1, "error: broken")
    command.output.write_text(_listing(f"fn_{stem}"))
    return command.output


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project with a compile_commands.json for a.c, b.c and broken.c."""
    entries = [
        {
            "directory": str(tmp_path),
            "file": f"{stem}.c",
            "output": f"{stem}.o",
            "command": f"cc -O2 -c {stem}.c -o {stem}.o",
        }
        for stem in ("a", "b", "broken")
    ]
    (tmp_path / "compile_commands.json").write_text(json.dumps(entries))
    return tmp_path


class TestAnalyzeCommand:
    """asmgraph analyze."""

    def test_given_named_objects_when_analyzed_then_snapshot_written(self, project: Path) -> None:
        """Selected objects are compiled, parsed and saved."""
        # When
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=_fake_compiler):
            result = runner.invoke(cli, ["--root", str(project), "analyze", "-o", "a.o", "-o", "b.o"])

        # Then
        assert result.exit_code == 0, result.output
        kb = read_snapshot(project / ".asmgraph" / "graph.json")
        assert [kb.object_path(oid) for oid in kb.objects()] == ["a.o", "b.o"]
        assert len(kb.functions_named("shared")) == 1

    def test_given_all_with_failure_when_analyzed_then_nonzero_but_snapshot_kept(
        self, project: Path
    ) -> None:
        """One failing object fails the run; the others are still saved."""
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=_fake_compiler):
            result = runner.invoke(cli, ["--root", str(project), "analyze", "--all"])

        assert result.exit_code != 0
        assert "1 object failed" in result.output
        kb = read_snapshot(project / ".asmgraph" / "graph.json")
        assert [kb.object_path(oid) for oid in kb.objects()] == ["a.o", "b.o"]

    def test_given_unknown_object_when_analyzed_then_fails(self, project: Path) -> None:
        """Unknown outputs are COMPILE_COMMAND_NOT_FOUND."""
        result = runner.invoke(cli, ["--root", str(project), "analyze", "-o", "zz.o"])
        assert result.exit_code != 0
        assert "COMPILE_COMMAND_NOT_FOUND" in result.output

    def test_given_no_selection_when_analyzed_then_usage_error(self, project: Path) -> None:
        """Either -o or --all is required."""
        result = runner.invoke(cli, ["--root", str(project), "analyze"])
        assert result.exit_code == 2

    def test_given_missing_database_when_analyzed_then_fails(self, tmp_path: Path) -> None:
        """A missing database is COMPILE_COMMANDS_NOT_FOUND."""
        result = runner.invoke(cli, ["--root", str(tmp_path), "analyze", "--all"])
        assert result.exit_code != 0
        assert "COMPILE_COMMANDS_NOT_FOUND" in result.output

    def test_given_overrides_when_analyzed_then_passed_to_build(self, project: Path) -> None:
        """-j and --keep-assembly override the build config."""
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=_fake_compiler):
            result = runner.invoke(
                cli,
                ["--root", str(project), "analyze", "-o", "a.o", "-j", "2", "--keep-assembly"],
            )

        assert result.exit_code == 0, result.output
        assert (project / "a.s").is_file()

    def test_given_explicit_database_and_snapshot_when_analyzed_then_used(
        self, project: Path, tmp_path: Path
    ) -> None:
        """Positional database and --snapshot paths are honored."""
        moved = tmp_path / "db.json"
        (project / "compile_commands.json").rename(moved)
        out = tmp_path / "out" / "g.json"

        with patch("asmgraph.analysis.run_assembly_generation", side_effect=_fake_compiler):
            result = runner.invoke(
                cli,
                ["--root", str(project), "analyze", str(moved), "-o", "b.o", "--snapshot", str(out)],
            )

        assert result.exit_code == 0, result.output
        assert out.is_file()


class TestParseCommand:
    """asmgraph parse."""

    def test_given_listings_when_parsed_then_snapshot_written(self, tmp_path: Path) -> None:
        """Existing listings are parsed with their paths as object identities."""
        # Given
        a = tmp_path / "a.s"
        b = tmp_path / "b.s"
        a.write_text(_listing("fa"))
        b.write_text(_listing("fb"))

        # When
        result = runner.invoke(cli, ["--root", str(tmp_path), "parse", str(a), str(b)])

        # Then
        assert result.exit_code == 0, result.output
        kb = read_snapshot(tmp_path / ".asmgraph" / "graph.json")
        assert [kb.object_path(oid) for oid in kb.objects()] == [str(a), str(b)]

    def test_given_append_when_parsed_then_existing_snapshot_extended(
        self, tmp_path: Path
    ) -> None:
        """--append keeps earlier objects and their ids."""
        a = tmp_path / "a.s"
        b = tmp_path / "b.s"
        a.write_text(_listing("fa"))
        b.write_text(_listing("fb"))
        runner.invoke(cli, ["--root", str(tmp_path), "parse", str(a)])

        result = runner.invoke(cli, ["--root", str(tmp_path), "parse", "--append", str(b)])

        assert result.exit_code == 0, result.output
        kb = read_snapshot(tmp_path / ".asmgraph" / "graph.json")
        assert [kb.object_path(oid) for oid in kb.objects()] == [str(a), str(b)]
        (shared,) = kb.functions_named("shared")
        assert len(kb.defined_in(shared)) == 2

    def test_given_no_append_when_parsed_then_snapshot_replaced(self, tmp_path: Path) -> None:
        """Without --append a new graph replaces the old snapshot."""
        a = tmp_path / "a.s"
        b = tmp_path / "b.s"
        a.write_text(_listing("fa"))
        b.write_text(_listing("fb"))
        runner.invoke(cli, ["--root", str(tmp_path), "parse", str(a)])

        runner.invoke(cli, ["--root", str(tmp_path), "parse", str(b)])

        kb = read_snapshot(tmp_path / ".asmgraph" / "graph.json")
        assert [kb.object_path(oid) for oid in kb.objects()] == [str(b)]

    def test_given_orphan_call_when_parsed_then_fails_with_context(self, tmp_path: Path) -> None:
        """A fatal listing fails the run and names the problem."""
        bad = tmp_path / "bad.s"
        bad.write_text("\t.text\n\tcall\tstray\n")

        result = runner.invoke(cli, ["--root", str(tmp_path), "parse", str(bad)])

        assert result.exit_code != 0
        assert "ORPHAN_CALL" in result.output

    def test_given_missing_listing_when_parsed_then_usage_error(self, tmp_path: Path) -> None:
        """Listings must exist."""
        result = runner.invoke(cli, ["--root", str(tmp_path), "parse", str(tmp_path / "x.s")])
        assert result.exit_code == 2
