"""Tests for analysis.py - multi-object runs."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from asmgraph.analysis import analyze_build, parse_listings
from asmgraph.build.assembly import AssemblyCommand
from asmgraph.build.compile_commands import CompileCommand
from asmgraph.config.models import AsmGraphConfig, BuildConfig
from asmgraph.core.errors import BuildError, ErrorCode
from asmgraph.graph.identity import GlobalSymbol
from asmgraph.graph.queries import functions_in_all_objects


def _listing(name: str, *, calls: tuple[str, ...] = ()) -> str:
    body = "".join(f"\tcall\t{c}@PLT\n" for c in calls)
    return (
        "\t.globl\tcommon_util\n"
        "\t.type\tcommon_util, @function\n"
        "common_util:\n\tret\n\t.size\tcommon_util, .-common_util\n"
        f"\t.type\t{name}, @function\n"
        f"{name}:\n{body}\tret\n\t.size\t{name}, .-{name}\n"
    )


def _command(directory: Path, stem: str) -> CompileCommand:
    return CompileCommand(
        directory=str(directory),
        file=f"{stem}.c",
        output=f"{stem}.o",
        command=f"cc -c {stem}.c -o {stem}.o",
    )


class TestParseListings:
    """parse_listings over files on disk."""

    def test_given_two_listings_when_parsed_then_merged(self, tmp_path: Path) -> None:
        """Both listings are merged; the shared global is common."""
        # Given
        a = tmp_path / "a.s"
        b = tmp_path / "b.s"
        a.write_text(_listing("only_a", calls=("common_util",)))
        b.write_text(_listing("only_b"))

        # When
        result = parse_listings([a, b])

        # Then
        assert result.ok
        assert [s.path for s in result.summaries] == [str(a), str(b)]
        kb = result.knowledge
        common = kb.lookup_function(GlobalSymbol("common_util"))
        assert functions_in_all_objects(kb) == [common]

    def test_given_bad_listing_when_parsed_then_others_still_merged(self, tmp_path: Path) -> None:
        """One fatal listing is recorded as a failure; the rest are merged."""
        good = tmp_path / "good.s"
        bad = tmp_path / "bad.s"
        good.write_text(_listing("f"))
        bad.write_bytes(b"\xff\xfe")

        result = parse_listings([bad, good])

        assert not result.ok
        assert [f.object_path for f in result.failures] == [str(bad)]
        assert result.failures[0].error.code == ErrorCode.UNDECODABLE_INPUT
        assert [s.path for s in result.summaries] == [str(good)]

    def test_given_missing_listing_when_parsed_then_unreadable(self, tmp_path: Path) -> None:
        """Unreadable files are failures, not crashes."""
        result = parse_listings([tmp_path / "gone.s"])
        assert result.failures[0].error.code == ErrorCode.UNREADABLE_INPUT

    def test_given_parallel_jobs_when_parsed_then_ids_follow_input_order(
        self, tmp_path: Path
    ) -> None:
        """Object ids follow the order listings were given, not completion order."""
        paths = []
        for i in range(6):
            path = tmp_path / f"u{i}.s"
            path.write_text(_listing(f"fn{i}"))
            paths.append(path)

        config = AsmGraphConfig(build=BuildConfig(jobs=4))
        result = parse_listings(paths, config=config)

        kb = result.knowledge
        assert [kb.object_path(oid) for oid in kb.objects()] == [str(p) for p in paths]


class TestAnalyzeBuild:
    """analyze_build with the compiler replaced."""

    @staticmethod
    def _fake_compiler(sources: dict[str, str]) -> object:
        def run(command: AssemblyCommand, *, timeout_sec: float = 600.0) -> Path:
            text = sources[command.source]
            if text == "FAIL":
                raise BuildError.compiler_failed(command.source, 1, "boom")
            command.output.write_text(text)
            return command.output

        return run

    def test_given_commands_when_analyzed_then_merged_by_object_output(
        self, tmp_path: Path
    ) -> None:
        """Objects are identified by their database output name."""
        # Given
        commands = [_command(tmp_path, "a"), _command(tmp_path, "b")]
        fake = self._fake_compiler({"a.c": _listing("fa"), "b.c": _listing("fb")})

        # When
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=fake):
            result = analyze_build(commands)

        # Then
        assert result.ok
        kb = result.knowledge
        assert [kb.object_path(oid) for oid in kb.objects()] == ["a.o", "b.o"]
        assert len(functions_in_all_objects(kb)) == 1

    def test_given_default_config_when_analyzed_then_listings_deleted(
        self, tmp_path: Path
    ) -> None:
        """Generated listings are removed after parsing."""
        fake = self._fake_compiler({"a.c": _listing("fa")})
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=fake):
            analyze_build([_command(tmp_path, "a")])
        assert not (tmp_path / "a.s").exists()

    def test_given_keep_assembly_when_analyzed_then_listings_kept(self, tmp_path: Path) -> None:
        """keep_assembly leaves the listing next to the object."""
        fake = self._fake_compiler({"a.c": _listing("fa")})
        config = AsmGraphConfig(build=BuildConfig(keep_assembly=True))
        with patch("asmgraph.analysis.run_assembly_generation", side_effect=fake):
            analyze_build([_command(tmp_path, "a")], config=config)
        assert (tmp_path / "a.s").is_file()

    def test_given_compiler_failure_when_analyzed_then_recorded(self, tmp_path: Path) -> None:
        """A failed compile does not stop the other objects."""
        commands = [_command(tmp_path, "a"), _command(tmp_path, "b")]
        fake = self._fake_compiler({"a.c": "FAIL", "b.c": _listing("fb")})

        with patch("asmgraph.analysis.run_assembly_generation", side_effect=fake):
            result = analyze_build(commands)

        assert [f.object_path for f in result.failures] == ["a.o"]
        assert result.failures[0].error.code == ErrorCode.COMPILER_FAILED
        assert [s.path for s in result.summaries] == ["b.o"]

    def test_given_rewrite_failure_when_analyzed_then_recorded(self, tmp_path: Path) -> None:
        """Commands that cannot be rewritten fail individually."""
        broken = CompileCommand(
            directory=str(tmp_path), file="x.c", output="x.o", command="cc -c x.c"
        )
        result = analyze_build([broken])
        assert result.failures[0].error.code == ErrorCode.OUTPUT_FLAG_MISSING

    @pytest.mark.parametrize("jobs", [1, 3])
    def test_given_existing_base_when_analyzed_then_extended(
        self, tmp_path: Path, jobs: int
    ) -> None:
        """A supplied knowledge base is extended in place."""
        first = parse_listings([_write(tmp_path / "pre.s", _listing("pre"))])
        fake = self._fake_compiler({"a.c": _listing("fa")})
        config = AsmGraphConfig(build=BuildConfig(jobs=jobs))

        with patch("asmgraph.analysis.run_assembly_generation", side_effect=fake):
            result = analyze_build(
                [_command(tmp_path, "a")], config=config, knowledge=first.knowledge
            )

        assert result.knowledge is first.knowledge
        assert len(result.knowledge.objects()) == 2


def _write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path
