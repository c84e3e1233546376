"""Multi-object analysis runs.

Compiler invocations and both listing passes run on a thread pool; merging
into the knowledge base happens on the calling thread, in submission order,
so ids do not depend on which compiler finishes first.

A failure in one object (compiler error, unreadable or fatal listing) is
recorded and logged; the remaining objects are still analyzed.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from asmgraph.asm.models import ParsedListing
from asmgraph.asm.scanner import parse_listing_text
from asmgraph.build.assembly import to_assembly_command
from asmgraph.build.compile_commands import CompileCommand
from asmgraph.build.runner import run_assembly_generation
from asmgraph.config.models import AsmGraphConfig, BuildConfig, ParseConfig
from asmgraph.core.errors import AsmGraphError, AsmParseError
from asmgraph.core.logging import get_logger
from asmgraph.core.progress import progress
from asmgraph.graph.knowledge import KnowledgeBase, ObjectSummary

log = get_logger("analysis")


@dataclass(frozen=True, slots=True)
class AnalysisFailure:
    """An object that could not be analyzed."""

    object_path: str
    error: AsmGraphError


@dataclass(slots=True)
class AnalysisResult:
    knowledge: KnowledgeBase
    summaries: list[ObjectSummary] = field(default_factory=list)
    failures: list[AnalysisFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _parse_bytes(data: bytes, object_path: str, config: ParseConfig) -> ParsedListing:
    return parse_listing_text(
        data,
        object_path,
        call_mnemonics=config.call_mnemonics,
        strict_orphan_calls=config.strict_orphan_calls,
    )


def _generate_and_parse(
    command: CompileCommand, build: BuildConfig, parse: ParseConfig
) -> ParsedListing:
    asm_command = to_assembly_command(command, suffix=build.assembly_suffix)
    listing = run_assembly_generation(asm_command, timeout_sec=build.compiler_timeout_sec)
    try:
        data = listing.read_bytes()
    except OSError as e:
        raise AsmParseError.unreadable(str(listing), str(e)) from e
    finally:
        if not build.keep_assembly:
            listing.unlink(missing_ok=True)
    return _parse_bytes(data, asm_command.object_output, parse)


def _object_label(command: CompileCommand) -> str:
    return command.output_name or command.file


def _merge(
    result: AnalysisResult,
    object_path: str,
    future: Future[ParsedListing],
) -> None:
    try:
        parsed = future.result()
    except AsmGraphError as e:
        result.failures.append(AnalysisFailure(object_path=object_path, error=e))
        log.warning("object_failed", object=object_path, **e.to_dict())
        return
    result.summaries.append(result.knowledge.absorb(parsed, object_path))


def analyze_build(
    commands: Sequence[CompileCommand],
    *,
    config: AsmGraphConfig | None = None,
    knowledge: KnowledgeBase | None = None,
) -> AnalysisResult:
    """Generate listings for ``commands`` and merge them into ``knowledge``."""
    config = config or AsmGraphConfig()
    result = AnalysisResult(knowledge=knowledge or KnowledgeBase())
    log.info("analysis_start", objects=len(commands), jobs=config.build.jobs)

    with ThreadPoolExecutor(max_workers=config.build.jobs) as pool:
        futures = [
            (
                _object_label(command),
                pool.submit(_generate_and_parse, command, config.build, config.parse),
            )
            for command in commands
        ]
        for object_path, future in progress(futures, desc="Analyzing", force=True):
            _merge(result, object_path, future)

    log.info(
        "analysis_done",
        objects=len(result.summaries),
        failures=len(result.failures),
        functions=len(result.knowledge.functions()),
    )
    return result


def _read_and_parse(path: Path, parse: ParseConfig) -> ParsedListing:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise AsmParseError.unreadable(str(path), str(e)) from e
    return _parse_bytes(data, str(path), parse)


def parse_listings(
    paths: Sequence[Path],
    *,
    config: AsmGraphConfig | None = None,
    knowledge: KnowledgeBase | None = None,
) -> AnalysisResult:
    """Parse already-generated listings; each listing path is its object identity."""
    config = config or AsmGraphConfig()
    result = AnalysisResult(knowledge=knowledge or KnowledgeBase())

    with ThreadPoolExecutor(max_workers=config.build.jobs) as pool:
        futures = [(str(path), pool.submit(_read_and_parse, path, config.parse)) for path in paths]
        for object_path, future in progress(futures, desc="Parsing"):
            _merge(result, object_path, future)

    log.info(
        "parse_done",
        objects=len(result.summaries),
        failures=len(result.failures),
        functions=len(result.knowledge.functions()),
    )
    return result
