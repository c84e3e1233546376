"""Compiler invocation."""

from __future__ import annotations

import subprocess
from pathlib import Path

from asmgraph.build.assembly import AssemblyCommand
from asmgraph.config.constants import STDERR_TAIL_CHARS
from asmgraph.core.errors import BuildError
from asmgraph.core.logging import get_logger

log = get_logger("build.runner")


def run_assembly_generation(command: AssemblyCommand, *, timeout_sec: float = 600.0) -> Path:
    """Run the compiler and return the listing path.

    Raises:
        BuildError: COMPILER_FAILED (non-zero exit, missing compiler, or no
            listing written) or COMPILER_TIMEOUT.
    """
    log.debug("compiler_start", source=command.source, cwd=str(command.cwd), argv=command.argv)
    try:
        result = subprocess.run(
            command.argv,
            cwd=command.cwd,
            capture_output=True,
            text=True,
            timeout=timeout_sec,
        )
    except subprocess.TimeoutExpired as e:
        raise BuildError.compiler_timeout(command.source, timeout_sec) from e
    except OSError as e:
        raise BuildError.compiler_failed(command.source, -1, str(e)) from e

    if result.returncode != 0:
        raise BuildError.compiler_failed(
            command.source, result.returncode, (result.stderr or "")[-STDERR_TAIL_CHARS:]
        )
    if not command.output.is_file():
        raise BuildError.compiler_failed(
            command.source, result.returncode, f"compiler did not write {command.output}"
        )

    log.debug("compiler_done", source=command.source, output=str(command.output))
    return command.output
