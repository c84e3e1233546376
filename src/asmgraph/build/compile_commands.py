"""Compile command database (compile_commands.json) loading and selection."""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator

from asmgraph.core.errors import BuildError
from asmgraph.core.logging import get_logger

log = get_logger("build.compile_commands")


class CompileCommand(BaseModel):
    """One entry of a compile command database.

    Either ``command`` (a shell string) or ``arguments`` (an argv list) is set.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    directory: str
    file: str
    output: str | None = None
    command: str | None = None
    arguments: list[str] | None = None

    @model_validator(mode="after")
    def _require_invocation(self) -> CompileCommand:
        if not self.command and not self.arguments:
            raise ValueError(f"entry for {self.file} has neither 'command' nor 'arguments'")
        return self

    @property
    def argv(self) -> list[str]:
        if self.arguments:
            return list(self.arguments)
        return shlex.split(self.command or "")

    @property
    def output_name(self) -> str | None:
        """The ``output`` field, falling back to the ``-o`` argument."""
        if self.output:
            return self.output
        argv = self.argv
        for i, arg in enumerate(argv):
            if arg == "-o" and i + 1 < len(argv):
                return argv[i + 1]
            if arg.startswith("-o") and len(arg) > 2:
                return arg[2:]
        return None


_ADAPTER = TypeAdapter(list[CompileCommand])


def load_compile_commands(path: Path) -> list[CompileCommand]:
    """Read and validate a compile_commands.json file.

    Raises:
        BuildError: COMPILE_COMMANDS_NOT_FOUND or COMPILE_COMMANDS_INVALID.
    """
    if not path.is_file():
        raise BuildError.compile_commands_not_found(str(path))
    try:
        commands = _ADAPTER.validate_json(path.read_bytes())
    except ValidationError as e:
        err = e.errors()[0]
        where = ".".join(str(loc) for loc in err["loc"])
        reason = f"{where}: {err['msg']}" if where else err["msg"]
        raise BuildError.compile_commands_invalid(str(path), reason) from e
    log.debug("compile_commands_loaded", path=str(path), entries=len(commands))
    return commands


def index_by_output(commands: Iterable[CompileCommand]) -> dict[str, CompileCommand]:
    """Map each entry's object output to the entry; later duplicates win."""
    index: dict[str, CompileCommand] = {}
    for command in commands:
        output = command.output_name
        if output is None:
            log.debug("compile_command_without_output", file=command.file)
            continue
        index[output] = command
    return index


def select_commands(
    commands: Sequence[CompileCommand], outputs: Sequence[str] | None = None
) -> list[CompileCommand]:
    """Entries producing the requested outputs, or every entry with an output.

    Raises:
        BuildError: COMPILE_COMMAND_NOT_FOUND for an output no entry produces.
    """
    index = index_by_output(commands)
    if not outputs:
        return list(index.values())

    selected: list[CompileCommand] = []
    for output in outputs:
        command = index.get(output)
        if command is None:
            command = _match_resolved(index, output)
        if command is None:
            raise BuildError.command_not_found(output)
        selected.append(command)
    return selected


def _match_resolved(index: dict[str, CompileCommand], output: str) -> CompileCommand | None:
    """Match an absolute output path against entries' directory-relative outputs."""
    wanted = Path(output)
    if not wanted.is_absolute():
        return None
    for name, command in index.items():
        if Path(command.directory) / name == wanted:
            return command
    return None
