"""Rewrite an object-producing compile command into one that emits assembly."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from asmgraph.build.compile_commands import CompileCommand
from asmgraph.core.errors import BuildError

# Stop-stage flags replaced by -S
_STAGE_FLAGS = frozenset({"-c", "-S", "-E"})


@dataclass(frozen=True, slots=True)
class AssemblyCommand:
    """A compiler invocation that writes an assembly listing."""

    program: str
    args: tuple[str, ...]
    cwd: Path
    output: Path  # listing path
    source: str  # translation unit, for messages
    object_output: str  # object output named by the database entry

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def to_assembly_command(command: CompileCommand, *, suffix: str = ".s") -> AssemblyCommand:
    """Point ``-o`` at a listing next to the object file and insert ``-S``.

    ``-o dir/foo.cc.o`` becomes ``-S -o <directory>/dir/foo.cc.s``.

    Raises:
        BuildError: OUTPUT_FLAG_MISSING if the command has no usable ``-o``.
    """
    argv = command.argv
    if not argv:
        raise BuildError.output_flag_missing(command.file, "empty command")

    args = [arg for arg in argv[1:] if arg not in _STAGE_FLAGS]

    position: int | None = None
    object_output: str | None = None
    for i, arg in enumerate(args):
        if arg == "-o":
            if i + 1 >= len(args):
                raise BuildError.output_flag_missing(command.file, "'-o' has no argument")
            position, object_output = i, args[i + 1]
            break
        if arg.startswith("-o") and len(arg) > 2:
            position, object_output = i, arg[2:]
            break
    if position is None or object_output is None:
        raise BuildError.output_flag_missing(command.file, "no '-o' argument")

    listing = (Path(command.directory) / object_output).with_suffix(suffix)
    if args[position] == "-o":
        args[position + 1] = str(listing)
    else:
        args[position] = f"-o{listing}"
    args.insert(position, "-S")

    return AssemblyCommand(
        program=argv[0],
        args=tuple(args),
        cwd=Path(command.directory),
        output=listing,
        source=command.file,
        object_output=command.output_name or object_output,
    )
