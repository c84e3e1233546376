"""Build integration: compile command database, assembly generation."""

from asmgraph.build.assembly import AssemblyCommand, to_assembly_command
from asmgraph.build.compile_commands import (
    CompileCommand,
    index_by_output,
    load_compile_commands,
    select_commands,
)
from asmgraph.build.runner import run_assembly_generation

__all__ = [
    "AssemblyCommand",
    "CompileCommand",
    "index_by_output",
    "load_compile_commands",
    "run_assembly_generation",
    "select_commands",
    "to_assembly_command",
]
