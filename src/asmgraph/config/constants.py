"""Configuration constants.

Values that are not user-configurable: file locations, format versions and
defaults shared between models and code.
"""

CONFIG_DIR_NAME = ".asmgraph"
"""Per-project configuration and output directory."""

DEFAULT_SNAPSHOT_PATH = f"{CONFIG_DIR_NAME}/graph.json"
"""Default snapshot location, relative to the project root."""

SNAPSHOT_VERSION = 1
"""Snapshot document format version."""

DEFAULT_CALL_MNEMONICS = ("call", "callq", "calll")
"""AT&T and Intel spellings of the x86 direct call instruction."""

STDERR_TAIL_CHARS = 2000
"""Compiler stderr kept in COMPILER_FAILED error details."""
