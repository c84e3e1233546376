"""asmgraph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 4xxx: Query
- 5xxx: Build
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

# Raw lines attached to error details are clipped to this many characters
_RAW_LINE_MAX = 200


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    MALFORMED_DIRECTIVE = 3001
    UNRESOLVABLE_CALL_OPERAND = 3002
    UNDECODABLE_INPUT = 3003
    ORPHAN_CALL = 3004
    UNREADABLE_INPUT = 3005

    # Query (4xxx)
    FUNCTION_NOT_FOUND = 4001
    OBJECT_NOT_FOUND = 4002
    SNAPSHOT_NOT_FOUND = 4003
    SNAPSHOT_INVALID = 4004

    # Build (5xxx)
    COMPILE_COMMANDS_NOT_FOUND = 5001
    COMPILE_COMMANDS_INVALID = 5002
    COMPILE_COMMAND_NOT_FOUND = 5003
    OUTPUT_FLAG_MISSING = 5004
    COMPILER_FAILED = 5005
    COMPILER_TIMEOUT = 5006

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class AsmGraphError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ORPHAN_CALL')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AsmGraphError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class AsmParseError(AsmGraphError):
    """Errors raised or recovered while parsing an assembly listing.

    MALFORMED_DIRECTIVE and UNRESOLVABLE_CALL_OPERAND are recovered by the
    parser (logged and counted). UNDECODABLE_INPUT and ORPHAN_CALL abort the
    parse of one listing.
    """

    @classmethod
    def malformed_directive(cls, line_no: int, raw: str, reason: str) -> "AsmParseError":
        return cls(
            code=ErrorCode.MALFORMED_DIRECTIVE,
            message=f"Malformed directive at line {line_no}: {reason}",
            details={"line": line_no, "raw": raw[:_RAW_LINE_MAX], "reason": reason},
        )

    @classmethod
    def unresolvable_operand(cls, line_no: int, raw: str) -> "AsmParseError":
        return cls(
            code=ErrorCode.UNRESOLVABLE_CALL_OPERAND,
            message=f"Cannot tokenize call operand at line {line_no}",
            details={"line": line_no, "raw": raw[:_RAW_LINE_MAX]},
        )

    @classmethod
    def undecodable(cls, source: str, position: int, reason: str) -> "AsmParseError":
        return cls(
            code=ErrorCode.UNDECODABLE_INPUT,
            message=f"Listing {source} is not decodable text at byte {position}: {reason}",
            details={"source": source, "position": position, "reason": reason},
        )

    @classmethod
    def unreadable(cls, source: str, reason: str) -> "AsmParseError":
        return cls(
            code=ErrorCode.UNREADABLE_INPUT,
            message=f"Cannot read listing {source}: {reason}",
            details={"source": source, "reason": reason},
        )

    @classmethod
    def orphan_call(cls, line_no: int, raw: str) -> "AsmParseError":
        return cls(
            code=ErrorCode.ORPHAN_CALL,
            message=f"Call instruction outside any function body at line {line_no}",
            details={"line": line_no, "raw": raw[:_RAW_LINE_MAX]},
        )


class QueryError(AsmGraphError):
    """Errors surfaced by read-only queries over the knowledge base."""

    @classmethod
    def function_not_found(cls, function: str) -> "QueryError":
        return cls(
            code=ErrorCode.FUNCTION_NOT_FOUND,
            message=f"Function not found: {function}",
            details={"function": function},
        )

    @classmethod
    def object_not_found(cls, path: str) -> "QueryError":
        return cls(
            code=ErrorCode.OBJECT_NOT_FOUND,
            message=f"Object not found: {path}",
            details={"path": path},
        )

    @classmethod
    def snapshot_not_found(cls, path: str) -> "QueryError":
        return cls(
            code=ErrorCode.SNAPSHOT_NOT_FOUND,
            message=f"Snapshot not found: {path}. Run 'asmgraph analyze' or 'asmgraph parse' first.",
            details={"path": path},
        )

    @classmethod
    def snapshot_invalid(cls, path: str, reason: str) -> "QueryError":
        return cls(
            code=ErrorCode.SNAPSHOT_INVALID,
            message=f"Invalid snapshot {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class BuildError(AsmGraphError):
    """Errors from the compile-command database and compiler invocations."""

    @classmethod
    def compile_commands_not_found(cls, path: str) -> "BuildError":
        return cls(
            code=ErrorCode.COMPILE_COMMANDS_NOT_FOUND,
            message=f"Compile command database not found: {path}",
            details={"path": path},
        )

    @classmethod
    def compile_commands_invalid(cls, path: str, reason: str) -> "BuildError":
        return cls(
            code=ErrorCode.COMPILE_COMMANDS_INVALID,
            message=f"Invalid compile command database {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def command_not_found(cls, output: str) -> "BuildError":
        return cls(
            code=ErrorCode.COMPILE_COMMAND_NOT_FOUND,
            message=f"No compile command produces {output}",
            details={"output": output},
        )

    @classmethod
    def output_flag_missing(cls, file: str, reason: str) -> "BuildError":
        return cls(
            code=ErrorCode.OUTPUT_FLAG_MISSING,
            message=f"Cannot rewrite compile command for {file}: {reason}",
            details={"file": file, "reason": reason},
        )

    @classmethod
    def compiler_failed(cls, file: str, returncode: int, stderr: str) -> "BuildError":
        return cls(
            code=ErrorCode.COMPILER_FAILED,
            message=f"Generating assembly for {file} failed with exit code {returncode}",
            details={"file": file, "returncode": returncode, "stderr": stderr},
        )

    @classmethod
    def compiler_timeout(cls, file: str, timeout_sec: float) -> "BuildError":
        return cls(
            code=ErrorCode.COMPILER_TIMEOUT,
            message=f"Generating assembly for {file} timed out after {timeout_sec}s",
            retryable=True,
            details={"file": file, "timeout_sec": timeout_sec},
        )


class InternalError(AsmGraphError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
