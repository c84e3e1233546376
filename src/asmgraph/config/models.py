"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ASMGRAPH__SECTION__KEY)
3. Project YAML (.asmgraph/config.yaml)
4. Global YAML (~/.config/asmgraph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ASMGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    ASMGRAPH__LOGGING__LEVEL=DEBUG
    ASMGRAPH__BUILD__JOBS=8
    ASMGRAPH__PARSE__STRICT_ORPHAN_CALLS=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from asmgraph.config.constants import DEFAULT_CALL_MNEMONICS, DEFAULT_SNAPSHOT_PATH

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ASMGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped directive and dropped call.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class BuildConfig(BaseModel):
    """Assembly generation configuration.

    Env vars:
        ASMGRAPH__BUILD__COMPILE_COMMANDS: Path to compile_commands.json
        ASMGRAPH__BUILD__JOBS: Parallel compiler invocations
        ASMGRAPH__BUILD__KEEP_ASSEMBLY: Keep generated listings after parsing
    """

    compile_commands: str | None = Field(
        default=None,
        description="Compile command database. Relative paths resolve against the project root.",
    )
    assembly_suffix: str = Field(
        default=".s",
        description="Extension given to generated listings, replacing the object extension.",
    )
    keep_assembly: bool = Field(
        default=False,
        description="Keep generated listings next to the object outputs after parsing.",
    )
    jobs: int = Field(
        default=1,
        description="Parallel compiler invocations. "
        "RISK: large translation units need a lot of memory per compiler process.",
    )
    compiler_timeout_sec: float = Field(
        default=600.0,
        description="Per-object compiler timeout.",
    )

    @field_validator("jobs")
    @classmethod
    def validate_jobs(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"jobs must be >= 1, got {v}")
        return v

    @field_validator("assembly_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"assembly_suffix must look like '.s', got {v!r}")
        return v


class ParseConfig(BaseModel):
    """Listing parser configuration.

    Env vars:
        ASMGRAPH__PARSE__STRICT_ORPHAN_CALLS: Fail on calls outside function bodies
    """

    call_mnemonics: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CALL_MNEMONICS),
        description="Instruction mnemonics treated as direct calls.",
    )
    strict_orphan_calls: bool = Field(
        default=True,
        description="A call line outside any function body aborts the parse. "
        "Disable for listings without .type directives (e.g. Mach-O).",
    )

    @field_validator("call_mnemonics")
    @classmethod
    def validate_mnemonics(cls, v: list[str]) -> list[str]:
        cleaned = [m.strip().lower() for m in v if m.strip()]
        if not cleaned:
            raise ValueError("call_mnemonics must contain at least one mnemonic")
        return cleaned


class QueryConfig(BaseModel):
    """Query output defaults."""

    hot_limit: int = Field(
        default=20,
        description="Rows shown by the instruction-count ranking.",
    )

    @field_validator("hot_limit")
    @classmethod
    def validate_hot_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"hot_limit must be >= 1, got {v}")
        return v


class StorageConfig(BaseModel):
    """Snapshot storage.

    Env vars:
        ASMGRAPH__STORAGE__SNAPSHOT_PATH: Where the graph snapshot is written
    """

    snapshot_path: str = Field(
        default=DEFAULT_SNAPSHOT_PATH,
        description="Snapshot file. Relative paths resolve against the project root.",
    )


class AsmGraphConfig(BaseModel):
    """Root configuration for asmgraph."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    parse: ParseConfig = Field(default_factory=ParseConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
