"""Per-listing parse results.

Everything here is keyed by raw symbol names as they appear in one listing.
Names are only turned into cross-object identities when a listing is merged
into a KnowledgeBase (see asmgraph.graph).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from asmgraph.core.errors import AsmParseError

# Alias chains longer than this are treated as cyclic
_MAX_ALIAS_DEPTH = 64


class Linkage(StrEnum):
    """Symbol visibility declared by the listing."""

    LOCAL = "local"
    WEAK = "weak"
    GLOBAL = "global"

    @property
    def is_external(self) -> bool:
        """Weak and global symbols share one identity across objects."""
        return self is not Linkage.LOCAL


@dataclass(slots=True)
class Classification:
    """Output of the directive pass over one listing."""

    functions: set[str] = field(default_factory=set)
    linkage: dict[str, Linkage] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)  # old name -> target name
    issues: list[AsmParseError] = field(default_factory=list)

    def linkage_of(self, name: str) -> Linkage:
        return self.linkage.get(name, Linkage.LOCAL)

    def is_local_function(self, name: str) -> bool:
        """True for functions declared in this listing without global/weak linkage."""
        return name in self.functions and not self.linkage_of(name).is_external

    def resolve_alias(self, name: str) -> str:
        """Follow alias declarations to the final target name.

        Cycles resolve to the last name reached before revisiting one.
        """
        seen = {name}
        current = name
        for _ in range(_MAX_ALIAS_DEPTH):
            target = self.aliases.get(current)
            if target is None or target in seen:
                return current
            seen.add(target)
            current = target
        return current


@dataclass(frozen=True, slots=True)
class CallSite:
    """A direct call found in a function body."""

    caller: str
    callee: str  # alias-resolved, suffix-stripped target name
    line: int


@dataclass(slots=True)
class ScanResult:
    """Output of the body pass over one listing."""

    definitions: list[str] = field(default_factory=list)  # first-definition order
    instructions: dict[str, int] = field(default_factory=dict)
    calls: list[CallSite] = field(default_factory=list)
    indirect_calls: int = 0
    dropped_calls: int = 0  # operand could not be tokenized
    orphan_calls: int = 0  # outside any function body, lenient mode only
    skipped_directives: int = 0
    issues: list[AsmParseError] = field(default_factory=list)

    @property
    def total_instructions(self) -> int:
        return sum(self.instructions.values())


@dataclass(slots=True)
class ParsedListing:
    """Both passes over one listing, ready to be merged."""

    source: str
    classification: Classification
    scan: ScanResult
