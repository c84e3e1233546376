"""Knowledge base: the call graph accumulated over any number of listings.

Holds object and function identity tables, object membership, caller/callee
adjacency and instruction counts. Nothing is ever removed; folding in another
listing only adds ids, memberships, edges and counts.

All mutations take the instance lock, so listings may be parsed on worker
threads and merged concurrently.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from asmgraph.asm.models import ParsedListing
from asmgraph.asm.scanner import parse_listing_text
from asmgraph.config.models import ParseConfig
from asmgraph.core.logging import get_logger
from asmgraph.graph.identity import (
    FunctionId,
    FunctionKey,
    GlobalSymbol,
    IdentityInterner,
    LocalSymbol,
    ObjectId,
)

log = get_logger("graph.knowledge")


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """What merging one listing contributed."""

    object_id: ObjectId
    path: str
    functions: tuple[FunctionId, ...]  # defined in this object
    instructions: int
    calls: int
    indirect_calls: int
    dropped_calls: int
    malformed_directives: int


@dataclass(slots=True)
class _ObjectEntry:
    path: str
    parsed: bool = False
    functions: list[FunctionId] = field(default_factory=list)


class KnowledgeBase:
    """Mutable aggregate of everything parsed in one analysis run."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._functions = IdentityInterner()
        self._object_ids: dict[str, ObjectId] = {}
        self._objects: list[_ObjectEntry] = []
        self._defined_in: dict[FunctionId, list[ObjectId]] = {}
        self._callees: dict[FunctionId, list[FunctionId]] = {}
        self._callers: dict[FunctionId, list[FunctionId]] = {}
        self._edges: list[tuple[FunctionId, FunctionId]] = []
        self._instructions: dict[FunctionId, int] = {}

    @contextmanager
    def locked(self) -> Iterator[KnowledgeBase]:
        """Hold the lock across several reads or writes."""
        with self._lock:
            yield self

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def register_object(self, path: str) -> ObjectId:
        with self._lock:
            oid = self._object_ids.get(path)
            if oid is None:
                oid = ObjectId(len(self._objects))
                self._object_ids[path] = oid
                self._objects.append(_ObjectEntry(path=path))
            return oid

    def lookup_object(self, path: str) -> ObjectId | None:
        return self._object_ids.get(path)

    def object_path(self, oid: ObjectId) -> str:
        return self._objects[oid].path

    def mark_parsed(self, oid: ObjectId) -> None:
        with self._lock:
            self._objects[oid].parsed = True

    def is_parsed(self, oid: ObjectId) -> bool:
        return self._objects[oid].parsed

    def objects(self) -> list[ObjectId]:
        return [ObjectId(i) for i in range(len(self._objects))]

    def parsed_objects(self) -> list[ObjectId]:
        return [ObjectId(i) for i, entry in enumerate(self._objects) if entry.parsed]

    def functions_in(self, oid: ObjectId) -> list[FunctionId]:
        """Functions defined in an object, in definition order."""
        return list(self._objects[oid].functions)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def register_function(self, key: FunctionKey) -> FunctionId:
        with self._lock:
            return self._functions.intern(key)

    def lookup_function(self, key: FunctionKey) -> FunctionId | None:
        return self._functions.lookup(key)

    def function_key(self, fid: FunctionId) -> FunctionKey:
        return self._functions.key_of(fid)

    def functions(self) -> list[FunctionId]:
        return list(self._functions)

    def functions_named(self, name: str) -> list[FunctionId]:
        return self._functions.ids_named(name)

    def mark_defined(self, fid: FunctionId, oid: ObjectId) -> None:
        with self._lock:
            owners = self._defined_in.setdefault(fid, [])
            if oid not in owners:
                owners.append(oid)
                self._objects[oid].functions.append(fid)

    def defined_in(self, fid: FunctionId) -> list[ObjectId]:
        return list(self._defined_in.get(fid, ()))

    def add_instructions(self, fid: FunctionId, count: int = 1) -> None:
        if count < 0:
            raise ValueError(f"instruction count must be non-negative, got {count}")
        with self._lock:
            self._instructions[fid] = self._instructions.get(fid, 0) + count

    def instruction_count(self, fid: FunctionId) -> int:
        return self._instructions.get(fid, 0)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def add_call(self, caller: FunctionId, callee: FunctionId) -> None:
        """Record one call edge; repeated calls are kept as repeated entries."""
        with self._lock:
            self._callees.setdefault(caller, []).append(callee)
            self._callers.setdefault(callee, []).append(caller)
            self._edges.append((caller, callee))

    def callees(self, fid: FunctionId) -> list[FunctionId]:
        return list(self._callees.get(fid, ()))

    def callers(self, fid: FunctionId) -> list[FunctionId]:
        return list(self._callers.get(fid, ()))

    def edges(self) -> list[tuple[FunctionId, FunctionId]]:
        """Every recorded edge in insertion order."""
        return list(self._edges)

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def absorb(self, listing: ParsedListing, object_path: str | None = None) -> ObjectSummary:
        """Intern and merge one parsed listing.

        Names declared as functions in the listing without global/weak linkage
        become LocalSymbol keys of this object; every other name is a
        GlobalSymbol shared with other objects.
        """
        path = object_path or listing.source
        classification = listing.classification
        scan = listing.scan

        with self._lock:
            oid = self.register_object(path)
            local_ids: dict[str, FunctionId] = {}

            def resolve(name: str) -> FunctionId:
                fid = local_ids.get(name)
                if fid is None:
                    key: FunctionKey
                    if classification.is_local_function(name):
                        key = LocalSymbol(object_id=oid, name=name)
                    else:
                        key = GlobalSymbol(name=name)
                    fid = self._functions.intern(key)
                    local_ids[name] = fid
                return fid

            defined: list[FunctionId] = []
            for name in scan.definitions:
                fid = resolve(name)
                self.mark_defined(fid, oid)
                defined.append(fid)
            for name, count in scan.instructions.items():
                self.add_instructions(resolve(name), count)
            for call in scan.calls:
                self.add_call(resolve(call.caller), resolve(call.callee))
            self.mark_parsed(oid)

        summary = ObjectSummary(
            object_id=oid,
            path=path,
            functions=tuple(defined),
            instructions=scan.total_instructions,
            calls=len(scan.calls),
            indirect_calls=scan.indirect_calls,
            dropped_calls=scan.dropped_calls,
            malformed_directives=len(classification.issues),
        )
        log.info(
            "object_merged",
            path=path,
            functions=len(summary.functions),
            instructions=summary.instructions,
            calls=summary.calls,
            indirect_calls=summary.indirect_calls,
            dropped_calls=summary.dropped_calls,
            malformed_directives=summary.malformed_directives,
        )
        return summary


def parse_listing(
    knowledge: KnowledgeBase,
    data: str | bytes,
    object_path: str,
    *,
    config: ParseConfig | None = None,
) -> ObjectSummary:
    """Parse one listing and merge it into ``knowledge``.

    Raises:
        AsmParseError: If the listing is not decodable text or contains a call
            outside any function body (strict mode).
    """
    config = config or ParseConfig()
    listing = parse_listing_text(
        data,
        object_path,
        call_mnemonics=config.call_mnemonics,
        strict_orphan_calls=config.strict_orphan_calls,
    )
    return knowledge.absorb(listing, object_path)
