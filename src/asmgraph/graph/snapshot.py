"""JSON snapshot of a KnowledgeBase.

Layout::

    {
      "version": 1,
      "objects":   [{"id": 0, "path": "a.cc.o", "parsed": true}, ...],
      "functions": [{"id": 0, "kind": "local", "name": "foo", "object": 0,
                     "instructions": 3, "defined_in": [0]}, ...],
      "calls":     [[0, 1], ...]
    }

Ids are dense and listed in allocation order, and ``calls`` keeps every edge in
insertion order, so loading a snapshot rebuilds an equivalent knowledge base
that can keep absorbing listings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from asmgraph.config.constants import SNAPSHOT_VERSION
from asmgraph.core.errors import QueryError
from asmgraph.core.logging import get_logger
from asmgraph.graph.identity import FunctionId, FunctionKey, GlobalSymbol, LocalSymbol, ObjectId
from asmgraph.graph.knowledge import KnowledgeBase

log = get_logger("graph.snapshot")


class ObjectRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    path: str
    parsed: bool = True


class FunctionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    kind: Literal["global", "local"]
    name: str
    object: int | None = None  # owning object, local symbols only
    instructions: int = Field(default=0, ge=0)
    defined_in: list[int] = Field(default_factory=list)


class GraphSnapshot(BaseModel):
    """Serialized knowledge base."""

    version: int = SNAPSHOT_VERSION
    objects: list[ObjectRecord] = Field(default_factory=list)
    functions: list[FunctionRecord] = Field(default_factory=list)
    calls: list[tuple[int, int]] = Field(default_factory=list)


def to_snapshot(knowledge: KnowledgeBase) -> GraphSnapshot:
    with knowledge.locked():
        objects = [
            ObjectRecord(id=oid, path=knowledge.object_path(oid), parsed=knowledge.is_parsed(oid))
            for oid in knowledge.objects()
        ]
        functions = []
        for fid in knowledge.functions():
            key = knowledge.function_key(fid)
            functions.append(
                FunctionRecord(
                    id=fid,
                    kind="local" if isinstance(key, LocalSymbol) else "global",
                    name=key.name,
                    object=key.object_id if isinstance(key, LocalSymbol) else None,
                    instructions=knowledge.instruction_count(fid),
                    defined_in=list(knowledge.defined_in(fid)),
                )
            )
        calls = [(caller, callee) for caller, callee in knowledge.edges()]
    return GraphSnapshot(objects=objects, functions=functions, calls=calls)


def from_snapshot(snapshot: GraphSnapshot) -> KnowledgeBase:
    """Rebuild a knowledge base with the same ids, memberships, edges and counts.

    Raises:
        ValueError: If ids are not dense or references point nowhere.
    """
    if snapshot.version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version {snapshot.version}")

    knowledge = KnowledgeBase()
    for expected, record in enumerate(snapshot.objects):
        if record.id != expected:
            raise ValueError(f"object ids must be dense, got {record.id} at {expected}")
        oid = knowledge.register_object(record.path)
        if oid != record.id:
            raise ValueError(f"duplicate object path {record.path!r}")
        if record.parsed:
            knowledge.mark_parsed(oid)

    object_count = len(snapshot.objects)
    for expected, func in enumerate(snapshot.functions):
        if func.id != expected:
            raise ValueError(f"function ids must be dense, got {func.id} at {expected}")
        key: FunctionKey
        if func.kind == "local":
            if func.object is None or not 0 <= func.object < object_count:
                raise ValueError(f"local function {func.name!r} has no valid owning object")
            key = LocalSymbol(object_id=ObjectId(func.object), name=func.name)
        else:
            key = GlobalSymbol(name=func.name)
        fid = knowledge.register_function(key)
        if fid != func.id:
            raise ValueError(f"duplicate function key for {func.name!r}")
        for oid in func.defined_in:
            if not 0 <= oid < object_count:
                raise ValueError(f"function {func.name!r} defined in unknown object {oid}")
            knowledge.mark_defined(fid, ObjectId(oid))
        if func.instructions:
            knowledge.add_instructions(fid, func.instructions)

    function_count = len(snapshot.functions)
    for caller, callee in snapshot.calls:
        if not (0 <= caller < function_count and 0 <= callee < function_count):
            raise ValueError(f"call edge ({caller}, {callee}) references unknown function")
        knowledge.add_call(FunctionId(caller), FunctionId(callee))
    return knowledge


def write_snapshot(knowledge: KnowledgeBase, path: Path) -> GraphSnapshot:
    snapshot = to_snapshot(knowledge)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(indent=2))
    log.info(
        "snapshot_written",
        path=str(path),
        objects=len(snapshot.objects),
        functions=len(snapshot.functions),
        calls=len(snapshot.calls),
    )
    return snapshot


def read_snapshot(path: Path) -> KnowledgeBase:
    """Load a snapshot file.

    Raises:
        QueryError: SNAPSHOT_NOT_FOUND or SNAPSHOT_INVALID.
    """
    if not path.is_file():
        raise QueryError.snapshot_not_found(str(path))
    try:
        snapshot = GraphSnapshot.model_validate_json(path.read_bytes())
        return from_snapshot(snapshot)
    except ValidationError as e:
        raise QueryError.snapshot_invalid(str(path), str(e.errors()[0]["msg"])) from e
    except ValueError as e:
        raise QueryError.snapshot_invalid(str(path), str(e)) from e
