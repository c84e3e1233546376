"""Read-only reports over a KnowledgeBase.

Functions with zero counted instructions (declared or called but never
defined with a body) keep their ids and edges but are left out of the
ranking and the common-function listing.
"""

from __future__ import annotations

from dataclasses import dataclass

from asmgraph.core.errors import QueryError
from asmgraph.graph.identity import FunctionId, FunctionKey, GlobalSymbol, LocalSymbol, ObjectId
from asmgraph.graph.knowledge import KnowledgeBase


@dataclass(frozen=True, slots=True)
class FunctionReport:
    """Direct neighbourhood of one function."""

    function: FunctionId
    key: FunctionKey
    instructions: int
    defined_in: tuple[ObjectId, ...]
    callers: tuple[FunctionId, ...]  # distinct, first-seen order
    callees: tuple[FunctionId, ...]  # distinct, first-seen order


def _distinct(ids: list[FunctionId]) -> tuple[FunctionId, ...]:
    return tuple(dict.fromkeys(ids))


def rank_by_instructions(knowledge: KnowledgeBase) -> list[tuple[FunctionId, int]]:
    """(function, count) pairs with count > 0, largest first.

    Ties keep id allocation order.
    """
    with knowledge.locked():
        counted = [(fid, knowledge.instruction_count(fid)) for fid in knowledge.functions()]
    ranked = [pair for pair in counted if pair[1] > 0]
    ranked.sort(key=lambda pair: (-pair[1], pair[0]))
    return ranked


def functions_in_all_objects(knowledge: KnowledgeBase) -> list[FunctionId]:
    """Functions defined in every object parsed so far."""
    with knowledge.locked():
        parsed = set(knowledge.parsed_objects())
        if not parsed:
            return []
        return [
            fid
            for fid in knowledge.functions()
            if knowledge.instruction_count(fid) > 0
            and len(parsed.intersection(knowledge.defined_in(fid))) == len(parsed)
        ]


def function_report(knowledge: KnowledgeBase, function: FunctionKey | FunctionId) -> FunctionReport:
    """Defining objects, callers and callees of one function.

    Raises:
        QueryError: FUNCTION_NOT_FOUND if the function was never interned.
    """
    with knowledge.locked():
        if isinstance(function, GlobalSymbol | LocalSymbol):
            fid = knowledge.lookup_function(function)
            if fid is None:
                raise QueryError.function_not_found(function.name)
        else:
            fid = function
            if not 0 <= fid < len(knowledge.functions()):
                raise QueryError.function_not_found(f"#{fid}")

        return FunctionReport(
            function=fid,
            key=knowledge.function_key(fid),
            instructions=knowledge.instruction_count(fid),
            defined_in=tuple(knowledge.defined_in(fid)),
            callers=_distinct(knowledge.callers(fid)),
            callees=_distinct(knowledge.callees(fid)),
        )


def find_functions(
    knowledge: KnowledgeBase, name: str, *, object_path: str | None = None
) -> list[FunctionId]:
    """Every identity carrying ``name``.

    With ``object_path``, only the function of that name defined in that
    object: its local symbol, or else a global symbol it defines.

    Raises:
        QueryError: OBJECT_NOT_FOUND for an unknown object path,
            FUNCTION_NOT_FOUND if nothing matches.
    """
    if object_path is not None:
        oid = knowledge.lookup_object(object_path)
        if oid is None:
            raise QueryError.object_not_found(object_path)
        fid = knowledge.lookup_function(LocalSymbol(object_id=oid, name=name))
        if fid is None:
            fid = knowledge.lookup_function(GlobalSymbol(name=name))
            if fid is not None and oid not in knowledge.defined_in(fid):
                fid = None
        matches = [fid] if fid is not None else []
    else:
        matches = knowledge.functions_named(name)
    if not matches:
        raise QueryError.function_not_found(name)
    return matches


def describe(knowledge: KnowledgeBase, fid: FunctionId) -> str:
    """Human-readable label: the name, plus the owning object for local symbols."""
    key = knowledge.function_key(fid)
    if isinstance(key, LocalSymbol):
        return f"{key.name} [{knowledge.object_path(key.object_id)}]"
    return key.name
