"""Cross-object call graph: identities, knowledge base, queries and snapshots."""

from asmgraph.graph.identity import (
    FunctionId,
    FunctionKey,
    GlobalSymbol,
    IdentityInterner,
    LocalSymbol,
    ObjectId,
)
from asmgraph.graph.knowledge import KnowledgeBase, ObjectSummary, parse_listing
from asmgraph.graph.queries import (
    FunctionReport,
    describe,
    find_functions,
    function_report,
    functions_in_all_objects,
    rank_by_instructions,
)
from asmgraph.graph.snapshot import (
    GraphSnapshot,
    from_snapshot,
    read_snapshot,
    to_snapshot,
    write_snapshot,
)

__all__ = [
    # Identity
    "FunctionId",
    "FunctionKey",
    "GlobalSymbol",
    "IdentityInterner",
    "LocalSymbol",
    "ObjectId",
    # Knowledge base
    "KnowledgeBase",
    "ObjectSummary",
    "parse_listing",
    # Queries
    "FunctionReport",
    "describe",
    "find_functions",
    "function_report",
    "functions_in_all_objects",
    "rank_by_instructions",
    # Snapshots
    "GraphSnapshot",
    "from_snapshot",
    "read_snapshot",
    "to_snapshot",
    "write_snapshot",
]
