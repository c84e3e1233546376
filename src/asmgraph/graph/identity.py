"""Cross-object identities for functions and objects.

A function is keyed either by name alone (``GlobalSymbol``: global or weak
linkage, and callees whose linkage the listing does not declare) or by the
owning object plus name (``LocalSymbol``). Keys are interned to dense integer
ids that are never reclaimed or renumbered.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import NewType

ObjectId = NewType("ObjectId", int)
FunctionId = NewType("FunctionId", int)


@dataclass(frozen=True, slots=True)
class GlobalSymbol:
    """Symbol shared by every object that defines or calls it."""

    name: str


@dataclass(frozen=True, slots=True)
class LocalSymbol:
    """Symbol private to one object."""

    object_id: ObjectId
    name: str


FunctionKey = GlobalSymbol | LocalSymbol


class IdentityInterner:
    """Bidirectional FunctionKey <-> FunctionId table.

    Not thread-safe on its own; KnowledgeBase serializes access.
    """

    def __init__(self) -> None:
        self._ids: dict[FunctionKey, FunctionId] = {}
        self._keys: list[FunctionKey] = []

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[FunctionId]:
        return (FunctionId(i) for i in range(len(self._keys)))

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def intern(self, key: FunctionKey) -> FunctionId:
        """Return the id for key, allocating the next id on first sight."""
        fid = self._ids.get(key)
        if fid is None:
            fid = FunctionId(len(self._keys))
            self._ids[key] = fid
            self._keys.append(key)
        return fid

    def lookup(self, key: FunctionKey) -> FunctionId | None:
        return self._ids.get(key)

    def key_of(self, fid: FunctionId) -> FunctionKey:
        if not 0 <= fid < len(self._keys):
            raise KeyError(fid)
        return self._keys[fid]

    def ids_named(self, name: str) -> list[FunctionId]:
        """Every id whose key carries this raw name, in allocation order."""
        return [FunctionId(i) for i, key in enumerate(self._keys) if key.name == name]
