"""Tests for graph/identity.py."""

import pytest

from asmgraph.graph.identity import (
    FunctionId,
    GlobalSymbol,
    IdentityInterner,
    LocalSymbol,
    ObjectId,
)


class TestKeys:
    """Identity key equality."""

    def test_global_keys_equal_by_name(self) -> None:
        """Two global keys with the same name are one identity."""
        assert GlobalSymbol("g") == GlobalSymbol("g")

    def test_local_keys_differ_by_object(self) -> None:
        """The same local name in two objects is two identities."""
        assert LocalSymbol(ObjectId(0), "a") != LocalSymbol(ObjectId(1), "a")

    def test_local_and_global_never_equal(self) -> None:
        """A local key never collides with a global key of the same name."""
        assert LocalSymbol(ObjectId(0), "a") != GlobalSymbol("a")


class TestIdentityInterner:
    """IdentityInterner allocation and lookup."""

    def test_given_new_keys_when_interned_then_dense_ids(self) -> None:
        """Ids are allocated 0, 1, 2... in first-seen order."""
        # Given
        interner = IdentityInterner()

        # When
        ids = [
            interner.intern(GlobalSymbol("a")),
            interner.intern(LocalSymbol(ObjectId(0), "b")),
            interner.intern(GlobalSymbol("c")),
        ]

        # Then
        assert ids == [0, 1, 2]
        assert len(interner) == 3
        assert list(interner) == [FunctionId(0), FunctionId(1), FunctionId(2)]

    def test_given_known_key_when_interned_then_same_id(self) -> None:
        """Repeated interning returns the existing id."""
        interner = IdentityInterner()
        first = interner.intern(GlobalSymbol("a"))
        interner.intern(GlobalSymbol("b"))

        assert interner.intern(GlobalSymbol("a")) == first
        assert len(interner) == 2

    def test_lookup_does_not_allocate(self) -> None:
        """lookup returns None for unknown keys without interning them."""
        interner = IdentityInterner()
        assert interner.lookup(GlobalSymbol("x")) is None
        assert GlobalSymbol("x") not in interner
        assert len(interner) == 0

    def test_key_of_round_trips(self) -> None:
        """key_of returns the key an id was allocated for."""
        interner = IdentityInterner()
        key = LocalSymbol(ObjectId(3), "helper")
        fid = interner.intern(key)
        assert interner.key_of(fid) == key

    def test_key_of_unknown_id_raises(self) -> None:
        """Out-of-range ids raise KeyError."""
        interner = IdentityInterner()
        with pytest.raises(KeyError):
            interner.key_of(FunctionId(0))

    def test_ids_named_finds_all_identities(self) -> None:
        """Every key carrying a raw name is found."""
        interner = IdentityInterner()
        a0 = interner.intern(LocalSymbol(ObjectId(0), "a"))
        interner.intern(GlobalSymbol("b"))
        a1 = interner.intern(LocalSymbol(ObjectId(1), "a"))
        ga = interner.intern(GlobalSymbol("a"))

        assert interner.ids_named("a") == [a0, a1, ga]
        assert interner.ids_named("zzz") == []
