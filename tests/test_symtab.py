import pytest

from charcorpus import SymbolTable, TableState
from charcorpus.errors import CorpusInvariantError, FrozenTableError, UnknownSymbolError


def test_ids_are_dense_and_in_insertion_order():
    table = SymbolTable()
    assert [table.add(v) for v in ["a", "b", "c"]] == [0, 1, 2]
    assert list(table) == ["a", "b", "c"]
    assert list(table.ids()) == [0, 1, 2]


def test_add_and_get_or_add_are_idempotent_while_growing():
    table = SymbolTable()
    first = table.get_or_add("x")
    assert table.get_or_add("x") == first
    assert table.add("x") == first
    assert len(table) == 1


def test_lookup_missing_returns_none():
    table = SymbolTable()
    table.add("a")
    assert table.lookup("a") == 0
    assert table.lookup("zz") is None
    assert "a" in table
    assert "zz" not in table


def test_value_of_unknown_id_is_an_invariant_error():
    table = SymbolTable()
    table.add("a")
    with pytest.raises(UnknownSymbolError):
        table.value_of(1)
    with pytest.raises(CorpusInvariantError):
        table.value_of(-1)
    with pytest.raises(LookupError):
        table.value_of(42)


def test_freeze_is_one_way_and_idempotent():
    table = SymbolTable()
    assert table.state is TableState.GROWING
    table.freeze()
    table.freeze()
    assert table.state is TableState.FROZEN
    assert table.frozen


def test_frozen_table_never_grows():
    table = SymbolTable()
    for v in ["a", "b"]:
        table.add(v)
    table.freeze()

    assert table.add("a") == 0
    with pytest.raises(FrozenTableError):
        table.add("new")
    with pytest.raises(FrozenTableError):
        table.get_or_add("new")
    with pytest.raises(FrozenTableError):
        table.get_or_add("a")
    assert len(table) == 2


def test_frozen_round_trip():
    table = SymbolTable()
    for v in ["<bos>", "x", "y", "z"]:
        table.add(v)
    table.freeze()
    for sym in table.ids():
        assert table.lookup(table.value_of(sym)) == sym


def test_resolve_falls_back_to_unknown():
    table = SymbolTable()
    table.add("<unk>")
    table.add("a")
    with pytest.raises(UnknownSymbolError):
        table.resolve("b")
    assert table.set_unknown("<unk>") == 0
    assert table.resolve("a") == 1
    assert table.resolve("b") == 0


def test_set_unknown_requires_registered_value():
    with pytest.raises(UnknownSymbolError):
        SymbolTable().set_unknown("<unk>")


def test_state_dict_round_trip():
    table = SymbolTable("chars")
    for v in ["<unk>", "a", "b"]:
        table.add(v)
    table.set_unknown("<unk>")
    table.freeze()

    restored = SymbolTable.from_state_dict(table.state_dict())
    assert restored.name == "chars"
    assert list(restored) == ["<unk>", "a", "b"]
    assert restored.frozen
    assert restored.resolve("q") == 0
