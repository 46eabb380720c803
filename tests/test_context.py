import pytest

from charcorpus import ContextMap, NumeralStrategy, SymbolTable, is_number, normalize_context_key, slow_is_number
from charcorpus.context import NUMBER_KEY
from charcorpus.errors import DuplicateContextError


@pytest.mark.parametrize("token", ["2020", "0", "007"])
def test_digit_numerals(token):
    assert is_number(token)


@pytest.mark.parametrize("token", ["", "2,020", "-1", "3.5", "1e5", "٣", "²", "12a"])
def test_digit_detector_rejects_everything_else(token):
    assert not is_number(token)


@pytest.mark.parametrize("token", ["2020", "2,020", "-1", "+3.5", "3.5e2", ".5", "1,5E-3"])
def test_locale_numerals(token):
    assert slow_is_number(token)


@pytest.mark.parametrize("token", ["", "abc", "1e", ",", "1,2,3", "--1"])
def test_locale_detector_rejects_non_numbers(token):
    assert not slow_is_number(token)


def test_normalization_keys():
    assert normalize_context_key("Paris") == "PARIS"
    assert normalize_context_key("paris") == normalize_context_key("PARIS")
    assert normalize_context_key("2020") == NUMBER_KEY
    assert normalize_context_key("99999999") == NUMBER_KEY
    assert normalize_context_key("2,020") == "2,020"
    assert normalize_context_key("2,020", NumeralStrategy.LOCALE) == NUMBER_KEY
    assert normalize_context_key("2,020", "locale") == NUMBER_KEY


def test_register_first_writer_wins():
    vocab = SymbolTable("vocab")
    cmap = ContextMap(vocab)
    word = (0, 4, 5, 1)
    first = cmap.register("ab", word)
    assert cmap.register("AB", word) == first
    assert cmap.register("something else", word) == first
    assert cmap[word] == first
    assert len(cmap) == 1
    assert len(vocab) == 1


def test_case_variants_share_a_context_id():
    vocab = SymbolTable("vocab")
    cmap = ContextMap(vocab)
    a = cmap.register("Paris", (0, 4, 5, 1))
    b = cmap.register("PARIS", (0, 6, 7, 1))
    c = cmap.register("paris", (0, 8, 9, 1))
    assert a == b == c
    assert len(cmap) == 3
    assert list(vocab) == ["PARIS"]


def test_numerals_collapse():
    cmap = ContextMap(SymbolTable("vocab"))
    assert cmap.register("2020", (0, 4, 1)) == cmap.register("17", (0, 5, 1))
    assert cmap.register("2,020", (0, 6, 1)) != cmap[(0, 4, 1)]


def test_canonical_returns_interned_tuple():
    cmap = ContextMap(SymbolTable("vocab"))
    stored = (0, 4, 1)
    cmap.register("a", stored)
    copy = tuple([0, 4, 1])
    assert cmap.canonical(copy) is stored
    other = (0, 9, 1)
    assert cmap.canonical(other) is other


def test_add_synthetic_rejects_duplicates():
    vocab = SymbolTable("vocab")
    cmap = ContextMap(vocab)
    cmap.register("per", (0, 4, 1))
    assert cmap.add_synthetic((0, 1, 0), "<PER>") == 1
    with pytest.raises(DuplicateContextError):
        cmap.add_synthetic((0, 2, 0), "<PER>")
    with pytest.raises(DuplicateContextError):
        cmap.add_synthetic((0, 4, 1), "<LOC>")
    with pytest.raises(DuplicateContextError):
        cmap.add_synthetic((0, 9, 0), "PER")


def test_frozen_vocabulary_stops_registration():
    vocab = SymbolTable("vocab")
    cmap = ContextMap(vocab)
    known = cmap.register("a", (0, 4, 1))
    vocab.freeze()
    assert cmap.register("a", (0, 4, 1)) == known
    assert cmap.register("b", (0, 5, 1)) is None
    assert (0, 5, 1) not in cmap
    assert cmap.get((0, 5, 1)) is None
    assert cmap.get((0, 5, 1), -1) == -1


def test_state_dict_round_trip():
    vocab = SymbolTable("vocab")
    cmap = ContextMap(vocab, strategy=NumeralStrategy.LOCALE)
    cmap.register("x", (0, 4, 1))
    cmap.register("1,5", (0, 5, 1))
    restored = ContextMap.from_state_dict(cmap.state_dict(), vocab)
    assert restored.strategy is NumeralStrategy.LOCALE
    assert dict(restored.items()) == dict(cmap.items())
