"""
Context vocabulary: maps each distinct encoded word to the id of its
normalized surface form.

Normalization upper-cases the raw token and collapses numerals to a single
``<NUM>`` key. Two numeral detectors are available:

  - ``digits``: the token is non-empty and made only of ASCII digits, so
    ``"2020"`` is a numeral and ``"2,020"`` is not.
  - ``locale``: commas are read as decimal points and the token must then
    parse as a decimal literal (sign, fraction and exponent allowed), so
    ``"2,020"`` and ``"-3.5e2"`` are numerals too.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from loguru import logger

from .encoder import EncodedWord
from .errors import DuplicateContextError
from .symtab import SymbolTable

NUMBER_KEY = "<NUM>"
BOS_CONTEXT_KEY = "<BOS>"

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class NumeralStrategy(str, Enum):
    DIGITS = "digits"
    LOCALE = "locale"


def is_number(token: str) -> bool:
    return bool(token) and token.isascii() and token.isdigit()


def slow_is_number(token: str) -> bool:
    return _DECIMAL_RE.fullmatch(token.replace(",", ".")) is not None


_DETECTORS = {
    NumeralStrategy.DIGITS: is_number,
    NumeralStrategy.LOCALE: slow_is_number,
}


def normalize_context_key(token: str, strategy: NumeralStrategy = NumeralStrategy.DIGITS) -> str:
    if _DETECTORS[NumeralStrategy(strategy)](token):
        return NUMBER_KEY
    return token.upper()


class ContextMap:
    """Append-only map from encoded words to context (vocabulary) ids.

    Encoded words are interned: each distinct encoding is stored once in an
    arena and addressed by an integer handle, and ``canonical`` hands back the
    stored tuple so callers can share it instead of keeping copies.
    """

    def __init__(self, vocab: SymbolTable, strategy: NumeralStrategy = NumeralStrategy.DIGITS):
        self.vocab = vocab
        self.strategy = NumeralStrategy(strategy)
        self._handles: Dict[EncodedWord, int] = {}
        self._arena: List[EncodedWord] = []
        self._context_ids: List[int] = []

    def _insert(self, word: EncodedWord, context_id: int) -> None:
        word = tuple(word)
        self._handles[word] = len(self._arena)
        self._arena.append(word)
        self._context_ids.append(context_id)

    def register(self, raw_token: str, word: EncodedWord) -> Optional[int]:
        """Record ``word`` under the normalized form of ``raw_token``; first writer wins.

        Returns the context id, or None when the word is new and the
        vocabulary is already frozen.
        """
        handle = self._handles.get(word)
        if handle is not None:
            return self._context_ids[handle]
        if self.vocab.frozen:
            logger.debug("Vocabulary frozen; no context for {!r}", raw_token)
            return None
        context_id = self.vocab.get_or_add(normalize_context_key(raw_token, self.strategy))
        self._insert(word, context_id)
        return context_id

    def add_synthetic(self, word: EncodedWord, key: str) -> int:
        """Give a synthetic encoding its own fresh vocabulary entry."""
        if key in self.vocab:
            raise DuplicateContextError(f"{key!r} already in the context vocabulary")
        if word in self._handles:
            raise DuplicateContextError(f"{key!r}: encoding {word} already in the context map")
        context_id = self.vocab.add(key)
        self._insert(word, context_id)
        return context_id

    def canonical(self, word: EncodedWord) -> EncodedWord:
        handle = self._handles.get(word)
        return word if handle is None else self._arena[handle]

    def get(self, word: EncodedWord, default: Optional[int] = None) -> Optional[int]:
        handle = self._handles.get(word)
        return default if handle is None else self._context_ids[handle]

    def __getitem__(self, word: EncodedWord) -> int:
        return self._context_ids[self._handles[word]]

    def __contains__(self, word: object) -> bool:
        return word in self._handles

    def __len__(self) -> int:
        return len(self._arena)

    def items(self) -> Iterator[Tuple[EncodedWord, int]]:
        return zip(self._arena, self._context_ids)

    def state_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "words": [list(word) for word in self._arena],
            "context_ids": list(self._context_ids),
        }

    @classmethod
    def from_state_dict(cls, state: Dict[str, Any], vocab: SymbolTable) -> "ContextMap":
        cmap = cls(vocab, strategy=state["strategy"])
        for word, context_id in zip(state["words"], state["context_ids"]):
            cmap._insert(tuple(word), context_id)
        return cmap
