from typing import Iterable, List, Tuple

from .symtab import SymbolTable

EncodedWord = Tuple[int, ...]


def split_codepoints(token: str) -> List[str]:
    """Split a token into single-codepoint strings, dropping NUL characters."""
    return [ch for ch in token if ch != "\x00"]


class WordEncoder:
    """Character-level word encoder backed by a shared symbol table."""

    def __init__(self, symtab: SymbolTable, bos: int, eos: int, unk: int):
        """Keep the marker ids used to bracket every encoded word."""
        self.symtab = symtab
        self.bos = bos
        self.eos = eos
        self.unk = unk
        self.n_unknown = 0

    def symbols(self, token: str) -> List[int]:
        """Map each character to a symbol, growing the table unless it is frozen."""
        if not self.symtab.frozen:
            return [self.symtab.get_or_add(ch) for ch in split_codepoints(token)]
        syms: List[int] = []
        for ch in split_codepoints(token):
            sym = self.symtab.lookup(ch)
            if sym is None:
                self.n_unknown += 1
                sym = self.unk
            syms.append(sym)
        return syms

    def encode(self, token: str) -> EncodedWord:
        """Return ``(bos, sym(c1), ..., sym(cn), eos)`` for ``token``."""
        return (self.bos, *self.symbols(token), self.eos)

    def decode(self, ids: Iterable[int]) -> str:
        """Concatenate symbol values, markers included, for inspection."""
        return "".join(self.symtab.value_of(int(i)) for i in ids)
