from __future__ import annotations

from typing import Optional


class CorpusError(Exception):
    """Base class for every error raised while building or using a corpus."""


class CorpusFormatError(CorpusError):
    """Input does not follow the two-column BIO format.

    Callers may choose to skip the offending line; see ``CorpusConfig.on_malformed``.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line_no: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.path = path
        self.line_no = line_no
        self.line = line
        if path is not None and line_no is not None:
            message = f"{path}:{line_no}: {message}"
        super().__init__(message)


class MalformedLineError(CorpusFormatError):
    """A non-blank line does not have exactly two columns."""


class TagFormatError(CorpusFormatError):
    """A tag string cannot be decomposed into a boundary type and a label."""


class CorpusInvariantError(CorpusError):
    """Internal bookkeeping is inconsistent. Never recovered from."""


class EmptySentenceError(CorpusInvariantError):
    pass


class PhraseLengthError(CorpusInvariantError):
    pass


class DuplicateContextError(CorpusInvariantError):
    """A synthetic context key collides with an existing vocabulary or context entry."""


class UnknownSymbolError(CorpusInvariantError, LookupError):
    pass


class FrozenTableError(CorpusError):
    """Attempt to create an entry in a frozen symbol table."""


class NotFrozenError(CorpusError):
    """Operation needs frozen symbol tables."""
