from __future__ import annotations

from enum import Enum
from typing import List, NamedTuple

from .errors import TagFormatError

SEPARATOR = "-"


class Boundary(str, Enum):
    BEGIN = "B"
    INSIDE = "I"


class TagParts(NamedTuple):
    boundary: Boundary
    label: str


def split_tag(raw: str, other: str) -> TagParts:
    """Split a raw BIO tag into its boundary type and label.

    ``B-PER`` -> (BEGIN, "PER"), ``I-PER`` -> (INSIDE, "PER"). A tag without a
    separator must be the "other" label itself, which always opens a phrase.
    """
    if SEPARATOR in raw:
        parts = raw.split(SEPARATOR)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise TagFormatError(f"unexpected tag: {raw!r}")
        try:
            boundary = Boundary(parts[0])
        except ValueError:
            raise TagFormatError(f"unexpected boundary type in tag: {raw!r}") from None
        return TagParts(boundary, parts[1])
    if raw != other:
        raise TagFormatError(f"unexpected tag: {raw!r} (expected {other!r} or B-/I- prefixed label)")
    return TagParts(Boundary.BEGIN, raw)


def join_tags(labels: List[str], lens: List[int], other: str) -> List[str]:
    """Expand phrase-level labels back to one BIO tag per token."""
    tagging: List[str] = []
    for label, length in zip(labels, lens):
        for j in range(length):
            if j == 0:
                tagging.append(label if label == other else f"B{SEPARATOR}{label}")
            else:
                tagging.append(f"I{SEPARATOR}{label}")
    return tagging
