from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from .encoder import EncodedWord


class Annotation(IntEnum):
    """How much of a sentence carries ground-truth tags."""

    FULL = 0
    SEMI = 1
    NONE = 2


def classify_annotation(n_tagged: int, n_total: int) -> Annotation:
    if n_tagged == 0:
        return Annotation.NONE
    if n_tagged == n_total:
        return Annotation.FULL
    return Annotation.SEMI


@dataclass
class Instance:
    """One encoded sentence.

    ``tags``/``lens`` describe entity phrases over the observed tokens only;
    ``observed`` has one flag per token (the trailing end-of-sentence word
    excluded) and is False for latent tokens.
    """

    chars: List[int] = field(default_factory=list)
    words: List[EncodedWord] = field(default_factory=list)
    tags: List[int] = field(default_factory=list)
    lens: List[int] = field(default_factory=list)
    observed: List[bool] = field(default_factory=list)
    obs: Annotation = Annotation.NONE

    @property
    def n_tokens(self) -> int:
        return len(self.observed)

    @property
    def n_tagged(self) -> int:
        return sum(self.observed)

    def clear(self) -> None:
        self.chars.clear()
        self.words.clear()
        self.tags.clear()
        self.lens.clear()
        self.observed.clear()
        self.obs = Annotation.NONE
