from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, model_validator

from .context import NumeralStrategy


class CorpusConfig(BaseModel):
    """Seed strings and reading options for a ``Corpus``."""

    # ===== Seeds (pre-registered, in this order) =====
    bos: str = "<bos>"
    eos: str = "<eos>"
    space: str = " "
    unk: str = "<unk>"
    other: str = "O"

    # ===== Reading =====
    unk_tag: str = "?"  # tag value for latent (unannotated) tokens
    numerals: NumeralStrategy = NumeralStrategy.DIGITS
    on_malformed: Literal["raise", "skip"] = "raise"
    encoding: str = "utf-8"
    show_progress: bool = False

    @model_validator(mode="after")
    def _check_seeds(self) -> "CorpusConfig":
        seeds = [self.bos, self.eos, self.space, self.unk]
        if any(not seed for seed in seeds) or not self.other:
            raise ValueError("seed strings must be non-empty")
        if len(set(seeds)) != len(seeds):
            raise ValueError(f"character seeds must be distinct: {seeds}")
        if self.unk_tag == self.other:
            raise ValueError(f"latent tag {self.unk_tag!r} must differ from the other tag")
        return self
