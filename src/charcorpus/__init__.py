"""
charcorpus: character-level encoding of BIO-tagged CoNLL corpora.

Exposes the corpus reader together with its building blocks:
- symbol tables with a one-way freeze
- BIO tag decomposition
- character-level word encoding
- the normalized context vocabulary
"""

from .config import CorpusConfig
from .context import ContextMap, NumeralStrategy, is_number, normalize_context_key, slow_is_number
from .corpus import Corpus, ReadStats
from .encoder import WordEncoder, split_codepoints
from .instance import Annotation, Instance, classify_annotation
from .snapshot import load_corpus, save_corpus
from .symtab import SymbolTable, TableState
from .tags import Boundary, TagParts, split_tag

__all__ = [
    "Annotation",
    "Boundary",
    "ContextMap",
    "Corpus",
    "CorpusConfig",
    "Instance",
    "NumeralStrategy",
    "ReadStats",
    "SymbolTable",
    "TableState",
    "TagParts",
    "WordEncoder",
    "classify_annotation",
    "is_number",
    "load_corpus",
    "normalize_context_key",
    "save_corpus",
    "slow_is_number",
    "split_codepoints",
    "split_tag",
]
