"""
CoNLL-style corpus reader producing character-level instances.

Input is one ``token tag`` pair per line with blank lines between sentences.
Tags are ``O`` (the configured "other" label), ``B-<label>``/``I-<label>``, or
the latent marker ``?`` for tokens without ground truth.

Typical use::

    corpus = Corpus()
    train, test = corpus.read(path, train_idx, test_idx)  # freezes in between
    corpus.finalize()                                     # adds tag/BOS contexts
    instance = corpus.encode_line_for_inference("John went home")
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from loguru import logger
from tqdm import tqdm

from .config import CorpusConfig
from .context import BOS_CONTEXT_KEY, ContextMap
from .encoder import EncodedWord, WordEncoder
from .errors import (
    CorpusError,
    CorpusFormatError,
    EmptySentenceError,
    MalformedLineError,
    NotFrozenError,
    PhraseLengthError,
    TagFormatError,
)
from .instance import Annotation, Instance, classify_annotation
from .symtab import SymbolTable
from .tags import Boundary, join_tags, split_tag

PathLike = Union[str, Path]


@dataclass
class ReadStats:
    """Counters for one read pass."""

    n_sentences: int = 0  # sentences closed, filtered or not
    n_emitted: int = 0
    n_words: int = 0  # tokens in emitted sentences
    n_tags: int = 0  # tagged tokens in emitted sentences
    n_full: int = 0
    n_semi: int = 0
    n_none: int = 0
    n_unknown_chars: int = 0
    n_unknown_tags: int = 0
    n_skipped_lines: int = 0
    n_dropped: int = 0  # sentences whose lines were all skipped
    unique_symbols: Set[int] = field(default_factory=set)

    def log(self, path: PathLike) -> None:
        logger.info("Read {} sentences from {} ({} kept)", self.n_sentences, path, self.n_emitted)
        logger.info("n_unique_sym = {}", len(self.unique_symbols))
        logger.info("n_words = {} n_tags = {}", self.n_words, self.n_tags)
        logger.info("n_full = {} n_semi = {} n_none = {}", self.n_full, self.n_semi, self.n_none)
        if self.n_unknown_chars or self.n_unknown_tags:
            logger.info("n_unk_chars = {} n_unk_tags = {}", self.n_unknown_chars, self.n_unknown_tags)
        if self.n_skipped_lines:
            logger.warning("{} malformed lines skipped, {} sentences dropped", self.n_skipped_lines, self.n_dropped)


class Corpus:
    """Symbol tables, context vocabulary and reader for a BIO-tagged corpus.

    The five seed strings are registered first, so ``bos``/``eos``/``space``/``unk``
    get character ids 0-3 and ``other`` gets tag id 0.

    A corpus is written by a single reader. Once finalized it is read-only and
    may be shared between threads for inference.
    """

    def __init__(
        self,
        bos: str = "<bos>",
        eos: str = "<eos>",
        space: str = " ",
        unk: str = "<unk>",
        other: str = "O",
        **options: Any,
    ):
        self.config = CorpusConfig(bos=bos, eos=eos, space=space, unk=unk, other=other, **options)

        self.symtab = SymbolTable("symtab")
        self.tagtab = SymbolTable("tagtab")
        # Normalized word forms (upper-cased, numerals collapsed) plus the
        # synthetic tag and BOS keys added by finalize().
        self.vocab = SymbolTable("vocab")

        for seed in (bos, eos, space, unk):
            self.symtab.add(seed)
        self.symtab.set_unknown(unk)
        self.tagtab.add(other)
        self.tagtab.set_unknown(other)

        self.context_map = ContextMap(self.vocab, strategy=self.config.numerals)
        self.context_tag_keys: Dict[int, EncodedWord] = {}
        self.last_read_stats: Optional[ReadStats] = None
        self._bind()

    @classmethod
    def from_config(cls, config: CorpusConfig) -> "Corpus":
        return cls(**config.model_dump())

    def _bind(self) -> None:
        cfg = self.config
        self.bos = self.symtab.lookup(cfg.bos)
        self.eos = self.symtab.lookup(cfg.eos)
        self.space = self.symtab.lookup(cfg.space)
        self.unk = self.symtab.lookup(cfg.unk)
        self.other_tag = self.tagtab.lookup(cfg.other)
        self.encoder = WordEncoder(self.symtab, self.bos, self.eos, self.unk)

    # ----------------------------------------------------------------
    # Sentinels
    # ----------------------------------------------------------------

    @property
    def bos_id(self) -> int:
        return self.bos

    @property
    def eos_id(self) -> int:
        return self.eos

    @property
    def space_id(self) -> int:
        return self.space

    @property
    def unk_id(self) -> int:
        return self.unk

    @property
    def other_id(self) -> int:
        return self.other_tag

    @property
    def bos_value(self) -> str:
        return self.symtab.value_of(self.bos)

    @property
    def eos_value(self) -> str:
        return self.symtab.value_of(self.eos)

    @property
    def space_value(self) -> str:
        return self.symtab.value_of(self.space)

    @property
    def unk_value(self) -> str:
        return self.symtab.value_of(self.unk)

    @property
    def other_value(self) -> str:
        return self.tagtab.value_of(self.other_tag)

    @property
    def eos_word(self) -> EncodedWord:
        return (0, self.eos, 0)

    @property
    def bos_word(self) -> EncodedWord:
        return (0, self.bos, 0)

    # ----------------------------------------------------------------
    # Freezing and finalization
    # ----------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self.symtab.frozen and self.tagtab.frozen

    @property
    def finalized(self) -> bool:
        return self.bos_word in self.context_map

    def freeze(self) -> None:
        self.symtab.freeze()
        self.tagtab.freeze()

    def finalize(self) -> None:
        """Freeze the tables and add the synthetic contexts. Call exactly once, before inference."""
        self.freeze()
        self.finalize_tag_contexts()
        self.vocab.freeze()
        logger.info("{} unique words in the vocabulary", len(self.vocab))
        logger.info("{} keys in the context map", len(self.context_map))

    def finalize_tag_contexts(self) -> None:
        if not self.frozen:
            raise NotFrozenError("freeze the symbol and tag tables before adding tag contexts")
        for tag in self.tagtab.ids():
            if tag == self.other_tag:
                continue
            tagstr = self.tag_context_string(tag)
            logger.debug("Adding context {} for tag {}", tagstr, tag)
            word = self.make_tag_context_word(tag)
            self.context_map.add_synthetic(word, tagstr)
            self.context_tag_keys[tag] = self.context_map.canonical(word)
        self.context_map.add_synthetic(self.bos_word, BOS_CONTEXT_KEY)

    # ----------------------------------------------------------------
    # Context lookups
    # ----------------------------------------------------------------

    def tag_context_string(self, tag: int) -> str:
        if tag == self.other_tag:
            raise ValueError("the other tag has no context string")
        return f"<{self.tagtab.value_of(tag)}>"

    def make_tag_context_word(self, tag: int) -> EncodedWord:
        return (0, tag, 0)

    def tag_context_word(self, tag: int) -> EncodedWord:
        return self.context_tag_keys[tag]

    def tag_context_id(self, tag: int) -> int:
        return self.context_map[self.context_tag_keys[tag]]

    def bos_context_id(self) -> int:
        if not self.finalized:
            raise CorpusError("BOS context is only available after finalize()")
        return self.context_map[self.bos_word]

    def word_context_id(self, word: Iterable[int]) -> Optional[int]:
        word = tuple(word)
        if word == self.eos_word:
            # Same shape as the synthetic key of tag id ``eos``; it has no context of its own.
            raise ValueError("the end-of-sentence word has no context")
        return self.context_map.get(word)

    # ----------------------------------------------------------------
    # Reading
    # ----------------------------------------------------------------

    @staticmethod
    def count_sentences(path: PathLike, encoding: str = "utf-8") -> int:
        """Number of sentences in ``path``; sentence indices range over ``[0, n)``."""
        n = 0
        pending = False
        with open(path, "r", encoding=encoding) as handle:
            for line in handle:
                if line.split():
                    pending = True
                elif pending:
                    n += 1
                    pending = False
        return n + int(pending)

    def read(
        self,
        path: PathLike,
        include: Optional[Iterable[int]] = None,
        test_include: Optional[Iterable[int]] = None,
    ) -> Union[List[Instance], Tuple[List[Instance], List[Instance]]]:
        """Read ``path`` into instances.

        With ``include`` only sentences whose index is in it are returned
        (None keeps everything). Passing ``test_include`` as well performs the
        two-pass train/test read of ``read_split``.
        """
        if test_include is not None:
            return self.read_split(path, include, test_include)
        return self._read_pass(path, include)

    def read_split(
        self,
        path: PathLike,
        train_indices: Optional[Iterable[int]],
        test_indices: Iterable[int],
    ) -> Tuple[List[Instance], List[Instance]]:
        """Read training sentences, freeze the tables, then read test sentences."""
        train = self._read_pass(path, train_indices)
        self.freeze()
        test = self._read_pass(path, test_indices)
        return train, test

    def _read_pass(self, path: PathLike, include: Optional[Iterable[int]]) -> List[Instance]:
        path = Path(path)
        if not path.is_file():
            logger.error("Error reading path: {}", path)
            raise FileNotFoundError(f"Corpus file not found: {path}")

        keep = None if include is None else set(include)
        logger.debug("Reading {} (filter={}, include={})", path, keep is not None, len(keep or ()))

        stats = ReadStats()
        instances: List[Instance] = []
        unk_before = self.encoder.n_unknown
        sentence = Instance(chars=[self.bos])
        skipped_in_sentence = False
        line_no = 0

        with open(path, "r", encoding=self.config.encoding) as handle:
            lines = tqdm(handle, desc=f"reading {path.name}", unit="line", disable=not self.config.show_progress)
            for line_no, line in enumerate(lines, start=1):
                cols = line.split()
                if not cols:
                    if sentence.n_tokens == 0 and skipped_in_sentence:
                        self._drop(path, line_no, stats)
                    else:
                        self._close_sentence(sentence, path, line_no)
                        self._emit(sentence, keep, stats, instances)
                    sentence = Instance(chars=[self.bos])
                    skipped_in_sentence = False
                    continue

                try:
                    if len(cols) != 2:
                        raise MalformedLineError(f"expected 2 columns, got {len(cols)}")
                    selected = keep is None or stats.n_sentences in keep
                    self._add_token(sentence, cols[0], cols[1], stats, selected)
                except CorpusFormatError as exc:
                    error = type(exc)(str(exc), str(path), line_no, line.rstrip("\n"))
                    if self.config.on_malformed != "skip":
                        raise error from None
                    logger.warning("Skipping line: {}", error)
                    stats.n_skipped_lines += 1
                    skipped_in_sentence = True

        if sentence.n_tokens > 0:
            self._close_sentence(sentence, path, line_no)
            self._emit(sentence, keep, stats, instances)
        elif skipped_in_sentence:
            self._drop(path, line_no, stats)

        stats.n_unknown_chars = self.encoder.n_unknown - unk_before
        stats.log(path)
        self.last_read_stats = stats
        return instances

    def _add_token(
        self, sentence: Instance, token: str, raw_tag: str, stats: ReadStats, selected: bool = True
    ) -> None:
        # Validate before touching the sentence so a skipped line leaves it intact.
        # Sentences outside the include set are only checked; they never touch the tables.
        latent = raw_tag == self.config.unk_tag
        parts = None
        if not latent:
            parts = split_tag(raw_tag, self.other_value)
            if parts.boundary is Boundary.INSIDE and not sentence.lens:
                raise TagFormatError(f"continuation tag {raw_tag!r} without an open phrase")

        if sentence.words:
            sentence.chars.append(self.space)

        if parts is not None:
            if parts.boundary is Boundary.BEGIN:
                sentence.tags.append(self._tag_id(parts.label, stats) if selected else self.other_tag)
                sentence.lens.append(1)
            else:
                sentence.lens[-1] += 1

        if not selected:
            sentence.observed.append(not latent)
            return

        word = self.encoder.encode(token)
        sentence.chars.extend(word[1:-1])
        stats.unique_symbols.update(word[1:-1])
        self.context_map.register(token, word)
        sentence.words.append(self.context_map.canonical(word))
        sentence.observed.append(not latent)

    def _tag_id(self, label: str, stats: ReadStats) -> int:
        if not self.tagtab.frozen:
            return self.tagtab.get_or_add(label)
        tag = self.tagtab.lookup(label)
        if tag is None:
            stats.n_unknown_tags += 1
            tag = self.other_tag
        return tag

    def _close_sentence(self, sentence: Instance, path: Path, line_no: int) -> None:
        if sentence.n_tokens == 0:
            raise EmptySentenceError(f"{path}:{line_no}: pushing empty sentence")
        if not sentence.tags:
            raise EmptySentenceError(
                f"{path}:{line_no}: sentence of {sentence.n_tokens} tokens has no tagged phrase"
            )

        sentence.chars.append(self.eos)
        sentence.words.append(self.eos_word)

        if any(length < 1 for length in sentence.lens):
            raise PhraseLengthError(f"{path}:{line_no}: bad phrase length in {sentence.lens}")
        if sum(sentence.lens) != sentence.n_tagged or len(sentence.lens) != len(sentence.tags):
            raise PhraseLengthError(
                f"{path}:{line_no}: {sentence.n_tagged} tagged tokens != {sum(sentence.lens)} "
                f"(lens={sentence.lens}, tags={sentence.tags})"
            )
        sentence.obs = classify_annotation(sentence.n_tagged, sentence.n_tokens)

    @staticmethod
    def _drop(path: Path, line_no: int, stats: ReadStats) -> None:
        # The index is still used up so it lines up with count_sentences.
        logger.warning("{}:{}: sentence {} dropped, all of its lines were skipped", path, line_no, stats.n_sentences)
        stats.n_sentences += 1
        stats.n_dropped += 1

    @staticmethod
    def _emit(sentence: Instance, keep: Optional[Set[int]], stats: ReadStats, out: List[Instance]) -> None:
        idx = stats.n_sentences
        stats.n_sentences += 1
        if sentence.obs is Annotation.FULL:
            stats.n_full += 1
        elif sentence.obs is Annotation.SEMI:
            stats.n_semi += 1
        else:
            stats.n_none += 1
        if keep is None or idx in keep:
            out.append(sentence)
            stats.n_emitted += 1
            stats.n_words += sentence.n_tokens
            stats.n_tags += sentence.n_tagged

    # ----------------------------------------------------------------
    # Inference
    # ----------------------------------------------------------------

    def encode_line_for_inference(self, line: str) -> Instance:
        """Encode a whitespace-tokenized line with the frozen tables; nothing is added."""
        if not self.frozen:
            raise NotFrozenError("this should be used after training a model; call finalize() first")
        encoder = WordEncoder(self.symtab, self.bos, self.eos, self.unk)
        sentence = Instance(chars=[self.bos])
        for token in line.split():
            word = encoder.encode(token)
            if sentence.words:
                sentence.chars.append(self.space)
            sentence.chars.extend(word[1:-1])
            sentence.words.append(self.context_map.canonical(word))
            sentence.observed.append(False)
        sentence.chars.append(self.eos)
        sentence.words.append(self.eos_word)
        sentence.obs = Annotation.NONE
        if encoder.n_unknown:
            logger.debug("{} unknown characters in {!r}", encoder.n_unknown, line)
        return sentence

    # ----------------------------------------------------------------
    # Decoding
    # ----------------------------------------------------------------

    def decode(self, word: Iterable[int]) -> str:
        return self.encoder.decode(word)

    def instance_chars_string(self, instance: Instance) -> str:
        return self.decode(instance.chars)

    def instance_words_string(self, instance: Instance) -> str:
        return "".join(" " + self.decode(word) for word in instance.words)

    def tagging_string(self, tags: List[int], lens: List[int]) -> str:
        labels = [self.tagtab.value_of(tag) for tag in tags]
        return " ".join(join_tags(labels, lens, self.other_value))

    def iter_phrases(self, instance: Instance) -> Iterator[Tuple[int, List[EncodedWord]]]:
        """Yield ``(tag, words)`` per phrase, skipping latent tokens."""
        words = [word for word, seen in zip(instance.words, instance.observed) if seen]
        start = 0
        for tag, length in zip(instance.tags, instance.lens):
            yield tag, words[start:start + length]
            start += length

    def phrase_symbols(self, words: List[EncodedWord]) -> List[int]:
        """Join word bodies with spaces and bracket the result with bos/eos."""
        syms = [self.bos]
        for i, word in enumerate(words):
            if i > 0:
                syms.append(self.space)
            syms.extend(word[1:-1])
        syms.append(self.eos)
        return syms

    def log_instance(self, instance: Instance) -> None:
        logger.debug(
            "{} words, {} lens, {} chars: {}",
            len(instance.words),
            len(instance.lens),
            len(instance.chars),
            self.instance_chars_string(instance),
        )
        for tag, words in self.iter_phrases(instance):
            logger.debug("  {}: {}", self.tagtab.value_of(tag), self.decode(self.phrase_symbols(words)))

    # ----------------------------------------------------------------
    # Snapshots
    # ----------------------------------------------------------------

    def state_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.model_dump(mode="json"),
            "symtab": self.symtab.state_dict(),
            "tagtab": self.tagtab.state_dict(),
            "vocab": self.vocab.state_dict(),
            "context_map": self.context_map.state_dict(),
            "context_tag_keys": [[tag, list(word)] for tag, word in self.context_tag_keys.items()],
        }

    @classmethod
    def from_state_dict(cls, state: Dict[str, Any]) -> "Corpus":
        corpus = cls.from_config(CorpusConfig(**state["config"]))
        corpus.symtab = SymbolTable.from_state_dict(state["symtab"])
        corpus.tagtab = SymbolTable.from_state_dict(state["tagtab"])
        corpus.vocab = SymbolTable.from_state_dict(state["vocab"])
        corpus.context_map = ContextMap.from_state_dict(state["context_map"], corpus.vocab)
        corpus.context_tag_keys = {
            tag: corpus.context_map.canonical(tuple(word)) for tag, word in state["context_tag_keys"]
        }
        corpus._bind()
        return corpus

    def __repr__(self) -> str:
        return (
            f"Corpus(symbols={len(self.symtab)}, tags={len(self.tagtab)}, vocab={len(self.vocab)}, "
            f"contexts={len(self.context_map)}, frozen={self.frozen}, finalized={self.finalized})"
        )
