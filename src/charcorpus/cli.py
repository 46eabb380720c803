import argparse
import sys
from typing import Set, Tuple

from loguru import logger

from .config import CorpusConfig
from .context import NumeralStrategy
from .corpus import Corpus
from .errors import CorpusError
from .snapshot import save_corpus


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode a BIO-tagged CoNLL corpus for a character-level sequence model."
    )

    parser.add_argument("path", type=str, help="Two-column (token tag) corpus file.")
    parser.add_argument("--out", type=str, default=None, help="Where to save the finalized corpus snapshot.")
    parser.add_argument(
        "--train_ratio",
        type=float,
        default=1.0,
        help="Share of sentences (taken from the start of the file) read before freezing.",
    )
    parser.add_argument("--log_level", type=str, default="INFO", help="loguru level for stderr output.")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while reading.")
    parser.add_argument("--show_examples", type=int, default=0, help="Log this many decoded training instances.")

    # Seeds
    parser.add_argument("--bos", type=str, default="<bos>", help="Begin-of-word marker symbol.")
    parser.add_argument("--eos", type=str, default="<eos>", help="End-of-word marker symbol.")
    parser.add_argument("--space", type=str, default=" ", help="Word separator symbol.")
    parser.add_argument("--unk", type=str, default="<unk>", help="Unknown character symbol.")
    parser.add_argument("--other_tag", type=str, default="O", help="Label of non-entity tokens.")
    parser.add_argument("--unk_tag", type=str, default="?", help="Tag value marking latent tokens.")

    # Reading
    parser.add_argument(
        "--numerals",
        type=str,
        choices=[s.value for s in NumeralStrategy],
        default=NumeralStrategy.DIGITS.value,
        help="Numeral detector used to collapse numbers in the context vocabulary.",
    )
    parser.add_argument(
        "--skip_malformed",
        action="store_true",
        help="Log and skip malformed lines instead of aborting.",
    )
    parser.add_argument("--encoding", type=str, default="utf-8", help="Input file encoding.")

    return parser


def parse_args(argv=None) -> argparse.Namespace:
    return build_arg_parser().parse_args(argv)


def config_from_args(args: argparse.Namespace) -> CorpusConfig:
    return CorpusConfig(
        bos=args.bos,
        eos=args.eos,
        space=args.space,
        unk=args.unk,
        other=args.other_tag,
        unk_tag=args.unk_tag,
        numerals=args.numerals,
        on_malformed="skip" if args.skip_malformed else "raise",
        encoding=args.encoding,
        show_progress=args.progress,
    )


def split_indices(n: int, train_ratio: float) -> Tuple[Set[int], Set[int]]:
    """Partition sentence indices into a leading train block and a trailing test block."""
    if not 0.0 <= train_ratio <= 1.0:
        raise ValueError(f"train_ratio must be in [0, 1], got {train_ratio}")
    cut = int(n * train_ratio)
    return set(range(cut)), set(range(cut, n))


def run(args: argparse.Namespace) -> Corpus:
    corpus = Corpus.from_config(config_from_args(args))
    n = Corpus.count_sentences(args.path, encoding=args.encoding)
    train_idx, test_idx = split_indices(n, args.train_ratio)
    logger.info("{} sentences: {} train, {} test", n, len(train_idx), len(test_idx))

    train, test = corpus.read(args.path, train_idx, test_idx)
    corpus.finalize()

    for instance in train[: args.show_examples]:
        corpus.log_instance(instance)
        logger.info("{} | {}", corpus.instance_words_string(instance), corpus.tagging_string(instance.tags, instance.lens))

    logger.info("{} train / {} test instances; {!r}", len(train), len(test), corpus)
    if args.out:
        save_corpus(corpus, args.out)
    return corpus


def main(argv=None) -> int:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())
    try:
        run(args)
    except (CorpusError, OSError, ValueError) as exc:
        logger.error("{}", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
