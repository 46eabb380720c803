import pytest

from charcorpus import load_corpus
from charcorpus.cli import build_arg_parser, main, split_indices


def test_split_indices():
    assert split_indices(10, 0.8) == (set(range(8)), {8, 9})
    assert split_indices(3, 1.0) == ({0, 1, 2}, set())
    with pytest.raises(ValueError):
        split_indices(3, 1.5)


def test_defaults():
    args = build_arg_parser().parse_args(["corpus.txt"])
    assert args.train_ratio == 1.0
    assert args.numerals == "digits"
    assert not args.skip_malformed


def test_main_writes_snapshot(write_corpus, tmp_path):
    path = write_corpus(["a B-PER", "b ?", "", "c O", "", "d B-LOC", ""])
    out = tmp_path / "out" / "corpus.pt"
    assert main([str(path), "--train_ratio", "0.5", "--out", str(out), "--show_examples", "1"]) == 0

    corpus = load_corpus(out)
    assert corpus.finalized
    assert "d" not in corpus.symtab
    assert "LOC" not in corpus.tagtab


def test_main_reports_corpus_errors(write_corpus, tmp_path):
    assert main([str(write_corpus(["a b c", ""]))]) == 1
    assert main([str(tmp_path / "missing.txt")]) == 1
    assert main([str(write_corpus(["a b c", "d O", ""])), "--skip_malformed"]) == 0


def test_main_reports_invalid_options(write_corpus):
    path = str(write_corpus(["a O", ""]))
    assert main([path, "--bos", ""]) == 1
    assert main([path, "--unk_tag", "O"]) == 1
