from pathlib import Path
from typing import Callable, List

import pytest

from charcorpus import Corpus

EXAMPLE_LINES = ["John B-PER", "Smith I-PER", "went ?", ""]


@pytest.fixture
def write_corpus(tmp_path: Path) -> Callable[..., Path]:
    """Write lines to a corpus file and return its path."""
    counter = {"n": 0}

    def _write(lines: List[str], name: str = None) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"corpus_{counter['n']}.txt")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def corpus() -> Corpus:
    return Corpus()


@pytest.fixture
def example_path(write_corpus) -> Path:
    return write_corpus(EXAMPLE_LINES)
