import os
from pathlib import Path
from typing import Union

import torch
from loguru import logger

from .corpus import Corpus

SNAPSHOT_VERSION = 1


def save_corpus(corpus: Corpus, path: Union[str, Path]) -> Path:
    """Persist the corpus tables and context map so a later run can reuse them."""
    path = Path(path)
    os.makedirs(path.parent, exist_ok=True)
    torch.save({"version": SNAPSHOT_VERSION, "corpus": corpus.state_dict()}, path)
    logger.info("Saved corpus snapshot to {}", path)
    return path


def load_corpus(path: Union[str, Path]) -> Corpus:
    """Rebuild a corpus from a snapshot written by ``save_corpus``."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Corpus snapshot not found at {path}")
    ckpt = torch.load(path, map_location="cpu", weights_only=True)
    version = ckpt.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported corpus snapshot version {version!r} in {path}")
    corpus = Corpus.from_state_dict(ckpt["corpus"])
    logger.info("Loaded corpus snapshot from {}: {!r}", path, corpus)
    return corpus
