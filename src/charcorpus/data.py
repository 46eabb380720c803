from typing import Dict, List, Sequence, Tuple

import torch
from torch.nn.utils.rnn import pad_sequence
from torch.utils.data import DataLoader, Dataset

from .corpus import Corpus
from .instance import Instance

NO_CONTEXT = -1


class InstanceDataset(Dataset):
    """Tensor view over encoded sentences for a character-level tagger."""

    def __init__(self, instances: Sequence[Instance], corpus: Corpus):
        """Keep a reference to the corpus to resolve word context ids lazily."""
        self.instances = list(instances)
        self.corpus = corpus

    def __len__(self) -> int:
        """Return the number of sentences."""
        return len(self.instances)

    def __getitem__(self, idx: int) -> Dict[str, torch.Tensor]:
        """Return chars, per-word context ids, phrase tags/lengths and the annotation class."""
        inst = self.instances[idx]
        context_ids = [self.corpus.context_map.get(word, NO_CONTEXT) for word in inst.words[:-1]]
        return {
            "chars": torch.tensor(inst.chars, dtype=torch.long),
            "context_ids": torch.tensor(context_ids, dtype=torch.long),
            "observed": torch.tensor(inst.observed, dtype=torch.bool),
            "tags": torch.tensor(inst.tags, dtype=torch.long),
            "lens": torch.tensor(inst.lens, dtype=torch.long),
            "obs": torch.tensor(int(inst.obs), dtype=torch.long),
        }


def collate_instances(batch: List[Dict[str, torch.Tensor]], pad_id: int) -> Dict[str, torch.Tensor]:
    """Pad variable-length fields to the longest sentence and add boolean masks."""
    out: Dict[str, torch.Tensor] = {
        "chars": pad_sequence([b["chars"] for b in batch], batch_first=True, padding_value=pad_id),
        "context_ids": pad_sequence(
            [b["context_ids"] for b in batch], batch_first=True, padding_value=NO_CONTEXT
        ),
        "observed": pad_sequence([b["observed"] for b in batch], batch_first=True, padding_value=0),
        "tags": pad_sequence([b["tags"] for b in batch], batch_first=True, padding_value=0),
        "lens": pad_sequence([b["lens"] for b in batch], batch_first=True, padding_value=0),
        "obs": torch.stack([b["obs"] for b in batch]),
    }
    out["char_mask"] = pad_sequence(
        [torch.ones_like(b["chars"], dtype=torch.bool) for b in batch], batch_first=True, padding_value=0
    )
    out["phrase_mask"] = out["lens"] > 0
    return out


def build_dataloaders(
    train: Sequence[Instance],
    test: Sequence[Instance],
    corpus: Corpus,
    batch_size: int,
) -> Tuple[DataLoader, DataLoader]:
    """Create train/test dataloaders; chars are padded with the eos symbol."""
    def collate(batch):
        return collate_instances(batch, pad_id=corpus.eos_id)

    train_loader = DataLoader(
        InstanceDataset(train, corpus),
        batch_size=batch_size,
        shuffle=True,
        drop_last=False,
        collate_fn=collate,
    )
    test_loader = DataLoader(
        InstanceDataset(test, corpus),
        batch_size=batch_size,
        shuffle=False,
        drop_last=False,
        collate_fn=collate,
    )
    return train_loader, test_loader
