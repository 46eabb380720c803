import torch

from charcorpus import Annotation, Corpus
from charcorpus.data import NO_CONTEXT, InstanceDataset, build_dataloaders, collate_instances


def read_finalized(write_corpus):
    corpus = Corpus()
    path = write_corpus(["John B-PER", "Smith I-PER", "went ?", "", "Hi O", ""])
    train, test = corpus.read(path, {0}, {1})
    corpus.finalize()
    return corpus, train, test


def test_dataset_item(write_corpus):
    corpus, train, _ = read_finalized(write_corpus)
    item = InstanceDataset(train, corpus)[0]
    inst = train[0]
    assert item["chars"].tolist() == inst.chars
    assert item["context_ids"].shape == (3,)
    assert item["context_ids"][0].item() == corpus.vocab.lookup("JOHN")
    assert item["observed"].tolist() == [True, True, False]
    assert item["tags"].tolist() == inst.tags
    assert item["lens"].tolist() == [2]
    assert item["obs"].item() == int(Annotation.SEMI)


def test_collate_pads_and_masks(write_corpus):
    corpus, train, _ = read_finalized(write_corpus)
    short = corpus.encode_line_for_inference("Hi")
    dataset = InstanceDataset([train[0], short], corpus)
    batch = collate_instances([dataset[0], dataset[1]], pad_id=corpus.eos_id)

    n = len(train[0].chars)
    assert batch["chars"].shape == (2, n)
    assert batch["char_mask"][0].all()
    assert batch["char_mask"][1].sum().item() == len(short.chars)
    assert (batch["chars"][1, len(short.chars):] == corpus.eos_id).all()
    assert batch["context_ids"][1, 1:].eq(NO_CONTEXT).all()
    assert batch["phrase_mask"].tolist() == [[True], [False]]
    assert batch["obs"].tolist() == [int(Annotation.SEMI), int(Annotation.NONE)]


def test_build_dataloaders(write_corpus):
    corpus, train, test = read_finalized(write_corpus)
    train_loader, test_loader = build_dataloaders(train, test, corpus, batch_size=4)
    train_batch = next(iter(train_loader))
    test_batch = next(iter(test_loader))
    assert train_batch["chars"].dtype == torch.long
    assert train_batch["chars"].shape[0] == 1
    assert test_batch["tags"].tolist() == [[corpus.other_id]]
