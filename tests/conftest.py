from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from count_corpus_parses.errors import StoreError
from count_corpus_parses.parsed import ConnectorSet, Parse, ParsedSentence, RelationEdge, WordOccurrence
from count_corpus_parses.store import MemoryCounterStore


def build_parse(
    words: Sequence[Optional[str]],
    relations: Sequence[Tuple[str, int, int]] = (),
    connectors: Optional[Dict[int, Tuple[str, ...]]] = None,
    start: int = 0,
    parse_id: str = "p0",
) -> Parse:
    """words[i] sits at raw position start + i; relations/connectors index into words."""
    occs = tuple(
        WordOccurrence(f"{w}@{parse_id}.{i}", start + i, w) for i, w in enumerate(words)
    )
    rels = tuple(RelationEdge(rel, occs[a], occs[b]) for rel, a, b in relations)
    csets = tuple(ConnectorSet(occs[i], tuple(c)) for i, c in sorted((connectors or {}).items()))
    return Parse(parse_id=parse_id, words=occs, relations=rels, connector_sets=csets)


def build_sentence(*parses: Parse, sentence_id: str = "s1", text: str = "") -> ParsedSentence:
    return ParsedSentence(sentence_id=sentence_id, text=text, parses=tuple(parses))


class FailingStore(MemoryCounterStore):
    """Memory store whose n-th persist call raises StoreError."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.attempts = 0

    def persist(self, key, count):
        self.attempts += 1
        if self.attempts == self.fail_on:
            raise StoreError(f"disk full while writing {key!r}")
        super().persist(key, count)


class FakeParser:
    """In-memory parser queue: submit() enqueues sentences prepared by the test."""

    def __init__(self, sentences_by_text: Dict[str, List[ParsedSentence]]) -> None:
        self.sentences_by_text = sentences_by_text
        self.queue: List[ParsedSentence] = []
        self.submitted: List[str] = []
        self.discarded: List[str] = []

    def submit(self, text: str) -> None:
        self.submitted.append(text)
        self.queue.extend(self.sentences_by_text.get(text, []))

    def next_parsed_sentence(self) -> Optional[ParsedSentence]:
        return self.queue[0] if self.queue else None

    def discard(self, sentence: ParsedSentence) -> None:
        self.queue.remove(sentence)
        self.discarded.append(sentence.sentence_id)


@pytest.fixture
def memory_store() -> MemoryCounterStore:
    return MemoryCounterStore()


@pytest.fixture
def ab_sentence() -> ParsedSentence:
    # "A B" -> [anchor(0), A(1), B(2)]
    return build_sentence(
        build_parse(
            ["###LEFT-WALL###", "a", "b"],
            relations=[("root", 0, 2), ("nsubj", 1, 2)],
            connectors={0: ("root+",), 1: ("nsubj+",), 2: ("root-", "nsubj-")},
        ),
        text="A B",
    )
