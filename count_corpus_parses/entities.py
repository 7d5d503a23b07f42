"""
Counted entities and their derivation from one parse.

Every entity is a frozen dataclass keyed by value: ``key()`` returns the
canonical tuple ``(kind, *fields)`` used by the counter store, so two
occurrences that reduce to the same fields land on the same counter.

Derivation never raises for a malformed occurrence. Each logical unit (one
word, one pair, one relation edge, one connector set) yields a ``Derived``
result which either carries the entities to count or the reason it was
skipped.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import ClassVar, Dict, List, Optional, Tuple, Type

from count_corpus_parses.errors import MalformedOccurrence
from count_corpus_parses.parsed import Parse, WordOccurrence

EntityKey = Tuple


@dataclass(frozen=True)
class CountedEntity:
    kind: ClassVar[str] = ""

    def key(self) -> EntityKey:
        return (self.kind, *astuple(self))

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass(frozen=True)
class SentenceMarker(CountedEntity):
    kind: ClassVar[str] = "sentence"


@dataclass(frozen=True)
class ParseMarker(CountedEntity):
    kind: ClassVar[str] = "parse"


@dataclass(frozen=True)
class WordEntity(CountedEntity):
    kind: ClassVar[str] = "word"
    word: str


@dataclass(frozen=True)
class SentencePair(CountedEntity):
    kind: ClassVar[str] = "pair"
    left: str
    right: str


@dataclass(frozen=True)
class PairDistance(CountedEntity):
    kind: ClassVar[str] = "pair_distance"
    left: str
    right: str
    distance: int


@dataclass(frozen=True)
class RelationTriple(CountedEntity):
    kind: ClassVar[str] = "relation"
    relation: str
    left: str
    right: str


@dataclass(frozen=True)
class WordConnectorSet(CountedEntity):
    kind: ClassVar[str] = "disjunct"
    word: str
    pattern: str


ENTITY_TYPES: Dict[str, Type[CountedEntity]] = {
    cls.kind: cls
    for cls in (
        SentenceMarker,
        ParseMarker,
        WordEntity,
        SentencePair,
        PairDistance,
        RelationTriple,
        WordConnectorSet,
    )
}


def entity_from_key(key: EntityKey) -> CountedEntity:
    """Rebuild an entity from the tuple produced by ``CountedEntity.key()``."""
    if not key or key[0] not in ENTITY_TYPES:
        raise ValueError(f"Unknown entity key: {key!r}")
    return ENTITY_TYPES[key[0]](*key[1:])


@dataclass(frozen=True)
class Derived:
    entities: Tuple[CountedEntity, ...] = ()
    skipped: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skipped is None


def _skip(err: MalformedOccurrence) -> Derived:
    return Derived(skipped=str(err))


def word_of(occ: WordOccurrence) -> str:
    """Strip the instance identity from an occurrence and return its word."""
    word = occ.word.strip() if isinstance(occ.word, str) else ""
    if not word:
        raise MalformedOccurrence(occ.instance)
    return word


def renumber(parse: Parse) -> List[Tuple[WordOccurrence, int]]:
    """
    Order the parse's occurrences by position, relative to the anchor.

    The anchor is the occurrence with the minimum raw position; it gets
    position 0 and every other occurrence its offset from it.
    """
    if not parse.words:
        return []
    ordered = sorted(parse.words, key=lambda w: w.position)
    anchor = ordered[0].position
    return [(occ, occ.position - anchor) for occ in ordered]


def derive_words(parse: Parse) -> List[Derived]:
    out: List[Derived] = []
    for occ, _pos in renumber(parse):
        try:
            out.append(Derived((WordEntity(word_of(occ)),)))
        except MalformedOccurrence as e:
            out.append(_skip(e))
    return out


def derive_pairs(parse: Parse) -> List[Derived]:
    """All left x later-word pairs of the ordered sequence, with distances."""
    ordered = renumber(parse)
    out: List[Derived] = []
    for i, (left_occ, left_pos) in enumerate(ordered):
        for right_occ, right_pos in ordered[i + 1:]:
            try:
                left, right = word_of(left_occ), word_of(right_occ)
            except MalformedOccurrence as e:
                out.append(_skip(e))
                continue
            out.append(
                Derived(
                    (
                        SentencePair(left, right),
                        PairDistance(left, right, right_pos - left_pos),
                    )
                )
            )
    return out


def derive_relations(parse: Parse) -> List[Derived]:
    out: List[Derived] = []
    for edge in parse.relations:
        try:
            triple = RelationTriple(edge.relation, word_of(edge.left), word_of(edge.right))
        except MalformedOccurrence as e:
            out.append(_skip(e))
            continue
        out.append(Derived((triple,)))
    return out


def connector_pattern(connectors: Tuple[str, ...]) -> str:
    return " ".join(connectors)


def derive_connector_sets(parse: Parse) -> List[Derived]:
    out: List[Derived] = []
    for cset in parse.connector_sets:
        try:
            word = word_of(cset.occurrence)
        except MalformedOccurrence as e:
            out.append(_skip(e))
            continue
        out.append(Derived((WordConnectorSet(word, connector_pattern(cset.connectors)),)))
    return out
