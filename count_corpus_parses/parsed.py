"""
Parser output consumed by the counting pipeline.

A ParsedSentence carries one or more candidate parses. Each parse holds the
word occurrences (bound to raw sentence positions), the typed relation edges
between them and the connector set the parser attached to every occurrence.
Nothing here is mutated after the parser builds it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class WordOccurrence:
    instance: str
    position: int
    word: Optional[str] = None


@dataclass(frozen=True)
class RelationEdge:
    relation: str
    left: WordOccurrence
    right: WordOccurrence


@dataclass(frozen=True)
class ConnectorSet:
    occurrence: WordOccurrence
    connectors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Parse:
    parse_id: str
    words: Tuple[WordOccurrence, ...] = ()
    relations: Tuple[RelationEdge, ...] = ()
    connector_sets: Tuple[ConnectorSet, ...] = ()


@dataclass(frozen=True)
class ParsedSentence:
    sentence_id: str
    text: str = ""
    parses: Tuple[Parse, ...] = field(default_factory=tuple)
