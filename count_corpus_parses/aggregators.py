"""
Per-statistic aggregators.

Each aggregator derives its entities from every parse of one sentence and
counts them through an EntityCounter. A malformed occurrence only skips the
unit it belongs to; StoreError is never caught here.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Dict, Iterable, List, Optional, Type

from count_corpus_parses.counting import EntityCounter
from count_corpus_parses.entities import (
    Derived,
    ParseMarker,
    SentenceMarker,
    derive_connector_sets,
    derive_pairs,
    derive_relations,
    derive_words,
)
from count_corpus_parses.parsed import Parse, ParsedSentence

logger = logging.getLogger(__name__)

_AGGREGATOR_REGISTRY: Dict[str, Type["Aggregator"]] = {}


def register_aggregator(cls: Type["Aggregator"]) -> Type["Aggregator"]:
    """Register an aggregator class; registration order is run order."""
    _AGGREGATOR_REGISTRY[cls.aggregator_id] = cls
    logger.debug(f"Registered aggregator: {cls.aggregator_id}")
    return cls


def get_aggregator_registry() -> Dict[str, Type["Aggregator"]]:
    return _AGGREGATOR_REGISTRY.copy()


@dataclass
class AggregateReport:
    counted: int = 0
    skipped: int = 0

    def __add__(self, other: "AggregateReport") -> "AggregateReport":
        return AggregateReport(self.counted + other.counted, self.skipped + other.skipped)


def apply_batch(batch: Iterable[Derived], counter: EntityCounter, label: str = "") -> AggregateReport:
    """Count every derived entity in order, recording the skipped units."""
    report = AggregateReport()
    for item in batch:
        if not item.ok:
            logger.debug(f"[{label}] skipped: {item.skipped}")
            report.skipped += 1
            continue
        for entity in item.entities:
            counter.count_one(entity)
            report.counted += 1
    return report


class Aggregator:
    aggregator_id: str = ""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def aggregate(self, sentence: ParsedSentence, counter: EntityCounter) -> AggregateReport:
        raise NotImplementedError


class _PerParseAggregator(Aggregator):
    derive: Callable[[Parse], List[Derived]]

    def aggregate(self, sentence: ParsedSentence, counter: EntityCounter) -> AggregateReport:
        report = AggregateReport()
        derive = type(self).derive
        for parse in sentence.parses:
            report += apply_batch(derive(parse), counter, self.aggregator_id)
        return report


@register_aggregator
class SentenceParseAggregator(Aggregator):
    aggregator_id = "sentence_parse"

    def aggregate(self, sentence: ParsedSentence, counter: EntityCounter) -> AggregateReport:
        counter.count_one(SentenceMarker())
        for _parse in sentence.parses:
            counter.count_one(ParseMarker())
        return AggregateReport(counted=1 + len(sentence.parses))


@register_aggregator
class WordAggregator(_PerParseAggregator):
    aggregator_id = "words"
    derive = staticmethod(derive_words)


@register_aggregator
class PairAggregator(_PerParseAggregator):
    aggregator_id = "pairs"
    derive = staticmethod(derive_pairs)


@register_aggregator
class RelationAggregator(_PerParseAggregator):
    aggregator_id = "relations"
    derive = staticmethod(derive_relations)


@register_aggregator
class DisjunctAggregator(_PerParseAggregator):
    aggregator_id = "disjuncts"
    derive = staticmethod(derive_connector_sets)


def build_aggregators(flags: Optional[Dict[str, bool]] = None) -> List[Aggregator]:
    """Instantiate every registered aggregator, applying enabled flags."""
    flags = flags or {}
    return [
        cls(enabled=flags.get(agg_id, True))
        for agg_id, cls in get_aggregator_registry().items()
    ]
