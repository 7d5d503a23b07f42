from __future__ import annotations

import pytest

from count_corpus_parses.aggregators import (
    AggregateReport,
    DisjunctAggregator,
    PairAggregator,
    RelationAggregator,
    SentenceParseAggregator,
    WordAggregator,
    build_aggregators,
    get_aggregator_registry,
)
from count_corpus_parses.counting import EntityCounter
from count_corpus_parses.errors import StoreError
from count_corpus_parses.store import MemoryCounterStore

from conftest import FailingStore, build_parse, build_sentence


def _run_all(sentence, store):
    counter = EntityCounter(store)
    report = AggregateReport()
    for agg in build_aggregators():
        report += agg.aggregate(sentence, counter)
    return report


def test_registry_order():
    assert list(get_aggregator_registry()) == [
        "sentence_parse",
        "words",
        "pairs",
        "relations",
        "disjuncts",
    ]


def test_build_aggregators_applies_flags():
    aggs = {a.aggregator_id: a for a in build_aggregators({"pairs": False})}
    assert aggs["pairs"].enabled is False
    assert aggs["words"].enabled is True


def test_ab_scenario_counts(memory_store, ab_sentence):
    report = _run_all(ab_sentence, memory_store)
    c = memory_store.counts

    assert c[("sentence",)] == 1
    assert c[("parse",)] == 1
    assert c[("word", "###LEFT-WALL###")] == 1
    assert c[("word", "a")] == 1
    assert c[("word", "b")] == 1
    assert c[("pair_distance", "###LEFT-WALL###", "a", 1)] == 1
    assert c[("pair_distance", "###LEFT-WALL###", "b", 2)] == 1
    assert c[("pair_distance", "a", "b", 1)] == 1
    assert c[("pair", "a", "b")] == 1
    assert c[("relation", "nsubj", "a", "b")] == 1
    assert c[("disjunct", "b", "root- nsubj-")] == 1
    assert report.skipped == 0
    # 2 markers + 3 words + 6 pair records + 2 relations + 3 disjuncts
    assert report.counted == 16


def test_word_multiplicity(memory_store):
    sentence = build_sentence(build_parse(["###LEFT-WALL###", "rosa", "et", "rosa", "rosa"]))
    counter = EntityCounter(memory_store)
    WordAggregator().aggregate(sentence, counter)

    rosa_writes = [k for k, _ in memory_store.persist_calls if k == ("word", "rosa")]
    assert len(rosa_writes) == 3
    assert memory_store.counts[("word", "rosa")] == 3


def test_every_parse_is_counted(memory_store):
    sentence = build_sentence(
        build_parse(["###LEFT-WALL###", "a", "b"], relations=[("x", 1, 2)], parse_id="p0"),
        build_parse(["###LEFT-WALL###", "a", "b"], relations=[("y", 1, 2)], parse_id="p1"),
    )
    _run_all(sentence, memory_store)
    c = memory_store.counts

    assert c[("sentence",)] == 1
    assert c[("parse",)] == 2
    assert c[("word", "a")] == 2
    assert c[("pair", "a", "b")] == 2
    assert c[("relation", "x", "a", "b")] == 1
    assert c[("relation", "y", "a", "b")] == 1


def test_containment_keeps_other_entities_exact():
    words = ["###LEFT-WALL###", "a", "b", "c"]
    clean = build_sentence(build_parse(words, relations=[("r", 1, 2), ("s", 2, 3)]))
    broken_words = words[:2] + [None] + words[3:]
    broken = build_sentence(build_parse(broken_words, relations=[("r", 1, 2), ("s", 1, 3)]))

    s_clean, s_broken = MemoryCounterStore(), MemoryCounterStore()
    r_clean = RelationAggregator().aggregate(clean, EntityCounter(s_clean))
    r_broken = RelationAggregator().aggregate(broken, EntityCounter(s_broken))
    assert r_clean == AggregateReport(counted=2)
    assert r_broken == AggregateReport(counted=1, skipped=1)
    assert s_broken.counts == {("relation", "s", "a", "c"): 1}

    w = WordAggregator().aggregate(broken, EntityCounter(s_broken))
    assert w == AggregateReport(counted=3, skipped=1)
    assert ("word", "b") not in s_broken.counts
    assert s_broken.counts[("word", "c")] == 1


def test_disjunct_aggregator_counts_one_per_connector_set(memory_store, ab_sentence):
    report = DisjunctAggregator().aggregate(ab_sentence, EntityCounter(memory_store))
    assert report.counted == 3
    assert memory_store.counts[("disjunct", "###LEFT-WALL###", "root+")] == 1


def test_sentence_marker_counted_even_without_parses(memory_store):
    report = SentenceParseAggregator().aggregate(build_sentence(), EntityCounter(memory_store))
    assert report.counted == 1
    assert memory_store.counts == {("sentence",): 1}


def test_store_error_on_third_pair_write_stops_the_aggregator():
    store = FailingStore(fail_on=3)
    sentence = build_sentence(build_parse(["a", "b", "c"]))

    with pytest.raises(StoreError):
        PairAggregator().aggregate(sentence, EntityCounter(store))

    # pair(a,b) and its distance were written; nothing after the failure was tried
    assert store.counts == {("pair", "a", "b"): 1, ("pair_distance", "a", "b", 1): 1}
    assert store.attempts == 3
