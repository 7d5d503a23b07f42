"""
Sentence pipeline driver.

observe(text) submits the raw text to the parser once, then pulls parsed
sentences until the parser reports none left. Every pulled sentence runs
through the enabled aggregators and is discarded afterwards, whether the
aggregators finished or a StoreError escaped. Whole sentences are never
retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Protocol

from count_corpus_parses.aggregators import AggregateReport, Aggregator, build_aggregators
from count_corpus_parses.counting import EntityCounter
from count_corpus_parses.monitor import RateMonitor
from count_corpus_parses.parsed import ParsedSentence

logger = logging.getLogger(__name__)

IDLE = "idle"
PROCESSING = "processing"


class ParserQueue(Protocol):
    def submit(self, text: str) -> None:
        ...

    def next_parsed_sentence(self) -> Optional[ParsedSentence]:
        ...

    def discard(self, sentence: ParsedSentence) -> None:
        ...


@dataclass
class ObserveResult:
    sentences: int = 0
    report: AggregateReport = field(default_factory=AggregateReport)


class SentencePipeline:
    def __init__(
        self,
        parser: ParserQueue,
        counter: EntityCounter,
        aggregators: Optional[List[Aggregator]] = None,
        monitor: Optional[RateMonitor] = None,
    ) -> None:
        self.parser = parser
        self.counter = counter
        self.aggregators = aggregators if aggregators is not None else build_aggregators()
        self.monitor = monitor
        self.state = IDLE

    def process_sentence(self, sentence: ParsedSentence) -> AggregateReport:
        report = AggregateReport()
        for agg in self.aggregators:
            if not agg.enabled:
                continue
            report += agg.aggregate(sentence, self.counter)
        return report

    def observe(self, text: str) -> ObserveResult:
        """Submit one block of raw text and count every sentence parsed from it."""
        result = ObserveResult()
        self.parser.submit(text)
        while True:
            sentence = self.parser.next_parsed_sentence()
            if sentence is None:
                self.state = IDLE
                break
            self.state = PROCESSING
            try:
                result.report += self.process_sentence(sentence)
            finally:
                self.parser.discard(sentence)
                self.state = IDLE
            result.sentences += 1
            if self.monitor is not None:
                self.monitor.tick()
        logger.debug(
            f"observed {result.sentences} sentences: "
            f"counted={result.report.counted} skipped={result.report.skipped}"
        )
        return result


def observe_text(
    text: str,
    parser: ParserQueue,
    counter: EntityCounter,
    aggregators: Optional[List[Aggregator]] = None,
    monitor: Optional[RateMonitor] = None,
) -> ObserveResult:
    return SentencePipeline(parser, counter, aggregators, monitor).observe(text)
