from __future__ import annotations

import logging

import pytest

from count_corpus_parses.monitor import RateMonitor


def test_tick_counts_and_reports_every_n(caplog):
    mon = RateMonitor(label="sentences", report_every=2)
    with caplog.at_level(logging.INFO, logger="count_corpus_parses.monitor"):
        for _ in range(5):
            mon.tick()

    assert mon.count == 5
    reports = [r.getMessage() for r in caplog.records]
    assert len(reports) == 2
    assert reports[0].startswith("sentences: 2 processed")
    assert mon.rate() >= 0.0


def test_report_every_must_be_positive():
    with pytest.raises(ValueError):
        RateMonitor(report_every=0)
