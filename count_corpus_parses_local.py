#!/usr/bin/env python3
from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional

import logging
import sys
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from count_corpus_parses.aggregators import AggregateReport, build_aggregators
from count_corpus_parses.config import aggregator_flags, load_config, log_level
from count_corpus_parses.counting import EntityCounter
from count_corpus_parses.entities import ENTITY_TYPES
from count_corpus_parses.io_utils import expand_globs, read_text_files, save_counts_csv, write_summary
from count_corpus_parses.monitor import RateMonitor
from count_corpus_parses.nlp_utils import DEFAULT_PROCESSORS, StanzaParserQueue, build_pipeline
from count_corpus_parses.pipeline import SentencePipeline
from count_corpus_parses.store import SqliteCounterStore
from count_corpus_parses.text_prep import text_blocks

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    script_dir = Path(__file__).resolve().parent
    config_path = Path(argv[0]) if argv else script_dir / "groups.config.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    cfg = load_config(config_path)
    logging.basicConfig(level=log_level(cfg), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    out_dir = Path(cfg.get("out_dir", "output"))
    out_dir.mkdir(parents=True, exist_ok=True)

    # parser settings
    language = cfg.get("language", "la")
    stanza_pkg = cfg.get("stanza_package", "perseus")
    cpu_only = bool(cfg.get("cpu_only", True))
    processors = cfg.get("processors", DEFAULT_PROCESSORS)

    nlp, package = build_pipeline(language=language, stanza_package=stanza_pkg, cpu_only=cpu_only, processors=processors)
    parser = StanzaParserQueue(nlp, use_lemma=bool(cfg.get("use_lemma", False)))

    group_reports: Dict[str, tuple] = {}

    with SqliteCounterStore(cfg["db_path"]) as store:
        counter = EntityCounter(store)
        monitor = RateMonitor(report_every=cfg.get("report_every", 100))
        pipeline = SentencePipeline(parser, counter, build_aggregators(aggregator_flags(cfg)), monitor)

        for gname, gdef in cfg["groups"].items():
            files = expand_globs(gdef["files"])
            if not files:
                print(f"[WARN] group '{gname}' matched no files; skipping")
                continue
            sentences, report = 0, AggregateReport()
            for path, raw in read_text_files(files):
                blocks = text_blocks(raw)
                print(f"[Processing] {gname}: {path.name} ({len(raw):,} chars / {len(blocks)} blocks)")
                for block in blocks:
                    result = pipeline.observe(block)
                    sentences += result.sentences
                    report += result.report
            group_reports[gname] = (sentences, report)

        if cfg.get("export", True):
            for kind in ENTITY_TYPES:
                save_counts_csv(out_dir / f"counts_{kind}.csv", kind, store.iter_counts(kind))

        lines = ["=== Summary ==="]
        for k in sorted(group_reports.keys()):
            sentences, report = group_reports[k]
            lines.append(f"{k}: sentences={sentences} counted={report.counted} skipped={report.skipped}")
        lines.append("")
        lines.append(f"parser: language={language} package={package}")
        lines.append(f"keys touched this run: {len(counter)} (store fetches={counter.fetches})")
        for kind in ENTITY_TYPES:
            lines.append(f"total {kind}: {store.total(kind)}")
        write_summary(out_dir / "summary.txt", lines)

    print("[Done] Saved to", out_dir)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
