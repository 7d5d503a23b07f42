from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Tuple
from dataclasses import astuple
import csv, glob, logging

from count_corpus_parses.entities import ENTITY_TYPES, entity_from_key

logger = logging.getLogger(__name__)

def expand_globs(patterns: List[str]) -> List[Path]:
    files = []
    for pat in patterns:
        files.extend(Path(p) for p in glob.glob(pat, recursive=True))
    return sorted({p.resolve() for p in files if p.is_file()})

def read_text_files(paths: List[Path]) -> List[Tuple[Path, str]]:
    out: List[Tuple[Path, str]] = []
    for p in paths:
        try:
            out.append((p, p.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"failed to read {p}: {e}")
    return out

def save_counts_csv(path: Path, kind: str, rows: Iterable[Tuple[tuple, int]]) -> int:
    """Write (key, count) rows of one entity kind; header is the entity fields + count."""
    fields = ENTITY_TYPES[kind].field_names()
    path.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow([*fields, "count"])
        for key, count in rows:
            w.writerow([*astuple(entity_from_key(key)), count])
            n += 1
    return n

def write_summary(path: Path, lines: list[str]):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines), encoding="utf-8")
