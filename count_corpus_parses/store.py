"""
store.py

What this file does:
- Defines the counter store contract used by the counting layer:
  fetch(key) -> count or None (never counted), persist(key, count).
- Provides a SQLite-backed store (shared by every process of the pipeline)
  and an in-memory store for dry runs.

Notes:
- Keys are the tuples produced by CountedEntity.key(): the first element is
  the entity kind, the rest are serialized as a JSON list.
- persist() commits immediately. There is no caching here.
- Every sqlite3 error surfaces as StoreError.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from count_corpus_parses.errors import StoreError

SCHEMA_VERSION = 1

DDL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS meta (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS counts (
  kind TEXT NOT NULL,
  key_json TEXT NOT NULL,
  count INTEGER NOT NULL,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (kind, key_json)
);

CREATE INDEX IF NOT EXISTS idx_counts_kind ON counts(kind);
"""


class CounterStore(Protocol):
    def fetch(self, key: Tuple) -> Optional[int]:
        ...

    def persist(self, key: Tuple, count: int) -> None:
        ...


def _split_key(key: Tuple) -> Tuple[str, str]:
    if not key:
        raise ValueError("Entity key must not be empty.")
    return str(key[0]), json.dumps(list(key[1:]), ensure_ascii=False)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class SqliteCounterStore:
    def __init__(self, db_path: str | Path, timeout: float = 30.0) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(str(self.db_path), timeout=timeout)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(DDL)
            self.conn.execute(
                "INSERT OR REPLACE INTO meta(key, value) VALUES(?, ?)",
                ("schema_version", str(SCHEMA_VERSION)),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open counter store {self.db_path}: {e}") from e

    def fetch(self, key: Tuple) -> Optional[int]:
        kind, key_json = _split_key(key)
        try:
            row = self.conn.execute(
                "SELECT count FROM counts WHERE kind = ? AND key_json = ?",
                (kind, key_json),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"fetch failed for {key!r}: {e}") from e
        return None if row is None else int(row["count"])

    def persist(self, key: Tuple, count: int) -> None:
        kind, key_json = _split_key(key)
        try:
            self.conn.execute(
                """
                INSERT INTO counts(kind, key_json, count, updated_at) VALUES(?, ?, ?, ?)
                ON CONFLICT(kind, key_json) DO UPDATE SET
                  count = excluded.count,
                  updated_at = excluded.updated_at
                """,
                (kind, key_json, int(count), _now()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"persist failed for {key!r}: {e}") from e

    def iter_counts(self, kind: str) -> Iterator[Tuple[Tuple, int]]:
        """Yield (key, count) for one entity kind, highest count first."""
        try:
            rows = self.conn.execute(
                "SELECT key_json, count FROM counts WHERE kind = ? ORDER BY count DESC, key_json",
                (kind,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"reading {kind!r} counts failed: {e}") from e
        for row in rows:
            yield (kind, *json.loads(row["key_json"])), int(row["count"])

    def kinds(self) -> List[str]:
        try:
            rows = self.conn.execute("SELECT DISTINCT kind FROM counts ORDER BY kind").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"listing kinds failed: {e}") from e
        return [r["kind"] for r in rows]

    def total(self, kind: str) -> int:
        try:
            row = self.conn.execute(
                "SELECT COALESCE(SUM(count), 0) AS total FROM counts WHERE kind = ?",
                (kind,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"summing {kind!r} counts failed: {e}") from e
        return int(row["total"])

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "SqliteCounterStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class MemoryCounterStore:
    """Dict-backed store. Records every call so tests can inspect the traffic."""

    def __init__(self, initial: Optional[Dict[Tuple, int]] = None) -> None:
        self.counts: Dict[Tuple, int] = dict(initial or {})
        self.fetch_calls: List[Tuple] = []
        self.persist_calls: List[Tuple[Tuple, int]] = []

    def fetch(self, key: Tuple) -> Optional[int]:
        self.fetch_calls.append(key)
        return self.counts.get(key)

    def persist(self, key: Tuple, count: int) -> None:
        self.persist_calls.append((key, count))
        self.counts[key] = int(count)

    def iter_counts(self, kind: str) -> Iterator[Tuple[Tuple, int]]:
        items = [(k, c) for k, c in self.counts.items() if k[0] == kind]
        items.sort(key=lambda kc: (-kc[1], kc[0]))
        yield from items

    def kinds(self) -> List[str]:
        return sorted({k[0] for k in self.counts})

    def total(self, kind: str) -> int:
        return sum(c for k, c in self.counts.items() if k[0] == kind)
