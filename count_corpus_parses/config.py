from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, TypedDict

import yaml

from count_corpus_parses.aggregators import get_aggregator_registry


class GroupDef(TypedDict):
    files: list[str]


class Config(TypedDict, total=False):
    # One of these may be provided in YAML; internally we normalize to "groups".
    group: Dict[str, Any]
    groups: Dict[str, GroupDef]

    db_path: str
    out_dir: str
    export: bool

    aggregators: Dict[str, Any]
    report_every: int
    log_level: str

    language: str
    stanza_package: Optional[str]
    processors: str
    cpu_only: bool
    use_lemma: bool


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def normalize_groups(cfg: dict) -> dict:
    """
    Normalize single-group sugar 'group' into 'groups'.
    After normalization, cfg['groups'] must exist and be a mapping.
    """
    if "groups" in cfg and cfg["groups"] is not None:
        return cfg

    if "group" in cfg and cfg["group"]:
        g = cfg["group"]
        if not isinstance(g, dict):
            raise ValueError("'group' must be a mapping.")
        name = g.get("name", "text")
        files = g.get("files")

        if not files:
            raise ValueError("'group.files' is required.")
        if not isinstance(files, list) or not all(isinstance(x, str) for x in files):
            raise ValueError("'group.files' must be list[str].")

        cfg["groups"] = {name: {"files": files}}
        return cfg

    raise ValueError("Config must define 'groups' or 'group'.")


def _validate_groups(groups: Any) -> None:
    if not isinstance(groups, dict):
        raise ValueError("Config 'groups' must be a mapping.")
    for k, v in groups.items():
        if not isinstance(k, str) or not k:
            raise ValueError("Group name must be a non-empty string.")
        if not isinstance(v, dict) or "files" not in v:
            raise ValueError(f"Group '{k}' must have 'files' list.")
        files = v["files"]
        if not isinstance(files, list) or not all(isinstance(x, str) for x in files):
            raise ValueError(f"Group '{k}' must have 'files' as list[str].")


def aggregator_flags(cfg: dict) -> Dict[str, bool]:
    """Map aggregator id -> enabled. Entries may be a bool or {enabled: bool}."""
    flags: Dict[str, bool] = {}
    for agg_id, settings in (cfg.get("aggregators") or {}).items():
        if isinstance(settings, dict):
            flags[agg_id] = bool(settings.get("enabled", True))
        else:
            flags[agg_id] = bool(settings)
    return flags


def _validate_aggregators(aggs: Any) -> None:
    if aggs is None:
        return
    if not isinstance(aggs, dict):
        raise ValueError("'aggregators' must be a mapping.")
    known = get_aggregator_registry()
    for agg_id, settings in aggs.items():
        if agg_id not in known:
            raise ValueError(f"Unknown aggregator: {agg_id!r} (known: {', '.join(known)}).")
        if not isinstance(settings, (bool, dict)):
            raise ValueError(f"Aggregator '{agg_id}' must be a bool or a mapping.")


def load_config(path: Path) -> Config:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    if path.suffix.lower() not in {".yml", ".yaml"}:
        raise ValueError("Config file must be YAML (.yml / .yaml)")

    text = path.read_text(encoding="utf-8")
    config_data = yaml.safe_load(text) or {}
    if not isinstance(config_data, dict):
        raise ValueError("Top-level YAML must be a mapping.")

    # Normalize and validate groups/group
    config_data = normalize_groups(config_data)
    _validate_groups(config_data["groups"])

    db_path = config_data.get("db_path")
    if not isinstance(db_path, str) or not db_path.strip():
        raise ValueError("'db_path' must be a non-empty string path.")

    _validate_aggregators(config_data.get("aggregators"))

    report_every = config_data.get("report_every", 100)
    if isinstance(report_every, bool) or not isinstance(report_every, int) or report_every < 1:
        raise ValueError("'report_every' must be a positive integer.")

    level = str(config_data.get("log_level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unsupported log_level: {level!r}")
    config_data["log_level"] = level

    return config_data  # type: ignore[return-value]


def log_level(cfg: Config) -> int:
    return getattr(logging, cfg.get("log_level", "INFO"))
