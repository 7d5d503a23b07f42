from __future__ import annotations

import re
from typing import List


_RE_HYPHEN_NL = re.compile(r"(\w)-\n(\w)")

_RE_SINGLE_NL_IN_PARA = re.compile(r"(?<!\n)\n(?!\n)")

_RE_BLANK_LINES = re.compile(r"\n\s*\n")


def normalize_linebreaks_and_hyphens(raw: str) -> str:
    """
    Stable normalization before parsing:
      - normalize newlines
      - join hyphen+newline word breaks
      - fold single newlines within paragraphs into spaces (keep blank lines)
      - compress whitespace
    """
    s = raw.replace("\r\n", "\n").replace("\r", "\n")
    s = _RE_HYPHEN_NL.sub(r"\1\2", s)
    s = _RE_SINGLE_NL_IN_PARA.sub(" ", s)
    s = re.sub(r"[ \t]+", " ", s)
    return s.strip()


def text_blocks(raw: str) -> List[str]:
    """Normalize raw text and split it into paragraph blocks, one parser submission each."""
    normalized = normalize_linebreaks_and_hyphens(raw)
    return [b.strip() for b in _RE_BLANK_LINES.split(normalized) if b.strip()]
