from __future__ import annotations

from collections import deque
import itertools
import logging
from typing import Deque, Dict, List, Optional, Tuple

from count_corpus_parses.parsed import (
    ConnectorSet,
    Parse,
    ParsedSentence,
    RelationEdge,
    WordOccurrence,
)

logger = logging.getLogger(__name__)

ANCHOR_WORD = "###LEFT-WALL###"
DEFAULT_PROCESSORS = "tokenize,mwt,pos,lemma,depparse"


def make_package(stanza_package: Optional[str]) -> Optional[Dict[str, str]]:
    if stanza_package is None:
        return None
    sp = stanza_package.lower()
    if sp == "perseus":
        return {
            "tokenize": "perseus",
            "mwt": "perseus",
            "pos": "perseus",
            "lemma": "perseus",
            "depparse": "perseus",
        }
    return None


def build_pipeline(
    language: str = "la",
    stanza_package: Optional[str] = "perseus",
    cpu_only: bool = True,
    processors: str = DEFAULT_PROCESSORS,
):
    import stanza

    per_processor = make_package(stanza_package)
    if per_processor is not None:
        wanted = {p.strip() for p in processors.split(",")}
        nlp = stanza.Pipeline(
            lang=language,
            processors={k: v for k, v in per_processor.items() if k in wanted},
            use_gpu=not cpu_only,
            verbose=False,
        )
    else:
        nlp = stanza.Pipeline(
            lang=language,
            processors=processors,
            package=stanza_package or "default",
            use_gpu=not cpu_only,
            verbose=False,
        )
    return nlp, stanza_package


def _surface(word, use_lemma: bool) -> Optional[str]:
    s = getattr(word, "lemma", None) if use_lemma else None
    s = s or getattr(word, "text", None)
    if not s:
        return None
    return s.strip().lower() or None


def sentence_to_parsed(sent, sentence_id: str, use_lemma: bool = False) -> ParsedSentence:
    """
    Convert one stanza Sentence (with depparse) into a single-parse ParsedSentence.

    Position 0 holds the left-wall anchor, stanza word ids follow from 1.
    Root edges attach to the anchor. Every edge is stored left-to-right; the
    word on its left side gets "<deprel>+" in its connector set and the word on
    its right side "<deprel>-".
    """
    anchor = WordOccurrence(f"{ANCHOR_WORD}@{sentence_id}", 0, ANCHOR_WORD)
    occurrences: Dict[int, WordOccurrence] = {0: anchor}
    words = list(getattr(sent, "words", None) or [])
    for w in words:
        pos = int(w.id)
        word = _surface(w, use_lemma)
        occurrences[pos] = WordOccurrence(f"{word or '?'}@{sentence_id}.{pos}", pos, word)

    relations: List[RelationEdge] = []
    links: Dict[int, List[Tuple[int, str]]] = {p: [] for p in occurrences}
    for w in words:
        head = getattr(w, "head", None)
        if head is None or int(head) not in occurrences:
            continue
        dep, head = int(w.id), int(head)
        rel = getattr(w, "deprel", None) or "dep"
        left, right = min(dep, head), max(dep, head)
        relations.append(RelationEdge(rel, occurrences[left], occurrences[right]))
        links[left].append((right, f"{rel}+"))
        links[right].append((left, f"{rel}-"))

    connector_sets = tuple(
        ConnectorSet(occurrences[p], tuple(c for _, c in sorted(links[p])))
        for p in sorted(occurrences)
    )
    parse = Parse(
        parse_id=f"{sentence_id}.p0",
        words=tuple(occurrences[p] for p in sorted(occurrences)),
        relations=tuple(sorted(relations, key=lambda e: (e.left.position, e.right.position))),
        connector_sets=connector_sets,
    )
    text = getattr(sent, "text", None) or " ".join(o.word or "" for o in parse.words[1:])
    return ParsedSentence(sentence_id=sentence_id, text=text, parses=(parse,))


class StanzaParserQueue:
    """
    Parser queue over a stanza pipeline.

    submit() parses the text and enqueues one ParsedSentence per stanza
    sentence. next_parsed_sentence() returns the head of the queue (None when
    empty); it stays queued until discard() is called for it.
    """

    def __init__(self, nlp, use_lemma: bool = False) -> None:
        self.nlp = nlp
        self.use_lemma = use_lemma
        self._queue: Deque[ParsedSentence] = deque()
        self._ids = itertools.count(1)

    def submit(self, text: str) -> None:
        doc = self.nlp(text)
        n = 0
        for sent in getattr(doc, "sentences", []):
            self._queue.append(sentence_to_parsed(sent, f"s{next(self._ids)}", self.use_lemma))
            n += 1
        logger.debug(f"parser queued {n} sentences")

    def next_parsed_sentence(self) -> Optional[ParsedSentence]:
        return self._queue[0] if self._queue else None

    def discard(self, sentence: ParsedSentence) -> None:
        try:
            self._queue.remove(sentence)
        except ValueError:
            logger.warning(f"discard of unknown sentence {sentence.sentence_id}")

    def __len__(self) -> int:
        return len(self._queue)
