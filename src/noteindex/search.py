"""Fuzzy full-text search over note titles, bodies and tag names.

Matching uses :func:`rapidfuzz.fuzz.partial_ratio_alignment`, which scores the
best-aligned window of each field against the query, so small typos still
match (``"titel"`` finds ``"Title Review"``).  Results are ranked in tiers:

1. exact title match (case-insensitive),
2. fuzzy title match,
3. body or tag match only,

and by score within a tier.  Every result carries highlighted title and body
snippets with match spans wrapped in ``<mark>`` tags (configurable).
"""

from __future__ import annotations

import enum
import html
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz

from noteindex.config import EngineConfig
from noteindex.note import Note, Tag

logger = logging.getLogger(__name__)

Span = tuple[int, int]  # [start, end) character offsets


class MatchTier(enum.IntEnum):
    EXACT_TITLE = 0
    TITLE = 1
    CONTENT = 2


@dataclass(frozen=True)
class SearchMatch:
    note: Note
    #: Relevance in (0, 1]; higher is better
    score: float
    tier: MatchTier
    highlighted_title: str
    highlighted_content: str
    matches: dict[str, list[Span]] = field(default_factory=dict)
    #: Tag names that matched the query
    matched_tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.note.id,
            "title": self.note.title,
            "score": self.score,
            "tier": self.tier.name.lower(),
            "highlighted_title": self.highlighted_title,
            "highlighted_content": self.highlighted_content,
            "matches": {k: [list(s) for s in v] for k, v in self.matches.items()},
            "matched_tags": list(self.matched_tags),
        }


# ---------------------------------------------------------------------------
# Highlighting helpers
# ---------------------------------------------------------------------------


def highlight_matches(text: str, spans: Iterable[Span], open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
    """Wrap each span of *text* in *open_tag* / *close_tag*.

    Text is HTML-escaped; overlapping spans are merged.
    """
    merged: list[list[int]] = []
    for start, end in sorted(spans):
        start, end = max(0, start), min(len(text), end)
        if start >= end:
            continue
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    parts: list[str] = []
    pos = 0
    for start, end in merged:
        parts.append(html.escape(text[pos:start]))
        parts.append(f"{open_tag}{html.escape(text[start:end])}{close_tag}")
        pos = end
    parts.append(html.escape(text[pos:]))
    return "".join(parts)


def extract_snippet(text: str, spans: list[Span], max_length: int = 150) -> tuple[str, list[Span]]:
    """Cut a window of *max_length* chars around the first span.

    Returns the snippet (with ``...`` where text was cut) and the spans
    shifted into snippet coordinates; spans outside the window are dropped
    and partially visible ones are clipped.
    """
    if len(text) <= max_length:
        return text, list(spans)

    first = spans[0][0] if spans else 0
    start = max(0, first - 30)
    end = min(len(text), start + max_length)
    if end - start < max_length:
        start = max(0, end - max_length)

    snippet = text[start:end]
    shift = 3 if start > 0 else 0
    adjusted: list[Span] = []
    for s, e in spans:
        if e <= start or s >= end:
            continue
        adjusted.append((max(s, start) - start + shift, min(e, end) - start + shift))

    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet, adjusted


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Document:
    note: Note
    title: str
    body: str
    tags: tuple[str, ...]


class SearchIndex:
    """In-memory fuzzy index; supports incremental add / update / remove."""

    def __init__(
        self,
        notes: Iterable[Note] = (),
        tags: Mapping[str, Tag] | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.tags: dict[str, Tag] = dict(tags or {})
        self._docs: dict[str, _Document] = {}
        for note in notes:
            self.add(note)

    def __len__(self) -> int:
        return len(self._docs)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._docs

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def add(self, note: Note) -> None:
        """Index *note*, replacing any previous version with the same ID."""
        tag_names = tuple(self.tags[t].name for t in note.tags if t in self.tags)
        self._docs[note.id] = _Document(note, _fold(note.title), _fold(note.body), tag_names)

    update = add

    def remove(self, note_id: str) -> None:
        self._docs.pop(note_id, None)

    def get(self, note_id: str) -> Note | None:
        doc = self._docs.get(note_id)
        return doc.note if doc is not None else None

    def note_ids(self) -> list[str]:
        return list(self._docs)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def search(self, query: str, limit: int | None = None) -> list[SearchMatch]:
        """Return matches for *query*, best first; ``[]`` for an empty query."""
        q = _fold(query.strip())
        if len(q) < self.config.min_match_length:
            return []

        results = [m for doc in self._docs.values() if (m := self._match(q, doc)) is not None]
        results.sort(key=lambda m: (m.tier, -m.score, m.note.title.casefold(), m.note.id))
        logger.debug("search %r: %d of %d notes matched", query, len(results), len(self._docs))
        return results if limit is None else results[:limit]

    def _match(self, q: str, doc: _Document) -> SearchMatch | None:
        cfg = self.config
        cutoff = cfg.search_threshold * 100
        matches: dict[str, list[Span]] = {}
        weighted = 0.0

        exact = doc.title.strip() == q
        if exact:
            title_score, title_span = 1.0, (0, len(doc.title))
        else:
            title_score, title_span = _align(q, doc.title, cutoff)
        if title_span is not None:
            matches["title"] = [title_span]
            weighted += cfg.title_weight * title_score

        body_score, body_span = _align(q, doc.body, cutoff)
        if body_span is not None:
            matches["content"] = [body_span]
            weighted += cfg.content_weight * body_score

        tag_score = 0.0
        matched_tags: list[str] = []
        for tag in doc.tags:
            score, span = _align(q, _fold(tag), cutoff)
            if span is not None:
                tag_score = max(tag_score, score)
                matched_tags.append(tag)
        weighted += cfg.tag_weight * tag_score

        if not matches and not matched_tags:
            return None

        if exact:
            tier = MatchTier.EXACT_TITLE
        elif "title" in matches:
            tier = MatchTier.TITLE
        else:
            tier = MatchTier.CONTENT

        total = cfg.title_weight + cfg.content_weight + cfg.tag_weight
        note = doc.note
        snippet, snippet_spans = extract_snippet(note.body, matches.get("content", []), cfg.snippet_length)
        return SearchMatch(
            note=note,
            score=round(weighted / total, 6),
            tier=tier,
            highlighted_title=highlight_matches(
                note.title, matches.get("title", []), cfg.highlight_open, cfg.highlight_close
            ),
            highlighted_content=highlight_matches(
                snippet, snippet_spans, cfg.highlight_open, cfg.highlight_close
            ),
            matches=matches,
            matched_tags=matched_tags,
        )


def _fold(text: str) -> str:
    """Lower-case *text* without changing its length, so match spans index the original."""
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    # "İ".lower() is two code points; such characters are kept as they are
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)


def _align(query: str, text: str, cutoff: float) -> tuple[float, Span | None]:
    """Best fuzzy alignment of *query* inside *text*: ``(score 0-1, span in text)``."""
    if not text:
        return 0.0, None
    if len(text) < len(query):
        # partial_ratio would align the shorter text inside the query instead
        score = fuzz.ratio(query, text, score_cutoff=cutoff)
        if not score:
            return 0.0, None
        return score / 100, (0, len(text))
    alignment = fuzz.partial_ratio_alignment(query, text, score_cutoff=cutoff)
    if alignment is None or alignment.score < cutoff or alignment.dest_end <= alignment.dest_start:
        return 0.0, None
    return alignment.score / 100, (alignment.dest_start, alignment.dest_end)
