"""Backlink index: for every note, the notes that reference it.

Each occurrence of a resolved ``[[reference]]`` produces one :class:`Backlink`
with a context snippet, so a note mentioning its target three times shows up
three times.  Self-references are left out.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from noteindex.note import Note
from noteindex.parser import Reference, parse_references
from noteindex.resolver import TitleLookup, build_title_lookup, normalise_title, resolve

logger = logging.getLogger(__name__)

_SENTENCE_END_RE = re.compile(r"[.!?](?=\s)")
_WHITESPACE_RE = re.compile(r"\s+")
ELLIPSIS = "..."


@dataclass(frozen=True)
class Backlink:
    source_id: str
    target_id: str
    #: Text surrounding the marker, marker included
    context: str
    #: Offset of the marker in the source body
    offset: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "context": self.context,
            "offset": self.offset,
        }


# ---------------------------------------------------------------------------
# Context snippets
# ---------------------------------------------------------------------------


def extract_context(body: str, start: int, end: int, radius: int = 50) -> str:
    """Return the sentence around ``body[start:end]``, at most *radius* chars each side.

    The sentence is bounded by ``.``/``!``/``?`` followed by whitespace and never
    crosses a blank line.  When it is longer than the radius allows, the raw
    character window is used instead and the cut sides get an ellipsis.
    """
    para_start = body.rfind("\n\n", 0, start)
    para_start = 0 if para_start == -1 else para_start + 2
    para_end = body.find("\n\n", end)
    para_end = len(body) if para_end == -1 else para_end

    sent_start = para_start
    for m in _SENTENCE_END_RE.finditer(body, para_start, start):
        sent_start = m.end()
    m = _SENTENCE_END_RE.search(body, end, para_end)
    sent_end = m.end() if m else para_end

    lo = max(sent_start, start - radius)
    hi = min(sent_end, end + radius)
    context = _WHITESPACE_RE.sub(" ", body[lo:hi]).strip()
    if lo > sent_start:
        context = ELLIPSIS + context
    if hi < sent_end:
        context = context + ELLIPSIS
    return context


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class BacklinkIndex:
    """Inbound references per note ID, plus unresolved reference targets."""

    def __init__(self) -> None:
        self.backlinks: dict[str, list[Backlink]] = {}
        #: unresolved target text -> IDs of the notes mentioning it
        self.unresolved: dict[str, list[str]] = {}

    def get(self, note_id: str) -> list[Backlink]:
        """Backlinks to *note_id*; an empty list for unknown IDs."""
        return list(self.backlinks.get(note_id, []))

    def sources(self, note_id: str) -> list[str]:
        """Distinct IDs of the notes linking to *note_id*, in discovery order."""
        return list(dict.fromkeys(b.source_id for b in self.backlinks.get(note_id, [])))

    def count(self, note_id: str) -> int:
        return len(self.backlinks.get(note_id, []))

    def __contains__(self, note_id: object) -> bool:
        return note_id in self.backlinks


def build_backlink_index(
    notes: Iterable[Note],
    lookup: TitleLookup | None = None,
    *,
    context_radius: int = 50,
) -> BacklinkIndex:
    """Scan every note body and index its resolved references by target."""
    notes = list(notes)
    if lookup is None:
        lookup = build_title_lookup(notes)
    known = {n.id for n in notes}

    index = BacklinkIndex()
    index.backlinks = {n.id: [] for n in notes}
    unresolved_keys: dict[str, str] = {}

    for note in notes:
        for ref in parse_references(note.body):
            ref = resolve(ref, lookup)
            if ref.target_id is None or ref.target_id not in known:
                _add_unresolved(index, unresolved_keys, ref, note.id)
                continue
            if ref.target_id == note.id:
                continue
            index.backlinks[ref.target_id].append(
                Backlink(
                    source_id=note.id,
                    target_id=ref.target_id,
                    context=extract_context(note.body, ref.start, ref.end, context_radius),
                    offset=ref.start,
                )
            )

    logger.debug(
        "Built backlink index: %d notes, %d backlinks, %d unresolved targets",
        len(notes),
        sum(len(v) for v in index.backlinks.values()),
        len(index.unresolved),
    )
    return index


def _add_unresolved(index: BacklinkIndex, keys: dict[str, str], ref: Reference, source_id: str) -> None:
    # Spellings differing only in case share the first spelling seen
    key = keys.setdefault(normalise_title(ref.target), ref.target)
    sources = index.unresolved.setdefault(key, [])
    if source_id not in sources:
        sources.append(source_id)


def forward_links(note: Note, notes: Iterable[Note], lookup: TitleLookup | None = None) -> list[Note]:
    """Notes that *note* links to, de-duplicated, in reference order."""
    notes = list(notes)
    by_id = {n.id: n for n in notes}
    if lookup is None:
        lookup = build_title_lookup(notes)
    result: list[Note] = []
    seen: set[str] = set()
    for ref in parse_references(note.body):
        target_id = resolve(ref, lookup).target_id
        if target_id is None or target_id == note.id or target_id in seen or target_id not in by_id:
            continue
        seen.add(target_id)
        result.append(by_id[target_id])
    return result
