"""NoteIndex: memoized entry point over every derived view of a corpus."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

from noteindex.backlinks import Backlink, BacklinkIndex, build_backlink_index
from noteindex.config import EngineConfig
from noteindex.corpus import Corpus
from noteindex.graph import Graph, build_graph
from noteindex.loader import load_vault
from noteindex.note import Note
from noteindex.outline import HeadingNode, parse_outline
from noteindex.parser import Reference
from noteindex.resolver import build_title_lookup, extract_references
from noteindex.rules import SmartCollection, evaluate_collection
from noteindex.search import SearchIndex, SearchMatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoteIndex:
    """Backlink, graph, outline and search views over a :class:`Corpus`.

    The store hands over a fresh corpus with :meth:`update` whenever its notes
    change.  Each derived view is built on first read and cached under the
    corpus fingerprint, so an update with identical content costs nothing and
    a changed corpus is never served stale results.  Smart collections are
    evaluated on every call.
    """

    def __init__(self, corpus: Corpus | None = None, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._corpus = corpus if corpus is not None else Corpus()
        self._cache: dict[str, tuple[str, Any]] = {}
        self._search: SearchIndex | None = None
        self._search_fingerprint = ""

    @classmethod
    def from_vault(cls, vault_dir: Path | str, config: EngineConfig | None = None) -> "NoteIndex":
        return cls(load_vault(vault_dir), config)

    # ------------------------------------------------------------------
    # Corpus
    # ------------------------------------------------------------------

    @property
    def corpus(self) -> Corpus:
        return self._corpus

    @property
    def fingerprint(self) -> str:
        return self._corpus.fingerprint

    @property
    def notes(self) -> dict[str, Note]:
        return dict(self._corpus.by_id)

    def update(self, corpus: Corpus) -> None:
        """Replace the corpus; derived views rebuild lazily on next read."""
        self._corpus = corpus
        fp = corpus.fingerprint
        self._cache = {k: v for k, v in self._cache.items() if v[0] == fp}

    def _memo(self, name: str, build: Callable[[], T]) -> T:
        fp = self.fingerprint
        hit = self._cache.get(name)
        if hit is not None and hit[0] == fp:
            return hit[1]
        value = build()
        self._cache[name] = (fp, value)
        logger.debug("Rebuilt %s for corpus %s (%d notes)", name, fp[:12], len(self._corpus))
        return value

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def title_lookup(self) -> dict[str, str]:
        return self._memo("title_lookup", lambda: build_title_lookup(self._corpus.notes))

    @property
    def backlink_index(self) -> BacklinkIndex:
        return self._memo(
            "backlinks",
            lambda: build_backlink_index(
                self._corpus.notes, self.title_lookup, context_radius=self.config.context_radius
            ),
        )

    @property
    def graph(self) -> Graph:
        return self._memo("graph", lambda: build_graph(self._corpus.notes, self.title_lookup))

    @property
    def search_index(self) -> SearchIndex:
        fp = self.fingerprint
        if self._search is None or self._search.tags != self._corpus.tags:
            self._search = SearchIndex(self._corpus.notes, self._corpus.tags, self.config)
            logger.debug("Built search index for corpus %s", fp[:12])
        elif self._search_fingerprint != fp:
            self._merge_search(self._search)
        self._search_fingerprint = fp
        return self._search

    def _merge_search(self, index: SearchIndex) -> None:
        # Same result as a rebuild: drop vanished notes, re-index changed ones
        current = self._corpus.by_id
        stale = [note_id for note_id in index.note_ids() if note_id not in current]
        for note_id in stale:
            index.remove(note_id)
        changed = 0
        for note in self._corpus.notes:
            if index.get(note.id) != note:
                index.update(note)
                changed += 1
        logger.debug("Search index merged: %d removed, %d updated", len(stale), changed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def extract_references(self, body: str) -> list[Reference]:
        """All ``[[references]]`` in *body*, resolved against the current corpus."""
        return extract_references(body, self.title_lookup)

    def parse_outline(self, body: str, note_id: str = "") -> list[HeadingNode]:
        return parse_outline(body, note_id)

    def outline_for(self, note_id: str) -> list[HeadingNode]:
        note = self._corpus.get(note_id)
        return parse_outline(note.body, note.id) if note is not None else []

    def get_backlinks(self, note_id: str) -> list[Backlink]:
        return self.backlink_index.get(note_id)

    def unresolved_references(self) -> dict[str, list[str]]:
        """Unresolved target text -> IDs of the notes mentioning it."""
        return {k: list(v) for k, v in self.backlink_index.unresolved.items()}

    def build_graph(self, notes: Iterable[Note] | None = None) -> Graph:
        """Link graph of the whole corpus, or of *notes* resolved against it."""
        if notes is None:
            return self.graph
        return build_graph(notes, self.title_lookup)

    def search(self, query: str, limit: int | None = None) -> list[SearchMatch]:
        return self.search_index.search(query, limit)

    def evaluate_collection(self, collection: SmartCollection) -> list[Note]:
        return evaluate_collection(collection, self._corpus)
