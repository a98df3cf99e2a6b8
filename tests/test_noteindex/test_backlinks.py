"""Unit tests for noteindex.backlinks."""

import pytest

from noteindex.backlinks import build_backlink_index, extract_context, forward_links
from noteindex.note import Note


@pytest.fixture()
def notes() -> list[Note]:
    return [
        Note(id="alpha", title="Alpha", body="See [[Beta]] and [[Gamma]]. Also [[beta]] again."),
        Note(id="beta", title="Beta", body="Links back to [[Alpha]] and to [[Nowhere]]."),
        Note(id="gamma", title="Gamma", body="Talks about [[Gamma]] itself."),
        Note(id="delta", title="Delta", body="Mentions [[nowhere]] too."),
    ]


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class TestBacklinkIndex:
    def test_every_note_has_an_entry(self, notes):
        index = build_backlink_index(notes)
        assert all(n.id in index for n in notes)

    def test_backlink_sources(self, notes):
        index = build_backlink_index(notes)
        assert index.sources("beta") == ["alpha"]
        assert index.sources("alpha") == ["beta"]

    def test_all_occurrences_kept(self, notes):
        index = build_backlink_index(notes)
        links = index.get("beta")
        assert len(links) == 2
        assert all(b.source_id == "alpha" for b in links)
        assert links[0].offset < links[1].offset

    def test_self_reference_excluded(self, notes):
        index = build_backlink_index(notes)
        assert index.sources("gamma") == ["alpha"]

    def test_unknown_id_returns_empty(self, notes):
        index = build_backlink_index(notes)
        assert index.get("does-not-exist") == []
        assert index.count("does-not-exist") == 0

    def test_unresolved_targets_collected(self, notes):
        index = build_backlink_index(notes)
        assert index.unresolved == {"Nowhere": ["beta", "delta"]}

    def test_unresolved_never_in_backlinks(self, notes):
        index = build_backlink_index(notes)
        targets = {b.target_id for links in index.backlinks.values() for b in links}
        assert targets <= {n.id for n in notes}

    def test_get_returns_copy(self, notes):
        index = build_backlink_index(notes)
        index.get("beta").clear()
        assert index.count("beta") == 2

    def test_lookup_pointing_outside_corpus_is_unresolved(self):
        notes = [Note(id="a", title="A", body="[[Ghost]]")]
        index = build_backlink_index(notes, {"ghost": "removed-note"})
        assert index.backlinks == {"a": []}
        assert "Ghost" in index.unresolved

    def test_empty_corpus(self):
        index = build_backlink_index([])
        assert index.backlinks == {}
        assert index.unresolved == {}


# ---------------------------------------------------------------------------
# Context snippets
# ---------------------------------------------------------------------------


class TestExtractContext:
    def test_enclosing_sentence(self):
        body = "First sentence here. The [[Target]] is in this one. Last one."
        start = body.index("[[")
        context = extract_context(body, start, start + len("[[Target]]"))
        assert context == "The [[Target]] is in this one."

    def test_paragraph_boundary(self):
        body = "Other paragraph\n\nLine with [[T]]\n\nNext paragraph"
        start = body.index("[[")
        assert extract_context(body, start, start + 5) == "Line with [[T]]"

    def test_long_sentence_falls_back_to_window(self):
        body = "word " * 40 + "[[T]]" + " word" * 40
        start = body.index("[[")
        context = extract_context(body, start, start + 5, radius=10)
        assert context.startswith("...")
        assert context.endswith("...")
        assert "[[T]]" in context
        assert len(context) <= 10 + 5 + 10 + 6

    def test_whitespace_collapsed(self):
        body = "A line\nwith [[T]]\nwrapped."
        start = body.index("[[")
        assert extract_context(body, start, start + 5) == "A line with [[T]] wrapped."

    def test_context_stored_on_backlink(self, notes):
        index = build_backlink_index(notes)
        (link,) = index.get("alpha")
        assert link.context == "Links back to [[Alpha]] and to [[Nowhere]]."


# ---------------------------------------------------------------------------
# Forward links
# ---------------------------------------------------------------------------


class TestForwardLinks:
    def test_deduplicated_in_order(self, notes):
        linked = forward_links(notes[0], notes)
        assert [n.id for n in linked] == ["beta", "gamma"]

    def test_self_and_unresolved_skipped(self, notes):
        assert forward_links(notes[2], notes) == []
        assert [n.id for n in forward_links(notes[1], notes)] == ["alpha"]
