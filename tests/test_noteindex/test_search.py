"""Unit tests for noteindex.search."""

import pytest

from noteindex.config import EngineConfig
from noteindex.note import Note, Tag
from noteindex.search import MatchTier, SearchIndex, extract_snippet, highlight_matches

TAGS = {
    "t1": Tag(id="t1", name="Work"),
    "t2": Tag(id="t2", name="recipes"),
}


@pytest.fixture()
def notes() -> list[Note]:
    return [
        Note(id="exact", title="Title Review", body="Quarterly checklist."),
        Note(id="body", title="Meeting", body="We discussed the title review process today."),
        Note(id="fuzzy", title="Title Review Notes", body=""),
        Note(id="tagged", title="Pasta", body="Boil water.", tags=("t2",)),
        Note(id="other", title="Gardening", body="Tomatoes and basil."),
    ]


@pytest.fixture()
def index(notes) -> SearchIndex:
    return SearchIndex(notes, TAGS)


def _ids(results) -> list[str]:
    return [m.note.id for m in results]


# ---------------------------------------------------------------------------
# Matching and ranking
# ---------------------------------------------------------------------------


class TestSearch:
    def test_typo_tolerance(self, index):
        results = index.search("titel")
        match = next(m for m in results if m.note.id == "exact")
        assert match.score > 0

    def test_exact_title_ranks_first(self, index):
        results = index.search("Title Review")
        assert results[0].note.id == "exact"
        assert results[0].tier is MatchTier.EXACT_TITLE

    def test_exact_title_above_body_only(self, index):
        ids = _ids(index.search("title review"))
        assert ids.index("exact") < ids.index("body")

    def test_fuzzy_title_above_content(self, index):
        results = index.search("Title Review")
        tiers = {m.note.id: m.tier for m in results}
        assert tiers["fuzzy"] is MatchTier.TITLE
        assert tiers["body"] is MatchTier.CONTENT
        ids = _ids(results)
        assert ids.index("fuzzy") < ids.index("body")

    def test_short_title_inside_query_is_not_a_title_match(self):
        index = SearchIndex(
            [
                Note(id="go", title="Go", body="Language notes."),
                Note(id="diary", title="Diary", body="I said good morning to everyone."),
            ]
        )
        assert _ids(index.search("good morning")) == ["diary"]

    def test_title_shorter_than_query_scored_as_a_whole(self):
        index = SearchIndex([Note(id="r", title="Recipe", body="")])
        (match,) = index.search("recipes")
        assert match.tier is MatchTier.TITLE
        assert match.highlighted_title == "<mark>Recipe</mark>"

    def test_results_sorted_by_tier(self, index):
        tiers = [m.tier for m in index.search("title review")]
        assert tiers == sorted(tiers)

    def test_tag_names_are_searchable(self, index):
        results = index.search("recipes")
        (match,) = [m for m in results if m.note.id == "tagged"]
        assert match.matched_tags == ["recipes"]
        assert match.tier is MatchTier.CONTENT

    def test_empty_query_returns_nothing(self, index):
        assert index.search("") == []
        assert index.search("   ") == []

    def test_short_query_returns_nothing(self, index):
        assert index.search("a") == []

    def test_no_match(self, index):
        assert index.search("zzzzqqq") == []

    def test_limit(self, index):
        assert len(index.search("title review", limit=1)) == 1

    def test_scores_in_range(self, index):
        for m in index.search("title"):
            assert 0 < m.score <= 1


# ---------------------------------------------------------------------------
# Highlighting
# ---------------------------------------------------------------------------


class TestHighlighting:
    def test_exact_title_fully_marked(self, index):
        (first, *_) = index.search("Title Review")
        assert first.highlighted_title == "<mark>Title Review</mark>"

    def test_content_snippet_marked(self, index):
        match = next(m for m in index.search("title review") if m.note.id == "body")
        assert "<mark>" in match.highlighted_content
        assert "content" in match.matches

    def test_spans_index_original_text_with_non_ascii(self):
        body = "İİİİ " * 10 + "the needle is here."
        index = SearchIndex([Note(id="tr", title="Notlar", body=body)])
        (match,) = index.search("needle")
        ((start, end),) = match.matches["content"]
        assert body[start:end] == "needle"
        assert "<mark>needle</mark>" in match.highlighted_content

    def test_exact_title_with_non_ascii(self):
        index = SearchIndex([Note(id="ist", title="İstanbul trip", body="")])
        (match,) = index.search("İstanbul trip")
        assert match.tier is MatchTier.EXACT_TITLE
        assert match.highlighted_title == "<mark>İstanbul trip</mark>"

    def test_highlight_matches_merges_and_escapes(self):
        assert highlight_matches("a<b>c", [(0, 1), (1, 2)]) == "<mark>a&lt;</mark>b&gt;c"

    def test_highlight_custom_tags(self):
        assert highlight_matches("abc", [(1, 2)], "[", "]") == "a[b]c"

    def test_highlight_no_spans(self):
        assert highlight_matches("plain", []) == "plain"

    def test_snippet_short_text_untouched(self):
        assert extract_snippet("short", [(0, 5)], 150) == ("short", [(0, 5)])

    def test_snippet_centered_on_first_match(self):
        text = "x" * 200 + "needle" + "y" * 200
        snippet, spans = extract_snippet(text, [(200, 206)], 50)
        assert snippet.startswith("...") and snippet.endswith("...")
        (start, end) = spans[0]
        assert snippet[start:end] == "needle"

    def test_snippet_drops_spans_outside_window(self):
        text = "a" * 300
        _, spans = extract_snippet(text, [(0, 2), (290, 295)], 50)
        assert spans == [(0, 2)]


# ---------------------------------------------------------------------------
# Incremental maintenance
# ---------------------------------------------------------------------------


class TestIncremental:
    def test_add_update_remove_match_rebuild(self, notes):
        index = SearchIndex(notes[:2], TAGS)
        index.add(notes[2])
        index.add(notes[3])
        index.add(notes[4])
        index.update(Note(id="body", title="Meeting", body="Nothing relevant."))
        index.remove("other")

        expected_notes = [
            notes[0],
            Note(id="body", title="Meeting", body="Nothing relevant."),
            notes[2],
            notes[3],
        ]
        rebuilt = SearchIndex(expected_notes, TAGS)
        for query in ("title review", "titel", "pasta", "garden"):
            assert [m.to_dict() for m in index.search(query)] == [m.to_dict() for m in rebuilt.search(query)]

    def test_removed_note_not_returned(self, index):
        index.remove("exact")
        assert "exact" not in _ids(index.search("Title Review"))
        assert "exact" not in index

    def test_config_threshold(self, notes):
        strict = SearchIndex(notes, TAGS, EngineConfig(search_threshold=1.0))
        assert "exact" not in _ids(strict.search("titel"))
