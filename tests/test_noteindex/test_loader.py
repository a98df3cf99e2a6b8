"""Unit tests for noteindex.loader."""

import logging
import textwrap
from datetime import datetime
from pathlib import Path

import pytest

from noteindex.errors import LoaderError, NoteIndexError
from noteindex.loader import load_vault, note_id_for, parse_note


def _write_note(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    _write_note(tmp_path, "inbox", """\
        ---
        title: Inbox
        tags: [Work, todo]
        created: 2024-03-01
        ---
        Triage [[Roadmap]]. #urgent
    """)
    _write_note(tmp_path, "projects/roadmap", """\
        ---
        title: Roadmap
        tags: work
        ---
        # Roadmap
        Links to [[Inbox]].
    """)
    _write_note(tmp_path, "projects/archive/2023", """\
        No front-matter at all.
    """)
    return tmp_path


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestLoadVault:
    def test_all_notes_loaded(self, vault):
        corpus = load_vault(vault)
        assert {n.id for n in corpus.notes} == {"inbox", "projects/roadmap", "projects/archive/2023"}

    def test_corpus_order_is_sorted_by_path(self, vault):
        corpus = load_vault(vault)
        assert [n.id for n in corpus.notes] == ["inbox", "projects/archive/2023", "projects/roadmap"]

    def test_title_from_frontmatter_or_stem(self, vault):
        corpus = load_vault(vault)
        assert corpus.get("inbox").title == "Inbox"
        assert corpus.get("projects/archive/2023").title == "2023"

    def test_frontmatter_stripped_from_body(self, vault):
        corpus = load_vault(vault)
        assert corpus.get("projects/roadmap").body.startswith("# Roadmap")

    def test_tags_merged_with_inline(self, vault):
        corpus = load_vault(vault)
        note = corpus.get("inbox")
        assert note.tags == ("work", "todo", "urgent")
        assert corpus.tag_names(note) == ["Work", "todo", "urgent"]

    def test_comma_string_tags(self, vault):
        corpus = load_vault(vault)
        assert corpus.get("projects/roadmap").tags == ("work",)

    def test_tag_registry_keeps_first_spelling(self, vault):
        corpus = load_vault(vault)
        assert corpus.tags["work"].name == "Work"

    def test_created_from_frontmatter(self, vault):
        corpus = load_vault(vault)
        assert corpus.get("inbox").created_at == datetime(2024, 3, 1)

    def test_created_falls_back_to_mtime(self, vault):
        corpus = load_vault(vault)
        note = corpus.get("projects/roadmap")
        mtime = datetime.fromtimestamp((vault / "projects" / "roadmap.md").stat().st_mtime)
        assert note.created_at == mtime

    def test_empty_vault(self, tmp_path):
        corpus = load_vault(tmp_path)
        assert len(corpus) == 0


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


class TestLoadVaultFolders:
    def test_root_note_has_no_folder(self, vault):
        assert load_vault(vault).get("inbox").folder_id is None

    def test_folder_paths(self, vault):
        corpus = load_vault(vault)
        assert corpus.folder_path(corpus.get("projects/roadmap")) == "projects"
        assert corpus.folder_path(corpus.get("projects/archive/2023")) == "projects/archive"

    def test_ancestor_folders_registered(self, vault):
        corpus = load_vault(vault)
        assert set(corpus.folders.folders) == {"projects", "projects/archive"}
        assert corpus.folders.folders["projects/archive"].parent_id == "projects"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestLoadVaultErrors:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(LoaderError):
            load_vault(tmp_path / "nope")

    def test_loader_error_is_noteindex_error(self, tmp_path):
        with pytest.raises(NoteIndexError):
            load_vault(tmp_path / "nope")

    def test_undecodable_file_skipped(self, vault, caplog):
        (vault / "broken.md").write_bytes(b"\xff\xfe\x00bad")
        with caplog.at_level(logging.WARNING, logger="noteindex.loader"):
            corpus = load_vault(vault)
        assert "broken" not in corpus
        assert len(corpus) == 3
        assert "broken.md" in caplog.text

    def test_duplicate_frontmatter_id_skipped(self, tmp_path, caplog):
        _write_note(tmp_path, "one", "---\nid: same\ntitle: One\n---\nfirst\n")
        _write_note(tmp_path, "two", "---\nid: same\ntitle: Two\n---\nsecond\n")
        with caplog.at_level(logging.WARNING, logger="noteindex.loader"):
            corpus = load_vault(tmp_path)
        assert [n.title for n in corpus.notes] == ["One"]
        assert "duplicate" in caplog.text

    def test_malformed_frontmatter_degrades(self, tmp_path):
        _write_note(tmp_path, "odd", "---\n: [unclosed\n---\nBody text\n")
        corpus = load_vault(tmp_path)
        assert corpus.get("odd").title == "odd"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_note_id_for(self, tmp_path):
        assert note_id_for(tmp_path / "a" / "b.md", tmp_path) == "a/b"

    def test_parse_note_returns_tag_names(self, vault):
        note, tag_names = parse_note(vault / "inbox.md", vault)
        assert note.id == "inbox"
        assert tag_names == ["Work", "todo", "urgent"]
