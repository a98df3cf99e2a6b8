"""Read a directory of Markdown notes into a :class:`~noteindex.corpus.Corpus`.

Layout conventions:

- every ``**/*.md`` file is a note; its ID is the path relative to the vault
  root without the suffix (``projects/roadmap``) unless front-matter sets ``id``;
- the title is front-matter ``title`` or the file stem;
- tags are front-matter ``tags`` (list or comma-separated string) merged with
  inline ``#tags``; a tag's ID is its lower-cased name;
- sub-directories become folders;
- ``created`` / ``updated`` front-matter values win over the file mtime.

The loader is read-only.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

from noteindex.corpus import Corpus
from noteindex.errors import LoaderError
from noteindex.note import Folder, Note, Tag
from noteindex.parser import parse_frontmatter, parse_tags

logger = logging.getLogger(__name__)


def _as_datetime(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            logger.warning("Ignoring unparseable date %r", value)
    return fallback


def _frontmatter_tags(meta: dict[str, Any]) -> list[str]:
    fm_tags = meta.get("tags") or []
    if isinstance(fm_tags, str):
        fm_tags = [t.strip() for t in fm_tags.split(",") if t.strip()]
    return [str(t) for t in fm_tags]


def note_id_for(path: Path, vault_dir: Path) -> str:
    return path.relative_to(vault_dir).with_suffix("").as_posix()


def folder_id_for(path: Path, vault_dir: Path) -> str | None:
    parent = path.parent.relative_to(vault_dir).as_posix()
    return None if parent == "." else parent


def parse_note(path: Path, vault_dir: Path) -> tuple[Note, list[str]]:
    """Read one ``.md`` file; returns the note and its tag names."""
    content = path.read_text(encoding="utf-8")
    meta, body = parse_frontmatter(content)
    tag_names = list(dict.fromkeys(_frontmatter_tags(meta) + parse_tags(body)))
    mtime = datetime.fromtimestamp(path.stat().st_mtime)

    note = Note(
        id=str(meta.get("id") or note_id_for(path, vault_dir)),
        title=str(meta.get("title") or path.stem),
        body=body,
        folder_id=folder_id_for(path, vault_dir),
        tags=tuple(dict.fromkeys(t.lower() for t in tag_names)),
        created_at=_as_datetime(meta.get("created") or meta.get("created_at"), mtime),
        updated_at=_as_datetime(meta.get("updated") or meta.get("updated_at"), mtime),
    )
    return note, tag_names


def _folders_for(folder_ids: set[str]) -> list[Folder]:
    # Include every ancestor so paths resolve all the way to the root
    all_ids: set[str] = set()
    for folder_id in folder_ids:
        parts = folder_id.split("/")
        for i in range(1, len(parts) + 1):
            all_ids.add("/".join(parts[:i]))
    folders = []
    for folder_id in sorted(all_ids):
        parent, _, name = folder_id.rpartition("/")
        folders.append(Folder(id=folder_id, name=name, parent_id=parent or None))
    return folders


def load_vault(vault_dir: Path | str) -> Corpus:
    """Scan *vault_dir* and return its notes, tags and folders."""
    vault_dir = Path(vault_dir)
    if not vault_dir.is_dir():
        raise LoaderError(f"Vault directory not found: {vault_dir}")

    notes: list[Note] = []
    tags: dict[str, Tag] = {}
    seen_ids: set[str] = set()
    for path in sorted(vault_dir.glob("**/*.md")):
        try:
            note, tag_names = parse_note(path, vault_dir)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable note %s: %s", path, exc)
            continue
        if note.id in seen_ids:
            logger.warning("Skipping %s: duplicate note id %r", path, note.id)
            continue
        seen_ids.add(note.id)
        notes.append(note)
        for name in tag_names:
            tags.setdefault(name.lower(), Tag(id=name.lower(), name=name))

    folder_ids = {n.folder_id for n in notes if n.folder_id}
    corpus = Corpus(notes, tags.values(), _folders_for(folder_ids))
    logger.debug("Loaded %d notes, %d tags from %s", len(notes), len(tags), vault_dir)
    return corpus
