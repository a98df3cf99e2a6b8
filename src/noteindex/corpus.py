"""Corpus: an immutable snapshot of the notes, tags and folders to index."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from functools import cached_property

from noteindex.folders import FolderTree
from noteindex.note import Folder, Note, Tag


class Corpus:
    """Snapshot of the external store used as the single input of every index.

    The corpus never changes after construction; callers build a new one each
    time their note list changes and hand it to :class:`~noteindex.index.NoteIndex`.
    """

    def __init__(
        self,
        notes: Iterable[Note] = (),
        tags: Iterable[Tag] = (),
        folders: Iterable[Folder] | FolderTree = (),
    ) -> None:
        self.notes: tuple[Note, ...] = tuple(notes)
        self.tags: dict[str, Tag] = {t.id: t for t in tags}
        self.folders = folders if isinstance(folders, FolderTree) else FolderTree(folders)
        self.by_id: dict[str, Note] = {n.id: n for n in self.notes}

    def __len__(self) -> int:
        return len(self.notes)

    def __iter__(self):
        return iter(self.notes)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self.by_id

    def get(self, note_id: str) -> Note | None:
        return self.by_id.get(note_id)

    def tag_names(self, note: Note) -> list[str]:
        """Names of *note*'s tags; IDs missing from the registry are skipped."""
        return [self.tags[t].name for t in note.tags if t in self.tags]

    def folder_path(self, note: Note) -> str:
        return self.folders.path(note.folder_id)

    @cached_property
    def fingerprint(self) -> str:
        """SHA-256 over every field a derived index depends on."""
        h = hashlib.sha256()
        for note in self.notes:
            for part in (
                note.id,
                note.title,
                note.body,
                note.folder_id or "",
                "\x1f".join(note.tags),
                note.created_at.isoformat(),
                note.updated_at.isoformat(),
            ):
                h.update(part.encode("utf-8"))
                h.update(b"\x1e")
            h.update(b"\x1d")
        for tag_id in sorted(self.tags):
            h.update(f"tag\x1e{tag_id}\x1e{self.tags[tag_id].name}\x1d".encode("utf-8"))
        for folder_id in sorted(self.folders.folders):
            folder = self.folders.folders[folder_id]
            h.update(f"dir\x1e{folder_id}\x1e{folder.name}\x1e{folder.parent_id or ''}\x1d".encode("utf-8"))
        return h.hexdigest()

