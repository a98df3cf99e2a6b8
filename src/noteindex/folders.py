"""Folder tree: resolves a folder ID to its full path from the root."""

from __future__ import annotations

from collections.abc import Iterable

from noteindex.note import Folder

SEPARATOR = "/"


class FolderTree:
    """Read-only view over the external folder hierarchy."""

    def __init__(self, folders: Iterable[Folder] = ()) -> None:
        self.folders: dict[str, Folder] = {f.id: f for f in folders}

    def __contains__(self, folder_id: object) -> bool:
        return folder_id in self.folders

    def __len__(self) -> int:
        return len(self.folders)

    def chain(self, folder_id: str | None) -> list[Folder]:
        """Return the folders from the root down to *folder_id*.

        Unknown IDs yield an empty chain; a parent cycle stops at the first
        repeated folder.
        """
        result: list[Folder] = []
        seen: set[str] = set()
        current = folder_id
        while current is not None and current in self.folders and current not in seen:
            seen.add(current)
            folder = self.folders[current]
            result.append(folder)
            current = folder.parent_id
        result.reverse()
        return result

    def path(self, folder_id: str | None) -> str:
        """``"Work/Projects"`` style path, or ``""`` for root / unknown IDs."""
        return SEPARATOR.join(f.name for f in self.chain(folder_id))

    def children(self, folder_id: str | None) -> list[Folder]:
        return [f for f in self.folders.values() if f.parent_id == folder_id]
