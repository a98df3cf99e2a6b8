"""Core note, tag and folder dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Note:
    """A single note as supplied by the external store."""

    id: str
    title: str
    body: str = ""
    folder_id: str | None = None
    #: Tag IDs (names live in the corpus tag registry)
    tags: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "folder_id": self.folder_id,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    color: str = ""


@dataclass(frozen=True)
class Folder:
    id: str
    name: str
    parent_id: str | None = None
