"""WikiLink reference, tag, and YAML-frontmatter parser.

None of these functions raise on malformed input: text that does not match a
pattern is simply not reported.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, replace
from typing import Any

import yaml

# [[Target]] or [[Target|Alias]]; ends at the first unescaped "]]" on the same line.
# A backslash escapes the next character; "\[[" does not open a marker.
_REFERENCE_RE = re.compile(r"(?<!\\)\[\[((?:\\.|(?!\]\])[^\n\\])+)\]\]")
# Target and alias split at the first unescaped "|"
_ALIAS_RE = re.compile(r"((?:\\.|[^\\|])*)\|(.*)")
_ESCAPE_RE = re.compile(r"\\(.)")
# Inline #tags (not inside code-spans or URLs)
_TAG_RE = re.compile(r"(?<![`\w/#])#([\w/-]+)")
# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*\n", re.DOTALL)


class ReferenceStatus(str, enum.Enum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Reference:
    """One ``[[...]]`` occurrence in a note body."""

    #: Verbatim marker content between the brackets
    text: str
    #: Text used for resolution (alias stripped, whitespace trimmed)
    target: str
    #: Character offsets of the whole marker, brackets included
    start: int
    end: int
    alias: str | None = None
    status: ReferenceStatus = ReferenceStatus.UNRESOLVED
    target_id: str | None = None

    @property
    def resolved(self) -> bool:
        return self.status is ReferenceStatus.RESOLVED

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end

    def resolve_to(self, note_id: str | None) -> "Reference":
        """Return a copy marked resolved to *note_id*, or unresolved for ``None``."""
        if note_id is None:
            return replace(self, status=ReferenceStatus.UNRESOLVED, target_id=None)
        return replace(self, status=ReferenceStatus.RESOLVED, target_id=note_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "target": self.target,
            "alias": self.alias,
            "start": self.start,
            "end": self.end,
            "status": self.status.value,
            "target_id": self.target_id,
        }


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block or it does not parse to a mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, content[match.end() :]


def _unescape(value: str) -> str:
    return _ESCAPE_RE.sub(r"\1", value)


def parse_references(text: str) -> list[Reference]:
    """Return every ``[[reference]]`` in *text*, in document order.

    Repeated markers are all reported; each carries its own offsets. All
    references come back unresolved; see :mod:`noteindex.resolver`.
    """
    if not text:
        return []
    result: list[Reference] = []
    for m in _REFERENCE_RE.finditer(text):
        raw = m.group(1)
        split = _ALIAS_RE.fullmatch(raw)
        target, alias = split.groups() if split else (raw, None)
        target = _unescape(target).strip()
        if not target:
            continue
        result.append(
            Reference(
                text=raw,
                target=target,
                start=m.start(),
                end=m.end(),
                alias=(_unescape(alias).strip() or None) if alias is not None else None,
            )
        )
    return result


def parse_wikilinks(text: str) -> list[str]:
    """Return all ``[[WikiLink]]`` targets found in *text* (de-duped, ordered)."""
    seen: set[str] = set()
    result: list[str] = []
    for ref in parse_references(text):
        if ref.target not in seen:
            seen.add(ref.target)
            result.append(ref.target)
    return result


def parse_tags(text: str) -> list[str]:
    """Return all ``#tag`` values found in *text* (de-duped, ordered)."""
    seen: set[str] = set()
    result: list[str] = []
    for m in _TAG_RE.finditer(text):
        tag = m.group(1)
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result
