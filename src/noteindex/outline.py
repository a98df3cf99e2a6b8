"""Heading outline parser.

Extracts ATX (``## Heading``) and setext (underlined) headings from a note
body and nests them into a tree for table-of-contents navigation.

Heading IDs combine the note ID, the heading's position in document order and
a slug of its text, e.g. ``"n42-h3-setup-guide"``.  Re-parsing unchanged text
therefore always yields the same IDs, and two headings with the same text
never collide.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

# "## Heading" with an optional closing run of "#"
_ATX_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_SETEXT_H1_RE = re.compile(r"^=+[ \t]*$")
_SETEXT_H2_RE = re.compile(r"^-+[ \t]*$")
# Lines that look like setext text but are list items or thematic breaks
_NOT_SETEXT_RE = re.compile(r"^(\s*[-*+]\s|[-*]{3,}|\d+\.\s)")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Heading:
    level: int  # 1-6
    text: str
    id: str
    line: int  # 0-based line number in the body


@dataclass
class HeadingNode:
    level: int
    text: str
    id: str
    line: int
    children: list["HeadingNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "text": self.text,
            "id": self.id,
            "line": self.line,
            "children": [c.to_dict() for c in self.children],
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def slugify(text: str) -> str:
    """URL-friendly form of *text*; ``"section"`` when nothing survives."""
    slug = _SLUG_STRIP_RE.sub("", text.lower().strip())
    slug = _SLUG_SPACE_RE.sub("-", slug)
    slug = _SLUG_DASH_RE.sub("-", slug).strip("-")
    return slug or "section"


def heading_id(position: int, text: str, note_id: str = "") -> str:
    prefix = f"{note_id}-" if note_id else ""
    return f"{prefix}h{position}-{slugify(text)}"


def parse_headings(text: str, note_id: str = "") -> list[Heading]:
    """Return every heading in *text* in document order.

    Lines inside fenced code blocks are skipped.
    """
    headings: list[Heading] = []
    lines = text.splitlines()
    in_fence = False
    i = 0
    while i < len(lines):
        line = lines[i]
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            i += 1
            continue
        if in_fence or not line.strip():
            i += 1
            continue

        m = _ATX_RE.match(line)
        if m:
            level, title = len(m.group(1)), m.group(2).strip()
            headings.append(Heading(level, title, heading_id(len(headings), title, note_id), i))
            i += 1
            continue

        if i + 1 < len(lines):
            underline = lines[i + 1]
            level = 0
            if _SETEXT_H1_RE.match(underline):
                level = 1
            elif _SETEXT_H2_RE.match(underline) and not _NOT_SETEXT_RE.match(line):
                level = 2
            if level:
                title = line.strip()
                headings.append(Heading(level, title, heading_id(len(headings), title, note_id), i))
                i += 2
                continue
        i += 1
    return headings


def build_heading_tree(headings: list[Heading]) -> list[HeadingNode]:
    """Nest a flat heading list by level.

    A heading becomes a child of the closest preceding heading with a lower
    level.  Skipped levels are not filled in: an h3 directly under an h1 is
    that h1's child.
    """
    roots: list[HeadingNode] = []
    stack: list[HeadingNode] = []
    for h in headings:
        node = HeadingNode(h.level, h.text, h.id, h.line)
        while stack and stack[-1].level >= node.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def parse_outline(text: str, note_id: str = "") -> list[HeadingNode]:
    """Parse *text* and return its heading tree."""
    return build_heading_tree(parse_headings(text, note_id))


def flatten_outline(nodes: list[HeadingNode]) -> Iterator[HeadingNode]:
    """Yield every node depth-first, in document order."""
    for node in nodes:
        yield node
        yield from flatten_outline(node.children)
