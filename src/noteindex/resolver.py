"""Map reference targets to note IDs.

A title lookup is any ``Mapping[str, str]`` from a normalised title to a note
ID; :func:`build_title_lookup` derives one from a note collection, but callers
may supply their own.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from noteindex.note import Note
from noteindex.parser import Reference, parse_references

TitleLookup = Mapping[str, str]


def normalise_title(title: str) -> str:
    """Key used for case-insensitive, exact title matching."""
    return title.strip().casefold()


def build_title_lookup(notes: Iterable[Note]) -> dict[str, str]:
    """Return ``{normalised title: note id}``; the first note wins on duplicates."""
    lookup: dict[str, str] = {}
    for note in notes:
        key = normalise_title(note.title)
        if key and key not in lookup:
            lookup[key] = note.id
    return lookup


def resolve(reference: Reference, lookup: TitleLookup) -> Reference:
    return reference.resolve_to(lookup.get(normalise_title(reference.target)))


def resolve_references(references: Iterable[Reference], lookup: TitleLookup) -> list[Reference]:
    return [resolve(ref, lookup) for ref in references]


def extract_references(text: str, lookup: TitleLookup) -> list[Reference]:
    """Parse *text* and resolve every reference against *lookup*."""
    return resolve_references(parse_references(text), lookup)


def suggest_titles(query: str, titles: Iterable[str], limit: int | None = None) -> list[str]:
    """Titles containing *query* (case-insensitive) for ``[[`` autocompletion.

    Titles starting with the query come first, then alphabetical order.
    """
    q = query.strip().casefold()
    matching = [t for t in titles if q in t.casefold()]
    matching.sort(key=lambda t: (not t.casefold().startswith(q), t.casefold()))
    return matching if limit is None else matching[:limit]
