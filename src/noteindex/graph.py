"""Link graph builder.

Produces a pure ``{nodes, edges}`` model for force-directed views: one node
per note and at most one undirected edge per pair of linked notes, however
many times and in whichever direction they reference each other.

Mutable layout state (positions, velocities, pins) lives in
:mod:`noteindex.layout`, never on these objects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from noteindex.note import Note
from noteindex.parser import parse_references
from noteindex.resolver import TitleLookup, build_title_lookup, resolve

if TYPE_CHECKING:
    import networkx as nx
    import polars as pl

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GraphNode:
    id: str
    title: str
    #: Distinct resolved outgoing links; used for node sizing only
    link_count: int = 0


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str

    @property
    def key(self) -> str:
        return edge_key(self.source, self.target)


def edge_key(a: str, b: str) -> str:
    """Canonical undirected key for the pair ``{a, b}``."""
    lo, hi = sorted((a, b))
    return f"{lo}\x00{hi}"


@dataclass
class Graph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def neighbors(self, note_id: str) -> set[str]:
        """IDs connected to *note_id* by an edge (the note itself excluded)."""
        result: set[str] = set()
        for edge in self.edges:
            if edge.source == note_id:
                result.add(edge.target)
            elif edge.target == note_id:
                result.add(edge.source)
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [{"id": n.id, "title": n.title, "link_count": n.link_count} for n in self.nodes],
            "edges": [{"source": e.source, "target": e.target} for e in self.edges],
        }

    def to_networkx(self) -> "nx.Graph":
        """Return an undirected :class:`networkx.Graph` with ``title`` / ``link_count`` attributes."""
        import networkx as nx

        G: nx.Graph = nx.Graph()
        for node in self.nodes:
            G.add_node(node.id, title=node.title, link_count=node.link_count)
        G.add_edges_from((e.source, e.target) for e in self.edges)
        return G

    def to_frames(self) -> tuple["pl.DataFrame", "pl.DataFrame"]:
        """Return ``(nodes_df, edges_df)`` Polars frames for chart layers."""
        import polars as pl

        nodes_df = pl.DataFrame(
            {
                "id": [n.id for n in self.nodes],
                "title": [n.title for n in self.nodes],
                "link_count": [n.link_count for n in self.nodes],
            },
            schema={"id": pl.Utf8, "title": pl.Utf8, "link_count": pl.Int64},
        )
        edges_df = pl.DataFrame(
            {
                "source": [e.source for e in self.edges],
                "target": [e.target for e in self.edges],
            },
            schema={"source": pl.Utf8, "target": pl.Utf8},
        )
        return nodes_df, edges_df


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_graph(notes: Iterable[Note], lookup: TitleLookup | None = None) -> Graph:
    """Build the link graph of *notes*.

    *lookup* may come from a larger corpus than *notes*; edges whose endpoint
    is not among *notes* are dropped rather than returned dangling.
    """
    notes = list(notes)
    if lookup is None:
        lookup = build_title_lookup(notes)

    graph = Graph()
    node_ids: set[str] = set()
    targets_by_note: dict[str, list[str]] = {}

    for note in notes:
        if note.id in node_ids:
            continue
        node_ids.add(note.id)
        targets: list[str] = []
        for ref in parse_references(note.body):
            target_id = resolve(ref, lookup).target_id
            if target_id is not None and target_id != note.id and target_id not in targets:
                targets.append(target_id)
        targets_by_note[note.id] = targets
        graph.nodes.append(GraphNode(note.id, note.title, len(targets)))

    seen: set[str] = set()
    dropped = 0
    for source, targets in targets_by_note.items():
        for target in targets:
            if target not in node_ids:
                dropped += 1
                continue
            key = edge_key(source, target)
            if key in seen:
                continue
            seen.add(key)
            graph.edges.append(GraphEdge(source, target))

    if dropped:
        logger.debug("Dropped %d graph edges with missing endpoints", dropped)
    return graph
