"""Force-directed layout state, kept apart from the pure graph model.

A :class:`LayoutArena` owns one :class:`Particle` per graph node, keyed by
note ID.  Rebuilding the graph and calling :meth:`LayoutArena.sync` keeps
existing positions, seeds new nodes, and drops particles whose note is gone,
so the arena never refers to a node the current graph does not have.
Positions are computed with :func:`networkx.spring_layout`.
"""

from __future__ import annotations

from dataclasses import dataclass

import networkx as nx

from noteindex.graph import Graph


@dataclass
class Particle:
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    #: Pinned coordinates; ``None`` when free
    fx: float | None = None
    fy: float | None = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None and self.fy is not None


class LayoutArena:
    def __init__(self, *, seed: int = 42, k: float | None = None) -> None:
        self.seed = seed
        self.k = k
        self.particles: dict[str, Particle] = {}
        self._graph: nx.Graph = nx.Graph()

    @classmethod
    def from_graph(cls, graph: Graph, *, seed: int = 42, k: float | None = None) -> "LayoutArena":
        arena = cls(seed=seed, k=k)
        arena.sync(graph)
        return arena

    def __contains__(self, note_id: object) -> bool:
        return note_id in self.particles

    def __len__(self) -> int:
        return len(self.particles)

    # ------------------------------------------------------------------
    # Graph changes
    # ------------------------------------------------------------------

    def sync(self, graph: Graph) -> None:
        """Match the particle set to *graph*'s nodes, placing new nodes."""
        self._graph = graph.to_networkx()
        live = set(self._graph.nodes)
        for note_id in list(self.particles):
            if note_id not in live:
                del self.particles[note_id]

        new = [n for n in self._graph.nodes if n not in self.particles]
        if not new:
            return
        known = list(self.particles)
        pos = nx.spring_layout(
            self._graph,
            pos=self._positions_for_layout() if known else None,
            fixed=known or None,
            seed=self.seed,
            k=self.k,
        )
        for note_id in new:
            x, y = pos[note_id]
            self.particles[note_id] = Particle(float(x), float(y))

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def step(self, iterations: int = 50) -> None:
        """Relax free particles for *iterations* rounds; pinned ones stay put."""
        if not self.particles:
            return
        pinned = [i for i, p in self.particles.items() if p.pinned]
        pos = nx.spring_layout(
            self._graph,
            pos=self._positions_for_layout(),
            fixed=pinned or None,
            iterations=iterations,
            seed=self.seed,
            k=self.k,
        )
        for note_id, particle in self.particles.items():
            if particle.pinned:
                continue
            x, y = float(pos[note_id][0]), float(pos[note_id][1])
            particle.vx, particle.vy = x - particle.x, y - particle.y
            particle.x, particle.y = x, y

    def pin(self, note_id: str, x: float | None = None, y: float | None = None) -> None:
        """Fix *note_id* at ``(x, y)``, or at its current position."""
        particle = self.particles.get(note_id)
        if particle is None:
            return
        particle.fx = particle.x if x is None else x
        particle.fy = particle.y if y is None else y
        particle.x, particle.y = particle.fx, particle.fy
        particle.vx = particle.vy = 0.0

    def unpin(self, note_id: str) -> None:
        particle = self.particles.get(note_id)
        if particle is not None:
            particle.fx = particle.fy = None

    def positions(self) -> dict[str, tuple[float, float]]:
        return {i: (p.x, p.y) for i, p in self.particles.items()}

    def _positions_for_layout(self) -> dict[str, tuple[float, float]]:
        return {
            i: ((p.fx, p.fy) if p.pinned else (p.x, p.y))
            for i, p in self.particles.items()
        }
