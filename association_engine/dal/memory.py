"""
In-memory Data Access Layer

Storage collaborators backed by plain dicts. Used by the test-suite and
for local runs without a graph database.
"""

import asyncio
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from association_engine.domain.models import EntityKind, EvidenceRow


class InMemoryEvidenceStore:
    """
    Evidence rows indexed by datasource.

    Usage:
        store = InMemoryEvidenceStore([
            EvidenceRow(source_id="ENSG1", destination_id="EFO1", datasource_id="ds1", score=0.8),
        ])
    """

    def __init__(
        self,
        rows: Iterable[EvidenceRow] = (),
        delays: Optional[Mapping[str, float]] = None,
        orientation: Tuple[EntityKind, EntityKind] = (EntityKind.TARGET, EntityKind.DISEASE),
    ):
        """
        Args:
            rows: Initial evidence
            delays: Artificial latency per datasource, in seconds
            orientation: (source kind, destination kind) the rows are stored as
        """
        self._rows: Dict[str, List[EvidenceRow]] = {}
        self._delays = dict(delays or {})
        self._orientation = (EntityKind(orientation[0]), EntityKind(orientation[1]))
        self.calls: List[str] = []
        for row in rows:
            self.add(row)

    def add(self, row: EvidenceRow) -> None:
        self._rows.setdefault(row.datasource_id, []).append(row)

    async def fetch_evidence(
        self,
        datasource_id: str,
        source_ids: Sequence[str],
        destination_ids: Optional[Sequence[str]],
        source_kind: EntityKind = EntityKind.TARGET,
        destination_kind: EntityKind = EntityKind.DISEASE,
    ) -> List[EvidenceRow]:
        """
        Rows of one datasource between the given kinds.

        Rows stored target -> disease are served disease -> target with
        source and destination swapped; any other kind pair has no evidence.
        """
        self.calls.append(datasource_id)
        delay = self._delays.get(datasource_id)
        if delay:
            await asyncio.sleep(delay)

        kinds = (EntityKind(source_kind), EntityKind(destination_kind))
        if kinds == self._orientation:
            oriented = self._rows.get(datasource_id, [])
        elif kinds == self._orientation[::-1]:
            oriented = [
                row.model_copy(update={"source_id": row.destination_id, "destination_id": row.source_id})
                for row in self._rows.get(datasource_id, [])
            ]
        else:
            return []

        sources = set(source_ids)
        destinations = set(destination_ids) if destination_ids is not None else None
        return [
            row for row in oriented
            if row.source_id in sources and (destinations is None or row.destination_id in destinations)
        ]


class InMemoryClosureProvider:
    """
    Closures computed from parent edges (diseases) and interaction pairs (targets).

    Disease closures are transitive descendants; target closures are every
    target reachable over interactions in either direction, so expanding an
    already expanded set adds nothing.
    """

    def __init__(
        self,
        disease_parents: Iterable[Tuple[str, str]] = (),
        interactions: Iterable[Tuple[str, str]] = (),
    ):
        """
        Args:
            disease_parents: (child_id, parent_id) edges
            interactions: (target_id, target_id) pairs
        """
        self._children: Dict[str, List[str]] = {}
        for child, parent in disease_parents:
            self._children.setdefault(parent, []).append(child)

        self._partners: Dict[str, List[str]] = {}
        for left, right in interactions:
            self._partners.setdefault(left, []).append(right)
            self._partners.setdefault(right, []).append(left)

    @staticmethod
    def _reachable(start: str, edges: Mapping[str, List[str]]) -> List[str]:
        seen: Dict[str, None] = {}
        frontier = list(edges.get(start, []))
        while frontier:
            node = frontier.pop(0)
            if node in seen or node == start:
                continue
            seen[node] = None
            frontier.extend(edges.get(node, []))
        return list(seen)

    async def closures(self, ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        kind = EntityKind(kind)
        if kind == EntityKind.DISEASE:
            return {i: self._reachable(i, self._children) for i in ids if i in self._children}
        if kind == EntityKind.TARGET:
            return {i: self._reachable(i, self._partners) for i in ids if i in self._partners}
        return {}


class InMemoryFacetSearch:
    """Facet membership keyed by (kind, facet id)."""

    def __init__(self, facets: Optional[Mapping[Tuple[EntityKind, str], Sequence[str]]] = None):
        self._facets = {(EntityKind(k), f): list(m) for (k, f), m in (facets or {}).items()}

    async def resolve(self, facet_ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        kind = EntityKind(kind)
        return {f: self._facets[(kind, f)] for f in facet_ids if (kind, f) in self._facets}
