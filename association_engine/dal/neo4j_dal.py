"""
Neo4j Data Access Layer

Implements the engine's storage collaborators over the evidence graph.
Returns domain objects, not raw database records.

Driver failures are not caught here: the planner and expander wrap them
in StoreError so a broken store never reads as "no evidence".
"""

from typing import Dict, List, Mapping, Optional, Sequence

from association_engine.domain.models import EntityKind, EvidenceRow
from association_engine.graph_db.neo4j_client import Neo4jClient
from association_engine.graph_db.queries import AssociationQueries


# Node label per entity kind
KIND_LABELS = {
    EntityKind.TARGET: "Target",
    EntityKind.DISEASE: "Disease",
    EntityKind.DRUG: "Drug",
}

# Record column -> annotation dimension
ANNOTATION_COLUMNS = {
    "therapeutic_areas": "therapeuticArea",
    "target_classes": "targetClass",
}


def _to_evidence_row(record: Dict) -> EvidenceRow:
    annotations = {
        dimension: [str(v) for v in record.get(column) or []]
        for column, dimension in ANNOTATION_COLUMNS.items()
        if record.get(column)
    }
    return EvidenceRow(
        source_id=record["source_id"],
        destination_id=record["destination_id"],
        datasource_id=record["datasource_id"],
        score=float(record.get("score") or 0.0),
        annotations=annotations,
    )


class Neo4jEvidenceStore:
    """Per-datasource evidence fetches between a source and a destination kind."""

    def __init__(self, client: Neo4jClient):
        self._client = client

    async def fetch_evidence(
        self,
        datasource_id: str,
        source_ids: Sequence[str],
        destination_ids: Optional[Sequence[str]],
        source_kind: EntityKind = EntityKind.TARGET,
        destination_kind: EntityKind = EntityKind.DISEASE,
    ) -> List[EvidenceRow]:
        records = await self._client.execute_read(
            AssociationQueries.FETCH_EVIDENCE,
            {
                "datasource": datasource_id,
                "source_ids": list(source_ids),
                "destination_ids": list(destination_ids) if destination_ids is not None else None,
                "source_label": KIND_LABELS[EntityKind(source_kind)],
                "destination_label": KIND_LABELS[EntityKind(destination_kind)],
            },
        )
        return [_to_evidence_row(r) for r in records]


class Neo4jClosureProvider:
    """
    Disease descendants (transitive DESCENDANT_OF) and target interaction
    partners (every target reachable over INTERACTS_WITH, either direction).
    """

    def __init__(self, client: Neo4jClient):
        self._client = client

    async def closures(self, ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        kind = EntityKind(kind)
        if kind == EntityKind.DISEASE:
            query = AssociationQueries.FIND_DISEASE_DESCENDANTS
        elif kind == EntityKind.TARGET:
            query = AssociationQueries.FIND_TARGET_PARTNERS
        else:
            return {}

        records = await self._client.execute_read(query, {"ids": list(ids)})
        return {r["id"]: [m for m in r.get("members") or [] if m and m != r["id"]] for r in records}


class Neo4jFacetSearch:
    """Facet id -> member entity ids of one kind."""

    def __init__(self, client: Neo4jClient):
        self._client = client

    async def resolve(self, facet_ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        records = await self._client.execute_read(
            AssociationQueries.FIND_FACET_MEMBERS,
            {"facet_ids": list(facet_ids), "label": KIND_LABELS[EntityKind(kind)]},
        )
        return {r["facet_id"]: list(r.get("members") or []) for r in records}
