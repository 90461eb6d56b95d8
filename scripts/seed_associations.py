"""
Seed sample evidence, ontology edges and facets into Neo4j.

Usage:
    python scripts/seed_associations.py              # built-in sample
    python scripts/seed_associations.py data.jsonl   # one evidence row per line
"""

import asyncio
import json
import sys
from pathlib import Path

# Adjust import path for script execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from association_engine.config import settings
from association_engine.graph_db.neo4j_client import Neo4jClient
from association_engine.graph_db.queries import AssociationQueries

SAMPLE_EVIDENCE = [
    {"source_id": "ENSG00000157764", "destination_id": "EFO_0000756", "datasource": "chembl", "score": 0.95},
    {"source_id": "ENSG00000157764", "destination_id": "EFO_0000756", "datasource": "cancer_gene_census", "score": 0.87},
    {"source_id": "ENSG00000157764", "destination_id": "EFO_0000389", "datasource": "europepmc", "score": 0.42},
    {"source_id": "ENSG00000157764", "destination_id": "EFO_0002617", "datasource": "intogen", "score": 0.61},
    {"source_id": "ENSG00000141510", "destination_id": "EFO_0000311", "datasource": "eva_somatic", "score": 0.9},
    {"source_id": "ENSG00000141510", "destination_id": "EFO_0000311", "datasource": "europepmc", "score": 1.0},
    {"source_id": "ENSG00000146648", "destination_id": "EFO_0003060", "datasource": "chembl", "score": 0.99},
]

# (child, parent)
SAMPLE_DISEASE_PARENTS = [
    ("EFO_0000756", "EFO_0000389"),
    ("EFO_0002617", "EFO_0000389"),
    ("EFO_0000389", "EFO_0000311"),
]

SAMPLE_INTERACTIONS = [
    ("ENSG00000157764", "ENSG00000146648"),
]

# (facet, member)
SAMPLE_FACETS = [
    ("therapeutic_area:cancer", "EFO_0000311"),
    ("therapeutic_area:cancer", "EFO_0000756"),
    ("therapeutic_area:cancer", "EFO_0003060"),
]


def load_evidence(path: Path):
    """Read newline-delimited JSON evidence rows."""
    with path.open() as f:
        return [json.loads(line) for line in f if line.strip()]


async def seed(evidence):
    client = Neo4jClient(
        uri=settings.NEO4J_URI,
        user=settings.NEO4J_USER,
        password=settings.NEO4J_PASSWORD,
        database=settings.NEO4J_DATABASE,
    )
    await client.connect()
    try:
        for row in evidence:
            await client.execute_write(AssociationQueries.MERGE_EVIDENCE, row)
        for child, parent in SAMPLE_DISEASE_PARENTS:
            await client.execute_write(
                AssociationQueries.MERGE_DISEASE_PARENT, {"child_id": child, "parent_id": parent}
            )
        for left, right in SAMPLE_INTERACTIONS:
            await client.execute_write(
                AssociationQueries.MERGE_INTERACTION, {"left_id": left, "right_id": right}
            )
        for facet, member in SAMPLE_FACETS:
            await client.execute_write(
                AssociationQueries.MERGE_FACET_MEMBER, {"facet_id": facet, "member_id": member}
            )
    finally:
        await client.close()

    print(f"Seeded {len(evidence)} evidence rows")


if __name__ == "__main__":
    rows = load_evidence(Path(sys.argv[1])) if len(sys.argv) > 1 else SAMPLE_EVIDENCE
    asyncio.run(seed(rows))
