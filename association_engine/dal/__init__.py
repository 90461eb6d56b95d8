"""
Data Access Layer Package

Storage collaborators of the association engine: an evidence store,
a closure provider and a facet search index, backed by Neo4j or memory.

Architecture:
    Engine → DAL → Domain objects (EvidenceRow, closures, facet members)
"""

from association_engine.dal.neo4j_dal import (
    Neo4jEvidenceStore,
    Neo4jClosureProvider,
    Neo4jFacetSearch,
)

from association_engine.dal.memory import (
    InMemoryEvidenceStore,
    InMemoryClosureProvider,
    InMemoryFacetSearch,
)


__all__ = [
    # Neo4j evidence graph
    "Neo4jEvidenceStore",
    "Neo4jClosureProvider",
    "Neo4jFacetSearch",
    
    # In-memory
    "InMemoryEvidenceStore",
    "InMemoryClosureProvider",
    "InMemoryFacetSearch",
]
