"""
Association Engine - Engine Package

Query construction, graph expansion, score aggregation, faceting and
pagination over biomedical evidence.

Workflow: Validate → Expand → Plan (fetch, score) → Filter → Facets → Page
"""

from association_engine.engine.errors import (
    EngineError,
    ValidationError,
    InvalidCursorError,
    StoreError,
)

from association_engine.engine.schemas import (
    AssociationQuery,
    AssociationResult,
    AssociationRow,
    DatasourceSettingInput,
    AggregationFilterInput,
    PageInput,
)

from association_engine.engine.engine import (
    AssociationEngine,
    EngineConfig,
    FacetSearch,
)

from association_engine.engine.expander import (
    IdentifierSetExpander,
    CachedClosureProvider,
    ClosureProvider,
)
from association_engine.engine.planner import AssociationPlanner, EvidenceStore
from association_engine.engine.weights import resolve_weights
from association_engine.engine.scoring import combine_scores
from association_engine.engine.filters import normalize_filters, apply_filters
from association_engine.engine.facets import aggregate_facets
from association_engine.engine.pagination import paginate, next_cursor
from association_engine.engine.cursor import encode_cursor, decode_cursor


__all__ = [
    # Main entry point
    "AssociationEngine",
    "EngineConfig",

    # Errors
    "EngineError",
    "ValidationError",
    "InvalidCursorError",
    "StoreError",

    # Schemas
    "AssociationQuery",
    "AssociationResult",
    "AssociationRow",
    "DatasourceSettingInput",
    "AggregationFilterInput",
    "PageInput",

    # Collaborator contracts
    "EvidenceStore",
    "ClosureProvider",
    "FacetSearch",

    # Components
    "IdentifierSetExpander",
    "CachedClosureProvider",
    "AssociationPlanner",
    "resolve_weights",
    "combine_scores",
    "normalize_filters",
    "apply_filters",
    "aggregate_facets",
    "paginate",
    "next_cursor",
    "encode_cursor",
    "decode_cursor",
]
