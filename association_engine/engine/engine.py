"""
Association engine orchestrator.

Resolves one AssociationQuery end to end:

    validate -> resolve weights -> normalize filters -> decode cursor
      -> expand sources | expand destinations | resolve facet filters  (concurrently)
      -> plan (fetch, group, score, threshold)
      -> aggregation filters -> facet counts -> page

All validation happens before any storage access. Errors propagate to
the caller unchanged; nothing is logged and swallowed.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from association_engine.domain.models import (
    DatasourceSetting,
    EntityKind,
    IndirectExpansionResult,
    Pagination,
    identifier_set,
)
from association_engine.engine.cursor import decode_cursor, encode_cursor
from association_engine.engine.errors import StoreError, ValidationError
from association_engine.engine.expander import ClosureProvider, IdentifierSetExpander
from association_engine.engine.facets import aggregate_facets, facet_dimensions
from association_engine.engine.filters import apply_filters, normalize_filters
from association_engine.engine.pagination import effective_page_size, next_cursor, paginate
from association_engine.engine.planner import AssociationPlanner, EvidenceStore
from association_engine.engine.schemas import (
    AssociationQuery,
    AssociationResult,
    AssociationRow,
    DatasourceInfo,
)
from association_engine.engine.scoring import DATASOURCE_DIMENSION, DATATYPE_DIMENSION
from association_engine.engine.weights import resolve_weights
from association_engine.logger import get_logger

logger = get_logger(__name__)

ORDERS = ("asc", "desc")


class FacetSearch(Protocol):
    """Search-index collaborator resolving facet ids to member entity ids."""

    async def resolve(self, facet_ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        ...


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine configuration, built once at application start."""
    default_datasources: Mapping[str, DatasourceSetting] = field(default_factory=dict)
    datatypes: Mapping[str, str] = field(default_factory=dict)
    facet_dimensions: Tuple[str, ...] = (DATASOURCE_DIMENSION, DATATYPE_DIMENSION)
    annotation_dimensions: Tuple[str, ...] = ()
    default_page_size: int = 25
    max_page_size: int = 500
    max_concurrency: int = 8
    fetch_timeout: float = 10.0
    deadline: float = 20.0

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            default_datasources=settings.default_datasources(),
            datatypes=dict(settings.DATASOURCE_DATATYPES),
            facet_dimensions=tuple(settings.FACET_DIMENSIONS),
            annotation_dimensions=tuple(settings.ANNOTATION_DIMENSIONS),
            default_page_size=settings.DEFAULT_PAGE_SIZE,
            max_page_size=settings.MAX_PAGE_SIZE,
            max_concurrency=settings.MAX_FETCH_CONCURRENCY,
            fetch_timeout=settings.FETCH_TIMEOUT_SECONDS,
            deadline=settings.QUERY_DEADLINE_SECONDS,
        )


class AssociationEngine:
    """
    Entry point of the association/evidence aggregation engine.

    Usage:
        engine = AssociationEngine(store, closures, facet_search, config)
        result = await engine.resolve(AssociationQuery(source_ids=["ENSG..."]))
    """

    def __init__(
        self,
        store: EvidenceStore,
        closures: ClosureProvider,
        facet_search: Optional[FacetSearch] = None,
        config: Optional[EngineConfig] = None,
        limiter: Optional[asyncio.Semaphore] = None,
    ):
        self.config = config or EngineConfig()
        self._expander = IdentifierSetExpander(closures)
        self._facet_search = facet_search
        self._planner = AssociationPlanner(
            store,
            datatypes=self.config.datatypes,
            max_concurrency=self.config.max_concurrency,
            fetch_timeout=self.config.fetch_timeout,
            deadline=self.config.deadline,
            limiter=limiter,
        )

    def datasources(self) -> List[DatasourceInfo]:
        """Default datasource settings with their datatypes, sorted by id."""
        return [
            DatasourceInfo(
                id=ds,
                datatype=self.config.datatypes.get(ds),
                weight=setting.weight,
                required=setting.required,
            )
            for ds, setting in sorted(self.config.default_datasources.items())
        ]

    async def resolve(self, query: AssociationQuery) -> AssociationResult:
        """
        Resolve an association query.

        Raises:
            ValidationError: Bad input (rejected before any fetch)
            InvalidCursorError: Malformed or foreign cursor
            StoreError: Fetch failure or required datasource timeout
        """
        started = time.perf_counter()
        source_ids = self._validate(query)
        order = query.order_by_score

        weights = resolve_weights(self._requested_settings(query), self.config.default_datasources)
        filters = normalize_filters(query.aggregation_filters, self._facet_catalog(weights))

        requested_size = query.size if query.size is not None else self.config.default_page_size
        cursor_mode = query.cursor is not None
        if cursor_mode:
            decoded = decode_cursor(query.cursor, order) if query.cursor else None
            size = effective_page_size(requested_size, self.config.max_page_size)
        else:
            page = query.page
            pagination = Pagination(
                index=page.index if page else 0,
                size=page.size if page else requested_size,
                max_size=self.config.max_page_size,
            )
            if pagination.index < 0:
                raise ValidationError(f"page index must be >= 0, got {pagination.index}")
            effective_page_size(pagination.size, pagination.max_size)

        logger.info(
            "association query accepted",
            extra={
                "sources": len(source_ids),
                "indirect": query.enable_indirect,
                "filters": len(filters),
                "mode": "cursor" if cursor_mode else "offset",
            },
        )

        a, b_ids = await self._candidate_space(query, source_ids)
        collected = await self._planner.collect(
            a,
            b_ids,
            weights,
            threshold=query.threshold,
            destination_prefix=query.destination_filter,
            source_kind=query.source_kind,
            destination_kind=query.destination_kind,
        )

        matching = apply_filters(collected, filters)
        facets = aggregate_facets(
            collected,
            facet_dimensions(filters, self.config.facet_dimensions),
            filters,
        )

        token = None
        if cursor_mode:
            rows, following = next_cursor(matching, decoded, size, order, self.config.max_page_size)
            token = encode_cursor(following) if following else None
        else:
            rows = paginate(matching, pagination, order)

        logger.info(
            "association query resolved",
            extra={
                "count": len(matching),
                "rows": len(rows),
                "elapsed_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return AssociationResult(
            rows=[AssociationRow.from_association(association) for association in rows],
            facets=facets,
            count=len(matching),
            cursor=token,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate(self, query: AssociationQuery) -> Tuple[str, ...]:
        source_ids = identifier_set(i.strip() for i in query.source_ids if i and i.strip())
        if not source_ids:
            raise ValidationError("at least one source id is required")

        if query.threshold is not None and not 0.0 <= query.threshold <= 1.0:
            raise ValidationError(f"threshold must be within [0, 1], got {query.threshold}")

        if query.order_by_score not in ORDERS:
            raise ValidationError(f"order_by_score must be one of {ORDERS}, got '{query.order_by_score}'")

        if query.page is not None and query.cursor is not None:
            raise ValidationError("page and cursor are mutually exclusive")

        if query.facet_filters and self._facet_search is None:
            raise ValidationError("facet filters are not supported without a search index")

        seen = set()
        for setting in query.datasources or []:
            if not setting.id.strip():
                raise ValidationError("datasource id cannot be empty")
            if setting.weight < 0:
                raise ValidationError(f"weight of datasource '{setting.id}' must be >= 0")
            if setting.id in seen:
                raise ValidationError(f"datasource '{setting.id}' is listed more than once")
            seen.add(setting.id)

        return source_ids

    def _requested_settings(self, query: AssociationQuery) -> Optional[List[DatasourceSetting]]:
        if query.datasources is None:
            return None
        return [
            DatasourceSetting(datasource_id=s.id.strip(), weight=s.weight, required=s.required)
            for s in query.datasources
        ]

    def _facet_catalog(self, weights: Mapping[str, DatasourceSetting]) -> Dict[str, List[str]]:
        """Known dimensions; datasource and datatype are closed, annotations are open."""
        catalog: Dict[str, List[str]] = {
            DATASOURCE_DIMENSION: sorted(weights),
            DATATYPE_DIMENSION: sorted(set(self.config.datatypes.values())),
        }
        for dimension in (*self.config.facet_dimensions, *self.config.annotation_dimensions):
            catalog.setdefault(dimension, [])
        return catalog

    # -------------------------------------------------------------------------
    # Candidate space
    # -------------------------------------------------------------------------

    async def _candidate_space(
        self,
        query: AssociationQuery,
        source_ids: Sequence[str],
    ) -> Tuple[IndirectExpansionResult, Optional[Tuple[str, ...]]]:
        """Expand sources and destinations and resolve facet filters concurrently."""
        jobs = [self._expander.expand(source_ids, query.enable_indirect, query.source_kind)]
        if query.destination_ids is not None:
            jobs.append(self._expander.expand(query.destination_ids, query.enable_indirect, query.destination_kind))
        facet_ids = list(dict.fromkeys(f for f in (query.facet_filters or []) if f))
        if facet_ids:
            jobs.append(self._resolve_facets(facet_ids, query.destination_kind))

        results = await asyncio.gather(*jobs)
        a = results[0]

        b_ids: Optional[Tuple[str, ...]] = None
        position = 1
        if query.destination_ids is not None:
            b_ids = results[position].expanded
            position += 1
        if facet_ids:
            members = results[position]
            if b_ids is None:
                b_ids = members
            else:
                allowed = set(members)
                b_ids = tuple(i for i in b_ids if i in allowed)

        return a, b_ids

    async def _resolve_facets(self, facet_ids: Sequence[str], kind: EntityKind) -> Tuple[str, ...]:
        """Union (OR) of the members of the requested facets."""
        try:
            resolved = await self._facet_search.resolve(facet_ids, kind)
        except Exception as e:
            raise StoreError(f"facet resolution failed: {e}") from e
        return identifier_set(member for facet_id in facet_ids for member in resolved.get(facet_id, ()))
