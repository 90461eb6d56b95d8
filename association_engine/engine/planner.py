"""
Association query planning and execution.

Turns expanded id sets and resolved datasource weights into one evidence
fetch per contributing datasource, runs the fetches concurrently, then
groups the rows by (source, destination) and scores each pair.

Concurrency:
- One task per datasource, bounded by a per-query pool (sized to the
  number of datasources, capped by max_concurrency) and an optional
  limiter shared by all queries to protect the store.
- Each fetch has its own timeout. A timed-out optional datasource counts
  as absent; a timed-out required datasource fails the query.
- Merging waits for every required fetch. Optional fetches still pending
  when the query deadline passes are abandoned.
- Any store failure fails the whole query with a single StoreError as
  soon as it is seen; the remaining fetches are cancelled.
- Cancelling the caller cancels every in-flight fetch.
"""

import asyncio
import time
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from association_engine.domain.models import (
    AggregationFilter,
    AssociationScore,
    DatasourceSetting,
    EntityKind,
    EvidenceRow,
    IndirectExpansionResult,
)
from association_engine.engine.errors import StoreError
from association_engine.engine.filters import apply_filters
from association_engine.engine.scoring import build_association
from association_engine.logger import get_logger

logger = get_logger(__name__)

PairKey = Tuple[str, str]


def _raise_first_failure(done) -> None:
    for task in done:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()


class EvidenceStore(Protocol):
    """Storage collaborator returning raw per-datasource evidence."""

    async def fetch_evidence(
        self,
        datasource_id: str,
        source_ids: Sequence[str],
        destination_ids: Optional[Sequence[str]],
        source_kind: EntityKind = EntityKind.TARGET,
        destination_kind: EntityKind = EntityKind.DISEASE,
    ) -> Sequence[EvidenceRow]:
        ...


class AssociationPlanner:
    """
    Fetches, groups and scores associations for one query.

    Usage:
        planner = AssociationPlanner(store, datatypes={"chembl": "known_drug"})
        rows = await planner.plan(expansion, None, filters, weights, threshold=0.2)
    """

    def __init__(
        self,
        store: EvidenceStore,
        datatypes: Optional[Mapping[str, str]] = None,
        max_concurrency: int = 8,
        fetch_timeout: float = 10.0,
        deadline: float = 20.0,
        limiter: Optional[asyncio.Semaphore] = None,
    ):
        """
        Args:
            store: Evidence store collaborator
            datatypes: Datasource id -> datatype id for the datatype facet
            max_concurrency: Cap on concurrent fetches of one query
            fetch_timeout: Seconds allowed per datasource fetch
            deadline: Seconds after which pending optional fetches are abandoned
            limiter: Semaphore shared across queries (global cap)
        """
        self._store = store
        self._datatypes = dict(datatypes or {})
        self._max_concurrency = max(1, max_concurrency)
        self._fetch_timeout = fetch_timeout
        self._deadline = deadline
        self._limiter = limiter

    async def plan(
        self,
        a: IndirectExpansionResult,
        b_ids: Optional[Sequence[str]],
        filters: Sequence[AggregationFilter],
        weights: Mapping[str, DatasourceSetting],
        threshold: Optional[float] = None,
        destination_prefix: Optional[str] = None,
        source_kind: EntityKind = EntityKind.TARGET,
        destination_kind: EntityKind = EntityKind.DISEASE,
    ) -> List[AssociationScore]:
        """Associations passing threshold, destination prefix and aggregation filters (unordered)."""
        collected = await self.collect(
            a, b_ids, weights, threshold, destination_prefix,
            source_kind=source_kind, destination_kind=destination_kind,
        )
        return apply_filters(collected, filters)

    async def collect(
        self,
        a: IndirectExpansionResult,
        b_ids: Optional[Sequence[str]],
        weights: Mapping[str, DatasourceSetting],
        threshold: Optional[float] = None,
        destination_prefix: Optional[str] = None,
        source_kind: EntityKind = EntityKind.TARGET,
        destination_kind: EntityKind = EntityKind.DISEASE,
    ) -> List[AssociationScore]:
        """
        Scored associations before aggregation filters.

        Args:
            a: Source ids with their expansion (evidence for expanded ids is
                attributed back to the direct ids)
            b_ids: Destination ids restricting the candidate space, or None
            weights: Resolved datasource settings
            threshold: Minimum aggregated score (default 0: no filtering)
            destination_prefix: Case-insensitive destination id prefix
            source_kind: Kind of the source ids
            destination_kind: Kind of the destination ids

        Raises:
            StoreError: On any fetch failure or required datasource timeout
        """
        if not a.direct or (b_ids is not None and not b_ids):
            return []

        active = sorted(ds for ds, setting in weights.items() if setting.weight > 0)
        if not active:
            return []

        kinds = (EntityKind(source_kind), EntityKind(destination_kind))
        evidence = await self._fetch_all(active, a.expanded, b_ids, weights, kinds)
        grouped, annotations = self._group(evidence, a, b_ids, destination_prefix)

        minimum = threshold or 0.0
        results = []
        for (source_id, destination_id), per_datasource in grouped.items():
            association = build_association(
                source_id,
                destination_id,
                per_datasource,
                weights,
                self._datatypes,
                annotations.get((source_id, destination_id)),
            )
            if association is None or association.aggregated_score < minimum:
                continue
            results.append(association)

        return results

    # -------------------------------------------------------------------------
    # Fetch fan-out
    # -------------------------------------------------------------------------

    async def _fetch_all(
        self,
        active: Sequence[str],
        source_ids: Sequence[str],
        destination_ids: Optional[Sequence[str]],
        weights: Mapping[str, DatasourceSetting],
        kinds: Tuple[EntityKind, EntityKind],
    ) -> Dict[str, Sequence[EvidenceRow]]:
        started = time.monotonic()
        pool = asyncio.Semaphore(min(len(active), self._max_concurrency))

        tasks: Dict[str, asyncio.Task] = {
            ds: asyncio.create_task(
                self._fetch_one(ds, weights[ds].required, source_ids, destination_ids, kinds, pool),
                name=f"fetch:{ds}",
            )
            for ds in active
        }
        waiting_required = {tasks[ds] for ds in active if weights[ds].required}
        pending = set(tasks.values())

        try:
            # Any failure fails the query at once, optional or not
            while waiting_required:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                _raise_first_failure(done)
                waiting_required -= done

            if pending:
                remaining = max(0.0, self._deadline - (time.monotonic() - started))
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_EXCEPTION
                )
                _raise_first_failure(done)
                for task in pending:
                    task.cancel()
                    logger.warning("optional datasource abandoned at deadline", extra={"task": task.get_name()})

            evidence: Dict[str, Sequence[EvidenceRow]] = {}
            for ds, task in tasks.items():
                if task.cancelled() or not task.done():
                    continue
                rows = task.result()
                if rows is not None:
                    evidence[ds] = rows
            return evidence
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _fetch_one(
        self,
        datasource_id: str,
        required: bool,
        source_ids: Sequence[str],
        destination_ids: Optional[Sequence[str]],
        kinds: Tuple[EntityKind, EntityKind],
        pool: asyncio.Semaphore,
    ) -> Optional[Sequence[EvidenceRow]]:
        """Fetch one datasource; None means it timed out and is optional."""
        async with pool:
            if self._limiter is not None:
                await self._limiter.acquire()
            try:
                started = time.monotonic()
                rows = await asyncio.wait_for(
                    self._store.fetch_evidence(
                        datasource_id,
                        list(source_ids),
                        destination_ids,
                        source_kind=kinds[0],
                        destination_kind=kinds[1],
                    ),
                    timeout=self._fetch_timeout,
                )
            except asyncio.TimeoutError:
                if required:
                    logger.error("required datasource timed out", extra={"datasource": datasource_id})
                    raise StoreError(
                        f"required datasource '{datasource_id}' timed out after {self._fetch_timeout}s",
                        datasource_id=datasource_id,
                    )
                logger.warning("optional datasource timed out", extra={"datasource": datasource_id})
                return None
            except StoreError:
                raise
            except Exception as e:
                logger.error("evidence fetch failed", extra={"datasource": datasource_id, "error": str(e)})
                raise StoreError(
                    f"evidence fetch failed for datasource '{datasource_id}': {e}",
                    datasource_id=datasource_id,
                ) from e
            finally:
                if self._limiter is not None:
                    self._limiter.release()

        logger.info(
            "datasource fetched",
            extra={
                "datasource": datasource_id,
                "rows": len(rows),
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return rows

    # -------------------------------------------------------------------------
    # Grouping
    # -------------------------------------------------------------------------

    def _group(
        self,
        evidence: Mapping[str, Sequence[EvidenceRow]],
        a: IndirectExpansionResult,
        b_ids: Optional[Sequence[str]],
        destination_prefix: Optional[str],
    ) -> Tuple[Dict[PairKey, Dict[str, float]], Dict[PairKey, Dict[str, List[str]]]]:
        """Group rows by (direct source, destination); the best row per datasource wins."""
        owners = a.attribution()
        allowed = set(b_ids) if b_ids is not None else None
        prefix = destination_prefix.lower() if destination_prefix else None

        grouped: Dict[PairKey, Dict[str, float]] = {}
        annotations: Dict[PairKey, Dict[str, List[str]]] = {}

        for datasource_id in sorted(evidence):
            for row in evidence[datasource_id]:
                if allowed is not None and row.destination_id not in allowed:
                    continue
                if prefix and not row.destination_id.lower().startswith(prefix):
                    continue
                for source_id in owners.get(row.source_id, ()):
                    key = (source_id, row.destination_id)
                    scores = grouped.setdefault(key, {})
                    scores[datasource_id] = max(row.score, scores.get(datasource_id, row.score))

                    merged = annotations.setdefault(key, {})
                    for dimension, values in row.annotations.items():
                        bucket = merged.setdefault(dimension, [])
                        bucket.extend(v for v in values if v not in bucket)

        return grouped, annotations
