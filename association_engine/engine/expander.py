"""
Identifier set expansion for indirect evidence.

Diseases expand to all their ontology descendants and targets to every
target reachable over interactions, in a single lookup of a precomputed,
transitively closed closure. Unknown ids keep their place in the direct
set and contribute no extra ids.
"""

import asyncio
from typing import Dict, Mapping, Protocol, Sequence, Tuple

from association_engine.domain.models import (
    EntityKind,
    IdentifierSet,
    IndirectExpansionResult,
    identifier_set,
)
from association_engine.engine.errors import StoreError
from association_engine.logger import get_logger

logger = get_logger(__name__)

# Kinds that have a closure relation; other kinds always expand to themselves
EXPANDABLE_KINDS = (EntityKind.DISEASE, EntityKind.TARGET)


class ClosureProvider(Protocol):
    """Source of precomputed closed closures (descendants or reachable interaction partners)."""

    async def closures(self, ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        ...


class CachedClosureProvider:
    """
    Read-through cache in front of another closure provider.

    Closures are treated as immutable reference data, so entries never expire.
    """

    def __init__(self, provider: ClosureProvider):
        self._provider = provider
        self._cache: Dict[Tuple[str, str], Tuple[str, ...]] = {}
        self._lock = asyncio.Lock()

    async def closures(self, ids: Sequence[str], kind: EntityKind) -> Mapping[str, Sequence[str]]:
        kind_key = EntityKind(kind).value
        async with self._lock:
            missing = [i for i in ids if (kind_key, i) not in self._cache]

        if missing:
            fetched = await self._provider.closures(missing, kind)
            async with self._lock:
                for entity_id in missing:
                    self._cache[(kind_key, entity_id)] = tuple(fetched.get(entity_id, ()))

        async with self._lock:
            return {i: self._cache[(kind_key, i)] for i in ids if self._cache.get((kind_key, i))}

    def clear(self) -> None:
        self._cache.clear()


class IdentifierSetExpander:
    """
    Expands a requested identifier set into its effective set.

    Usage:
        expander = IdentifierSetExpander(CachedClosureProvider(provider))
        result = await expander.expand(["EFO_0000270"], True, EntityKind.DISEASE)
        result.expanded  # direct ids followed by their descendants
    """

    def __init__(self, provider: ClosureProvider):
        self._provider = provider

    async def expand(
        self,
        ids: Sequence[str],
        enable_indirect: bool,
        kind: EntityKind,
    ) -> IndirectExpansionResult:
        """
        Expand ids along the closure relation of their kind.

        Args:
            ids: Requested ids (deduplicated, order kept)
            enable_indirect: False returns the identity expansion
            kind: Entity kind selecting the closure relation

        Returns:
            IndirectExpansionResult with direct ⊆ expanded

        Raises:
            StoreError: If the closure provider itself fails
        """
        direct = identifier_set(ids)
        if not enable_indirect or EntityKind(kind) not in EXPANDABLE_KINDS or not direct:
            return IndirectExpansionResult(direct=direct, expanded=direct)

        try:
            closures = await self._provider.closures(list(direct), EntityKind(kind))
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"closure lookup failed for {EntityKind(kind).value} ids: {e}") from e

        per_id: Dict[str, IdentifierSet] = {}
        for entity_id in direct:
            members = identifier_set(m for m in closures.get(entity_id, ()) if m != entity_id)
            if members:
                per_id[entity_id] = members

        expanded = identifier_set(
            [*direct, *(member for entity_id in direct for member in per_id.get(entity_id, ()))]
        )

        logger.info(
            "identifier set expanded",
            extra={"kind": EntityKind(kind).value, "direct": len(direct), "expanded": len(expanded)},
        )
        return IndirectExpansionResult(direct=direct, expanded=expanded, closures=per_id)
