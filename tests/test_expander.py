"""
Association Engine - Identifier Expansion Tests

Run with: pytest tests/test_expander.py -v
"""

import pytest
from unittest.mock import AsyncMock

from association_engine.dal.memory import InMemoryClosureProvider
from association_engine.domain.models import EntityKind, IndirectExpansionResult
from association_engine.engine.errors import StoreError
from association_engine.engine.expander import CachedClosureProvider, IdentifierSetExpander


@pytest.fixture
def ontology():
    # EFO_B and EFO_C under EFO_A, EFO_D under EFO_B
    return InMemoryClosureProvider(
        disease_parents=[("EFO_B", "EFO_A"), ("EFO_C", "EFO_A"), ("EFO_D", "EFO_B")],
        interactions=[("T1", "T2"), ("T3", "T1")],
    )


class TestIdentifierSetExpander:
    """Tests for direct/indirect expansion."""
    
    @pytest.mark.asyncio
    async def test_disabled_is_identity(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["EFO_A", "EFO_A", "X"], False, EntityKind.DISEASE)
        assert result.direct == ("EFO_A", "X")
        assert result.expanded == result.direct
        assert not result.is_indirect
    
    @pytest.mark.asyncio
    async def test_disease_expands_to_descendants(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["EFO_A"], True, EntityKind.DISEASE)
        assert result.direct == ("EFO_A",)
        assert set(result.expanded) == {"EFO_A", "EFO_B", "EFO_C", "EFO_D"}
        assert result.expanded[0] == "EFO_A"
        assert result.is_indirect
    
    @pytest.mark.asyncio
    async def test_target_expands_to_partners(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["T1"], True, EntityKind.TARGET)
        assert result.expanded == ("T1", "T2", "T3")
    
    @pytest.mark.asyncio
    async def test_unknown_ids_kept_without_closure(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["NOPE", "EFO_B"], True, EntityKind.DISEASE)
        assert result.direct == ("NOPE", "EFO_B")
        assert result.expanded == ("NOPE", "EFO_B", "EFO_D")
        assert "NOPE" not in result.closures
    
    @pytest.mark.asyncio
    async def test_drugs_never_expand(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["CHEMBL1"], True, EntityKind.DRUG)
        assert result.expanded == ("CHEMBL1",)
    
    @pytest.mark.asyncio
    async def test_direct_subset_of_expanded_and_idempotent(self, ontology):
        expander = IdentifierSetExpander(ontology)
        first = await expander.expand(["EFO_A", "EFO_B", "UNKNOWN"], True, EntityKind.DISEASE)
        assert set(first.direct) <= set(first.expanded)
        
        second = await expander.expand(first.expanded, True, EntityKind.DISEASE)
        assert set(second.expanded) == set(first.expanded)
    
    @pytest.mark.asyncio
    async def test_target_chain_expands_fully_and_idempotent(self):
        interactions = InMemoryClosureProvider(interactions=[("ENSG1", "ENSG2"), ("ENSG2", "ENSG3")])
        expander = IdentifierSetExpander(interactions)

        first = await expander.expand(["ENSG1"], True, EntityKind.TARGET)
        assert first.expanded == ("ENSG1", "ENSG2", "ENSG3")

        second = await expander.expand(first.expanded, True, EntityKind.TARGET)
        assert set(second.expanded) == set(first.expanded)

    @pytest.mark.asyncio
    async def test_attribution_maps_members_to_direct_ids(self, ontology):
        result = await IdentifierSetExpander(ontology).expand(["EFO_A", "EFO_B"], True, EntityKind.DISEASE)
        owners = result.attribution()
        assert owners["EFO_D"] == ["EFO_A", "EFO_B"]
        assert owners["EFO_C"] == ["EFO_A"]
        assert owners["EFO_B"] == ["EFO_A", "EFO_B"]
    
    @pytest.mark.asyncio
    async def test_provider_failure_is_store_error(self):
        provider = AsyncMock()
        provider.closures.side_effect = ConnectionError("down")
        with pytest.raises(StoreError):
            await IdentifierSetExpander(provider).expand(["EFO_A"], True, EntityKind.DISEASE)
    
    @pytest.mark.asyncio
    async def test_empty_set_skips_provider(self):
        provider = AsyncMock()
        result = await IdentifierSetExpander(provider).expand([], True, EntityKind.DISEASE)
        assert result.expanded == ()
        provider.closures.assert_not_called()


class TestIndirectExpansionResult:
    """Tests for the expansion invariant."""
    
    def test_direct_must_be_within_expanded(self):
        with pytest.raises(ValueError):
            IndirectExpansionResult(direct=("A", "B"), expanded=("A",))


class TestCachedClosureProvider:
    """Tests for the read-through closure cache."""
    
    @pytest.mark.asyncio
    async def test_second_lookup_served_from_cache(self):
        provider = AsyncMock()
        provider.closures.return_value = {"EFO_A": ["EFO_B"]}
        cached = CachedClosureProvider(provider)
        
        first = await cached.closures(["EFO_A", "EFO_X"], EntityKind.DISEASE)
        second = await cached.closures(["EFO_A", "EFO_X"], EntityKind.DISEASE)
        
        assert first == second == {"EFO_A": ("EFO_B",)}
        provider.closures.assert_awaited_once()
    
    @pytest.mark.asyncio
    async def test_cache_keyed_by_kind(self):
        provider = AsyncMock()
        provider.closures.return_value = {}
        cached = CachedClosureProvider(provider)
        
        await cached.closures(["X"], EntityKind.DISEASE)
        await cached.closures(["X"], EntityKind.TARGET)
        
        assert provider.closures.await_count == 2
    
    @pytest.mark.asyncio
    async def test_clear_forces_reload(self):
        provider = AsyncMock()
        provider.closures.return_value = {"EFO_A": ["EFO_B"]}
        cached = CachedClosureProvider(provider)
        
        await cached.closures(["EFO_A"], EntityKind.DISEASE)
        cached.clear()
        await cached.closures(["EFO_A"], EntityKind.DISEASE)
        
        assert provider.closures.await_count == 2
