"""
Association Engine - Aggregation Filter Tests

Run with: pytest tests/test_filters.py -v
"""

import pytest

from association_engine.domain.models import AggregationFilter
from association_engine.engine.errors import ValidationError
from association_engine.engine.filters import apply_filters, normalize_filters
from association_engine.engine.schemas import AggregationFilterInput

from conftest import association


CATALOG = {
    "datasource": ["ds1", "ds2", "ds3"],
    "datatype": ["genetic_association", "known_drug"],
    "therapeuticArea": [],
}


class TestNormalizeFilters:
    """Tests for filter validation."""
    
    def test_none_is_no_filters(self):
        assert normalize_filters(None, CATALOG) == []
    
    def test_order_kept_and_values_deduplicated(self):
        filters = normalize_filters(
            [
                {"dimension": "datatype", "values": ["known_drug", "known_drug"]},
                AggregationFilterInput(dimension="datasource", values=["ds2", "ds1", "ds2"]),
            ],
            CATALOG,
        )
        assert [f.dimension for f in filters] == ["datatype", "datasource"]
        assert filters[0].values == ("known_drug",)
        assert filters[1].values == ("ds2", "ds1")
    
    def test_unknown_dimension_rejected(self):
        with pytest.raises(ValidationError, match="unknown aggregation dimension"):
            normalize_filters([{"dimension": "colour", "values": ["red"]}], CATALOG)
    
    def test_empty_values_rejected(self):
        with pytest.raises(ValidationError, match="no values"):
            normalize_filters([{"dimension": "datasource", "values": []}], CATALOG)
        with pytest.raises(ValidationError, match="no values"):
            normalize_filters([{"dimension": "datasource", "values": ["  "]}], CATALOG)
    
    def test_missing_dimension_rejected(self):
        with pytest.raises(ValidationError):
            normalize_filters([{"values": ["ds1"]}], CATALOG)
    
    def test_unknown_value_of_closed_dimension_rejected(self):
        with pytest.raises(ValidationError, match="unknown values"):
            normalize_filters([{"dimension": "datasource", "values": ["ds9"]}], CATALOG)
    
    def test_open_dimension_accepts_any_value(self):
        filters = normalize_filters([{"dimension": "therapeuticArea", "values": ["anything"]}], CATALOG)
        assert filters[0].values == ("anything",)


class TestApplyFilters:
    """Tests for OR-within / AND-across matching."""
    
    @pytest.fixture
    def associations(self):
        return [
            association("T", "D1", 0.9, datasource=["ds1"], datatype=["genetic_association"]),
            association("T", "D2", 0.8, datasource=["ds1", "ds2"], datatype=["genetic_association", "known_drug"]),
            association("T", "D3", 0.7, datasource=["ds2"], datatype=["known_drug"]),
        ]
    
    def test_or_within_filter(self, associations):
        only = [AggregationFilter(dimension="datasource", values=("ds1", "ds2"))]
        assert len(apply_filters(associations, only)) == 3
    
    def test_and_across_filters(self, associations):
        filters = [
            AggregationFilter(dimension="datasource", values=("ds1",)),
            AggregationFilter(dimension="datatype", values=("known_drug",)),
        ]
        assert [a.destination_id for a in apply_filters(associations, filters)] == ["D2"]
    
    def test_excluded_dimension_ignored(self, associations):
        filters = [
            AggregationFilter(dimension="datasource", values=("ds1",)),
            AggregationFilter(dimension="datatype", values=("known_drug",)),
        ]
        kept = apply_filters(associations, filters, exclude_dimension="datasource")
        assert [a.destination_id for a in kept] == ["D2", "D3"]
    
    def test_association_without_dimension_never_matches(self, associations):
        filters = [AggregationFilter(dimension="therapeuticArea", values=("oncology",))]
        assert apply_filters(associations, filters) == []
