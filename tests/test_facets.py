"""
Association Engine - Facet Aggregation Tests

Run with: pytest tests/test_facets.py -v
"""

import pytest

from association_engine.domain.models import AggregationFilter
from association_engine.engine.facets import aggregate_facets, facet_dimensions

from conftest import association


@pytest.fixture
def associations():
    return [
        association("T", "D1", 0.9, datasource=["ds1"], datatype=["genetic_association"]),
        association("T", "D2", 0.8, datasource=["ds1", "ds2"], datatype=["genetic_association", "known_drug"]),
        association("T", "D3", 0.7, datasource=["ds2"], datatype=["known_drug"]),
        association("T", "D4", 0.6, datasource=["ds3"], datatype=["literature"]),
    ]


def counts(facets, dimension):
    return {f.value: f.count for f in facets if f.dimension == dimension}


class TestAggregateFacets:
    """Tests for OR-style facet counting."""
    
    def test_counts_without_filters(self, associations):
        facets = aggregate_facets(associations, ["datasource"])
        assert counts(facets, "datasource") == {"ds1": 2, "ds2": 2, "ds3": 1}
    
    def test_sorted_by_count_then_value(self, associations):
        facets = aggregate_facets(associations, ["datasource"])
        assert [(f.value, f.count) for f in facets] == [("ds1", 2), ("ds2", 2), ("ds3", 1)]
    
    def test_own_filter_excluded_from_own_counts(self, associations):
        filters = [AggregationFilter(dimension="datasource", values=("ds1",))]
        facets = aggregate_facets(associations, ["datasource", "datatype"], filters)
        
        # alternatives within the filtered dimension stay visible
        assert counts(facets, "datasource") == {"ds1": 2, "ds2": 2, "ds3": 1}
        # other dimensions see the datasource filter
        assert counts(facets, "datatype") == {"genetic_association": 2, "known_drug": 1}
    
    def test_other_filters_applied(self, associations):
        filters = [AggregationFilter(dimension="datatype", values=("known_drug",))]
        facets = aggregate_facets(associations, ["datasource"], filters)
        assert counts(facets, "datasource") == {"ds1": 1, "ds2": 2}
    
    def test_count_sum_at_least_matching_associations(self, associations):
        facets = aggregate_facets(associations, ["datasource"])
        by_value = counts(facets, "datasource")
        matching = [a for a in associations if {"ds1", "ds2"} & set(a.values_for("datasource"))]
        assert by_value["ds1"] + by_value["ds2"] >= len(matching)
    
    def test_count_sum_equal_when_mutually_exclusive(self, associations):
        exclusive = [associations[0], associations[2], associations[3]]
        by_value = counts(aggregate_facets(exclusive, ["datasource"]), "datasource")
        matching = [a for a in exclusive if {"ds1", "ds2"} & set(a.values_for("datasource"))]
        assert by_value["ds1"] + by_value["ds2"] == len(matching)
    
    def test_empty_input(self):
        assert aggregate_facets([], ["datasource"]) == []


class TestFacetDimensions:
    """Tests for facet output order."""
    
    def test_filtered_dimensions_first(self):
        filters = [AggregationFilter(dimension="therapeuticArea", values=("oncology",))]
        assert facet_dimensions(filters, ["datasource", "datatype"]) == [
            "therapeuticArea", "datasource", "datatype",
        ]
    
    def test_no_duplicates(self):
        filters = [AggregationFilter(dimension="datatype", values=("known_drug",))]
        assert facet_dimensions(filters, ["datasource", "datatype"]) == ["datatype", "datasource"]
