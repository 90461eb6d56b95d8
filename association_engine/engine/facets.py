"""
Facet aggregation over the filtered, unpaginated association set.

Counts are OR-style: the counts of a dimension ignore that dimension's own
filter, so a client can show how many results each alternative selection
within the facet would give.
"""

from collections import Counter
from typing import List, Sequence

from association_engine.domain.models import AggregationFilter, AssociationScore, FacetCount
from association_engine.engine.filters import apply_filters


def facet_dimensions(filters: Sequence[AggregationFilter], defaults: Sequence[str]) -> List[str]:
    """Filtered dimensions in filter order, then the default dimensions not yet listed."""
    ordered = [f.dimension for f in filters] + list(defaults)
    return list(dict.fromkeys(ordered))


def aggregate_facets(
    associations: Sequence[AssociationScore],
    dimensions: Sequence[str],
    filters: Sequence[AggregationFilter] = (),
) -> List[FacetCount]:
    """
    Count associations per (dimension, value).

    Args:
        associations: Associations after score threshold, before aggregation
            filters and pagination
        dimensions: Dimensions to count, in output order
        filters: Active aggregation filters

    Returns:
        One FacetCount per distinct value observed, grouped by dimension,
        most frequent first (ties by value)
    """
    facets: List[FacetCount] = []
    for dimension in dict.fromkeys(dimensions):
        scope = apply_filters(associations, filters, exclude_dimension=dimension)

        counter: Counter = Counter()
        for association in scope:
            counter.update(set(association.values_for(dimension)))

        for value, count in sorted(counter.items(), key=lambda item: (-item[1], item[0])):
            facets.append(FacetCount(dimension=dimension, value=value, count=count))

    return facets
