"""
Aggregation filter normalization and matching.

Filters are validated against a facet catalogue (dimension -> known values)
and evaluated against association facet values: OR within one filter,
AND across filters.
"""

from typing import Any, List, Mapping, Optional, Sequence

from association_engine.domain.models import AggregationFilter, AssociationScore
from association_engine.engine.errors import ValidationError


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def normalize_filters(
    raw_filters: Optional[Sequence[Any]],
    facet_catalog: Mapping[str, Sequence[str]],
) -> List[AggregationFilter]:
    """
    Validate raw aggregation filters into AggregationFilter values.

    Args:
        raw_filters: Items with `dimension` and `values` (models or dicts)
        facet_catalog: Known dimensions; a non-empty value list closes the
            dimension to those values, an empty list leaves it open

    Returns:
        Filters in the order given, values deduplicated in first-seen order

    Raises:
        ValidationError: Unknown dimension, unknown value of a closed
            dimension, or a filter without values
    """
    normalized = []
    for position, raw in enumerate(raw_filters or []):
        dimension = _field(raw, "dimension")
        if not isinstance(dimension, str) or not dimension.strip():
            raise ValidationError(f"aggregation filter #{position} has no dimension")
        dimension = dimension.strip()

        if dimension not in facet_catalog:
            known = ", ".join(sorted(facet_catalog))
            raise ValidationError(f"unknown aggregation dimension '{dimension}' (known: {known})")

        raw_values = _field(raw, "values") or []
        if isinstance(raw_values, str):
            raw_values = [raw_values]
        values = tuple(dict.fromkeys(str(v).strip() for v in raw_values if str(v).strip()))
        if not values:
            raise ValidationError(f"aggregation filter on '{dimension}' has no values")

        allowed = facet_catalog[dimension]
        if allowed:
            unknown = [v for v in values if v not in allowed]
            if unknown:
                raise ValidationError(f"unknown values for '{dimension}': {unknown}")

        normalized.append(AggregationFilter(dimension=dimension, values=values))

    return normalized


def matches(association: AssociationScore, aggregation_filter: AggregationFilter) -> bool:
    present = association.values_for(aggregation_filter.dimension)
    return any(value in present for value in aggregation_filter.values)


def apply_filters(
    associations: Sequence[AssociationScore],
    filters: Sequence[AggregationFilter],
    exclude_dimension: Optional[str] = None,
) -> List[AssociationScore]:
    """
    Keep associations matching every filter.

    exclude_dimension skips the filters on that dimension, which is how a
    facet's own selection is left out of its counts.
    """
    active = [f for f in filters if f.dimension != exclude_dimension]
    if not active:
        return list(associations)
    return [a for a in associations if all(matches(a, f) for f in active)]
