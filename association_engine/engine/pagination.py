"""
Stable ordering, offset pagination and cursor slicing.

Sort key: (aggregated_score desc, source_id asc, destination_id asc) - a
total order even with tied scores. With order="asc" only the score
direction flips.
"""

from bisect import bisect_right
from typing import List, Optional, Sequence, Tuple

from association_engine.domain.models import AssociationScore, Cursor, Pagination, ScoreOrder
from association_engine.engine.errors import ValidationError

SortKey = Tuple[float, str, str]


def sort_key(score: float, source_id: str, destination_id: str, order: ScoreOrder = "desc") -> SortKey:
    signed = -score if order == "desc" else score
    return (signed, source_id, destination_id)


def association_key(association: AssociationScore, order: ScoreOrder = "desc") -> SortKey:
    return sort_key(association.aggregated_score, association.source_id, association.destination_id, order)


def sort_associations(
    associations: Sequence[AssociationScore],
    order: ScoreOrder = "desc",
) -> List[AssociationScore]:
    return sorted(associations, key=lambda a: association_key(a, order))


def effective_page_size(size: int, max_size: int) -> int:
    """Clamp a requested size to max_size; sizes <= 0 are rejected."""
    if max_size <= 0:
        raise ValidationError(f"max page size must be positive, got {max_size}")
    if size <= 0:
        raise ValidationError(f"page size must be positive, got {size}")
    return min(size, max_size)


def paginate(
    associations: Sequence[AssociationScore],
    pagination: Pagination,
    order: ScoreOrder = "desc",
) -> List[AssociationScore]:
    """
    Offset-mode slice of the stably ordered associations.

    An index past the end yields an empty page, not an error.

    Raises:
        ValidationError: If index < 0 or size <= 0
    """
    if pagination.index < 0:
        raise ValidationError(f"page index must be >= 0, got {pagination.index}")
    size = effective_page_size(pagination.size, pagination.max_size)

    start = pagination.index * size
    ordered = sort_associations(associations, order)
    return ordered[start:start + size]


def next_cursor(
    associations: Sequence[AssociationScore],
    cursor: Optional[Cursor],
    size: int,
    order: ScoreOrder = "desc",
    max_size: int = 500,
) -> Tuple[List[AssociationScore], Optional[Cursor]]:
    """
    Cursor-mode slice: the page following `cursor` and the cursor after it.

    Args:
        associations: Full result set (any order)
        cursor: Decoded cursor, or None to start from the beginning
        size: Page size (clamped to max_size)
        order: Score ordering the cursor belongs to

    Returns:
        (page, next) where next is None once the results are exhausted
    """
    size = effective_page_size(size, max_size)
    ordered = sort_associations(associations, order)

    start = 0
    if cursor is not None:
        keys = [association_key(a, order) for a in ordered]
        start = bisect_right(keys, sort_key(cursor.score, cursor.source_id, cursor.destination_id, order))

    page = ordered[start:start + size]
    if not page or start + size >= len(ordered):
        return page, None

    last = page[-1]
    return page, Cursor(
        order=order,
        score=last.aggregated_score,
        source_id=last.source_id,
        destination_id=last.destination_id,
    )
