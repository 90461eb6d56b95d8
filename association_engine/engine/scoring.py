"""
Score combination for a single (source, destination) pair.

Combines per-datasource raw scores into one aggregated score:

    c_i = w_i * s_i                      (weighted contribution)
    sort contributions descending        (ties: lower datasource id first)
    aggregated = c_1 + sum_{i>1} c_i / i (diminishing-returns harmonic sum)
    clamp to [0, 1]

The strongest datasource contributes fully and every further datasource
contributes less, so corroboration is rewarded without many weak sources
outweighing a strong one.

Design: Pure functions - no I/O, no shared state.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from association_engine.domain.models import (
    AssociationScore,
    DatasourceScore,
    DatasourceSetting,
)
from association_engine.engine.weights import setting_for


DATASOURCE_DIMENSION = "datasource"
DATATYPE_DIMENSION = "datatype"


def clamp_unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def ranked_contributions(
    per_datasource: Mapping[str, float],
    weights: Mapping[str, DatasourceSetting],
) -> List[Tuple[str, float]]:
    """
    Weighted contributions of the datasources that count, strongest first.

    A datasource counts when its weighted contribution is > 0; a zero
    score is the same as no evidence.
    """
    contributions = []
    for datasource_id, raw_score in per_datasource.items():
        contribution = setting_for(weights, datasource_id).weight * clamp_unit(raw_score)
        if contribution <= 0:
            continue
        contributions.append((datasource_id, contribution))

    contributions.sort(key=lambda item: (-item[1], item[0]))
    return contributions


def combine_scores(
    per_datasource: Mapping[str, float],
    weights: Mapping[str, DatasourceSetting],
) -> Optional[float]:
    """
    Combine the datasource scores of one pair.

    Args:
        per_datasource: Raw score (0..1) per datasource id
        weights: Resolved datasource settings

    Returns:
        Aggregated score in (0, 1], or None when the pair is excluded:
        a required datasource with weight > 0 has no (or a zero) score,
        or no datasource contributes at all.
    """
    for setting in weights.values():
        if not setting.required or setting.weight <= 0:
            continue
        if clamp_unit(per_datasource.get(setting.datasource_id, 0.0)) <= 0:
            return None

    contributions = ranked_contributions(per_datasource, weights)
    if not contributions:
        return None

    aggregated = 0.0
    for rank, (_, contribution) in enumerate(contributions, start=1):
        aggregated += contribution / rank

    return clamp_unit(aggregated)


def build_association(
    source_id: str,
    destination_id: str,
    per_datasource: Mapping[str, float],
    weights: Mapping[str, DatasourceSetting],
    datatypes: Mapping[str, str],
    annotations: Optional[Mapping[str, Sequence[str]]] = None,
) -> Optional[AssociationScore]:
    """
    Build the aggregated association for one pair, or None if it is excluded.

    Facet values are derived here too: the contributing datasources, their
    datatypes and any annotation dimensions carried by the evidence rows.
    """
    aggregated = combine_scores(per_datasource, weights)
    if aggregated is None:
        return None

    contributing = [ds for ds, _ in ranked_contributions(per_datasource, weights)]
    facet_values: Dict[str, Tuple[str, ...]] = {
        dimension: tuple(dict.fromkeys(values))
        for dimension, values in (annotations or {}).items()
    }
    facet_values[DATASOURCE_DIMENSION] = tuple(sorted(contributing))
    facet_values[DATATYPE_DIMENSION] = tuple(
        sorted({datatypes[ds] for ds in contributing if ds in datatypes})
    )

    return AssociationScore(
        source_id=source_id,
        destination_id=destination_id,
        datasource_scores=tuple(
            DatasourceScore(datasource_id=ds, score=clamp_unit(score))
            for ds, score in sorted(per_datasource.items())
        ),
        aggregated_score=aggregated,
        facet_values=facet_values,
    )
