"""
Association Engine - Domain Models

Core request-scoped entities of the association engine.
Created at the start of one query resolution and discarded at the end;
none of them persist across requests.
"""

from enum import Enum
from typing import Dict, Iterable, List, Literal, Tuple

from pydantic import BaseModel, Field, model_validator

ScoreOrder = Literal["asc", "desc"]

# Ordered, deduplicated sequence of entity ids (insertion order kept for tie-breaking)
IdentifierSet = Tuple[str, ...]


def identifier_set(ids: Iterable[str]) -> IdentifierSet:
    """Deduplicate ids keeping first-seen order. Matching is exact and case-sensitive."""
    return tuple(dict.fromkeys(ids))


class EntityKind(str, Enum):
    """Kinds of entity an identifier can name."""
    TARGET = "target"
    DISEASE = "disease"
    DRUG = "drug"


class DatasourceSetting(BaseModel):
    """Inclusion and weighting of one datasource."""
    datasource_id: str = Field(..., min_length=1)
    weight: float = Field(default=1.0, ge=0.0)
    required: bool = False

    class Config:
        frozen = True


class EvidenceRow(BaseModel):
    """One raw evidence score as returned by the evidence store."""
    source_id: str
    destination_id: str
    datasource_id: str
    score: float
    annotations: Dict[str, List[str]] = Field(default_factory=dict)


class DatasourceScore(BaseModel):
    """Raw score of one datasource for an association."""
    datasource_id: str
    score: float = Field(..., ge=0.0, le=1.0)

    class Config:
        frozen = True


class AssociationScore(BaseModel):
    """
    Aggregated association between a source and a destination entity.

    aggregated_score is derived from datasource_scores and the resolved
    weights when the association is built and never set independently.
    """
    source_id: str
    destination_id: str
    datasource_scores: Tuple[DatasourceScore, ...]
    aggregated_score: float = Field(..., ge=0.0, le=1.0)
    facet_values: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    class Config:
        frozen = True

    @property
    def per_datasource(self) -> Dict[str, float]:
        return {ds.datasource_id: ds.score for ds in self.datasource_scores}

    def values_for(self, dimension: str) -> Tuple[str, ...]:
        """Values of a (multi-valued) facet dimension for this association."""
        return self.facet_values.get(dimension, ())


class AggregationFilter(BaseModel):
    """Matches when any of the association's values for `dimension` is in `values`."""
    dimension: str
    values: Tuple[str, ...]

    class Config:
        frozen = True


class FacetCount(BaseModel):
    """Number of associations carrying `value` for `dimension`."""
    dimension: str
    value: str
    count: int = Field(..., ge=0)


class Pagination(BaseModel):
    """Offset pagination; bounds are checked by the pagination engine."""
    index: int = 0
    size: int = 25
    max_size: int = 500


class Cursor(BaseModel):
    """Decoded resume position: the last emitted sort key under one ordering."""
    order: ScoreOrder = "desc"
    score: float
    source_id: str
    destination_id: str

    class Config:
        frozen = True


class IndirectExpansionResult(BaseModel):
    """
    Direct ids plus the ids reached through their precomputed closures.

    closures maps each direct id to the closure members it contributed,
    which lets evidence found for an expanded id be attributed back.
    """
    direct: IdentifierSet
    expanded: IdentifierSet
    closures: Dict[str, IdentifierSet] = Field(default_factory=dict)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def direct_within_expanded(self) -> "IndirectExpansionResult":
        missing = set(self.direct) - set(self.expanded)
        if missing:
            raise ValueError(f"direct ids missing from expanded set: {sorted(missing)}")
        return self

    def attribution(self) -> Dict[str, List[str]]:
        """Map every expanded id to the direct ids it is attributed to, in direct order."""
        owners: Dict[str, List[str]] = {}
        for direct_id in self.direct:
            for member in (direct_id, *self.closures.get(direct_id, ())):
                bucket = owners.setdefault(member, [])
                if direct_id not in bucket:
                    bucket.append(direct_id)
        return owners

    @property
    def is_indirect(self) -> bool:
        return len(self.expanded) > len(self.direct)

