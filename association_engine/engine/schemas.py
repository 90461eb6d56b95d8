"""
Query and result schemas of the association engine.

The query is a plain parameter struct: pydantic checks the shape, the
engine checks the semantics (bounds, exclusivity, known dimensions) and
raises its own ValidationError before anything is fetched.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from association_engine.domain.models import (
    AssociationScore,
    DatasourceScore,
    EntityKind,
    FacetCount,
)


# =============================================================================
# Input Schemas
# =============================================================================

class DatasourceSettingInput(BaseModel):
    """Request-level datasource setting."""
    id: str = Field(..., description="Datasource id, e.g. chembl")
    weight: float = Field(default=1.0, description="Weight (>= 0)")
    required: bool = Field(default=False, description="Exclude pairs without evidence from this datasource")


class AggregationFilterInput(BaseModel):
    """Request-level aggregation filter."""
    dimension: str = Field(..., description="Facet dimension, e.g. datatype")
    values: List[str] = Field(default_factory=list, description="Accepted values (OR)")


class PageInput(BaseModel):
    """Offset pagination settings with index and size."""
    index: int = 0
    size: int = 25


class AssociationQuery(BaseModel):
    """
    Description of one association query.
    """
    source_ids: List[str] = Field(..., description="Source entity ids (e.g. Ensembl gene ids)")
    source_kind: EntityKind = Field(default=EntityKind.TARGET)
    destination_ids: Optional[List[str]] = Field(
        default=None,
        description=(
            "Restrict destinations to these ids. With enable_indirect, their "
            "descendants (diseases) or interaction partners (targets) are also "
            "candidates and come back as rows of their own"
        ),
    )
    destination_kind: EntityKind = Field(default=EntityKind.DISEASE)
    enable_indirect: bool = Field(
        default=False,
        description=(
            "Expand ids along the ontology (diseases) or interactions (targets). "
            "Evidence for expanded sources is credited to the requested source ids; "
            "expanded destinations are returned under their own ids"
        ),
    )
    datasources: Optional[List[DatasourceSettingInput]] = None
    aggregation_filters: Optional[List[AggregationFilterInput]] = None
    facet_filters: Optional[List[str]] = Field(default=None, description="Facet ids to filter destinations by (OR)")
    destination_filter: Optional[str] = Field(default=None, description="Destination id prefix")
    threshold: Optional[float] = Field(default=None, description="Minimum aggregated score in [0, 1]")
    order_by_score: str = Field(default="desc", description="asc | desc")
    page: Optional[PageInput] = None
    cursor: Optional[str] = None
    size: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "source_ids": ["ENSG00000157764"],
                "destination_kind": "disease",
                "enable_indirect": True,
                "datasources": [{"id": "chembl", "weight": 1.0, "required": False}],
                "aggregation_filters": [{"dimension": "datatype", "values": ["known_drug"]}],
                "threshold": 0.1,
                "page": {"index": 0, "size": 25},
            }
        }


# =============================================================================
# Output Schemas
# =============================================================================

class AssociationRow(BaseModel):
    """Projection of one aggregated association."""
    source_id: str
    destination_id: str
    score: float
    datasource_scores: List[DatasourceScore] = []

    @classmethod
    def from_association(cls, association: AssociationScore) -> "AssociationRow":
        return cls(
            source_id=association.source_id,
            destination_id=association.destination_id,
            score=association.aggregated_score,
            datasource_scores=list(association.datasource_scores),
        )


class AssociationResult(BaseModel):
    """Result of one association query."""
    rows: List[AssociationRow] = []
    facets: List[FacetCount] = []
    count: int = Field(default=0, description="Total matching associations before pagination")
    cursor: Optional[str] = Field(default=None, description="Cursor of the next page; absent at the end")


class DatasourceInfo(BaseModel):
    """Default setting of one datasource."""
    id: str
    datatype: Optional[str] = None
    weight: float
    required: bool
