"""
Association Engine - Test Configuration

Shared fixtures: datasource defaults, in-memory collaborators and an
engine wired to them.
"""

import pytest

from association_engine.dal.memory import (
    InMemoryClosureProvider,
    InMemoryEvidenceStore,
    InMemoryFacetSearch,
)
from association_engine.domain.models import (
    AssociationScore,
    DatasourceScore,
    DatasourceSetting,
    EntityKind,
    EvidenceRow,
)
from association_engine.engine.engine import AssociationEngine, EngineConfig


DATATYPES = {
    "ds1": "genetic_association",
    "ds2": "known_drug",
    "ds3": "literature",
}


def evidence(source_id, destination_id, datasource_id, score, **annotations):
    """Shorthand EvidenceRow builder."""
    return EvidenceRow(
        source_id=source_id,
        destination_id=destination_id,
        datasource_id=datasource_id,
        score=score,
        annotations={k: list(v) for k, v in annotations.items()},
    )


def association(source_id, destination_id, score, **facet_values):
    """AssociationScore with a single datasource score equal to the aggregate."""
    return AssociationScore(
        source_id=source_id,
        destination_id=destination_id,
        datasource_scores=(DatasourceScore(datasource_id="ds1", score=score),),
        aggregated_score=score,
        facet_values={k: tuple(v) for k, v in facet_values.items()},
    )


@pytest.fixture
def default_datasources():
    """Three datasources with unit weights, none required."""
    return {
        ds: DatasourceSetting(datasource_id=ds, weight=1.0, required=False)
        for ds in DATATYPES
    }


@pytest.fixture
def engine_config(default_datasources):
    return EngineConfig(
        default_datasources=default_datasources,
        datatypes=DATATYPES,
        annotation_dimensions=("therapeuticArea",),
        default_page_size=10,
        max_page_size=50,
        fetch_timeout=1.0,
        deadline=2.0,
    )


@pytest.fixture
def evidence_rows():
    """
    ENSG1 has evidence for EFO1 (ds1, ds2), EFO2 (ds2) and EFO3 (ds3).
    ENSG2 has evidence for EFO1 (ds3) and for the descendant EFO1A (ds1).
    """
    return [
        evidence("ENSG1", "EFO1", "ds1", 0.8, therapeuticArea=["oncology"]),
        evidence("ENSG1", "EFO1", "ds2", 0.4, therapeuticArea=["oncology"]),
        evidence("ENSG1", "EFO2", "ds2", 0.6, therapeuticArea=["cardiology"]),
        evidence("ENSG1", "EFO3", "ds3", 0.3),
        evidence("ENSG2", "EFO1", "ds3", 0.5, therapeuticArea=["oncology"]),
        evidence("ENSG2", "EFO1A", "ds1", 0.9, therapeuticArea=["oncology"]),
    ]


@pytest.fixture
def store(evidence_rows):
    return InMemoryEvidenceStore(evidence_rows)


@pytest.fixture
def closures():
    """EFO1A descends from EFO1; ENSG1 interacts with ENSG2."""
    return InMemoryClosureProvider(
        disease_parents=[("EFO1A", "EFO1")],
        interactions=[("ENSG1", "ENSG2")],
    )


@pytest.fixture
def facet_search():
    return InMemoryFacetSearch({
        (EntityKind.DISEASE, "area:oncology"): ["EFO1", "EFO1A"],
        (EntityKind.DISEASE, "area:cardiology"): ["EFO2"],
    })


@pytest.fixture
def engine(store, closures, facet_search, engine_config):
    return AssociationEngine(store, closures, facet_search, engine_config)
