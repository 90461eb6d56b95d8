"""
Association Engine - Configuration Management

Centralized configuration using Pydantic Settings.
Connection strings, datasource defaults and engine limits are loaded
from environment variables (or a local .env file).

The engine itself never reads this module: the application builds an
immutable EngineConfig from these settings at startup and passes it in.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping

from pydantic_settings import BaseSettings

from association_engine.domain.models import DatasourceSetting


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        NEO4J_URI: Bolt URI of the evidence graph
        NEO4J_USER: Neo4j authentication username
        NEO4J_PASSWORD: Neo4j authentication password
        DATASOURCE_WEIGHTS: Default weight per datasource id
        REQUIRED_DATASOURCES: Datasources required unless the request overrides them
        DATASOURCE_DATATYPES: Datasource id -> datatype id (datatype facet)
        FACET_DIMENSIONS: Facet dimensions computed for every query
        ANNOTATION_DIMENSIONS: Open dimensions carried on evidence annotations
        MAX_FETCH_CONCURRENCY: Global cap on concurrent datasource fetches
    """

    # Neo4j Configuration
    NEO4J_URI: str = "bolt://localhost:7687"
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = ""  # Must be set via environment
    NEO4J_DATABASE: str = "neo4j"

    # Datasource defaults
    DATASOURCE_WEIGHTS: Dict[str, float] = {
        "ot_genetics_portal": 1.0,
        "gene_burden": 1.0,
        "eva": 1.0,
        "genomics_england": 1.0,
        "gene2phenotype": 1.0,
        "uniprot_literature": 1.0,
        "orphanet": 1.0,
        "clingen": 1.0,
        "cancer_gene_census": 1.0,
        "intogen": 1.0,
        "eva_somatic": 1.0,
        "cancer_biomarkers": 0.5,
        "chembl": 1.0,
        "crispr": 1.0,
        "crispr_screen": 1.0,
        "slapenrich": 0.5,
        "progeny": 0.5,
        "reactome": 1.0,
        "sysbio": 0.5,
        "europepmc": 0.2,
        "expression_atlas": 0.2,
        "impc": 0.2,
    }
    REQUIRED_DATASOURCES: List[str] = []
    DATASOURCE_DATATYPES: Dict[str, str] = {
        "ot_genetics_portal": "genetic_association",
        "gene_burden": "genetic_association",
        "eva": "genetic_association",
        "genomics_england": "genetic_association",
        "gene2phenotype": "genetic_association",
        "uniprot_literature": "genetic_association",
        "orphanet": "genetic_association",
        "clingen": "genetic_association",
        "cancer_gene_census": "somatic_mutation",
        "intogen": "somatic_mutation",
        "eva_somatic": "somatic_mutation",
        "cancer_biomarkers": "somatic_mutation",
        "chembl": "known_drug",
        "crispr": "affected_pathway",
        "crispr_screen": "affected_pathway",
        "slapenrich": "affected_pathway",
        "progeny": "affected_pathway",
        "reactome": "affected_pathway",
        "sysbio": "affected_pathway",
        "europepmc": "literature",
        "expression_atlas": "rna_expression",
        "impc": "animal_model",
    }

    # Faceting
    FACET_DIMENSIONS: List[str] = ["datasource", "datatype"]
    ANNOTATION_DIMENSIONS: List[str] = ["therapeuticArea", "targetClass"]

    # Pagination
    DEFAULT_PAGE_SIZE: int = 25
    MAX_PAGE_SIZE: int = 500

    # Fetch fan-out
    MAX_FETCH_CONCURRENCY: int = 8
    FETCH_TIMEOUT_SECONDS: float = 10.0
    QUERY_DEADLINE_SECONDS: float = 20.0

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    def default_datasources(self) -> Mapping[str, DatasourceSetting]:
        """Immutable default settings keyed by datasource id."""
        required = set(self.REQUIRED_DATASOURCES)
        defaults = {
            datasource_id: DatasourceSetting(
                datasource_id=datasource_id,
                weight=weight,
                required=datasource_id in required,
            )
            for datasource_id, weight in self.DATASOURCE_WEIGHTS.items()
        }
        return MappingProxyType(defaults)


settings = Settings()
