"""
Association Engine - API Routes

Thin HTTP boundary over the association engine.

Endpoints:
    POST /associations             - Resolve an association query
    GET  /associations/datasources - Default datasource settings
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from association_engine.engine.engine import AssociationEngine
from association_engine.engine.errors import EngineError, InvalidCursorError, StoreError, ValidationError
from association_engine.engine.schemas import AssociationQuery, AssociationResult, DatasourceInfo


router = APIRouter()

# Engine error kind -> HTTP status
STATUS_BY_KIND = {
    ValidationError.kind: 422,
    InvalidCursorError.kind: 400,
    StoreError.kind: 502,
}


def get_engine(request: Request) -> AssociationEngine:
    """Engine attached to the application at startup."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Association engine is not available")
    return engine


def engine_error_response(error: EngineError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND.get(error.kind, 500), detail=error.to_dict())


@router.post("/associations", response_model=AssociationResult, summary="Resolve Associations")
async def resolve_associations(
    query: AssociationQuery,
    engine: AssociationEngine = Depends(get_engine),
):
    """
    Aggregate evidence into scored associations.

    Returns one page of rows (offset or cursor mode), facet counts over
    the whole filtered result and the total count before pagination.
    """
    try:
        return await engine.resolve(query)
    except EngineError as e:
        raise engine_error_response(e)


@router.get("/associations/datasources", response_model=List[DatasourceInfo], summary="List Datasources")
async def list_datasources(engine: AssociationEngine = Depends(get_engine)):
    """Default datasource weights and datatypes."""
    return engine.datasources()
