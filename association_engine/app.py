"""
Association Engine - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- CORS and request middleware
- Association routes
- Neo4j lifecycle management and engine wiring
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from association_engine.config import settings
from association_engine.dal.neo4j_dal import Neo4jClosureProvider, Neo4jEvidenceStore, Neo4jFacetSearch
from association_engine.engine.engine import AssociationEngine, EngineConfig
from association_engine.engine.expander import CachedClosureProvider
from association_engine.engine.routes import router as associations_router
from association_engine.gateway.middleware import RequestContextMiddleware
from association_engine.graph_db.neo4j_client import Neo4jClient
from association_engine.logger import get_logger

logger = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    
    Startup:
        - Connect the Neo4j pool
        - Build the engine from settings (skipped when one is already attached)
    
    Shutdown:
        - Close the Neo4j pool
    """
    app.state.neo4j = None
    
    if getattr(app.state, "engine", None) is None:
        client = Neo4jClient(
            uri=settings.NEO4J_URI,
            user=settings.NEO4J_USER,
            password=settings.NEO4J_PASSWORD,
            database=settings.NEO4J_DATABASE,
        )
        await client.connect()
        app.state.neo4j = client
        
        app.state.engine = AssociationEngine(
            store=Neo4jEvidenceStore(client),
            closures=CachedClosureProvider(Neo4jClosureProvider(client)),
            facet_search=Neo4jFacetSearch(client),
            config=EngineConfig.from_settings(settings),
            limiter=asyncio.Semaphore(settings.MAX_FETCH_CONCURRENCY),
        )
        logger.info("association engine ready", extra={"datasources": len(settings.DATASOURCE_WEIGHTS)})
    
    yield
    
    if app.state.neo4j:
        await app.state.neo4j.close()


app = FastAPI(
    title="Association Engine",
    description="Target-disease association and evidence aggregation service",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(associations_router, prefix="/api/v1", tags=["associations"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns service status and connection states.
    """
    neo4j_healthy = False
    if getattr(app.state, "neo4j", None):
        neo4j_healthy = await app.state.neo4j.health_check()
    
    return {
        "status": "healthy",
        "version": VERSION,
        "services": {
            "engine": getattr(app.state, "engine", None) is not None,
            "neo4j": neo4j_healthy,
        },
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Association Engine",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }
