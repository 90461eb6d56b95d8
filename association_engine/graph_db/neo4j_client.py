"""
Association Engine - Neo4j Client

Async client for the evidence graph.
All Cypher is issued through this client.

Architecture:
- Connection pooling through the official async driver
- Results returned as plain dicts
- Driver errors propagate to the caller (the DAL maps them)
"""

from typing import List, Dict, Any, Optional
from contextlib import asynccontextmanager

from neo4j import AsyncGraphDatabase, AsyncDriver, AsyncSession

from association_engine.logger import get_logger

logger = get_logger(__name__)


class Neo4jClient:
    """
    Async Neo4j client with connection pooling.
    
    Usage:
        client = Neo4jClient("bolt://localhost:7687", password="secret")
        await client.connect()
        
        rows = await client.execute_read(AssociationQueries.FETCH_EVIDENCE, params)
        
        await client.close()
    """
    
    def __init__(
        self, 
        uri: str,
        user: str = "neo4j",
        password: str = "",
        database: str = "neo4j"
    ):
        """
        Args:
            uri: Bolt URI for Neo4j instance
            user: Authentication username
            password: Authentication password
            database: Target database name
        """
        self._uri = uri
        self._user = user
        self._password = password
        self._database = database
        self._driver: Optional[AsyncDriver] = None
    
    @property
    def connected(self) -> bool:
        return self._driver is not None
    
    async def connect(self) -> None:
        """
        Establish connection pool to Neo4j.
        
        Call this during application startup.
        """
        self._driver = AsyncGraphDatabase.driver(
            self._uri,
            auth=(self._user, self._password),
        )
        await self._driver.verify_connectivity()
        logger.info("neo4j connected", extra={"uri": self._uri, "database": self._database})
    
    async def close(self) -> None:
        """Close all connections in the pool."""
        if self._driver:
            await self._driver.close()
            self._driver = None
    
    @asynccontextmanager
    async def session(self) -> AsyncSession:
        """
        Get a session from the connection pool.
        
        Raises:
            RuntimeError: If connect() has not been called
        """
        if not self._driver:
            raise RuntimeError("Neo4j client not connected. Call connect() first.")
        
        session = self._driver.session(database=self._database)
        try:
            yield session
        finally:
            await session.close()
    
    async def execute_read(self, query: str, params: Dict[str, Any] = None) -> List[Dict]:
        """
        Execute a read query and return all records as dicts.
        """
        async with self.session() as session:
            result = await session.run(query, params or {})
            return await result.data()
    
    async def execute_write(self, query: str, params: Dict[str, Any] = None) -> Dict:
        """
        Execute a write query.
        
        Returns:
            Counters of the write operation
        """
        async with self.session() as session:
            result = await session.run(query, params or {})
            summary = await result.consume()
            return {
                "nodes_created": summary.counters.nodes_created,
                "relationships_created": summary.counters.relationships_created,
                "properties_set": summary.counters.properties_set,
            }
    
    async def health_check(self) -> bool:
        """True if connected and responsive."""
        try:
            async with self.session() as session:
                await session.run("RETURN 1")
            return True
        except Exception as e:
            logger.warning("neo4j health check failed", extra={"error": str(e)})
            return False
