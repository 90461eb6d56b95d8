"""
Association Engine - Neo4j Initialization Script

Creates the evidence graph constraints and indexes.
Run this script before first use.

Usage:
    python scripts/init_neo4j.py
"""

import asyncio
import sys
from pathlib import Path

# Adjust import path for script execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from association_engine.config import settings
from association_engine.graph_db.neo4j_client import Neo4jClient

SCHEMA_PATH = Path(__file__).parent.parent / "association_engine" / "graph_db" / "schema.cypher"


def schema_statements(content: str):
    """Split a cypher file into statements, dropping comment lines."""
    lines = [line for line in content.splitlines() if not line.strip().startswith("//")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


async def init_neo4j():
    """
    Steps:
    1. Connect to Neo4j instance
    2. Execute schema.cypher to create constraints/indexes
    3. Verify connectivity
    """
    print("Initializing Neo4j database...")
    
    client = Neo4jClient(
        uri=settings.NEO4J_URI,
        user=settings.NEO4J_USER,
        password=settings.NEO4J_PASSWORD,
        database=settings.NEO4J_DATABASE,
    )
    
    try:
        await client.connect()
        print(f"Connected to Neo4j at {settings.NEO4J_URI}")
        
        if not SCHEMA_PATH.exists():
            print(f"Error: Schema file not found at {SCHEMA_PATH}")
            return
        
        for stmt in schema_statements(SCHEMA_PATH.read_text()):
            await client.execute_write(stmt)
            print(f"Executed: {stmt[:50]}...")
        
        print("Schema initialization complete.")
        
        if await client.health_check():
            print("Health check passed.")
        else:
            print("Warning: Health check failed.")
            
    finally:
        await client.close()
        print("Connection closed.")


if __name__ == "__main__":
    asyncio.run(init_neo4j())
