"""
Association Engine - Graph Queries

Parameterized Cypher used by the Neo4j data access layer.

Graph model:
    (:Target)-[:HAS_EVIDENCE {datasource, score}]->(:Disease)
    (:Disease)-[:DESCENDANT_OF]->(:Disease)
    (:Target)-[:INTERACTS_WITH]-(:Target)
    (:Facet)-[:CONTAINS]->(:Target|:Disease)

Usage:
    from association_engine.graph_db.queries import AssociationQueries
    
    rows = await neo4j_client.execute_read(
        AssociationQueries.FETCH_EVIDENCE,
        {
            "datasource": "chembl",
            "source_ids": ["ENSG00000157764"],
            "destination_ids": None,
            "source_label": "Target",
            "destination_label": "Disease",
        },
    )
"""


class AssociationQueries:
    """
    Collection of parameterized Cypher queries.
    
    Query names follow VERB_NOUN pattern.
    """
    
    # =========================================================================
    # Evidence
    # =========================================================================
    
    # Evidence edges run target -> disease; the match is undirected and the
    # labels pick the side, so disease-sourced queries read the same edges.
    # $destination_ids may be null (no destination restriction)
    FETCH_EVIDENCE = """
        MATCH (s)-[e:HAS_EVIDENCE {datasource: $datasource}]-(d)
        WHERE $source_label IN labels(s)
          AND $destination_label IN labels(d)
          AND s.id IN $source_ids
          AND ($destination_ids IS NULL OR d.id IN $destination_ids)
        RETURN s.id AS source_id,
               d.id AS destination_id,
               e.datasource AS datasource_id,
               e.score AS score,
               coalesce(d.therapeutic_areas, s.therapeutic_areas, []) AS therapeutic_areas,
               coalesce(s.target_classes, d.target_classes, []) AS target_classes
    """
    
    MERGE_EVIDENCE = """
        MERGE (s:Target {id: $source_id})
        MERGE (d:Disease {id: $destination_id})
        MERGE (s)-[e:HAS_EVIDENCE {datasource: $datasource}]->(d)
        SET e.score = $score
    """
    
    # =========================================================================
    # Closures
    # =========================================================================
    
    FIND_DISEASE_DESCENDANTS = """
        MATCH (a:Disease)
        WHERE a.id IN $ids
        OPTIONAL MATCH (c:Disease)-[:DESCENDANT_OF*1..]->(a)
        RETURN a.id AS id, collect(DISTINCT c.id) AS members
    """
    
    FIND_TARGET_PARTNERS = """
        MATCH (t:Target)
        WHERE t.id IN $ids
        OPTIONAL MATCH (t)-[:INTERACTS_WITH*1..]-(p:Target)
        WHERE p <> t
        RETURN t.id AS id, collect(DISTINCT p.id) AS members
    """
    
    MERGE_DISEASE_PARENT = """
        MERGE (c:Disease {id: $child_id})
        MERGE (p:Disease {id: $parent_id})
        MERGE (c)-[:DESCENDANT_OF]->(p)
    """
    
    MERGE_INTERACTION = """
        MERGE (a:Target {id: $left_id})
        MERGE (b:Target {id: $right_id})
        MERGE (a)-[:INTERACTS_WITH]->(b)
    """
    
    # =========================================================================
    # Facets
    # =========================================================================
    
    FIND_FACET_MEMBERS = """
        MATCH (f:Facet)-[:CONTAINS]->(m)
        WHERE f.id IN $facet_ids AND $label IN labels(m)
        RETURN f.id AS facet_id, collect(DISTINCT m.id) AS members
    """
    
    MERGE_FACET_MEMBER = """
        MERGE (f:Facet {id: $facet_id})
        WITH f
        MATCH (m {id: $member_id})
        MERGE (f)-[:CONTAINS]->(m)
    """
