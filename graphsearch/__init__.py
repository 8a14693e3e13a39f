"""Keep an Elasticsearch index in sync with a Neo4j graph and resolve search hits back to graph entities."""

__version__ = "0.1.0"
