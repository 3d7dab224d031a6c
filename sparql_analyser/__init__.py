"""
SPARQL Query Analyser

Computes structural statistics (triples, filters, variables, resources,
modifiers and a normalized length) over parsed SPARQL queries, for use as
features describing a dataset of queries.
"""

__version__ = "1.0.0"
__service__ = "sparql-query-analyser"
