"""
Batch analysis of stored SPARQL queries.
"""
