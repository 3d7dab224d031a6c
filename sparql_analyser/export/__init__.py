"""
Export of query statistics as SPARQL update files.
"""

from sparql_analyser.export.update_writer import (
    UpdateWriter,
    render_benchmark_prefixes,
    render_insert,
    render_query_triples,
)

__all__ = ['UpdateWriter', 'render_benchmark_prefixes', 'render_insert', 'render_query_triples']
