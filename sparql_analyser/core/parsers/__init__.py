"""
SPARQL parsing into the algebra model.
"""

from sparql_analyser.core.parsers.sparql_parser import SparqlQueryParser
from sparql_analyser.core.parsers.tree_builder import TreeBuilder

__all__ = ['SparqlQueryParser', 'TreeBuilder']
