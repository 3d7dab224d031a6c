"""
Data types for query analysis.

Provides:
- Terms: Variable, IRI, Literal, BlankNode
- Algebra model: Query, GraphPattern, triple pattern and path variants
- QueryRecord: stored query handed to the batch runner
- find_invariant_violations: debug-time tree check
"""

from .terms import Variable, IRI, Literal, BlankNode, is_resource
from .algebra import (
    PATH_TYPES, TRIPLE_PATTERN_TYPES,
    Path, PropertyStep, UnaryPath, BinaryPath, UnaryOperator, BinaryOperator,
    TriplePattern, BasicTriple, PathTriple, FilterPattern, SubQueryPattern, BindPattern,
    GraphPattern, PatternKind, InlineData,
    Query, QueryType, Projection, OrderCondition,
)
from .query_record import QueryRecord
from .validation import find_invariant_violations

__all__ = [
    'Variable', 'IRI', 'Literal', 'BlankNode', 'is_resource',
    'PATH_TYPES', 'TRIPLE_PATTERN_TYPES',
    'Path', 'PropertyStep', 'UnaryPath', 'BinaryPath', 'UnaryOperator', 'BinaryOperator',
    'TriplePattern', 'BasicTriple', 'PathTriple', 'FilterPattern', 'SubQueryPattern', 'BindPattern',
    'GraphPattern', 'PatternKind', 'InlineData',
    'Query', 'QueryType', 'Projection', 'OrderCondition',
    'QueryRecord', 'find_invariant_violations',
]
