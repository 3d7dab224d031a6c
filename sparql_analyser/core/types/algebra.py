"""
Algebra model of a parsed SPARQL query.

Provides:
- Path variants: UnaryPath, BinaryPath, PropertyStep
- TriplePattern variants: BasicTriple, PathTriple, FilterPattern,
  SubQueryPattern, BindPattern
- GraphPattern: node of the pattern tree
- InlineData: VALUES block
- Query: root of one parsed document

Every class is a frozen dataclass. Ownership is a strict tree, so a
value is never shared between two parents. Expressions (FILTER, BIND,
HAVING, ORDER BY, GROUP BY, projections) are kept as SPARQL text: the
statistics only need to know they exist.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .terms import Term, Variable


# ============================================================================
# Property paths
# ============================================================================

class UnaryOperator(Enum):
    """Operators wrapping a single inner path."""
    INVERSE = '^'
    NEGATED = '!'
    ZERO_OR_MORE = '*'
    ONE_OR_MORE = '+'
    ZERO_OR_ONE = '?'


class BinaryOperator(Enum):
    """Operators composing two paths."""
    SEQUENCE = '/'
    ALTERNATIVE = '|'


class Path:
    """Base class of all property path nodes."""
    __slots__ = ()


@dataclass(frozen=True)
class PropertyStep(Path):
    """
    Terminal step of a path.

    `term` is the predicate IRI, or None for a placeholder step the
    parser could not bind (e.g. an inverse member of a negated set).
    """
    term: Optional[Term] = None


@dataclass(frozen=True)
class UnaryPath(Path):
    """Inverse, negated-set or cardinality wrapper around one path."""
    operator: UnaryOperator
    inner: Path


@dataclass(frozen=True)
class BinaryPath(Path):
    """
    Sequence or alternative of two paths.

    Chains are built left-deep: `a/b/c` is BinaryPath(BinaryPath(a, b), c).
    """
    operator: BinaryOperator
    left: Path
    right: Path


PATH_TYPES = (PropertyStep, UnaryPath, BinaryPath)


# ============================================================================
# Triple patterns
# ============================================================================

class TriplePattern:
    """Base class of the entries of GraphPattern.triple_patterns."""
    __slots__ = ()


@dataclass(frozen=True)
class BasicTriple(TriplePattern):
    """Plain subject-predicate-object pattern."""
    subject: Term
    predicate: Term
    object: Term

    def ends(self) -> Tuple[Term, Term]:
        """Subject and object, in that order."""
        return self.subject, self.object


@dataclass(frozen=True)
class PathTriple(TriplePattern):
    """Triple whose predicate position holds a property path."""
    subject: Term
    path: Path
    object: Term

    def ends(self) -> Tuple[Term, Term]:
        """Subject and object, in that order."""
        return self.subject, self.object


@dataclass(frozen=True)
class FilterPattern(TriplePattern):
    """FILTER constraint."""
    expression: str


@dataclass(frozen=True)
class SubQueryPattern(TriplePattern):
    """Nested SELECT inside a group."""
    query: 'Query'


@dataclass(frozen=True)
class BindPattern(TriplePattern):
    """BIND (expression AS ?var). Never counted as a triple, filter or resource."""
    expression: str
    variable: Variable


TRIPLE_PATTERN_TYPES = (BasicTriple, PathTriple, FilterPattern, SubQueryPattern, BindPattern)


# ============================================================================
# Graph patterns
# ============================================================================

class PatternKind(Enum):
    """How a GraphPattern is written; only the query writer looks at it."""
    GROUP = 'GROUP'
    OPTIONAL = 'OPTIONAL'
    UNION = 'UNION'
    MINUS = 'MINUS'
    GRAPH = 'GRAPH'
    SERVICE = 'SERVICE'


@dataclass(frozen=True)
class InlineData:
    """
    VALUES block.

    Each row has one entry per variable; None stands for UNDEF.
    """
    variables: Tuple[Variable, ...] = ()
    rows: Tuple[Tuple[Optional[Term], ...], ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class GraphPattern:
    """
    Node of the pattern tree.

    A UNION node keeps its branches in `child_patterns`. GRAPH and SERVICE
    nodes carry their graph or endpoint in `term`.
    """
    triple_patterns: Tuple[TriplePattern, ...] = ()
    child_patterns: Tuple['GraphPattern', ...] = ()
    inline_data: Optional[InlineData] = None
    kind: PatternKind = PatternKind.GROUP
    term: Optional[Term] = None
    silent: bool = False


# ============================================================================
# Query
# ============================================================================

class QueryType(Enum):
    SELECT = 'SELECT'
    ASK = 'ASK'
    CONSTRUCT = 'CONSTRUCT'
    DESCRIBE = 'DESCRIBE'


@dataclass(frozen=True)
class Projection:
    """SELECT item: a variable, optionally bound from an expression."""
    variable: Variable
    expression: Optional[str] = None


@dataclass(frozen=True)
class OrderCondition:
    """ORDER BY condition; `descending` is None when no ASC/DESC was written."""
    expression: str
    descending: Optional[bool] = None


@dataclass(frozen=True)
class Query:
    """
    Root of one parsed query document.

    Attributes:
        root_pattern: WHERE clause
        variables: distinct result variables, in projection order
        order_by: ORDER BY conditions (empty when absent)
        group_by: GROUP BY conditions, None when absent
        having: HAVING constraints, None when absent
        limit: LIMIT value, None when unset
        offset: OFFSET value, None when unset
        namespaces: declared prefix -> namespace IRI ('' is the default prefix), read-only
        base_uri: BASE declaration, if any
        query_type: SELECT / ASK / CONSTRUCT / DESCRIBE
        distinct: 'DISTINCT', 'REDUCED' or None
        projection: SELECT items as written
        select_all: True for SELECT *
        template: CONSTRUCT template
        describe_terms: DESCRIBE targets
        values: trailing VALUES clause
    """
    root_pattern: GraphPattern = field(default_factory=GraphPattern)
    variables: Tuple[Variable, ...] = ()
    order_by: Tuple[OrderCondition, ...] = ()
    group_by: Optional[Tuple[str, ...]] = None
    having: Optional[Tuple[str, ...]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    namespaces: Mapping[str, str] = field(default_factory=dict, hash=False)
    base_uri: Optional[str] = None
    query_type: QueryType = QueryType.SELECT
    distinct: Optional[str] = None
    projection: Tuple[Projection, ...] = ()
    select_all: bool = False
    template: Optional[GraphPattern] = None
    describe_terms: Tuple[Term, ...] = ()
    values: Optional[InlineData] = None

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, 'namespaces', MappingProxyType(dict(self.namespaces)))
