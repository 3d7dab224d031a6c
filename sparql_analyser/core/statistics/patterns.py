"""
Recursive passes over the pattern tree.

Each pass is a free function over one GraphPattern and returns its count.
Child patterns and subqueries are summed through return values only, so
the passes can be run in any order and on any subtree.
"""

from typing import List

from sparql_analyser.core.types.algebra import (
    BasicTriple, BindPattern, FilterPattern, GraphPattern, PathTriple,
    Query, SubQueryPattern, TriplePattern,
)
from sparql_analyser.core.types.terms import Variable, is_resource
from sparql_analyser.core.statistics.paths import count_path_resources


def count_triples(pattern: GraphPattern) -> int:
    """
    Count basic and property-path triples.

    Filters and BINDs add nothing; a subquery adds the triples of its own
    root pattern rather than 1 for the wrapper.
    """
    triples = sum(count_triples(child) for child in pattern.child_patterns)

    for triple in pattern.triple_patterns:
        if isinstance(triple, (BasicTriple, PathTriple)):
            triples += 1
        elif isinstance(triple, SubQueryPattern):
            triples += count_triples(triple.query.root_pattern)

    return triples


def count_filters(pattern: GraphPattern) -> int:
    """Count FILTER constraints, including those of nested subqueries."""
    filters = sum(count_filters(child) for child in pattern.child_patterns)

    for triple in pattern.triple_patterns:
        if isinstance(triple, FilterPattern):
            filters += 1
        elif isinstance(triple, SubQueryPattern):
            filters += count_filters(triple.query.root_pattern)

    return filters


def count_resources(pattern: GraphPattern, include_predicates: bool = True) -> int:
    """
    Count bound terms (IRIs and literals) used by the patterns.

    Args:
        pattern: Pattern tree to analyse
        include_predicates: Also count predicate resources (bound
            predicates, path steps) and VALUES rows. With False only
            subjects and objects are counted.

    Returns:
        Number of resources
    """
    resources = sum(
        count_resources(child, include_predicates) for child in pattern.child_patterns
    )

    for triple in pattern.triple_patterns:
        resources += _triple_resources(triple, include_predicates)

    if include_predicates and pattern.inline_data is not None:
        resources += pattern.inline_data.row_count

    return resources


def _triple_resources(triple: TriplePattern, include_predicates: bool) -> int:
    if isinstance(triple, SubQueryPattern):
        return count_resources(triple.query.root_pattern, include_predicates)

    if isinstance(triple, BasicTriple):
        resources = sum(1 for term in triple.ends() if is_resource(term))
        if include_predicates and is_resource(triple.predicate):
            resources += 1
        return resources

    if isinstance(triple, PathTriple):
        resources = sum(1 for term in triple.ends() if is_resource(term))
        if include_predicates:
            resources += count_path_resources(triple.path)
        return resources

    # FILTER and BIND
    return 0


def count_result_variables(query: Query) -> int:
    """Number of distinct result variables of this query only."""
    return len(set(query.variables))


def collect_pattern_variables(pattern: GraphPattern) -> List[Variable]:
    """
    Variables in scope of a pattern, in order of first appearance.

    A subquery only exposes its result variables. Used for SELECT * and
    for query forms without a projection.
    """
    seen: List[Variable] = []
    _collect_variables(pattern, seen)
    return seen


def _collect_variables(pattern: GraphPattern, seen: List[Variable]) -> None:
    def add(term):
        if isinstance(term, Variable) and term not in seen:
            seen.append(term)

    for triple in pattern.triple_patterns:
        if isinstance(triple, BasicTriple):
            add(triple.subject)
            add(triple.predicate)
            add(triple.object)
        elif isinstance(triple, PathTriple):
            add(triple.subject)
            add(triple.object)
        elif isinstance(triple, BindPattern):
            add(triple.variable)
        elif isinstance(triple, SubQueryPattern):
            for variable in triple.query.variables:
                add(variable)

    if pattern.inline_data is not None:
        for variable in pattern.inline_data.variables:
            add(variable)

    if pattern.term is not None:
        add(pattern.term)

    for child in pattern.child_patterns:
        _collect_variables(child, seen)
