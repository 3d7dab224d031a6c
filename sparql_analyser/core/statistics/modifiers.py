"""
Modifier clause passes.

Every modifier gets its own pass. A pass checks the clause on the query
it is given, then walks the pattern tree looking for subqueries and
applies itself to each of them, so an inner ORDER BY or LIMIT is counted
independently of the outer one.
"""

from typing import Callable

from sparql_analyser.core.types.algebra import GraphPattern, Query, SubQueryPattern

ModifierPredicate = Callable[[Query], bool]


def has_order_by(query: Query) -> bool:
    return bool(query.order_by)


def has_limit(query: Query) -> bool:
    return query.limit is not None and query.limit >= 0


def has_having(query: Query) -> bool:
    return query.having is not None


def has_offset(query: Query) -> bool:
    return query.offset is not None and query.offset > 0


def has_group_by(query: Query) -> bool:
    return query.group_by is not None


def count_modifier(query: Query, predicate: ModifierPredicate) -> int:
    """
    Count queries (this one and all nested subqueries) for which
    `predicate` holds.
    """
    modifiers = _count_in_subqueries(query.root_pattern, predicate)

    if predicate(query):
        modifiers += 1

    return modifiers


def _count_in_subqueries(pattern: GraphPattern, predicate: ModifierPredicate) -> int:
    modifiers = sum(
        _count_in_subqueries(child, predicate) for child in pattern.child_patterns
    )

    for triple in pattern.triple_patterns:
        if isinstance(triple, SubQueryPattern):
            modifiers += count_modifier(triple.query, predicate)

    return modifiers


def count_order_bys(query: Query) -> int:
    return count_modifier(query, has_order_by)


def count_limits(query: Query) -> int:
    return count_modifier(query, has_limit)


def count_havings(query: Query) -> int:
    return count_modifier(query, has_having)


def count_offsets(query: Query) -> int:
    return count_modifier(query, has_offset)


def count_group_bys(query: Query) -> int:
    return count_modifier(query, has_group_by)
