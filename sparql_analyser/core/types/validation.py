"""
Debug-time invariant checks for algebra trees.

The statistics passes assume a well-formed tree and never check it.
`find_invariant_violations` walks a query once and reports what is wrong
instead of raising, so it can be switched on while testing a new parser.
"""

from typing import List

from .algebra import (
    PATH_TYPES, TRIPLE_PATTERN_TYPES,
    BinaryPath, GraphPattern, Path, PathTriple, PropertyStep, Query,
    SubQueryPattern, UnaryPath,
)


def find_invariant_violations(query: Query) -> List[str]:
    """
    List every invariant violation in a query tree.

    Returns:
        Human readable problem descriptions (empty for a well-formed tree)
    """
    problems: List[str] = []
    _check_query(query, 'query', problems)
    return problems


def _check_query(query: Query, where: str, problems: List[str]) -> None:
    if query.limit is not None and query.limit < 0:
        problems.append(f"{where}: negative LIMIT {query.limit}")
    if query.offset is not None and query.offset < 0:
        problems.append(f"{where}: negative OFFSET {query.offset}")
    if len(set(query.variables)) != len(query.variables):
        problems.append(f"{where}: duplicate result variables")
    _check_pattern(query.root_pattern, f"{where}.root", problems)


def _check_pattern(pattern: GraphPattern, where: str, problems: List[str]) -> None:
    if not isinstance(pattern, GraphPattern):
        problems.append(f"{where}: expected GraphPattern, got {type(pattern).__name__}")
        return

    for index, triple in enumerate(pattern.triple_patterns):
        location = f"{where}.triple[{index}]"
        if not isinstance(triple, TRIPLE_PATTERN_TYPES):
            problems.append(f"{location}: unknown triple pattern {type(triple).__name__}")
        elif isinstance(triple, PathTriple):
            _check_path(triple.path, f"{location}.path", problems)
        elif isinstance(triple, SubQueryPattern):
            _check_query(triple.query, f"{location}.subquery", problems)

    for index, child in enumerate(pattern.child_patterns):
        _check_pattern(child, f"{where}.child[{index}]", problems)

    if pattern.inline_data is not None:
        width = len(pattern.inline_data.variables)
        for index, row in enumerate(pattern.inline_data.rows):
            if len(row) != width:
                problems.append(
                    f"{where}.values[{index}]: row has {len(row)} values for {width} variables"
                )


def _check_path(path: Path, where: str, problems: List[str]) -> None:
    if not isinstance(path, PATH_TYPES):
        problems.append(f"{where}: path leaf is not a property step ({type(path).__name__})")
    elif isinstance(path, UnaryPath):
        _check_path(path.inner, f"{where}.inner", problems)
    elif isinstance(path, BinaryPath):
        _check_path(path.left, f"{where}.left", problems)
        _check_path(path.right, f"{where}.right", problems)
    elif isinstance(path, PropertyStep) and isinstance(path.term, Path):
        problems.append(f"{where}: property step wraps a path")
