"""
Deterministic SPARQL writer for algebra trees.

Turns a Query back into text. IRIs are compressed against the query's
declared namespaces, so identifiers come out as `prefix:local` whenever
the local part is a valid prefixed-name local. The output is stable for
a given tree, which is what the normalized length metric relies on.
"""

import re
from typing import Dict, List, Optional

from sparql_analyser.core.types.algebra import (
    BasicTriple, BinaryPath, BindPattern, FilterPattern, GraphPattern,
    InlineData, Path, PathTriple, PatternKind, PropertyStep, Query,
    QueryType, SubQueryPattern, TriplePattern, UnaryOperator, UnaryPath,
)
from sparql_analyser.core.types.terms import IRI, BlankNode, Literal, Variable

INDENT = '  '

# Local part of a prefixed name; may be empty, may not end with '.'
LOCAL_NAME = re.compile(r'(?:[A-Za-z0-9_](?:[A-Za-z0-9_\-.]*[A-Za-z0-9_\-])?)?')

RDF_TYPE = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#type'

# Stands in for a step whose IRI the parser could not recover; any IRI
# keeps the output parseable
PLACEHOLDER_STEP = IRI('http://www.w3.org/1999/02/22-rdf-syntax-ns#nil')

_POSTFIX_OPERATORS = (
    UnaryOperator.ZERO_OR_MORE,
    UnaryOperator.ONE_OR_MORE,
    UnaryOperator.ZERO_OR_ONE,
)


def write_query(query: Query) -> str:
    """
    Serialize a query, prologue included.

    Args:
        query: Query to write

    Returns:
        SPARQL text, one clause per line
    """
    lines: List[str] = []

    if query.base_uri is not None:
        lines.append(f"BASE <{query.base_uri}>")
    for prefix, namespace in query.namespaces.items():
        lines.append(f"PREFIX {prefix}: <{namespace}>")

    lines.extend(_query_lines(query, query.namespaces, 0))
    return '\n'.join(lines)


def write_pattern(pattern: GraphPattern, namespaces: Dict[str, str]) -> str:
    """Serialize a single braced group, e.g. the body of EXISTS."""
    return '\n'.join(_block_lines(pattern, namespaces, 0))


def format_term(term, namespaces: Dict[str, str]) -> str:
    """Write one term, compressing IRIs where a namespace matches."""
    if isinstance(term, Variable):
        return f"?{term.name}"
    if isinstance(term, IRI):
        return _compress_iri(term.value, namespaces)
    if isinstance(term, Literal):
        return _format_literal(term, namespaces)
    if isinstance(term, BlankNode):
        return f"_:{term.label}"
    return str(term)


def format_path(path: Path, namespaces: Dict[str, str]) -> str:
    """Write a property path, parenthesizing only where structure requires."""
    if isinstance(path, PropertyStep):
        if path.term is None:
            return format_term(PLACEHOLDER_STEP, namespaces)
        return _format_predicate(path.term, namespaces)

    if isinstance(path, UnaryPath):
        inner = format_path(path.inner, namespaces)
        if not isinstance(path.inner, PropertyStep):
            inner = f"({inner})"
        if path.operator in _POSTFIX_OPERATORS:
            return f"{inner}{path.operator.value}"
        return f"{path.operator.value}{inner}"

    if isinstance(path, BinaryPath):
        left = format_path(path.left, namespaces)
        right = format_path(path.right, namespaces)
        if isinstance(path.left, BinaryPath) and path.left.operator != path.operator:
            left = f"({left})"
        if isinstance(path.right, BinaryPath):
            right = f"({right})"
        return f"{left}{path.operator.value}{right}"

    return str(path)


def _format_predicate(term, namespaces: Dict[str, str]) -> str:
    if term == IRI(RDF_TYPE):
        return 'a'
    return format_term(term, namespaces)


def _compress_iri(value: str, namespaces: Dict[str, str]) -> str:
    # Longest namespace first so nested namespaces pick the most specific prefix
    for prefix, namespace in sorted(namespaces.items(), key=lambda item: -len(item[1])):
        if namespace and value.startswith(namespace):
            local = value[len(namespace):]
            if LOCAL_NAME.fullmatch(local):
                return f"{prefix}:{local}"
    return f"<{value}>"


def _format_literal(literal: Literal, namespaces: Dict[str, str]) -> str:
    if not literal.quoted:
        return literal.lexical

    escaped = (literal.lexical
               .replace('\\', '\\\\')
               .replace('"', '\\"')
               .replace('\n', '\\n')
               .replace('\r', '\\r'))
    text = f'"{escaped}"'
    if literal.language:
        return f"{text}@{literal.language}"
    if literal.datatype:
        return f"{text}^^{_compress_iri(literal.datatype, namespaces)}"
    return text


def _query_lines(query: Query, namespaces: Dict[str, str], depth: int) -> List[str]:
    pad = INDENT * depth
    lines = [pad + _head(query, namespaces)]

    if query.template is not None:
        lines.extend(_block_lines(query.template, namespaces, depth))

    if query.query_type != QueryType.DESCRIBE or query.root_pattern != GraphPattern():
        lines.append(pad + 'WHERE')
        lines.extend(_block_lines(query.root_pattern, namespaces, depth))

    if query.group_by is not None:
        lines.append(pad + 'GROUP BY ' + ' '.join(query.group_by))
    if query.having is not None:
        lines.append(pad + 'HAVING ' + ' '.join(f"({c})" for c in query.having))
    if query.order_by:
        conditions = []
        for condition in query.order_by:
            if condition.descending is None:
                conditions.append(condition.expression)
            elif condition.descending:
                conditions.append(f"DESC({condition.expression})")
            else:
                conditions.append(f"ASC({condition.expression})")
        lines.append(pad + 'ORDER BY ' + ' '.join(conditions))
    if query.limit is not None:
        lines.append(pad + f"LIMIT {query.limit}")
    if query.offset is not None:
        lines.append(pad + f"OFFSET {query.offset}")
    if query.values is not None:
        lines.extend(_values_lines(query.values, namespaces, depth))

    return lines


def _head(query: Query, namespaces: Dict[str, str]) -> str:
    if query.query_type == QueryType.ASK:
        return 'ASK'
    if query.query_type == QueryType.CONSTRUCT:
        return 'CONSTRUCT'
    if query.query_type == QueryType.DESCRIBE:
        if not query.describe_terms:
            return 'DESCRIBE *'
        return 'DESCRIBE ' + ' '.join(format_term(t, namespaces) for t in query.describe_terms)

    head = 'SELECT'
    if query.distinct:
        head += f" {query.distinct}"
    if query.select_all:
        return head + ' *'

    if query.projection:
        items = []
        for item in query.projection:
            if item.expression is None:
                items.append(f"?{item.variable.name}")
            else:
                items.append(f"({item.expression} AS ?{item.variable.name})")
    else:
        items = [f"?{v.name}" for v in query.variables]
    return head + ' ' + ' '.join(items)


def _block_lines(pattern: GraphPattern, namespaces: Dict[str, str], depth: int,
                 keyword: Optional[str] = None) -> List[str]:
    """Write a pattern as a braced block, preceded by its keyword line."""
    pad = INDENT * depth
    lines: List[str] = []

    if keyword is not None:
        lines.append(pad + keyword)

    if pattern.kind == PatternKind.UNION:
        for index, branch in enumerate(pattern.child_patterns):
            if index > 0:
                lines.append(pad + 'UNION')
            lines.extend(_block_lines(branch, namespaces, depth))
        return lines

    lines.append(pad + '{')
    lines.extend(_body_lines(pattern, namespaces, depth + 1))
    lines.append(pad + '}')
    return lines


def _body_lines(pattern: GraphPattern, namespaces: Dict[str, str], depth: int) -> List[str]:
    pad = INDENT * depth
    lines: List[str] = []

    for triple in pattern.triple_patterns:
        if isinstance(triple, SubQueryPattern):
            lines.append(pad + '{')
            lines.extend(_query_lines(triple.query, namespaces, depth + 1))
            lines.append(pad + '}')
        else:
            lines.append(pad + _triple_line(triple, namespaces))

    if pattern.inline_data is not None:
        lines.extend(_values_lines(pattern.inline_data, namespaces, depth))

    for child in pattern.child_patterns:
        lines.extend(_block_lines(child, namespaces, depth, _keyword(child, namespaces)))

    return lines


def _keyword(pattern: GraphPattern, namespaces: Dict[str, str]) -> Optional[str]:
    if pattern.kind == PatternKind.OPTIONAL:
        return 'OPTIONAL'
    if pattern.kind == PatternKind.MINUS:
        return 'MINUS'
    if pattern.kind == PatternKind.GRAPH:
        return f"GRAPH {format_term(pattern.term, namespaces)}"
    if pattern.kind == PatternKind.SERVICE:
        silent = ' SILENT' if pattern.silent else ''
        return f"SERVICE{silent} {format_term(pattern.term, namespaces)}"
    return None


def _triple_line(triple: TriplePattern, namespaces: Dict[str, str]) -> str:
    if isinstance(triple, BasicTriple):
        return (f"{format_term(triple.subject, namespaces)} "
                f"{_format_predicate(triple.predicate, namespaces)} "
                f"{format_term(triple.object, namespaces)} .")
    if isinstance(triple, PathTriple):
        return (f"{format_term(triple.subject, namespaces)} "
                f"{format_path(triple.path, namespaces)} "
                f"{format_term(triple.object, namespaces)} .")
    if isinstance(triple, FilterPattern):
        return f"FILTER({triple.expression})"
    if isinstance(triple, BindPattern):
        return f"BIND({triple.expression} AS ?{triple.variable.name})"
    return str(triple)


def _values_lines(data: InlineData, namespaces: Dict[str, str], depth: int) -> List[str]:
    pad = INDENT * depth
    variables = ' '.join(f"?{v.name}" for v in data.variables)
    lines = [pad + f"VALUES ( {variables} )", pad + '{']
    for row in data.rows:
        values = ' '.join('UNDEF' if v is None else format_term(v, namespaces) for v in row)
        lines.append(pad + INDENT + f"( {values} )")
    lines.append(pad + '}')
    return lines
