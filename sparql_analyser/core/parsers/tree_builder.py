"""
Conversion of rdflib SPARQL parse trees into the algebra model.

rdflib's `parseQuery` yields a tree of CompValue nodes that still holds
prefixed names, the raw property path grammar and every expression
wrapper level. The builder resolves prefixed names against the query's
prologue, folds paths into left-deep binary chains and renders
expressions back to SPARQL text.
"""

import re
from functools import reduce
from typing import Dict, List, Optional
from urllib.parse import urljoin

from pyparsing import ParseResults
from rdflib import RDF
from rdflib.plugins.sparql.parserutils import CompValue, ParamValue
from rdflib import term as rdf

from sparql_analyser.common.exceptions import QueryParseError, UnknownPrefixError
from sparql_analyser.core.types.algebra import (
    BasicTriple, BinaryOperator, BinaryPath, BindPattern, FilterPattern,
    GraphPattern, InlineData, OrderCondition, Path, PathTriple, PatternKind,
    Projection, PropertyStep, Query, QueryType, SubQueryPattern, UnaryOperator,
    UnaryPath,
)
from sparql_analyser.core.types.terms import IRI, BlankNode, Literal, Variable
from sparql_analyser.core.statistics.patterns import collect_pattern_variables
from sparql_analyser.core.statistics.query_writer import format_term, write_pattern

QUERY_FORMS = {
    'SelectQuery': QueryType.SELECT,
    'ConstructQuery': QueryType.CONSTRUCT,
    'DescribeQuery': QueryType.DESCRIBE,
    'AskQuery': QueryType.ASK,
}

PATH_MODIFIERS = {
    '*': UnaryOperator.ZERO_OR_MORE,
    '+': UnaryOperator.ONE_OR_MORE,
    '?': UnaryOperator.ZERO_OR_ONE,
}

AGGREGATE_NAMES = {
    'Aggregate_Count': 'COUNT',
    'Aggregate_Sum': 'SUM',
    'Aggregate_Min': 'MIN',
    'Aggregate_Max': 'MAX',
    'Aggregate_Avg': 'AVG',
    'Aggregate_Sample': 'SAMPLE',
    'Aggregate_GroupConcat': 'GROUP_CONCAT',
}

LOGICAL_OPERATORS = {
    'ConditionalOrExpression': '||',
    'ConditionalAndExpression': '&&',
}

# The grammar suppresses brackets; an operand binding weaker than the level
# its position requires must have been bracketed
PRIMARY = 7
OPERAND_LEVELS = {
    'ConditionalOrExpression': 2,
    'ConditionalAndExpression': 3,
    'RelationalExpression': 4,
    'AdditiveExpression': 5,
    'MultiplicativeExpression': 6,
}
UNARY_OPERATORS = {
    'UnaryNot': '!',
    'UnaryMinus': '-',
    'UnaryPlus': '+',
}

ABSOLUTE_IRI = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*:')

UNDEF = 'UNDEF'


def _items(value) -> list:
    """Parameter value as a list: rdflib stores single matches unwrapped."""
    if value is None:
        return []
    if isinstance(value, (list, ParseResults)):
        return list(value)
    return [value]


def _flatten_tokens(groups) -> list:
    """Flatten triple token groups, including nested parameter wrappers."""
    tokens = []
    for group in _items(groups):
        if isinstance(group, (list, ParseResults)):
            tokens.extend(_flatten_tokens(group))
        elif isinstance(group, ParamValue):
            tokens.extend(_flatten_tokens(group.tokenList))
        else:
            tokens.append(group)
    return tokens


def _precedence(node) -> int:
    """Binding strength of an expression, looking through single-operand levels."""
    while isinstance(node, CompValue):
        if node.name in UNARY_OPERATORS:
            return PRIMARY - 1
        if node.name not in OPERAND_LEVELS:
            return PRIMARY
        if node.op is not None or _items(node.other):
            return OPERAND_LEVELS[node.name] - 1
        node = node.expr
    return PRIMARY


class TreeBuilder:
    """
    Builds one Query from one rdflib parse result.

    A builder is bound to a single document: it accumulates the prologue
    while walking, so create a new one for every parse.
    """

    def __init__(self):
        self.namespaces: Dict[str, str] = {}
        self.base_uri: Optional[str] = None
        self.blank_nodes: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def build(self, tree) -> Query:
        """
        Convert a full parse result (prologue and query form).

        Raises:
            UnknownPrefixError: A prefixed name or relative IRI cannot be resolved
            QueryParseError: The tree holds no query form
        """
        body = None
        for item in tree:
            if isinstance(item, CompValue) and item.name in QUERY_FORMS:
                body = item
            elif isinstance(item, CompValue):
                self._declare(item)
            else:
                for declaration in _items(item):
                    if isinstance(declaration, CompValue):
                        self._declare(declaration)

        if body is None:
            raise QueryParseError("Not a SPARQL query (update requests are not supported)")

        return self._query(body)

    def _declare(self, declaration: CompValue) -> None:
        if declaration.name == 'Base':
            self.base_uri = self._absolute(str(declaration.iri))
        elif declaration.name == 'PrefixDecl':
            self.namespaces[declaration.prefix or ''] = self._absolute(str(declaration.iri))

    def _query(self, node: CompValue) -> Query:
        query_type = QUERY_FORMS.get(node.name, QueryType.SELECT)
        if node.where is None or isinstance(node.where, CompValue):
            root = self._group(node.where)
        else:
            # CONSTRUCT WHERE { triples }
            root = GraphPattern(triple_patterns=tuple(self._triples(node.where)))

        projection = tuple(self._projection(item) for item in _items(node.projection))
        select_all = query_type == QueryType.SELECT and not projection

        template = None
        if query_type == QueryType.CONSTRUCT:
            if node.template is not None:
                template = GraphPattern(triple_patterns=tuple(self._triples(node.template)))
            else:
                template = GraphPattern(triple_patterns=tuple(self._triples(node.where)))

        describe_terms = tuple(self._term(t) for t in _items(node.var)) \
            if query_type == QueryType.DESCRIBE else ()

        variables = self._result_variables(query_type, projection, root, template, describe_terms)

        limit = offset = None
        if node.limitoffset is not None:
            if node.limitoffset.limit is not None:
                limit = int(str(node.limitoffset.limit))
            if node.limitoffset.offset is not None:
                offset = int(str(node.limitoffset.offset))

        group_by = None
        if node.groupby is not None:
            group_by = tuple(self._group_condition(c) for c in _items(node.groupby.condition))

        having = None
        if node.having is not None:
            having = tuple(self.expression(c) for c in _items(node.having.condition))

        order_by = ()
        if node.orderby is not None:
            order_by = tuple(self._order_condition(c) for c in _items(node.orderby.condition))

        values = None
        if node.valuesClause is not None:
            values = self._inline_data(node.valuesClause)

        return Query(
            root_pattern=root,
            variables=variables,
            order_by=order_by,
            group_by=group_by,
            having=having,
            limit=limit,
            offset=offset,
            namespaces=dict(self.namespaces),
            base_uri=self.base_uri,
            query_type=query_type,
            distinct=node.modifier,
            projection=projection,
            select_all=select_all,
            template=template,
            describe_terms=describe_terms,
            values=values,
        )

    @staticmethod
    def _result_variables(query_type, projection, root, template, describe_terms):
        if query_type == QueryType.ASK:
            return ()
        if query_type == QueryType.CONSTRUCT:
            candidates = collect_pattern_variables(template)
        elif query_type == QueryType.DESCRIBE and describe_terms:
            candidates = [t for t in describe_terms if isinstance(t, Variable)]
        elif projection:
            candidates = [item.variable for item in projection]
        else:
            candidates = collect_pattern_variables(root)

        return tuple(dict.fromkeys(candidates))

    def _projection(self, item: CompValue) -> Projection:
        if item.evar is not None:
            return Projection(variable=self._term(item.evar), expression=self.expression(item.expr))
        return Projection(variable=self._term(item.var))

    def _group_condition(self, condition) -> str:
        if isinstance(condition, CompValue) and condition.name == 'GroupAs':
            if condition.var is not None:
                return f"({self.expression(condition.expr)} AS {self.expression(condition.var)})"
            return f"({self.expression(condition.expr)})"
        return self.expression(condition)

    def _order_condition(self, condition) -> OrderCondition:
        if isinstance(condition, CompValue) and condition.name == 'OrderCondition':
            descending = None
            if condition.order is not None:
                descending = condition.order == 'DESC'
            return OrderCondition(expression=self.expression(condition.expr), descending=descending)
        return OrderCondition(expression=self._operand(condition, PRIMARY))

    # ------------------------------------------------------------------
    # Graph patterns
    # ------------------------------------------------------------------

    def _group(self, node, kind: PatternKind = PatternKind.GROUP, term=None,
               silent: bool = False) -> GraphPattern:
        if node is None:
            return GraphPattern(kind=kind, term=term, silent=silent)

        if isinstance(node, CompValue) and node.name == 'SubSelect':
            return GraphPattern(
                triple_patterns=(SubQueryPattern(self._query(node)),),
                kind=kind, term=term, silent=silent,
            )

        triples = []
        children: List[GraphPattern] = []
        inline_data = None

        for part in _items(node.part):
            name = part.name
            if name == 'TriplesBlock':
                triples.extend(self._triples(part.triples))
            elif name == 'Filter':
                triples.append(FilterPattern(self.expression(part.expr)))
            elif name == 'Bind':
                triples.append(BindPattern(self.expression(part.expr), self._term(part.var)))
            elif name == 'InlineData':
                if inline_data is None:
                    inline_data = self._inline_data(part)
                else:
                    children.append(GraphPattern(inline_data=self._inline_data(part)))
            elif name == 'OptionalGraphPattern':
                children.append(self._group(part.graph, PatternKind.OPTIONAL))
            elif name == 'MinusGraphPattern':
                children.append(self._group(part.graph, PatternKind.MINUS))
            elif name == 'GraphGraphPattern':
                children.append(self._group(part.graph, PatternKind.GRAPH, self._term(part.term)))
            elif name == 'ServiceGraphPattern':
                children.append(self._group(part.graph, PatternKind.SERVICE, self._term(part.term),
                                            silent=part.silent is not None))
            elif name == 'GroupOrUnionGraphPattern':
                branches = _items(part.graph)
                if len(branches) == 1 and branches[0].name == 'SubSelect':
                    triples.append(SubQueryPattern(self._query(branches[0])))
                elif len(branches) == 1:
                    children.append(self._group(branches[0]))
                else:
                    children.append(GraphPattern(
                        child_patterns=tuple(self._group(b) for b in branches),
                        kind=PatternKind.UNION,
                    ))
            else:
                raise QueryParseError(f"Unsupported graph pattern element: {name}")

        return GraphPattern(
            triple_patterns=tuple(triples),
            child_patterns=tuple(children),
            inline_data=inline_data,
            kind=kind,
            term=term,
            silent=silent,
        )

    def _triples(self, groups) -> list:
        tokens = _flatten_tokens(groups)
        if len(tokens) % 3:
            raise QueryParseError(f"Malformed triples block ({len(tokens)} terms)")

        triples = []
        for index in range(0, len(tokens), 3):
            subject = self._term(tokens[index])
            path = self._path(tokens[index + 1])
            obj = self._term(tokens[index + 2])
            if isinstance(path, PropertyStep):
                triples.append(BasicTriple(subject, path.term, obj))
            else:
                triples.append(PathTriple(subject, path, obj))
        return triples

    def _inline_data(self, node: CompValue) -> InlineData:
        variables = tuple(self._term(v) for v in _items(node.var))

        rows = []
        for value in _items(node.value):
            cells = _items(value) if isinstance(value, (list, ParseResults)) else [value]
            rows.append(tuple(None if cell == UNDEF else self._term(cell) for cell in cells))

        return InlineData(variables=variables, rows=tuple(rows))

    # ------------------------------------------------------------------
    # Property paths
    # ------------------------------------------------------------------

    def _path(self, node) -> Path:
        if not isinstance(node, CompValue) or node.name == 'pname' or node.name == 'literal':
            return PropertyStep(self._term(node))

        name = node.name
        if name == 'PathAlternative':
            return self._fold(BinaryOperator.ALTERNATIVE, node.part)
        if name == 'PathSequence':
            return self._fold(BinaryOperator.SEQUENCE, node.part)
        if name == 'PathElt':
            inner = self._path(node.part)
            if node.mod is not None:
                return UnaryPath(PATH_MODIFIERS[node.mod], inner)
            return inner
        if name == 'PathEltOrInverse':
            return UnaryPath(UnaryOperator.INVERSE, self._path(node.part))
        if name == 'PathNegatedPropertySet':
            members = _items(node.part)
            inner = self._fold(BinaryOperator.ALTERNATIVE, members) if members else PropertyStep()
            return UnaryPath(UnaryOperator.NEGATED, inner)
        if name == 'InversePath':
            # The inverted member of a negated set may arrive without its IRI
            targets = [v for v in node.values() if isinstance(v, (rdf.Identifier, CompValue)) or v == 'a']
            step = PropertyStep(self._term(targets[0])) if targets else PropertyStep()
            return UnaryPath(UnaryOperator.INVERSE, step)
        if name == 'DistinctPath':
            return self._path(node.part)

        raise QueryParseError(f"Unsupported property path element: {name}")

    def _fold(self, operator: BinaryOperator, parts) -> Path:
        paths = [self._path(p) for p in _items(parts)]
        return reduce(lambda left, right: BinaryPath(operator, left, right), paths)

    # ------------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------------

    def _term(self, node):
        if isinstance(node, rdf.Variable):
            return Variable(str(node))
        if isinstance(node, rdf.BNode):
            return BlankNode(self._blank_label(str(node)))
        if isinstance(node, rdf.URIRef):
            return IRI(self._absolute(str(node)))
        if isinstance(node, rdf.Literal):
            # Numbers and booleans are the only literals written without quotes
            return Literal(str(node), quoted=False)
        if isinstance(node, CompValue) and node.name == 'pname':
            return IRI(self._resolve_pname(node))
        if isinstance(node, CompValue) and node.name == 'literal':
            datatype = None
            if node.datatype is not None:
                datatype = self._term(node.datatype).value
            return Literal(str(node.string), datatype=datatype, language=node.lang)
        if node == 'a':
            return IRI(str(RDF.type))
        raise QueryParseError(f"Unexpected term in triple pattern: {node!r}")

    def _blank_label(self, label: str) -> str:
        # [] and collections get a fresh random label on every parse
        return self.blank_nodes.setdefault(label, f"b{len(self.blank_nodes)}")

    def _resolve_pname(self, node: CompValue) -> str:
        prefix = node.prefix or ''
        if prefix not in self.namespaces:
            raise UnknownPrefixError(prefix)
        return self.namespaces[prefix] + (node.localname or '')

    def _absolute(self, iri: str) -> str:
        if ABSOLUTE_IRI.match(iri):
            return iri
        if self.base_uri is None:
            # Relative IRI with no BASE; resolved like the default prefix
            raise UnknownPrefixError('')
        return urljoin(self.base_uri, iri)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def expression(self, node) -> str:
        """Render an expression subtree as SPARQL text."""
        if isinstance(node, (list, ParseResults)):
            return '(' + ', '.join(self.expression(n) for n in node) + ')'
        if not isinstance(node, CompValue):
            if isinstance(node, str) and not isinstance(node, rdf.Identifier):
                return node
            if node == RDF.nil:
                return '()'
            return format_term(self._term(node), self.namespaces)

        name = node.name
        if name in ('pname', 'literal'):
            return format_term(self._term(node), self.namespaces)

        if name in OPERAND_LEVELS and node.op is None and not _items(node.other):
            return self.expression(node.expr)

        if name in LOGICAL_OPERATORS:
            level = OPERAND_LEVELS[name]
            operands = [node.expr] + _items(node.other)
            return f" {LOGICAL_OPERATORS[name]} ".join(self._operand(o, level) for o in operands)

        if name == 'RelationalExpression':
            level = OPERAND_LEVELS[name]
            return f"{self._operand(node.expr, level)} {node.op} {self._operand(node.other, level)}"

        if name in ('AdditiveExpression', 'MultiplicativeExpression'):
            level = OPERAND_LEVELS[name]
            text = self._operand(node.expr, level)
            for op, other in zip(_items(node.op), _items(node.other)):
                text += f" {op} {self._operand(other, level)}"
            return text

        if name in UNARY_OPERATORS:
            return UNARY_OPERATORS[name] + self._operand(node.expr, PRIMARY)

        if name in AGGREGATE_NAMES:
            distinct = 'DISTINCT ' if node.distinct else ''
            argument = '*' if node.vars == '*' else self.expression(node.vars)
            separator = ''
            if node.separator is not None:
                separator = f'; SEPARATOR="{node.separator}"'
            return f"{AGGREGATE_NAMES[name]}({distinct}{argument}{separator})"

        if name == 'Function':
            distinct = 'DISTINCT ' if node.distinct else ''
            arguments = ', '.join(self.expression(a) for a in _items(node.expr))
            return f"{self.expression(node.iri)}({distinct}{arguments})"

        if name in ('Builtin_EXISTS', 'Builtin_NOTEXISTS'):
            keyword = 'EXISTS' if name == 'Builtin_EXISTS' else 'NOT EXISTS'
            block = write_pattern(self._group(node.graph), self.namespaces)
            return keyword + ' ' + ' '.join(line.strip() for line in block.splitlines())

        if name.startswith('Builtin_'):
            arguments = []
            for value in node.values():
                if isinstance(value, (list, ParseResults)):
                    arguments.extend(self.expression(v) for v in value)
                else:
                    arguments.append(self.expression(value))
            return f"{name[len('Builtin_'):]}({', '.join(arguments)})"

        # Remaining wrapper levels carry a single 'expr'
        if node.expr is not None:
            return self.expression(node.expr)

        raise QueryParseError(f"Unsupported expression element: {name}")

    def _operand(self, node, level: int) -> str:
        text = self.expression(node)
        if _precedence(node) < level:
            return f"({text})"
        return text
