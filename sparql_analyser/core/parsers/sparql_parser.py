"""
SPARQL parser producing algebra trees.

Uses rdflib's SPARQL 1.1 grammar for parsing with:
- Prefixed-name and relative IRI resolution against the query prologue
- Recovery of undeclared prefixes from a prefix dictionary
- Uniform QueryParseError for everything the grammar rejects
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import rdflib
from rdflib.plugins.sparql.parser import parseQuery

from sparql_analyser.common.exceptions import QueryParseError, UnknownPrefixError
from sparql_analyser.common.validators import (
    validate_prefix_dictionary,
    validate_query_length,
    validate_query_not_empty,
)
from sparql_analyser.core.parsers.tree_builder import TreeBuilder
from sparql_analyser.core.statistics.constants import MAX_QUERY_LENGTH
from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)

# Dictionary entry backing the default prefix and BASE
BASE_ENTRY = 'base'


@contextmanager
def _lexical_literals():
    """
    Keep literals in the lexical form they were written in.

    rdflib canonicalizes typed literals on construction (1.5e3 -> 1500.0)
    unless NORMALIZE_LITERALS is off. Negative numbers are still rebuilt
    from their value by the grammar.
    """
    previous = rdflib.NORMALIZE_LITERALS
    rdflib.NORMALIZE_LITERALS = False
    try:
        yield
    finally:
        rdflib.NORMALIZE_LITERALS = previous


class SparqlQueryParser:
    """
    Stateless SPARQL parser.

    Stored benchmark queries often rely on prefixes the endpoint predeclares
    (dbo:, wdt:, ...). When a query uses such a prefix without declaring it,
    the parser looks the prefix up in its dictionary, prepends the missing
    declaration and tries again, once per distinct prefix.
    """

    def __init__(self, prefixes: Optional[Dict[str, str]] = None, max_prefix_retries: int = 32):
        """
        Initialize parser.

        Args:
            prefixes: Prefix name -> namespace IRI used to recover undeclared prefixes
            max_prefix_retries: Upper bound on recovery attempts per query
        """
        self.prefixes = dict(prefixes or {})
        validate_prefix_dictionary(self.prefixes)
        self.max_prefix_retries = max_prefix_retries

    @classmethod
    def from_config(cls, parser_config: Dict[str, Any],
                    prefixes: Optional[Dict[str, str]] = None) -> 'SparqlQueryParser':
        """
        Build a parser from the 'parser' configuration section.

        Args:
            parser_config: Parser configuration
            prefixes: Already loaded prefix dictionary (see load_prefix_dictionary)
        """
        return cls(
            prefixes=prefixes if prefixes is not None else parser_config.get('prefixes'),
            max_prefix_retries=parser_config.get('max_prefix_retries', 32),
        )

    def parse(self, text: str) -> Query:
        """
        Parse SPARQL text into an algebra tree.

        Args:
            text: Query text

        Returns:
            Query rooted at the WHERE clause

        Raises:
            QueryParseError: Text is empty, too long, syntactically invalid, or
                uses a prefix neither declared nor known to the dictionary
        """
        try:
            validate_query_not_empty(text)
            validate_query_length(text, MAX_QUERY_LENGTH)
        except ValueError as e:
            raise QueryParseError(str(e)) from e

        recovered: Dict[str, str] = {}

        for _ in range(self.max_prefix_retries + 1):
            try:
                return self._parse_once(self._prologue(recovered) + text)
            except UnknownPrefixError as e:
                namespace = self._lookup(e.prefix)
                if namespace is None or e.prefix in recovered:
                    raise
                logger.debug(f"Recovering undeclared prefix '{e.prefix}:' as <{namespace}>")
                recovered[e.prefix] = namespace

        raise QueryParseError(
            f"Gave up after recovering {len(recovered)} undeclared prefixes"
        )

    def _lookup(self, prefix: str) -> Optional[str]:
        if prefix in self.prefixes:
            return self.prefixes[prefix]
        if prefix == '':
            return self.prefixes.get(BASE_ENTRY)
        return None

    @staticmethod
    def _prologue(recovered: Dict[str, str]) -> str:
        lines = []
        for prefix, namespace in recovered.items():
            if prefix == '':
                lines.append(f"PREFIX : <{namespace}>")
                lines.append(f"BASE <{namespace}>")
            else:
                lines.append(f"PREFIX {prefix}: <{namespace}>")
        return ''.join(line + '\n' for line in lines)

    @staticmethod
    def _parse_once(text: str) -> Query:
        try:
            with _lexical_literals():
                tree = parseQuery(text)
        except Exception as e:
            raise QueryParseError(f"Invalid SPARQL: {e}") from e

        return TreeBuilder().build(tree)
