"""
Normalized query length.

Makes query lengths comparable across datasets that spell the same
identifiers with different prefix or IRI verbosity: every prefixed name
collapses to one placeholder token and the prologue disappears.
"""

import re
from typing import Dict

from sparql_analyser.core.types.algebra import Query
from sparql_analyser.core.statistics.query_writer import write_query
from sparql_analyser.core.statistics import constants

# Characters that cannot directly precede the prefix of a prefixed name
_NAME_BOUNDARY = r'(?<![\w\-.:/#<?$])'

_LOCAL_PART = r'(?:[A-Za-z0-9_\-%:]|\.(?=[A-Za-z0-9_\-%:]))*'

_BASE_LINE = re.compile(r'^[ \t]*BASE[ \t]*<[^>\n]*>[ \t]*$', re.MULTILINE | re.IGNORECASE)


def normalize_query_text(text: str, namespaces: Dict[str, str],
                         placeholder: str = constants.DEFAULT_PLACEHOLDER) -> str:
    """
    Replace prefixed names and prologue lines, then drop line breaks.

    Args:
        text: Serialized query
        namespaces: Declared prefixes of the query
        placeholder: Token substituted for each prefixed name

    Returns:
        Normalized single-line text
    """
    # Declarations go first so their own 'prefix:' is not rewritten
    for prefix in namespaces:
        declaration = re.compile(
            r'^[ \t]*PREFIX[ \t]+' + re.escape(prefix) + r':[ \t]*<[^>\n]*>[ \t]*$',
            re.MULTILINE | re.IGNORECASE,
        )
        text = declaration.sub('', text)
        if prefix == '':
            text = _BASE_LINE.sub('', text)

    # Longer prefixes first; the default prefix comes last
    for prefix in sorted(namespaces, key=len, reverse=True):
        name = re.compile(_NAME_BOUNDARY + re.escape(prefix) + ':' + _LOCAL_PART)
        text = name.sub(lambda _match: placeholder, text)

    return text.replace('\r', '').replace('\n', '')


def normalized_query_length(query: Query,
                            placeholder: str = constants.DEFAULT_PLACEHOLDER) -> int:
    """Character length of the normalized serialization of a query."""
    return len(normalize_query_text(write_query(query), query.namespaces, placeholder))
