"""
Query statistics constants.

Centralizes metric names, namespaces and limits used across extractors.
"""

# ============================================================================
# Query Size Limits
# ============================================================================

# Maximum query text length accepted by the parser (1MB)
MAX_QUERY_LENGTH = 1_000_000

# ============================================================================
# Metric Names
# ============================================================================

NUMBER_OF_TRIPLES = 'numberOfTriples'
NUMBER_OF_FILTERS = 'numberOfFilters'
NUMBER_OF_VARIABLES = 'numberOfVariables'

NUMBER_OF_RESOURCES = 'numberOfResources'
NUMBER_OF_RESOURCES_SUBJECTS_OBJECTS = 'numberOfResourcesSubjectsObjects'
NUMBER_OF_RESOURCES_PREDICATES = 'numberOfResourcesPredicates'

NUMBER_OF_MODIFIER_ORDER_BY = 'numberOfModifierOrderBy'
NUMBER_OF_MODIFIER_LIMIT = 'numberOfModifierLimit'
NUMBER_OF_MODIFIER_HAVING = 'numberOfModifierHaving'
NUMBER_OF_MODIFIER_OFFSET = 'numberOfModifierOffset'
NUMBER_OF_MODIFIER_GROUP_BY = 'numberOfModifierGroupBy'
NUMBER_OF_MODIFIERS = 'numberOfModifiers'

NORMALIZED_QUERY_LENGTH = 'normalizedQueryLength'

# Order in which the engine reports metrics
METRIC_NAMES = [
    NUMBER_OF_TRIPLES,
    NUMBER_OF_FILTERS,
    NUMBER_OF_VARIABLES,
    NUMBER_OF_RESOURCES,
    NUMBER_OF_RESOURCES_SUBJECTS_OBJECTS,
    NUMBER_OF_RESOURCES_PREDICATES,
    NUMBER_OF_MODIFIER_ORDER_BY,
    NUMBER_OF_MODIFIER_LIMIT,
    NUMBER_OF_MODIFIER_HAVING,
    NUMBER_OF_MODIFIER_OFFSET,
    NUMBER_OF_MODIFIER_GROUP_BY,
    NUMBER_OF_MODIFIERS,
    NORMALIZED_QUERY_LENGTH,
]

# ============================================================================
# Normalized Length
# ============================================================================

# Token substituted for every prefixed name
DEFAULT_PLACEHOLDER = '<iri>'

# ============================================================================
# Export Namespaces
# ============================================================================

# Metric predicates are minted as BENCHMARK_NAMESPACE + metric name
BENCHMARK_NAMESPACE = 'urn:qa:benchmark#'

QADO_NAMESPACE = 'http://purl.com/qado/ontology.ttl#'

# Placeholder prefix IRI for benchmarks whose queries declare no prefix
NO_PREFIX_IRI = 'urn:no:prefix'
