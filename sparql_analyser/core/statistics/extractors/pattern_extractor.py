"""Pattern metrics extractor - 3 metrics."""

import logging
from typing import List, Dict

from sparql_analyser.core.statistics.base import BaseStatisticsExtractor
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.statistics.patterns import (
    count_filters, count_result_variables, count_triples,
)
from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)


class PatternExtractor(BaseStatisticsExtractor):
    """
    Extract pattern size metrics (3 metrics).

    - numberOfTriples: basic and path triples, subqueries included
    - numberOfFilters: FILTER constraints, subqueries included
    - numberOfVariables: result variables of the outermost query only
    """

    METRIC_NAMES = [
        constants.NUMBER_OF_TRIPLES,
        constants.NUMBER_OF_FILTERS,
        constants.NUMBER_OF_VARIABLES,
    ]

    def get_metric_names(self) -> List[str]:
        return self.METRIC_NAMES

    def extract(self, query: Query) -> Dict[str, int]:
        return {
            constants.NUMBER_OF_TRIPLES: count_triples(query.root_pattern),
            constants.NUMBER_OF_FILTERS: count_filters(query.root_pattern),
            constants.NUMBER_OF_VARIABLES: count_result_variables(query),
        }
