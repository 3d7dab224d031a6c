"""Modifier clause extractor - 6 metrics."""

import logging
from typing import List, Dict

from sparql_analyser.core.statistics.base import BaseStatisticsExtractor
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.statistics import modifiers
from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)


class ModifierExtractor(BaseStatisticsExtractor):
    """
    Extract modifier clause metrics (6 metrics).

    Each clause is counted once per query level, the outer query and every
    nested subquery alike. numberOfModifiers is the sum of the five.
    """

    METRIC_NAMES = [
        constants.NUMBER_OF_MODIFIER_ORDER_BY,
        constants.NUMBER_OF_MODIFIER_LIMIT,
        constants.NUMBER_OF_MODIFIER_HAVING,
        constants.NUMBER_OF_MODIFIER_OFFSET,
        constants.NUMBER_OF_MODIFIER_GROUP_BY,
        constants.NUMBER_OF_MODIFIERS,
    ]

    def get_metric_names(self) -> List[str]:
        return self.METRIC_NAMES

    def extract(self, query: Query) -> Dict[str, int]:
        metrics = {
            constants.NUMBER_OF_MODIFIER_ORDER_BY: modifiers.count_order_bys(query),
            constants.NUMBER_OF_MODIFIER_LIMIT: modifiers.count_limits(query),
            constants.NUMBER_OF_MODIFIER_HAVING: modifiers.count_havings(query),
            constants.NUMBER_OF_MODIFIER_OFFSET: modifiers.count_offsets(query),
            constants.NUMBER_OF_MODIFIER_GROUP_BY: modifiers.count_group_bys(query),
        }
        metrics[constants.NUMBER_OF_MODIFIERS] = sum(metrics.values())
        return metrics
