"""Normalized length extractor - 1 metric."""

import logging
from typing import List, Dict, Any, Optional

from sparql_analyser.core.statistics.base import BaseStatisticsExtractor
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.statistics.normalization import normalized_query_length
from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)


class LengthExtractor(BaseStatisticsExtractor):
    """
    Extract the normalized query length (1 metric).

    The placeholder token comes from the 'placeholder' config key.
    """

    METRIC_NAMES = [constants.NORMALIZED_QUERY_LENGTH]

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.placeholder = self.config.get('placeholder', constants.DEFAULT_PLACEHOLDER)

    def get_metric_names(self) -> List[str]:
        return self.METRIC_NAMES

    def extract(self, query: Query) -> Dict[str, int]:
        return {
            constants.NORMALIZED_QUERY_LENGTH: normalized_query_length(query, self.placeholder),
        }
