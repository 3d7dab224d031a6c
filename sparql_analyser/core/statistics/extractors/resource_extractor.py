"""Resource metrics extractor - 3 metrics."""

import logging
from typing import List, Dict

from sparql_analyser.core.statistics.base import BaseStatisticsExtractor
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.statistics.patterns import count_resources
from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)


class ResourceExtractor(BaseStatisticsExtractor):
    """
    Extract resource metrics (3 metrics).

    - numberOfResources: bound subjects, predicates, objects, path steps
      and VALUES rows
    - numberOfResourcesSubjectsObjects: bound subjects and objects only
    - numberOfResourcesPredicates: difference of the two above

    The predicate figure is derived rather than counted on its own so the
    three metrics always agree.
    """

    METRIC_NAMES = [
        constants.NUMBER_OF_RESOURCES,
        constants.NUMBER_OF_RESOURCES_SUBJECTS_OBJECTS,
        constants.NUMBER_OF_RESOURCES_PREDICATES,
    ]

    def get_metric_names(self) -> List[str]:
        return self.METRIC_NAMES

    def extract(self, query: Query) -> Dict[str, int]:
        total = count_resources(query.root_pattern, include_predicates=True)
        subjects_objects = count_resources(query.root_pattern, include_predicates=False)

        return {
            constants.NUMBER_OF_RESOURCES: total,
            constants.NUMBER_OF_RESOURCES_SUBJECTS_OBJECTS: subjects_objects,
            constants.NUMBER_OF_RESOURCES_PREDICATES: total - subjects_objects,
        }
