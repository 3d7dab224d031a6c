"""
Statistics engine orchestrator.

Combines all metric extractors into one flat metrics mapping.
"""

import logging
from typing import Any, Dict, List, Optional

from sparql_analyser.core.types.algebra import Query
from sparql_analyser.core.types.validation import find_invariant_violations
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.statistics.extractors.pattern_extractor import PatternExtractor
from sparql_analyser.core.statistics.extractors.resource_extractor import ResourceExtractor
from sparql_analyser.core.statistics.extractors.modifier_extractor import ModifierExtractor
from sparql_analyser.core.statistics.extractors.length_extractor import LengthExtractor

logger = logging.getLogger(__name__)


class QueryStatisticsEngine:
    """
    Main statistics orchestrator.

    Runs every extractor over a query and merges their metrics, in the
    order of constants.METRIC_NAMES. The engine holds no per-query state:
    `analyze` is a pure function of its argument and safe to call from
    several threads at once.

    Features:
    - Per-extractor error isolation (a failing extractor reports zeros)
    - Optional invariant check of the incoming tree (debug aid)
    """

    VERSION = "1.0.0"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the engine.

        Args:
            config: 'statistics' configuration section
        """
        self.config = config or {}
        self.check_invariants = self.config.get('check_invariants', False)
        self.extractors = self._initialize_extractors()
        self.metric_names = [name for ext in self.extractors for name in ext.get_metric_names()]

        logger.debug(f"QueryStatisticsEngine v{self.VERSION} initialized with "
                     f"{len(self.metric_names)} metrics")

    def _initialize_extractors(self) -> List:
        """Initialize all extractors in reporting order."""
        return [
            PatternExtractor(self.config),
            ResourceExtractor(self.config),
            ModifierExtractor(self.config),
            LengthExtractor(self.config),
        ]

    def analyze(self, query: Query) -> Dict[str, int]:
        """
        Compute all metrics for a query.

        Args:
            query: Well-formed algebra tree from the parser

        Returns:
            Mapping of metric name to non-negative integer
        """
        if self.check_invariants:
            for problem in find_invariant_violations(query):
                logger.warning("Algebra invariant violated", extra={'problem': problem})

        metrics: Dict[str, int] = {}
        for extractor in self.extractors:
            metrics.update(extractor.safe_extract(query))

        return metrics

    @property
    def metric_count(self) -> int:
        """Number of metrics produced."""
        return len(self.metric_names)

    def get_extractor_summary(self) -> Dict[str, Any]:
        """
        Get summary of all extractors and their metrics.

        Returns:
            Dictionary with extractor information
        """
        return {
            'version': self.VERSION,
            'total_extractors': len(self.extractors),
            'extractors': [
                {
                    'name': ext.__class__.__name__,
                    'metric_count': ext.metric_count,
                    'metrics': ext.get_metric_names()
                }
                for ext in self.extractors
            ],
            'total_metrics': len(self.metric_names)
        }


_default_engine = QueryStatisticsEngine()


def analyze(query: Query) -> Dict[str, int]:
    """
    Compute all metrics for a query with the default configuration.

    Args:
        query: Well-formed algebra tree from the parser

    Returns:
        Mapping of every name in constants.METRIC_NAMES to its value
    """
    return _default_engine.analyze(query)
