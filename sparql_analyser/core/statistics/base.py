"""
Base classes for statistics extractors.

Provides abstract base class and common functionality for all extractors.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
import logging

from sparql_analyser.core.types.algebra import Query

logger = logging.getLogger(__name__)


class BaseStatisticsExtractor(ABC):
    """
    Abstract base class for all statistics extractors.

    All extractors must implement:
    - extract(): Compute this extractor's metrics for a query
    - get_metric_names(): Return ordered list of metric names

    Extractors are stateless between calls; one instance can be shared
    by several threads.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize statistics extractor.

        Args:
            config: 'statistics' configuration section
        """
        self.config = config or {}
        self._metric_names = self.get_metric_names()

    @abstractmethod
    def extract(self, query: Query) -> Dict[str, int]:
        """
        Compute metrics for a query.

        Args:
            query: Well-formed algebra tree

        Returns:
            Mapping of metric name to non-negative integer
        """
        pass

    @abstractmethod
    def get_metric_names(self) -> List[str]:
        """
        Get ordered list of metric names this extractor produces.

        Returns:
            List of metric name strings
        """
        pass

    @property
    def metric_count(self) -> int:
        """Number of metrics this extractor produces."""
        return len(self._metric_names)

    def validate_metrics(self, metrics: Dict[str, int]) -> bool:
        """
        Validate that the produced metric names match the declared ones.

        Args:
            metrics: Extracted metrics

        Returns:
            True if names match
        """
        if list(metrics) != self._metric_names:
            logger.warning(f"{self.__class__.__name__}: Expected metrics {self._metric_names}, "
                           f"got {list(metrics)}")
            return False

        return True

    def safe_extract(self, query: Query) -> Dict[str, int]:
        """
        Extract metrics with error handling and fallback.

        Args:
            query: Query to analyse

        Returns:
            Metrics (zero for every metric on any error)
        """
        try:
            metrics = self.extract(query)

            if not self.validate_metrics(metrics):
                logger.error(f"{self.__class__.__name__}: Metric mismatch, returning zeros")
                return self._zero_metrics()

            return metrics

        except Exception as e:
            logger.error(f"Error in {self.__class__.__name__}.extract(): {e}", exc_info=True)
            return self._zero_metrics()

    def _zero_metrics(self) -> Dict[str, int]:
        return {name: 0 for name in self._metric_names}
