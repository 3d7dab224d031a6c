"""
Statistics engine for parsed SPARQL queries.
"""

from sparql_analyser.core.statistics.engine import QueryStatisticsEngine, analyze
from sparql_analyser.core.statistics.constants import METRIC_NAMES

__all__ = ['QueryStatisticsEngine', 'analyze', 'METRIC_NAMES']
