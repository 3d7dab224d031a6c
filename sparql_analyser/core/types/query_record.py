"""
Stored query records handed to the batch runner.

Provides:
- QueryRecord: one stored query with its identifier and benchmark
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

BENCHMARK_SEPARATOR = "-question"


@dataclass
class QueryRecord:
    """
    One stored query.

    `query_id` is the IRI the statistics are attached to. When no
    benchmark is given it is derived from the identifier, which by
    convention looks like '<benchmark>-question<n>'.
    """
    query_id: str
    text: str
    benchmark: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize data."""
        if not isinstance(self.text, str):
            self.text = str(self.text) if self.text is not None else ""

        if not self.text.strip():
            raise ValueError("Query text cannot be empty")

        if not self.query_id or not isinstance(self.query_id, str):
            raise ValueError("Query id must be a non-empty string")

        if not self.benchmark:
            self.benchmark = self.query_id.split(BENCHMARK_SEPARATOR)[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.query_id,
            'text': self.text,
            'benchmark': self.benchmark,
        }
