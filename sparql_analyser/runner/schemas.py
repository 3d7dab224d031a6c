"""
Pydantic schemas for batch analysis input and output.

Defines the contract of the query record file read by the runner and of
the JSON report it prints.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sparql_analyser.common import validators
from sparql_analyser.core.statistics import constants
from sparql_analyser.core.types.query_record import QueryRecord

logger = logging.getLogger(__name__)


class QueryRecordModel(BaseModel):
    """
    One entry of the query record file.

    The identifier doubles as the IRI the statistics are attached to.
    """
    id: str = Field(..., description="Query identifier / IRI", min_length=1)
    text: str = Field(..., description="SPARQL query text", min_length=1)
    benchmark: Optional[str] = Field(None, description="Benchmark name (derived from id if absent)")

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        """Validate query is not empty after stripping."""
        validators.validate_query_not_empty(v)
        validators.validate_query_length(v, constants.MAX_QUERY_LENGTH)
        return v

    @field_validator('benchmark', mode='before')
    @classmethod
    def normalize_benchmark(cls, v):
        """Treat empty benchmark names as absent."""
        if v is None or v == '':
            return None
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "http://example.org/qald-9-question42",
                "text": "SELECT ?x WHERE { ?x a dbo:Film } LIMIT 10",
                "benchmark": "qald-9"
            }
        }
    )

    def to_query_record(self) -> QueryRecord:
        """Convert to the QueryRecord handed to the runner."""
        return QueryRecord(query_id=self.id, text=self.text, benchmark=self.benchmark)


class QueryStatistics(BaseModel):
    """Metrics of one successfully analysed query."""
    id: str = Field(..., description="Query identifier")
    benchmark: str = Field(..., description="Benchmark the query belongs to")
    query_type: str = Field(..., description="SELECT / ASK / CONSTRUCT / DESCRIBE")
    metrics: Dict[str, int] = Field(..., description="Metric name -> value")


class AnalysisSummary(BaseModel):
    """
    Report of one batch run.

    Counts parsable and non-parsable queries, keeps the parse error of every
    rejected query and lists the files that were written.
    """
    total: int = Field(..., description="Records read", ge=0)
    parsable: int = Field(..., description="Records parsed and analysed", ge=0)
    non_parsable: int = Field(..., description="Records rejected by the parser", ge=0)
    non_parsable_by_benchmark: Dict[str, int] = Field(default_factory=dict,
                                                      description="Rejected records per benchmark")
    parse_errors: List[str] = Field(default_factory=list, description="'<id>    <message>' per rejection")
    benchmark_prefixes: Dict[str, List[str]] = Field(default_factory=dict,
                                                     description="Namespaces declared per benchmark")
    files_written: List[str] = Field(default_factory=list, description="Output files")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total": 3,
                "parsable": 2,
                "non_parsable": 1,
                "non_parsable_by_benchmark": {"qald-9": 1},
                "parse_errors": ["http://example.org/qald-9-question7    Invalid SPARQL: ..."],
                "benchmark_prefixes": {"qald-9": ["http://dbpedia.org/ontology/"]},
                "files_written": ["analysis/statistics.json", "analysis/1.sparql"]
            }
        }
    )
