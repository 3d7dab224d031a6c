"""
SPARQL update export of query statistics.

Renders metrics as INSERT requests grouped in batches, one
`<n>.sparql` file per batch, ready to be loaded into a triple store:

    PREFIX qado: <http://purl.com/qado/ontology.ttl#>
    INSERT {
    <query> <urn:qa:benchmark#numberOfTriples> "3"^^<...#nonNegativeInteger> .
    <query> <http://purl.com/qado/ontology.ttl#queryType> "SELECT" .
    } WHERE {}
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from rdflib import Literal, URIRef
from rdflib.namespace import XSD

from sparql_analyser.common.exceptions import ExportError
from sparql_analyser.core.statistics import constants

logger = logging.getLogger(__name__)

QUERY_TYPE_PREDICATE = URIRef(constants.QADO_NAMESPACE + 'queryType')
DATASET_SUFFIX = '-dataset'


def render_query_triples(query_uri: str, metrics: Dict[str, int], query_type: str) -> List[str]:
    """
    Render the statements describing one analysed query.

    Args:
        query_uri: IRI of the stored query
        metrics: Metric name -> value, as returned by the engine
        query_type: SELECT / ASK / CONSTRUCT / DESCRIBE

    Returns:
        One N-Triples line per metric, then the query type line
    """
    subject = URIRef(query_uri)
    try:
        lines = [
            f"{subject.n3()} {URIRef(constants.BENCHMARK_NAMESPACE + name).n3()} "
            f"{Literal(str(value), datatype=XSD.nonNegativeInteger).n3()} ."
            for name, value in metrics.items()
        ]
        lines.append(f"{subject.n3()} {QUERY_TYPE_PREDICATE.n3()} {Literal(query_type).n3()} .")
    except Exception as e:
        raise ExportError(f"Cannot render statistics for {query_uri!r}: {e}") from e
    return lines


def render_insert(lines: Iterable[str]) -> str:
    """Wrap statement lines into one INSERT request."""
    body = ''.join(line + '\n' for line in lines)
    return f"PREFIX qado: <{constants.QADO_NAMESPACE}>\nINSERT {{\n{body}}} WHERE {{}}"


def render_benchmark_prefixes(benchmark: str, namespaces: Iterable[str]) -> str:
    """
    Render the prefixes used across one benchmark's queries.

    A benchmark whose queries declare no prefix gets the `urn:no:prefix`
    marker, so every benchmark ends up with at least one statement.
    """
    namespaces = list(dict.fromkeys(namespaces)) or [constants.NO_PREFIX_IRI]
    dataset = URIRef(benchmark + DATASET_SUFFIX).n3()
    return render_insert(
        f"{dataset} qado:hasPrefix {URIRef(namespace).n3()} ." for namespace in namespaces
    )


class UpdateWriter:
    """
    Batches rendered statistics into numbered update files.

    Every `batch_size` queries a file is written; `close()` writes the
    remainder. File numbers continue across statistics and prefix files.
    """

    def __init__(self, output_dir: str, batch_size: int = 100):
        """
        Initialize writer.

        Args:
            output_dir: Directory receiving the `<n>.sparql` files
            batch_size: Queries per statistics file
        """
        if batch_size <= 0:
            raise ExportError(f"batch_size must be positive, got {batch_size}")

        self.output_dir = output_dir
        self.batch_size = batch_size
        self.files_written: List[str] = []

        self._pending: List[str] = []
        self._pending_queries = 0

    def add(self, query_uri: str, metrics: Dict[str, int], query_type: str) -> Optional[str]:
        """
        Queue the statistics of one query.

        Returns:
            Path of the file written if this query completed a batch, else None
        """
        self._pending.extend(render_query_triples(query_uri, metrics, query_type))
        self._pending_queries += 1

        if self._pending_queries % self.batch_size == 0:
            return self.flush()
        return None

    def flush(self) -> Optional[str]:
        """Write queued statements, if any, as the next batch file."""
        if not self._pending:
            return None

        path = self._write(render_insert(self._pending))
        self._pending = []
        self._pending_queries = 0
        return path

    def write_benchmark_prefixes(self, benchmark_prefixes: Dict[str, Iterable[str]]) -> List[str]:
        """Write one prefix file per benchmark."""
        paths = []
        for benchmark, namespaces in benchmark_prefixes.items():
            logger.info("Writing benchmark prefixes", extra={'benchmark': benchmark})
            paths.append(self._write(render_benchmark_prefixes(benchmark, namespaces)))
        return paths

    def close(self) -> None:
        self.flush()

    def _write(self, content: str) -> str:
        path = os.path.join(self.output_dir, f"{len(self.files_written) + 1}.sparql")
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ExportError(f"Failed to write {path}: {e}") from e

        self.files_written.append(path)
        logger.debug(f"Wrote update batch {path}")
        return path
