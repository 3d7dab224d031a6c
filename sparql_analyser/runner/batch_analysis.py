"""
Batch analysis of stored SPARQL queries.

Reads query records from a JSON array or JSON-lines file, parses and
analyses every query, and writes:
- statistics.json with the metrics of every parsable query
- numbered SPARQL update files (statistics, then per-benchmark prefixes)

A JSON summary is printed to stdout; logs go to stderr.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from sparql_analyser.common.config import load_config, load_prefix_dictionary
from sparql_analyser.common.exceptions import (
    ConfigurationError,
    ExportError,
    QueryAnalyserError,
    QueryParseError,
)
from sparql_analyser.core.parsers.sparql_parser import SparqlQueryParser
from sparql_analyser.core.statistics.engine import QueryStatisticsEngine
from sparql_analyser.core.types.query_record import QueryRecord
from sparql_analyser.export.update_writer import UpdateWriter
from sparql_analyser.runner.schemas import AnalysisSummary, QueryRecordModel, QueryStatistics
from sparql_analyser.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

STATISTICS_FILE = 'statistics.json'


def load_records(path: str) -> List[QueryRecord]:
    """
    Load query records from a JSON array or JSON-lines file.

    Records failing validation are logged and skipped.

    Raises:
        ConfigurationError: File missing or not valid JSON
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read query records {path}: {e}") from e

    try:
        if content.lstrip().startswith('['):
            raw_records = json.loads(content)
        else:
            raw_records = [json.loads(line) for line in content.splitlines() if line.strip()]
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    records = []
    for index, raw in enumerate(raw_records):
        try:
            records.append(QueryRecordModel.model_validate(raw).to_query_record())
        except (ValidationError, ValueError) as e:
            logger.warning("Skipping invalid query record", extra={'index': index, 'error': str(e)})

    logger.info(f"Loaded {len(records)} query records from {path}")
    return records


class BatchAnalysisRunner:
    """
    Parses, analyses and exports a collection of query records.

    Unparsable queries are counted per benchmark and their errors kept;
    they never stop the run.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize runner.

        Args:
            config: Full analyser configuration (see load_config)
        """
        parser_config = config.get('parser', {})
        export_config = config.get('export', {})

        self.parser = SparqlQueryParser.from_config(parser_config, load_prefix_dictionary(parser_config))
        self.engine = QueryStatisticsEngine(config.get('statistics', {}))
        self.output_dir = export_config.get('output_dir', 'analysis')
        self.batch_size = export_config.get('batch_size', 100)

    def run(self, records: List[QueryRecord]) -> AnalysisSummary:
        """
        Analyse all records and write the output files.

        Raises:
            ExportError: Output files cannot be written
        """
        writer = UpdateWriter(self.output_dir, self.batch_size)

        statistics: List[QueryStatistics] = []
        parse_errors: List[str] = []
        non_parsable_by_benchmark: Dict[str, int] = {}
        benchmark_prefixes: Dict[str, Dict[str, None]] = {}

        for record in records:
            try:
                query = self.parser.parse(record.text)
            except QueryParseError as e:
                parse_errors.append(f"{record.query_id}    {e}")
                non_parsable_by_benchmark[record.benchmark] = \
                    non_parsable_by_benchmark.get(record.benchmark, 0) + 1
                logger.warning("Query not parsable",
                               extra={'query_id': record.query_id, 'error': str(e)})
                continue

            metrics = self.engine.analyze(query)

            # Ordered set of namespaces, recovered prefixes included
            namespaces = benchmark_prefixes.setdefault(record.benchmark, {})
            namespaces.update(dict.fromkeys(query.namespaces.values()))

            writer.add(record.query_id, metrics, query.query_type.value)
            statistics.append(QueryStatistics(
                id=record.query_id,
                benchmark=record.benchmark,
                query_type=query.query_type.value,
                metrics=metrics,
            ))

        writer.close()
        writer.write_benchmark_prefixes(benchmark_prefixes)
        statistics_path = self._write_statistics(statistics)

        summary = AnalysisSummary(
            total=len(records),
            parsable=len(statistics),
            non_parsable=len(parse_errors),
            non_parsable_by_benchmark=non_parsable_by_benchmark,
            parse_errors=parse_errors,
            benchmark_prefixes={b: list(ns) for b, ns in benchmark_prefixes.items()},
            files_written=[statistics_path] + writer.files_written,
        )

        logger.info(
            "Batch analysis complete",
            extra={
                'total': summary.total,
                'parsable': summary.parsable,
                'non_parsable': summary.non_parsable,
            }
        )
        return summary

    def _write_statistics(self, statistics: List[QueryStatistics]) -> str:
        path = os.path.join(self.output_dir, STATISTICS_FILE)
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump([s.model_dump() for s in statistics], f, indent=2)
        except OSError as e:
            raise ExportError(f"Failed to write {path}: {e}") from e
        return path


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    arg_parser = argparse.ArgumentParser(description="SPARQL query statistics over stored queries")
    arg_parser.add_argument('records', help="JSON array or JSON-lines file of {id, text, benchmark}")
    arg_parser.add_argument('--config', default=None, help="Configuration file (YAML)")
    arg_parser.add_argument('--output-dir', default=None, help="Overrides export.output_dir")
    arg_parser.add_argument('--batch-size', type=int, default=None, help="Overrides export.batch_size")
    return arg_parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Console entry point.

    Returns:
        Process exit code
    """
    args = _parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"FATAL: Configuration error: {e}", file=sys.stderr)
        return 1

    export_config = config.setdefault('export', {})
    if args.output_dir is not None:
        export_config['output_dir'] = args.output_dir
    if args.batch_size is not None:
        export_config['batch_size'] = args.batch_size

    setup_logging(config.get('logging', {'level': 'INFO', 'format': 'json', 'output': 'stderr'}))

    try:
        runner = BatchAnalysisRunner(config)
        summary = runner.run(load_records(args.records))
    except QueryAnalyserError as e:
        logger.error(f"Batch analysis failed: {e}", exc_info=True)
        return 1

    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
