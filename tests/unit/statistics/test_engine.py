"""Unit tests for the statistics engine orchestrator."""

import pytest

from sparql_analyser.core.statistics import METRIC_NAMES, QueryStatisticsEngine, analyze
from sparql_analyser.core.statistics.base import BaseStatisticsExtractor
from sparql_analyser.core.types import (
    IRI, BasicTriple, BinaryOperator, BinaryPath, FilterPattern, GraphPattern, InlineData,
    Literal, OrderCondition, PathTriple, PatternKind, Projection, PropertyStep, Query,
    SubQueryPattern, Variable,
)

S, P, O = Variable('s'), Variable('p'), Variable('o')
EX = 'http://example.org/'


def ex(local):
    return IRI(EX + local)


@pytest.fixture
def engine():
    return QueryStatisticsEngine({'placeholder': '<iri>'})


@pytest.fixture
def rich_query():
    """Query touching every construct the engine looks at."""
    inner = Query(
        root_pattern=GraphPattern(triple_patterns=(
            BasicTriple(S, ex('a'), O), BasicTriple(O, ex('b'), ex('C')), FilterPattern('?o != ?s'),
        )),
        variables=(S,), order_by=(OrderCondition('?s'),), limit=3,
    )
    return Query(
        root_pattern=GraphPattern(
            triple_patterns=(
                PathTriple(S, BinaryPath(BinaryOperator.SEQUENCE, PropertyStep(ex('p')), PropertyStep(ex('q'))), O),
                SubQueryPattern(inner),
                FilterPattern('?o > 2'),
            ),
            child_patterns=(GraphPattern(triple_patterns=(BasicTriple(S, ex('label'), Literal('x')),),
                                         kind=PatternKind.OPTIONAL),),
            inline_data=InlineData(variables=(O,), rows=((ex('v1'),), (ex('v2'),))),
        ),
        variables=(S, O),
        projection=(Projection(S), Projection(O)),
        group_by=('?s', '?o'),
        having=('COUNT(?o) > 0',),
        offset=4,
        namespaces={'ex': EX},
    )


class TestEngineInit:
    """Test engine initialization."""

    def test_metric_names(self, engine):
        assert engine.metric_names == METRIC_NAMES
        assert engine.metric_count == 13

    def test_version(self, engine):
        assert engine.VERSION == "1.0.0"

    def test_extractor_summary(self, engine):
        summary = engine.get_extractor_summary()

        assert summary['total_extractors'] == 4
        assert summary['total_metrics'] == 13
        assert [e['name'] for e in summary['extractors']] == [
            'PatternExtractor', 'ResourceExtractor', 'ModifierExtractor', 'LengthExtractor',
        ]


class TestScenarios:
    """End-to-end metric scenarios over hand-built trees."""

    def test_single_triple_with_bound_predicate(self, engine):
        query = Query(root_pattern=GraphPattern(triple_patterns=(BasicTriple(S, ex('p'), O),)),
                      variables=(S, O))

        metrics = engine.analyze(query)

        assert metrics['numberOfTriples'] == 1
        assert metrics['numberOfVariables'] == 2
        assert metrics['numberOfResources'] == 1
        assert metrics['numberOfResourcesSubjectsObjects'] == 0
        assert metrics['numberOfResourcesPredicates'] == 1
        assert metrics['numberOfModifierLimit'] == 0

    def test_subquery_with_order_by_on_both_levels(self, engine):
        inner = Query(
            root_pattern=GraphPattern(triple_patterns=(
                BasicTriple(S, P, O), BasicTriple(O, P, S), BasicTriple(S, ex('a'), ex('b')),
                FilterPattern('?s != ?o'),
            )),
            variables=(S,), order_by=(OrderCondition('?s'),),
        )
        query = Query(
            root_pattern=GraphPattern(triple_patterns=(
                BasicTriple(S, ex('name'), O), SubQueryPattern(inner), FilterPattern('?o > 1'),
            )),
            variables=(S,), order_by=(OrderCondition('?o', descending=True),),
        )

        metrics = engine.analyze(query)

        assert metrics['numberOfTriples'] == 4
        assert metrics['numberOfModifierOrderBy'] == 2
        assert metrics['numberOfFilters'] == 2

    def test_group_by_with_having(self, engine):
        query = Query(root_pattern=GraphPattern(triple_patterns=(BasicTriple(S, P, O),)),
                      variables=(S,), group_by=('?s',), having=('COUNT(?o) > 1',))

        metrics = engine.analyze(query)

        assert metrics['numberOfModifierGroupBy'] == 1
        assert metrics['numberOfModifierHaving'] == 1
        assert metrics['numberOfModifiers'] == 2

    def test_alternative_versus_sequence_path(self, engine):
        alternative = BinaryPath(BinaryOperator.ALTERNATIVE, PropertyStep(ex('a')), PropertyStep(ex('b')))
        sequence = BinaryPath(BinaryOperator.SEQUENCE, PropertyStep(ex('a')), PropertyStep(ex('b')))

        alt_metrics = engine.analyze(Query(root_pattern=GraphPattern(
            triple_patterns=(PathTriple(S, alternative, ex('Film')),))))
        seq_metrics = engine.analyze(Query(root_pattern=GraphPattern(
            triple_patterns=(PathTriple(S, sequence, O),))))

        assert alt_metrics['numberOfResources'] == 3
        assert alt_metrics['numberOfResourcesSubjectsObjects'] == 1
        assert seq_metrics['numberOfResources'] == 2
        assert seq_metrics['numberOfResourcesSubjectsObjects'] == 0

    @pytest.mark.parametrize('rows', [0, 1, 4])
    def test_values_block_only(self, engine, rows):
        data = InlineData(variables=(O,), rows=tuple((Literal(str(i), quoted=False),) for i in range(rows)))
        query = Query(root_pattern=GraphPattern(inline_data=data), variables=(O,))

        metrics = engine.analyze(query)

        assert metrics['numberOfResources'] == rows
        assert metrics['numberOfResourcesSubjectsObjects'] == 0
        assert metrics['numberOfTriples'] == 0


class TestInvariants:
    """Relations that hold for every query."""

    def test_all_metrics_present_in_order(self, engine, rich_query):
        metrics = engine.analyze(rich_query)

        assert list(metrics) == METRIC_NAMES
        assert all(isinstance(v, int) and v >= 0 for v in metrics.values())

    def test_predicates_are_the_difference(self, engine, rich_query):
        metrics = engine.analyze(rich_query)

        assert metrics['numberOfResourcesPredicates'] == \
            metrics['numberOfResources'] - metrics['numberOfResourcesSubjectsObjects']

    def test_modifier_sum(self, engine, rich_query):
        metrics = engine.analyze(rich_query)

        assert metrics['numberOfModifiers'] == sum(metrics[name] for name in [
            'numberOfModifierOrderBy', 'numberOfModifierLimit', 'numberOfModifierHaving',
            'numberOfModifierOffset', 'numberOfModifierGroupBy',
        ])
        assert metrics['numberOfModifiers'] == 5

    def test_rich_query_counts(self, engine, rich_query):
        metrics = engine.analyze(rich_query)

        assert metrics['numberOfTriples'] == 4
        assert metrics['numberOfFilters'] == 2
        assert metrics['numberOfVariables'] == 2
        # path steps 2, inner a/b/C 3, label + literal 2, VALUES rows 2
        assert metrics['numberOfResources'] == 9
        assert metrics['numberOfResourcesSubjectsObjects'] == 2

    def test_idempotent(self, engine, rich_query):
        assert engine.analyze(rich_query) == engine.analyze(rich_query)

    def test_no_filters(self, engine):
        query = Query(root_pattern=GraphPattern(triple_patterns=(BasicTriple(S, P, O),)))

        assert engine.analyze(query)['numberOfFilters'] == 0

    def test_module_level_analyze(self, rich_query):
        assert analyze(rich_query) == QueryStatisticsEngine().analyze(rich_query)


class TestErrorIsolation:
    """A failing extractor reports zeros without affecting the others."""

    def test_failing_extractor(self, engine, rich_query):
        class BrokenExtractor(BaseStatisticsExtractor):
            def get_metric_names(self):
                return ['broken']

            def extract(self, query):
                raise RuntimeError("boom")

        engine.extractors.append(BrokenExtractor())

        metrics = engine.analyze(rich_query)

        assert metrics['broken'] == 0
        assert metrics['numberOfTriples'] == 4

    def test_mismatched_metric_names(self, rich_query):
        class WrongNames(BaseStatisticsExtractor):
            def get_metric_names(self):
                return ['expected']

            def extract(self, query):
                return {'other': 7}

        assert WrongNames().safe_extract(rich_query) == {'expected': 0}

    def test_invariant_check_logs_only(self, rich_query):
        engine = QueryStatisticsEngine({'check_invariants': True})
        broken = Query(root_pattern=rich_query.root_pattern, variables=(S, S), limit=-1)

        metrics = engine.analyze(broken)

        assert metrics['numberOfVariables'] == 1
