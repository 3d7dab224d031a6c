"""Unit tests for the rdflib-backed SPARQL parser."""

import pytest
import rdflib

from sparql_analyser.common.exceptions import QueryParseError, UnknownPrefixError
from sparql_analyser.core.parsers import SparqlQueryParser
from sparql_analyser.core.statistics import QueryStatisticsEngine
from sparql_analyser.core.types import (
    IRI, BasicTriple, BinaryOperator, BinaryPath, BlankNode, FilterPattern, Literal, PathTriple, PatternKind,
    QueryType, SubQueryPattern, Variable, find_invariant_violations,
)

EX = 'http://example.org/'
DBO = 'http://dbpedia.org/ontology/'
RDF_TYPE = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#type'
PROLOGUE = 'PREFIX ex: <http://example.org/>\n'


@pytest.fixture
def parser():
    return SparqlQueryParser(prefixes={'dbo': DBO, 'base': 'http://example.org/base/'})


@pytest.fixture
def engine():
    return QueryStatisticsEngine()


class TestBasicParsing:
    """Test conversion of simple queries."""

    def test_single_triple(self, parser, engine):
        query = parser.parse('SELECT ?s ?o WHERE { ?s <http://example.org/p> ?o }')

        assert query.query_type == QueryType.SELECT
        assert query.variables == (Variable('s'), Variable('o'))
        assert query.root_pattern.triple_patterns == (
            BasicTriple(Variable('s'), IRI(EX + 'p'), Variable('o')),
        )

        metrics = engine.analyze(query)
        assert metrics['numberOfTriples'] == 1
        assert metrics['numberOfVariables'] == 2
        assert metrics['numberOfResources'] == 1
        assert metrics['numberOfModifierLimit'] == 0

    def test_prefixed_names_resolved(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s a ex:Film }')

        triple = query.root_pattern.triple_patterns[0]
        assert triple.predicate == IRI(RDF_TYPE)
        assert triple.object == IRI(EX + 'Film')
        assert query.namespaces == {'ex': EX}

    def test_select_all_uses_pattern_variables(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT * WHERE { ?s ex:p ?o . ?o ex:q ?x }')

        assert query.select_all
        assert query.variables == (Variable('s'), Variable('o'), Variable('x'))

    def test_limit_offset_distinct(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT DISTINCT ?s WHERE { ?s ex:p ?o } LIMIT 10 OFFSET 5')

        assert query.limit == 10
        assert query.offset == 5
        assert query.distinct == 'DISTINCT'

    def test_filter(self, parser, engine):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o . FILTER(?o > 5) }')

        filters = [t for t in query.root_pattern.triple_patterns if isinstance(t, FilterPattern)]
        assert filters == [FilterPattern('?o > 5')]
        assert engine.analyze(query)['numberOfFilters'] == 1

    def test_group_by_having(self, parser, engine):
        query = parser.parse(
            PROLOGUE + 'SELECT ?s (COUNT(?o) AS ?c) WHERE { ?s ex:p ?o } GROUP BY ?s HAVING (COUNT(?o) > 1)'
        )

        assert query.group_by == ('?s',)
        assert query.having is not None and len(query.having) == 1
        assert query.variables == (Variable('s'), Variable('c'))

        metrics = engine.analyze(query)
        assert metrics['numberOfModifierGroupBy'] == 1
        assert metrics['numberOfModifierHaving'] == 1

    def test_order_by(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o } ORDER BY DESC(?o) ?s')

        assert len(query.order_by) == 2
        assert query.order_by[0].descending is True
        assert query.order_by[1].descending is None

    def test_tree_is_well_formed(self, parser):
        query = parser.parse(
            PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o OPTIONAL { ?o ex:q ?x } '
                       'VALUES ?s { ex:a ex:b } } LIMIT 3'
        )

        assert find_invariant_violations(query) == []


class TestPatterns:
    """Test graph pattern structure."""

    def test_optional_and_union(self, parser, engine):
        query = parser.parse(
            PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o OPTIONAL { ?o ex:q ?x } '
                       '{ ?s ex:a ?y } UNION { ?s ex:b ?y } }'
        )

        kinds = [child.kind for child in query.root_pattern.child_patterns]
        assert kinds == [PatternKind.OPTIONAL, PatternKind.UNION]
        assert engine.analyze(query)['numberOfTriples'] == 4

    def test_subquery_with_order_by_on_both_levels(self, parser, engine):
        query = parser.parse(
            PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o . '
                       '{ SELECT ?s WHERE { ?s ex:q ?x . ?x ex:r ?y . ?y ex:t ?z } ORDER BY ?s } '
                       '} ORDER BY ?s'
        )

        assert any(isinstance(t, SubQueryPattern) for t in query.root_pattern.triple_patterns)

        metrics = engine.analyze(query)
        assert metrics['numberOfTriples'] == 4
        assert metrics['numberOfModifierOrderBy'] == 2

    def test_values_block(self, parser, engine):
        query = parser.parse('SELECT ?x WHERE { VALUES ?x { 1 2 3 } }')

        assert query.root_pattern.inline_data.row_count == 3

        metrics = engine.analyze(query)
        assert metrics['numberOfResources'] == 3
        assert metrics['numberOfResourcesSubjectsObjects'] == 0

    def test_graph_pattern(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { GRAPH ?g { ?s ex:p ?o } }')

        child = query.root_pattern.child_patterns[0]
        assert child.kind == PatternKind.GRAPH
        assert child.term == Variable('g')


class TestPropertyPaths:
    """Test property path conversion."""

    def test_alternative_with_bound_object(self, parser, engine):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:a|ex:b ex:o }')

        triple = query.root_pattern.triple_patterns[0]
        assert isinstance(triple, PathTriple)
        assert isinstance(triple.path, BinaryPath)
        assert triple.path.operator == BinaryOperator.ALTERNATIVE
        assert engine.analyze(query)['numberOfResources'] == 3

    def test_sequence(self, parser, engine):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:a/ex:b ?o }')

        assert engine.analyze(query)['numberOfResources'] == 2

    def test_sequence_chain_is_left_deep(self, parser, engine):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:a/ex:b/ex:c ?o }')

        path = query.root_pattern.triple_patterns[0].path
        assert isinstance(path.left, BinaryPath)
        assert engine.analyze(query)['numberOfResources'] == 3

    def test_one_or_more(self, parser, engine):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:a+ ?o }')

        assert isinstance(query.root_pattern.triple_patterns[0], PathTriple)
        assert engine.analyze(query)['numberOfResources'] == 1


class TestQueryForms:
    """Test ASK / CONSTRUCT / DESCRIBE."""

    def test_ask(self, parser):
        query = parser.parse(PROLOGUE + 'ASK { ?s ex:p ?o }')

        assert query.query_type == QueryType.ASK
        assert query.variables == ()

    def test_construct(self, parser):
        query = parser.parse(PROLOGUE + 'CONSTRUCT { ?s ex:q ?o } WHERE { ?s ex:p ?o }')

        assert query.query_type == QueryType.CONSTRUCT
        assert len(query.template.triple_patterns) == 1
        assert query.variables == (Variable('s'), Variable('o'))

    def test_describe(self, parser):
        query = parser.parse(PROLOGUE + 'DESCRIBE ex:Alien')

        assert query.query_type == QueryType.DESCRIBE
        assert query.describe_terms == (IRI(EX + 'Alien'),)


class TestPrefixRecovery:
    """Test recovery of undeclared prefixes."""

    def test_known_prefix_recovered(self, parser):
        query = parser.parse('SELECT ?film WHERE { ?film a dbo:Film }')

        assert query.namespaces['dbo'] == DBO
        assert query.root_pattern.triple_patterns[0].object == IRI(DBO + 'Film')

    def test_default_prefix_uses_base_entry(self, parser):
        query = parser.parse('SELECT ?c WHERE { :a :b ?c }')

        assert query.namespaces[''] == 'http://example.org/base/'
        assert query.base_uri == 'http://example.org/base/'

    def test_relative_iri_uses_base_entry(self, parser):
        query = parser.parse('SELECT ?o WHERE { <Alien> <director> ?o }')

        assert query.root_pattern.triple_patterns[0].subject == IRI('http://example.org/base/Alien')

    def test_unknown_prefix_raises(self, parser):
        with pytest.raises(UnknownPrefixError) as exc_info:
            parser.parse('SELECT ?n WHERE { ?s foo:name ?n }')

        assert exc_info.value.prefix == 'foo'

    def test_no_recovery_without_dictionary(self):
        with pytest.raises(QueryParseError):
            SparqlQueryParser().parse('SELECT ?film WHERE { ?film a dbo:Film }')


class TestParseErrors:
    """Test rejection of invalid input."""

    @pytest.mark.parametrize('text', ['', '   ', None])
    def test_empty_input(self, parser, text):
        with pytest.raises(QueryParseError):
            parser.parse(text)

    def test_syntax_error(self, parser):
        with pytest.raises(QueryParseError, match="Invalid SPARQL"):
            parser.parse('SELECT WHERE {')

    def test_invalid_prefix_dictionary(self):
        with pytest.raises(ValueError):
            SparqlQueryParser(prefixes={'dbo': ''})


class TestBlankNodes:
    """Test labelling of blank nodes."""

    def test_numbered_in_order_of_appearance(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:p [] . ?s ex:q _:x . ?s ex:r _:x }')

        objects = [t.object for t in query.root_pattern.triple_patterns]
        assert objects == [BlankNode('b0'), BlankNode('b1'), BlankNode('b1')]

    def test_repeated_parses_are_equal(self, parser):
        text = PROLOGUE + 'SELECT ?s WHERE { ?s ex:p [ ex:q ?o ] . ?o ex:r [] }'

        assert parser.parse(text) == parser.parse(text)

    def test_anonymous_and_labelled_lengths_match(self, parser, engine):
        anonymous = parser.parse('SELECT * WHERE { ?s ?p [] }')
        labelled = parser.parse('SELECT * WHERE { ?s ?p _:node }')

        assert anonymous == labelled
        assert (engine.analyze(anonymous)['normalizedQueryLength']
                == engine.analyze(labelled)['normalizedQueryLength'])


class TestLiteralForms:
    """Test that literals keep the form they were written in."""

    @pytest.mark.parametrize('written', ['1.5e3', '1.50', '007', '+5'])
    def test_numeric_lexical_form_kept(self, parser, written):
        query = parser.parse(PROLOGUE + f'SELECT ?s WHERE {{ ?s ex:p {written} }}')

        assert query.root_pattern.triple_patterns[0].object == Literal(written, quoted=False)

    def test_numeric_in_filter_kept(self, parser):
        query = parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:p ?o FILTER(?o > 2.50) }')

        assert query.root_pattern.triple_patterns[-1] == FilterPattern('?o > 2.50')

    def test_normalization_setting_restored(self, parser):
        before = rdflib.NORMALIZE_LITERALS

        parser.parse(PROLOGUE + 'SELECT ?s WHERE { ?s ex:p 1.5e3 }')
        with pytest.raises(QueryParseError):
            parser.parse('SELECT WHERE {')

        assert rdflib.NORMALIZE_LITERALS == before


class TestFilterGrouping:
    """Test that bracketed sub-expressions survive parsing."""

    def test_or_inside_and(self, parser):
        query = parser.parse('SELECT * WHERE { ?s ?p ?o FILTER((?o > 1 || ?o < -1) && ?s != ?o) }')

        assert query.root_pattern.triple_patterns[-1] == FilterPattern('(?o > 1 || ?o < -1) && ?s != ?o')

    def test_negated_conjunction(self, parser):
        query = parser.parse('SELECT * WHERE { ?s ?p ?o FILTER(!(?o = 1 && ?s = 2)) }')

        assert query.root_pattern.triple_patterns[-1] == FilterPattern('!(?o = 1 && ?s = 2)')

    def test_grouping_changes_length(self, parser, engine):
        grouped = parser.parse('SELECT * WHERE { ?s ?p ?o FILTER((?o > 1 || ?o < 0) && ?s != ?o) }')
        flat = parser.parse('SELECT * WHERE { ?s ?p ?o FILTER(?o > 1 || ?o < 0 && ?s != ?o) }')

        assert (engine.analyze(grouped)['normalizedQueryLength']
                == engine.analyze(flat)['normalizedQueryLength'] + 2)


class TestTypeShorthand:
    """Test that rdf:type spelled either way measures the same."""

    def test_a_and_prefixed_type_same_length(self, parser, engine):
        short = parser.parse('SELECT ?f WHERE { ?f a ?c }')
        prefixed = parser.parse('PREFIX rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#>\n'
                                'SELECT ?f WHERE { ?f rdf:type ?c }')

        assert (engine.analyze(short)['normalizedQueryLength']
                == engine.analyze(prefixed)['normalizedQueryLength'])
        assert engine.analyze(short)['normalizedQueryLength'] < 40
