import numpy as np
import pytest

from omicsnet.config import QueryConfig
from omicsnet.engine import perturb_by_id
from omicsnet.errors import QueryEngineError, StaleIndexError
from omicsnet.query import EXAMPLE_QUERIES, DrugFilter, ExpressionDirection, QueryEngine, parse_query
from omicsnet.query.parser import matches_direction
from omicsnet.taxonomy.models import OmicsType, TimePoint


@pytest.fixture(scope="module")
def engine(baseline) -> QueryEngine:
    return QueryEngine(baseline)


def test_proteins_upregulated_scenario(make_node) -> None:
    protein = make_node("HK2", omics=OmicsType.PROTEIN, fold_change=1.5, index=0)
    metabolite = make_node("HK2", omics=OmicsType.METABOLITE, fold_change=1.5, index=1)

    result = parse_query("Show me proteins that are upregulated", [protein, metabolite])

    assert result.nodes == (protein,)
    assert result.confidence == 0.8
    assert 'omics layers ["protein"]' in result.explanation
    assert 'expression ["upregulated"]' in result.explanation
    assert result.explanation.startswith("Found 1 nodes filtered by")


def test_unmatched_text_returns_everything(make_node) -> None:
    nodes = [make_node("HK2", index=0), make_node("GLUT4", index=1)]

    result = parse_query("banana", nodes)

    assert result.nodes == tuple(nodes)
    assert result.confidence == 0.4
    assert result.explanation == "Found 2 nodes (no specific filters applied)"


def test_empty_input_list() -> None:
    result = parse_query("Show me proteins that are upregulated", [])

    assert result.nodes == ()
    assert result.confidence == 0.2


def test_specific_query_confidence(engine, baseline) -> None:
    result = engine.parse_query("Find proteins in glucose metabolsm", baseline.nodes)

    assert result.intents.pathways[0] == "Glucose Metabolism"
    assert result.nodes
    assert all(node.pathway == "Glucose Metabolism" for node in result.nodes)
    assert all(node.omics_type is OmicsType.PROTEIN for node in result.nodes)
    assert result.confidence == 0.9


def test_adding_intents_never_grows_result(engine, baseline) -> None:
    broad = engine.parse_query("Show metabolites", baseline.nodes)
    narrow = engine.parse_query("Show metabolites in energy metabolism at 10 min", baseline.nodes)

    assert set(node.id for node in narrow.nodes) <= set(node.id for node in broad.nodes)
    assert len(narrow.nodes) < len(broad.nodes)

    pathway_only = engine.parse_query("Glucose Metabolism", baseline.nodes)
    with_time = engine.parse_query("Glucose Metabolism at 90 min", baseline.nodes)
    assert 0 < len(with_time.nodes) <= len(pathway_only.nodes)


def test_time_words_match_whole_words(engine) -> None:
    assert engine.extract_intents("Show upregulated proteins").timepoints == ()
    assert engine.extract_intents("Show late changes").timepoints == (TimePoint.MIN_90, TimePoint.HOURS_48)
    assert engine.extract_intents("immediate responses").timepoints == (TimePoint.MIN_10, TimePoint.MIN_30)
    assert engine.extract_intents("Show lipids after 48 hours").timepoints == (TimePoint.HOURS_48,)
    assert engine.extract_intents("upregulated for hours").timepoints == ()


def test_negative_drug_phrase_takes_precedence(engine) -> None:
    assert engine.extract_intents("Which nodes are unperturbed?").drug_filters == (DrugFilter.NOT_DRUG_TARGETS,)
    assert engine.extract_intents("Genes not affected by the drug").drug_filters == (DrugFilter.NOT_DRUG_TARGETS,)
    assert engine.extract_intents("Which metabolites are drug targets?").drug_filters == (DrugFilter.DRUG_TARGETS,)


def test_category_words_and_fuzzy_categories(engine) -> None:
    intents = engine.extract_intents("Find proteins in immune pathways")

    assert "Immune Response" in intents.categories
    assert intents.omics_types == (OmicsType.PROTEIN,)


def test_gene_symbol_intent(engine, baseline) -> None:
    intents = engine.extract_intents("Where is TP53 at 10 min?")
    result = engine.parse_query("Where is TP53 at 10 min?", baseline.nodes)

    assert intents.gene_symbols == ("TP53",)
    assert result.nodes
    assert all(node.gene_symbol == "TP53" and node.timepoint is TimePoint.MIN_10 for node in result.nodes)


def test_expression_direction_uses_fold_then_expression(make_node) -> None:
    assert matches_direction(make_node("A", fold_change=1.3), ExpressionDirection.UPREGULATED)
    assert matches_direction(make_node("A", fold_change=0.7), ExpressionDirection.DOWNREGULATED)
    assert matches_direction(make_node("A", fold_change=1.0), ExpressionDirection.UNCHANGED)
    assert matches_direction(make_node("A", expression=0.5), ExpressionDirection.UNCHANGED)
    assert matches_direction(make_node("A", expression=5.0), ExpressionDirection.UPREGULATED)


def test_drug_target_filter_on_perturbed_graph(engine, baseline, taxonomy) -> None:
    perturbed = perturb_by_id(baseline, "propofol", rng=np.random.default_rng(3), taxonomy=taxonomy)

    targets = engine.parse_query("Which lipids are drug targets?", perturbed.nodes)
    others = engine.parse_query("Which nodes are unperturbed?", perturbed.nodes)

    assert targets.nodes
    assert all(node.is_perturbation_target and node.omics_type is OmicsType.LIPID for node in targets.nodes)
    assert all(not node.is_perturbation_target for node in others.nodes)


def test_stale_nodes_are_rejected(engine, baseline, make_node) -> None:
    foreign = make_node("HK2")

    with pytest.raises(StaleIndexError):
        engine.parse_query("Show proteins", [*baseline.nodes[:5], foreign])


def test_unbuilt_engine_raises() -> None:
    engine = QueryEngine()

    assert not engine.is_built
    with pytest.raises(QueryEngineError):
        engine.parse_query("Show proteins", [])


def test_query_config_limits_pathway_matches(baseline) -> None:
    engine = QueryEngine(baseline, config=QueryConfig(pathway_max_distance=0.9, pathway_limit=1))

    assert len(engine.extract_intents("glucose metabolism").pathways) == 1


@pytest.mark.parametrize("text", EXAMPLE_QUERIES)
def test_example_queries_run(engine, baseline, text: str) -> None:
    result = engine.parse_query(text, baseline.nodes)

    assert result.explanation.startswith(f"Found {len(result.nodes)} nodes")
    assert 0.2 <= result.confidence <= 0.9
