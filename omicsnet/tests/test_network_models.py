from dataclasses import replace

from omicsnet.network import BiologicalLink, LinkType, PathwayData
from omicsnet.network.models import fingerprint_ids
from omicsnet.taxonomy.models import TimePoint


def test_node_clamps_confidence_and_significance(make_node) -> None:
    raised = replace(make_node("BDNF"), confidence=2.0, significance=-1.0)

    assert raised.confidence == 0.95
    assert raised.significance == 0.0
    assert isinstance(raised.broad_category, frozenset)


def test_gene_symbol_strips_time_suffix(make_node) -> None:
    assert make_node("BDNF").gene_symbol == "BDNF"
    assert make_node("PER1", timepoint=TimePoint.HOURS_48).name == "PER1_48h"
    assert make_node("PER1", timepoint=TimePoint.HOURS_48).gene_symbol == "PER1"


def test_effective_fold_change_defaults_to_one(make_node) -> None:
    assert make_node("HK2").effective_fold_change == 1.0
    assert make_node("HK2", fold_change=2.0).effective_fold_change == 2.0


def test_node_as_dict_sorts_categories(make_node) -> None:
    node = make_node("HK2", categories=("Temperature Regulation", "Energy Metabolism"))
    payload = node.as_dict()

    assert payload["broad_category"] == ["Energy Metabolism", "Temperature Regulation"]
    assert payload["omics_type"] == "protein"
    assert payload["timepoint"] == "10 min"
    assert payload["fold_change"] is None


def test_pathway_data_index_and_fingerprint(make_node) -> None:
    first = make_node("HK2", index=0)
    second = make_node("GLUT4", index=1)
    link = BiologicalLink(
        source=first.id,
        target=second.id,
        strength=0.7,
        baseline_strength=0.7,
        type=LinkType.REGULATION,
    )
    data = PathwayData(nodes=[second, first], links=[link], pathways=["Glucose Metabolism"])

    assert isinstance(data.nodes, tuple)
    assert data.get_node(first.id) is first
    assert data.get_node("missing") is None
    assert set(data.node_index()) == {first.id, second.id}
    assert data.fingerprint == fingerprint_ids([first.id, second.id])
    assert data.fingerprint == PathwayData(nodes=(first, second)).fingerprint
    assert link.pair == frozenset((first.id, second.id))
    assert data.as_dict()["links"][0]["type"] == "regulation"
