import pytest

from omicsnet.analysis import category_changes, links_among, links_touching, query_subgraph, summarize_effects
from omicsnet.network import BiologicalLink, LinkType, PathwayData
from omicsnet.query import QueryResult
from omicsnet.taxonomy.models import OmicsType


@pytest.fixture()
def tiny(make_node):
    a = make_node("HK2", omics=OmicsType.PROTEIN, expression=2.0, index=0)
    b = make_node("GLUT4", omics=OmicsType.PROTEIN, expression=4.0, index=1)
    c = make_node("FASN", pathway="Lipid Metabolism", omics=OmicsType.LIPID, expression=6.0, index=2)
    links = (
        BiologicalLink(a.id, b.id, 0.6, 0.6, LinkType.REGULATION),
        BiologicalLink(b.id, c.id, 0.3, 0.3, LinkType.INTERACTION),
    )
    baseline = PathwayData(
        nodes=(a, b, c),
        links=links,
        pathways=("Glucose Metabolism", "Lipid Metabolism"),
        broad_categories=("Energy Metabolism",),
    )
    return baseline, (a, b, c)


def test_summarize_effects_without_drugs(tiny) -> None:
    baseline, _ = tiny

    cells = summarize_effects(baseline)

    assert [(cell.pathway, cell.omics_type) for cell in cells] == [
        ("Glucose Metabolism", OmicsType.PROTEIN),
        ("Lipid Metabolism", OmicsType.LIPID),
    ]
    assert cells[0].node_count == 2
    assert cells[0].mean_expression == pytest.approx(3.0)
    assert cells[0].mean_confidence == pytest.approx(0.5)
    assert cells[0].drug_effect == 0.0
    assert cells[0].fold_changes == {}


def test_summarize_effects_averages_drugs(tiny, make_node) -> None:
    baseline, (a, b, c) = tiny
    first = PathwayData(
        nodes=(
            make_node("HK2", expression=2.0, fold_change=2.0, index=0),
            make_node("GLUT4", expression=4.0, fold_change=1.0, index=1),
            c,
        )
    )
    second = PathwayData(
        nodes=(
            make_node("HK2", expression=2.0, fold_change=0.5, index=0),
            make_node("GLUT4", expression=4.0, fold_change=0.5, index=1),
        )
    )

    cells = summarize_effects(baseline, {"first": first, "second": second})
    glucose = cells[0]

    assert glucose.fold_changes == {"first": pytest.approx(1.5), "second": pytest.approx(0.5)}
    assert glucose.drug_effect == pytest.approx(0.5)
    assert cells[1].fold_changes == {"first": 1.0}
    assert glucose.as_dict()["omics_type"] == "protein"


def test_category_changes_counts_strong_effects(make_node) -> None:
    data = PathwayData(
        nodes=(
            make_node("HK2", fold_change=2.0, index=0),
            make_node("GLUT4", fold_change=0.3, index=1),
            make_node("PFKM", fold_change=1.1, index=2),
            make_node("PER1", pathway="Circadian Clock", categories=("Circadian Rhythm",), index=3),
        ),
        broad_categories=("Energy Metabolism", "Circadian Rhythm", "Heart Rate"),
    )

    changes = category_changes(data)

    assert changes["Energy Metabolism"].increased == 1
    assert changes["Energy Metabolism"].decreased == 1
    assert changes["Energy Metabolism"].total == 3
    assert changes["Circadian Rhythm"].total == 1
    assert changes["Heart Rate"].total == 0


def test_link_neighbourhoods(tiny) -> None:
    baseline, (a, b, c) = tiny

    assert links_among(baseline, [a.id, b.id]) == [baseline.links[0]]
    assert links_touching(baseline, [c.id]) == [baseline.links[1]]


def test_query_subgraph(tiny) -> None:
    baseline, (a, b, c) = tiny
    result = QueryResult(nodes=(a,), explanation="", confidence=0.8)

    alone = query_subgraph(baseline, result)
    widened = query_subgraph(baseline, result, include_neighbours=True)

    assert [node.id for node in alone.nodes] == [a.id]
    assert alone.links == ()
    assert [node.id for node in widened.nodes] == [a.id, b.id]
    assert widened.links == (baseline.links[0],)
