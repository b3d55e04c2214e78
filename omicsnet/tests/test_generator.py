from collections import Counter

import numpy as np
import pytest

from omicsnet.config import GeneratorConfig
from omicsnet.network import LinkType, NetworkGenerator, generate_network
from omicsnet.network.generator import fallback_name, layer_counts, validate_links, validate_nodes
from omicsnet.network.models import BiologicalLink
from omicsnet.taxonomy import build_taxonomy
from omicsnet.taxonomy.models import OmicsType, TimePoint


def test_layer_counts_round_half_up() -> None:
    assert layer_counts(17, TimePoint.MIN_10) == {
        OmicsType.TRANSCRIPT: 2,
        OmicsType.PROTEIN: 7,
        OmicsType.METABOLITE: 7,
        OmicsType.LIPID: 2,
    }
    assert layer_counts(17, TimePoint.MIN_90)[OmicsType.LIPID] == 3


def test_fallback_name_uses_pathway_initials() -> None:
    assert fallback_name("Heat Shock Response", OmicsType.METABOLITE, 4) == "HSRM5"


def test_default_network_size(baseline) -> None:
    per_timepoint = Counter(node.timepoint for node in baseline.nodes)

    assert len(baseline.nodes) == 644
    assert per_timepoint[TimePoint.MIN_10] == 168
    assert per_timepoint[TimePoint.MIN_30] == 168
    assert per_timepoint[TimePoint.MIN_90] == 140
    assert per_timepoint[TimePoint.HOURS_48] == 168
    assert len(baseline.pathways) == 28
    assert len(baseline.broad_categories) == 7


def test_node_ids_unique_and_fields_in_range(baseline, taxonomy) -> None:
    ids = [node.id for node in baseline.nodes]
    assert len(set(ids)) == len(ids)
    for node in baseline.nodes:
        assert 1.0 <= node.expression <= 11.0
        assert node.expression == node.baseline_expression
        assert 0.1 <= node.confidence <= 0.95
        assert 0.0 <= node.significance <= 0.05
        assert node.fold_change is None
        assert not node.is_perturbation_target
        assert node.name.endswith(f"_{node.timepoint.suffix}")
        assert node.broad_category <= set(taxonomy.categories)
        assert any(node.pathway in taxonomy.categories[category] for category in node.broad_category)


def test_cross_talk_only_adds_configured_categories(baseline, taxonomy) -> None:
    rules = {rule.pathway: rule.category for rule in taxonomy.cross_talk}
    for node in baseline.nodes:
        home = taxonomy.categories_for(node.pathway)
        extra = node.broad_category - home
        if node.pathway in rules:
            assert extra <= {rules[node.pathway]}
        else:
            assert not extra


def test_links_are_unique_and_resolve(baseline) -> None:
    ids = {node.id for node in baseline.nodes}
    pairs = set()
    for link in baseline.links:
        assert link.source in ids and link.target in ids
        assert link.source != link.target
        assert link.pair not in pairs
        pairs.add(link.pair)
        assert 0.2 <= link.strength <= 0.9
        assert link.strength == link.baseline_strength
        assert link.strength_change == 1.0


def test_link_types_follow_construction_rules(baseline) -> None:
    nodes = baseline.node_index()
    kinds = Counter(link.type for link in baseline.links)
    assert set(kinds) == set(LinkType)

    for link in baseline.links:
        source, target = nodes[link.source], nodes[link.target]
        if link.type is LinkType.REGULATION:
            assert source.pathway == target.pathway
        elif link.type is LinkType.CONVERSION:
            assert source.pathway == target.pathway
            assert (source.omics_type, target.omics_type) in {
                (OmicsType.PROTEIN, OmicsType.METABOLITE),
                (OmicsType.METABOLITE, OmicsType.LIPID),
            }
            if target.omics_type is OmicsType.LIPID:
                assert "lipid" in source.pathway.lower() or "metabolism" in source.pathway.lower()


def test_same_seed_reproduces_graph(taxonomy) -> None:
    config = GeneratorConfig(seed=99, nodes_per_timepoint=56)

    first = generate_network(taxonomy, config=config)
    second = generate_network(taxonomy, rng=np.random.default_rng(99), config=config)

    assert first.as_dict() == second.as_dict()


def test_zero_budget_yields_empty_graph(taxonomy) -> None:
    data = generate_network(taxonomy, rng=np.random.default_rng(0), config=GeneratorConfig(nodes_per_timepoint=0))

    assert data.nodes == ()
    assert data.links == ()
    assert data.pathways == taxonomy.pathways


def test_empty_taxonomy_yields_empty_graph() -> None:
    data = NetworkGenerator(build_taxonomy({"categories": {}}), rng=np.random.default_rng(0)).generate()

    assert data.nodes == ()
    assert data.links == ()


def test_fallback_names_when_gene_list_is_short(small_taxonomy) -> None:
    generator = NetworkGenerator(
        small_taxonomy,
        rng=np.random.default_rng(5),
        config=GeneratorConfig(nodes_per_timepoint=40),
    )
    names = {node.name for node in generator.generate().nodes if node.pathway == "Sleep-Wake Cycle"}

    assert "HCRT_10m" in names
    assert any(name.startswith("SCP") or name.startswith("SCM") for name in names)


def test_validate_nodes_drops_pathways_outside_their_categories(make_node, small_taxonomy) -> None:
    good = make_node("HK2")
    misplaced = make_node("PER1", pathway="Circadian Clock", categories=("Energy Metabolism",))

    assert validate_nodes([good, misplaced], small_taxonomy) == [good]


def test_validate_links_drops_dangling(make_node, caplog: pytest.LogCaptureFixture) -> None:
    node = make_node("HK2")
    other = make_node("GLUT4", index=1)
    kept = BiologicalLink(node.id, other.id, 0.5, 0.5, LinkType.INTERACTION)
    dangling = BiologicalLink(node.id, "ghost", 0.5, 0.5, LinkType.INTERACTION)

    with caplog.at_level("INFO", logger="omicsnet.network.generator"):
        assert validate_links([kept, dangling], [node, other]) == [kept]
    assert "Dropped 1 dangling links" in caplog.text
