import json

import pytest

from omicsnet.errors import TaxonomyError, UnknownDrugError
from omicsnet.taxonomy import build_taxonomy, load_taxonomy
from omicsnet.taxonomy.models import OmicsType, TimePoint


def test_default_taxonomy_shape(taxonomy) -> None:
    assert taxonomy.version == "1.0.0"
    assert len(taxonomy.categories) == 7
    assert len(taxonomy.pathways) == 28
    assert taxonomy.time_points == TimePoint.ordered()
    assert {drug.id for drug in taxonomy.drugs} == {"ketamine", "etomidate", "propofol", "novel1", "novel2"}
    assert "mTOR Signaling" in taxonomy.well_studied_pathways


def test_every_pathway_has_curated_names(taxonomy) -> None:
    for pathway in taxonomy.pathways:
        assert len(taxonomy.names_for(pathway)) >= 20, pathway


def test_cross_talk_rules_point_at_other_valid_categories(taxonomy) -> None:
    assert taxonomy.cross_talk
    for rule in taxonomy.cross_talk:
        assert rule.category in taxonomy.categories
        assert rule.category not in taxonomy.categories_for(rule.pathway)
        assert 0.0 < rule.probability < 1.0


def test_get_drug_unknown_raises(taxonomy) -> None:
    with pytest.raises(UnknownDrugError) as excinfo:
        taxonomy.get_drug("placebo")
    assert excinfo.value.drug_id == "placebo"
    assert "placebo" in str(excinfo.value)


def test_drug_records_use_enum_layers(taxonomy) -> None:
    ketamine = taxonomy.get_drug("ketamine")
    assert OmicsType.TRANSCRIPT in ketamine.target_omics_types
    assert "BDNF" in ketamine.effects.upregulated_genes
    payload = ketamine.as_dict()
    assert payload["target_omics_types"] == ["transcript", "protein", "metabolite"]
    assert payload["effects"]["enhanced_interactions"] == ["BDNF-TrkB", "CREB-CBP"]


def test_time_point_suffixes_and_letters() -> None:
    assert [tp.suffix for tp in TimePoint.ordered()] == ["10m", "30m", "90m", "48h"]
    assert [tp.position for tp in TimePoint.ordered()] == [0, 1, 2, 3]
    assert "".join(omics.letter for omics in OmicsType) == "GPML"


def test_build_taxonomy_rejects_unknown_cross_talk_category() -> None:
    payload = {
        "categories": {"Energy Metabolism": ["Glucose Metabolism"]},
        "cross_talk": [{"pathway": "Glucose Metabolism", "category": "Nowhere", "probability": 0.5}],
    }
    with pytest.raises(TaxonomyError):
        build_taxonomy(payload)


def test_bundled_cross_talk_rules(taxonomy) -> None:
    rules = {(rule.pathway, rule.category): rule.probability for rule in taxonomy.cross_talk}

    assert rules == {("Autonomic Control", "Blood Pressure"): 0.25}


@pytest.mark.parametrize(
    "category",
    ["Energy Metabolism", "Sleep-Wake Cycle"],
)
def test_build_taxonomy_rejects_home_or_unknown_cross_talk_target(category: str) -> None:
    payload = {
        "categories": {"Energy Metabolism": ["Mitochondrial Respiration"], "Circadian Rhythm": ["Circadian Clock"]},
        "cross_talk": [{"pathway": "Mitochondrial Respiration", "category": category, "probability": 0.3}],
    }
    with pytest.raises(TaxonomyError):
        build_taxonomy(payload)


def test_build_taxonomy_rejects_unknown_omics_layer() -> None:
    payload = {
        "categories": {"Energy Metabolism": ["Glucose Metabolism"]},
        "drugs": [{"id": "x", "target_omics_types": ["glycan"]}],
    }
    with pytest.raises(TaxonomyError):
        build_taxonomy(payload)


def test_build_taxonomy_requires_categories() -> None:
    with pytest.raises(TaxonomyError):
        build_taxonomy({"version": "broken"})


def test_load_taxonomy_from_file(tmp_path) -> None:
    payload = {
        "version": "custom",
        "categories": {"Energy Metabolism": ["Glucose Metabolism"]},
        "gene_names": {"Glucose Metabolism": ["GLUT4"]},
        "drugs": [
            {
                "id": "sugar",
                "name": "Sugar",
                "mechanism": "Substrate",
                "target_pathways": ["Glucose Metabolism"],
                "target_omics_types": ["metabolite"],
            }
        ],
    }
    path = tmp_path / "taxonomy.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    taxonomy = load_taxonomy(path)

    assert taxonomy.version == "custom"
    assert taxonomy.names_for("Glucose Metabolism") == ("GLUT4",)
    assert taxonomy.get_drug("sugar").effects.upregulated_genes == ()
