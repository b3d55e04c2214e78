import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from typing import Callable, Iterable

import numpy as np
import pytest

from omicsnet.config import GeneratorConfig
from omicsnet.network import BiologicalNode, PathwayData, generate_network
from omicsnet.taxonomy import Taxonomy, build_taxonomy, default_taxonomy
from omicsnet.taxonomy.models import OmicsType, TimePoint


SMALL_TAXONOMY_PAYLOAD = {
    "version": "test",
    "time_points": ["10 min", "30 min", "90 min", "48 hours"],
    "categories": {
        "Energy Metabolism": ["Glucose Metabolism", "Lipid Metabolism"],
        "Circadian Rhythm": ["Circadian Clock", "Sleep-Wake Cycle"],
    },
    "gene_names": {
        "Glucose Metabolism": ["GLUT4", "HK2"],
        "Lipid Metabolism": ["FASN", "CPT1A"],
        "Circadian Clock": ["BDNF", "PER1", "GRIN1"],
        "Sleep-Wake Cycle": ["HCRT"],
    },
    "well_studied_pathways": ["Glucose Metabolism"],
    "cross_talk": [],
    "drugs": [
        {
            "id": "testdrug",
            "name": "Test Drug",
            "mechanism": "Clock modulator",
            "target_pathways": ["Circadian Clock"],
            "target_omics_types": ["transcript"],
            "effects": {
                "upregulated_genes": ["BDNF"],
                "downregulated_genes": ["GRIN1"],
                "enhanced_interactions": ["BDNF-TrkB"],
                "disrupted_interactions": ["NMDA-Glutamate"],
            },
        }
    ],
}


@pytest.fixture(scope="session")
def taxonomy() -> Taxonomy:
    return default_taxonomy()


@pytest.fixture(scope="session")
def small_taxonomy() -> Taxonomy:
    """Two categories, four pathways and a single clock-targeting drug."""

    return build_taxonomy(SMALL_TAXONOMY_PAYLOAD)


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture(scope="session")
def baseline(taxonomy: Taxonomy) -> PathwayData:
    """Seeded baseline network shared by read-only tests."""

    return generate_network(taxonomy, rng=np.random.default_rng(2024), config=GeneratorConfig(seed=2024))


@pytest.fixture()
def make_node() -> Callable[..., BiologicalNode]:
    """Factory for hand-built nodes with sensible defaults."""

    def factory(
        symbol: str,
        *,
        pathway: str = "Glucose Metabolism",
        categories: Iterable[str] = ("Energy Metabolism",),
        omics: OmicsType = OmicsType.PROTEIN,
        timepoint: TimePoint = TimePoint.MIN_10,
        expression: float = 5.0,
        fold_change: float | None = None,
        is_target: bool = False,
        index: int = 0,
    ) -> BiologicalNode:
        node_id = f"{timepoint.value}_{pathway}_{omics.value}_{symbol}_{index}".replace(" ", "")
        return BiologicalNode(
            id=node_id,
            name=f"{symbol}_{timepoint.suffix}",
            omics_type=omics,
            pathway=pathway,
            broad_category=frozenset(categories),
            timepoint=timepoint,
            expression=expression if fold_change is None else expression * fold_change,
            baseline_expression=expression,
            perturbed_expression=None if fold_change is None else expression * fold_change,
            fold_change=fold_change,
            significance=0.01,
            confidence=0.5,
            is_perturbation_target=is_target,
        )

    return factory
