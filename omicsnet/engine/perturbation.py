"""Drug perturbation of a baseline network.

Eligibility and effect sizes are heuristics: a node is in reach of a drug
when it sits in one of the drug's target pathways, in one of its target
omics layers, or in a category that also contains a target pathway.  Named
gene and interaction signatures take precedence over the weighted random
draw applied to every other eligible node or link.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from ..errors import UnknownDrugError
from ..network.models import BiologicalLink, BiologicalNode, PathwayData
from ..taxonomy import Taxonomy, default_taxonomy
from ..taxonomy.models import DrugTreatment

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectBand:
    """Half-open multiplier range ``[low, high)`` drawn uniformly."""

    low: float
    high: float

    def draw(self, rng: np.random.Generator) -> float:
        return float(rng.uniform(self.low, self.high))


UPREGULATED_FOLD = EffectBand(1.8, 3.3)
DOWNREGULATED_FOLD = EffectBand(0.15, 0.6)

# (cumulative probability, band) for eligible nodes without a named signature
NODE_OUTCOMES: Tuple[Tuple[float, EffectBand], ...] = (
    (0.4, EffectBand(1.5, 2.5)),
    (0.8, EffectBand(0.3, 0.7)),
    (1.0, EffectBand(0.85, 1.15)),
)

ENHANCED_STRENGTH = EffectBand(1.6, 2.8)
DISRUPTED_STRENGTH = EffectBand(0.1, 0.4)
BYSTANDER_STRENGTH = EffectBand(0.95, 1.05)

LINK_OUTCOMES: Tuple[Tuple[float, EffectBand], ...] = (
    (0.3, EffectBand(1.4, 2.2)),
    (0.6, EffectBand(0.2, 0.6)),
    (1.0, EffectBand(0.8, 1.2)),
)


def _weighted(rng: np.random.Generator, outcomes: Sequence[Tuple[float, EffectBand]]) -> float:
    roll = rng.random()
    for threshold, band in outcomes:
        if roll < threshold:
            return band.draw(rng)
    return outcomes[-1][1].draw(rng)


def symbols_match(first: str, second: str) -> bool:
    """Case-insensitive substring match in either direction."""

    a, b = first.upper(), second.upper()
    if not a or not b:
        return False
    return a in b or b in a


def part_matches(part: str, symbol: str) -> bool:
    """True when ``symbol`` is ``part`` or extends it (``CREB`` -> ``CREB1``)."""

    a, b = part.upper(), symbol.upper()
    if not a or not b:
        return False
    return b.startswith(a)


def _split_pair(pair: str) -> List[str]:
    return [part.strip() for part in pair.split("-") if part.strip()]


class PerturbationEngine:
    """Apply one :class:`DrugTreatment` to a baseline :class:`PathwayData`."""

    def __init__(self, drug: DrugTreatment, *, rng: np.random.Generator, taxonomy: Taxonomy) -> None:
        if not taxonomy.has_drug(drug):
            raise UnknownDrugError(drug.id)
        self.drug = drug
        self.rng = rng
        self.taxonomy = taxonomy
        self.target_pathways: FrozenSet[str] = frozenset(drug.target_pathways)
        self.target_omics = frozenset(drug.target_omics_types)
        self.target_categories: FrozenSet[str] = frozenset(
            category for pathway in drug.target_pathways for category in taxonomy.categories_for(pathway)
        )
        self.enhanced_parts = [_split_pair(pair) for pair in drug.effects.enhanced_interactions]
        self.disrupted_parts = [_split_pair(pair) for pair in drug.effects.disrupted_interactions]

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def is_eligible(self, node: BiologicalNode) -> bool:
        if node.pathway in self.target_pathways or node.omics_type in self.target_omics:
            return True
        categories = set(node.broad_category) | self.taxonomy.categories_for(node.pathway)
        return bool(categories & self.target_categories)

    def node_fold(self, node: BiologicalNode) -> float:
        symbol = node.gene_symbol
        if any(symbols_match(gene, symbol) for gene in self.drug.effects.upregulated_genes):
            return UPREGULATED_FOLD.draw(self.rng)
        if any(symbols_match(gene, symbol) for gene in self.drug.effects.downregulated_genes):
            return DOWNREGULATED_FOLD.draw(self.rng)
        return _weighted(self.rng, NODE_OUTCOMES)

    def perturb_node(self, node: BiologicalNode) -> BiologicalNode:
        baseline = node.baseline_expression
        if not self.is_eligible(node):
            return replace(
                node,
                expression=baseline,
                perturbed_expression=baseline,
                fold_change=1.0,
            )
        fold = self.node_fold(node)
        value = baseline * fold
        return replace(
            node,
            expression=value,
            perturbed_expression=value,
            fold_change=fold,
            is_perturbation_target=True,
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------
    def _pair_hits(self, pairs: Iterable[List[str]], symbols: Tuple[str, str]) -> bool:
        return any(part_matches(part, symbol) for parts in pairs for part in parts for symbol in symbols)

    def link_multiplier(self, source: BiologicalNode, target: BiologicalNode) -> float:
        symbols = (source.gene_symbol, target.gene_symbol)
        if self._pair_hits(self.enhanced_parts, symbols):
            return ENHANCED_STRENGTH.draw(self.rng)
        if self._pair_hits(self.disrupted_parts, symbols):
            return DISRUPTED_STRENGTH.draw(self.rng)
        if source.pathway not in self.target_pathways and target.pathway not in self.target_pathways:
            return BYSTANDER_STRENGTH.draw(self.rng)
        return _weighted(self.rng, LINK_OUTCOMES)

    def perturb_link(self, link: BiologicalLink, source: BiologicalNode, target: BiologicalNode) -> BiologicalLink:
        multiplier = self.link_multiplier(source, target)
        value = link.baseline_strength * multiplier
        return replace(link, strength=value, perturbed_strength=value, strength_change=multiplier)

    # ------------------------------------------------------------------
    def apply(self, baseline: PathwayData) -> PathwayData:
        nodes: List[BiologicalNode] = []
        skipped_nodes = 0
        for node in baseline.nodes:
            if not node.id or not node.name:
                skipped_nodes += 1
                LOGGER.warning("Skipping invalid node in perturbation: %r", node)
                continue
            nodes.append(self.perturb_node(node))

        index: Dict[str, BiologicalNode] = {node.id: node for node in baseline.nodes if node.id}
        links: List[BiologicalLink] = []
        skipped_links = 0
        for link in baseline.links:
            source = index.get(link.source) if link.source else None
            target = index.get(link.target) if link.target else None
            if source is None or target is None:
                skipped_links += 1
                LOGGER.warning("Skipping link with unknown endpoints: %s -> %s", link.source, link.target)
                continue
            links.append(self.perturb_link(link, source, target))

        targets = sum(1 for node in nodes if node.is_perturbation_target)
        LOGGER.info(
            "Applied %s: %d/%d nodes perturbed, %d links rescaled (%d nodes, %d links skipped)",
            self.drug.id,
            targets,
            len(nodes),
            len(links),
            skipped_nodes,
            skipped_links,
        )
        return PathwayData(
            nodes=tuple(nodes),
            links=tuple(links),
            pathways=baseline.pathways,
            broad_categories=baseline.broad_categories,
        )


def apply_perturbation(
    baseline: PathwayData,
    drug: DrugTreatment,
    *,
    rng: np.random.Generator | None = None,
    taxonomy: Taxonomy | None = None,
) -> PathwayData:
    """Return a perturbed copy of ``baseline``; the input is never mutated.

    Raises :class:`~omicsnet.errors.UnknownDrugError` when ``drug`` is not part
    of the taxonomy's treatment table.
    """

    engine = PerturbationEngine(
        drug,
        rng=rng if rng is not None else np.random.default_rng(),
        taxonomy=taxonomy or default_taxonomy(),
    )
    return engine.apply(baseline)


def perturb_by_id(
    baseline: PathwayData,
    drug_id: str,
    *,
    rng: np.random.Generator | None = None,
    taxonomy: Taxonomy | None = None,
) -> PathwayData:
    taxonomy = taxonomy or default_taxonomy()
    return apply_perturbation(baseline, taxonomy.get_drug(drug_id), rng=rng, taxonomy=taxonomy)


def apply_perturbations(
    baseline: PathwayData,
    drug_ids: Sequence[str],
    *,
    rng: np.random.Generator | None = None,
    taxonomy: Taxonomy | None = None,
) -> Mapping[str, PathwayData]:
    """Perturb ``baseline`` once per drug, preserving the requested order.

    Every drug id is resolved before any work is done so a typo in the list
    fails without partial output.
    """

    taxonomy = taxonomy or default_taxonomy()
    drugs = [taxonomy.get_drug(drug_id) for drug_id in drug_ids]
    rng = rng if rng is not None else np.random.default_rng()
    results: Dict[str, PathwayData] = {}
    for drug in drugs:
        if drug.id in results:
            continue
        results[drug.id] = apply_perturbation(baseline, drug, rng=rng, taxonomy=taxonomy)
    return results


__all__ = [
    "EffectBand",
    "PerturbationEngine",
    "apply_perturbation",
    "apply_perturbations",
    "perturb_by_id",
    "part_matches",
    "symbols_match",
]
