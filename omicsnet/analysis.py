"""Aggregations over generated and perturbed networks.

These helpers compute the numbers the presentation layer draws: effect
heat-map cells per pathway and omics layer, per-category counts of strongly
changed nodes, and the link neighbourhood of a query result.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple

import numpy as np

from .network.models import BiologicalLink, BiologicalNode, PathwayData
from .query.parser import QueryResult
from .taxonomy.models import OmicsType

LOGGER = logging.getLogger(__name__)

STRONG_INCREASE = 1.5
STRONG_DECREASE = 0.5


@dataclass(frozen=True)
class EffectSummary:
    """One heat-map cell: a pathway × omics layer slice of the network."""

    pathway: str
    omics_type: OmicsType
    node_count: int
    mean_confidence: float
    mean_expression: float
    drug_effect: float = 0.0
    fold_changes: Mapping[str, float] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, object]:
        return {
            "pathway": self.pathway,
            "omics_type": self.omics_type.value,
            "node_count": self.node_count,
            "mean_confidence": self.mean_confidence,
            "mean_expression": self.mean_expression,
            "drug_effect": self.drug_effect,
            "fold_changes": dict(self.fold_changes),
        }


@dataclass(frozen=True)
class CategoryChange:
    category: str
    increased: int
    decreased: int
    total: int


def _group(nodes: Iterable[BiologicalNode]) -> Dict[Tuple[str, OmicsType], List[BiologicalNode]]:
    grouped: Dict[Tuple[str, OmicsType], List[BiologicalNode]] = defaultdict(list)
    for node in nodes:
        grouped[(node.pathway, node.omics_type)].append(node)
    return grouped


def summarize_effects(
    baseline: PathwayData,
    perturbed: Mapping[str, PathwayData] | None = None,
) -> List[EffectSummary]:
    """Summarise ``baseline`` per pathway and omics layer.

    ``drug_effect`` is the mean, over the supplied drugs, of ``|mean fold
    change - 1|`` for the cell; drugs whose graph has no node in the cell are
    left out of the mean.
    """

    perturbed = perturbed or {}
    drug_groups = {drug_id: _group(data.nodes) for drug_id, data in perturbed.items()}
    pathway_order = {pathway: position for position, pathway in enumerate(baseline.pathways)}
    summaries: List[EffectSummary] = []
    for (pathway, omics), nodes in _group(baseline.nodes).items():
        folds: Dict[str, float] = {}
        for drug_id, groups in drug_groups.items():
            drug_nodes = groups.get((pathway, omics))
            if drug_nodes:
                folds[drug_id] = float(np.mean([node.effective_fold_change for node in drug_nodes]))
        effect = float(np.mean([abs(fold - 1.0) for fold in folds.values()])) if folds else 0.0
        summaries.append(
            EffectSummary(
                pathway=pathway,
                omics_type=omics,
                node_count=len(nodes),
                mean_confidence=float(np.mean([node.confidence for node in nodes])),
                mean_expression=float(np.mean([node.expression for node in nodes])),
                drug_effect=effect,
                fold_changes=folds,
            )
        )
    layer_order = {omics: position for position, omics in enumerate(OmicsType)}
    summaries.sort(
        key=lambda cell: (pathway_order.get(cell.pathway, len(pathway_order)), layer_order[cell.omics_type])
    )
    LOGGER.debug("Summarised %d cells across %d drugs", len(summaries), len(perturbed))
    return summaries


def category_changes(data: PathwayData) -> Dict[str, CategoryChange]:
    """Count strongly increased and decreased nodes per broad category."""

    counts: Dict[str, List[int]] = {category: [0, 0, 0] for category in data.broad_categories}
    for node in data.nodes:
        fold = node.effective_fold_change
        for category in node.broad_category:
            bucket = counts.setdefault(category, [0, 0, 0])
            bucket[2] += 1
            if fold > STRONG_INCREASE:
                bucket[0] += 1
            elif fold < STRONG_DECREASE:
                bucket[1] += 1
    return {
        category: CategoryChange(category=category, increased=up, decreased=down, total=total)
        for category, (up, down, total) in counts.items()
    }


def links_among(data: PathwayData, node_ids: Iterable[str]) -> List[BiologicalLink]:
    """Links whose two endpoints are both in ``node_ids``."""

    wanted: Set[str] = set(node_ids)
    return [link for link in data.links if link.source in wanted and link.target in wanted]


def links_touching(data: PathwayData, node_ids: Iterable[str]) -> List[BiologicalLink]:
    """Links with at least one endpoint in ``node_ids``."""

    wanted: Set[str] = set(node_ids)
    return [link for link in data.links if link.source in wanted or link.target in wanted]


def query_subgraph(data: PathwayData, result: QueryResult, *, include_neighbours: bool = False) -> PathwayData:
    """Restrict ``data`` to the nodes of ``result``.

    With ``include_neighbours`` the direct neighbours of the matched nodes and
    the links reaching them are kept as well.
    """

    matched = [node.id for node in result.nodes]
    if include_neighbours:
        links = links_touching(data, matched)
        keep: Set[str] = set(matched)
        for link in links:
            keep.update((link.source, link.target))
    else:
        links = links_among(data, matched)
        keep = set(matched)
    nodes: Sequence[BiologicalNode] = [node for node in data.nodes if node.id in keep]
    return PathwayData(
        nodes=tuple(nodes),
        links=tuple(links),
        pathways=data.pathways,
        broad_categories=data.broad_categories,
    )


__all__ = [
    "CategoryChange",
    "EffectSummary",
    "category_changes",
    "links_among",
    "links_touching",
    "query_subgraph",
    "summarize_effects",
]
