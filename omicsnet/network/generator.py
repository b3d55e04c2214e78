"""Synthetic multi-omics network generator.

The graph is laid out as a grid of time points × broad categories.  Every
cell is split across the four omics layers with a time-point dependent
distribution and then across the category's sub-pathways.  Links are added
in six ordered passes that model, in turn, local causal chains, temporal
cascades, feedback, cross-pathway and cross-category crosstalk, and the
central dogma chain transcript → protein → metabolite → lipid.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
import logging
import math
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Set

import numpy as np

from ..config import DEFAULT_GENERATOR_CONFIG, GeneratorConfig
from ..taxonomy import Taxonomy, default_taxonomy
from ..taxonomy.models import OmicsType, TimePoint
from .models import BiologicalLink, BiologicalNode, LinkType, PathwayData

LOGGER = logging.getLogger(__name__)


OMICS_DISTRIBUTION: Mapping[TimePoint, Mapping[OmicsType, float]] = {
    TimePoint.MIN_10: {
        OmicsType.TRANSCRIPT: 0.10,
        OmicsType.PROTEIN: 0.40,
        OmicsType.METABOLITE: 0.40,
        OmicsType.LIPID: 0.10,
    },
    TimePoint.MIN_30: {
        OmicsType.TRANSCRIPT: 0.25,
        OmicsType.PROTEIN: 0.35,
        OmicsType.METABOLITE: 0.30,
        OmicsType.LIPID: 0.10,
    },
    TimePoint.MIN_90: {
        OmicsType.TRANSCRIPT: 0.35,
        OmicsType.PROTEIN: 0.25,
        OmicsType.METABOLITE: 0.25,
        OmicsType.LIPID: 0.15,
    },
    TimePoint.HOURS_48: {
        OmicsType.TRANSCRIPT: 0.30,
        OmicsType.PROTEIN: 0.20,
        OmicsType.METABOLITE: 0.15,
        OmicsType.LIPID: 0.35,
    },
}

LAYER_CONFIDENCE_BONUS: Mapping[OmicsType, float] = {
    OmicsType.PROTEIN: 0.30,
    OmicsType.TRANSCRIPT: 0.25,
    OmicsType.METABOLITE: 0.20,
    OmicsType.LIPID: 0.15,
}

TIME_CONFIDENCE_BONUS: Mapping[TimePoint, float] = {
    TimePoint.MIN_10: 0.15,
    TimePoint.MIN_30: 0.10,
    TimePoint.MIN_90: 0.05,
    TimePoint.HOURS_48: -0.05,
}

BASE_CONFIDENCE = 0.3
WELL_STUDIED_BONUS = 0.2
KEY_PLAYER_BONUS = 0.2
KEY_PLAYER_RANK = 3
CONFIDENCE_JITTER = 0.15

LIPID_LINKED_KEYWORDS = ("lipid", "metabolism")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _compact(label: str) -> str:
    return "".join(label.split())


def layer_counts(nodes_per_category: int, timepoint: TimePoint) -> Dict[OmicsType, int]:
    """Number of nodes per omics layer for one category at ``timepoint``."""

    distribution = OMICS_DISTRIBUTION[timepoint]
    return {omics: _round_half_up(nodes_per_category * distribution[omics]) for omics in OmicsType}


def fallback_name(pathway: str, omics: OmicsType, index: int) -> str:
    initials = "".join(word[0] for word in pathway.split(" ") if word)
    return f"{initials}{omics.letter}{index + 1}"


def node_name(taxonomy: Taxonomy, pathway: str, omics: OmicsType, index: int, timepoint: TimePoint) -> str:
    names = taxonomy.names_for(pathway)
    base = names[index] if index < len(names) and names[index] else fallback_name(pathway, omics, index)
    return f"{base}_{timepoint.suffix}"


@dataclass
class _LinkBuilder:
    """Accumulates links while enforcing undirected uniqueness."""

    rng: np.random.Generator
    links: List[BiologicalLink] = field(default_factory=list)
    seen: Set[FrozenSet[str]] = field(default_factory=set)

    def add(self, source: BiologicalNode, target: BiologicalNode, low: float, high: float, kind: LinkType) -> bool:
        if source.id == target.id:
            return False
        pair = frozenset((source.id, target.id))
        if pair in self.seen:
            return False
        strength = float(self.rng.uniform(low, high))
        self.seen.add(pair)
        self.links.append(
            BiologicalLink(
                source=source.id,
                target=target.id,
                strength=strength,
                baseline_strength=strength,
                type=kind,
            )
        )
        return True

    def pick(self, candidates: Sequence[BiologicalNode]) -> BiologicalNode:
        return candidates[int(self.rng.integers(0, len(candidates)))]

    def shuffled(self, candidates: Sequence[BiologicalNode]) -> List[BiologicalNode]:
        return [candidates[int(i)] for i in self.rng.permutation(len(candidates))]


class NetworkGenerator:
    """Build baseline :class:`PathwayData` from a :class:`Taxonomy`."""

    def __init__(
        self,
        taxonomy: Taxonomy | None = None,
        *,
        rng: np.random.Generator | None = None,
        config: GeneratorConfig | None = None,
    ) -> None:
        self.taxonomy = taxonomy or default_taxonomy()
        self.config = config or DEFAULT_GENERATOR_CONFIG
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def confidence(self, omics: OmicsType, pathway: str, timepoint: TimePoint, index: int) -> float:
        score = BASE_CONFIDENCE + LAYER_CONFIDENCE_BONUS[omics]
        if pathway in self.taxonomy.well_studied_pathways:
            score += WELL_STUDIED_BONUS
        score += TIME_CONFIDENCE_BONUS[timepoint]
        score += float(self.rng.uniform(-CONFIDENCE_JITTER, CONFIDENCE_JITTER))
        if index < KEY_PLAYER_RANK or self.rng.random() < self.config.key_player_probability:
            score += KEY_PLAYER_BONUS
        return score

    def categories_for_node(self, category: str, pathway: str) -> FrozenSet[str]:
        tags = {category}
        for rule in self.taxonomy.cross_talk:
            if rule.pathway != pathway:
                continue
            if self.rng.random() < rule.probability:
                tags.add(rule.category)
            break
        return frozenset(tags)

    def build_nodes(self) -> List[BiologicalNode]:
        taxonomy = self.taxonomy
        n_categories = len(taxonomy.categories)
        if n_categories == 0:
            return []
        nodes_per_category = self.config.nodes_per_timepoint // n_categories
        nodes: List[BiologicalNode] = []
        for timepoint in taxonomy.time_points:
            counts = layer_counts(nodes_per_category, timepoint)
            for category, pathways in taxonomy.categories.items():
                for omics, count in counts.items():
                    slots = math.ceil(count / len(pathways))
                    for pathway in pathways:
                        for index in range(slots):
                            nodes.append(self._make_node(category, pathway, omics, timepoint, index))
        return nodes

    def _make_node(
        self,
        category: str,
        pathway: str,
        omics: OmicsType,
        timepoint: TimePoint,
        index: int,
    ) -> BiologicalNode:
        expression = float(self.rng.uniform(self.config.expression_low, self.config.expression_high))
        confidence = self.confidence(omics, pathway, timepoint, index)
        tags = self.categories_for_node(category, pathway)
        node_id = "_".join(
            _compact(part) for part in (timepoint.value, category, pathway, omics.value, str(index))
        )
        return BiologicalNode(
            id=node_id,
            name=node_name(self.taxonomy, pathway, omics, index, timepoint),
            omics_type=omics,
            pathway=pathway,
            broad_category=tags,
            timepoint=timepoint,
            expression=expression,
            baseline_expression=expression,
            significance=float(self.rng.uniform(0.0, 0.05)),
            confidence=confidence,
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------
    def build_links(self, nodes: Sequence[BiologicalNode]) -> List[BiologicalLink]:
        builder = _LinkBuilder(self.rng)
        by_pathway_time: Dict[str, Dict[TimePoint, List[BiologicalNode]]] = defaultdict(lambda: defaultdict(list))
        by_category: Dict[str, List[BiologicalNode]] = defaultdict(list)
        by_omics: Dict[OmicsType, List[BiologicalNode]] = defaultdict(list)
        for node in nodes:
            by_pathway_time[node.pathway][node.timepoint].append(node)
            for category in sorted(node.broad_category):
                by_category[category].append(node)
            by_omics[node.omics_type].append(node)

        for by_time in by_pathway_time.values():
            self._link_within_timepoint(builder, by_time)
            self._link_forward(builder, by_time)
            self._link_feedback(builder, by_time)
        self._link_across_pathways(builder, by_category)
        self._link_across_categories(builder, by_category)
        self._link_omics_chain(builder, by_omics)
        return builder.links

    def _link_within_timepoint(self, builder: _LinkBuilder, by_time: Mapping[TimePoint, List[BiologicalNode]]) -> None:
        for group in by_time.values():
            for source in group:
                wanted = min(2 + int(self.rng.integers(0, 3)), len(group) - 1)
                others = [node for node in group if node.id != source.id]
                for target in builder.shuffled(others)[: max(wanted, 0)]:
                    builder.add(source, target, 0.6, 0.9, LinkType.REGULATION)

    def _link_forward(self, builder: _LinkBuilder, by_time: Mapping[TimePoint, List[BiologicalNode]]) -> None:
        ordered = self.taxonomy.time_points
        for current, following in zip(ordered, ordered[1:]):
            later = by_time.get(following, [])
            if not later:
                continue
            for source in by_time.get(current, []):
                picks = min(1 + int(self.rng.integers(0, 3)), len(later))
                for _ in range(picks):
                    builder.add(source, builder.pick(later), 0.5, 0.9, LinkType.REGULATION)

    def _link_feedback(self, builder: _LinkBuilder, by_time: Mapping[TimePoint, List[BiologicalNode]]) -> None:
        ordered = self.taxonomy.time_points
        for previous, current in zip(ordered, ordered[1:]):
            earlier = by_time.get(previous, [])
            for source in by_time.get(current, []):
                if self.rng.random() < self.config.feedback_probability and earlier:
                    builder.add(source, builder.pick(earlier), 0.3, 0.6, LinkType.REGULATION)

    def _link_across_pathways(self, builder: _LinkBuilder, by_category: Mapping[str, List[BiologicalNode]]) -> None:
        for members in by_category.values():
            grouped: Dict[str, List[BiologicalNode]] = defaultdict(list)
            for node in members:
                grouped[node.pathway].append(node)
            for first, first_nodes in grouped.items():
                for second, second_nodes in grouped.items():
                    if first == second:
                        continue
                    for source in first_nodes:
                        if self.rng.random() >= self.config.cross_pathway_probability:
                            continue
                        fallback = builder.pick(second_nodes)
                        same_time = [node for node in second_nodes if node.timepoint == source.timepoint]
                        target = builder.pick(same_time) if same_time else fallback
                        builder.add(source, target, 0.3, 0.6, LinkType.INTERACTION)

    def _link_across_categories(self, builder: _LinkBuilder, by_category: Mapping[str, List[BiologicalNode]]) -> None:
        for first, first_nodes in by_category.items():
            for second, second_nodes in by_category.items():
                if first == second:
                    continue
                for source in first_nodes:
                    if self.rng.random() < self.config.cross_category_probability:
                        builder.add(source, builder.pick(second_nodes), 0.2, 0.5, LinkType.INTERACTION)

    def _link_omics_chain(self, builder: _LinkBuilder, by_omics: Mapping[OmicsType, List[BiologicalNode]]) -> None:
        def same_pathway(layer: OmicsType, pathway: str) -> List[BiologicalNode]:
            return [node for node in by_omics.get(layer, []) if node.pathway == pathway]

        for source in by_omics.get(OmicsType.TRANSCRIPT, []):
            proteins = same_pathway(OmicsType.PROTEIN, source.pathway)
            count = min(1 + int(self.rng.integers(0, 2)), len(proteins))
            for target in builder.shuffled(proteins)[:count]:
                builder.add(source, target, 0.7, 0.9, LinkType.REGULATION)

        for source in by_omics.get(OmicsType.PROTEIN, []):
            metabolites = same_pathway(OmicsType.METABOLITE, source.pathway)
            count = min(1 + int(self.rng.integers(0, 3)), len(metabolites))
            for target in builder.shuffled(metabolites)[:count]:
                builder.add(source, target, 0.6, 0.9, LinkType.CONVERSION)

        for source in by_omics.get(OmicsType.METABOLITE, []):
            lowered = source.pathway.lower()
            if not any(keyword in lowered for keyword in LIPID_LINKED_KEYWORDS):
                continue
            lipids = same_pathway(OmicsType.LIPID, source.pathway)
            count = min(1 + int(self.rng.integers(0, 2)), len(lipids))
            for target in builder.shuffled(lipids)[:count]:
                builder.add(source, target, 0.5, 0.8, LinkType.CONVERSION)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------
    def generate(self) -> PathwayData:
        nodes = validate_nodes(self.build_nodes(), self.taxonomy)
        links = validate_links(self.build_links(nodes), nodes)
        LOGGER.info("Generated %d valid nodes and %d valid links", len(nodes), len(links))
        return PathwayData(
            nodes=tuple(nodes),
            links=tuple(links),
            pathways=self.taxonomy.pathways,
            broad_categories=self.taxonomy.category_names,
        )


def validate_nodes(nodes: Iterable[BiologicalNode], taxonomy: Taxonomy) -> List[BiologicalNode]:
    """Drop nodes missing identity fields or classified outside the taxonomy."""

    valid: List[BiologicalNode] = []
    dropped = 0
    for node in nodes:
        if not node.id or not node.name or not node.pathway or not node.broad_category:
            dropped += 1
            LOGGER.debug("Dropping incomplete node %r", node.id)
            continue
        if not any(node.pathway in taxonomy.categories.get(category, ()) for category in node.broad_category):
            dropped += 1
            LOGGER.debug("Dropping node %s with unknown pathway %s", node.id, node.pathway)
            continue
        valid.append(node)
    if dropped:
        LOGGER.info("Dropped %d malformed nodes", dropped)
    return valid


def validate_links(links: Iterable[BiologicalLink], nodes: Iterable[BiologicalNode]) -> List[BiologicalLink]:
    """Drop links whose endpoints are not part of ``nodes``."""

    node_ids = {node.id for node in nodes}
    valid: List[BiologicalLink] = []
    dropped = 0
    for link in links:
        if link.source in node_ids and link.target in node_ids:
            valid.append(link)
        else:
            dropped += 1
            LOGGER.debug("Dropping dangling link %s -> %s", link.source, link.target)
    if dropped:
        LOGGER.info("Dropped %d dangling links", dropped)
    return valid


def generate_network(
    taxonomy: Taxonomy | None = None,
    *,
    rng: np.random.Generator | None = None,
    config: GeneratorConfig | None = None,
) -> PathwayData:
    """Generate a baseline network.

    Parameters
    ----------
    taxonomy:
        Reference tables; defaults to the bundled versioned taxonomy.
    rng:
        Source of randomness.  When omitted a generator is seeded from
        ``config.seed`` (``None`` draws fresh entropy).
    config:
        Node budget and link probabilities.
    """

    return NetworkGenerator(taxonomy, rng=rng, config=config).generate()


__all__ = [
    "LAYER_CONFIDENCE_BONUS",
    "NetworkGenerator",
    "OMICS_DISTRIBUTION",
    "TIME_CONFIDENCE_BONUS",
    "fallback_name",
    "generate_network",
    "layer_counts",
    "node_name",
    "validate_links",
    "validate_nodes",
]
