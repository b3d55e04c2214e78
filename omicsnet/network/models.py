"""Graph records produced by the generator and consumed by every other layer.

Nodes and links are frozen; the perturbation engine builds new records with
:func:`dataclasses.replace` so the baseline graph can be shared freely between
callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import hashlib
from typing import Any, Dict, FrozenSet, Optional, Tuple

from ..taxonomy.models import OmicsType, TimePoint

CONFIDENCE_RANGE: Tuple[float, float] = (0.1, 0.95)
SIGNIFICANCE_RANGE: Tuple[float, float] = (0.0, 0.05)


class LinkType(str, Enum):
    """Relationship semantics between two molecular observations."""

    REGULATION = "regulation"
    INTERACTION = "interaction"
    CONVERSION = "conversion"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


@dataclass(frozen=True, slots=True)
class BiologicalNode:
    """A single molecular observation at one time point."""

    id: str
    name: str
    omics_type: OmicsType
    pathway: str
    broad_category: FrozenSet[str]
    timepoint: TimePoint
    expression: float
    baseline_expression: float
    significance: float
    confidence: float
    perturbed_expression: Optional[float] = None
    fold_change: Optional[float] = None
    is_perturbation_target: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "broad_category", frozenset(self.broad_category))
        object.__setattr__(self, "confidence", _clamp(self.confidence, *CONFIDENCE_RANGE))
        object.__setattr__(self, "significance", _clamp(self.significance, *SIGNIFICANCE_RANGE))

    @property
    def gene_symbol(self) -> str:
        """Name with the trailing time-point suffix removed (``BDNF_10m`` -> ``BDNF``)."""

        suffix = f"_{self.timepoint.suffix}"
        if self.name.endswith(suffix):
            return self.name[: -len(suffix)]
        return self.name

    @property
    def effective_fold_change(self) -> float:
        return 1.0 if self.fold_change is None else self.fold_change

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "omics_type": self.omics_type.value,
            "pathway": self.pathway,
            "broad_category": sorted(self.broad_category),
            "timepoint": self.timepoint.value,
            "expression": self.expression,
            "baseline_expression": self.baseline_expression,
            "perturbed_expression": self.perturbed_expression,
            "fold_change": self.fold_change,
            "significance": self.significance,
            "confidence": self.confidence,
            "is_perturbation_target": self.is_perturbation_target,
        }


@dataclass(frozen=True, slots=True)
class BiologicalLink:
    """Typed, weighted relationship between two node ids."""

    source: str
    target: str
    strength: float
    baseline_strength: float
    type: LinkType
    perturbed_strength: Optional[float] = None
    strength_change: float = 1.0

    @property
    def pair(self) -> FrozenSet[str]:
        """Undirected identity of the link."""

        return frozenset((self.source, self.target))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "strength": self.strength,
            "baseline_strength": self.baseline_strength,
            "perturbed_strength": self.perturbed_strength,
            "strength_change": self.strength_change,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class PathwayData:
    """Graph container passed between generator, perturbation and query layers."""

    nodes: Tuple[BiologicalNode, ...] = ()
    links: Tuple[BiologicalLink, ...] = ()
    pathways: Tuple[str, ...] = ()
    broad_categories: Tuple[str, ...] = ()
    _index: Dict[str, BiologicalNode] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "links", tuple(self.links))
        object.__setattr__(self, "pathways", tuple(self.pathways))
        object.__setattr__(self, "broad_categories", tuple(self.broad_categories))
        object.__setattr__(self, "_index", {node.id: node for node in self.nodes})

    @property
    def fingerprint(self) -> str:
        """Stable hash of the sorted node ids.

        Perturbed graphs keep their baseline's ids and therefore share its
        fingerprint.
        """

        return fingerprint_ids(self._index)

    def node_index(self) -> Dict[str, BiologicalNode]:
        return dict(self._index)

    def get_node(self, node_id: str) -> Optional[BiologicalNode]:
        return self._index.get(node_id)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.as_dict() for node in self.nodes],
            "links": [link.as_dict() for link in self.links],
            "pathways": list(self.pathways),
            "broad_categories": list(self.broad_categories),
        }


def fingerprint_ids(node_ids) -> str:
    digest = hashlib.sha1()
    for node_id in sorted(node_ids):
        digest.update(node_id.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


__all__ = [
    "BiologicalLink",
    "BiologicalNode",
    "CONFIDENCE_RANGE",
    "LinkType",
    "PathwayData",
    "SIGNIFICANCE_RANGE",
    "fingerprint_ids",
]
