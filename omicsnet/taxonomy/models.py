"""Static reference tables describing the synthetic multi-omics network.

Everything in this module is immutable reference data.  The generator,
perturbation engine and query engine all read from a :class:`Taxonomy`
instance instead of module-level constants so alternative tables can be
loaded (see :func:`omicsnet.taxonomy.load_taxonomy`) without touching the
algorithms that consume them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Tuple

from ..errors import TaxonomyError, UnknownDrugError


class OmicsType(str, Enum):
    """Molecular observation layers."""

    TRANSCRIPT = "transcript"
    PROTEIN = "protein"
    METABOLITE = "metabolite"
    LIPID = "lipid"

    @property
    def letter(self) -> str:
        """Single-letter code used in generated fallback names."""

        return _OMICS_LETTERS[self]


_OMICS_LETTERS: Dict[OmicsType, str] = {
    OmicsType.TRANSCRIPT: "G",
    OmicsType.PROTEIN: "P",
    OmicsType.METABOLITE: "M",
    OmicsType.LIPID: "L",
}


class TimePoint(str, Enum):
    """Discrete sampling times, declared earliest first."""

    MIN_10 = "10 min"
    MIN_30 = "30 min"
    MIN_90 = "90 min"
    HOURS_48 = "48 hours"

    @property
    def suffix(self) -> str:
        """Compact label appended to node names (``10m``, ``48h`` …)."""

        return self.value.replace(" ", "").replace("min", "m").replace("hours", "h")

    @property
    def position(self) -> int:
        return _TIMEPOINT_ORDER.index(self)

    @classmethod
    def ordered(cls) -> Tuple["TimePoint", ...]:
        return _TIMEPOINT_ORDER


_TIMEPOINT_ORDER: Tuple[TimePoint, ...] = tuple(TimePoint)


@dataclass(frozen=True)
class DrugEffects:
    """Gene-level and interaction-level signatures of a treatment."""

    upregulated_genes: Tuple[str, ...] = ()
    downregulated_genes: Tuple[str, ...] = ()
    enhanced_interactions: Tuple[str, ...] = ()
    disrupted_interactions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DrugTreatment:
    """A named perturbation recipe."""

    id: str
    name: str
    mechanism: str
    target_pathways: Tuple[str, ...]
    target_omics_types: Tuple[OmicsType, ...]
    effects: DrugEffects = field(default_factory=DrugEffects)

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "mechanism": self.mechanism,
            "target_pathways": list(self.target_pathways),
            "target_omics_types": [omics.value for omics in self.target_omics_types],
            "effects": {
                "upregulated_genes": list(self.effects.upregulated_genes),
                "downregulated_genes": list(self.effects.downregulated_genes),
                "enhanced_interactions": list(self.effects.enhanced_interactions),
                "disrupted_interactions": list(self.effects.disrupted_interactions),
            },
        }


@dataclass(frozen=True)
class CrossTalkRule:
    """Probabilistic second category tag for nodes of a pathway."""

    pathway: str
    category: str
    probability: float


@dataclass(frozen=True)
class Taxonomy:
    """Versioned lookup table consumed by the engine."""

    version: str
    time_points: Tuple[TimePoint, ...]
    categories: Mapping[str, Tuple[str, ...]]
    gene_names: Mapping[str, Tuple[str, ...]]
    well_studied_pathways: FrozenSet[str]
    cross_talk: Tuple[CrossTalkRule, ...]
    drugs: Tuple[DrugTreatment, ...]

    def __post_init__(self) -> None:
        known = set(self.pathways)
        for category, pathways in self.categories.items():
            if not pathways:
                raise TaxonomyError(f"Category '{category}' has no pathways")
        for rule in self.cross_talk:
            if rule.pathway not in known:
                raise TaxonomyError(f"Cross-talk rule references unknown pathway '{rule.pathway}'")
            if rule.category not in self.categories:
                raise TaxonomyError(f"Cross-talk rule references unknown category '{rule.category}'")
            if rule.pathway in self.categories[rule.category]:
                raise TaxonomyError(
                    f"Cross-talk rule tags '{rule.pathway}' with its own category '{rule.category}'"
                )
        seen: set[str] = set()
        for drug in self.drugs:
            if drug.id in seen:
                raise TaxonomyError(f"Duplicate drug id '{drug.id}'")
            seen.add(drug.id)

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(self.categories)

    @property
    def pathways(self) -> Tuple[str, ...]:
        """All sub-pathways flattened in category order."""

        return tuple(pathway for pathways in self.categories.values() for pathway in pathways)

    def categories_for(self, pathway: str) -> FrozenSet[str]:
        """Return every category that lists ``pathway`` as a sub-pathway."""

        return frozenset(category for category, pathways in self.categories.items() if pathway in pathways)

    def names_for(self, pathway: str) -> Tuple[str, ...]:
        return tuple(self.gene_names.get(pathway, ()))

    def get_drug(self, drug_id: str) -> DrugTreatment:
        for drug in self.drugs:
            if drug.id == drug_id:
                return drug
        raise UnknownDrugError(drug_id)

    def has_drug(self, drug: DrugTreatment) -> bool:
        return any(candidate == drug for candidate in self.drugs)


__all__ = [
    "CrossTalkRule",
    "DrugEffects",
    "DrugTreatment",
    "OmicsType",
    "Taxonomy",
    "TimePoint",
]
