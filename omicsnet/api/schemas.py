"""Pydantic schemas used by the public API surface."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..analysis import CategoryChange, EffectSummary
from ..network.models import BiologicalLink, BiologicalNode, LinkType, PathwayData
from ..query.parser import QueryIntents
from ..taxonomy.models import DrugTreatment, OmicsType, Taxonomy, TimePoint


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class ErrorPayload(BaseModel):
    """Standard error envelope returned by API endpoints."""

    code: str = Field(..., description="Machine readable error identifier")
    message: str = Field(..., description="Human readable explanation")
    context: Dict[str, Any] = Field(default_factory=dict, description="Additional context")


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    taxonomy_version: str
    nodes: int = Field(..., ge=0)
    links: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Graph records
# ---------------------------------------------------------------------------


class NetworkNode(BaseModel):
    """Serialised :class:`~omicsnet.network.BiologicalNode`."""

    id: str
    name: str
    omics_type: OmicsType
    pathway: str
    broad_category: List[str]
    timepoint: TimePoint
    expression: float
    baseline_expression: float
    perturbed_expression: Optional[float] = None
    fold_change: Optional[float] = None
    significance: float = Field(..., ge=0.0, le=0.05)
    confidence: float = Field(..., ge=0.1, le=0.95)
    is_perturbation_target: bool = False

    @classmethod
    def from_domain(cls, node: BiologicalNode) -> "NetworkNode":
        return cls(**node.as_dict())


class NetworkLink(BaseModel):
    source: str
    target: str
    strength: float
    baseline_strength: float
    perturbed_strength: Optional[float] = None
    strength_change: float = 1.0
    type: LinkType

    @classmethod
    def from_domain(cls, link: BiologicalLink) -> "NetworkLink":
        return cls(**link.as_dict())


class NetworkResponse(BaseModel):
    """A full graph snapshot."""

    fingerprint: str
    nodes: List[NetworkNode] = Field(default_factory=list)
    links: List[NetworkLink] = Field(default_factory=list)
    pathways: List[str] = Field(default_factory=list)
    broad_categories: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, data: PathwayData) -> "NetworkResponse":
        return cls(
            fingerprint=data.fingerprint,
            nodes=[NetworkNode.from_domain(node) for node in data.nodes],
            links=[NetworkLink.from_domain(link) for link in data.links],
            pathways=list(data.pathways),
            broad_categories=list(data.broad_categories),
        )


# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------


class TaxonomyResponse(BaseModel):
    version: str
    time_points: List[TimePoint]
    omics_types: List[OmicsType]
    categories: Dict[str, List[str]]
    well_studied_pathways: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, taxonomy: Taxonomy) -> "TaxonomyResponse":
        return cls(
            version=taxonomy.version,
            time_points=list(taxonomy.time_points),
            omics_types=list(OmicsType),
            categories={category: list(pathways) for category, pathways in taxonomy.categories.items()},
            well_studied_pathways=sorted(taxonomy.well_studied_pathways),
        )


class DrugEffectsModel(BaseModel):
    upregulated_genes: List[str] = Field(default_factory=list)
    downregulated_genes: List[str] = Field(default_factory=list)
    enhanced_interactions: List[str] = Field(default_factory=list)
    disrupted_interactions: List[str] = Field(default_factory=list)


class DrugModel(BaseModel):
    id: str
    name: str
    mechanism: str
    target_pathways: List[str]
    target_omics_types: List[OmicsType]
    effects: DrugEffectsModel

    @classmethod
    def from_domain(cls, drug: DrugTreatment) -> "DrugModel":
        return cls(**drug.as_dict())


class DrugListResponse(BaseModel):
    items: List[DrugModel] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Perturbation
# ---------------------------------------------------------------------------


class PerturbRequest(BaseModel):
    drug_id: str = Field(..., min_length=1, description="Identifier from GET /drugs")


class PerturbResponse(BaseModel):
    drug_id: str
    perturbed_nodes: int = Field(..., ge=0)
    network: NetworkResponse


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Free-text question")
    drug_id: Optional[str] = Field(default=None, description="Query the graph perturbed by this drug")
    include_neighbours: bool = Field(default=False, description="Also return direct neighbours of matches")


class QueryIntentsModel(BaseModel):
    omics_types: List[str] = Field(default_factory=list)
    timepoints: List[str] = Field(default_factory=list)
    pathways: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    gene_symbols: List[str] = Field(default_factory=list)
    expression: List[str] = Field(default_factory=list)
    drug_filters: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, intents: QueryIntents) -> "QueryIntentsModel":
        return cls(**intents.as_dict())


class QueryResponse(BaseModel):
    explanation: str
    confidence: float = Field(..., ge=0.2, le=0.9)
    source: str = Field(..., description="'baseline' or the drug id whose graph was queried")
    intents: QueryIntentsModel
    nodes: List[NetworkNode] = Field(default_factory=list)
    links: List[NetworkLink] = Field(default_factory=list)


class ExampleQueriesResponse(BaseModel):
    items: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


class SummaryRequest(BaseModel):
    drug_ids: List[str] = Field(default_factory=list)


class EffectCell(BaseModel):
    pathway: str
    omics_type: OmicsType
    node_count: int
    mean_confidence: float
    mean_expression: float
    drug_effect: float
    fold_changes: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, summary: EffectSummary) -> "EffectCell":
        return cls(**summary.as_dict())


class CategoryChangeModel(BaseModel):
    category: str
    increased: int
    decreased: int
    total: int

    @classmethod
    def from_domain(cls, change: CategoryChange) -> "CategoryChangeModel":
        return cls(
            category=change.category,
            increased=change.increased,
            decreased=change.decreased,
            total=change.total,
        )


class SummaryResponse(BaseModel):
    drug_ids: List[str] = Field(default_factory=list)
    cells: List[EffectCell] = Field(default_factory=list)
    category_changes: Dict[str, List[CategoryChangeModel]] = Field(default_factory=dict)


__all__ = [
    "CategoryChangeModel",
    "DrugListResponse",
    "DrugModel",
    "EffectCell",
    "ErrorPayload",
    "ExampleQueriesResponse",
    "HealthResponse",
    "NetworkLink",
    "NetworkNode",
    "NetworkResponse",
    "PerturbRequest",
    "PerturbResponse",
    "QueryIntentsModel",
    "QueryRequest",
    "QueryResponse",
    "SummaryRequest",
    "SummaryResponse",
    "TaxonomyResponse",
]
