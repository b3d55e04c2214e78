"""FastAPI router exposing network generation, perturbation and queries."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
from typing import Dict, List, Optional

import numpy as np
from fastapi import APIRouter, Depends, HTTPException, status

from ..analysis import category_changes, query_subgraph, summarize_effects
from ..config import DEFAULT_GENERATOR_CONFIG, DEFAULT_QUERY_CONFIG, GeneratorConfig, QueryConfig
from ..engine import apply_perturbation
from ..errors import QueryEngineError, StaleIndexError, UnknownDrugError
from ..network import PathwayData, generate_network
from ..query import EXAMPLE_QUERIES, QueryEngine
from ..taxonomy import Taxonomy, default_taxonomy
from . import schemas

LOGGER = logging.getLogger(__name__)

API_VERSION = "2025.10.01"


@dataclass
class ServiceRegistry:
    """Container bundling the graph state shared by API routes.

    The baseline network and its query engine are built lazily on first use
    and then kept for the lifetime of the process.  Perturbed graphs are
    cached per drug id so repeated requests return the same numbers.  Lazy builds
    and draws from the shared generator happen under one re-entrant lock.
    """

    taxonomy: Taxonomy = field(default_factory=default_taxonomy)
    generator_config: GeneratorConfig = field(default_factory=lambda: DEFAULT_GENERATOR_CONFIG)
    query_config: Optional[QueryConfig] = None
    _baseline: Optional[PathwayData] = None
    _engine: Optional[QueryEngine] = None
    _perturbed: Dict[str, PathwayData] = field(default_factory=dict)
    _rng: Optional[np.random.Generator] = None
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def configure(
        self,
        *,
        taxonomy: Taxonomy | None = None,
        generator_config: GeneratorConfig | None = None,
        query_config: QueryConfig | None = None,
        baseline: PathwayData | None = None,
    ) -> None:
        with self._lock:
            if taxonomy is not None:
                self.taxonomy = taxonomy
            if generator_config is not None:
                self.generator_config = generator_config
            if query_config is not None:
                self.query_config = query_config
            self._baseline = baseline
            self._engine = None
            self._perturbed = {}
            self._rng = None

    @property
    def rng(self) -> np.random.Generator:
        with self._lock:
            if self._rng is None:
                self._rng = np.random.default_rng(self.generator_config.seed)
            return self._rng

    @property
    def baseline(self) -> PathwayData:
        with self._lock:
            if self._baseline is None:
                self._baseline = generate_network(self.taxonomy, rng=self.rng, config=self.generator_config)
            return self._baseline

    @property
    def query_engine(self) -> QueryEngine:
        with self._lock:
            if self._engine is None:
                self._engine = QueryEngine(self.baseline, config=self.query_config)
            return self._engine

    def perturbed(self, drug_id: str) -> PathwayData:
        with self._lock:
            cached = self._perturbed.get(drug_id)
            if cached is None:
                drug = self.taxonomy.get_drug(drug_id)
                cached = apply_perturbation(self.baseline, drug, rng=self.rng, taxonomy=self.taxonomy)
                self._perturbed[drug_id] = cached
            return cached


services = ServiceRegistry()


def configure_services(
    *,
    taxonomy: Taxonomy | None = None,
    generator_config: GeneratorConfig | None = None,
    query_config: QueryConfig | None = None,
    baseline: PathwayData | None = None,
) -> None:
    """Configure the shared service registry used by API routes."""

    services.configure(
        taxonomy=taxonomy,
        generator_config=generator_config,
        query_config=query_config,
        baseline=baseline,
    )


def reset_services() -> None:
    """Restore the bundled taxonomy and environment defaults, dropping cached graphs."""

    configure_services(
        taxonomy=default_taxonomy(),
        generator_config=DEFAULT_GENERATOR_CONFIG,
        query_config=DEFAULT_QUERY_CONFIG,
    )


def get_services() -> ServiceRegistry:
    return services


def _http_error(status_code: int, code: str, message: str, *, context: Dict[str, object] | None = None) -> HTTPException:
    payload = schemas.ErrorPayload(code=code, message=message, context=context or {})
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def _unknown_drug(exc: UnknownDrugError) -> HTTPException:
    return _http_error(
        status.HTTP_404_NOT_FOUND,
        "drug_not_found",
        str(exc),
        context={"drug_id": exc.drug_id},
    )


router = APIRouter()


@router.get("/health", response_model=schemas.HealthResponse)
def health(svc: ServiceRegistry = Depends(get_services)) -> schemas.HealthResponse:
    baseline = svc.baseline
    return schemas.HealthResponse(
        version=API_VERSION,
        taxonomy_version=svc.taxonomy.version,
        nodes=len(baseline.nodes),
        links=len(baseline.links),
    )


@router.get("/taxonomy", response_model=schemas.TaxonomyResponse)
def taxonomy(svc: ServiceRegistry = Depends(get_services)) -> schemas.TaxonomyResponse:
    return schemas.TaxonomyResponse.from_domain(svc.taxonomy)


@router.get("/drugs", response_model=schemas.DrugListResponse)
def list_drugs(svc: ServiceRegistry = Depends(get_services)) -> schemas.DrugListResponse:
    return schemas.DrugListResponse(items=[schemas.DrugModel.from_domain(drug) for drug in svc.taxonomy.drugs])


@router.get("/network", response_model=schemas.NetworkResponse)
def network(svc: ServiceRegistry = Depends(get_services)) -> schemas.NetworkResponse:
    return schemas.NetworkResponse.from_domain(svc.baseline)


@router.post("/perturb", response_model=schemas.PerturbResponse)
def perturb(
    request: schemas.PerturbRequest,
    svc: ServiceRegistry = Depends(get_services),
) -> schemas.PerturbResponse:
    try:
        data = svc.perturbed(request.drug_id)
    except UnknownDrugError as exc:
        raise _unknown_drug(exc)
    targets = sum(1 for node in data.nodes if node.is_perturbation_target)
    return schemas.PerturbResponse(
        drug_id=request.drug_id,
        perturbed_nodes=targets,
        network=schemas.NetworkResponse.from_domain(data),
    )


@router.get("/query/examples", response_model=schemas.ExampleQueriesResponse)
def query_examples() -> schemas.ExampleQueriesResponse:
    return schemas.ExampleQueriesResponse(items=list(EXAMPLE_QUERIES))


@router.post("/query", response_model=schemas.QueryResponse)
def run_query(
    request: schemas.QueryRequest,
    svc: ServiceRegistry = Depends(get_services),
) -> schemas.QueryResponse:
    try:
        data = svc.perturbed(request.drug_id) if request.drug_id else svc.baseline
    except UnknownDrugError as exc:
        raise _unknown_drug(exc)
    try:
        result = svc.query_engine.parse_query(request.text, data.nodes)
    except StaleIndexError as exc:
        raise _http_error(
            status.HTTP_409_CONFLICT,
            "stale_index",
            str(exc),
            context={"fingerprint": svc.query_engine.fingerprint},
        )
    except QueryEngineError as exc:
        raise _http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "index_unavailable", str(exc))
    subgraph = query_subgraph(data, result, include_neighbours=request.include_neighbours)
    return schemas.QueryResponse(
        explanation=result.explanation,
        confidence=result.confidence,
        source=request.drug_id or "baseline",
        intents=schemas.QueryIntentsModel.from_domain(result.intents),
        nodes=[schemas.NetworkNode.from_domain(node) for node in subgraph.nodes],
        links=[schemas.NetworkLink.from_domain(link) for link in subgraph.links],
    )


@router.post("/summary", response_model=schemas.SummaryResponse)
def summary(
    request: schemas.SummaryRequest,
    svc: ServiceRegistry = Depends(get_services),
) -> schemas.SummaryResponse:
    drug_ids: List[str] = list(dict.fromkeys(request.drug_ids))
    try:
        perturbed = {drug_id: svc.perturbed(drug_id) for drug_id in drug_ids}
    except UnknownDrugError as exc:
        raise _unknown_drug(exc)
    cells = summarize_effects(svc.baseline, perturbed)
    changes = {
        drug_id: [schemas.CategoryChangeModel.from_domain(change) for change in category_changes(data).values()]
        for drug_id, data in perturbed.items()
    }
    return schemas.SummaryResponse(
        drug_ids=drug_ids,
        cells=[schemas.EffectCell.from_domain(cell) for cell in cells],
        category_changes=changes,
    )


__all__ = ["ServiceRegistry", "configure_services", "get_services", "router", "services"]
