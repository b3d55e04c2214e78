"""Reference taxonomy bundled with the engine.

The default table lives in ``data/taxonomy_v1.json`` and is loaded once per
process.  Callers that want to extend the gene-name tables or the drug list
can pass their own payload to :func:`build_taxonomy` or point
:func:`load_taxonomy` at another file.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from ..errors import TaxonomyError
from .models import (
    CrossTalkRule,
    DrugEffects,
    DrugTreatment,
    OmicsType,
    Taxonomy,
    TimePoint,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TAXONOMY_ASSET = "taxonomy_v1.json"

__all__ = [
    "CrossTalkRule",
    "DEFAULT_TAXONOMY_ASSET",
    "DrugEffects",
    "DrugTreatment",
    "OmicsType",
    "Taxonomy",
    "TimePoint",
    "build_taxonomy",
    "default_taxonomy",
    "load_taxonomy",
]


def _read_json_asset(name: str) -> Dict[str, Any]:
    package = resources.files(__name__).joinpath("data")
    with resources.as_file(package.joinpath(name)) as asset_path:
        with asset_path.open("r", encoding="utf-8") as handle:
            return json.load(handle)


def _parse_drug(record: Mapping[str, Any]) -> DrugTreatment:
    effects = record.get("effects") or {}
    try:
        omics = tuple(OmicsType(value) for value in record.get("target_omics_types", ()))
    except ValueError as exc:
        raise TaxonomyError(f"Drug '{record.get('id')}' lists an unknown omics layer: {exc}") from exc
    return DrugTreatment(
        id=str(record["id"]),
        name=str(record.get("name", record["id"])),
        mechanism=str(record.get("mechanism", "")),
        target_pathways=tuple(str(value) for value in record.get("target_pathways", ())),
        target_omics_types=omics,
        effects=DrugEffects(
            upregulated_genes=tuple(effects.get("upregulated_genes", ())),
            downregulated_genes=tuple(effects.get("downregulated_genes", ())),
            enhanced_interactions=tuple(effects.get("enhanced_interactions", ())),
            disrupted_interactions=tuple(effects.get("disrupted_interactions", ())),
        ),
    )


def build_taxonomy(payload: Mapping[str, Any]) -> Taxonomy:
    """Validate a raw JSON payload and convert it into a :class:`Taxonomy`."""

    try:
        categories = {
            str(category): tuple(str(pathway) for pathway in pathways)
            for category, pathways in payload["categories"].items()
        }
    except (KeyError, AttributeError) as exc:
        raise TaxonomyError("Taxonomy payload must define a 'categories' mapping") from exc
    try:
        time_points = tuple(TimePoint(value) for value in payload.get("time_points", [tp.value for tp in TimePoint]))
    except ValueError as exc:
        raise TaxonomyError(f"Unsupported time point: {exc}") from exc
    gene_names = {
        str(pathway): tuple(str(name) for name in names)
        for pathway, names in (payload.get("gene_names") or {}).items()
    }
    cross_talk = tuple(
        CrossTalkRule(
            pathway=str(rule["pathway"]),
            category=str(rule["category"]),
            probability=float(rule.get("probability", 0.0)),
        )
        for rule in payload.get("cross_talk", ())
    )
    try:
        drugs = tuple(_parse_drug(record) for record in payload.get("drugs", ()))
    except KeyError as exc:
        raise TaxonomyError(f"Drug record missing field {exc}") from exc
    taxonomy = Taxonomy(
        version=str(payload.get("version", "unversioned")),
        time_points=time_points,
        categories=categories,
        gene_names=gene_names,
        well_studied_pathways=frozenset(payload.get("well_studied_pathways", ())),
        cross_talk=cross_talk,
        drugs=drugs,
    )
    missing = [pathway for pathway in taxonomy.pathways if pathway not in gene_names]
    if missing:
        LOGGER.debug("No curated gene names for %d pathways; generated names will be used", len(missing))
    return taxonomy


def load_taxonomy(path: str | Path | None = None) -> Taxonomy:
    """Load a taxonomy from ``path`` or the bundled default asset."""

    if path is None:
        payload = _read_json_asset(DEFAULT_TAXONOMY_ASSET)
    else:
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    taxonomy = build_taxonomy(payload)
    LOGGER.info(
        "Loaded taxonomy %s (%d categories, %d pathways, %d drugs)",
        taxonomy.version,
        len(taxonomy.categories),
        len(taxonomy.pathways),
        len(taxonomy.drugs),
    )
    return taxonomy


@lru_cache(maxsize=1)
def default_taxonomy() -> Taxonomy:
    """Return the process-wide bundled taxonomy."""

    return load_taxonomy()
