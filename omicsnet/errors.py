"""Exception hierarchy shared by the omicsnet engine and its adapters."""

from __future__ import annotations


class OmicsNetError(Exception):
    """Base class for caller-contract violations raised by the engine."""


class TaxonomyError(OmicsNetError):
    """Raised when a taxonomy table is malformed or internally inconsistent."""


class UnknownDrugError(OmicsNetError):
    """Raised when a perturbation is requested for a drug outside the treatment table."""

    def __init__(self, drug_id: str) -> None:
        super().__init__(f"Unknown drug treatment '{drug_id}'")
        self.drug_id = drug_id


class QueryEngineError(OmicsNetError):
    """Raised when the query engine is used before its index has been built."""


class StaleIndexError(QueryEngineError):
    """Raised when a query index is applied to nodes from a different graph."""


__all__ = [
    "OmicsNetError",
    "QueryEngineError",
    "StaleIndexError",
    "TaxonomyError",
    "UnknownDrugError",
]
