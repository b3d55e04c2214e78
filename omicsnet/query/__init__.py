"""Natural-language filtering of network nodes."""

from .index import FuzzyIndex, FuzzyMatch, SymbolIndex
from .parser import (
    EXAMPLE_QUERIES,
    DrugFilter,
    ExpressionDirection,
    QueryEngine,
    QueryIntents,
    QueryResult,
    parse_query,
)

__all__ = [
    "DrugFilter",
    "EXAMPLE_QUERIES",
    "ExpressionDirection",
    "FuzzyIndex",
    "FuzzyMatch",
    "QueryEngine",
    "QueryIntents",
    "QueryResult",
    "SymbolIndex",
    "parse_query",
]
