"""Rule-based natural-language queries over a network snapshot.

A query is reduced to a set of independent intents (omics layer, time point,
pathway, category, gene symbol, expression direction, drug target).  Each
fired intent narrows the candidate list in a fixed order; values inside one
intent are OR-ed together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_QUERY_CONFIG, QueryConfig
from ..errors import QueryEngineError, StaleIndexError
from ..network.models import BiologicalNode, PathwayData
from ..taxonomy import Taxonomy, default_taxonomy
from ..taxonomy.models import OmicsType, TimePoint
from .index import FuzzyIndex, SymbolIndex, tokenize

LOGGER = logging.getLogger(__name__)


class ExpressionDirection(str, Enum):
    UPREGULATED = "upregulated"
    DOWNREGULATED = "downregulated"
    UNCHANGED = "unchanged"


class DrugFilter(str, Enum):
    DRUG_TARGETS = "drug_targets"
    NOT_DRUG_TARGETS = "not_drug_targets"


OMICS_KEYWORDS: Tuple[Tuple[OmicsType, Tuple[str, ...]], ...] = (
    (OmicsType.PROTEIN, ("protein",)),
    (OmicsType.METABOLITE, ("metabolite",)),
    (OmicsType.LIPID, ("lipid",)),
    (OmicsType.TRANSCRIPT, ("transcript", "mrna", "gene")),
)

EARLY_WORDS = frozenset({"early", "immediate"})
LATE_WORDS = frozenset({"late", "long-term"})
EARLY_TIMEPOINTS = (TimePoint.MIN_10, TimePoint.MIN_30)
LATE_TIMEPOINTS = (TimePoint.MIN_90, TimePoint.HOURS_48)

EXPRESSION_KEYWORDS: Tuple[Tuple[ExpressionDirection, Tuple[str, ...]], ...] = (
    (ExpressionDirection.UPREGULATED, ("upregulated", "up-regulated", "increased", "higher")),
    (ExpressionDirection.DOWNREGULATED, ("downregulated", "down-regulated", "decreased", "lower")),
    (ExpressionDirection.UNCHANGED, ("unchanged", "stable")),
)

TARGET_PHRASES = ("drug target", "affected by", "perturbed")
NON_TARGET_PHRASES = ("not affected", "unperturbed")

# Fold-change band counted as "unchanged"; nodes without a fold change fall
# back to the raw expression band.
FOLD_UP, FOLD_DOWN = 1.2, 0.8
EXPRESSION_UP, EXPRESSION_DOWN = 0.6, 0.4

CONFIDENCE_EMPTY = 0.2
CONFIDENCE_UNFILTERED = 0.4
CONFIDENCE_SPECIFIC = 0.9
CONFIDENCE_DEFAULT = 0.8

EXAMPLE_QUERIES: Tuple[str, ...] = (
    "Show me proteins that are upregulated",
    "Find metabolites in energy metabolism",
    "Which genes are affected by drugs?",
    "Show lipids that decrease after 48 hours",
    "Find proteins in immune response pathways",
    "Show early response genes (10 min)",
    "Which metabolites are drug targets?",
    "Find downregulated proteins in oxidative stress",
    "Show unchanged lipids in circadian rhythm",
    "Find mRNA transcripts in heart rate pathways",
)


@dataclass(frozen=True)
class QueryIntents:
    """Filter values extracted from one query, in application order."""

    omics_types: Tuple[OmicsType, ...] = ()
    timepoints: Tuple[TimePoint, ...] = ()
    pathways: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    gene_symbols: Tuple[str, ...] = ()
    expression: Tuple[ExpressionDirection, ...] = ()
    drug_filters: Tuple[DrugFilter, ...] = ()

    def fired(self) -> List[Tuple[str, List[str]]]:
        """``(label, values)`` for every non-empty intent, in filter order."""

        sections = (
            ("omics layers", [value.value for value in self.omics_types]),
            ("time points", [value.value for value in self.timepoints]),
            ("pathways", list(self.pathways)),
            ("categories", list(self.categories)),
            ("gene symbols", list(self.gene_symbols)),
            ("expression", [value.value for value in self.expression]),
            ("drug effects", [value.value for value in self.drug_filters]),
        )
        return [(label, values) for label, values in sections if values]

    @property
    def is_specific(self) -> bool:
        """True when a pathway or category intent fired.

        Omics layers, time points and the other filters do not count, so
        "Show me proteins that are upregulated" keeps the default confidence.
        """

        return bool(self.pathways or self.categories)

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "omics_types": [value.value for value in self.omics_types],
            "timepoints": [value.value for value in self.timepoints],
            "pathways": list(self.pathways),
            "categories": list(self.categories),
            "gene_symbols": list(self.gene_symbols),
            "expression": [value.value for value in self.expression],
            "drug_filters": [value.value for value in self.drug_filters],
        }


@dataclass(frozen=True)
class QueryResult:
    nodes: Tuple[BiologicalNode, ...]
    explanation: str
    confidence: float
    intents: QueryIntents = field(default_factory=QueryIntents)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.as_dict() for node in self.nodes],
            "explanation": self.explanation,
            "confidence": self.confidence,
            "intents": self.intents.as_dict(),
        }


def _unique(values: Iterable[Any]) -> Tuple[Any, ...]:
    return tuple(dict.fromkeys(values))


def matches_direction(node: BiologicalNode, direction: ExpressionDirection) -> bool:
    if node.fold_change is not None:
        value, high, low = node.fold_change, FOLD_UP, FOLD_DOWN
    else:
        value, high, low = node.expression, EXPRESSION_UP, EXPRESSION_DOWN
    if direction is ExpressionDirection.UPREGULATED:
        return value > high
    if direction is ExpressionDirection.DOWNREGULATED:
        return value < low
    return low <= value <= high


def _overlaps(first: str, second: str) -> bool:
    a, b = first.lower(), second.lower()
    return a in b or b in a


class QueryEngine:
    """Parse free-text questions against one graph snapshot.

    The pathway, category and gene-symbol indexes are built once from
    ``data``.  Perturbed copies of the same graph share node ids and can be
    queried with the same engine; nodes from any other graph are rejected
    with :class:`~omicsnet.errors.StaleIndexError`.
    """

    def __init__(self, data: Optional[PathwayData] = None, *, config: Optional[QueryConfig] = None) -> None:
        self.config = config or DEFAULT_QUERY_CONFIG
        self._pathways: Optional[FuzzyIndex] = None
        self._categories: Optional[FuzzyIndex] = None
        self._category_words: Dict[str, Tuple[str, ...]] = {}
        self._symbols: Optional[SymbolIndex] = None
        self._node_ids: FrozenSet[str] = frozenset()
        self.fingerprint: Optional[str] = None
        if data is not None:
            self.build(data)

    @classmethod
    def from_nodes(
        cls,
        nodes: Sequence[BiologicalNode],
        *,
        taxonomy: Optional[Taxonomy] = None,
        config: Optional[QueryConfig] = None,
    ) -> "QueryEngine":
        """Index a bare node list, taking names from ``taxonomy`` and the nodes."""

        taxonomy = taxonomy or default_taxonomy()
        pathways = _unique([*taxonomy.pathways, *(node.pathway for node in nodes)])
        categories = _unique(
            [*taxonomy.category_names, *(category for node in nodes for category in sorted(node.broad_category))]
        )
        data = PathwayData(nodes=tuple(nodes), pathways=pathways, broad_categories=categories)
        return cls(data, config=config)

    @property
    def is_built(self) -> bool:
        return self.fingerprint is not None

    def build(self, data: PathwayData) -> None:
        self._pathways = FuzzyIndex(data.pathways)
        self._categories = FuzzyIndex(data.broad_categories)
        self._category_words = {category: tuple(tokenize(category)) for category in self._categories.entries}
        self._symbols = SymbolIndex(node.gene_symbol for node in data.nodes)
        self._node_ids = frozenset(node.id for node in data.nodes)
        self.fingerprint = data.fingerprint
        LOGGER.debug(
            "Indexed %d pathways, %d categories and %d symbols (graph %s)",
            len(self._pathways),
            len(self._categories),
            len(self._symbols),
            self.fingerprint[:12],
        )

    def accepts(self, nodes: Iterable[BiologicalNode]) -> bool:
        return all(node.id in self._node_ids for node in nodes)

    # ------------------------------------------------------------------
    # Intent extraction
    # ------------------------------------------------------------------
    def extract_intents(self, text: str) -> QueryIntents:
        if not self.is_built:
            raise QueryEngineError("Query index has not been built; call build() with a graph first")
        lowered = text.lower()
        words = set(tokenize(text))

        omics = [omics for omics, keywords in OMICS_KEYWORDS if any(keyword in lowered for keyword in keywords)]

        timepoints = [timepoint for timepoint in TimePoint if timepoint.value in lowered]
        if words & EARLY_WORDS:
            timepoints.extend(EARLY_TIMEPOINTS)
        if words & LATE_WORDS:
            timepoints.extend(LATE_TIMEPOINTS)
        if "hours" in lowered and "upregulated" not in lowered and "downregulated" not in lowered:
            timepoints.append(TimePoint.HOURS_48)

        pathways = [
            match.entry
            for match in self._pathways.search(
                text, max_distance=self.config.pathway_max_distance, limit=self.config.pathway_limit
            )
        ]

        categories = [
            match.entry
            for match in self._categories.search(
                text, max_distance=self.config.category_max_distance, limit=self.config.category_limit
            )
        ]
        for category, category_words in self._category_words.items():
            if any(word in words or f"{word}s" in words for word in category_words):
                categories.append(category)

        symbols = self._symbols.mentioned_in(text)

        expression = [
            direction
            for direction, keywords in EXPRESSION_KEYWORDS
            if any(keyword in lowered for keyword in keywords)
        ]

        drug_filters: List[DrugFilter] = []
        if any(phrase in lowered for phrase in NON_TARGET_PHRASES):
            drug_filters.append(DrugFilter.NOT_DRUG_TARGETS)
        elif any(phrase in lowered for phrase in TARGET_PHRASES):
            drug_filters.append(DrugFilter.DRUG_TARGETS)

        return QueryIntents(
            omics_types=_unique(omics),
            timepoints=_unique(timepoints),
            pathways=_unique(pathways),
            categories=_unique(categories),
            gene_symbols=_unique(symbols),
            expression=_unique(expression),
            drug_filters=tuple(drug_filters),
        )

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    @staticmethod
    def apply_intents(nodes: Sequence[BiologicalNode], intents: QueryIntents) -> List[BiologicalNode]:
        selected = list(nodes)
        if intents.omics_types:
            selected = [node for node in selected if node.omics_type in intents.omics_types]
        if intents.timepoints:
            selected = [node for node in selected if node.timepoint in intents.timepoints]
        if intents.pathways:
            selected = [
                node for node in selected if any(_overlaps(node.pathway, pathway) for pathway in intents.pathways)
            ]
        if intents.categories:
            selected = [
                node
                for node in selected
                if any(_overlaps(tag, category) for tag in node.broad_category for category in intents.categories)
            ]
        if intents.gene_symbols:
            symbols = {symbol.upper() for symbol in intents.gene_symbols}
            selected = [node for node in selected if node.gene_symbol.upper() in symbols]
        if intents.expression:
            selected = [
                node for node in selected if any(matches_direction(node, direction) for direction in intents.expression)
            ]
        if DrugFilter.NOT_DRUG_TARGETS in intents.drug_filters:
            selected = [node for node in selected if not node.is_perturbation_target]
        elif DrugFilter.DRUG_TARGETS in intents.drug_filters:
            selected = [node for node in selected if node.is_perturbation_target]
        return selected

    def parse_query(self, text: str, nodes: Sequence[BiologicalNode]) -> QueryResult:
        """Filter ``nodes`` with the intents found in ``text``."""

        if not self.is_built:
            raise QueryEngineError("Query index has not been built; call build() with a graph first")
        if not self.accepts(nodes):
            raise StaleIndexError(
                f"Nodes do not belong to the indexed graph {self.fingerprint[:12]}; rebuild the query engine"
            )
        intents = self.extract_intents(text)
        selected = self.apply_intents(nodes, intents)
        fired = intents.fired()
        if fired:
            described = ", ".join(f"{label} {json.dumps(values)}" for label, values in fired)
            explanation = f"Found {len(selected)} nodes filtered by {described}"
        else:
            explanation = f"Found {len(selected)} nodes (no specific filters applied)"

        if not selected:
            confidence = CONFIDENCE_EMPTY
        elif len(selected) == len(nodes):
            confidence = CONFIDENCE_UNFILTERED
        elif intents.is_specific:
            confidence = CONFIDENCE_SPECIFIC
        else:
            confidence = CONFIDENCE_DEFAULT
        LOGGER.debug("Query %r -> %d/%d nodes (confidence %.1f)", text, len(selected), len(nodes), confidence)
        return QueryResult(nodes=tuple(selected), explanation=explanation, confidence=confidence, intents=intents)


def parse_query(
    text: str,
    nodes: Sequence[BiologicalNode],
    *,
    taxonomy: Optional[Taxonomy] = None,
    config: Optional[QueryConfig] = None,
) -> QueryResult:
    """One-shot query: index ``nodes`` and filter them with ``text``."""

    return QueryEngine.from_nodes(nodes, taxonomy=taxonomy, config=config).parse_query(text, nodes)


__all__ = [
    "DrugFilter",
    "EXAMPLE_QUERIES",
    "ExpressionDirection",
    "QueryEngine",
    "QueryIntents",
    "QueryResult",
    "matches_direction",
    "parse_query",
]
