"""Command line helpers for generating, perturbing and querying networks."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np

from .config import DEFAULT_GENERATOR_CONFIG, GeneratorConfig
from .engine import apply_perturbation
from .errors import UnknownDrugError
from .network import PathwayData, generate_network
from .query import QueryEngine
from .taxonomy import default_taxonomy


def _config_for(seed: int | None) -> GeneratorConfig:
    if seed is None:
        return DEFAULT_GENERATOR_CONFIG
    return replace(DEFAULT_GENERATOR_CONFIG, seed=seed)


def _write(payload: Dict[str, Any], output: Path | None) -> None:
    text = json.dumps(payload, indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {output}", file=sys.stderr)


def _describe(data: PathwayData) -> str:
    targets = sum(1 for node in data.nodes if node.is_perturbation_target)
    return f"nodes={len(data.nodes)} links={len(data.links)} targets={targets}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Synthetic multi-omics network utilities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--seed", type=int, default=None, help="Seed for reproducible output")

    generate_parser = subparsers.add_parser("generate", help="Generate a baseline network")
    add_common(generate_parser)
    generate_parser.add_argument("--output", type=Path, default=None, help="Write JSON to this file")
    generate_parser.add_argument("--summary", action="store_true", help="Print counts instead of the graph")

    perturb_parser = subparsers.add_parser("perturb", help="Apply a drug treatment to a fresh baseline")
    perturb_parser.add_argument("drug_id", help="Drug identifier (see the 'drugs' command)")
    add_common(perturb_parser)
    perturb_parser.add_argument("--output", type=Path, default=None, help="Write JSON to this file")
    perturb_parser.add_argument("--summary", action="store_true", help="Print counts instead of the graph")

    query_parser = subparsers.add_parser("query", help="Ask a free-text question about a network")
    query_parser.add_argument("text", help="Question, e.g. 'Show me proteins that are upregulated'")
    query_parser.add_argument("--drug", dest="drug_id", default=None, help="Query the graph perturbed by this drug")
    add_common(query_parser)
    query_parser.add_argument("--limit", type=int, default=20, help="How many matching nodes to list")
    query_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    subparsers.add_parser("drugs", help="List available drug treatments")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    taxonomy = default_taxonomy()

    if args.command == "drugs":
        for drug in taxonomy.drugs:
            print(f"{drug.id}: {drug.name} ({drug.mechanism})")
        return 0

    config = _config_for(args.seed)
    rng = np.random.default_rng(config.seed)
    baseline = generate_network(taxonomy, rng=rng, config=config)

    if args.command == "generate":
        if args.summary:
            print(_describe(baseline))
        else:
            _write(baseline.as_dict(), args.output)
        return 0

    drug_id = args.drug_id
    data = baseline
    if drug_id:
        try:
            data = apply_perturbation(baseline, taxonomy.get_drug(drug_id), rng=rng, taxonomy=taxonomy)
        except UnknownDrugError as exc:
            parser.error(f"{exc}. Available: {', '.join(drug.id for drug in taxonomy.drugs)}")
            return 2

    if args.command == "perturb":
        if args.summary:
            print(f"{drug_id}: {_describe(data)}")
        else:
            _write(data.as_dict(), args.output)
        return 0

    if args.command == "query":
        result = QueryEngine(baseline).parse_query(args.text, data.nodes)
        if args.json:
            print(json.dumps(result.as_dict(), indent=2))
            return 0
        lines: List[str] = [result.explanation, f"Confidence: {result.confidence:.1f}"]
        for node in result.nodes[: max(args.limit, 0)]:
            fold = "-" if node.fold_change is None else f"{node.fold_change:.2f}"
            lines.append(
                f"  {node.name:<18} {node.omics_type.value:<10} {node.pathway} [{node.timepoint.value}] fold={fold}"
            )
        remaining = len(result.nodes) - max(args.limit, 0)
        if remaining > 0:
            lines.append(f"  … {remaining} more")
        print("\n".join(lines))
        return 0

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
