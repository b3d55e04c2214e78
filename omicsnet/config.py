"""Configuration helpers for the network generator, query engine and API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import os


def _parse_float(raw: str | None, default: float, *, low: float = 0.0, high: float = 1.0) -> float:
    if raw is None:
        return default
    try:
        parsed = float(raw)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, parsed))


def _parse_int(raw: str | None, default: Optional[int]) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _parse_flag(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return str(raw).strip().lower() not in {"0", "false", "no"}


@dataclass(slots=True)
class GeneratorConfig:
    """Tunable constants for :func:`omicsnet.network.generate_network`.

    The link probabilities and the key-player draw are hand-tuned values.
    They are exposed here so deployments can adjust density without
    touching generation code.
    ``seed`` of ``None`` means every call draws fresh entropy.
    """

    seed: Optional[int] = None
    nodes_per_timepoint: int = 120
    expression_low: float = 1.0
    expression_high: float = 11.0
    key_player_probability: float = 0.15
    feedback_probability: float = 0.3
    cross_pathway_probability: float = 0.4
    cross_category_probability: float = 0.2

    def __post_init__(self) -> None:
        if self.nodes_per_timepoint < 0:
            self.nodes_per_timepoint = 0
        if self.expression_low > self.expression_high:
            self.expression_low, self.expression_high = self.expression_high, self.expression_low

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "OMICSNET_",
    ) -> "GeneratorConfig":
        """Create a configuration object from environment variables.

        ``OMICSNET_SEED``
            Integer seed for reproducible graphs.

        ``OMICSNET_NODES_PER_TIMEPOINT``
            Node budget shared by all categories at each time point.

        ``OMICSNET_FEEDBACK_PROBABILITY`` / ``OMICSNET_CROSS_PATHWAY_PROBABILITY`` /
        ``OMICSNET_CROSS_CATEGORY_PROBABILITY`` / ``OMICSNET_KEY_PLAYER_PROBABILITY``
            Probabilities in ``[0, 1]``; out-of-range values are clamped.
        """

        env = env or os.environ
        defaults = cls()
        return cls(
            seed=_parse_int(env.get(f"{prefix}SEED"), None),
            nodes_per_timepoint=_parse_int(env.get(f"{prefix}NODES_PER_TIMEPOINT"), defaults.nodes_per_timepoint)
            or 0,
            key_player_probability=_parse_float(
                env.get(f"{prefix}KEY_PLAYER_PROBABILITY"), defaults.key_player_probability
            ),
            feedback_probability=_parse_float(env.get(f"{prefix}FEEDBACK_PROBABILITY"), defaults.feedback_probability),
            cross_pathway_probability=_parse_float(
                env.get(f"{prefix}CROSS_PATHWAY_PROBABILITY"), defaults.cross_pathway_probability
            ),
            cross_category_probability=_parse_float(
                env.get(f"{prefix}CROSS_CATEGORY_PROBABILITY"), defaults.cross_category_probability
            ),
        )


@dataclass(slots=True)
class QueryConfig:
    """Fuzzy-matching limits used by :class:`omicsnet.query.QueryEngine`.

    Distances are ``1 - difflib ratio``; smaller means closer.
    """

    pathway_max_distance: float = 0.2
    pathway_limit: int = 3
    category_max_distance: float = 0.3
    category_limit: int = 2

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "OMICSNET_QUERY_",
    ) -> "QueryConfig":
        env = env or os.environ
        defaults = cls()
        return cls(
            pathway_max_distance=_parse_float(env.get(f"{prefix}PATHWAY_DISTANCE"), defaults.pathway_max_distance),
            pathway_limit=_parse_int(env.get(f"{prefix}PATHWAY_LIMIT"), defaults.pathway_limit) or defaults.pathway_limit,
            category_max_distance=_parse_float(env.get(f"{prefix}CATEGORY_DISTANCE"), defaults.category_max_distance),
            category_limit=_parse_int(env.get(f"{prefix}CATEGORY_LIMIT"), defaults.category_limit)
            or defaults.category_limit,
        )


@dataclass(slots=True)
class TelemetryConfig:
    """Runtime configuration for OpenTelemetry exporters."""

    enabled: bool = False
    service_name: str = "omicsnet-api"
    environment: str = "development"
    exporter_endpoint: Optional[str] = None
    exporter_protocol: str = "http/protobuf"
    sampling_ratio: float = 0.1
    capture_metrics: bool = True
    capture_traces: bool = True

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "OTEL_",
    ) -> "TelemetryConfig":
        """Construct a configuration object from environment variables."""

        env = env or os.environ
        enabled = _parse_flag(env.get(f"{prefix}ENABLED") or env.get("ENABLE_TELEMETRY"), False)
        endpoint = env.get(f"{prefix}EXPORTER_OTLP_ENDPOINT")
        protocol = env.get(f"{prefix}EXPORTER_OTLP_PROTOCOL")
        service_name = env.get(f"{prefix}SERVICE_NAME") or env.get("SERVICE_NAME") or "omicsnet-api"
        environment_name = env.get(f"{prefix}ENVIRONMENT") or env.get("DEPLOYMENT_ENV", "development")
        sampling_ratio = _parse_float(
            env.get(f"{prefix}SAMPLING_RATIO") or env.get("OTEL_TRACES_SAMPLER_ARG"),
            0.1,
        )
        return cls(
            enabled=enabled or bool(endpoint),
            service_name=service_name,
            environment=environment_name,
            exporter_endpoint=endpoint,
            exporter_protocol=protocol or "http/protobuf",
            sampling_ratio=sampling_ratio,
            capture_metrics=_parse_flag(env.get(f"{prefix}CAPTURE_METRICS"), True),
            capture_traces=_parse_flag(env.get(f"{prefix}CAPTURE_TRACES"), True),
        )


DEFAULT_GENERATOR_CONFIG = GeneratorConfig.from_env()
DEFAULT_QUERY_CONFIG = QueryConfig.from_env()
DEFAULT_TELEMETRY_CONFIG = TelemetryConfig.from_env()
