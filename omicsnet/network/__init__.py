"""Baseline network construction and graph records."""

from .generator import NetworkGenerator, generate_network
from .models import BiologicalLink, BiologicalNode, LinkType, PathwayData

__all__ = [
    "BiologicalLink",
    "BiologicalNode",
    "LinkType",
    "NetworkGenerator",
    "PathwayData",
    "generate_network",
]
