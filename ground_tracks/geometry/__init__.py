"""Geometry utilities for trace simplification and distance metrics."""

from .metrics import SimplificationStats, summarize_simplification, total_distance
from .simplification import epsilon_to_meters, reduction_percent, simplify_path

__all__ = [
    "SimplificationStats",
    "summarize_simplification",
    "total_distance",
    "epsilon_to_meters",
    "reduction_percent",
    "simplify_path",
]
