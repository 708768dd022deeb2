"""Plotting functions for trajectory inference."""

from .trajectory import (
    gene_trends,
    pseudotime_by_group,
    trajectory,
    trajectory_3d,
    velocity_stream,
)

__all__ = [
    "trajectory",
    "pseudotime_by_group",
    "gene_trends",
    "trajectory_3d",
    "velocity_stream",
]
