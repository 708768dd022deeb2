# Trajectory visualization
from .trajectory_viz import (
    plot_gene_trends,
    plot_pseudotime_by_group,
    plot_trajectory,
    plot_trajectory_3d,
)

__all__ = [
    "plot_trajectory",
    "plot_pseudotime_by_group",
    "plot_gene_trends",
    "plot_trajectory_3d",
]
