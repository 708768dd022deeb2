"""Tools for trajectory inference."""

# Import TrajectoryConfig from core for API access
from .._core.utils.config import TrajectoryConfig
from .._core.utils.pseudotime import MissingRootError
from .genes import pseudotime_genes
from .trajectory import (
    assign_nodes,
    build_graph,
    cluster,
    embed,
    infer_trajectory,
    pseudotime,
    select_root,
)
from .velocity import velocity

__all__ = [
    "embed",
    "cluster",
    "build_graph",
    "assign_nodes",
    "select_root",
    "pseudotime",
    "infer_trajectory",
    "TrajectoryConfig",
    "MissingRootError",
    "pseudotime_genes",
    "velocity",
]
