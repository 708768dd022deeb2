# Core implementation modules
# These are the actual implementations that power the high-level API

# Import submodules to make them accessible
from geotime._core import types, utils, viz

# Expose validation utilities
from geotime._core.types import (
    AnnDataKeys,
    ExpressionDataset,
    PseudotimeResult,
    RootSelection,
    TrajectoryGraph,
    validate_trajectory_graph,
)
from geotime._core.utils import (
    MissingRootError,
    TrajectoryConfig,
    compute_pseudotime,
    select_root,
)

__all__ = [
    "utils",
    "viz",
    "types",
    # Commonly used functions
    "compute_pseudotime",
    "select_root",
    "TrajectoryConfig",
    "MissingRootError",
    # Validation utilities
    "validate_trajectory_graph",
    # Key types
    "ExpressionDataset",
    "TrajectoryGraph",
    "RootSelection",
    "PseudotimeResult",
    "AnnDataKeys",
]
