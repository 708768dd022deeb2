"""geotime: graph-based pseudotime for single-cell genomics.

This package orders cells along developmental trajectories by building a
graph over cluster centroids and measuring geodesic distance from root nodes,
following scverse ecosystem conventions.

The package can be imported as `import geotime as gt` and provides:
- High-level API: gt.pp, gt.tl, gt.pl (preprocessing, tools, plotting)
- Core implementations: gt._core (types, utils, viz)
- Direct access to commonly used items: gt.TrajectoryConfig, gt.compute_pseudotime, etc.
"""

# High-level API modules
# Core implementation modules
from . import _core, datasets, pl, pp, tl

# Expose commonly used core items for convenience
from ._core.types import AnnDataKeys, PseudotimeResult, RootSelection, TrajectoryGraph
from ._core.utils import (
    MissingRootError,
    TrajectoryConfig,
    compute_pseudotime,
    select_root,
)

__version__ = "0.1.0"

__all__ = [
    # High-level API
    "pp",
    "tl",
    "pl",
    "datasets",
    # Core modules
    "_core",
    # Types
    "TrajectoryGraph",
    "RootSelection",
    "PseudotimeResult",
    "AnnDataKeys",
    # Utils
    "TrajectoryConfig",
    "MissingRootError",
    "compute_pseudotime",
    "select_root",
]
