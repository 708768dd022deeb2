# make utils visible
from .config import GRAPH_METHODS, TrajectoryConfig
from .embedding import CLUSTER_METHODS, EMBEDDING_METHODS, cluster_cells, compute_embedding, ensure_neighbors, ensure_pca
from .gene_trends import binned_expression, pseudotime_association
from .graph import group_centroids, mst_graph, nearest_nodes, paga_graph, principal_points
from .load_anndata import from_tables, load_data, validate_anndata
from .preprocessing import preprocess_counts
from .pseudotime import OFFSET_MODES, MissingRootError, compute_pseudotime, project_to_edges, select_root
from .synthetic_trajectory import generate_trajectory_data
from .trajectory import (
    assign_cells_to_nodes,
    assign_pseudotime,
    build_trajectory_graph,
    choose_root,
    get_graph,
    resolve_basis,
    run_trajectory_pipeline,
)
from .velocity import REQUIRED_LAYERS, VELOCITY_MODES, check_velocity_layers, run_velocity

__all__ = [
    # Configuration
    "TrajectoryConfig",
    "GRAPH_METHODS",
    "EMBEDDING_METHODS",
    "CLUSTER_METHODS",
    "OFFSET_MODES",
    "VELOCITY_MODES",
    "REQUIRED_LAYERS",
    # Ingestion
    "from_tables",
    "load_data",
    "validate_anndata",
    "preprocess_counts",
    "generate_trajectory_data",
    # Embedding and clustering
    "ensure_pca",
    "ensure_neighbors",
    "compute_embedding",
    "cluster_cells",
    # Graph construction
    "group_centroids",
    "mst_graph",
    "paga_graph",
    "principal_points",
    "nearest_nodes",
    # Pseudotime
    "MissingRootError",
    "compute_pseudotime",
    "project_to_edges",
    "select_root",
    # AnnData workflow
    "resolve_basis",
    "get_graph",
    "build_trajectory_graph",
    "assign_cells_to_nodes",
    "choose_root",
    "assign_pseudotime",
    "run_trajectory_pipeline",
    # Genes and velocity
    "pseudotime_association",
    "binned_expression",
    "check_velocity_layers",
    "run_velocity",
]
