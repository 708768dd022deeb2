"""Configuration for the end-to-end trajectory pipeline."""

from dataclasses import dataclass
from pathlib import Path

from .embedding import CLUSTER_METHODS, EMBEDDING_METHODS
from .pseudotime import OFFSET_MODES

GRAPH_METHODS = ("mst", "paga", "principal_points")


@dataclass
class TrajectoryConfig:
    """Parameters for :func:`geotime.tl.infer_trajectory`.

    Parameters
    ----------
    embedding : str, default: "umap"
        Embedding method: ``"umap"``, ``"pca"``, ``"tsne"`` or ``"diffmap"``.
    n_neighbors : int, default: 15
        Neighbors for the k-NN graph.
    n_pcs : int | None, default: None
        PCs used for the neighbor graph. None uses all computed PCs.
    cluster_method : str, default: "leiden"
        ``"leiden"``, ``"louvain"``, ``"kmeans"`` or ``"gmm"``.
    resolution : float, default: 1.0
        Community-detection resolution (leiden / louvain).
    n_clusters : int | None, default: None
        Cluster count for kmeans (required) or gmm (None selects by BIC).
    cluster_rep : str, default: "X_pca"
        obsm key clustered by kmeans / gmm.
    graph_method : str, default: "mst"
        ``"mst"`` over cluster centroids, ``"paga"`` or ``"principal_points"``.
    graph_basis : str | None, default: None
        obsm key used for node positions. None uses the computed embedding.
    partition_key : str | None, default: None
        obs column splitting cells into separate trajectories (mst only).
    n_nodes : int, default: 30
        Number of principal points (principal_points only).
    paga_threshold : float, default: 0.1
        Minimum PAGA connectivity kept as an edge.
    node_assignment : str, default: "cluster"
        ``"cluster"`` (cells belong to their cluster's node) or ``"nearest"``.
    offset : str, default: "none"
        Intra-node offset: ``"none"`` or ``"projection"``.
    per_partition_roots : bool, default: False
        Select one root per partition from time labels.
    random_state : int, default: 0
        Seed forwarded to every stochastic step.
    figdir : str, default: "figures"
        Directory for figures saved by the pipeline.
    save_figures : bool, default: False
        Write the trajectory and pseudotime plots to ``figdir``.
    verbose : bool, default: True
        Print progress messages.

    Raises
    ------
    ValueError
        For unknown method names or out-of-range numeric values.

    Examples
    --------
    >>> config = TrajectoryConfig(embedding="pca", cluster_method="kmeans", n_clusters=6)
    >>> result = gt.tl.infer_trajectory(adata, config, time_key="time_point")
    """

    embedding: str = "umap"
    n_neighbors: int = 15
    n_pcs: int | None = None
    cluster_method: str = "leiden"
    resolution: float = 1.0
    n_clusters: int | None = None
    cluster_rep: str = "X_pca"
    graph_method: str = "mst"
    graph_basis: str | None = None
    partition_key: str | None = None
    n_nodes: int = 30
    paga_threshold: float = 0.1
    node_assignment: str = "cluster"
    offset: str = "none"
    per_partition_roots: bool = False
    random_state: int = 0
    figdir: str = "figures"
    verbose: bool = True
    save_figures: bool = False

    def __post_init__(self):
        if self.embedding not in EMBEDDING_METHODS:
            raise ValueError(f"embedding must be one of {EMBEDDING_METHODS}, got '{self.embedding}'")
        if self.cluster_method not in CLUSTER_METHODS:
            raise ValueError(f"cluster_method must be one of {CLUSTER_METHODS}, got '{self.cluster_method}'")
        if self.graph_method not in GRAPH_METHODS:
            raise ValueError(f"graph_method must be one of {GRAPH_METHODS}, got '{self.graph_method}'")
        if self.offset not in OFFSET_MODES:
            raise ValueError(f"offset must be one of {OFFSET_MODES}, got '{self.offset}'")
        if self.node_assignment not in ("cluster", "nearest"):
            raise ValueError(f"node_assignment must be 'cluster' or 'nearest', got '{self.node_assignment}'")
        if self.n_neighbors < 2:
            raise ValueError(f"n_neighbors must be >= 2, got {self.n_neighbors}")
        if self.n_pcs is not None and self.n_pcs < 1:
            raise ValueError(f"n_pcs must be positive, got {self.n_pcs}")
        if self.resolution <= 0:
            raise ValueError(f"resolution must be positive, got {self.resolution}")
        if self.n_clusters is not None and self.n_clusters < 1:
            raise ValueError(f"n_clusters must be positive, got {self.n_clusters}")
        if self.cluster_method == "kmeans" and self.n_clusters is None:
            raise ValueError("cluster_method='kmeans' needs n_clusters")
        if self.n_nodes < 2:
            raise ValueError(f"n_nodes must be >= 2, got {self.n_nodes}")
        if not 0 <= self.paga_threshold <= 1:
            raise ValueError(f"paga_threshold must lie in [0, 1], got {self.paga_threshold}")
        if self.partition_key is not None and self.graph_method != "mst":
            raise ValueError("partition_key is only supported with graph_method='mst'")

    @property
    def figure_dir(self) -> Path:
        return Path(self.figdir)
