"""
Core trajectory inference functions.

This module provides the primary interface for ordering cells along a
developmental process. All functions work directly with AnnData objects and
follow scVerse conventions.

Main Functions:
- embed(): Low-dimensional embedding (UMAP, PCA, t-SNE, diffusion map)
- cluster(): Partition cells (Leiden, Louvain, k-means, Gaussian mixture)
- build_graph(): Trajectory graph over cluster centroids, PAGA or principal points
- assign_nodes(): Map every cell to a graph node
- select_root(): Choose root node(s) from time-point labels
- pseudotime(): Geodesic distance from the nearest root along the graph
- infer_trajectory(): The whole chain driven by a TrajectoryConfig

Cells whose partition of the graph holds no root receive ``np.inf`` and are
reported in ``adata.uns["pseudotime_info"]["unreachable_partitions"]``.
"""

from anndata import AnnData

from .._core.types import PseudotimeResult, RootSelection, TrajectoryGraph
from .._core.utils.config import TrajectoryConfig
from .._core.utils.embedding import cluster_cells as _cluster_cells
from .._core.utils.embedding import compute_embedding as _compute_embedding
from .._core.utils.trajectory import assign_cells_to_nodes as _assign_cells_to_nodes
from .._core.utils.trajectory import assign_pseudotime as _assign_pseudotime
from .._core.utils.trajectory import build_trajectory_graph as _build_trajectory_graph
from .._core.utils.trajectory import choose_root as _choose_root

# Import existing pipeline driver
from .._core.utils.trajectory import run_trajectory_pipeline as _run_trajectory_pipeline


def embed(
    adata: AnnData,
    method: str = "umap",
    *,
    n_neighbors: int = 15,
    n_pcs: int | None = None,
    n_components: int = 2,
    random_state: int = 0,
    verbose: bool = True,
) -> str:
    """Compute a low-dimensional embedding of the cells.

    PCA and the k-NN graph are computed first when missing, so this can run
    directly after :func:`geotime.pp.preprocess`.

    Parameters
    ----------
    adata : AnnData
        Annotated data object. Modified in place.
    method : str, default: "umap"
        One of ``"umap"``, ``"pca"``, ``"tsne"``, ``"diffmap"``.
    n_neighbors : int, default: 15
        Neighbors of the k-NN graph.
    n_pcs : int | None, default: None
        Principal components used for the k-NN graph.
    n_components : int, default: 2
        Output dimensions (UMAP and diffusion map).
    random_state : int, default: 0
        Seed forwarded to scanpy.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    str
        The ``adata.obsm`` key of the embedding, e.g. ``"X_umap"``.

    Raises
    ------
    ValueError
        If ``method`` is unknown.
    """
    return _compute_embedding(
        adata,
        method,
        n_neighbors=n_neighbors,
        n_pcs=n_pcs,
        n_components=n_components,
        random_state=random_state,
        verbose=verbose,
    )


def cluster(
    adata: AnnData,
    method: str = "leiden",
    *,
    resolution: float = 1.0,
    n_clusters: int | None = None,
    use_rep: str = "X_pca",
    n_dims: int | None = None,
    key_added: str = "clusters",
    random_state: int = 0,
    verbose: bool = True,
):
    """Cluster cells into the groups the trajectory graph is built on.

    Parameters
    ----------
    adata : AnnData
        Annotated data object. Leiden and Louvain need ``adata.uns["neighbors"]``.
    method : str, default: "leiden"
        ``"leiden"``, ``"louvain"``, ``"kmeans"`` or ``"gmm"``.
    resolution : float, default: 1.0
        Resolution for community detection.
    n_clusters : int | None, default: None
        Required for k-means. For ``"gmm"`` None selects the count by BIC.
    use_rep : str, default: "X_pca"
        ``adata.obsm`` key clustered by k-means and the mixture model.
    n_dims : int | None, default: None
        Use only the first ``n_dims`` columns of ``use_rep``.
    key_added : str, default: "clusters"
        ``adata.obs`` column for the labels.
    random_state : int, default: 0
        Seed forwarded to the clustering library.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    pd.Series
        Categorical labels, also stored in ``adata.obs[key_added]``.
    """
    return _cluster_cells(
        adata,
        method,
        resolution=resolution,
        n_clusters=n_clusters,
        use_rep=use_rep,
        n_dims=n_dims,
        key_added=key_added,
        random_state=random_state,
        verbose=verbose,
    )


def build_graph(
    adata: AnnData,
    method: str = "mst",
    *,
    groupby: str = "clusters",
    basis: str | None = None,
    partition_key: str | None = None,
    n_nodes: int = 30,
    paga_threshold: float = 0.1,
    random_state: int = 0,
    verbose: bool = True,
) -> TrajectoryGraph:
    """Build the trajectory graph.

    Parameters
    ----------
    adata : AnnData
        Annotated data object with an embedding and, for ``"mst"`` and
        ``"paga"``, group labels in ``adata.obs[groupby]``.
    method : str, default: "mst"
        How nodes and edges are obtained:

        - ``"mst"`` : one node per group at the group centroid, minimum
          spanning tree over Euclidean centroid distances
        - ``"paga"`` : one node per group, edges from PAGA connectivities
          above ``paga_threshold``
        - ``"principal_points"`` : ``n_nodes`` k-means centres joined by a
          minimum spanning tree

    groupby : str, default: "clusters"
        Column of ``adata.obs`` defining the groups.
    basis : str | None, default: None
        ``adata.obsm`` key used for node positions. None picks UMAP,
        diffusion map, t-SNE then PCA, whichever exists first.
    partition_key : str | None, default: None
        ``adata.obs`` column splitting cells into separate trajectories. A
        spanning tree is built within each partition and no edges join them.
    n_nodes : int, default: 30
        Number of principal points.
    paga_threshold : float, default: 0.1
        Minimum PAGA connectivity kept as an edge.
    random_state : int, default: 0
        Seed for k-means.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    TrajectoryGraph
        Also stored in ``adata.uns["trajectory_graph"]``. Existing node
        assignments, root selection and pseudotime are removed.
    """
    return _build_trajectory_graph(
        adata,
        method,
        groupby=groupby,
        basis=basis,
        partition_key=partition_key,
        n_nodes=n_nodes,
        paga_threshold=paga_threshold,
        random_state=random_state,
        verbose=verbose,
    )


def assign_nodes(adata: AnnData, method: str = "cluster", *, basis: str | None = None, verbose: bool = True):
    """Assign every cell to exactly one graph node.

    ``"cluster"`` maps a cell to the node of its group; ``"nearest"`` picks
    the closest node position in ``basis``.

    Returns
    -------
    pd.Series
        ``adata.obs["trajectory_node"]``.
    """
    return _assign_cells_to_nodes(adata, method, basis=basis, verbose=verbose)


def select_root(
    adata: AnnData,
    time_key: str,
    *,
    time_order: list | None = None,
    per_partition: bool = False,
    verbose: bool = True,
) -> RootSelection:
    """Pick the root node from time-point labels.

    The earliest label is the first entry of ``time_order``, else the first
    category of an ordered categorical, else the smallest value. The root is
    the node whose cells carry that label in the highest fraction; ties go to
    the node listed first in the graph.

    Parameters
    ----------
    adata : AnnData
        Must contain ``adata.obs[time_key]`` and node assignments.
    time_key : str
        Column with time-point labels (e.g. ``"time_point"``, ``"day"``).
    time_order : list | None, default: None
        Explicit order of the labels, earliest first.
    per_partition : bool, default: False
        Select one root in every partition that contains earliest cells.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    RootSelection
        Also stored in ``adata.uns["root_selection"]``.

    Raises
    ------
    MissingRootError
        If no node holds a cell with the earliest label.
    """
    return _choose_root(adata, time_key, time_order=time_order, per_partition=per_partition, verbose=verbose)


def pseudotime(
    adata: AnnData,
    roots: list | None = None,
    *,
    offset: str = "none",
    basis: str | None = None,
    key_added: str = "pseudotime",
    verbose: bool = True,
) -> PseudotimeResult:
    """Assign pseudotime as graph distance from the nearest root.

    Parameters
    ----------
    adata : AnnData
        Must contain the trajectory graph and node assignments.
    roots : list | None, default: None
        Root node names or indices. None uses ``adata.uns["root_selection"]``.
    offset : str, default: "none"
        ``"none"`` gives every cell the distance of its node. ``"projection"``
        projects the cell onto the closest incident edge and interpolates,
        so cells within a node are ordered too.
    basis : str | None, default: None
        Embedding used for ``"projection"``. Defaults to the graph basis.
    key_added : str, default: "pseudotime"
        ``adata.obs`` column for the values.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    PseudotimeResult
        Per-cell values (``np.inf`` where no root is reachable).

    Raises
    ------
    MissingRootError
        If no roots are given and none were selected.

    Examples
    --------
    >>> gt.tl.select_root(adata, "time_point")
    >>> result = gt.tl.pseudotime(adata)
    >>> adata.obs["pseudotime"].describe()
    """
    return _assign_pseudotime(adata, roots, offset=offset, basis=basis, key_added=key_added, verbose=verbose)


def infer_trajectory(
    adata: AnnData,
    config: TrajectoryConfig | None = None,
    *,
    time_key: str | None = None,
    roots: list | None = None,
    time_order: list | None = None,
) -> PseudotimeResult:
    """Run embedding, clustering, graph building, root selection and pseudotime.

    Parameters
    ----------
    adata : AnnData
        Preprocessed data (see :func:`geotime.pp.preprocess`).
    config : TrajectoryConfig | None, default: None
        Pipeline parameters. None uses the defaults.
    time_key : str | None, default: None
        Column used to select roots when ``roots`` is not given.
    roots : list | None, default: None
        Explicit root nodes (cluster names).
    time_order : list | None, default: None
        Explicit order of the time labels.

    Returns
    -------
    PseudotimeResult

    Examples
    --------
    >>> config = gt.tl.TrajectoryConfig(embedding="pca", cluster_method="kmeans", n_clusters=8)
    >>> result = gt.tl.infer_trajectory(adata, config, time_key="time_point")
    """
    return _run_trajectory_pipeline(adata, config, time_key=time_key, roots=roots, time_order=time_order)
