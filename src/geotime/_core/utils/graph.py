"""
Trajectory graph construction.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 group_centroids(coords, labels) -> (names, centroids)
    Purpose: Mean embedding position of each group, in category order

 mst_graph(positions, nodes, *, partitions=None) -> TrajectoryGraph
    Purpose: Euclidean minimum spanning tree over node positions (TSCAN-style),
             built separately inside each partition when partitions are given

 paga_graph(adata, groupby, positions, nodes, *, threshold=0.1, spanning_tree=True) -> TrajectoryGraph
    Purpose: Keep PAGA group connections above threshold, weight them by centroid
             distance, optionally reduce each component to its spanning tree

 principal_points(coords, n_nodes, *, random_state=0) -> (labels, centers)
    Purpose: k-means principal points used as graph nodes (Monocle-style skeleton)

EXTERNAL DEPENDENCIES:
 From scipy.sparse.csgraph: minimum_spanning_tree
 From scipy.spatial.distance: cdist
 From scanpy: tl.paga
 From sklearn.cluster: KMeans
"""

import numpy as np
import pandas as pd
import scipy.sparse as sp
from scipy.sparse.csgraph import minimum_spanning_tree
from scipy.spatial.distance import cdist

from ..types import TrajectoryGraph


def group_centroids(coords: np.ndarray, labels) -> tuple[list[str], np.ndarray]:
    """Mean position per group.

    Categorical labels keep their category order (unused categories are
    dropped); other labels are sorted.
    """
    labels = pd.Series(labels)
    if isinstance(labels.dtype, pd.CategoricalDtype):
        names = [c for c in labels.cat.categories if (labels == c).any()]
    else:
        names = sorted(labels.dropna().unique().tolist(), key=str)

    coords = np.asarray(coords, dtype=np.float64)
    centroids = np.vstack([coords[(labels == name).to_numpy()].mean(axis=0) for name in names])
    return [str(n) for n in names], centroids


def _tree_edges(dist: np.ndarray) -> tuple[list[tuple[int, int]], list[float]]:
    n = dist.shape[0]
    if n < 2:
        return [], []
    # zero distances become tiny so coincident nodes stay joined
    rows, cols = np.triu_indices(n, k=1)
    upper = sp.csr_matrix((dist[rows, cols] + np.finfo(np.float64).tiny, (rows, cols)), shape=(n, n))
    tree = minimum_spanning_tree(upper).tocoo()
    edges = list(zip(tree.row.tolist(), tree.col.tolist()))
    weights = [float(dist[a, b]) for a, b in edges]
    return edges, weights


def mst_graph(
    positions: np.ndarray,
    nodes: list[str],
    *,
    partitions=None,
    basis: str | None = None,
    groupby: str | None = None,
    method: str = "mst",
) -> TrajectoryGraph:
    """Minimum spanning tree over node positions.

    Parameters
    ----------
    positions : np.ndarray
        Node coordinates, shape (n_nodes, n_dims).
    nodes : list of str
        Node names.
    partitions : array-like, optional
        Partition label per node. Trees are built inside each partition and
        never cross partitions, giving a forest.

    Returns
    -------
    TrajectoryGraph
    """
    positions = np.asarray(positions, dtype=np.float64)
    if partitions is None:
        partitions = np.zeros(len(nodes), dtype=np.int64)
    partitions = np.asarray(partitions)

    edges: list[tuple[int, int]] = []
    weights: list[float] = []
    for part in pd.unique(partitions):
        members = np.flatnonzero(partitions == part)
        dist = cdist(positions[members], positions[members])
        part_edges, part_weights = _tree_edges(dist)
        edges += [(int(members[a]), int(members[b])) for a, b in part_edges]
        weights += part_weights

    return TrajectoryGraph(
        nodes=nodes,
        edges=np.asarray(edges, dtype=np.int64).reshape(-1, 2),
        weights=np.asarray(weights, dtype=np.float64),
        positions=positions,
        basis=basis,
        method=method,
        groupby=groupby,
    )


def paga_graph(
    adata,
    groupby: str,
    positions: np.ndarray,
    nodes: list[str],
    *,
    threshold: float = 0.1,
    spanning_tree: bool = True,
    basis: str | None = None,
) -> TrajectoryGraph:
    """Trajectory graph from PAGA group connectivities.

    Group pairs whose PAGA connectivity is at least ``threshold`` are joined
    by an edge weighted with the Euclidean distance between their centroids.
    Groups left without connections form their own partitions.
    """
    import scanpy as sc

    if "neighbors" not in adata.uns:
        raise ValueError("PAGA needs a neighbor graph. Run tl.embed() or sc.pp.neighbors() first.")

    sc.tl.paga(adata, groups=groupby)
    conn = adata.uns["paga"]["connectivities"]
    conn = conn.toarray() if sp.issparse(conn) else np.asarray(conn)

    categories = [str(c) for c in adata.obs[groupby].cat.categories]
    order = [categories.index(n) for n in nodes]
    conn = conn[np.ix_(order, order)]

    positions = np.asarray(positions, dtype=np.float64)
    dist = cdist(positions, positions)
    keep = np.triu(np.maximum(conn, conn.T) >= threshold, k=1)
    rows, cols = np.nonzero(keep)

    if spanning_tree and len(rows):
        # minimum_spanning_tree drops zero entries, so weights are shifted by tiny
        masked = sp.csr_matrix(
            (dist[rows, cols] + np.finfo(np.float64).tiny, (rows, cols)), shape=dist.shape
        )
        tree = minimum_spanning_tree(masked).tocoo()
        rows, cols = tree.row, tree.col

    return TrajectoryGraph(
        nodes=nodes,
        edges=np.column_stack([rows, cols]).astype(np.int64).reshape(-1, 2),
        weights=dist[rows, cols].astype(np.float64),
        positions=positions,
        basis=basis,
        method="paga",
        groupby=groupby,
    )


def principal_points(coords: np.ndarray, n_nodes: int, *, random_state: int = 0):
    """k-means centres used as principal points.

    Returns
    -------
    labels : np.ndarray
        Index of the principal point nearest to each cell.
    centers : np.ndarray
        Principal point coordinates, shape (n_nodes, n_dims).
    """
    from sklearn.cluster import KMeans

    coords = np.asarray(coords, dtype=np.float64)
    n_nodes = int(min(n_nodes, len(coords)))
    if n_nodes < 1:
        raise ValueError("n_nodes must be at least 1")
    km = KMeans(n_clusters=n_nodes, n_init=10, random_state=random_state).fit(coords)
    return km.labels_.astype(np.int64), km.cluster_centers_


def nearest_nodes(coords: np.ndarray, positions: np.ndarray, *, allowed=None) -> np.ndarray:
    """Index of the closest node for every cell.

    ``allowed`` is an optional boolean mask (n_cells, n_nodes) restricting the
    candidate nodes per cell.
    """
    dist = cdist(np.asarray(coords, dtype=np.float64), np.asarray(positions, dtype=np.float64))
    if allowed is not None:
        dist = np.where(allowed, dist, np.inf)
    return dist.argmin(axis=1).astype(np.int64)
