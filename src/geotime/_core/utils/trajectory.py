"""
AnnData-level trajectory workflow.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 build_trajectory_graph(adata, method="mst", *, groupby="clusters", basis=None, ...) -> TrajectoryGraph
    Side Effects: adata.uns['trajectory_graph']; clears node assignment and pseudotime

 assign_cells_to_nodes(adata, method="cluster", *, basis=None) -> pd.Series
    Side Effects: adata.obs['trajectory_node'], adata.obs['trajectory_partition']; clears pseudotime

 choose_root(adata, time_key, *, time_order=None, per_partition=False) -> RootSelection
    Side Effects: adata.uns['root_selection']; clears pseudotime

 assign_pseudotime(adata, roots=None, *, offset="none", basis=None, key_added="pseudotime") -> PseudotimeResult
    Side Effects: adata.obs[key_added], adata.obs[f'{key_added}_reachable'], adata.uns['pseudotime_info']

 clear_trajectory(adata, groupby=None) -> bool
    Side Effects: removes the graph, node assignment, root selection and pseudotime

 run_trajectory_pipeline(adata, config, *, time_key=None, roots=None, time_order=None) -> PseudotimeResult
    Purpose: embedding -> clustering -> graph -> node assignment -> root -> pseudotime

DATA FLOW PATTERNS:
 Any change to the graph or root set drops the downstream keys, so stale
 pseudotime never survives an upstream rerun.
"""

import numpy as np
import pandas as pd

from ..types import AnnDataKeys, PseudotimeResult, RootSelection, TrajectoryGraph
from .config import GRAPH_METHODS, TrajectoryConfig
from .embedding import cluster_cells, compute_embedding, ensure_neighbors
from .graph import group_centroids, mst_graph, nearest_nodes, paga_graph, principal_points
from .pseudotime import MissingRootError, compute_pseudotime, select_root

_BASIS_PREFERENCE = ("X_umap", "X_diffmap", "X_tsne", "X_pca")


def _invalidate(adata, obs_keys=(), uns_keys=()):
    for key in obs_keys:
        if key in adata.obs.columns:
            del adata.obs[key]
    for key in uns_keys:
        adata.uns.pop(key, None)


def _drop_pseudotime(adata):
    info = adata.uns.get(AnnDataKeys.PSEUDOTIME_INFO, {})
    key = info.get("key_added", AnnDataKeys.PSEUDOTIME)
    _invalidate(adata, obs_keys=(key, f"{key}_reachable"), uns_keys=(AnnDataKeys.PSEUDOTIME_INFO,))


def clear_trajectory(adata, groupby: str | None = None) -> bool:
    """Drop the stored graph and everything derived from it.

    With ``groupby`` set, only a graph whose nodes are that obs column's groups is dropped.
    Returns True if anything was removed.
    """
    stored = adata.uns.get(AnnDataKeys.TRAJECTORY_GRAPH)
    if stored is None:
        return False
    if groupby is not None and stored.get("groupby") != groupby:
        return False
    _invalidate(
        adata,
        obs_keys=(AnnDataKeys.TRAJECTORY_NODE, AnnDataKeys.GRAPH_PARTITION),
        uns_keys=(AnnDataKeys.TRAJECTORY_GRAPH, AnnDataKeys.ROOT_SELECTION),
    )
    _drop_pseudotime(adata)
    return True


def resolve_basis(adata, basis=None) -> str:
    """Pick the embedding key, falling back through UMAP, diffmap, t-SNE, PCA."""
    if basis is not None:
        if basis not in adata.obsm:
            raise ValueError(f"'{basis}' not found in adata.obsm. Available keys: {list(adata.obsm.keys())}")
        return basis
    for candidate in _BASIS_PREFERENCE:
        if candidate in adata.obsm:
            return candidate
    raise ValueError(
        f"No embedding found. Tried: {list(_BASIS_PREFERENCE)}. Available keys: {list(adata.obsm.keys())}"
    )


def get_graph(adata, key: str = AnnDataKeys.TRAJECTORY_GRAPH) -> TrajectoryGraph:
    if key not in adata.uns:
        raise ValueError(f"'{key}' not found in adata.uns. Run tl.build_graph() first.")
    return TrajectoryGraph.from_uns(adata.uns[key])


def _majority_partition(labels: pd.Series, partitions: pd.Series, names: list[str]) -> list[str]:
    out = []
    for name in names:
        counts = partitions[(labels == name).to_numpy()].astype(str).value_counts()
        # ties resolved alphabetically for a stable result
        top = counts[counts == counts.max()].index
        out.append(sorted(top)[0])
    return out


def build_trajectory_graph(
    adata,
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
    if method not in GRAPH_METHODS:
        raise ValueError(f"method must be one of {GRAPH_METHODS}, got '{method}'")
    basis = resolve_basis(adata, basis)
    coords = np.asarray(adata.obsm[basis], dtype=np.float64)

    if verbose:
        print(f"[GRAPH] Building '{method}' trajectory graph on {basis}")

    if method == "principal_points":
        labels, centers = principal_points(coords, n_nodes, random_state=random_state)
        names = [f"PP{i + 1}" for i in range(len(centers))]
        adata.obs["principal_point"] = pd.Categorical(np.asarray(names)[labels], categories=names)
        graph = mst_graph(centers, names, basis=basis, groupby="principal_point", method="principal_points")
    else:
        if groupby not in adata.obs.columns:
            raise ValueError(
                f"Column '{groupby}' not found in adata.obs. Run tl.cluster() first. "
                f"Available columns: {list(adata.obs.columns)}"
            )
        if not isinstance(adata.obs[groupby].dtype, pd.CategoricalDtype):
            adata.obs[groupby] = adata.obs[groupby].astype(str).astype("category")
        labels = adata.obs[groupby]
        names, centroids = group_centroids(coords, labels)

        if method == "mst":
            partitions = None
            if partition_key is not None:
                if partition_key not in adata.obs.columns:
                    raise ValueError(
                        f"Partition column '{partition_key}' not found in adata.obs. "
                        f"Available columns: {list(adata.obs.columns)}"
                    )
                partitions = _majority_partition(labels.astype(str), adata.obs[partition_key], names)
            graph = mst_graph(centroids, names, partitions=partitions, basis=basis, groupby=groupby)
        else:
            graph = paga_graph(adata, groupby, centroids, names, threshold=paga_threshold, basis=basis)

    adata.uns[AnnDataKeys.TRAJECTORY_GRAPH] = graph.to_uns()
    _invalidate(
        adata,
        obs_keys=(AnnDataKeys.TRAJECTORY_NODE, AnnDataKeys.GRAPH_PARTITION),
        uns_keys=(AnnDataKeys.ROOT_SELECTION,),
    )
    _drop_pseudotime(adata)

    if verbose:
        n_parts = len(np.unique(graph.partitions()))
        print(f"   {graph.n_nodes} nodes, {graph.n_edges} edges, {n_parts} partition(s)")
        print(f"[OK] Stored graph in adata.uns['{AnnDataKeys.TRAJECTORY_GRAPH}']")

    return graph


def assign_cells_to_nodes(adata, method: str = "cluster", *, basis: str | None = None, verbose: bool = True):
    graph = get_graph(adata)

    if method == "cluster":
        if graph.groupby is None or graph.groupby not in adata.obs.columns:
            raise ValueError("Graph nodes are not tied to an obs column; use method='nearest'")
        names = adata.obs[graph.groupby].astype(str)
        unknown = sorted(set(names) - set(graph.nodes))
        if unknown:
            raise ValueError(f"Groups {unknown[:5]} have no node in the trajectory graph. Rebuild the graph.")
        node_idx = names.map({n: i for i, n in enumerate(graph.nodes)}).to_numpy(dtype=np.int64)
    elif method == "nearest":
        if graph.positions is None:
            raise ValueError("Graph has no node positions; nearest-node assignment needs them")
        basis = resolve_basis(adata, basis or graph.basis)
        node_idx = nearest_nodes(adata.obsm[basis], graph.positions)
    else:
        raise ValueError(f"method must be 'cluster' or 'nearest', got '{method}'")

    partitions = graph.partitions()
    adata.obs[AnnDataKeys.TRAJECTORY_NODE] = pd.Categorical(
        np.asarray(graph.nodes, dtype=object)[node_idx], categories=graph.nodes
    )
    adata.obs[AnnDataKeys.GRAPH_PARTITION] = pd.Categorical(partitions[node_idx].astype(str))
    _drop_pseudotime(adata)

    if verbose:
        print(f"[OK] Assigned {adata.n_obs} cells to {len(np.unique(node_idx))} nodes ({method})")
    return adata.obs[AnnDataKeys.TRAJECTORY_NODE]


def _node_assignment(adata):
    if AnnDataKeys.TRAJECTORY_NODE not in adata.obs.columns:
        raise ValueError(
            f"'{AnnDataKeys.TRAJECTORY_NODE}' not found in adata.obs. Run tl.assign_nodes() first."
        )
    return adata.obs[AnnDataKeys.TRAJECTORY_NODE].astype(str).to_numpy()


def choose_root(
    adata,
    time_key: str,
    *,
    time_order=None,
    per_partition: bool = False,
    verbose: bool = True,
) -> RootSelection:
    if time_key not in adata.obs.columns:
        raise ValueError(f"Column '{time_key}' not found in adata.obs. Available columns: {list(adata.obs.columns)}")

    graph = get_graph(adata)
    selection = select_root(
        _node_assignment(adata),
        adata.obs[time_key].reset_index(drop=True),
        graph=graph,
        time_order=time_order,
        per_partition=per_partition,
        time_key=time_key,
    )
    adata.uns[AnnDataKeys.ROOT_SELECTION] = selection.to_uns()
    _drop_pseudotime(adata)

    if verbose:
        print(f"[ROOT] Earliest label '{selection.earliest_label}' in '{time_key}'")
        for root in selection.roots:
            print(f"   {root}: {selection.fractions[root] * 100:.1f}% earliest cells")
    return selection


def assign_pseudotime(
    adata,
    roots=None,
    *,
    offset: str = "none",
    basis: str | None = None,
    key_added: str = AnnDataKeys.PSEUDOTIME,
    verbose: bool = True,
) -> PseudotimeResult:
    graph = get_graph(adata)
    assignment = _node_assignment(adata)

    if roots is None:
        if AnnDataKeys.ROOT_SELECTION not in adata.uns:
            raise MissingRootError("No roots given and no root selection stored. Pass roots or run tl.select_root().")
        roots = [str(r) for r in adata.uns[AnnDataKeys.ROOT_SELECTION]["roots"]]

    coords = None
    if offset == "projection":
        coords = adata.obsm[resolve_basis(adata, basis or graph.basis)]

    result = compute_pseudotime(graph, assignment, roots, coords=coords, offset=offset)

    adata.obs[key_added] = result.values
    adata.obs[f"{key_added}_reachable"] = result.reachable
    adata.uns[AnnDataKeys.PSEUDOTIME_INFO] = {
        "roots": np.asarray(result.roots, dtype=object),
        "offset": offset,
        "key_added": key_added,
        "unreachable_partitions": np.asarray(result.unreachable_partitions, dtype=np.int64),
        "n_unreachable": result.n_unreachable,
    }

    if verbose:
        finite = result.values[result.reachable]
        print(f"[PSEUDOTIME] Roots: {result.roots} (offset={offset})")
        if len(finite):
            print(f"   Range: {finite.min():.3f} - {finite.max():.3f} over {len(finite)} cells")
        if result.n_unreachable:
            print(
                f"   [WARNING] {result.n_unreachable} cells in partition(s) "
                f"{result.unreachable_partitions} have no pseudotime (inf)"
            )
        print(f"[OK] Stored pseudotime in adata.obs['{key_added}']")

    return result


def run_trajectory_pipeline(
    adata,
    config: TrajectoryConfig | None = None,
    *,
    time_key: str | None = None,
    roots=None,
    time_order=None,
) -> PseudotimeResult:
    config = config or TrajectoryConfig()
    verbose = config.verbose

    if roots is None and time_key is None:
        raise MissingRootError("Pass roots or a time_key to select them from")

    basis = compute_embedding(
        adata,
        config.embedding,
        n_neighbors=config.n_neighbors,
        n_pcs=config.n_pcs,
        random_state=config.random_state,
        verbose=verbose,
    )

    if config.cluster_method in ("leiden", "louvain") or config.graph_method == "paga":
        ensure_neighbors(
            adata, n_neighbors=config.n_neighbors, n_pcs=config.n_pcs, random_state=config.random_state, verbose=verbose
        )

    if config.graph_method != "principal_points":
        cluster_cells(
            adata,
            config.cluster_method,
            resolution=config.resolution,
            n_clusters=config.n_clusters,
            use_rep=config.cluster_rep,
            random_state=config.random_state,
            verbose=verbose,
        )

    build_trajectory_graph(
        adata,
        config.graph_method,
        groupby="clusters",
        basis=config.graph_basis or basis,
        partition_key=config.partition_key,
        n_nodes=config.n_nodes,
        paga_threshold=config.paga_threshold,
        random_state=config.random_state,
        verbose=verbose,
    )
    assign_cells_to_nodes(adata, config.node_assignment, verbose=verbose)

    if roots is None:
        choose_root(adata, time_key, time_order=time_order, per_partition=config.per_partition_roots, verbose=verbose)

    result = assign_pseudotime(adata, roots, offset=config.offset, verbose=verbose)

    if config.save_figures:
        from ..viz.trajectory_viz import plot_pseudotime_by_group, plot_trajectory

        figdir = config.figure_dir
        figdir.mkdir(parents=True, exist_ok=True)
        plot_trajectory(adata, save_path=figdir / "trajectory.png")
        if time_key is not None:
            plot_pseudotime_by_group(adata, time_key, save_path=figdir / f"pseudotime_by_{time_key}.png")
        if verbose:
            print(f"[OK] Figures written to {figdir}/")

    return result
