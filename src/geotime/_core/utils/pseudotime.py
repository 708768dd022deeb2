"""
Geodesic pseudotime on trajectory graphs.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 compute_pseudotime(graph, assignment, roots, *, coords=None, offset="none") -> PseudotimeResult
    Purpose: Shortest-path distance from the nearest root for every cell
    Inputs: TrajectoryGraph, per-cell node (name or index), root nodes, optional cell coordinates
    Outputs: PseudotimeResult with +inf for cells whose partition holds no root

 select_root(assignment, time_labels, *, graph=None, time_order=None, per_partition=False) -> RootSelection
    Purpose: Pick the node(s) richest in cells carrying the earliest time label
    Outputs: RootSelection (roots, earliest label, per-node fractions)

 project_to_edges(graph, coords, node_idx) -> (neighbor_idx, t)
    Purpose: Position of each cell along the best adjacent edge of its node

ERROR HANDLING:
 Empty root set -> MissingRootError
 Unknown root or node -> ValueError listing available nodes
 Partitions without a root -> UserWarning + PseudotimeResult.unreachable_partitions
"""

import warnings

import numpy as np
import pandas as pd
from scipy.sparse.csgraph import dijkstra

from ..types import PseudotimeResult, RootSelection, TrajectoryGraph

OFFSET_MODES = ("none", "projection")


class MissingRootError(ValueError):
    """Raised when pseudotime is requested without any root node."""


def _resolve_assignment(graph: TrajectoryGraph, assignment) -> np.ndarray:
    """Map per-cell node names or indices to node indices."""
    values = np.asarray(assignment)
    if values.ndim != 1:
        raise ValueError(f"assignment must be one-dimensional, got shape {values.shape}")

    if np.issubdtype(values.dtype, np.integer):
        if len(values) and (values.min() < 0 or values.max() >= graph.n_nodes):
            raise ValueError(f"Node indices in assignment must lie in [0, {graph.n_nodes})")
        return values.astype(np.int64)

    lookup = {name: i for i, name in enumerate(graph.nodes)}
    names = pd.Series(values).astype(str)
    idx = names.map(lookup)
    if idx.isna().any():
        unknown = sorted(names[idx.isna()].unique().tolist())
        raise ValueError(f"Cells assigned to nodes not in the graph: {unknown[:5]}. Available nodes: {graph.nodes}")
    return idx.to_numpy(dtype=np.int64)


def _resolve_roots(graph: TrajectoryGraph, roots) -> list[int]:
    if roots is None:
        raise MissingRootError("No root nodes given. Pass roots or run select_root() first.")
    if isinstance(roots, (str, int, np.integer)):
        roots = [roots]
    root_idx = []
    for r in roots:
        i = graph.node_index(r)
        if i not in root_idx:
            root_idx.append(i)
    if not root_idx:
        raise MissingRootError("Root set is empty; pseudotime needs at least one root node.")
    return root_idx


def project_to_edges(graph: TrajectoryGraph, coords: np.ndarray, node_idx: np.ndarray):
    """Project each cell onto the closest edge incident to its node.

    Parameters
    ----------
    graph : TrajectoryGraph
        Graph with node ``positions`` in the same space as ``coords``.
    coords : np.ndarray
        Cell coordinates, shape (n_cells, n_dims).
    node_idx : np.ndarray
        Node index per cell.

    Returns
    -------
    neighbor : np.ndarray
        Index of the other endpoint of the chosen edge, or -1 for isolated nodes.
    t : np.ndarray
        Position along the edge in [0, 1], 0 at the cell's own node.
    """
    if graph.positions is None:
        raise ValueError("Graph has no node positions; projection offsets need them")
    coords = np.asarray(coords, dtype=np.float64)
    if coords.shape[1] != graph.positions.shape[1]:
        raise ValueError(
            f"Cell coordinates have {coords.shape[1]} dims but node positions have {graph.positions.shape[1]}"
        )

    n_cells = len(node_idx)
    neighbor = np.full(n_cells, -1, dtype=np.int64)
    t = np.zeros(n_cells, dtype=np.float64)
    adj = graph.adjacency()

    for v in np.unique(node_idx):
        cells = np.flatnonzero(node_idx == v)
        nbrs = adj.indices[adj.indptr[v] : adj.indptr[v + 1]]
        if len(nbrs) == 0:
            continue

        origin = graph.positions[v]
        rel = coords[cells] - origin  # (c, d)
        best_dist = np.full(len(cells), np.inf)
        for u in np.sort(nbrs):
            edge = graph.positions[u] - origin
            length2 = float(edge @ edge)
            if length2 == 0:
                tu = np.zeros(len(cells))
            else:
                tu = np.clip(rel @ edge / length2, 0.0, 1.0)
            perp = np.linalg.norm(rel - np.outer(tu, edge), axis=1)
            better = perp < best_dist
            best_dist[better] = perp[better]
            neighbor[cells[better]] = u
            t[cells[better]] = tu[better]

    return neighbor, t


def compute_pseudotime(
    graph: TrajectoryGraph,
    assignment,
    roots,
    *,
    coords: np.ndarray | None = None,
    offset: str = "none",
    warn_unreachable: bool = True,
) -> PseudotimeResult:
    """Assign geodesic pseudotime to every cell.

    The pseudotime of a cell is the shortest-path distance in ``graph`` from
    its node to the closest root, plus an optional intra-node offset.

    Parameters
    ----------
    graph : TrajectoryGraph
        Weighted undirected graph with non-negative weights.
    assignment : array-like
        Node name or node index for each cell.
    roots : str, int or sequence
        Root node names or indices. Must not be empty.
    coords : np.ndarray, optional
        Cell coordinates in the space of ``graph.positions``.
        Required for ``offset="projection"``.
    offset : {'none', 'projection'}, default: 'none'
        - ``'none'`` : every cell gets its node's distance.
        - ``'projection'`` : cells are projected onto the nearest incident
          edge (v, u) and interpolated as ``d(v) + t * (d(u) - d(v))``.
    warn_unreachable : bool, default: True
        Emit a UserWarning when some partitions contain no root.

    Returns
    -------
    PseudotimeResult
        ``values`` is ``np.inf`` for cells whose node cannot reach a root.

    Raises
    ------
    MissingRootError
        If ``roots`` is empty.
    ValueError
        For unknown nodes, bad offset mode, or missing coordinates.
    """
    if offset not in OFFSET_MODES:
        raise ValueError(f"offset must be one of {OFFSET_MODES}, got '{offset}'")

    root_idx = _resolve_roots(graph, roots)
    node_idx = _resolve_assignment(graph, assignment)

    node_dist = dijkstra(graph.adjacency(), directed=False, indices=root_idx, min_only=True)
    node_dist = np.asarray(node_dist, dtype=np.float64)

    values = node_dist[node_idx].copy()

    if offset == "projection":
        if coords is None:
            raise ValueError("offset='projection' requires cell coordinates")
        coords = np.asarray(coords, dtype=np.float64)
        if len(coords) != len(node_idx):
            raise ValueError(f"Got {len(coords)} coordinate rows for {len(node_idx)} cells")
        neighbor, t = project_to_edges(graph, coords, node_idx)
        on_edge = (neighbor >= 0) & np.isfinite(values)
        d_u = node_dist[neighbor[on_edge]]
        d_v = values[on_edge]
        values[on_edge] = d_v + t[on_edge] * (d_u - d_v)

    reachable = np.isfinite(values)

    partitions = graph.partitions()
    rooted = set(partitions[root_idx].tolist())
    populated = sorted(set(partitions[node_idx].tolist()))
    unreachable_partitions = [int(p) for p in populated if p not in rooted]

    if unreachable_partitions and warn_unreachable:
        warnings.warn(
            f"{int((~reachable).sum())} cell(s) in partition(s) {unreachable_partitions} cannot reach any root; "
            "their pseudotime is set to inf. Add a root per partition to order them.",
            UserWarning,
            stacklevel=2,
        )

    return PseudotimeResult(
        values=values,
        reachable=reachable,
        roots=[graph.nodes[i] for i in root_idx],
        node_distances=node_dist,
        unreachable_partitions=unreachable_partitions,
        offset=offset,
    )


def _earliest_label(labels: pd.Series, time_order=None):
    present = labels.dropna()
    if present.empty:
        raise ValueError("No cell carries a time label")

    if time_order is not None:
        observed = set(present.tolist())
        for label in time_order:
            if label in observed:
                return label
        raise ValueError(f"None of the labels in time_order {list(time_order)} occur in the data")

    if isinstance(present.dtype, pd.CategoricalDtype) and present.cat.ordered:
        used = present.cat.remove_unused_categories()
        return used.cat.categories[0]

    return sorted(present.unique().tolist())[0]


def select_root(
    assignment,
    time_labels,
    *,
    graph: TrajectoryGraph | None = None,
    time_order=None,
    per_partition: bool = False,
    time_key: str | None = None,
) -> RootSelection:
    """Choose root node(s) from known time labels.

    Cells are grouped by node; for each node the fraction of its cells whose
    label equals the earliest label is computed and the node with the highest
    fraction wins. Ties go to the first node in iteration order (graph node
    order when a graph is given, otherwise order of first appearance).

    Parameters
    ----------
    assignment : array-like
        Node name (or index, when ``graph`` is given) per cell.
    time_labels : array-like
        Known time label per cell (e.g. collection day). NaN is ignored.
    graph : TrajectoryGraph, optional
        Fixes node order and enables ``per_partition``.
    time_order : sequence, optional
        Explicit label order; the first label present is the earliest.
    per_partition : bool, default: False
        Select one root in every partition that holds earliest-labelled cells.
    time_key : str, optional
        Recorded in the result for provenance.

    Returns
    -------
    RootSelection
    """
    labels = time_labels if isinstance(time_labels, pd.Series) else pd.Series(time_labels)
    labels = labels.reset_index(drop=True)

    if graph is not None:
        node_idx = _resolve_assignment(graph, assignment)
        nodes = pd.Series([graph.nodes[i] for i in node_idx])
        order = list(graph.nodes)
    else:
        nodes = pd.Series(np.asarray(assignment)).astype(str)
        order = list(pd.unique(nodes))

    if len(nodes) != len(labels):
        raise ValueError(f"Got {len(labels)} time labels for {len(nodes)} cells")

    earliest = _earliest_label(labels, time_order=time_order)
    valid = labels.notna().to_numpy()
    is_early = (labels == earliest).to_numpy() & valid

    fractions: dict[str, float] = {}
    for node in order:
        in_node = (nodes == node).to_numpy() & valid
        n = int(in_node.sum())
        if n == 0:
            continue
        fractions[node] = float(is_early[in_node].sum()) / n

    def _best(candidates):
        best_node, best_frac = None, -1.0
        for node in candidates:
            frac = fractions.get(node)
            if frac is not None and frac > best_frac:
                best_node, best_frac = node, frac
        return best_node, best_frac

    if per_partition:
        if graph is None:
            raise ValueError("per_partition=True requires the trajectory graph")
        partitions = graph.partitions()
        roots = []
        for p in sorted(set(partitions.tolist())):
            members = [graph.nodes[i] for i in np.flatnonzero(partitions == p)]
            node, frac = _best(members)
            if node is not None and frac > 0:
                roots.append(node)
    else:
        node, _ = _best(order)
        roots = [node] if node is not None else []

    if not roots:
        raise MissingRootError(f"No node holds cells labelled '{earliest}'")

    return RootSelection(
        roots=roots,
        earliest_label=str(earliest),
        fractions=fractions,
        time_key=time_key,
    )
