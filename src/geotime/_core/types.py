# src/geotime/_core/types.py
"""
Canonical type definitions for geotime records and return structures.

Developer Notes:
    1. Check this file before accessing keys stored in AnnData
    2. Records holding numpy arrays derive from NumpyArrayModel
    3. Invalid inputs raise pydantic.ValidationError (a ValueError subclass)

Usage:
    from geotime._core.types import TrajectoryGraph, PseudotimeResult

    graph = TrajectoryGraph.from_uns(adata.uns["trajectory_graph"])
    adjacency = graph.adjacency()
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
import scipy.sparse as sp
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# NUMPY ARRAY HANDLING FOR PYDANTIC
# =============================================================================


class NumpyArrayModel(BaseModel):
    """Base model that allows numpy arrays."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


# =============================================================================
# INGESTION RECORD
# =============================================================================


class ExpressionDataset(NumpyArrayModel):
    """Expression matrix with aligned cell and gene metadata.

    The alignment between the matrix and both metadata tables is checked once
    here, at ingestion. Downstream tools rely on it without re-checking.

    Attributes
    ----------
        matrix: cells x genes matrix (dense ndarray or scipy sparse)
        cell_metadata: one row per cell, index = cell ids
        gene_metadata: one row per gene, index = gene ids
        symbol_column: gene_metadata column holding human-readable symbols

    Example:
        >>> record = ExpressionDataset(matrix=X, cell_metadata=obs, gene_metadata=var)
        >>> adata = record.to_anndata()
    """

    matrix: Any
    cell_metadata: pd.DataFrame
    gene_metadata: pd.DataFrame
    symbol_column: str = "gene_short_name"

    @field_validator("matrix")
    @classmethod
    def _two_dimensional(cls, v):
        if not (isinstance(v, np.ndarray) or sp.issparse(v)):
            v = np.asarray(v)
        if v.ndim != 2:
            raise ValueError(f"Expression matrix must be 2-dimensional, got shape {v.shape}")
        if not np.issubdtype(v.dtype, np.number):
            raise ValueError(f"Expression matrix must be numeric, got dtype {v.dtype}")
        return v

    @model_validator(mode="after")
    def _check_alignment(self) -> ExpressionDataset:
        n_cells, n_genes = self.matrix.shape
        if len(self.cell_metadata) != n_cells:
            raise ValueError(
                f"Cell metadata has {len(self.cell_metadata)} rows but the matrix has {n_cells} cells"
            )
        if len(self.gene_metadata) != n_genes:
            raise ValueError(
                f"Gene metadata has {len(self.gene_metadata)} rows but the matrix has {n_genes} genes"
            )
        if not self.cell_metadata.index.is_unique:
            dupes = self.cell_metadata.index[self.cell_metadata.index.duplicated()].unique().tolist()
            raise ValueError(f"Cell ids must be unique. Duplicated: {dupes[:5]}")
        if not self.gene_metadata.index.is_unique:
            dupes = self.gene_metadata.index[self.gene_metadata.index.duplicated()].unique().tolist()
            raise ValueError(f"Gene ids must be unique. Duplicated: {dupes[:5]}")
        if self.symbol_column not in self.gene_metadata.columns:
            raise ValueError(
                f"Gene metadata must carry a '{self.symbol_column}' symbol column. "
                f"Available columns: {list(self.gene_metadata.columns)}"
            )
        if self.gene_metadata[self.symbol_column].isna().any():
            n_missing = int(self.gene_metadata[self.symbol_column].isna().sum())
            raise ValueError(f"{n_missing} gene(s) have no value in '{self.symbol_column}'")
        return self

    def to_anndata(self):
        """Build the AnnData object (cells x genes)."""
        from anndata import AnnData

        obs = self.cell_metadata.copy()
        var = self.gene_metadata.copy()
        obs.index = obs.index.astype(str)
        var.index = var.index.astype(str)
        return AnnData(X=self.matrix, obs=obs, var=var)


# =============================================================================
# TRAJECTORY GRAPH
# =============================================================================


class TrajectoryGraph(NumpyArrayModel):
    """Undirected weighted graph over representative points.

    Nodes are cluster centroids or principal points. Edge weights are
    non-negative distances. Disconnected components (partitions) are allowed.

    Attributes
    ----------
        nodes: node names, in index order
        edges: int array (n_edges, 2) of node indices
        weights: float array (n_edges,)
        positions: float array (n_nodes, n_dims) in the embedding used to build the graph
        basis: obsm key of that embedding
        method: construction method ('mst', 'paga', 'principal_points')
        groupby: obs column whose categories are the nodes, if any
    """

    nodes: list[str]
    edges: np.ndarray
    weights: np.ndarray
    positions: np.ndarray | None = None
    basis: str | None = None
    method: str = "mst"
    groupby: str | None = None

    @field_validator("nodes")
    @classmethod
    def _unique_nodes(cls, v):
        v = [str(n) for n in v]
        if len(set(v)) != len(v):
            raise ValueError("Node names must be unique")
        return v

    @field_validator("edges", mode="before")
    @classmethod
    def _edge_array(cls, v):
        v = np.asarray(v, dtype=np.int64)
        if v.size == 0:
            return v.reshape(0, 2)
        if v.ndim != 2 or v.shape[1] != 2:
            raise ValueError(f"edges must have shape (n_edges, 2), got {v.shape}")
        return v

    @field_validator("weights", mode="before")
    @classmethod
    def _weight_array(cls, v):
        v = np.asarray(v, dtype=np.float64).ravel()
        if not np.all(np.isfinite(v)):
            raise ValueError("Edge weights must be finite")
        if np.any(v < 0):
            raise ValueError("Edge weights must be non-negative")
        return v

    @field_validator("positions", mode="before")
    @classmethod
    def _position_array(cls, v):
        if v is None:
            return None
        v = np.asarray(v, dtype=np.float64)
        if v.ndim != 2:
            raise ValueError(f"positions must have shape (n_nodes, n_dims), got {v.shape}")
        return v

    @model_validator(mode="after")
    def _check_edges(self) -> TrajectoryGraph:
        if len(self.edges) != len(self.weights):
            raise ValueError(f"Got {len(self.edges)} edges but {len(self.weights)} weights")
        if len(self.edges) and (self.edges.min() < 0 or self.edges.max() >= len(self.nodes)):
            raise ValueError(f"Edge endpoints must index into the {len(self.nodes)} nodes")
        if self.positions is not None and self.positions.shape[0] != len(self.nodes):
            raise ValueError(
                f"positions must have shape (n_nodes, n_dims) with n_nodes={len(self.nodes)}, "
                f"got {self.positions.shape}"
            )
        return self

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_edges(self) -> int:
        return len(self.edges)

    def node_index(self, node) -> int:
        """Resolve a node name or integer index to an index."""
        if isinstance(node, (int, np.integer)) and not isinstance(node, bool):
            if not 0 <= node < self.n_nodes:
                raise ValueError(f"Node index {node} out of range for {self.n_nodes} nodes")
            return int(node)
        name = str(node)
        try:
            return self.nodes.index(name)
        except ValueError:
            raise ValueError(f"Node '{name}' not in trajectory graph. Available nodes: {self.nodes}") from None

    def adjacency(self) -> sp.csr_matrix:
        """Symmetric sparse adjacency with explicit zero-weight edges kept.

        Parallel edges collapse to their minimum weight. Self loops are dropped.
        """
        best: dict[tuple[int, int], float] = {}
        for (a, b), w in zip(self.edges.tolist(), self.weights.tolist()):
            if a == b:
                continue
            key = (a, b) if a < b else (b, a)
            if key not in best or w < best[key]:
                best[key] = w

        rows, cols, data = [], [], []
        for (a, b), w in best.items():
            rows += [a, b]
            cols += [b, a]
            data += [w, w]
        return sp.csr_matrix(
            (np.asarray(data, dtype=np.float64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(self.n_nodes, self.n_nodes),
        )

    def partitions(self) -> np.ndarray:
        """Connected component id per node."""
        from scipy.sparse.csgraph import connected_components

        _, labels = connected_components(self.adjacency(), directed=False)
        return labels.astype(np.int64)

    def neighbors(self, node) -> list[int]:
        idx = self.node_index(node)
        adj = self.adjacency()
        return adj.indices[adj.indptr[idx] : adj.indptr[idx + 1]].tolist()

    def to_uns(self) -> dict[str, Any]:
        """Dict of arrays suitable for ``adata.uns`` and h5ad serialization."""
        out = {
            "nodes": np.asarray(self.nodes, dtype=object),
            "edges": self.edges,
            "weights": self.weights,
            "partitions": self.partitions(),
            "method": self.method,
        }
        if self.positions is not None:
            out["positions"] = self.positions
        if self.basis is not None:
            out["basis"] = self.basis
        if self.groupby is not None:
            out["groupby"] = self.groupby
        return out

    @classmethod
    def from_uns(cls, data: dict[str, Any]) -> TrajectoryGraph:
        return cls(
            nodes=[str(n) for n in data["nodes"]],
            edges=data["edges"],
            weights=data["weights"],
            positions=data.get("positions"),
            basis=data.get("basis"),
            method=str(data.get("method", "mst")),
            groupby=data.get("groupby"),
        )


# =============================================================================
# ROOT SELECTION AND PSEUDOTIME
# =============================================================================


class RootSelection(BaseModel):
    """Return type for select_root().

    Attributes
    ----------
        roots: selected root node names (one, or one per partition)
        earliest_label: time label treated as the start of the process
        fractions: node -> fraction of its cells carrying earliest_label
        time_key: obs column the labels came from, if any
    """

    roots: list[str]
    earliest_label: str
    fractions: dict[str, float]
    time_key: str | None = None

    def to_uns(self) -> dict[str, Any]:
        return {
            "roots": np.asarray(self.roots, dtype=object),
            "earliest_label": self.earliest_label,
            "fractions": pd.Series(self.fractions, dtype=float).to_dict(),
            "time_key": self.time_key or "",
        }


class PseudotimeResult(NumpyArrayModel):
    """Return type for compute_pseudotime().

    ``values`` holds one entry per cell in input order. Cells whose node has no
    path to any root carry ``np.inf`` and ``reachable`` False.

    Example:
        >>> result = gt.tl.pseudotime(adata, roots=["0"])
        >>> if result.unreachable_partitions:
        ...     print(f"{result.n_unreachable} cells have no pseudotime")
    """

    values: np.ndarray
    reachable: np.ndarray
    roots: list[str]
    node_distances: np.ndarray = Field(description="Geodesic distance of each graph node to the nearest root")
    unreachable_partitions: list[int] = Field(default_factory=list)
    offset: str = "none"

    @field_validator("values", "node_distances", mode="before")
    @classmethod
    def _float_array(cls, v):
        return np.asarray(v, dtype=np.float64).ravel()

    @field_validator("reachable", mode="before")
    @classmethod
    def _bool_array(cls, v):
        return np.asarray(v, dtype=bool).ravel()

    @property
    def n_unreachable(self) -> int:
        return int((~self.reachable).sum())

    def as_series(self, index=None, name: str = "pseudotime") -> pd.Series:
        return pd.Series(self.values, index=index, name=name)


# =============================================================================
# ADATA MODIFICATIONS REFERENCE
# =============================================================================


class AnnDataKeys:
    """Reference for keys stored in AnnData by geotime functions.

    This is a documentation class, not a runtime type.

    Usage:
        >>> from geotime._core.types import AnnDataKeys
        >>> adata.obs[AnnDataKeys.PSEUDOTIME]
    """

    # pp.from_tables() / pp.load_data()
    GENE_SYMBOL = "gene_short_name"  # adata.var
    # pp.preprocess()
    COUNTS = "counts"  # adata.layers, raw counts before normalization
    X_PCA = "X_pca"  # adata.obsm

    # tl.cluster()
    CLUSTERS = "clusters"  # adata.obs, Categorical

    # tl.build_graph()
    TRAJECTORY_GRAPH = "trajectory_graph"  # adata.uns, TrajectoryGraph.to_uns()
    GRAPH_PARTITION = "trajectory_partition"  # adata.obs, partition of the cell's node

    # tl.assign_nodes()
    TRAJECTORY_NODE = "trajectory_node"  # adata.obs, Categorical of node names

    # tl.select_root()
    ROOT_SELECTION = "root_selection"  # adata.uns

    # tl.pseudotime()
    PSEUDOTIME = "pseudotime"  # adata.obs, float with +inf when unreachable
    PSEUDOTIME_REACHABLE = "pseudotime_reachable"  # adata.obs, bool
    PSEUDOTIME_INFO = "pseudotime_info"  # adata.uns

    # tl.velocity()
    VELOCITY_PSEUDOTIME = "velocity_pseudotime"  # adata.obs

    @classmethod
    def describe(cls) -> str:
        """Summary of AnnData storage locations."""
        return """
AnnData Storage Locations:
==========================

adata.uns (unstructured):
  - 'trajectory_graph': nodes, edges, weights, positions, partitions
  - 'root_selection': roots, earliest_label, per-node fractions
  - 'pseudotime_info': roots, offset mode, unreachable partitions

adata.obs (cell annotations):
  - 'clusters': Categorical cluster labels
  - 'trajectory_node': Categorical node assignment
  - 'trajectory_partition': partition id of the assigned node
  - 'pseudotime': float, +inf where no root is reachable
  - 'pseudotime_reachable': bool

adata.layers:
  - 'counts': raw counts kept by pp.preprocess()
"""


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


def validate_trajectory_graph(data: dict[str, Any] | TrajectoryGraph) -> TrajectoryGraph:
    """Accept a TrajectoryGraph or its ``adata.uns`` dict form."""
    if isinstance(data, TrajectoryGraph):
        return data
    return TrajectoryGraph.from_uns(data)
