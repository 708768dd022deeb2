"""
Trajectory visualization.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 plot_trajectory(adata, *, basis=None, color="pseudotime", show_graph=True, ...) -> plt.Figure
    Purpose: 2D embedding scatter, unreachable cells in grey, graph overlay, root markers

 plot_pseudotime_by_group(adata, groupby, *, pseudotime_key="pseudotime", ...) -> plt.Figure
    Purpose: Violin plot of finite pseudotime per group

 plot_gene_trends(adata, genes, *, pseudotime_key="pseudotime", n_bins=20, ...) -> plt.Figure
    Purpose: Binned mean expression along pseudotime, one line per gene

 plot_trajectory_3d(adata, *, basis="X_pca", color="pseudotime", ...) -> go.Figure
    Purpose: Interactive plotly view of cells, graph edges and roots in three dimensions

NODE POSITIONS:
 When the plotting basis differs from the graph basis, nodes are drawn at the
 mean position of their assigned cells in the plotting basis.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from ..types import AnnDataKeys, TrajectoryGraph
from ..utils.gene_trends import binned_expression
from ..utils.trajectory import resolve_basis

UNREACHABLE_COLOR = "#c8c8c8"


def _save(fig, save_path):
    if save_path is None:
        return
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=300, bbox_inches="tight", facecolor="white")


def _graph_or_none(adata):
    if AnnDataKeys.TRAJECTORY_GRAPH not in adata.uns:
        return None
    return TrajectoryGraph.from_uns(adata.uns[AnnDataKeys.TRAJECTORY_GRAPH])


def _node_positions(adata, graph: TrajectoryGraph, basis: str) -> np.ndarray | None:
    """Node coordinates in ``basis`` (NaN rows for nodes without cells)."""
    if graph.basis == basis and graph.positions is not None:
        return graph.positions
    if AnnDataKeys.TRAJECTORY_NODE not in adata.obs.columns:
        return None
    coords = np.asarray(adata.obsm[basis], dtype=np.float64)
    nodes = adata.obs[AnnDataKeys.TRAJECTORY_NODE].astype(str).to_numpy()
    positions = np.full((graph.n_nodes, coords.shape[1]), np.nan)
    for i, name in enumerate(graph.nodes):
        mask = nodes == name
        if mask.any():
            positions[i] = coords[mask].mean(axis=0)
    return positions


def _roots(adata) -> list[str]:
    info = adata.uns.get(AnnDataKeys.PSEUDOTIME_INFO)
    if info is None:
        return []
    return [str(r) for r in info["roots"]]


def plot_trajectory(
    adata,
    *,
    basis: str | None = None,
    color: str = AnnDataKeys.PSEUDOTIME,
    show_graph: bool = True,
    show_roots: bool = True,
    components: tuple[int, int] = (0, 1),
    cmap: str = "viridis",
    point_size: float = 12.0,
    figsize: tuple[float, float] = (7, 6),
    title: str | None = None,
    ax=None,
    save_path: str | Path | None = None,
):
    graph = _graph_or_none(adata)
    if basis is None and graph is not None and graph.basis in adata.obsm:
        basis = graph.basis
    basis = resolve_basis(adata, basis)
    coords = np.asarray(adata.obsm[basis])[:, list(components)]

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    if color in adata.obs.columns:
        values = adata.obs[color]
        if isinstance(values.dtype, pd.CategoricalDtype) or values.dtype == object or values.dtype == bool:
            cats = values.astype("category")
            palette = sns.color_palette("tab20", n_colors=len(cats.cat.categories))
            for cat, col in zip(cats.cat.categories, palette):
                mask = (cats == cat).to_numpy()
                ax.scatter(coords[mask, 0], coords[mask, 1], s=point_size, color=col, label=str(cat), linewidths=0)
            ax.legend(title=color, bbox_to_anchor=(1.02, 1), loc="upper left", frameon=False, markerscale=2)
        else:
            numeric = values.to_numpy(dtype=np.float64)
            finite = np.isfinite(numeric)
            if (~finite).any():
                ax.scatter(
                    coords[~finite, 0],
                    coords[~finite, 1],
                    s=point_size,
                    color=UNREACHABLE_COLOR,
                    label=f"unreachable ({int((~finite).sum())})",
                    linewidths=0,
                )
                ax.legend(loc="best", frameon=False)
            sc_ = ax.scatter(
                coords[finite, 0], coords[finite, 1], c=numeric[finite], s=point_size, cmap=cmap, linewidths=0
            )
            fig.colorbar(sc_, ax=ax, label=color, shrink=0.8)
    elif color is None:
        ax.scatter(coords[:, 0], coords[:, 1], s=point_size, color="#4c72b0", linewidths=0)
    else:
        raise ValueError(f"'{color}' not found in adata.obs. Available columns: {list(adata.obs.columns)}")

    if show_graph and graph is not None:
        positions = _node_positions(adata, graph, basis)
        if positions is not None:
            positions = positions[:, list(components)]
            for a, b in graph.edges:
                if np.isfinite(positions[[a, b]]).all():
                    ax.plot(positions[[a, b], 0], positions[[a, b], 1], color="black", linewidth=1.5, zorder=3)
            ax.scatter(positions[:, 0], positions[:, 1], s=30, color="black", zorder=4)
            if show_roots:
                for root in _roots(adata):
                    if root in graph.nodes:
                        i = graph.nodes.index(root)
                        ax.scatter(*positions[i], s=160, marker="*", color="red", edgecolor="black", zorder=5)
                        ax.annotate(root, positions[i], xytext=(5, 5), textcoords="offset points", fontsize=9)

    label = basis.replace("X_", "").upper()
    ax.set_xlabel(f"{label} {components[0] + 1}")
    ax.set_ylabel(f"{label} {components[1] + 1}")
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_title(title or f"Trajectory ({color})")

    _save(fig, save_path)
    return fig


def plot_pseudotime_by_group(
    adata,
    groupby: str,
    *,
    pseudotime_key: str = AnnDataKeys.PSEUDOTIME,
    order: list | None = None,
    figsize: tuple[float, float] = (8, 4),
    rotation: float = 45,
    save_path: str | Path | None = None,
):
    for key in (groupby, pseudotime_key):
        if key not in adata.obs.columns:
            raise ValueError(f"'{key}' not found in adata.obs. Available columns: {list(adata.obs.columns)}")

    df = adata.obs[[groupby, pseudotime_key]].copy()
    n_unreachable = int((~np.isfinite(df[pseudotime_key].to_numpy(dtype=np.float64))).sum())
    df = df[np.isfinite(df[pseudotime_key].to_numpy(dtype=np.float64))]
    if df.empty:
        raise ValueError("No cell has a finite pseudotime")
    df[groupby] = df[groupby].astype(str)

    if order is None:
        source = adata.obs[groupby]
        if isinstance(source.dtype, pd.CategoricalDtype):
            order = [str(c) for c in source.cat.categories if str(c) in set(df[groupby])]
        else:
            order = sorted(df[groupby].unique())

    fig, ax = plt.subplots(figsize=figsize)
    sns.violinplot(data=df, x=groupby, y=pseudotime_key, order=order, ax=ax, cut=0, inner="quart")
    ax.tick_params(axis="x", labelrotation=rotation)
    title = f"Pseudotime by {groupby}"
    if n_unreachable:
        title += f" ({n_unreachable} unreachable cells not shown)"
    ax.set_title(title)
    fig.tight_layout()

    _save(fig, save_path)
    return fig


def plot_gene_trends(
    adata,
    genes,
    *,
    pseudotime_key: str = AnnDataKeys.PSEUDOTIME,
    n_bins: int = 20,
    layer: str | None = None,
    figsize: tuple[float, float] = (7, 4),
    save_path: str | Path | None = None,
):
    trends = binned_expression(adata, genes, pseudotime_key=pseudotime_key, n_bins=n_bins, layer=layer)

    fig, ax = plt.subplots(figsize=figsize)
    sns.lineplot(data=trends, x="pseudotime", y="mean_expression", hue="gene", marker="o", ax=ax)
    ax.set_xlabel("Pseudotime")
    ax.set_ylabel("Mean expression")
    ax.legend(title="Gene", bbox_to_anchor=(1.02, 1), loc="upper left", frameon=False)
    fig.tight_layout()

    _save(fig, save_path)
    return fig


def plot_trajectory_3d(
    adata,
    *,
    basis: str = "X_pca",
    color: str = AnnDataKeys.PSEUDOTIME,
    cell_size: float = 3.0,
    color_scale: str = "viridis",
    title: str = "Trajectory",
    save_path: str | Path | None = None,
):
    import plotly.graph_objects as go

    basis = resolve_basis(adata, basis)
    coords = np.asarray(adata.obsm[basis], dtype=np.float64)
    if coords.shape[1] < 3:
        raise ValueError(f"'{basis}' has {coords.shape[1]} dimensions; 3D plotting needs at least 3")
    coords = coords[:, :3]

    fig = go.Figure()
    if color in adata.obs.columns and not isinstance(adata.obs[color].dtype, pd.CategoricalDtype):
        values = adata.obs[color].to_numpy(dtype=np.float64)
        finite = np.isfinite(values)
        fig.add_trace(
            go.Scatter3d(
                x=coords[finite, 0],
                y=coords[finite, 1],
                z=coords[finite, 2],
                mode="markers",
                marker={"size": cell_size, "color": values[finite], "colorscale": color_scale, "colorbar": {"title": color}},
                name="cells",
            )
        )
        if (~finite).any():
            fig.add_trace(
                go.Scatter3d(
                    x=coords[~finite, 0],
                    y=coords[~finite, 1],
                    z=coords[~finite, 2],
                    mode="markers",
                    marker={"size": cell_size, "color": UNREACHABLE_COLOR},
                    name="unreachable",
                )
            )
    elif color in adata.obs.columns:
        cats = adata.obs[color]
        for cat in cats.cat.categories:
            mask = (cats == cat).to_numpy()
            fig.add_trace(
                go.Scatter3d(
                    x=coords[mask, 0], y=coords[mask, 1], z=coords[mask, 2],
                    mode="markers", marker={"size": cell_size}, name=str(cat),
                )
            )
    else:
        raise ValueError(f"'{color}' not found in adata.obs. Available columns: {list(adata.obs.columns)}")

    graph = _graph_or_none(adata)
    if graph is not None:
        positions = _node_positions(adata, graph, basis)
        if positions is not None:
            positions = positions[:, :3]
            xs, ys, zs = [], [], []
            for a, b in graph.edges:
                xs += [positions[a, 0], positions[b, 0], None]
                ys += [positions[a, 1], positions[b, 1], None]
                zs += [positions[a, 2], positions[b, 2], None]
            fig.add_trace(go.Scatter3d(x=xs, y=ys, z=zs, mode="lines", line={"color": "black", "width": 4}, name="graph"))
            roots = [graph.nodes.index(r) for r in _roots(adata) if r in graph.nodes]
            if roots:
                fig.add_trace(
                    go.Scatter3d(
                        x=positions[roots, 0], y=positions[roots, 1], z=positions[roots, 2],
                        mode="markers+text", text=[graph.nodes[i] for i in roots],
                        marker={"size": 8, "color": "red", "symbol": "diamond"}, name="roots",
                    )
                )

    label = basis.replace("X_", "").upper()
    fig.update_layout(
        title=title,
        scene={"xaxis_title": f"{label}1", "yaxis_title": f"{label}2", "zaxis_title": f"{label}3"},
        legend={"itemsizing": "constant"},
    )

    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(save_path))
    return fig
