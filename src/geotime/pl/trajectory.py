"""Plotting functions for inferred trajectories."""

from pathlib import Path

import matplotlib.pyplot as plt

from .._core.viz.trajectory_viz import plot_gene_trends as _plot_gene_trends
from .._core.viz.trajectory_viz import plot_pseudotime_by_group as _plot_pseudotime_by_group
from .._core.viz.trajectory_viz import plot_trajectory as _plot_trajectory
from .._core.viz.trajectory_viz import plot_trajectory_3d as _plot_trajectory_3d


def trajectory(
    adata,
    *,
    basis: str | None = None,
    color: str = "pseudotime",
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
    """
    Plot cells on an embedding with the trajectory graph on top.

    Parameters
    ----------
    adata : AnnData
        Annotated data matrix, usually after :func:`geotime.tl.pseudotime`.
    basis : str | None, default: None
        ``adata.obsm`` key. None uses the graph basis, else the first of
        UMAP, diffusion map, t-SNE, PCA that exists.
    color : str, default: 'pseudotime'
        ``adata.obs`` column. Numeric columns use ``cmap`` with infinite
        values drawn grey as unreachable; categorical columns get a legend.
    show_graph : bool, default: True
        Draw graph nodes and edges. Nodes sit at their graph positions, or
        at the mean of their cells when ``basis`` differs from the graph basis.
    show_roots : bool, default: True
        Mark root nodes with a star.
    components : tuple of int, default: (0, 1)
        Embedding columns on the x and y axes.
    cmap : str, default: 'viridis'
        Colormap for numeric columns.
    point_size : float, default: 12.0
        Marker size of cells.
    figsize : tuple, default: (7, 6)
        Figure size when ``ax`` is None.
    title : str | None, default: None
        Axes title.
    ax : matplotlib.axes.Axes, optional
        Draw into existing axes.
    save_path : str | Path | None, default: None
        Write the figure (300 dpi).

    Returns
    -------
    matplotlib.figure.Figure

    Examples
    --------
    >>> gt.pl.trajectory(adata, color="time_point")
    >>> gt.pl.trajectory(adata, basis="X_pca", save_path="figures/trajectory.png")
    """
    return _plot_trajectory(
        adata,
        basis=basis,
        color=color,
        show_graph=show_graph,
        show_roots=show_roots,
        components=components,
        cmap=cmap,
        point_size=point_size,
        figsize=figsize,
        title=title,
        ax=ax,
        save_path=save_path,
    )


def pseudotime_by_group(
    adata,
    groupby: str,
    *,
    pseudotime_key: str = "pseudotime",
    order: list | None = None,
    figsize: tuple[float, float] = (8, 4),
    save_path: str | Path | None = None,
):
    """
    Violin plot of pseudotime per group.

    Only cells with finite pseudotime are drawn; the title reports how many
    unreachable cells were left out.

    Returns
    -------
    matplotlib.figure.Figure
    """
    return _plot_pseudotime_by_group(
        adata, groupby, pseudotime_key=pseudotime_key, order=order, figsize=figsize, save_path=save_path
    )


def gene_trends(
    adata,
    genes,
    *,
    pseudotime_key: str = "pseudotime",
    n_bins: int = 20,
    layer: str | None = None,
    figsize: tuple[float, float] = (7, 4),
    save_path: str | Path | None = None,
):
    """
    Plot mean expression of genes in equal-width pseudotime bins.

    Parameters
    ----------
    adata : AnnData
        Annotated data matrix with pseudotime.
    genes : str or list of str
        Var names or gene symbols.
    pseudotime_key : str, default: 'pseudotime'
        Column in adata.obs.
    n_bins : int, default: 20
        Number of bins over the finite pseudotime range.
    layer : str | None, default: None
        Expression layer. None uses ``adata.X``.
    figsize : tuple, default: (7, 4)
        Figure size.
    save_path : str | Path | None, default: None
        Write the figure (300 dpi).

    Returns
    -------
    matplotlib.figure.Figure

    Raises
    ------
    ValueError
        If a gene is found neither in var_names nor in the symbol column.
    """
    return _plot_gene_trends(
        adata, genes, pseudotime_key=pseudotime_key, n_bins=n_bins, layer=layer, figsize=figsize, save_path=save_path
    )


def trajectory_3d(
    adata,
    *,
    basis: str = "X_pca",
    color: str = "pseudotime",
    cell_size: float = 3.0,
    title: str = "Trajectory",
    save_path: str | Path | None = None,
):
    """
    Interactive 3D view of cells, graph edges and roots.

    Returns
    -------
    plotly.graph_objects.Figure
        Written as HTML when ``save_path`` is given.
    """
    return _plot_trajectory_3d(
        adata, basis=basis, color=color, cell_size=cell_size, title=title, save_path=save_path
    )


def velocity_stream(
    adata,
    *,
    basis: str = "umap",
    color: str | None = None,
    save_path: str | Path | None = None,
    **kwargs,
):
    """
    Velocity stream plot via scVelo.

    Parameters
    ----------
    adata : AnnData
        Annotated data matrix after :func:`geotime.tl.velocity`.
    basis : str, default: 'umap'
        Embedding name without the ``X_`` prefix.
    color : str | None, default: None
        Passed to scVelo.
    save_path : str | Path | None, default: None
        Write the figure (300 dpi).
    **kwargs
        Additional arguments passed to ``scv.pl.velocity_embedding_stream``.

    Returns
    -------
    matplotlib.axes.Axes

    Raises
    ------
    ImportError
        If scVelo is not installed.
    ValueError
        If velocities have not been computed.
    """
    try:
        import scvelo as scv
    except ImportError:
        raise ImportError("scVelo not installed. Install with: pip install scvelo") from None

    if "velocity_graph" not in adata.uns:
        raise ValueError("'velocity_graph' not found in adata.uns. Run gt.tl.velocity() first.")

    ax = scv.pl.velocity_embedding_stream(adata, basis=basis, color=color, show=False, **kwargs)
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        plt.gcf().savefig(save_path, dpi=300, bbox_inches="tight", facecolor="white")
    return ax
