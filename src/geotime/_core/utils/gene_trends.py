"""
Genes associated with pseudotime.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 pseudotime_association(adata, *, pseudotime_key="pseudotime", layer=None, symbol_column="gene_short_name",
                             min_cells=10, fdr_threshold=0.05) -> pd.DataFrame
    Purpose: Spearman correlation of every gene with pseudotime over reachable cells
    Outputs: DataFrame sorted by p-value with gene, symbol, correlation, pvalue,
             fdr_pvalue, significant, direction, n_cells

 binned_expression(adata, genes, *, pseudotime_key="pseudotime", n_bins=20, layer=None) -> pd.DataFrame
    Purpose: Mean expression per pseudotime bin (long format) for trend plots

STATISTICS:
 Correlation: scipy.stats.spearmanr per gene (constant genes get NaN and are dropped)
 Multiple testing: Benjamini-Hochberg via scipy.stats.false_discovery_control
"""

import warnings

import numpy as np
import pandas as pd
import scipy.sparse as sp
from scipy.stats import false_discovery_control, spearmanr


def _expression(adata, layer=None):
    X = adata.layers[layer] if layer is not None else adata.X
    return X


def _column(X, j) -> np.ndarray:
    col = X[:, j]
    if sp.issparse(col):
        col = col.toarray()
    return np.asarray(col, dtype=np.float64).ravel()


def _reachable_pseudotime(adata, pseudotime_key):
    if pseudotime_key not in adata.obs.columns:
        raise ValueError(
            f"'{pseudotime_key}' not found in adata.obs. Run tl.pseudotime() first. "
            f"Available columns: {list(adata.obs.columns)}"
        )
    pt = adata.obs[pseudotime_key].to_numpy(dtype=np.float64)
    return pt, np.isfinite(pt)


def _symbols(adata, symbol_column):
    if symbol_column in adata.var.columns:
        return adata.var[symbol_column].astype(str).to_numpy()
    return adata.var_names.astype(str).to_numpy()


def pseudotime_association(
    adata,
    *,
    pseudotime_key: str = "pseudotime",
    layer: str | None = None,
    symbol_column: str = "gene_short_name",
    min_cells: int = 10,
    fdr_threshold: float = 0.05,
    verbose: bool = True,
) -> pd.DataFrame:
    """Rank genes by their monotone association with pseudotime.

    Parameters
    ----------
    adata : AnnData
        Must contain ``adata.obs[pseudotime_key]``. Cells with infinite
        pseudotime are excluded.
    pseudotime_key : str, default: 'pseudotime'
        Column in adata.obs with pseudotime values.
    layer : str, optional
        Expression layer. Uses adata.X if None.
    symbol_column : str, default: 'gene_short_name'
        var column with gene symbols.
    min_cells : int, default: 10
        Minimum number of expressing reachable cells for a gene to be tested.
    fdr_threshold : float, default: 0.05
        Threshold on the BH-adjusted p-value for ``significant``.

    Returns
    -------
    pd.DataFrame
        One row per tested gene.
    """
    pt, reachable = _reachable_pseudotime(adata, pseudotime_key)
    if reachable.sum() < 3:
        raise ValueError(f"Need at least 3 cells with finite pseudotime, got {int(reachable.sum())}")

    X = _expression(adata, layer)[reachable]
    if sp.issparse(X):
        X = X.tocsc()
    pt = pt[reachable]
    symbols = _symbols(adata, symbol_column)

    if verbose:
        print(f"[GENES] Testing {adata.n_vars} genes on {int(reachable.sum())} reachable cells")

    rows = []
    n_skipped = 0
    for j, gene in enumerate(adata.var_names):
        values = _column(X, j)
        n_expr = int((values > 0).sum())
        if n_expr < min_cells or np.all(values == values[0]):
            n_skipped += 1
            continue
        rho, pval = spearmanr(values, pt)
        if not np.isfinite(rho):
            n_skipped += 1
            continue
        rows.append(
            {
                "gene": gene,
                "symbol": symbols[j],
                "correlation": float(rho),
                "pvalue": float(pval),
                "n_cells": n_expr,
            }
        )

    columns = ["gene", "symbol", "correlation", "pvalue", "fdr_pvalue", "significant", "direction", "n_cells"]
    if not rows:
        warnings.warn("No gene passed the expression filters; returning an empty table", UserWarning, stacklevel=2)
        return pd.DataFrame(columns=columns)

    results = pd.DataFrame(rows)
    results["fdr_pvalue"] = false_discovery_control(results["pvalue"].to_numpy(), method="bh")
    results["significant"] = results["fdr_pvalue"] < fdr_threshold
    results["direction"] = np.where(results["correlation"] > 0, "increasing", "decreasing")
    results = results.sort_values(["pvalue", "gene"]).reset_index(drop=True)[columns]

    if verbose:
        if n_skipped:
            print(f"   Skipped {n_skipped} genes (low expression or constant)")
        print(f"[OK] {int(results['significant'].sum())} genes significant at FDR < {fdr_threshold}")

    return results


def binned_expression(
    adata,
    genes,
    *,
    pseudotime_key: str = "pseudotime",
    n_bins: int = 20,
    layer: str | None = None,
    symbol_column: str = "gene_short_name",
) -> pd.DataFrame:
    """Mean expression in equal-width pseudotime bins.

    ``genes`` may be var names or symbols.
    """
    if isinstance(genes, str):
        genes = [genes]
    pt, reachable = _reachable_pseudotime(adata, pseudotime_key)
    if not reachable.any():
        raise ValueError(f"No cell has a finite '{pseudotime_key}'; nothing to bin")
    symbols = _symbols(adata, symbol_column)
    var_names = adata.var_names.astype(str).tolist()

    X = _expression(adata, layer)
    edges = np.linspace(pt[reachable].min(), pt[reachable].max(), n_bins + 1)
    bins = np.clip(np.digitize(pt[reachable], edges[1:-1]), 0, n_bins - 1)
    centers = (edges[:-1] + edges[1:]) / 2

    frames = []
    for gene in genes:
        if gene in var_names:
            j = var_names.index(gene)
        else:
            matches = np.flatnonzero(symbols == gene)
            if len(matches) == 0:
                raise ValueError(f"Gene '{gene}' not found in var_names or '{symbol_column}'")
            j = int(matches[0])
        values = _column(X, j)[reachable]
        means = pd.Series(values).groupby(bins).mean()
        frames.append(
            pd.DataFrame(
                {
                    "gene": gene,
                    "bin": means.index.to_numpy(),
                    "pseudotime": centers[means.index.to_numpy()],
                    "mean_expression": means.to_numpy(),
                }
            )
        )
    return pd.concat(frames, ignore_index=True)
