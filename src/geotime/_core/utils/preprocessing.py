"""
Normalization and PCA delegated to scanpy.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 preprocess_counts(adata, *, target_sum=1e4, n_top_genes=2000, n_pcs=50, min_cells=3, random_state=0, verbose=True) -> AnnData
    Purpose: counts layer -> gene filter -> total-count normalization -> log1p -> HVG -> PCA
    Side Effects: adata.layers['counts'], adata.var['highly_variable'], adata.obsm['X_pca'], adata.uns['pca']
"""

import numpy as np
import scipy.sparse as sp


def _looks_logged(X) -> bool:
    """Raw counts are integers; normalized or log-transformed values are not."""
    values = X.data if sp.issparse(X) else np.asarray(X)
    return not np.allclose(values, np.round(values))


def preprocess_counts(
    adata,
    *,
    target_sum: float = 1e4,
    n_top_genes: int | None = 2000,
    n_pcs: int = 50,
    min_cells: int = 3,
    random_state: int = 0,
    verbose: bool = True,
):
    import scanpy as sc

    if verbose:
        print(f"[PREPROCESS] {adata.n_obs} cells x {adata.n_vars} genes")

    if "counts" not in adata.layers:
        adata.layers["counts"] = adata.X.copy()

    if min_cells:
        n_before = adata.n_vars
        sc.pp.filter_genes(adata, min_cells=min_cells)
        if verbose and adata.n_vars < n_before:
            print(f"   Removed {n_before - adata.n_vars} genes detected in < {min_cells} cells")

    if _looks_logged(adata.X):
        if verbose:
            print("   [WARNING] X holds non-integer values (already normalized); skipping normalization")
    else:
        sc.pp.normalize_total(adata, target_sum=target_sum)
        sc.pp.log1p(adata)

    if n_top_genes is not None and n_top_genes < adata.n_vars:
        sc.pp.highly_variable_genes(adata, n_top_genes=n_top_genes)
        if verbose:
            print(f"   Selected {int(adata.var['highly_variable'].sum())} highly variable genes")

    n_comps = min(n_pcs, adata.n_obs - 1, adata.n_vars - 1)
    sc.pp.pca(adata, n_comps=n_comps, random_state=random_state)

    if verbose:
        var_ratio = adata.uns["pca"]["variance_ratio"]
        print(f"[OK] PCA: {n_comps} components, {np.sum(var_ratio) * 100:.1f}% variance explained")

    return adata
