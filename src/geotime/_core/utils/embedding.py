"""
Embedding and clustering delegated to scanpy and scikit-learn.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 compute_embedding(adata, method="umap", *, n_neighbors=15, n_pcs=None, random_state=0, verbose=True) -> str
    Purpose: Ensure PCA + neighbor graph, then run the requested embedding
    Outputs: obsm key of the embedding ('X_umap', 'X_pca', 'X_tsne', 'X_diffmap')

 cluster_cells(adata, method="leiden", *, resolution=1.0, n_clusters=None, use_rep="X_pca", ...) -> pd.Series
    Purpose: Categorical cluster labels in adata.obs[key_added]
    Side Effects: drops a stored trajectory graph built on key_added, with its roots and pseudotime
    Methods: 'leiden', 'louvain' (graph communities), 'kmeans', 'gmm' (BIC-selected mixture model)

NOTES:
 Clustering reproducibility is only as good as each library's seeding;
 random_state is always forwarded.
"""

import numpy as np
import pandas as pd

EMBEDDING_METHODS = ("umap", "pca", "tsne", "diffmap")
CLUSTER_METHODS = ("leiden", "louvain", "kmeans", "gmm")


def ensure_pca(adata, n_pcs=None, random_state=0, verbose=True):
    import scanpy as sc

    if "X_pca" in adata.obsm:
        return
    n_comps = min(n_pcs or 50, adata.n_obs - 1, adata.n_vars - 1)
    if verbose:
        print(f"   Computing PCA ({n_comps} components)")
    sc.pp.pca(adata, n_comps=n_comps, random_state=random_state)


def ensure_neighbors(adata, n_neighbors=15, n_pcs=None, random_state=0, verbose=True):
    import scanpy as sc

    if "neighbors" in adata.uns and adata.uns["neighbors"].get("params", {}).get("n_neighbors") == n_neighbors:
        return
    if verbose:
        print(f"   Computing neighbor graph (n_neighbors={n_neighbors})")
    n_pcs = min(n_pcs, adata.obsm["X_pca"].shape[1]) if n_pcs else None
    sc.pp.neighbors(adata, n_neighbors=n_neighbors, n_pcs=n_pcs, use_rep="X_pca", random_state=random_state)


def compute_embedding(
    adata,
    method: str = "umap",
    *,
    n_neighbors: int = 15,
    n_pcs: int | None = None,
    n_components: int = 2,
    random_state: int = 0,
    verbose: bool = True,
) -> str:
    """Compute a low-dimensional embedding and return its obsm key."""
    import scanpy as sc

    if method not in EMBEDDING_METHODS:
        raise ValueError(f"method must be one of {EMBEDDING_METHODS}, got '{method}'")

    if verbose:
        print(f"[EMBED] {method} on {adata.n_obs} cells")

    ensure_pca(adata, n_pcs=n_pcs, random_state=random_state, verbose=verbose)
    if method == "pca":
        return "X_pca"

    ensure_neighbors(adata, n_neighbors=n_neighbors, n_pcs=n_pcs, random_state=random_state, verbose=verbose)

    if method == "umap":
        sc.tl.umap(adata, n_components=n_components, random_state=random_state)
    elif method == "diffmap":
        sc.tl.diffmap(adata, n_comps=max(n_components + 1, 3))
    elif method == "tsne":
        n_pcs_tsne = min(n_pcs, adata.obsm["X_pca"].shape[1]) if n_pcs else None
        sc.tl.tsne(adata, n_pcs=n_pcs_tsne, use_rep="X_pca", random_state=random_state)

    key = f"X_{method}"
    if verbose:
        print(f"[OK] Stored embedding in adata.obsm['{key}']: {adata.obsm[key].shape}")
    return key


def _gmm_labels(X, n_clusters, random_state, max_clusters=10):
    from sklearn.mixture import GaussianMixture

    if n_clusters is not None:
        return GaussianMixture(n_components=n_clusters, random_state=random_state).fit_predict(X)

    best_bic, best_labels = np.inf, None
    for k in range(2, min(max_clusters, len(X) - 1) + 1):
        gmm = GaussianMixture(n_components=k, random_state=random_state).fit(X)
        bic = gmm.bic(X)
        if bic < best_bic:
            best_bic, best_labels = bic, gmm.predict(X)
    return best_labels


def cluster_cells(
    adata,
    method: str = "leiden",
    *,
    resolution: float = 1.0,
    n_clusters: int | None = None,
    use_rep: str = "X_pca",
    n_dims: int | None = None,
    key_added: str = "clusters",
    random_state: int = 0,
    verbose: bool = True,
) -> pd.Series:
    """Cluster cells and store categorical labels in ``adata.obs[key_added]``."""
    import scanpy as sc

    if method not in CLUSTER_METHODS:
        raise ValueError(f"method must be one of {CLUSTER_METHODS}, got '{method}'")

    if verbose:
        print(f"[CLUSTER] {method} (use_rep={use_rep})")

    if method in ("leiden", "louvain"):
        if "neighbors" not in adata.uns:
            raise ValueError(f"{method} needs a neighbor graph. Run tl.embed() or sc.pp.neighbors() first.")
        if method == "leiden":
            sc.tl.leiden(adata, resolution=resolution, key_added=key_added, random_state=random_state)
        else:
            try:
                import louvain  # noqa: F401
            except ImportError:
                raise ImportError("louvain not installed. Install with: pip install louvain") from None
            sc.tl.louvain(adata, resolution=resolution, key_added=key_added, random_state=random_state)
        labels = adata.obs[key_added].astype(str)
    else:
        if use_rep not in adata.obsm:
            raise ValueError(f"'{use_rep}' not found in adata.obsm. Available keys: {list(adata.obsm.keys())}")
        X = np.asarray(adata.obsm[use_rep], dtype=np.float64)
        if n_dims is not None:
            X = X[:, :n_dims]

        if method == "kmeans":
            from sklearn.cluster import KMeans

            if n_clusters is None:
                raise ValueError("kmeans clustering needs n_clusters")
            raw = KMeans(n_clusters=n_clusters, n_init=10, random_state=random_state).fit_predict(X)
        else:
            raw = _gmm_labels(X, n_clusters, random_state)
        labels = pd.Series(raw.astype(str), index=adata.obs_names)

    categories = sorted(labels.unique().tolist(), key=lambda c: (len(c), c))
    adata.obs[key_added] = pd.Categorical(labels.to_numpy(), categories=categories)

    from .trajectory import clear_trajectory

    cleared = clear_trajectory(adata, groupby=key_added)

    if verbose:
        print(f"[OK] {len(categories)} clusters stored in adata.obs['{key_added}']")
        if cleared:
            print("   [WARNING] Trajectory graph was built on the old clusters; graph, roots and pseudotime were removed")
    return adata.obs[key_added]
