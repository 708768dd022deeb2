"""
RNA velocity delegated to scVelo.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 run_velocity(adata, *, mode="stochastic", n_pcs=30, n_neighbors=30, min_shared_counts=20,
              compute_pseudotime=True, verbose=True) -> AnnData
    Purpose: filter/normalize -> moments -> velocity -> velocity graph (-> velocity pseudotime)
    Requires: adata.layers['spliced'] and adata.layers['unspliced']
    Side Effects: adata.layers['velocity'], adata.uns['velocity_graph'], adata.obs['velocity_pseudotime']

ERROR HANDLING:
 Missing spliced/unspliced layers -> ValueError (checked before scVelo is imported)
 scVelo missing -> ImportError with install hint
"""

VELOCITY_MODES = ("deterministic", "stochastic", "dynamical")
REQUIRED_LAYERS = ("spliced", "unspliced")


def check_velocity_layers(adata) -> None:
    missing = [layer for layer in REQUIRED_LAYERS if layer not in adata.layers]
    if missing:
        raise ValueError(
            f"RNA velocity needs layers {list(REQUIRED_LAYERS)}; missing {missing}. "
            f"Available layers: {list(adata.layers.keys())}"
        )


def import_scvelo():
    try:
        import scvelo as scv
    except ImportError:
        raise ImportError("scVelo not installed. Install with: pip install scvelo") from None
    return scv


def run_velocity(
    adata,
    *,
    mode: str = "stochastic",
    n_pcs: int = 30,
    n_neighbors: int = 30,
    min_shared_counts: int = 20,
    compute_pseudotime: bool = True,
    verbose: bool = True,
):
    if mode not in VELOCITY_MODES:
        raise ValueError(f"mode must be one of {VELOCITY_MODES}, got '{mode}'")
    check_velocity_layers(adata)
    scv = import_scvelo()

    if verbose:
        print(f"[VELOCITY] scVelo {mode} model on {adata.n_obs} cells")

    scv.pp.filter_and_normalize(adata, min_shared_counts=min_shared_counts)
    scv.pp.moments(adata, n_pcs=n_pcs, n_neighbors=n_neighbors)
    if mode == "dynamical":
        scv.tl.recover_dynamics(adata)
    scv.tl.velocity(adata, mode=mode)
    scv.tl.velocity_graph(adata)

    if compute_pseudotime:
        scv.tl.velocity_pseudotime(adata)

    if verbose:
        print("[OK] Velocity stored in adata.layers['velocity'] and adata.uns['velocity_graph']")
    return adata
