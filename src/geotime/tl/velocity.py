"""RNA velocity through scVelo (optional dependency)."""

from anndata import AnnData

from .._core.utils.velocity import run_velocity as _run_velocity


def velocity(
    adata: AnnData,
    *,
    mode: str = "stochastic",
    n_pcs: int = 30,
    n_neighbors: int = 30,
    min_shared_counts: int = 20,
    compute_pseudotime: bool = True,
    verbose: bool = True,
) -> AnnData:
    """Estimate RNA velocity and, optionally, velocity pseudotime.

    Parameters
    ----------
    adata : AnnData
        Must contain ``layers["spliced"]`` and ``layers["unspliced"]``.
        Modified in place: scVelo normalizes ``X`` and the layers.
    mode : str, default: "stochastic"
        ``"deterministic"``, ``"stochastic"`` or ``"dynamical"``.
    n_pcs : int, default: 30
        PCs for the moment computation.
    n_neighbors : int, default: 30
        Neighbors for the moment computation.
    min_shared_counts : int, default: 20
        Gene filter passed to ``scv.pp.filter_and_normalize``.
    compute_pseudotime : bool, default: True
        Also store ``adata.obs["velocity_pseudotime"]``.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    AnnData
        The same object.

    Raises
    ------
    ValueError
        If a required layer is missing.
    ImportError
        If scVelo is not installed.
    """
    return _run_velocity(
        adata,
        mode=mode,
        n_pcs=n_pcs,
        n_neighbors=n_neighbors,
        min_shared_counts=min_shared_counts,
        compute_pseudotime=compute_pseudotime,
        verbose=verbose,
    )
