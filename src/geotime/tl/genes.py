"""Genes that change along pseudotime."""

import pandas as pd
from anndata import AnnData

from .._core.utils.gene_trends import pseudotime_association as _pseudotime_association


def pseudotime_genes(
    adata: AnnData,
    *,
    pseudotime_key: str = "pseudotime",
    layer: str | None = None,
    symbol_column: str = "gene_short_name",
    n_top: int | None = None,
    min_cells: int = 10,
    fdr_threshold: float = 0.05,
    verbose: bool = True,
) -> pd.DataFrame:
    """Test every gene for a monotone trend along pseudotime.

    Spearman correlation is computed on cells with finite pseudotime and
    p-values are corrected with Benjamini-Hochberg.

    Parameters
    ----------
    adata : AnnData
        Must contain ``adata.obs[pseudotime_key]``.
    pseudotime_key : str, default: "pseudotime"
        Column with pseudotime values.
    layer : str | None, default: None
        Expression layer. None uses ``adata.X``.
    symbol_column : str, default: "gene_short_name"
        ``adata.var`` column reported as ``symbol``.
    n_top : int | None, default: None
        Return only the first ``n_top`` rows.
    min_cells : int, default: 10
        Genes expressed in fewer reachable cells are skipped.
    fdr_threshold : float, default: 0.05
        Threshold for the ``significant`` column.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    pd.DataFrame
        Columns ``gene``, ``symbol``, ``correlation``, ``pvalue``,
        ``fdr_pvalue``, ``significant``, ``direction``, ``n_cells``; sorted
        by p-value.
    """
    results = _pseudotime_association(
        adata,
        pseudotime_key=pseudotime_key,
        layer=layer,
        symbol_column=symbol_column,
        min_cells=min_cells,
        fdr_threshold=fdr_threshold,
        verbose=verbose,
    )
    if n_top is not None:
        results = results.head(n_top).reset_index(drop=True)
    return results
