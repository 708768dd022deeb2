"""Example datasets for geotime tutorials and testing.

Functions
---------
paul15
    Mouse myeloid progenitor differentiation (Paul et al., 2015; 2730 cells)
synthetic_trajectory
    Branching synthetic trajectory with known time and branch labels
"""

from pathlib import Path

import scanpy as sc
from anndata import AnnData

from ..pp.basic import generate_synthetic


def paul15(path: str | Path | None = None) -> AnnData:
    """Load the Paul et al. (2015) myeloid progenitor dataset.

    Parameters
    ----------
    path : str | Path, optional
        Local h5ad copy. If None, scanpy downloads the data into its
        dataset directory on first use.

    Returns
    -------
    AnnData
        Raw counts (2730 cells x 3451 genes) with:
        - `.obs['paul15_clusters']` : published cluster labels
        - `.var['gene_short_name']` : gene symbols (same as var_names)

    Examples
    --------
    >>> import geotime as gt
    >>> adata = gt.datasets.paul15()
    >>> gt.pp.preprocess(adata)
    """
    if path is not None:
        fpath = Path(path)
        if not fpath.exists():
            raise FileNotFoundError(f"Dataset not found at {fpath}")
        adata = sc.read_h5ad(fpath)
    else:
        adata = sc.datasets.paul15()

    adata.var_names_make_unique()
    if "gene_short_name" not in adata.var.columns:
        adata.var["gene_short_name"] = adata.var_names.astype(str)
    return adata


def synthetic_trajectory(**kwargs) -> AnnData:
    """Generate a branching synthetic trajectory.

    Keyword arguments are passed to :func:`geotime.pp.generate_synthetic`.

    Examples
    --------
    >>> adata = gt.datasets.synthetic_trajectory(n_cells=500, n_branches=3)
    >>> adata.obs["time_point"].cat.categories
    Index(['day0', 'day1', 'day2'], dtype='object')
    """
    return generate_synthetic(**kwargs)


__all__ = ["paul15", "synthetic_trajectory"]
