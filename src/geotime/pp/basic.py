"""
Basic preprocessing functions for trajectory inference.

This module turns count tables into validated AnnData objects, normalizes
them for embedding, and generates synthetic branching data for testing.

Main Functions:
- from_tables(): Build AnnData from a matrix plus cell and gene tables
- load_data(): Load AnnData from file and validate it
- validate_anndata(): Check an existing AnnData against the ingestion schema
- preprocess(): Keep counts, normalize, log-transform, select HVGs, run PCA
- generate_synthetic(): Create a branching trajectory with known time labels

All functions follow scVerse conventions with AnnData-centric workflows.
"""

from pathlib import Path

import pandas as pd
from anndata import AnnData

from .._core.utils.load_anndata import from_tables as _from_tables
from .._core.utils.load_anndata import load_data as _load_data
from .._core.utils.load_anndata import validate_anndata as _validate_anndata
from .._core.utils.preprocessing import preprocess_counts as _preprocess_counts
from .._core.utils.synthetic_trajectory import generate_trajectory_data as _generate_trajectory_data


def from_tables(
    matrix,
    cell_metadata: pd.DataFrame | None = None,
    gene_metadata: pd.DataFrame | None = None,
    *,
    genes_by_cells: bool = False,
    symbol_column: str = "gene_short_name",
) -> AnnData:
    """Build a validated AnnData object from an expression matrix and metadata tables.

    Parameters
    ----------
    matrix : array-like, scipy.sparse matrix or pd.DataFrame
        Expression counts. A DataFrame supplies default cell and gene ids.
    cell_metadata : pd.DataFrame | None, default: None
        One row per cell, indexed by cell id.
    gene_metadata : pd.DataFrame | None, default: None
        One row per gene, indexed by gene id, with a symbol column.
    genes_by_cells : bool, default: False
        Set when rows are genes and columns are cells.
    symbol_column : str, default: "gene_short_name"
        Column of ``gene_metadata`` holding gene symbols.

    Returns
    -------
    AnnData
        Cells x genes object with ``obs`` and ``var`` taken from the tables.

    Raises
    ------
    pydantic.ValidationError
        If table sizes disagree with the matrix, ids are duplicated, or the
        symbol column is missing.

    Examples
    --------
    >>> adata = gt.pp.from_tables(counts, cells, genes, genes_by_cells=True)
    """
    return _from_tables(
        matrix,
        cell_metadata,
        gene_metadata,
        genes_by_cells=genes_by_cells,
        symbol_column=symbol_column,
    )


def load_data(
    path: str | Path,
    *,
    symbol_column: str = "gene_short_name",
    symbols_from_index: bool = True,
    genes_by_cells: bool = False,
) -> AnnData:
    """Load single-cell data for trajectory inference.

    Parameters
    ----------
    path : str | Path
        ``.h5ad`` file, 10x directory, or ``.csv``/``.tsv``/``.txt`` table.
    symbol_column : str, default: "gene_short_name"
        ``adata.var`` column holding gene symbols.
    symbols_from_index : bool, default: True
        Fill a missing symbol column from ``var_names`` (with a warning).
    genes_by_cells : bool, default: False
        For delimited tables whose rows are genes.

    Returns
    -------
    AnnData
        Validated data. Run :func:`preprocess` next.
    """
    return _load_data(
        path,
        symbol_column=symbol_column,
        symbols_from_index=symbols_from_index,
        genes_by_cells=genes_by_cells,
    )


def validate_anndata(
    adata: AnnData,
    *,
    symbol_column: str = "gene_short_name",
    symbols_from_index: bool = False,
) -> AnnData:
    """Check unique ids and the gene symbol column of an existing AnnData."""
    return _validate_anndata(adata, symbol_column=symbol_column, symbols_from_index=symbols_from_index)


def preprocess(
    adata: AnnData,
    *,
    target_sum: float = 1e4,
    n_top_genes: int | None = 2000,
    n_pcs: int = 50,
    min_cells: int = 3,
    random_state: int = 0,
    verbose: bool = True,
) -> AnnData:
    """Normalize counts and compute PCA.

    Raw counts are kept in ``adata.layers["counts"]``. Integer counts are always
    normalized and log-transformed; a non-integer ``X`` is taken as already
    normalized and left as is.

    Parameters
    ----------
    adata : AnnData
        Count data, modified in place.
    target_sum : float, default: 1e4
        Library size after normalization.
    n_top_genes : int | None, default: 2000
        Highly variable genes used for PCA. None keeps all genes.
    n_pcs : int, default: 50
        Principal components (capped by the data shape).
    min_cells : int, default: 3
        Genes detected in fewer cells are removed.
    random_state : int, default: 0
        Seed for PCA.
    verbose : bool, default: True
        Print progress messages.

    Returns
    -------
    AnnData
        The same object with ``obsm["X_pca"]``.
    """
    return _preprocess_counts(
        adata,
        target_sum=target_sum,
        n_top_genes=n_top_genes,
        n_pcs=n_pcs,
        min_cells=min_cells,
        random_state=random_state,
        verbose=verbose,
    )


def generate_synthetic(
    n_cells: int = 300,
    n_genes: int = 60,
    *,
    n_branches: int = 2,
    n_time_points: int = 3,
    branch_point: float = 0.4,
    disconnected_cells: int = 0,
    noise: float = 0.1,
    seed: int = 1205,
) -> AnnData:
    """Generate a synthetic branching trajectory.

    Parameters
    ----------
    n_cells : int, default: 300
        Cells on the connected trajectory.
    n_genes : int, default: 60
        Number of genes.
    n_branches : int, default: 2
        Branches leaving the trunk after ``branch_point``.
    n_time_points : int, default: 3
        Sampling days; ``obs["time_point"]`` is an ordered categorical
        ``day0, day1, ...`` derived from the true time.
    branch_point : float, default: 0.4
        True time at which the trunk splits.
    disconnected_cells : int, default: 0
        Extra cells from an unrelated population with their own genes.
    noise : float, default: 0.1
        Spread of the lognormal size factors.
    seed : int, default: 1205
        Random seed for reproducibility.

    Returns
    -------
    AnnData
        Counts in ``X`` with ``layers["spliced"]`` (a copy of the counts)
        and ``layers["unspliced"]``. ``obs`` holds ``true_time`` (NaN for
        disconnected cells), ``branch`` and ``time_point``.
    """
    counts, obs, var, unspliced = _generate_trajectory_data(
        n_cells,
        n_genes,
        n_branches=n_branches,
        n_time_points=n_time_points,
        branch_point=branch_point,
        disconnected_cells=disconnected_cells,
        noise=noise,
        seed=seed,
    )

    adata = _from_tables(counts, obs, var)
    adata.layers["spliced"] = adata.X.copy()
    adata.layers["unspliced"] = unspliced

    adata.uns["synthetic_params"] = {
        "n_branches": n_branches,
        "n_time_points": n_time_points,
        "branch_point": branch_point,
        "disconnected_cells": disconnected_cells,
        "seed": seed,
    }
    return adata
