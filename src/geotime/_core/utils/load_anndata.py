# load AnnData
import warnings
from pathlib import Path

import anndata as ad
import numpy as np
import pandas as pd
import scipy.sparse as sp

from ..types import ExpressionDataset

"""
AnnData Loading and Ingestion
Utilities for turning count matrices and metadata tables into validated AnnData objects.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 from_tables(matrix, cell_metadata, gene_metadata, *, genes_by_cells=False, symbol_column="gene_short_name") -> ad.AnnData
    Purpose: Build AnnData from a matrix plus cell and gene tables
    Side Effects: Transposes genes x cells input; validates alignment once via ExpressionDataset

 validate_anndata(adata, *, symbol_column="gene_short_name", symbols_from_index=False) -> ad.AnnData
    Purpose: Run the ingestion checks on an existing AnnData
    Side Effects: Optionally fills the symbol column from var_names (with a warning)

 load_data(path, *, symbol_column="gene_short_name", symbols_from_index=True) -> ad.AnnData
    Purpose: Read .h5ad, 10x matrix.mtx directories, or delimited count tables

ERROR HANDLING:
 Misaligned tables, duplicated ids, missing symbol column -> pydantic.ValidationError (ValueError)
 Unknown file type -> ValueError
 File loading errors -> propagated from anndata / scanpy readers
"""


def from_tables(
    matrix,
    cell_metadata: pd.DataFrame | None = None,
    gene_metadata: pd.DataFrame | None = None,
    *,
    genes_by_cells: bool = False,
    symbol_column: str = "gene_short_name",
) -> ad.AnnData:
    """
    Build a validated AnnData object from tables.

    Args:
        matrix: counts as ndarray, sparse matrix or DataFrame
        cell_metadata: one row per cell; defaults to the matrix cell labels when matrix is a DataFrame
        gene_metadata: one row per gene; defaults to the matrix gene labels (used as symbols)
        genes_by_cells: True when rows are genes and columns are cells (Monocle / Seurat orientation)
        symbol_column: gene_metadata column holding gene symbols

    Returns
    -------
        adata: AnnData (cells x genes)
    """
    if isinstance(matrix, pd.DataFrame):
        frame = matrix.T if genes_by_cells else matrix
        if cell_metadata is None:
            cell_metadata = pd.DataFrame(index=frame.index.astype(str))
        if gene_metadata is None:
            gene_metadata = pd.DataFrame({symbol_column: frame.columns.astype(str)}, index=frame.columns.astype(str))
        values = frame.to_numpy()
    else:
        values = matrix.T if genes_by_cells else matrix
        if cell_metadata is None or gene_metadata is None:
            raise ValueError("cell_metadata and gene_metadata are required when matrix is not a DataFrame")

    if sp.issparse(values):
        values = sp.csr_matrix(values)

    record = ExpressionDataset(
        matrix=values,
        cell_metadata=cell_metadata,
        gene_metadata=gene_metadata,
        symbol_column=symbol_column,
    )
    return record.to_anndata()


def validate_anndata(
    adata: ad.AnnData,
    *,
    symbol_column: str = "gene_short_name",
    symbols_from_index: bool = False,
) -> ad.AnnData:
    """
    Check an AnnData object against the ingestion schema.

    Args:
        adata: AnnData to check (modified in place when symbols are filled)
        symbol_column: required var column with gene symbols
        symbols_from_index: fill a missing symbol column from var_names instead of failing

    Returns
    -------
        adata: the same object
    """
    if symbol_column not in adata.var.columns and symbols_from_index:
        warnings.warn(
            f"'{symbol_column}' not found in adata.var; using var_names as gene symbols",
            UserWarning,
            stacklevel=2,
        )
        adata.var[symbol_column] = adata.var_names.astype(str)

    ExpressionDataset(
        matrix=adata.X,
        cell_metadata=adata.obs,
        gene_metadata=adata.var,
        symbol_column=symbol_column,
    )
    return adata


def load_data(
    path: str | Path,
    *,
    symbol_column: str = "gene_short_name",
    symbols_from_index: bool = True,
    genes_by_cells: bool = False,
) -> ad.AnnData:
    """
    Load single-cell data and validate it.

    Args:
        path: .h5ad file, 10x directory (matrix.mtx[.gz]), or .csv/.tsv/.txt count table
        symbol_column: var column with gene symbols
        symbols_from_index: fill a missing symbol column from var_names
        genes_by_cells: delimited tables only, rows are genes

    Returns
    -------
        adata: validated AnnData object
    """
    import scanpy as sc

    path = Path(path)
    if path.is_dir():
        adata = sc.read_10x_mtx(path, var_names="gene_symbols", make_unique=True)
        if "gene_ids" in adata.var.columns and symbol_column not in adata.var.columns:
            adata.var[symbol_column] = adata.var_names.astype(str)
    elif path.suffix == ".h5ad":
        adata = ad.read_h5ad(path)
    elif path.suffix in (".csv", ".tsv", ".txt"):
        delimiter = "," if path.suffix == ".csv" else "\t"
        table = pd.read_csv(path, sep=delimiter, index_col=0)
        return from_tables(table.astype(np.float32), genes_by_cells=genes_by_cells, symbol_column=symbol_column)
    else:
        raise ValueError(f"Unsupported input '{path}'. Expected .h5ad, .csv, .tsv, .txt or a 10x directory")

    return validate_anndata(adata, symbol_column=symbol_column, symbols_from_index=symbols_from_index)
