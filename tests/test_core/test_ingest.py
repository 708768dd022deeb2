"""Tests for building and loading AnnData objects."""

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

import geotime as gt


@pytest.fixture
def genes_by_cells_table():
    rng = np.random.default_rng(0)
    return pd.DataFrame(
        rng.poisson(2.0, size=(5, 8)),
        index=[f"Gene{j}" for j in range(5)],
        columns=[f"cell{i}" for i in range(8)],
    )


class TestFromTables:
    def test_dataframe_genes_by_cells(self, genes_by_cells_table):
        adata = gt.pp.from_tables(genes_by_cells_table, genes_by_cells=True)

        assert adata.shape == (8, 5)
        assert list(adata.obs_names[:2]) == ["cell0", "cell1"]
        assert list(adata.var["gene_short_name"]) == list(genes_by_cells_table.index)
        np.testing.assert_array_equal(adata.X, genes_by_cells_table.T.to_numpy())

    def test_arrays_with_metadata(self):
        X = np.arange(12, dtype=float).reshape(3, 4)
        obs = pd.DataFrame({"day": ["d0", "d1", "d2"]}, index=["a", "b", "c"])
        var = pd.DataFrame({"gene_short_name": list("WXYZ")}, index=[f"ENS{j}" for j in range(4)])

        adata = gt.pp.from_tables(X, obs, var)

        assert list(adata.obs["day"]) == ["d0", "d1", "d2"]
        assert list(adata.var_names) == ["ENS0", "ENS1", "ENS2", "ENS3"]

    def test_arrays_need_metadata(self):
        with pytest.raises(ValueError, match="required"):
            gt.pp.from_tables(np.ones((2, 2)))

    def test_misaligned_tables(self):
        obs = pd.DataFrame(index=["a", "b"])
        var = pd.DataFrame({"gene_short_name": ["X", "Y"]}, index=["x", "y"])
        with pytest.raises(ValidationError):
            gt.pp.from_tables(np.ones((3, 2)), obs, var)

    def test_custom_symbol_column(self):
        obs = pd.DataFrame(index=["a"])
        var = pd.DataFrame({"symbol": ["X"]}, index=["x"])
        adata = gt.pp.from_tables(np.ones((1, 1)), obs, var, symbol_column="symbol")
        assert adata.var["symbol"].iloc[0] == "X"


class TestValidateAnnData:
    def test_fills_symbols_with_warning(self, toy_adata):
        del toy_adata.var["gene_short_name"]
        with pytest.warns(UserWarning, match="using var_names"):
            gt.pp.validate_anndata(toy_adata, symbols_from_index=True)
        assert list(toy_adata.var["gene_short_name"]) == list(toy_adata.var_names)

    def test_missing_symbols_fail(self, toy_adata):
        del toy_adata.var["gene_short_name"]
        with pytest.raises(ValidationError):
            gt.pp.validate_anndata(toy_adata)

    def test_valid_object_returned(self, toy_adata):
        assert gt.pp.validate_anndata(toy_adata) is toy_adata


class TestLoadData:
    def test_csv(self, tmp_path, genes_by_cells_table):
        path = tmp_path / "counts.csv"
        genes_by_cells_table.to_csv(path)

        adata = gt.pp.load_data(path, genes_by_cells=True)

        assert adata.shape == (8, 5)
        assert "gene_short_name" in adata.var.columns

    def test_tsv_cells_by_genes(self, tmp_path, genes_by_cells_table):
        path = tmp_path / "counts.tsv"
        genes_by_cells_table.T.to_csv(path, sep="\t")
        adata = gt.pp.load_data(path)
        assert adata.shape == (8, 5)

    def test_h5ad(self, tmp_path, toy_adata):
        path = tmp_path / "toy.h5ad"
        del toy_adata.var["gene_short_name"]
        toy_adata.write_h5ad(path)

        with pytest.warns(UserWarning):
            adata = gt.pp.load_data(path)

        assert adata.n_obs == toy_adata.n_obs
        assert "gene_short_name" in adata.var.columns

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "counts.rds"
        path.write_text("x")
        with pytest.raises(ValueError, match="Unsupported input"):
            gt.pp.load_data(path)


class TestSyntheticData:
    def test_shapes_and_labels(self):
        adata = gt.pp.generate_synthetic(n_cells=90, n_genes=30, n_time_points=3, seed=1)

        assert adata.shape == (90, 30)
        assert list(adata.obs["time_point"].cat.categories) == ["day0", "day1", "day2"]
        assert adata.obs["time_point"].cat.ordered
        assert {"spliced", "unspliced"} <= set(adata.layers.keys())
        assert (adata.layers["unspliced"] <= adata.layers["spliced"]).all()

    def test_time_points_follow_true_time(self):
        adata = gt.pp.generate_synthetic(n_cells=150, n_genes=30, seed=2)
        means = adata.obs.groupby("time_point", observed=True)["true_time"].mean()
        assert means.is_monotonic_increasing

    def test_disconnected_cells(self):
        adata = gt.pp.generate_synthetic(n_cells=60, n_genes=30, disconnected_cells=15, seed=3)
        isolated = adata.obs["branch"] == "isolated"
        assert isolated.sum() == 15
        assert adata.obs.loc[isolated, "true_time"].isna().all()

    def test_reproducible(self):
        a = gt.datasets.synthetic_trajectory(n_cells=50, n_genes=20, seed=9)
        b = gt.datasets.synthetic_trajectory(n_cells=50, n_genes=20, seed=9)
        np.testing.assert_array_equal(a.X, b.X)

    @pytest.mark.parametrize(
        "kwargs",
        [{"n_branches": 0}, {"n_time_points": 0}, {"branch_point": 1.5}, {"n_genes": 2}],
    )
    def test_invalid_parameters(self, kwargs):
        params = {"n_cells": 30, "n_genes": 20} | kwargs
        with pytest.raises(ValueError):
            gt.pp.generate_synthetic(**params)
