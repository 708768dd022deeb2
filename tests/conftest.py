"""Shared fixtures for geotime tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from anndata import AnnData

from geotime._core.types import TrajectoryGraph


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: end-to-end workflow tests")


@pytest.fixture
def chain_graph():
    """Path A - B - C - D with weights 1, 2, 3 laid out on the x axis."""
    return TrajectoryGraph(
        nodes=["A", "B", "C", "D"],
        edges=[[0, 1], [1, 2], [2, 3]],
        weights=[1.0, 2.0, 3.0],
        positions=[[0.0, 0.0], [1.0, 0.0], [3.0, 0.0], [6.0, 0.0]],
        basis="X_umap",
    )


@pytest.fixture
def split_graph():
    """Two components: A - B and C - D."""
    return TrajectoryGraph(
        nodes=["A", "B", "C", "D"],
        edges=[[0, 1], [2, 3]],
        weights=[1.0, 2.0],
        positions=[[0.0, 0.0], [1.0, 0.0], [10.0, 10.0], [12.0, 10.0]],
    )


@pytest.fixture
def toy_adata():
    """Four clusters on a line plus one far away, with collection days.

    Clusters 0-3 sit at x = 0, 5, 10, 15 and carry day0, day1, day2, day2.
    Cluster 4 is an unrelated population at (100, 100), labelled day1.
    """
    rng = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [5.0, 0.0], [10.0, 0.0], [15.0, 0.0], [100.0, 100.0]])
    days = ["day0", "day1", "day2", "day2", "day1"]
    n_per = 12

    clusters = np.repeat(np.arange(len(centers)), n_per)
    umap = centers[clusters] + rng.normal(scale=0.3, size=(len(clusters), 2))
    n_genes = 15
    X = rng.poisson(5.0, size=(len(clusters), n_genes)).astype(np.float32)

    obs = pd.DataFrame(
        {
            "clusters": pd.Categorical(clusters.astype(str), categories=[str(i) for i in range(len(centers))]),
            "day": pd.Categorical(
                np.asarray(days)[clusters], categories=["day0", "day1", "day2"], ordered=True
            ),
            "population": np.where(clusters == 4, "other", "main"),
        },
        index=[f"cell_{i}" for i in range(len(clusters))],
    )
    var = pd.DataFrame(
        {"gene_short_name": [f"Gene{j}" for j in range(n_genes)]},
        index=[f"ENSG{j:04d}" for j in range(n_genes)],
    )
    adata = AnnData(X=X, obs=obs, var=var)
    adata.obsm["X_umap"] = umap
    return adata


@pytest.fixture
def synthetic_adata():
    """Preprocessed synthetic branching trajectory (240 cells, 40 genes)."""
    import geotime as gt

    adata = gt.pp.generate_synthetic(n_cells=240, n_genes=40, n_branches=2, n_time_points=3, seed=7)
    gt.pp.preprocess(adata, n_pcs=10, verbose=False)
    return adata


@pytest.fixture
def trajectory_adata(synthetic_adata):
    """Synthetic data with a full trajectory (PCA embedding, k-means clusters)."""
    import geotime as gt

    config = gt.TrajectoryConfig(embedding="pca", cluster_method="kmeans", n_clusters=6, verbose=False)
    gt.tl.infer_trajectory(synthetic_adata, config, time_key="time_point")
    return synthetic_adata
