"""End-to-end workflow tests."""

import numpy as np
import pytest

import geotime as gt
from geotime._core.types import AnnDataKeys

pytestmark = pytest.mark.integration


def _quiet(**kwargs):
    return gt.TrajectoryConfig(verbose=False, **kwargs)


class TestInferTrajectory:
    def test_pipeline_orders_time_points(self, trajectory_adata):
        adata = trajectory_adata
        pt = adata.obs[AnnDataKeys.PSEUDOTIME]

        assert adata.obs[AnnDataKeys.PSEUDOTIME_REACHABLE].all()
        assert (pt >= 0).all()
        means = pt.groupby(adata.obs["time_point"], observed=True).mean()
        assert means["day0"] < means["day2"]

    def test_root_holds_earliest_cells(self, trajectory_adata):
        adata = trajectory_adata
        root = str(adata.uns[AnnDataKeys.ROOT_SELECTION]["roots"][0])
        in_root = adata.obs[AnnDataKeys.TRAJECTORY_NODE].astype(str) == root
        assert (adata.obs.loc[in_root, "time_point"] == "day0").any()
        assert (adata.obs.loc[in_root, AnnDataKeys.PSEUDOTIME] == 0).all()

    def test_pipeline_needs_roots_or_time_key(self, synthetic_adata):
        with pytest.raises(gt.MissingRootError):
            gt.tl.infer_trajectory(synthetic_adata, _quiet(embedding="pca", cluster_method="kmeans", n_clusters=4))

    def test_explicit_roots(self, synthetic_adata):
        config = _quiet(embedding="pca", cluster_method="kmeans", n_clusters=4)
        result = gt.tl.infer_trajectory(synthetic_adata, config, roots=["2"])
        assert result.roots == ["2"]
        assert AnnDataKeys.ROOT_SELECTION not in synthetic_adata.uns

    def test_gmm_with_projection(self, synthetic_adata):
        config = _quiet(embedding="pca", cluster_method="gmm", n_clusters=5, offset="projection")
        result = gt.tl.infer_trajectory(synthetic_adata, config, time_key="time_point")
        assert result.offset == "projection"
        assert (result.values[result.reachable] >= 0).all()

    def test_principal_points(self, synthetic_adata):
        config = _quiet(embedding="pca", graph_method="principal_points", n_nodes=12)
        result = gt.tl.infer_trajectory(synthetic_adata, config, time_key="time_point")
        graph = gt.TrajectoryGraph.from_uns(synthetic_adata.uns[AnnDataKeys.TRAJECTORY_GRAPH])
        assert graph.n_nodes == 12
        assert graph.n_edges == 11
        assert result.reachable.all()

    def test_paga_graph(self, synthetic_adata):
        config = _quiet(embedding="pca", cluster_method="kmeans", n_clusters=6, graph_method="paga", paga_threshold=0.05)
        result = gt.tl.infer_trajectory(synthetic_adata, config, time_key="time_point")
        graph = gt.TrajectoryGraph.from_uns(synthetic_adata.uns[AnnDataKeys.TRAJECTORY_GRAPH])
        assert graph.method == "paga"
        assert "paga" in synthetic_adata.uns
        assert not np.isnan(result.values).any()

    def test_saves_figures(self, synthetic_adata, tmp_path):
        config = _quiet(
            embedding="pca", cluster_method="kmeans", n_clusters=4, figdir=str(tmp_path / "figs"), save_figures=True
        )
        gt.tl.infer_trajectory(synthetic_adata, config, time_key="time_point")
        assert (tmp_path / "figs" / "trajectory.png").exists()
        assert (tmp_path / "figs" / "pseudotime_by_time_point.png").exists()

    @pytest.mark.slow
    def test_default_config(self, synthetic_adata):
        result = gt.tl.infer_trajectory(synthetic_adata, _quiet(n_neighbors=10), time_key="time_point")
        assert "X_umap" in synthetic_adata.obsm
        assert len(result.values) == synthetic_adata.n_obs


class TestDisconnectedPopulation:
    def test_unreachable_cells_reported(self):
        adata = gt.pp.generate_synthetic(n_cells=200, n_genes=40, disconnected_cells=40, seed=4)
        gt.pp.preprocess(adata, n_pcs=10, verbose=False)
        adata.obs["population"] = np.where(adata.obs["branch"] == "isolated", "isolated", "main")

        config = _quiet(embedding="pca", cluster_method="kmeans", n_clusters=6, partition_key="population")
        with pytest.warns(UserWarning, match="cannot reach any root"):
            result = gt.tl.infer_trajectory(adata, config, time_key="time_point")

        pt = adata.obs[AnnDataKeys.PSEUDOTIME].to_numpy()
        assert result.n_unreachable > 0
        assert np.isposinf(pt[~result.reachable]).all()
        assert not np.isnan(pt).any()
        assert len(adata.uns[AnnDataKeys.PSEUDOTIME_INFO]["unreachable_partitions"]) >= 1

        # downstream tools skip unreachable cells
        genes = gt.tl.pseudotime_genes(adata, min_cells=5, verbose=False)
        assert genes["n_cells"].max() <= int(result.reachable.sum())

    def test_per_partition_roots(self):
        adata = gt.pp.generate_synthetic(n_cells=200, n_genes=40, disconnected_cells=40, seed=4)
        gt.pp.preprocess(adata, n_pcs=10, verbose=False)
        adata.obs["population"] = np.where(adata.obs["branch"] == "isolated", "isolated", "main")
        # give the second population its own earliest cells
        adata.obs.loc[adata.obs["population"] == "isolated", "time_point"] = "day0"

        config = _quiet(
            embedding="pca", cluster_method="kmeans", n_clusters=6, partition_key="population", per_partition_roots=True
        )
        result = gt.tl.infer_trajectory(adata, config, time_key="time_point")
        assert len(result.roots) >= 2
        assert result.reachable.all()


class TestVelocity:
    def test_missing_layers(self, toy_adata):
        with pytest.raises(ValueError, match="unspliced"):
            gt.tl.velocity(toy_adata, verbose=False)

    def test_unknown_mode(self, synthetic_adata):
        with pytest.raises(ValueError, match="mode must be one of"):
            gt.tl.velocity(synthetic_adata, mode="steady", verbose=False)

    @pytest.mark.slow
    def test_stochastic_velocity(self):
        pytest.importorskip("scvelo")
        adata = gt.pp.generate_synthetic(n_cells=200, n_genes=40, seed=8)
        gt.tl.velocity(adata, n_pcs=10, n_neighbors=15, min_shared_counts=5, verbose=False)

        assert "velocity" in adata.layers
        assert "velocity_graph" in adata.uns
        assert AnnDataKeys.VELOCITY_PSEUDOTIME in adata.obs.columns
