"""Tests for the AnnData-level trajectory steps."""

import numpy as np
import pytest

import geotime as gt
from geotime._core.types import AnnDataKeys, TrajectoryGraph


def _run_chain(adata, **graph_kwargs):
    gt.tl.build_graph(adata, "mst", groupby="clusters", verbose=False, **graph_kwargs)
    gt.tl.assign_nodes(adata, verbose=False)
    gt.tl.select_root(adata, "day", verbose=False)


class TestBuildGraph:
    def test_stores_graph(self, toy_adata):
        graph = gt.tl.build_graph(toy_adata, "mst", verbose=False)

        assert isinstance(graph, TrajectoryGraph)
        assert graph.nodes == ["0", "1", "2", "3", "4"]
        assert graph.basis == "X_umap"
        stored = TrajectoryGraph.from_uns(toy_adata.uns[AnnDataKeys.TRAJECTORY_GRAPH])
        np.testing.assert_array_equal(stored.edges, graph.edges)

    def test_partition_key_splits_graph(self, toy_adata):
        graph = gt.tl.build_graph(toy_adata, "mst", partition_key="population", verbose=False)
        parts = graph.partitions()
        assert len(np.unique(parts)) == 2
        assert parts[4] != parts[0]

    def test_missing_groupby(self, toy_adata):
        with pytest.raises(ValueError, match="not found in adata.obs"):
            gt.tl.build_graph(toy_adata, groupby="leiden", verbose=False)

    def test_missing_partition_column(self, toy_adata):
        with pytest.raises(ValueError, match="Partition column"):
            gt.tl.build_graph(toy_adata, partition_key="batch", verbose=False)

    def test_unknown_method(self, toy_adata):
        with pytest.raises(ValueError, match="method must be one of"):
            gt.tl.build_graph(toy_adata, "elpigraph", verbose=False)

    def test_missing_basis(self, toy_adata):
        with pytest.raises(ValueError, match="not found in adata.obsm"):
            gt.tl.build_graph(toy_adata, basis="X_tsne", verbose=False)

    def test_principal_points(self, toy_adata):
        graph = gt.tl.build_graph(toy_adata, "principal_points", n_nodes=5, verbose=False)

        assert graph.n_nodes == 5
        assert graph.method == "principal_points"
        assert "principal_point" in toy_adata.obs.columns
        gt.tl.assign_nodes(toy_adata, verbose=False)
        assert set(toy_adata.obs[AnnDataKeys.TRAJECTORY_NODE].astype(str)) <= set(graph.nodes)


class TestAssignNodes:
    def test_cluster_assignment(self, toy_adata):
        gt.tl.build_graph(toy_adata, verbose=False)
        nodes = gt.tl.assign_nodes(toy_adata, verbose=False)

        assert list(nodes.astype(str)) == list(toy_adata.obs["clusters"].astype(str))
        assert AnnDataKeys.GRAPH_PARTITION in toy_adata.obs.columns

    def test_nearest_assignment(self, toy_adata):
        gt.tl.build_graph(toy_adata, verbose=False)
        nodes = gt.tl.assign_nodes(toy_adata, "nearest", verbose=False)
        # clusters are well separated, so nearest centroid equals own cluster
        assert list(nodes.astype(str)) == list(toy_adata.obs["clusters"].astype(str))

    def test_requires_graph(self, toy_adata):
        with pytest.raises(ValueError, match="Run tl.build_graph"):
            gt.tl.assign_nodes(toy_adata, verbose=False)

    def test_unknown_method(self, toy_adata):
        gt.tl.build_graph(toy_adata, verbose=False)
        with pytest.raises(ValueError, match="'cluster' or 'nearest'"):
            gt.tl.assign_nodes(toy_adata, "random", verbose=False)


class TestSelectRootAndPseudotime:
    def test_root_is_day0_cluster(self, toy_adata):
        _run_chain(toy_adata)
        selection = toy_adata.uns[AnnDataKeys.ROOT_SELECTION]
        assert list(selection["roots"]) == ["0"]
        assert selection["earliest_label"] == "day0"

    def test_pseudotime_follows_the_line(self, toy_adata):
        _run_chain(toy_adata, partition_key="population")
        with pytest.warns(UserWarning, match="cannot reach any root"):
            result = gt.tl.pseudotime(toy_adata, verbose=False)

        pt = toy_adata.obs[AnnDataKeys.PSEUDOTIME]
        by_cluster = pt.groupby(toy_adata.obs["clusters"], observed=True).mean()
        assert by_cluster["0"] == 0
        assert by_cluster["0"] < by_cluster["1"] < by_cluster["2"] < by_cluster["3"]
        assert np.isposinf(by_cluster["4"])
        assert result.n_unreachable == 12

    def test_unreachable_reported_in_uns(self, toy_adata):
        _run_chain(toy_adata, partition_key="population")
        with pytest.warns(UserWarning):
            gt.tl.pseudotime(toy_adata, verbose=False)

        info = toy_adata.uns[AnnDataKeys.PSEUDOTIME_INFO]
        assert info["n_unreachable"] == 12
        assert len(info["unreachable_partitions"]) == 1
        reachable = toy_adata.obs[AnnDataKeys.PSEUDOTIME_REACHABLE]
        assert (~reachable).sum() == 12

    def test_per_partition_roots_reach_everything(self, toy_adata):
        gt.tl.build_graph(toy_adata, partition_key="population", verbose=False)
        gt.tl.assign_nodes(toy_adata, verbose=False)
        # the second population has no day0 cells, so it gets no root
        selection = gt.tl.select_root(toy_adata, "day", per_partition=True, verbose=False)
        assert selection.roots == ["0"]

        result = gt.tl.pseudotime(toy_adata, roots=["0", "4"], verbose=False)
        assert result.reachable.all()

    def test_explicit_roots_override_selection(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, roots=["3"], verbose=False)
        pt = toy_adata.obs[AnnDataKeys.PSEUDOTIME]
        assert (pt[toy_adata.obs["clusters"] == "3"] == 0).all()

    def test_missing_root(self, toy_adata):
        gt.tl.build_graph(toy_adata, verbose=False)
        gt.tl.assign_nodes(toy_adata, verbose=False)
        with pytest.raises(gt.MissingRootError):
            gt.tl.pseudotime(toy_adata, verbose=False)

    def test_projection_offset(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, offset="projection", verbose=False)
        pt = toy_adata.obs[AnnDataKeys.PSEUDOTIME].to_numpy()
        assert (pt >= 0).all()
        # cells spread around their node, so values are no longer constant per node
        assert toy_adata.obs[AnnDataKeys.PSEUDOTIME].groupby(toy_adata.obs["clusters"], observed=True).nunique().max() > 1
        assert toy_adata.uns[AnnDataKeys.PSEUDOTIME_INFO]["offset"] == "projection"

    def test_custom_key(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, key_added="pt_manual", verbose=False)
        assert "pt_manual" in toy_adata.obs.columns
        assert "pt_manual_reachable" in toy_adata.obs.columns


class TestInvalidation:
    def test_rebuilding_graph_drops_downstream(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, verbose=False)

        gt.tl.build_graph(toy_adata, verbose=False)

        assert AnnDataKeys.TRAJECTORY_NODE not in toy_adata.obs.columns
        assert AnnDataKeys.PSEUDOTIME not in toy_adata.obs.columns
        assert AnnDataKeys.PSEUDOTIME_REACHABLE not in toy_adata.obs.columns
        assert AnnDataKeys.ROOT_SELECTION not in toy_adata.uns
        assert AnnDataKeys.PSEUDOTIME_INFO not in toy_adata.uns

    def test_reclustering_drops_graph(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, verbose=False)

        gt.tl.cluster(toy_adata, "kmeans", n_clusters=3, use_rep="X_umap", verbose=False)

        assert AnnDataKeys.TRAJECTORY_GRAPH not in toy_adata.uns
        assert AnnDataKeys.TRAJECTORY_NODE not in toy_adata.obs.columns
        assert AnnDataKeys.ROOT_SELECTION not in toy_adata.uns
        assert AnnDataKeys.PSEUDOTIME not in toy_adata.obs.columns
        with pytest.raises(ValueError, match="trajectory_graph"):
            gt.tl.assign_nodes(toy_adata, verbose=False)

    def test_clustering_other_key_keeps_graph(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, verbose=False)

        gt.tl.cluster(toy_adata, "kmeans", n_clusters=3, use_rep="X_umap", key_added="coarse", verbose=False)

        assert AnnDataKeys.TRAJECTORY_GRAPH in toy_adata.uns
        assert AnnDataKeys.PSEUDOTIME in toy_adata.obs.columns

    def test_new_root_drops_pseudotime(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, key_added="pt", verbose=False)

        gt.tl.select_root(toy_adata, "day", verbose=False)

        assert "pt" not in toy_adata.obs.columns
        assert "pt_reachable" not in toy_adata.obs.columns

    def test_reassigning_nodes_drops_pseudotime(self, toy_adata):
        _run_chain(toy_adata)
        gt.tl.pseudotime(toy_adata, verbose=False)
        gt.tl.assign_nodes(toy_adata, "nearest", verbose=False)
        assert AnnDataKeys.PSEUDOTIME not in toy_adata.obs.columns
        # root selection survives a node reassignment
        assert AnnDataKeys.ROOT_SELECTION in toy_adata.uns

    def test_recompute_is_identical(self, toy_adata):
        _run_chain(toy_adata)
        first = gt.tl.pseudotime(toy_adata, verbose=False).values
        second = gt.tl.pseudotime(toy_adata, verbose=False).values
        np.testing.assert_array_equal(first, second)
