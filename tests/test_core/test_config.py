"""Tests for TrajectoryConfig validation."""

from pathlib import Path

import pytest

from geotime import TrajectoryConfig


def test_defaults():
    config = TrajectoryConfig()
    assert config.embedding == "umap"
    assert config.cluster_method == "leiden"
    assert config.graph_method == "mst"
    assert config.offset == "none"
    assert config.figure_dir == Path("figures")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"embedding": "phate"}, "embedding must be one of"),
        ({"cluster_method": "dbscan"}, "cluster_method must be one of"),
        ({"graph_method": "elpigraph"}, "graph_method must be one of"),
        ({"offset": "spline"}, "offset must be one of"),
        ({"node_assignment": "random"}, "node_assignment"),
        ({"n_neighbors": 1}, "n_neighbors"),
        ({"n_pcs": 0}, "n_pcs"),
        ({"resolution": 0}, "resolution"),
        ({"cluster_method": "kmeans"}, "needs n_clusters"),
        ({"n_nodes": 1}, "n_nodes"),
        ({"paga_threshold": 1.5}, "paga_threshold"),
        ({"graph_method": "paga", "partition_key": "batch"}, "partition_key"),
    ],
)
def test_invalid_values(kwargs, message):
    with pytest.raises(ValueError, match=message):
        TrajectoryConfig(**kwargs)


def test_kmeans_with_count():
    config = TrajectoryConfig(cluster_method="kmeans", n_clusters=4)
    assert config.n_clusters == 4
