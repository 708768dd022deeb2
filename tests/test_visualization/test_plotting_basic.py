"""Smoke tests for the plotting API (Agg backend)."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

import geotime as gt


@pytest.fixture
def plotted_adata(toy_adata):
    gt.tl.build_graph(toy_adata, partition_key="population", verbose=False)
    gt.tl.assign_nodes(toy_adata, verbose=False)
    gt.tl.select_root(toy_adata, "day", verbose=False)
    with pytest.warns(UserWarning):
        gt.tl.pseudotime(toy_adata, verbose=False)
    return toy_adata


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestTrajectoryPlot:
    def test_pseudotime_with_unreachable(self, plotted_adata):
        fig = gt.pl.trajectory(plotted_adata)
        ax = fig.axes[0]
        labels = [t.get_text() for t in ax.get_legend().get_texts()]
        assert any(label.startswith("unreachable") for label in labels)

    def test_categorical_color(self, plotted_adata):
        fig = gt.pl.trajectory(plotted_adata, color="day", show_graph=False)
        assert fig.axes[0].get_legend() is not None

    def test_saves_file(self, plotted_adata, tmp_path):
        path = tmp_path / "plots" / "trajectory.png"
        gt.pl.trajectory(plotted_adata, save_path=path)
        assert path.exists()

    def test_existing_axes(self, plotted_adata):
        fig, ax = plt.subplots()
        out = gt.pl.trajectory(plotted_adata, ax=ax, color="clusters")
        assert out is fig

    def test_unknown_color(self, plotted_adata):
        with pytest.raises(ValueError, match="not found in adata.obs"):
            gt.pl.trajectory(plotted_adata, color="stage")


class TestOtherPlots:
    def test_pseudotime_by_group(self, plotted_adata, tmp_path):
        path = tmp_path / "violin.png"
        fig = gt.pl.pseudotime_by_group(plotted_adata, "day", save_path=path)
        assert "unreachable" in fig.axes[0].get_title()
        assert path.exists()

    def test_pseudotime_by_group_missing_column(self, plotted_adata):
        with pytest.raises(ValueError, match="not found in adata.obs"):
            gt.pl.pseudotime_by_group(plotted_adata, "batch")

    def test_gene_trends(self, plotted_adata):
        fig = gt.pl.gene_trends(plotted_adata, ["Gene0", "ENSG0001"], n_bins=4)
        assert len(fig.axes) >= 1

    def test_trajectory_3d_needs_three_dims(self, plotted_adata):
        pytest.importorskip("plotly")
        with pytest.raises(ValueError, match="3D plotting"):
            gt.pl.trajectory_3d(plotted_adata, basis="X_umap")

    def test_trajectory_3d(self, trajectory_adata, tmp_path):
        pytest.importorskip("plotly")
        path = tmp_path / "trajectory.html"
        fig = gt.pl.trajectory_3d(trajectory_adata, save_path=path)
        names = {trace.name for trace in fig.data}
        assert {"cells", "graph", "roots"} <= names
        assert path.exists()

    def test_velocity_stream_requires_velocity(self, toy_adata):
        pytest.importorskip("scvelo")
        with pytest.raises(ValueError, match="Run gt.tl.velocity"):
            gt.pl.velocity_stream(toy_adata)
