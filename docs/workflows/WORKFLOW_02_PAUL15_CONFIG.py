#!/usr/bin/env python
"""
WORKFLOW 02: Config-Driven Pipeline on Myeloid Progenitors
==========================================================

This workflow runs geotime on the Paul et al. (2015) data through a single
TrajectoryConfig:
1. Load paul15 via scanpy and preprocess
2. Diffusion-map embedding, PAGA graph over published clusters
3. Root given explicitly (no time labels in this dataset)
4. Optional RNA velocity on the synthetic data, when scVelo is installed

Example usage:
    python WORKFLOW_02_PAUL15_CONFIG.py

Requirements:
    - geotime
    - scvelo (optional, step 4)
"""

from pathlib import Path

import geotime as gt

output_dir = Path("figures/workflow_02")
output_dir.mkdir(parents=True, exist_ok=True)

print("=" * 70)
print("WORKFLOW 02: Config-Driven Pipeline on Myeloid Progenitors")
print("=" * 70)

# =============================================================================
# Step 1: Data
# =============================================================================

adata = gt.datasets.paul15()
gt.pp.preprocess(adata, n_top_genes=1500, n_pcs=30)

# =============================================================================
# Steps 2-3: Embedding and graph by hand, roots explicit
# =============================================================================

gt.tl.embed(adata, "diffmap", n_neighbors=20)
adata.obs["clusters"] = adata.obs["paul15_clusters"].astype("category")
gt.tl.build_graph(adata, "paga", groupby="clusters", basis="X_diffmap", paga_threshold=0.05)
gt.tl.assign_nodes(adata)

# cluster 7MEP holds the multipotent progenitors
result = gt.tl.pseudotime(adata, roots=["7MEP"])
print(f"  Unreachable cells: {result.n_unreachable}")

gt.pl.trajectory(adata, color="paul15_clusters", save_path=output_dir / "paul15_clusters.png")
gt.pl.trajectory(adata, save_path=output_dir / "paul15_pseudotime.png")
gt.pl.pseudotime_by_group(adata, "paul15_clusters", save_path=output_dir / "paul15_by_cluster.png")

# =============================================================================
# Step 4: Whole pipeline from a config, plus velocity
# =============================================================================

config = gt.TrajectoryConfig(
    embedding="pca",
    cluster_method="gmm",
    graph_method="mst",
    offset="projection",
    figdir=str(output_dir / "synthetic"),
    save_figures=True,
)
synth = gt.datasets.synthetic_trajectory(n_cells=500, n_genes=60)
gt.pp.preprocess(synth, n_pcs=15)
gt.tl.infer_trajectory(synth, config, time_key="time_point")

try:
    gt.tl.velocity(synth, mode="stochastic")
    gt.pl.velocity_stream(synth, basis="pca", color="time_point", save_path=output_dir / "velocity.png")
except ImportError as e:
    print(f"  [WARNING] Skipping velocity: {e}")
