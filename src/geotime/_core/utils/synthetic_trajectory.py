import numpy as np
import pandas as pd

"""
Synthetic Branching Trajectories
Count data generated along a trunk that splits into branches, with known time and branch labels.

=== MODULE API INVENTORY ===

MAIN FUNCTIONS:
 generate_trajectory_data(n_cells, n_genes, *, n_branches=2, n_time_points=3, branch_point=0.4,
                          disconnected_cells=0, noise=0.1, seed=1205) -> (counts, obs, var, unspliced)
    Purpose: Poisson counts whose means follow trunk / branch gene programs along true time
    Outputs: counts (n_cells x n_genes), obs with 'true_time', 'branch', 'time_point',
             var with 'gene_short_name', unspliced counts for velocity layers

GENE PROGRAMS:
 Trunk genes: high at time 0, decaying along the trunk
 Branch genes: one block per branch, rising after the branch point on that branch only
 Isolated genes: expressed only by the disconnected population
 Housekeeping genes: constant

DATA GENERATION PROCESS:
 Time sampling -> branch assignment -> program activities -> size factors (lognormal, sigma=noise)
 -> Poisson counts -> binomial thinning for unspliced counts
"""


def generate_trajectory_data(
    n_cells: int,
    n_genes: int,
    *,
    n_branches: int = 2,
    n_time_points: int = 3,
    branch_point: float = 0.4,
    disconnected_cells: int = 0,
    noise: float = 0.1,
    seed: int = 1205,
):
    if n_branches < 1:
        raise ValueError("n_branches must be at least 1")
    if n_time_points < 1:
        raise ValueError("n_time_points must be at least 1")
    if not 0 < branch_point < 1:
        raise ValueError("branch_point must lie in (0, 1)")
    n_blocks = n_branches + 2 + (1 if disconnected_cells else 0)
    if n_genes < n_blocks:
        raise ValueError(f"n_genes must be at least {n_blocks} for {n_branches} branches")

    rng = np.random.default_rng(seed)

    true_time = np.sort(rng.uniform(0.0, 1.0, n_cells))
    branch_idx = np.where(true_time > branch_point, rng.integers(0, n_branches, n_cells), -1)

    # gene blocks: trunk | branch_1 .. branch_n | isolated | housekeeping
    block_sizes = np.full(n_blocks, n_genes // n_blocks)
    block_sizes[-1] += n_genes - block_sizes.sum()
    bounds = np.concatenate([[0], np.cumsum(block_sizes)])

    activity = np.zeros((n_cells + disconnected_cells, n_genes))
    trunk = slice(bounds[0], bounds[1])
    activity[:n_cells, trunk] = np.exp(-3.0 * true_time)[:, None]
    for b in range(n_branches):
        genes = slice(bounds[b + 1], bounds[b + 2])
        on_branch = branch_idx == b
        progress = (true_time[on_branch] - branch_point) / (1.0 - branch_point)
        activity[np.flatnonzero(on_branch), genes] = progress[:, None]
    if disconnected_cells:
        isolated = slice(bounds[n_branches + 1], bounds[n_branches + 2])
        activity[n_cells:, isolated] = 1.0
    activity[:, bounds[-2] : bounds[-1]] = 0.5

    size_factors = rng.lognormal(mean=0.0, sigma=noise, size=(len(activity), 1))
    means = 0.5 + 20.0 * activity * size_factors
    counts = rng.poisson(means).astype(np.float32)
    unspliced = rng.binomial(counts.astype(np.int64), 0.3).astype(np.float32)

    labels = [f"day{i}" for i in range(n_time_points)]
    time_bins = np.minimum((true_time * n_time_points).astype(int), n_time_points - 1)
    branch_names = np.where(branch_idx < 0, "trunk", np.char.add("branch_", (branch_idx + 1).astype(str)))

    obs = pd.DataFrame(
        {
            "true_time": np.concatenate([true_time, np.full(disconnected_cells, np.nan)]),
            "branch": np.concatenate([branch_names, np.full(disconnected_cells, "isolated")]),
            "time_point": pd.Categorical(
                np.concatenate([np.asarray(labels)[time_bins], np.full(disconnected_cells, labels[-1])]),
                categories=labels,
                ordered=True,
            ),
        },
        index=[f"Cell_{i}" for i in range(n_cells + disconnected_cells)],
    )
    obs["branch"] = obs["branch"].astype("category")

    var = pd.DataFrame(
        {"gene_short_name": [f"GENE{i + 1}" for i in range(n_genes)]},
        index=[f"G{i + 1:05d}" for i in range(n_genes)],
    )

    return counts, obs, var, unspliced
