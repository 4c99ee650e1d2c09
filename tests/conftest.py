"""Shared fixtures for cytotime tests."""

import numpy as np
import pandas as pd
import pytest
from anndata import AnnData

import cytotime as ct


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture
def path_population():
    """
    Five cells on a line with growing gaps.

    With one neighbor per cell the undirected KNN graph is the path
    A-B-C-D-E.
    """
    coords = np.array([[0.0], [1.0], [2.1], [3.3], [4.6]])
    return ct.CellPopulation.from_arrays(
        coords,
        cells=["A", "B", "C", "D", "E"],
        markers=["CD34"],
        cluster_id=[1, 1, 2, 2, 3],
    )


@pytest.fixture
def split_population():
    """Two far-apart pairs, {A, B} and {C, D}."""
    coords = np.array([[0.0], [1.0], [100.0], [101.0]])
    return ct.CellPopulation.from_arrays(
        coords,
        cells=["A", "B", "C", "D"],
        markers=["CD34"],
        cluster_id=[1, 1, 2, 2],
    )


@pytest.fixture
def curve_adata():
    """60 cells along a noisy line in two markers; every 10th cell not downsampled."""
    rng = np.random.default_rng(42)
    n_cells = 60
    x = np.linspace(0, 10, n_cells)
    y = rng.normal(0, 0.05, n_cells)
    X = np.column_stack([x, y]).astype(np.float32)

    obs = pd.DataFrame(index=[f"cell_{i:03d}" for i in range(n_cells)])
    obs["cluster_id"] = 1 + np.arange(n_cells) // 20
    obs["downsample"] = np.arange(n_cells) % 10 != 9
    var = pd.DataFrame(index=["CD34", "CD38"])
    return AnnData(X=X, obs=obs, var=var)


@pytest.fixture
def curve_population(curve_adata):
    return ct.CellPopulation(curve_adata)


@pytest.fixture
def rooted_curve(curve_population):
    """Curve population rooted at its first five cells."""
    roots = [f"cell_{i:03d}" for i in range(5)]
    return ct.define_root_cells(curve_population, roots).population
