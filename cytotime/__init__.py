"""
cytotime: KNN-graph pseudotime for cytometry data

Orders single cells along a developmental progression by their shortest-path
distance to user-chosen root cells on a k-nearest-neighbor graph. Works on
AnnData objects that already carry marker expression and, optionally,
precomputed embeddings (PCA, t-SNE, diffusion map, UMAP); users handle
their own preprocessing, clustering and dimensionality reduction.

Examples
--------
>>> import cytotime as ct
>>>
>>> # Cells x markers, with cluster labels from an upstream clustering step
>>> pop = ct.CellPopulation(adata)
>>> pop = pop.with_embedding('umap', umap_table)
>>>
>>> pop = ct.define_root_cells(pop, root_cells=6).population
>>> result = ct.estimate_pseudotime(pop, dim_type='umap', dim_use=(1, 2))
>>> pop = result.population
>>>
>>> # Leaf cells among late cells of clusters 1 and 3
>>> pop = ct.define_leaf_cells(pop, leaf_cells=[1, 3], pseudotime_cutoff=0.8).population
>>> pop.to_frame()[['cluster_id', 'pseudotime', 'is_leaf_cells']]
"""

from .config import PseudotimeConfig
from .core import PseudotimeEstimator, estimate_pseudotime
from .dimensions import DimType
from .exceptions import (
    CytotimeError,
    EmptySelectionError,
    InvalidArgumentError,
    MissingObjectError,
    MissingPrerequisiteWarning,
    NoRootCellsError,
    ReplaceWarning,
    UnknownDimensionTypeWarning,
)
from .graph import GraphMode, build_graph, compute_knn_index
from .population import CellPopulation, StageResult
from .sampling import SeedSample, sample_seeds
from .selection import define_leaf_cells, define_root_cells

__version__ = "0.1.0"

__all__ = [
    "CellPopulation",
    "StageResult",
    "PseudotimeConfig",
    "PseudotimeEstimator",
    "estimate_pseudotime",
    "define_root_cells",
    "define_leaf_cells",
    "DimType",
    "GraphMode",
    "build_graph",
    "compute_knn_index",
    "SeedSample",
    "sample_seeds",
    "CytotimeError",
    "InvalidArgumentError",
    "EmptySelectionError",
    "MissingObjectError",
    "NoRootCellsError",
    "ReplaceWarning",
    "MissingPrerequisiteWarning",
    "UnknownDimensionTypeWarning",
]
