"""Configuration classes for pseudotime estimation."""

from dataclasses import dataclass
from typing import Optional, Sequence

from .exceptions import InvalidArgumentError
from .graph import GraphMode
from .sampling import DEFAULT_MAX_SEEDS


@dataclass
class PseudotimeConfig:
    """
    Configuration for pseudotime estimation.

    Parameters
    ----------
    n_neighbors : int, default=30
        Number of nearest neighbors per cell in the KNN graph.
    max_seeds : int, default=40000
        Above this many downsampled cells, k-means picks this many seed
        cells and pseudotime is propagated from seeds to their clusters.
    mode : str, default='undirected'
        How KNN relations become edges. Options: 'directed', 'undirected',
        'upper', 'lower', 'max', 'min', 'plus'.
    dim_type : str, default='raw'
        Coordinate space: 'raw', 'pca', 'tsne', 'dc' or 'umap' (common
        spellings such as 't-SNE' or 'diffusionmap' are accepted).
        Unknown or unavailable spaces fall back to 'raw'.
    dim_use : sequence of int, default=(1, 2)
        1-based embedding dimensions to use. Ignored for 'raw', which uses
        all markers.
    knn_algorithm : str, default='auto'
        Neighbor search algorithm passed to scikit-learn.
    kmeans_n_init : int, default=1
        Number of k-means initialisations when seed sampling is active.
    random_state : int, optional
        Random state for reproducible seed sampling.
    verbose : bool, default=False
        Print progress messages.
    """

    n_neighbors: int = 30
    max_seeds: int = DEFAULT_MAX_SEEDS
    mode: str = 'undirected'
    dim_type: str = 'raw'
    dim_use: Sequence[int] = (1, 2)
    knn_algorithm: str = 'auto'
    kmeans_n_init: int = 1
    random_state: Optional[int] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.n_neighbors < 1:
            raise InvalidArgumentError("n_neighbors must be positive")

        if self.max_seeds < 1:
            raise InvalidArgumentError("max_seeds must be positive")

        # raises on unknown modes
        GraphMode.parse(self.mode)

        self.dim_use = tuple(self.dim_use)
        if len(self.dim_use) == 0:
            raise InvalidArgumentError("dim_use must not be empty")
        if any(int(i) != i or i < 1 for i in self.dim_use):
            raise InvalidArgumentError(f"dim_use must hold 1-based integers, got {self.dim_use}")
        self.dim_use = tuple(int(i) for i in self.dim_use)

        if self.kmeans_n_init < 1:
            raise InvalidArgumentError("kmeans_n_init must be positive")
