"""K-means seed sampling for large cell populations."""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans

from .exceptions import InvalidArgumentError

DEFAULT_MAX_SEEDS = 40000


@dataclass(frozen=True)
class SeedSample:
    """
    Representative cells chosen for graph construction.

    Attributes
    ----------
    seeds : list of str
        Seed cell identities, ordered by cluster index.
    cluster_assignment : pd.Series
        1-based seed cluster of every input cell, in input row order.
    matrix : pd.DataFrame
        Coordinates of the seed cells, ordered like ``seeds``.
    """

    seeds: List[str]
    cluster_assignment: pd.Series
    matrix: pd.DataFrame

    @property
    def subsampled(self) -> bool:
        return len(self.seeds) < len(self.cluster_assignment)

    @property
    def n_seeds(self) -> int:
        return len(self.seeds)


def sample_seeds(matrix: pd.DataFrame,
                 max_size: int = DEFAULT_MAX_SEEDS,
                 random_state: Optional[int] = None,
                 n_init: int = 1) -> SeedSample:
    """
    Reduce a coordinate matrix to at most ``max_size`` seed cells.

    Up to ``max_size`` rows every cell is its own seed. Above that, k-means
    with ``max_size`` centers groups the cells, and the first cell of each
    cluster (in input row order) becomes that cluster's seed. Pseudotime is
    then only computed for seeds and shared by all members of a cluster, so
    large heterogeneous clusters lose resolution.

    Parameters
    ----------
    matrix : pd.DataFrame
        Cells as rows (indexed by identity), coordinates as columns.
    max_size : int, default=40000
        Maximum number of seeds.
    random_state : int, optional
        Seed for k-means initialisation.
    n_init : int, default=1
        Number of k-means initialisations.

    Returns
    -------
    SeedSample
    """
    if not isinstance(matrix, pd.DataFrame):
        raise InvalidArgumentError("matrix must be a DataFrame indexed by cell identity")
    if max_size < 1:
        raise InvalidArgumentError("max_size must be positive")

    n_cells = matrix.shape[0]

    if n_cells <= max_size:
        assignment = pd.Series(
            np.arange(1, n_cells + 1, dtype=np.int64), index=matrix.index, name="seed_cluster"
        )
        return SeedSample(seeds=list(matrix.index), cluster_assignment=assignment, matrix=matrix.copy())

    model = KMeans(n_clusters=max_size, n_init=n_init, random_state=random_state)
    labels = model.fit_predict(matrix.to_numpy(dtype=np.float64))

    # np.unique returns labels sorted with the index of their first occurrence
    _, first_rows = np.unique(labels, return_index=True)
    assignment = pd.Series(labels.astype(np.int64) + 1, index=matrix.index, name="seed_cluster")
    seed_matrix = matrix.iloc[first_rows]

    return SeedSample(seeds=list(seed_matrix.index), cluster_assignment=assignment, matrix=seed_matrix)
