"""K-nearest-neighbor index and neighbor graph construction."""

from enum import Enum
from typing import Union

import numpy as np
import pandas as pd
import scipy.sparse as sp
from sklearn.neighbors import NearestNeighbors

from .exceptions import InvalidArgumentError


class GraphMode(Enum):
    """How the asymmetric KNN relation is turned into graph edges."""

    DIRECTED = "directed"
    UNDIRECTED = "undirected"
    UPPER = "upper"
    LOWER = "lower"
    MAX = "max"
    MIN = "min"
    PLUS = "plus"

    @classmethod
    def parse(cls, value) -> "GraphMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = [m.value for m in cls]
            raise InvalidArgumentError(f"mode must be one of {valid}, got {value!r}") from None


def compute_knn_index(matrix: Union[pd.DataFrame, np.ndarray],
                      n_neighbors: int = 30,
                      algorithm: str = "auto") -> np.ndarray:
    """
    Find the nearest neighbors of every row.

    Parameters
    ----------
    matrix : pd.DataFrame or np.ndarray
        Cells as rows.
    n_neighbors : int, default=30
        Neighbors per cell; capped at ``n_cells - 1``.
    algorithm : str, default='auto'
        Passed to :class:`sklearn.neighbors.NearestNeighbors`.

    Returns
    -------
    np.ndarray
        ``(n_cells, k)`` row positions of each cell's neighbors, nearest
        first, never containing the cell itself.
    """
    values = matrix.to_numpy(dtype=np.float64) if isinstance(matrix, pd.DataFrame) else np.asarray(matrix, dtype=np.float64)
    n_cells = values.shape[0]
    k = min(n_neighbors, n_cells - 1)
    if k < 1:
        return np.empty((n_cells, 0), dtype=np.int64)

    nn = NearestNeighbors(n_neighbors=k, algorithm=algorithm).fit(values)
    # without a query matrix each point is excluded from its own neighbors
    return nn.kneighbors(return_distance=False).astype(np.int64)


def _knn_positions(knn_index) -> np.ndarray:
    """Convert an identity-valued KNN table to row positions."""
    if isinstance(knn_index, pd.DataFrame):
        names = knn_index.index
        positions = names.get_indexer(knn_index.to_numpy().ravel())
        if (positions < 0).any():
            unknown = knn_index.to_numpy().ravel()[positions < 0]
            raise InvalidArgumentError(
                f"KNN index refers to {len(set(unknown))} cells that are not rows of the index"
            )
        return positions.reshape(knn_index.shape)

    positions = np.asarray(knn_index)
    if positions.ndim != 2:
        raise InvalidArgumentError("knn_index must be two-dimensional")
    if positions.size and not np.issubdtype(positions.dtype, np.integer):
        raise InvalidArgumentError("knn_index must hold integer row positions")
    if positions.size and (positions.min() < 0 or positions.max() >= positions.shape[0]):
        raise InvalidArgumentError("knn_index holds positions outside the matrix")
    return positions


def build_graph(knn_index, mode: Union[GraphMode, str] = GraphMode.UNDIRECTED) -> sp.csr_matrix:
    """
    Build an unweighted adjacency matrix from a KNN index.

    Entry ``(i, j)`` of the raw relation is 1 when ``j`` is among the
    nearest neighbors of ``i``. ``mode`` then decides which pairs become
    edges:

    - ``directed``: the raw relation
    - ``undirected``, ``max``, ``plus``: either direction
    - ``min``: both directions
    - ``upper`` / ``lower``: only pairs from the upper / lower triangle,
      mirrored

    Self-loops are removed.

    Parameters
    ----------
    knn_index : np.ndarray or pd.DataFrame
        Integer row positions of shape ``(n, k)``, or a table indexed by
        cell identity whose values are neighbor identities.
    mode : GraphMode or str, default='undirected'

    Returns
    -------
    scipy.sparse.csr_matrix
        ``(n, n)`` matrix of 0/1 edge indicators.
    """
    mode = GraphMode.parse(mode)
    positions = _knn_positions(knn_index)
    n_cells, k = positions.shape

    rows = np.repeat(np.arange(n_cells), k)
    cols = positions.ravel()
    adj = sp.csr_matrix(
        (np.ones(rows.size, dtype=np.float64), (rows, cols)), shape=(n_cells, n_cells)
    )
    # duplicate neighbors are summed by the constructor
    adj.data[:] = 1.0

    if mode is GraphMode.DIRECTED:
        graph = adj
    elif mode in (GraphMode.UNDIRECTED, GraphMode.MAX, GraphMode.PLUS):
        graph = adj.maximum(adj.T)
    elif mode is GraphMode.MIN:
        graph = adj.minimum(adj.T)
    elif mode is GraphMode.UPPER:
        upper = sp.triu(adj, k=1)
        graph = upper + upper.T
    else:
        lower = sp.tril(adj, k=-1)
        graph = lower + lower.T

    graph = sp.csr_matrix(graph)
    graph = graph - sp.diags(graph.diagonal())
    graph.eliminate_zeros()
    return sp.csr_matrix(graph)
