"""Core pseudotime estimation."""

import warnings
from typing import Callable, List, Optional

import numpy as np
import pandas as pd
import scipy.sparse as sp
from scipy.sparse.csgraph import shortest_path

from .config import PseudotimeConfig
from .dimensions import DimType
from .exceptions import InvalidArgumentError, MissingObjectError, NoRootCellsError
from .exceptions import ReplaceWarning, UnknownDimensionTypeWarning
from .graph import build_graph, compute_knn_index
from .population import (
    CellPopulation,
    PSEUDOTIME_KEY,
    SEED_CLUSTER_KEY,
    SEED_FLAG_KEY,
    StageResult,
    TRAJ_KEYS,
)
from .sampling import SeedSample, sample_seeds


class PseudotimeEstimator:
    """
    Pseudotime from shortest paths on a k-nearest-neighbor graph.

    Each cell's pseudotime is its mean hop distance to the root cells,
    min-max scaled to [0, 1]. For large populations the graph is built on
    k-means seed cells and every cell inherits the value of its seed.

    Parameters
    ----------
    config : PseudotimeConfig, optional
        Algorithm parameters.
    knn_provider : callable, optional
        ``knn_provider(matrix) -> knn_index`` returning neighbor row
        positions ``(n, k)`` or a table of neighbor identities indexed by
        cell. Defaults to :func:`compute_knn_index` with the configured
        ``n_neighbors``.

    Examples
    --------
    >>> config = PseudotimeConfig(dim_type='umap', dim_use=(1, 2))
    >>> result = PseudotimeEstimator(config).estimate(population)
    >>> result.population.pseudotime.describe()
    """

    def __init__(self,
                 config: Optional[PseudotimeConfig] = None,
                 knn_provider: Optional[Callable] = None) -> None:
        self.config = config or PseudotimeConfig()
        self.knn_provider = knn_provider

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    def _select_matrix(self, population: CellPopulation, fallbacks: List[str]) -> pd.DataFrame:
        """Coordinates of the downsampled cells in the configured space."""
        dim = DimType.parse(self.config.dim_type)

        if dim is None:
            warnings.warn(
                f"Unknown dim_type '{self.config.dim_type}', raw marker expression will be used",
                UnknownDimensionTypeWarning,
                stacklevel=3,
            )
            fallbacks.append("dim_type_unknown")
            dim = DimType.RAW
        elif not population.has_embedding(dim):
            warnings.warn(
                f"No {dim.value} embedding found, raw marker expression will be used",
                UnknownDimensionTypeWarning,
                stacklevel=3,
            )
            fallbacks.append("dim_type_missing")
            dim = DimType.RAW

        if dim is DimType.RAW:
            self._log("The marker expression data will be used to calculate pseudotime")
            return population.marker_matrix()
        return population.embedding(dim, self.config.dim_use)

    def _sample(self, matrix: pd.DataFrame) -> SeedSample:
        sample = sample_seeds(
            matrix,
            max_size=self.config.max_seeds,
            random_state=self.config.random_state,
            n_init=self.config.kmeans_n_init,
        )
        if sample.subsampled:
            self._log(f"Sampled {sample.n_seeds} seed cells from {matrix.shape[0]} cells with k-means")
        return sample

    def _build_graph(self, sample: SeedSample) -> sp.csr_matrix:
        if self.knn_provider is not None:
            knn_index = self.knn_provider(sample.matrix)
        else:
            knn_index = compute_knn_index(
                sample.matrix,
                n_neighbors=self.config.n_neighbors,
                algorithm=self.config.knn_algorithm,
            )
        if len(knn_index) != sample.n_seeds:
            raise InvalidArgumentError(
                f"KNN index has {len(knn_index)} rows for {sample.n_seeds} seed cells"
            )
        if isinstance(knn_index, pd.DataFrame):
            if set(knn_index.index) != set(sample.seeds):
                raise InvalidArgumentError("KNN index rows must be exactly the seed cells")
            # graph node i must be sample.seeds[i]
            knn_index = knn_index.reindex(sample.seeds)
        return build_graph(knn_index, mode=self.config.mode)

    def _root_positions(self,
                        population: CellPopulation,
                        sample: SeedSample,
                        fallbacks: List[str]) -> List[int]:
        """Graph node positions of the root cells that are seeds."""
        seed_pos = {cell: i for i, cell in enumerate(sample.seeds)}
        roots = population.root_cells
        positions = [seed_pos[cell] for cell in roots if cell in seed_pos]
        if positions:
            return positions

        # subsampling dropped every root; stand in with their clusters' seeds
        root_clusters = set(sample.cluster_assignment.reindex(roots).dropna().astype(np.int64))
        positions = [
            i for i, cell in enumerate(sample.seeds)
            if sample.cluster_assignment[cell] in root_clusters
        ]
        if not positions:
            raise NoRootCellsError("None of the root cells are among the downsampled cells")

        warnings.warn(
            "No root cell was chosen as a seed; the seeds of the root cells' clusters are used",
            UserWarning,
            stacklevel=3,
        )
        fallbacks.append("root_cells_from_seed_clusters")
        return positions

    def _root_distances(self, graph: sp.csr_matrix, root_positions: List[int]) -> np.ndarray:
        """
        Hop distances from every root to every node, NaN where unreachable.

        Edge direction is ignored when walking the graph.
        """
        dist = shortest_path(
            graph, method='D', directed=False, unweighted=True, indices=root_positions
        )
        dist = np.atleast_2d(dist)
        dist[~np.isfinite(dist)] = np.nan
        return dist

    def _aggregate(self, distances: np.ndarray) -> np.ndarray:
        """Per-node mean over reachable roots; NaN when no root is reachable."""
        reachable = ~np.isnan(distances)
        counts = reachable.sum(axis=0)
        sums = np.where(reachable, distances, 0.0).sum(axis=0)

        aggregated = np.full(distances.shape[1], np.nan)
        np.divide(sums, counts, out=aggregated, where=counts > 0)
        return aggregated

    def _normalize(self, values: np.ndarray) -> np.ndarray:
        """Min-max scale the defined values to [0, 1]; all-equal values map to 0."""
        result = values.copy()
        defined = ~np.isnan(values)
        if not defined.any():
            return result

        low = values[defined].min()
        span = values[defined].max() - low
        if span > 0:
            result[defined] = (values[defined] - low) / span
        else:
            result[defined] = 0.0
        return result

    def estimate(self, population: CellPopulation) -> StageResult:
        """
        Compute pseudotime for every downsampled cell.

        Steps:
        1. Select coordinates (embedding or raw markers)
        2. Sample seed cells when the population is large
        3. Build the KNN graph over the seeds
        4. Measure hop distances from the root cells
        5. Average over roots, scale to [0, 1] and spread to seed clusters

        Parameters
        ----------
        population : CellPopulation
            Snapshot with root cells defined. It is not modified.

        Returns
        -------
        StageResult
            New snapshot with ``pseudotime``, ``seed_pseudotime`` and
            ``core_pseudotime`` written and ``traj_value`` /
            ``traj_value_log`` reset to 0. Cells no root can reach keep
            NaN pseudotime; cells outside the downsample get 0.

        Raises
        ------
        MissingObjectError
            If ``population`` is None.
        NoRootCellsError
            If no root cells are defined.
        """
        if population is None:
            raise MissingObjectError("Cell population is missing")
        if not isinstance(population, CellPopulation):
            raise InvalidArgumentError(
                f"Expected a CellPopulation, got {type(population).__name__}"
            )
        if not population.root_cells:
            raise NoRootCellsError("No root cells defined. Run define_root_cells first.")

        self._log("Calculating pseudotime")
        if population.has_pseudotime:
            warnings.warn("pseudotime already exists, it will be replaced", ReplaceWarning, stacklevel=2)

        fallbacks: List[str] = []
        matrix = self._select_matrix(population, fallbacks)
        sample = self._sample(matrix)
        graph = self._build_graph(sample)
        root_positions = self._root_positions(population, sample, fallbacks)

        distances = self._root_distances(graph, root_positions)
        seed_pseudotime = self._normalize(self._aggregate(distances))

        n_missing = int(np.isnan(seed_pseudotime).sum())
        if n_missing:
            self._log(f"{n_missing} seed cells are not connected to any root cell")

        # every cell takes the value of its cluster's seed
        assignment = sample.cluster_assignment
        seed_clusters = assignment.loc[sample.seeds].to_numpy()
        by_cluster = pd.Series(seed_pseudotime, index=seed_clusters)
        cell_pseudotime = by_cluster.reindex(assignment.to_numpy()).to_numpy()

        obs_names = population.adata.obs_names
        pseudotime = pd.Series(0.0, index=obs_names)
        pseudotime.loc[assignment.index] = cell_pseudotime
        seed_cluster = pd.Series(0, index=obs_names, dtype=np.int64)
        seed_cluster.loc[assignment.index] = assignment.to_numpy()

        columns = {
            PSEUDOTIME_KEY: pseudotime.to_numpy(),
            SEED_FLAG_KEY: obs_names.isin(sample.seeds),
            SEED_CLUSTER_KEY: seed_cluster.to_numpy(),
        }
        for key in TRAJ_KEYS:
            columns[key] = 0.0

        self._log("Calculating pseudotime completed")
        return StageResult(population._updated(obs=columns), tuple(fallbacks))


def estimate_pseudotime(population: CellPopulation,
                        dim_type: str = 'raw',
                        dim_use=(1, 2),
                        mode: str = 'undirected',
                        verbose: bool = False,
                        knn_provider: Optional[Callable] = None,
                        **kwargs) -> StageResult:
    """
    Compute pseudotime with a one-off :class:`PseudotimeEstimator`.

    Extra keyword arguments are passed to :class:`PseudotimeConfig`
    (``n_neighbors``, ``max_seeds``, ``random_state``, ...).

    Examples
    --------
    >>> result = estimate_pseudotime(pop, dim_type='umap', dim_use=(1, 2))
    >>> result = estimate_pseudotime(pop, dim_type='dc', dim_use=(1, 2, 3), n_neighbors=15)
    """
    config = PseudotimeConfig(dim_type=dim_type, dim_use=dim_use, mode=mode, verbose=verbose, **kwargs)
    return PseudotimeEstimator(config, knn_provider=knn_provider).estimate(population)
