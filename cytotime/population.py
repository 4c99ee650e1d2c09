"""Cell population registry built on AnnData."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import scipy.sparse as sp
from anndata import AnnData

from .dimensions import DimType
from .exceptions import InvalidArgumentError

CLUSTER_KEY = "cluster_id"
DOWNSAMPLE_KEY = "downsample"
ROOT_KEY = "is_root_cells"
LEAF_KEY = "is_leaf_cells"
PSEUDOTIME_KEY = "pseudotime"
SEED_FLAG_KEY = "seed_pseudotime"
SEED_CLUSTER_KEY = "core_pseudotime"
TRAJ_KEYS = ("traj_value", "traj_value_log")

ROOT_CELLS_UNS = "root_cells"
LEAF_CELLS_UNS = "leaf_cells"


class CellPopulation:
    """
    Immutable snapshot of per-cell metadata, marker expression and embeddings.

    Every operation that changes a population returns a new instance backed
    by a copy of the underlying AnnData, so earlier snapshots never change.

    Parameters
    ----------
    adata : AnnData
        Cells as observations and markers as variables. ``adata.X`` holds the
        (log-transformed) marker expression. ``obs`` may carry ``cluster_id``
        and ``downsample`` columns; missing ones default to 0 and True.

    Examples
    --------
    >>> pop = CellPopulation.from_arrays(expression, cells=names, cluster_id=labels)
    >>> pop = pop.with_embedding("umap", umap_table)
    >>> pop.downsampled_cells[:3]
    """

    def __init__(self, adata: AnnData) -> None:
        if not isinstance(adata, AnnData):
            raise InvalidArgumentError(f"Expected an AnnData object, got {type(adata)}")
        if not adata.obs_names.is_unique:
            raise InvalidArgumentError("Cell identities (obs_names) must be unique")

        adata = adata.copy()
        obs = adata.obs
        if CLUSTER_KEY not in obs:
            obs[CLUSTER_KEY] = 0
        obs[CLUSTER_KEY] = obs[CLUSTER_KEY].fillna(0).astype(np.int64)
        if DOWNSAMPLE_KEY not in obs:
            obs[DOWNSAMPLE_KEY] = True
        obs[DOWNSAMPLE_KEY] = obs[DOWNSAMPLE_KEY].fillna(False).astype(bool)
        for key in (ROOT_KEY, LEAF_KEY):
            if key not in obs:
                obs[key] = False
            obs[key] = obs[key].astype(bool)
        for key in (ROOT_CELLS_UNS, LEAF_CELLS_UNS):
            adata.uns[key] = list(adata.uns.get(key, []))

        self._adata = adata

    @classmethod
    def _wrap(cls, adata: AnnData) -> "CellPopulation":
        # adata is already validated and owned by the new snapshot
        population = cls.__new__(cls)
        population._adata = adata
        return population

    @classmethod
    def from_arrays(cls,
                    expression,
                    cells: Optional[Sequence[str]] = None,
                    markers: Optional[Sequence[str]] = None,
                    cluster_id: Optional[Sequence[int]] = None,
                    downsample: Optional[Sequence[bool]] = None) -> "CellPopulation":
        """
        Build a population from an expression matrix and per-cell vectors.

        ``expression`` may be a DataFrame (its index and columns are used as
        cell and marker names unless given), a numpy array or a sparse matrix.
        """
        if isinstance(expression, pd.DataFrame):
            cells = expression.index if cells is None else cells
            markers = expression.columns if markers is None else markers
            expression = expression.values

        n_cells, n_markers = expression.shape
        if cells is None:
            cells = [f"cell_{i}" for i in range(n_cells)]
        if markers is None:
            markers = [f"marker_{i}" for i in range(n_markers)]

        obs = pd.DataFrame(index=pd.Index([str(c) for c in cells]))
        if cluster_id is not None:
            obs[CLUSTER_KEY] = np.asarray(cluster_id)
        if downsample is not None:
            obs[DOWNSAMPLE_KEY] = np.asarray(downsample, dtype=bool)
        var = pd.DataFrame(index=pd.Index([str(m) for m in markers]))

        if not sp.issparse(expression):
            expression = np.asarray(expression, dtype=np.float32)
        return cls(AnnData(X=expression, obs=obs, var=var))

    @property
    def adata(self) -> AnnData:
        """The backing AnnData. Treat as read-only; use :meth:`copy` to edit."""
        return self._adata

    def copy(self) -> "CellPopulation":
        return self._wrap(self._adata.copy())

    # Lookup queries

    @property
    def cells(self) -> List[str]:
        return list(self._adata.obs_names)

    @property
    def n_cells(self) -> int:
        return self._adata.n_obs

    @property
    def obs(self) -> pd.DataFrame:
        return self._adata.obs

    @property
    def downsample_mask(self) -> np.ndarray:
        return self.obs[DOWNSAMPLE_KEY].to_numpy(dtype=bool)

    @property
    def downsampled_cells(self) -> List[str]:
        return list(self._adata.obs_names[self.downsample_mask])

    @property
    def root_cells(self) -> List[str]:
        return list(self._adata.uns[ROOT_CELLS_UNS])

    @property
    def leaf_cells(self) -> List[str]:
        return list(self._adata.uns[LEAF_CELLS_UNS])

    @property
    def has_pseudotime(self) -> bool:
        return PSEUDOTIME_KEY in self.obs.columns

    @property
    def pseudotime(self) -> Optional[pd.Series]:
        if not self.has_pseudotime:
            return None
        return self.obs[PSEUDOTIME_KEY].copy()

    def known_cells(self, cells: Iterable[str]) -> List[str]:
        """Registry-ordered subset of ``cells`` that exist in the population."""
        wanted = set(cells)
        return [c for c in self._adata.obs_names if c in wanted]

    def cells_in_clusters(self, cluster_ids: Iterable[int]) -> List[str]:
        mask = self.obs[CLUSTER_KEY].isin(list(cluster_ids)).to_numpy()
        return list(self._adata.obs_names[mask])

    def is_downsampled(self, cells: Iterable[str]) -> np.ndarray:
        flags = self.obs[DOWNSAMPLE_KEY]
        return np.array([bool(flags.get(c, False)) for c in cells], dtype=bool)

    def has_embedding(self, dim_type: Union[DimType, str]) -> bool:
        dim = DimType.parse(dim_type)
        if dim is None:
            return False
        if dim is DimType.RAW:
            return True
        return dim.obsm_key in self._adata.obsm

    def marker_matrix(self) -> pd.DataFrame:
        """Expression of all markers for the downsampled cells."""
        mask = self.downsample_mask
        X = self._adata.X[mask]
        if sp.issparse(X):
            X = X.toarray()
        return pd.DataFrame(
            np.asarray(X, dtype=np.float64),
            index=self._adata.obs_names[mask],
            columns=self._adata.var_names,
        )

    def embedding(self, dim_type: Union[DimType, str], dim_use: Sequence[int]) -> pd.DataFrame:
        """
        Embedding coordinates of the downsampled cells.

        Parameters
        ----------
        dim_type : DimType or str
            Any embedding type except raw.
        dim_use : sequence of int
            1-based dimension indices, e.g. ``(1, 2)`` selects ``UMAP_1, UMAP_2``.

        Raises
        ------
        InvalidArgumentError
            If the table is absent, requested columns are missing, or any
            downsampled cell lacks coordinates.
        """
        dim = DimType.parse(dim_type)
        if dim is None or dim is DimType.RAW:
            raise InvalidArgumentError(f"'{dim_type}' is not an embedding type")
        if dim.obsm_key not in self._adata.obsm:
            raise InvalidArgumentError(f"No {dim.value} embedding in adata.obsm['{dim.obsm_key}']")

        table = self._adata.obsm[dim.obsm_key]
        columns = dim.column_names(dim_use)
        missing = [c for c in columns if c not in table.columns]
        if missing:
            raise InvalidArgumentError(
                f"Dimensions {missing} not found in {dim.value} embedding. "
                f"Available: {list(table.columns)}"
            )

        mat = table.loc[self.downsample_mask, columns].astype(np.float64)
        if mat.isna().to_numpy().any():
            n_missing = int(mat.isna().any(axis=1).sum())
            raise InvalidArgumentError(
                f"{n_missing} downsampled cells have no {dim.value} coordinates"
            )
        return mat

    def to_frame(self) -> pd.DataFrame:
        """Per-cell metadata with a leading ``cell`` column, ready for joins."""
        frame = self.obs.copy()
        frame.insert(0, "cell", self._adata.obs_names.to_numpy())
        return frame

    # Builders returning new snapshots

    def with_embedding(self, dim_type: Union[DimType, str], table) -> "CellPopulation":
        """
        Return a copy carrying an embedding table.

        ``table`` is a DataFrame indexed by cell identity with columns named
        after the embedding convention (``PC_1``, ``tSNE_2``, ...), or an
        array with one row per downsampled cell, in which case the columns
        are named automatically.
        """
        dim = DimType.parse(dim_type)
        if dim is None or dim is DimType.RAW:
            raise InvalidArgumentError(f"'{dim_type}' is not an embedding type")

        if not isinstance(table, pd.DataFrame):
            values = np.asarray(table, dtype=np.float64)
            if values.ndim != 2:
                raise InvalidArgumentError("Embedding must be two-dimensional")
            index = self.downsampled_cells if values.shape[0] != self.n_cells else self.cells
            if values.shape[0] != len(index):
                raise InvalidArgumentError(
                    f"Embedding has {values.shape[0]} rows; expected {self.n_cells} "
                    f"cells or {len(self.downsampled_cells)} downsampled cells"
                )
            table = pd.DataFrame(
                values,
                index=index,
                columns=dim.column_names(range(1, values.shape[1] + 1)),
            )

        unknown = table.index.difference(self._adata.obs_names)
        if len(unknown) > 0:
            raise InvalidArgumentError(
                f"Embedding contains {len(unknown)} unknown cells: {list(unknown[:5])}"
            )

        adata = self._adata.copy()
        adata.obsm[dim.obsm_key] = table.reindex(adata.obs_names).astype(np.float64)
        return self._wrap(adata)

    def _updated(self, obs: Optional[dict] = None, uns: Optional[dict] = None) -> "CellPopulation":
        """Copy with the given obs columns and uns entries replaced."""
        adata = self._adata.copy()
        for key, values in (obs or {}).items():
            adata.obs[key] = values
        for key, value in (uns or {}).items():
            adata.uns[key] = value
        return self._wrap(adata)


@dataclass(frozen=True)
class StageResult:
    """
    Output of one pipeline stage.

    Attributes
    ----------
    population : CellPopulation
        The new snapshot.
    fallbacks : tuple of str
        Default policies applied instead of failing, e.g.
        ``"pseudotime_cutoff_ignored"`` or ``"dim_type_missing"``.
    """

    population: CellPopulation
    fallbacks: Tuple[str, ...] = ()
