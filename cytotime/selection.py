"""Definition of root and leaf cells."""

import numbers
import warnings
from collections.abc import Iterable, Mapping
from typing import List

import numpy as np

from .exceptions import EmptySelectionError, InvalidArgumentError, MissingObjectError
from .exceptions import MissingPrerequisiteWarning, ReplaceWarning
from .population import (
    CellPopulation,
    LEAF_CELLS_UNS,
    LEAF_KEY,
    PSEUDOTIME_KEY,
    ROOT_CELLS_UNS,
    ROOT_KEY,
    StageResult,
)


def _is_cluster_id(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


def _resolve_selector(population: CellPopulation, selector, name: str) -> List[str]:
    """
    Turn cell identities or cluster ids into downsampled cell identities.

    Strings are matched against cell identities, integers against
    ``cluster_id``. A selector must be all strings or all integers.
    """
    if isinstance(selector, str) or _is_cluster_id(selector):
        values = [selector]
    elif isinstance(selector, Iterable) and not isinstance(selector, (Mapping, bytes)):
        values = list(selector)
    else:
        raise InvalidArgumentError(
            f"{name} must be cell names or cluster ids, got {type(selector).__name__}"
        )

    if len(values) == 0:
        raise EmptySelectionError(f"{name} is empty")

    if all(isinstance(v, str) for v in values):
        candidates = population.known_cells(values)
    elif all(_is_cluster_id(v) for v in values):
        candidates = population.cells_in_clusters(int(v) for v in values)
    else:
        raise InvalidArgumentError(
            f"Invalid {name}: expected only cell names (str) or only cluster ids (int)"
        )

    # topology is only defined over downsampled cells
    keep = population.is_downsampled(candidates)
    return [cell for cell, flag in zip(candidates, keep) if flag]


def _require_population(population) -> None:
    if population is None:
        raise MissingObjectError("Cell population is missing")
    if not isinstance(population, CellPopulation):
        raise InvalidArgumentError(
            f"Expected a CellPopulation, got {type(population).__name__}"
        )


def define_root_cells(population: CellPopulation, root_cells, verbose: bool = False) -> StageResult:
    """
    Mark the cells that pseudotime is measured from.

    Parameters
    ----------
    population : CellPopulation
        Input snapshot; it is not modified.
    root_cells : str, int or sequence
        Cell identities, or cluster ids whose cells all become roots.
    verbose : bool, default=False
        Print how many cells were selected.

    Returns
    -------
    StageResult
        New snapshot with ``is_root_cells`` and ``root_cells`` replaced.

    Raises
    ------
    InvalidArgumentError
        If ``root_cells`` mixes or uses unsupported types.
    EmptySelectionError
        If no downsampled cell matches.

    Examples
    --------
    >>> pop = define_root_cells(pop, root_cells=6).population
    >>> pop = define_root_cells(pop, root_cells=["c1", "c2"]).population
    """
    _require_population(population)
    selected = _resolve_selector(population, root_cells, "root_cells")
    if len(selected) == 0:
        raise EmptySelectionError("root_cells are not among the downsampled cells")

    if population.root_cells:
        warnings.warn("root_cells already exist, they will be replaced", ReplaceWarning, stacklevel=2)

    flags = population.adata.obs_names.isin(selected)
    updated = population._updated(obs={ROOT_KEY: flags}, uns={ROOT_CELLS_UNS: selected})

    if verbose:
        print(f"{len(selected)} cells will be added to root_cells")

    return StageResult(updated)


def define_leaf_cells(population: CellPopulation,
                      leaf_cells,
                      pseudotime_cutoff: float = 0,
                      verbose: bool = False) -> StageResult:
    """
    Mark terminal cells, optionally keeping only late ones.

    Parameters
    ----------
    population : CellPopulation
        Input snapshot; it is not modified.
    leaf_cells : str, int or sequence
        Cell identities or cluster ids.
    pseudotime_cutoff : float, default=0
        Only candidates with ``pseudotime >= pseudotime_cutoff`` are kept.
        Ignored, with a :class:`MissingPrerequisiteWarning`, when pseudotime
        has not been computed yet.
    verbose : bool, default=False
        Print how many cells were selected.

    Returns
    -------
    StageResult
        New snapshot with ``is_leaf_cells`` and ``leaf_cells`` replaced.
        ``fallbacks`` contains ``"pseudotime_cutoff_ignored"`` when the
        cutoff could not be applied.
    """
    _require_population(population)
    if not isinstance(pseudotime_cutoff, numbers.Real) or isinstance(pseudotime_cutoff, bool):
        raise InvalidArgumentError("pseudotime_cutoff must be a number")
    if pseudotime_cutoff < 0:
        raise InvalidArgumentError("pseudotime_cutoff must be non-negative")

    selected = _resolve_selector(population, leaf_cells, "leaf_cells")
    fallbacks = []

    if pseudotime_cutoff > 0 and not population.has_pseudotime:
        warnings.warn(
            "pseudotime has not been computed, pseudotime_cutoff is ignored. "
            "Run estimate_pseudotime first.",
            MissingPrerequisiteWarning,
            stacklevel=2,
        )
        pseudotime_cutoff = 0
        fallbacks.append("pseudotime_cutoff_ignored")

    if population.has_pseudotime:
        pst = population.obs[PSEUDOTIME_KEY]
        # NaN (unreachable) never passes the comparison
        selected = [cell for cell in selected if pst[cell] >= pseudotime_cutoff]

    if len(selected) == 0:
        raise EmptySelectionError("leaf_cells are not among the downsampled cells")

    if population.leaf_cells:
        warnings.warn("leaf_cells already exist, they will be replaced", ReplaceWarning, stacklevel=2)

    flags = population.adata.obs_names.isin(selected)
    updated = population._updated(obs={LEAF_KEY: flags}, uns={LEAF_CELLS_UNS: selected})

    if verbose:
        print(f"{len(selected)} cells will be added to leaf_cells")

    return StageResult(updated, tuple(fallbacks))
