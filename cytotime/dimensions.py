"""Coordinate spaces that pseudotime can be computed in."""

from enum import Enum
from typing import Optional

from .exceptions import InvalidArgumentError


class DimType(Enum):
    """
    Coordinate space used to build the neighbor graph.

    Each embedding is stored in ``adata.obsm[obsm_key]`` as a DataFrame whose
    columns are named ``f"{prefix}_{i}"`` with 1-based ``i``.
    """

    RAW = "raw"
    PCA = "pca"
    TSNE = "tsne"
    DC = "dc"
    UMAP = "umap"

    @property
    def prefix(self) -> Optional[str]:
        return _PREFIXES[self]

    @property
    def obsm_key(self) -> Optional[str]:
        if self is DimType.RAW:
            return None
        return f"X_{self.value}"

    def column_names(self, dim_use) -> list:
        """Column names for the 1-based dimension indices in ``dim_use``."""
        if self is DimType.RAW:
            raise InvalidArgumentError("Raw marker space has no embedding columns")
        return [f"{self.prefix}_{i}" for i in dim_use]

    @classmethod
    def parse(cls, value) -> Optional["DimType"]:
        """
        Resolve a user-facing name to a DimType.

        Parameters
        ----------
        value : DimType or str
            A member, or one of the accepted spellings (``"t-SNE"``,
            ``"diffusionmap"``, ``"u"``, ...).

        Returns
        -------
        DimType or None
            None when the name is not recognised.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        return _SYNONYMS.get(value.strip())


_PREFIXES = {
    DimType.RAW: None,
    DimType.PCA: "PC",
    DimType.TSNE: "tSNE",
    DimType.DC: "DC",
    DimType.UMAP: "UMAP",
}

_SYNONYMS = {
    "raw": DimType.RAW,
    "pca": DimType.PCA,
    "PCA": DimType.PCA,
    "p": DimType.PCA,
    "tsne": DimType.TSNE,
    "tSNE": DimType.TSNE,
    "TSNE": DimType.TSNE,
    "t-SNE": DimType.TSNE,
    "t_SNE": DimType.TSNE,
    "t": DimType.TSNE,
    "dc": DimType.DC,
    "diffusionmap": DimType.DC,
    "diffusion-map": DimType.DC,
    "destiny": DimType.DC,
    "d": DimType.DC,
    "umap": DimType.UMAP,
    "UMAP": DimType.UMAP,
    "u": DimType.UMAP,
}
