"""Exceptions and warning categories raised by cytotime."""


class CytotimeError(Exception):
    """Base class for all cytotime errors."""


class InvalidArgumentError(CytotimeError, ValueError):
    """Malformed selector, parameter or input structure."""


class EmptySelectionError(CytotimeError, ValueError):
    """A selector was well formed but matched no downsampled cells."""


class MissingObjectError(CytotimeError, ValueError):
    """No cell population was supplied."""


class NoRootCellsError(CytotimeError, ValueError):
    """Pseudotime was requested before any root cells were defined."""


class ReplaceWarning(UserWarning):
    """Existing results are being overwritten."""


class MissingPrerequisiteWarning(UserWarning):
    """A required earlier step has not been run; a default was used instead."""


class UnknownDimensionTypeWarning(UserWarning):
    """The requested coordinate space is unavailable; raw markers are used."""
