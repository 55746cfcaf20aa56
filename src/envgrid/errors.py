"""Exception hierarchy for environmental layer loading and querying.

All of these are fatal for a model run: they indicate a setup problem with
the input data or a caller querying outside a layer's coverage. Missing data
is not an error and is reported through QueryResult.is_missing instead.
"""


class EnviroDataError(Exception):
    """Base class for all envgrid errors."""


class LoadError(EnviroDataError, ValueError):
    """A source file could not be turned into a canonical grid."""


class UnsupportedFormatError(LoadError):
    """Encoding, source kind or temporal resolution is not supported."""


class CoverageError(EnviroDataError, ValueError):
    """A query cell or time index lies outside the layer's coverage."""


class WindowNotLoadedError(EnviroDataError, RuntimeError):
    """A temporal layer was queried before any window was loaded."""
