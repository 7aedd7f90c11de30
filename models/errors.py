"""Error types raised by ingestion and MKT calculation."""

from __future__ import annotations


class MktError(ValueError):
    """Base class for every failure surfaced to callers of the core."""


class IngestionError(MktError):
    """A file could not be turned into temperature readings."""


class UnsupportedFormatError(IngestionError):
    pass


class FileTooLargeError(IngestionError):
    pass


class ParseError(IngestionError):
    """The file body is malformed; ``cause`` holds the underlying exception."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NoValidReadingsError(IngestionError):
    pass


class CalculationError(MktError):
    pass


class EmptyInputError(CalculationError):
    pass


class InvalidActivationEnergyError(CalculationError):
    pass


class MktComputationError(CalculationError):
    """The exponential average produced a value MKT cannot be derived from."""


class StatisticsOverflowError(CalculationError):
    """Temperatures are too large in magnitude for finite statistics."""
