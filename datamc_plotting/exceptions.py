#!/usr/bin/env python3
"""
Custom exceptions for the data/MC plotting package

All custom exceptions inherit from DataMCPlotError so callers can catch
every plotting-specific error with a single except clause.
"""


class DataMCPlotError(Exception):
    """Base exception for all data/MC plotting errors"""
    pass


class NotFoundError(DataMCPlotError):
    """
    Raised when the input histograms cannot be located

    Base class of SourceUnavailableError and LocationNotFoundError.
    """
    pass


class SourceUnavailableError(NotFoundError):
    """
    Raised when the source container cannot be opened

    Examples:
    - File not found
    - Corrupted or non-ROOT file
    """
    def __init__(self, source: str, reason: str = None):
        self.source = source

        message = f"Source file \"{source}\" is corrupted or is not a valid ROOT file."
        if reason:
            message += f" ({reason})"

        super().__init__(message)


class LocationNotFoundError(NotFoundError):
    """Raised when the requested directory does not exist in the source"""
    def __init__(self, source: str, location: str):
        self.source = source
        self.location = location
        super().__init__(f"Source file \"{source}\" does not contain a directory \"{location}\".")


class MissingDataError(DataMCPlotError):
    """Raised when no one-dimensional "data" histogram is found"""
    def __init__(self, source: str, location: str):
        self.source = source
        self.location = location
        super().__init__(f"Failed to find data histogram in file \"{source}\", "
                         f"directory \"{location}\".")


class MissingSimulationError(DataMCPlotError):
    """Raised when no eligible MC histogram is found"""
    def __init__(self, source: str, location: str):
        self.source = source
        self.location = location
        super().__init__(f"Failed to find any MC histograms in file \"{source}\", "
                         f"directory \"{location}\".")


class DivideByZeroError(DataMCPlotError, ZeroDivisionError):
    """
    Raised when the normalization denominator is zero

    Examples:
    - All MC histograms are empty
    - Positive and negative MC weights cancel exactly
    """
    pass


class IllegalStateError(DataMCPlotError, RuntimeError):
    """
    Raised when an operation is invoked out of sequence

    Examples:
    - Adding a label before the figure is drawn
    - Normalizing after the figure is drawn
    """
    pass


class InvalidConfigurationError(DataMCPlotError, ValueError):
    """
    Raised when layout or label configuration is nonsensical

    Examples:
    - Residual fraction outside (0, 1)
    - Pads wider than the canvas
    - Unknown label kind
    """
    pass


class IncompatibleBinningError(DataMCPlotError, ValueError):
    """Raised when data and MC histograms of one directory have different bin edges"""
    def __init__(self, source: str, location: str, name: str):
        self.source = source
        self.location = location
        self.name = name
        super().__init__(f"Histogram \"{name}\" and data have different binning in file "
                         f"\"{source}\", directory \"{location}\".")
