"""
Exceptions raised by linecov.
"""


class CoverageError(Exception):
    """Base class for all linecov errors."""


class ArgumentError(CoverageError, TypeError):
    """Raised when a filter is given neither a string, a predicate nor a Filter."""


class DuplicateFileError(CoverageError):
    """Raised when two source files in one result share a path."""

    def __init__(self, path: str):
        super().__init__(f"Duplicate coverage data for {path}")
        self.path = path


class InvalidInputError(CoverageError, ValueError):
    """Raised when a file's line records are malformed."""


class NoActiveSessionError(CoverageError):
    """Raised when a result is requested but coverage was never started."""


class FormatterNotConfiguredError(CoverageError):
    """Raised when a report is requested without a formatter."""
