"""
Custom exceptions for the normalization and synthesis pipeline.
"""


class BeliefMetaError(Exception):
    """Base exception for pipeline errors."""

    pass


class SchemaViolationError(BeliefMetaError):
    """Raised when the input table lacks a required column or numeric data.

    This is the only fatal error class; everything downstream degrades to
    per-record or per-analysis markers.
    """

    def __init__(self, message: str, columns: list[str] | None = None):
        super().__init__(message)
        self.columns = list(columns or [])


class InsufficientDataError(BeliefMetaError):
    """Raised when a model is requested on fewer observations than it needs."""

    def __init__(self, message: str, n: int = 0, required: int = 0):
        super().__init__(message)
        self.n = n
        self.required = required


class ModelFitError(BeliefMetaError):
    """Raised when an estimator fails to converge or hits a degenerate variance."""

    pass
