"""
Custom exceptions for the MultiSpec core.
Ensures that errors are specific and fail loudly before any parallel work starts.
"""

class MultiSpecError(Exception):
    """Base class for all MultiSpec custom exceptions."""
    pass

class InvalidBufferError(MultiSpecError, ValueError):
    """Raised when an input buffer is missing, empty or not an 8-bit 3-channel raster."""
    pass

class InvalidShiftError(MultiSpecError, ValueError):
    """
    Raised when the row shift cannot be applied to the composite.

    Attributes:
        shift: The requested shift
        height: Height of the composite the shift was checked against
    """

    def __init__(self, shift, height: int, reason: str):
        self.shift = shift
        self.height = height
        super().__init__(f"Invalid shift {shift!r} for composite height {height}: {reason}")

class MergeExecutionError(MultiSpecError, RuntimeError):
    """
    Raised when a work item fails during the parallel merge phase.

    The composite is discarded; the first failing band is recorded and the
    original exception is chained as ``__cause__``.
    """

    def __init__(self, row_start: int, row_stop: int, reason: str):
        self.row_start = row_start
        self.row_stop = row_stop
        super().__init__(f"Merge failed for rows [{row_start}, {row_stop}): {reason}")

class MergeCancelledError(MultiSpecError, RuntimeError):
    """Raised when a merge is aborted through its cancellation event."""
    pass

class ConfigurationError(MultiSpecError, ValueError):
    """Raised when a configuration value is out of range."""
    pass
