"""
Exception types raised while printing SV evidence.

Configuration problems are detected before anything is written to the
destination. Read and write failures are left as the `OSError` raised by the
underlying file objects and are never wrapped.
"""


class SvEvidenceError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SvEvidenceError):
    """Unsupported record type, malformed interval or unusable path."""


class MalformedRecordError(SvEvidenceError):
    """An evidence line that cannot be decoded by its codec."""

    def __init__(self, message: str, line: str | None = None) -> None:
        if line is not None:
            message = f"{message}: {line.rstrip()!r}"
        super().__init__(message)
        self.line = line


class InvariantViolation(SvEvidenceError):
    """A collaborator broke its contract. Indicates a defect, not user error."""


class SinkStateError(InvariantViolation):
    """A write or close on an output sink in the wrong lifecycle state."""


class TraversalError(InvariantViolation):
    """A single-pass evidence source was traversed more than once."""


class IndexFinalizationError(SvEvidenceError):
    """The coordinate index could not be built when closing an indexed sink."""
