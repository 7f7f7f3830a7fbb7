"""Failure kinds reported by the candidate pipeline."""

from typing import Optional


class PipelineError(RuntimeError):
    """Base class for failures captured as the session's last error."""


class InvalidQuery(PipelineError):
    """The search request could not be built from the given arguments."""


class TransportFailure(PipelineError):
    """The search service could not be reached."""


class UpstreamRejected(PipelineError):
    """The search service answered with a non-success status (auth failures included)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(PipelineError):
    """The search response did not match the expected schema."""


class LocationUnavailable(PipelineError):
    """No reference coordinate could be obtained."""
