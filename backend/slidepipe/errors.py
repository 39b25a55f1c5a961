"""Error taxonomy for the slideshow pipeline.

Every failure the orchestrator reports is one of these classes. Each carries
a machine-readable ``kind``, a user-facing ``message``, optional ``details``
(usually the underlying cause) and a ``recoverable`` flag telling the caller
whether a plain retry is allowed or a full reset is required first.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all reported pipeline errors."""

    kind: str = "PipelineError"
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        *,
        recoverable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if recoverable is not None:
            self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ValidationError(PipelineError):
    """Input failed format or size constraints."""

    kind = "ValidationError"
    recoverable = True


class InvalidInputError(ValidationError):
    """A numeric argument to a pure planner function is out of range."""

    kind = "InvalidInputError"


class PipelineBusyError(ValidationError):
    """A run was requested while another run owns the engine."""

    kind = "PipelineBusyError"


class MediaDecodeError(PipelineError):
    """The primary audio duration could not be probed."""

    kind = "MediaDecodeError"
    recoverable = True


class InitializationError(PipelineError):
    """The media engine failed to load. Requires an explicit reset."""

    kind = "InitializationError"
    recoverable = False


class ProcessingFailedError(PipelineError):
    """A staging, render, mix, mux or extraction stage failed."""

    kind = "ProcessingFailed"
    recoverable = True


class UnsupportedTransitionError(PipelineError):
    """Transition kind outside the closed enumeration."""

    kind = "UnsupportedTransitionError"
    recoverable = False
