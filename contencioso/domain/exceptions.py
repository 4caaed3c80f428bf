"""Base exception classes for the adjudication domain layer."""


class AdjudicationError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so that
    callers (API handlers, scheduled jobs) can tell business-rule rejections
    apart from infrastructure failures.

    Business errors are local and synchronous. The engine never retries
    them; the caller decides whether to re-fetch state, surface the reason
    to a human reviewer, or abort.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
