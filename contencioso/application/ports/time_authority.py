"""Time Authority Protocol - the only source of current time.

Business methods never call ``datetime.now()``. Deadlines are compared
against the instant returned by the injected authority, so tests can drive
the whole legal calendar with a FakeTimeAuthority.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyWorkflow:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()
                ...

    For production:
        Use SystemTimeAuthority from contencioso.infrastructure.adapters

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current time with timezone awareness (UTC recommended)."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return current UTC time as a timezone-aware datetime."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic clock value for measuring elapsed time.

        Only differences between values are meaningful.
        """
        ...
