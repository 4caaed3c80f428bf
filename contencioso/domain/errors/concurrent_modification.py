"""Concurrent modification error for optimistic version checks.

Every aggregate carries a ``version`` that increases by one per transition.
A commit that finds a different stored version than the one the caller read
is rejected as a whole.
"""

from __future__ import annotations

from uuid import UUID

from contencioso.domain.exceptions import AdjudicationError


class ConcurrentModificationError(AdjudicationError):
    """Raised when a commit loses an optimistic concurrency race.

    This is a recoverable error - the caller should re-read the aggregate
    and decide whether to retry or abort.

    Attributes:
        entity_id: UUID of the aggregate that was being modified.
        expected_version: Version the caller read (None for a new record).
        actual_version: Version found in storage (None if missing).
    """

    def __init__(
        self,
        entity_id: UUID,
        expected_version: int | None,
        actual_version: int | None,
    ) -> None:
        """Initialize concurrent modification error.

        Args:
            entity_id: UUID of the aggregate being modified.
            expected_version: Version the caller read (None for a new record).
            actual_version: Version found in storage.
        """
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Concurrent modification detected for {entity_id}: "
            f"expected version {expected_version}, found {actual_version}. "
            "Another request has modified this record."
        )
