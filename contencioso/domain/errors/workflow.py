"""Workflow transition errors.

Three kinds of rejection are kept apart so callers can word their messages
accordingly:

- PreconditionViolationError: the aggregate is in the wrong state ("invalid")
- DeadlineExpiredError: the action came after a computed deadline ("late")
- CaseValidationError: a mandatory text or argument is missing or malformed

All are raised before any state is mutated.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from uuid import UUID

from contencioso.domain.exceptions import AdjudicationError


class PreconditionViolationError(AdjudicationError):
    """Raised when a transition is requested from the wrong state.

    Never auto-corrected: the caller must re-fetch current state and decide.

    Attributes:
        entity_id: ID of the case, judgment or appeal.
        current_state: State the entity is actually in.
        expected_states: States from which the operation is permitted.
        operation: Name of the rejected operation.
    """

    def __init__(
        self,
        entity_id: UUID,
        current_state: Enum,
        expected_states: Iterable[Enum],
        operation: str,
        detail: str | None = None,
    ) -> None:
        """Initialize PreconditionViolationError.

        Args:
            entity_id: ID of the entity.
            current_state: Its current state.
            expected_states: States the operation accepts.
            operation: The rejected operation.
            detail: Optional extra explanation.
        """
        self.entity_id = entity_id
        self.current_state = current_state
        self.expected_states = tuple(expected_states)
        self.operation = operation

        expected_str = ", ".join(s.value for s in self.expected_states) or "none"
        message = (
            f"Cannot {operation} {entity_id}: state is {current_state.value}, "
            f"expected one of [{expected_str}]"
        )
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)


class DeadlineExpiredError(AdjudicationError):
    """Raised when an action is attempted after its deadline.

    The deadline is the one stored when the phase opened, never a value
    recomputed at check time.

    Attributes:
        entity_id: ID of the case or appeal.
        deadline_name: Which deadline was missed (e.g. "defense").
        deadline: The deadline instant.
        attempted_at: When the action was attempted.
    """

    def __init__(
        self,
        entity_id: UUID,
        deadline_name: str,
        deadline: datetime,
        attempted_at: datetime,
    ) -> None:
        """Initialize DeadlineExpiredError.

        Args:
            entity_id: ID of the entity.
            deadline_name: Which deadline was missed.
            deadline: The deadline instant.
            attempted_at: When the action was attempted.
        """
        self.entity_id = entity_id
        self.deadline_name = deadline_name
        self.deadline = deadline
        self.attempted_at = attempted_at

        super().__init__(
            f"{deadline_name} deadline for {entity_id} expired at "
            f"{deadline.isoformat()} (attempted at {attempted_at.isoformat()})"
        )


class CaseValidationError(AdjudicationError):
    """Raised when mandatory input is missing or invalid.

    Attributes:
        field: Name of the offending field.
        reason: Why it was rejected.
    """

    def __init__(self, field: str, reason: str) -> None:
        """Initialize CaseValidationError.

        Args:
            field: Name of the offending field.
            reason: Why it was rejected.
        """
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


def require_text(field: str, value: str | None) -> str:
    """Return a stripped mandatory text or raise CaseValidationError."""
    if value is None or not value.strip():
        raise CaseValidationError(field, "must not be blank")
    return value.strip()
