"""Appeal (recurso) aggregate.

An appeal links a decided, appealable first-instance judgment to the
second instance. It collects the opposing party's counter-argument
(contrarrazão) before the appellate judgment is opened.

State Machine:
    FILED -> AWAITING_COUNTER_ARGUMENT
    AWAITING_COUNTER_ARGUMENT -> COUNTER_ARGUMENT_RECEIVED | AWAITING_JUDGMENT
    COUNTER_ARGUMENT_RECEIVED -> AWAITING_JUDGMENT

AWAITING_COUNTER_ARGUMENT -> AWAITING_JUDGMENT is only allowed once the
counter-argument deadline has lapsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from contencioso.domain.errors.workflow import PreconditionViolationError
from contencioso.domain.models.audit_trail import AuditTrail


class AppealStatus(Enum):
    """Status of an appeal."""

    FILED = "FILED"
    AWAITING_COUNTER_ARGUMENT = "AWAITING_COUNTER_ARGUMENT"
    COUNTER_ARGUMENT_RECEIVED = "COUNTER_ARGUMENT_RECEIVED"
    AWAITING_JUDGMENT = "AWAITING_JUDGMENT"

    def valid_transitions(self) -> frozenset[AppealStatus]:
        return APPEAL_TRANSITION_MATRIX.get(self, frozenset())


APPEAL_TRANSITION_MATRIX: dict[AppealStatus, frozenset[AppealStatus]] = {
    AppealStatus.FILED: frozenset({AppealStatus.AWAITING_COUNTER_ARGUMENT}),
    AppealStatus.AWAITING_COUNTER_ARGUMENT: frozenset(
        {AppealStatus.COUNTER_ARGUMENT_RECEIVED, AppealStatus.AWAITING_JUDGMENT}
    ),
    AppealStatus.COUNTER_ARGUMENT_RECEIVED: frozenset(
        {AppealStatus.AWAITING_JUDGMENT}
    ),
    AppealStatus.AWAITING_JUDGMENT: frozenset(),
}


@dataclass(frozen=True, eq=True)
class AppealProcess:
    """A recurso against a first-instance judgment.

    Attributes:
        appeal_id: UUIDv7 identifier.
        case_id: Case under appeal.
        judgment_id: Originating first-instance judgment.
        appellant_id: Who appealed.
        filed_at: Filing instant.
        reasoning: Grounds of the appeal.
        counter_argument_deadline: Last instant for the counter-argument.
        audit: Composed audit trail.
        status: Current status.
        counter_argument_text: Contrarrazão text once received.
        counter_argument_author_id: Who presented it.
        counter_argument_received_at: When it was received.
        second_instance_judgment_id: Appellate judgment once opened.
        version: Optimistic concurrency token.
    """

    appeal_id: UUID
    case_id: UUID
    judgment_id: UUID
    appellant_id: UUID
    filed_at: datetime
    reasoning: str
    counter_argument_deadline: datetime
    audit: AuditTrail
    status: AppealStatus = field(default=AppealStatus.FILED)
    counter_argument_text: str | None = field(default=None)
    counter_argument_author_id: UUID | None = field(default=None)
    counter_argument_received_at: datetime | None = field(default=None)
    second_instance_judgment_id: UUID | None = field(default=None)
    version: int = field(default=1)

    def __post_init__(self) -> None:
        """Validate appeal invariants."""
        if not self.reasoning.strip():
            raise ValueError("Appeal reasoning must not be blank")
        if self.counter_argument_deadline < self.filed_at:
            raise ValueError("Counter-argument deadline cannot precede filing")

    @property
    def counter_argument_received(self) -> bool:
        return self.counter_argument_received_at is not None

    def require_status(self, operation: str, *expected: AppealStatus) -> None:
        """Raise PreconditionViolationError unless status is one of ``expected``."""
        if self.status not in expected:
            raise PreconditionViolationError(
                entity_id=self.appeal_id,
                current_state=self.status,
                expected_states=expected,
                operation=operation,
            )

    def with_status(
        self,
        new_status: AppealStatus,
        *,
        actor_id: UUID | None,
        at: datetime,
        **changes: Any,
    ) -> AppealProcess:
        """Return a new appeal in ``new_status``.

        Raises:
            PreconditionViolationError: If the matrix forbids the transition.
        """
        if new_status not in self.status.valid_transitions():
            sources = [
                status
                for status, targets in APPEAL_TRANSITION_MATRIX.items()
                if new_status in targets
            ]
            raise PreconditionViolationError(
                entity_id=self.appeal_id,
                current_state=self.status,
                expected_states=sources,
                operation=f"move appeal to {new_status.value}",
            )
        return replace(
            self,
            status=new_status,
            audit=self.audit.touched(actor_id, at),
            version=self.version + 1,
            **changes,
        )

    def with_second_instance(
        self, judgment_id: UUID, *, actor_id: UUID | None, at: datetime
    ) -> AppealProcess:
        """Return a new appeal linked to its appellate judgment."""
        self.require_status("open second instance for", AppealStatus.AWAITING_JUDGMENT)
        if self.second_instance_judgment_id is not None:
            raise PreconditionViolationError(
                entity_id=self.appeal_id,
                current_state=self.status,
                expected_states=(AppealStatus.AWAITING_JUDGMENT,),
                operation="open second instance for",
                detail=(
                    f"second instance {self.second_instance_judgment_id} "
                    "already opened"
                ),
            )
        return replace(
            self,
            second_instance_judgment_id=judgment_id,
            audit=self.audit.touched(actor_id, at),
            version=self.version + 1,
        )
