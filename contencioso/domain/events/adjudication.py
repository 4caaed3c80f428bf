"""Adjudication domain events.

One event is emitted per successful transition of a case, judgment or
appeal. Events are plain frozen values; the sink decides how to transport
them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

# Event type constants
CASE_FILED_EVENT_TYPE: str = "adjudication.case.filed"
CASE_TRANSITIONED_EVENT_TYPE: str = "adjudication.case.transitioned"
CASE_RELATOR_DESIGNATED_EVENT_TYPE: str = "adjudication.case.relator_designated"
CASE_ARCHIVED_EVENT_TYPE: str = "adjudication.case.archived"
JUDGMENT_SCHEDULED_EVENT_TYPE: str = "adjudication.judgment.scheduled"
JUDGMENT_TRANSITIONED_EVENT_TYPE: str = "adjudication.judgment.transitioned"
JUDGMENT_VOTE_RECORDED_EVENT_TYPE: str = "adjudication.judgment.vote_recorded"
JUDGMENT_DECIDED_EVENT_TYPE: str = "adjudication.judgment.decided"
APPEAL_FILED_EVENT_TYPE: str = "adjudication.appeal.filed"
APPEAL_TRANSITIONED_EVENT_TYPE: str = "adjudication.appeal.transitioned"

# Schema version for adjudication events
ADJUDICATION_EVENT_SCHEMA_VERSION: str = "1.0.0"


@dataclass(frozen=True, eq=True)
class AdjudicationEvent:
    """Event emitted when an adjudication aggregate changes.

    Attributes:
        event_type: One of the event type constants above.
        case_id: Case the event belongs to.
        status: Status value of the aggregate after the change.
        occurred_at: When the change happened (from the time authority).
        deadline: Deadline opened by the change, if any.
        judgment_id: Judgment involved, if any.
        appeal_id: Appeal involved, if any.
        actor_id: Who triggered the change (None for system).
        payload: Extra event-specific data (JSON-serializable values).
        schema_version: Schema version of the dict representation.
    """

    event_type: str
    case_id: UUID
    status: str
    occurred_at: datetime
    deadline: datetime | None = None
    judgment_id: UUID | None = None
    appeal_id: UUID | None = None
    actor_id: UUID | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    schema_version: str = field(default=ADJUDICATION_EVENT_SCHEMA_VERSION, init=False)

    def __hash__(self) -> int:
        return hash((self.event_type, self.case_id, self.status, self.occurred_at))

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dict for transport.

        Returns:
            Dict representation with ISO timestamps and string UUIDs.
        """
        return {
            "event_type": self.event_type,
            "case_id": str(self.case_id),
            "status": self.status,
            "occurred_at": self.occurred_at.isoformat(),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "judgment_id": str(self.judgment_id) if self.judgment_id else None,
            "appeal_id": str(self.appeal_id) if self.appeal_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "payload": dict(self.payload),
            "schema_version": self.schema_version,
        }

    def to_json(self) -> str:
        """Canonical JSON rendering of ``to_dict``."""
        return json.dumps(self.to_dict(), sort_keys=True, default=str)
