"""Audit trail value object.

Attached to each aggregate by composition rather than inherited from a
shared base entity, so unrelated aggregates do not share a hierarchy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, eq=True)
class AuditTrail:
    """Who created and last touched an aggregate, and when.

    Attributes:
        created_by: Actor that created the aggregate (None for system).
        created_at: Creation instant (UTC).
        updated_by: Actor of the latest change (None for system).
        updated_at: Instant of the latest change (UTC).
    """

    created_by: UUID | None
    created_at: datetime
    updated_by: UUID | None
    updated_at: datetime

    @classmethod
    def started(cls, by: UUID | None, at: datetime) -> AuditTrail:
        """Create the trail for a freshly created aggregate."""
        return cls(created_by=by, created_at=at, updated_by=by, updated_at=at)

    def touched(self, by: UUID | None, at: datetime) -> AuditTrail:
        """Return a copy recording a new change."""
        return AuditTrail(
            created_by=self.created_by,
            created_at=self.created_at,
            updated_by=by,
            updated_at=at,
        )
