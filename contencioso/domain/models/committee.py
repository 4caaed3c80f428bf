"""Electoral committee roster as seen by the adjudication engine.

Committee membership is owned by committee-management functionality outside
this package. The engine only reads a snapshot, fetched fresh each time a
vote is cast or a decision is taken.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class CommitteeScope(Enum):
    """Jurisdiction of an electoral committee.

    Scopes:
        NATIONAL: National electoral committee (5 seats)
        STATE: State-level electoral committee (3 seats)
    """

    NATIONAL = "NATIONAL"
    STATE = "STATE"

    @property
    def required_members(self) -> int:
        """Number of seats the committee is composed of."""
        return REQUIRED_MEMBERS_BY_SCOPE[self]


REQUIRED_MEMBERS_BY_SCOPE: dict[CommitteeScope, int] = {
    CommitteeScope.NATIONAL: 5,
    CommitteeScope.STATE: 3,
}


@dataclass(frozen=True, eq=True)
class Committee:
    """Read-only snapshot of a committee's active roster.

    Attributes:
        committee_id: Committee identifier.
        scope: National or state committee.
        active_member_ids: Ordered, duplicate-free tuple of active members.
    """

    committee_id: UUID
    scope: CommitteeScope
    active_member_ids: tuple[UUID, ...]

    def __post_init__(self) -> None:
        """Validate roster invariants."""
        if len(set(self.active_member_ids)) != len(self.active_member_ids):
            raise ValueError("active_member_ids must not contain duplicates")

    @property
    def active_count(self) -> int:
        """Number of active members right now."""
        return len(self.active_member_ids)

    @property
    def minimum_active_members(self) -> int:
        """Smallest active roster that may still take decisions (simple majority of seats)."""
        return math.ceil(self.scope.required_members / 2)

    def is_active_member(self, member_id: UUID) -> bool:
        """Check whether a member currently sits on the committee."""
        return member_id in self.active_member_ids
