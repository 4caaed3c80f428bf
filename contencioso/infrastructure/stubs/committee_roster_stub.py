"""In-memory committee roster stub.

Lets tests seat and remove members between votes to exercise the
"roster is re-read at decision time" behavior.
"""

from __future__ import annotations

import threading
from uuid import UUID

from contencioso.application.ports.committee_roster import CommitteeRosterProtocol
from contencioso.domain.errors.not_found import CommitteeNotFoundError
from contencioso.domain.models.committee import Committee, CommitteeScope


class CommitteeRosterStub(CommitteeRosterProtocol):
    """In-memory committee rosters (testing only)."""

    def __init__(self) -> None:
        self._committees: dict[UUID, Committee] = {}
        self._lock = threading.Lock()
        self.lookups = 0

    def add_committee(
        self,
        committee_id: UUID,
        scope: CommitteeScope,
        member_ids: list[UUID] | tuple[UUID, ...],
    ) -> Committee:
        """Register (or replace) a committee with the given active members."""
        committee = Committee(
            committee_id=committee_id,
            scope=scope,
            active_member_ids=tuple(member_ids),
        )
        with self._lock:
            self._committees[committee_id] = committee
        return committee

    def remove_member(self, committee_id: UUID, member_id: UUID) -> Committee:
        """Drop a member from the active roster."""
        with self._lock:
            current = self._require(committee_id)
            updated = Committee(
                committee_id=committee_id,
                scope=current.scope,
                active_member_ids=tuple(
                    m for m in current.active_member_ids if m != member_id
                ),
            )
            self._committees[committee_id] = updated
            return updated

    def get_committee(self, committee_id: UUID) -> Committee:
        with self._lock:
            self.lookups += 1
            return self._require(committee_id)

    def _require(self, committee_id: UUID) -> Committee:
        committee = self._committees.get(committee_id)
        if committee is None:
            raise CommitteeNotFoundError(committee_id)
        return committee
