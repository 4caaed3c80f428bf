"""In-memory adjudication repository stub.

Provides a thread-safe, in-memory implementation of
AdjudicationRepositoryProtocol for tests and development. Not suitable for
production: everything is lost on restart.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

from contencioso.application.ports.adjudication_repository import (
    AdjudicationChangeSet,
    AdjudicationRepositoryProtocol,
    PendingWrite,
)
from contencioso.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)

if TYPE_CHECKING:
    from contencioso.domain.models.appeal_process import AppealProcess
    from contencioso.domain.models.case_record import CaseKind, CaseRecord
    from contencioso.domain.models.judgment_process import JudgmentProcess

T = TypeVar("T")


class AdjudicationRepositoryStub(AdjudicationRepositoryProtocol):
    """In-memory storage of cases, judgments and appeals (testing only).

    ``commit`` validates every expected version before writing anything, so
    a conflicting change set leaves storage untouched.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._cases: dict[UUID, CaseRecord] = {}
        self._judgments: dict[UUID, JudgmentProcess] = {}
        self._appeals: dict[UUID, AppealProcess] = {}
        self._sequences: dict[tuple[CaseKind, int], int] = {}
        self._lock = threading.Lock()
        self.commit_count = 0

    def clear(self) -> None:
        """Clear all stored aggregates (for test cleanup)."""
        with self._lock:
            self._cases.clear()
            self._judgments.clear()
            self._appeals.clear()
            self._sequences.clear()
            self.commit_count = 0

    def get_case(self, case_id: UUID) -> CaseRecord | None:
        with self._lock:
            return self._cases.get(case_id)

    def get_judgment(self, judgment_id: UUID) -> JudgmentProcess | None:
        with self._lock:
            return self._judgments.get(judgment_id)

    def get_appeal(self, appeal_id: UUID) -> AppealProcess | None:
        with self._lock:
            return self._appeals.get(appeal_id)

    def list_judgments(self, case_id: UUID) -> list[JudgmentProcess]:
        """Return judgments of a case ordered by creation time."""
        with self._lock:
            judgments = [j for j in self._judgments.values() if j.case_id == case_id]
        return sorted(judgments, key=lambda j: j.audit.created_at)

    def next_sequence(self, kind: CaseKind, year: int) -> int:
        with self._lock:
            current = self._sequences.get((kind, year), 0) + 1
            self._sequences[(kind, year)] = current
            return current

    def commit(self, change_set: AdjudicationChangeSet) -> None:
        """Apply every write or none of them.

        Raises:
            ConcurrentModificationError: On the first version mismatch.
        """
        with self._lock:
            self._check(change_set.cases, self._cases, lambda c: c.case_id)
            self._check(change_set.judgments, self._judgments, lambda j: j.judgment_id)
            self._check(change_set.appeals, self._appeals, lambda a: a.appeal_id)
            for write in change_set.cases:
                self._cases[write.entity.case_id] = write.entity
            for write in change_set.judgments:
                self._judgments[write.entity.judgment_id] = write.entity
            for write in change_set.appeals:
                self._appeals[write.entity.appeal_id] = write.entity
            self.commit_count += 1

    @staticmethod
    def _check(
        writes: Sequence[PendingWrite[T]],
        storage: dict[UUID, T],
        key: Callable[[T], UUID],
    ) -> None:
        for write in writes:
            entity_id = key(write.entity)
            stored = storage.get(entity_id)
            actual = getattr(stored, "version", None) if stored is not None else None
            if actual != write.expected_version:
                raise ConcurrentModificationError(
                    entity_id=entity_id,
                    expected_version=write.expected_version,
                    actual_version=actual,
                )
