"""Adjudication repository port.

Persistence of cases, judgments and appeals. The adjudication service reads
aggregates, applies one transition in memory, and hands every changed
aggregate to ``commit`` in a single change set. The repository applies the
change set atomically: if any entity's stored version differs from the
version the caller read, nothing is written.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from uuid import UUID

    from contencioso.domain.models.appeal_process import AppealProcess
    from contencioso.domain.models.case_record import CaseKind, CaseRecord
    from contencioso.domain.models.judgment_process import JudgmentProcess

T = TypeVar("T")


@dataclass(frozen=True, eq=True)
class PendingWrite(Generic[T]):
    """An aggregate to store together with the version it was read at.

    Attributes:
        entity: New state of the aggregate.
        expected_version: Version currently stored, or None if the
            aggregate must not exist yet.
    """

    entity: T
    expected_version: int | None


@dataclass(frozen=True, eq=True)
class AdjudicationChangeSet:
    """All writes produced by one transition, committed together."""

    cases: tuple[PendingWrite[CaseRecord], ...] = field(default_factory=tuple)
    judgments: tuple[PendingWrite[JudgmentProcess], ...] = field(default_factory=tuple)
    appeals: tuple[PendingWrite[AppealProcess], ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.cases or self.judgments or self.appeals)


class AdjudicationRepositoryProtocol(Protocol):
    """Protocol for adjudication persistence.

    Implementations must make ``commit`` all-or-nothing and must hand out
    strictly increasing sequence numbers per (kind, year).
    """

    @abstractmethod
    def get_case(self, case_id: UUID) -> CaseRecord | None:
        """Return the case or None if unknown."""
        ...

    @abstractmethod
    def get_judgment(self, judgment_id: UUID) -> JudgmentProcess | None:
        """Return the judgment or None if unknown."""
        ...

    @abstractmethod
    def get_appeal(self, appeal_id: UUID) -> AppealProcess | None:
        """Return the appeal or None if unknown."""
        ...

    @abstractmethod
    def list_judgments(self, case_id: UUID) -> list[JudgmentProcess]:
        """Return all judgments of a case, oldest first."""
        ...

    @abstractmethod
    def next_sequence(self, kind: CaseKind, year: int) -> int:
        """Reserve the next protocol sequence number for ``kind`` in ``year``."""
        ...

    @abstractmethod
    def commit(self, change_set: AdjudicationChangeSet) -> None:
        """Atomically store every write in ``change_set``.

        Raises:
            ConcurrentModificationError: If any expected version does not
                match storage. Nothing is written in that case.
        """
        ...
