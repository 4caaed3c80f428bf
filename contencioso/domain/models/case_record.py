"""Case record aggregate for electoral disputes.

A case record is one denúncia (ethics complaint) or impugnação (candidacy or
result challenge). It holds the current status, the phase data filled in as
the legal process advances, and the append-only history of transitions.

State Machine:
    RECEIVED -> UNDER_REVIEW -> ADMISSIBLE | INADMISSIBLE
    ADMISSIBLE -> AWAITING_DEFENSE -> DEFENSE_RECEIVED -> EVIDENCE_PERIOD_OPEN
    EVIDENCE_PERIOD_OPEN -> HEARING_SCHEDULED -> CLOSING_ARGUMENTS_PERIOD
    CLOSING_ARGUMENTS_PERIOD -> AWAITING_JUDGMENT -> JUDGED
    JUDGED -> EM_RECURSO | ARCHIVED
    JUDGED -> AWAITING_JUDGMENT (first-instance judgment annulled)
    EM_RECURSO -> ARCHIVED
    INADMISSIBLE -> ARCHIVED
    any non-terminal state -> ARCHIVED (administrative archive)

The record is frozen. Transitions return a new instance with one more
history entry and ``version + 1``; a rejected transition therefore never
leaves a partially updated record behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from contencioso.domain.errors.workflow import (
    CaseValidationError,
    PreconditionViolationError,
)
from contencioso.domain.models.audit_trail import AuditTrail


class CaseKind(Enum):
    """Kind of electoral dispute.

    Kinds:
        DENUNCIA: Ethics complaint
        IMPUGNACAO: Challenge to a candidacy or an election result
    """

    DENUNCIA = "DENUNCIA"
    IMPUGNACAO = "IMPUGNACAO"

    @property
    def protocol_prefix(self) -> str:
        """Prefix used in protocol strings (DEN / IMP)."""
        return PROTOCOL_PREFIXES[self]


PROTOCOL_PREFIXES: dict[CaseKind, str] = {
    CaseKind.DENUNCIA: "DEN",
    CaseKind.IMPUGNACAO: "IMP",
}


class CaseStatus(Enum):
    """Status in the case lifecycle."""

    RECEIVED = "RECEIVED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ADMISSIBLE = "ADMISSIBLE"
    INADMISSIBLE = "INADMISSIBLE"
    AWAITING_DEFENSE = "AWAITING_DEFENSE"
    DEFENSE_RECEIVED = "DEFENSE_RECEIVED"
    EVIDENCE_PERIOD_OPEN = "EVIDENCE_PERIOD_OPEN"
    HEARING_SCHEDULED = "HEARING_SCHEDULED"
    CLOSING_ARGUMENTS_PERIOD = "CLOSING_ARGUMENTS_PERIOD"
    AWAITING_JUDGMENT = "AWAITING_JUDGMENT"
    JUDGED = "JUDGED"
    EM_RECURSO = "EM_RECURSO"
    ARCHIVED = "ARCHIVED"

    def is_terminal(self) -> bool:
        """ARCHIVED is the only terminal status."""
        return self == CaseStatus.ARCHIVED

    def valid_transitions(self) -> frozenset[CaseStatus]:
        """Statuses reachable from this one in a single step."""
        return CASE_TRANSITION_MATRIX.get(self, frozenset())


def _with_archive(*targets: CaseStatus) -> frozenset[CaseStatus]:
    return frozenset({*targets, CaseStatus.ARCHIVED})


CASE_TRANSITION_MATRIX: dict[CaseStatus, frozenset[CaseStatus]] = {
    CaseStatus.RECEIVED: _with_archive(CaseStatus.UNDER_REVIEW),
    CaseStatus.UNDER_REVIEW: _with_archive(
        CaseStatus.ADMISSIBLE, CaseStatus.INADMISSIBLE
    ),
    CaseStatus.ADMISSIBLE: _with_archive(CaseStatus.AWAITING_DEFENSE),
    # Inadmissible is terminal-equivalent: its only exit is the archive
    CaseStatus.INADMISSIBLE: _with_archive(),
    CaseStatus.AWAITING_DEFENSE: _with_archive(CaseStatus.DEFENSE_RECEIVED),
    CaseStatus.DEFENSE_RECEIVED: _with_archive(CaseStatus.EVIDENCE_PERIOD_OPEN),
    CaseStatus.EVIDENCE_PERIOD_OPEN: _with_archive(CaseStatus.HEARING_SCHEDULED),
    CaseStatus.HEARING_SCHEDULED: _with_archive(CaseStatus.CLOSING_ARGUMENTS_PERIOD),
    CaseStatus.CLOSING_ARGUMENTS_PERIOD: _with_archive(CaseStatus.AWAITING_JUDGMENT),
    CaseStatus.AWAITING_JUDGMENT: _with_archive(CaseStatus.JUDGED),
    CaseStatus.JUDGED: _with_archive(
        CaseStatus.EM_RECURSO, CaseStatus.AWAITING_JUDGMENT
    ),
    CaseStatus.EM_RECURSO: _with_archive(),
    CaseStatus.ARCHIVED: frozenset(),
}


class TargetKind(Enum):
    """Who a complaint or challenge is directed at."""

    CHAPA = "CHAPA"
    CHAPA_MEMBER = "CHAPA_MEMBER"
    COMMITTEE_MEMBER = "COMMITTEE_MEMBER"
    THIRD_PARTY = "THIRD_PARTY"


@dataclass(frozen=True, eq=True)
class CaseTarget:
    """Tagged target of a case: exactly one kind with its payload.

    Attributes:
        kind: Target kind.
        reference_id: ID of the chapa or person (optional for third parties).
        description: Free-text identification (mandatory for third parties
            without a reference).
    """

    kind: TargetKind
    reference_id: UUID | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate that the payload matches the tag."""
        if self.kind != TargetKind.THIRD_PARTY and self.reference_id is None:
            raise CaseValidationError(
                "target", f"{self.kind.value} target requires a reference_id"
            )
        if (
            self.kind == TargetKind.THIRD_PARTY
            and self.reference_id is None
            and not (self.description or "").strip()
        ):
            raise CaseValidationError(
                "target", "third-party target requires a reference_id or description"
            )


@dataclass(frozen=True, eq=True)
class AdmissibilityRequisites:
    """Requisites checked during the admissibility review.

    Attributes:
        timely: Filed within its window (tempestividade).
        standing: Filer has standing (legitimidade).
        interest: Filer has a legal interest (interesse).
        formal_requirements: Formal requirements are met.
    """

    timely: bool = True
    standing: bool = True
    interest: bool = True
    formal_requirements: bool = True

    @property
    def all_met(self) -> bool:
        return not self.failed()

    def failed(self) -> list[str]:
        """Names of the requisites that are not met."""
        checks = {
            "timely": self.timely,
            "standing": self.standing,
            "interest": self.interest,
            "formal_requirements": self.formal_requirements,
        }
        return [name for name, met in checks.items() if not met]

    def analysis(self) -> str:
        """One line per requisite, in review order."""
        lines = [
            f"1. Timeliness: {'MET' if self.timely else 'NOT MET'}",
            f"2. Standing: {'PRESENT' if self.standing else 'ABSENT'}",
            f"3. Interest: {'SHOWN' if self.interest else 'NOT SHOWN'}",
            "4. Formal requirements: "
            f"{'MET' if self.formal_requirements else 'NOT MET'}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True, eq=True)
class AdmissibilityRuling:
    """Outcome of the admissibility review.

    Absence of a ruling on the case means "not yet decided".

    Attributes:
        admissible: Whether the case was admitted.
        reasoning: Grounds of the ruling (mandatory when inadmissible).
        ruled_at: When the ruling was issued.
        ruled_by: Who issued it.
        requisites: Requisites as assessed by the reviewer.
        requisites_analysis: Written analysis of the requisites.
    """

    admissible: bool
    reasoning: str | None
    ruled_at: datetime
    ruled_by: UUID | None = None
    requisites: AdmissibilityRequisites = field(default_factory=AdmissibilityRequisites)
    requisites_analysis: str | None = None

    def __post_init__(self) -> None:
        """Inadmissibility needs reasons; admission needs every requisite."""
        if not self.admissible and not (self.reasoning or "").strip():
            raise CaseValidationError(
                "reasoning", "inadmissibility reasoning is mandatory"
            )
        if self.admissible and not self.requisites.all_met:
            failed = ", ".join(self.requisites.failed())
            raise CaseValidationError(
                "requisites", f"cannot admit a case with unmet requisites: {failed}"
            )


@dataclass(frozen=True, eq=True)
class HistoryEntry:
    """One immutable line of the case history.

    Attributes:
        status_before: Status prior to the transition.
        status_after: Status after it (equal for non-status entries).
        actor_id: Who triggered it (None for system-triggered).
        occurred_at: When it happened.
        note: Human-readable description.
    """

    status_before: CaseStatus
    status_after: CaseStatus
    actor_id: UUID | None
    occurred_at: datetime
    note: str


def format_protocol(kind: CaseKind, year: int, sequence_number: int) -> str:
    """Build the protocol string, e.g. ``DEN/2024/000042``."""
    if sequence_number < 1:
        raise CaseValidationError("sequence_number", "must be positive")
    return f"{kind.protocol_prefix}/{year:04d}/{sequence_number:06d}"


@dataclass(frozen=True, eq=True)
class CaseRecord:
    """A denúncia or impugnação moving through the adjudication process.

    Phase fields stay ``None`` until their phase is reached.

    Attributes:
        case_id: UUIDv7 identifier.
        kind: Complaint or challenge.
        sequence_number: Sequential protocol number.
        protocol: Generated protocol string (``DEN/YYYY/NNNNNN``).
        description: Facts being reported.
        filer_id: Who filed the case.
        target: Tagged target of the case.
        committee_id: Committee with jurisdiction over the case.
        filed_at: Filing instant.
        status: Current lifecycle status.
        confidential: Sigilo flag.
        history: Append-only transition history.
        audit: Composed audit trail.
        version: Optimistic concurrency token.
    """

    case_id: UUID
    kind: CaseKind
    sequence_number: int
    protocol: str
    description: str
    filer_id: UUID
    target: CaseTarget
    committee_id: UUID
    filed_at: datetime
    audit: AuditTrail
    status: CaseStatus = field(default=CaseStatus.RECEIVED)
    confidential: bool = field(default=False)
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)
    version: int = field(default=1)
    # Rapporteur
    relator_id: UUID | None = field(default=None)
    relator_designated_at: datetime | None = field(default=None)
    relator_analysis_deadline: datetime | None = field(default=None)
    # Admissibility
    admissibility: AdmissibilityRuling | None = field(default=None)
    # Defense
    defense_notified_at: datetime | None = field(default=None)
    defense_deadline: datetime | None = field(default=None)
    defense_text: str | None = field(default=None)
    defense_received_at: datetime | None = field(default=None)
    # Evidence
    evidence_period_opened_at: datetime | None = field(default=None)
    evidence_deadline: datetime | None = field(default=None)
    # Hearing
    hearing_scheduled_for: datetime | None = field(default=None)
    hearing_summary: str | None = field(default=None)
    hearing_held_at: datetime | None = field(default=None)
    # Closing arguments
    closing_arguments_deadline: datetime | None = field(default=None)
    closing_arguments_text: str | None = field(default=None)
    closing_arguments_received_at: datetime | None = field(default=None)
    # First instance
    first_instance_judgment_id: UUID | None = field(default=None)
    first_instance_decision: str | None = field(default=None)
    first_instance_decided_at: datetime | None = field(default=None)
    appealable: bool | None = field(default=None)
    appeal_deadline: datetime | None = field(default=None)
    # Appeal and second instance
    appeal_id: UUID | None = field(default=None)
    appeal_filed_at: datetime | None = field(default=None)
    second_instance_judgment_id: UUID | None = field(default=None)
    second_instance_decision: str | None = field(default=None)
    second_instance_decided_at: datetime | None = field(default=None)
    # Archive
    archived_at: datetime | None = field(default=None)
    archive_reason: str | None = field(default=None)

    MAX_DESCRIPTION_LENGTH: int = 2_000

    def __post_init__(self) -> None:
        """Validate case record invariants."""
        if not self.description.strip():
            raise CaseValidationError("description", "must not be blank")
        if len(self.description) > self.MAX_DESCRIPTION_LENGTH:
            raise CaseValidationError(
                "description",
                f"exceeds maximum length of {self.MAX_DESCRIPTION_LENGTH} characters",
            )
        if self.version < 1:
            raise ValueError(f"version must be >= 1, got {self.version}")
        self._validate_admissibility_consistency()

    def _validate_admissibility_consistency(self) -> None:
        if self.status == CaseStatus.ADMISSIBLE and (
            self.admissibility is None or not self.admissibility.admissible
        ):
            raise ValueError("ADMISSIBLE status requires an admissible ruling")
        if self.status == CaseStatus.INADMISSIBLE and (
            self.admissibility is None or self.admissibility.admissible
        ):
            raise ValueError("INADMISSIBLE status requires an inadmissible ruling")

    @property
    def is_admissible(self) -> bool | None:
        """True/False once ruled, None while not yet decided."""
        if self.admissibility is None:
            return None
        return self.admissibility.admissible

    @property
    def inadmissibility_reason(self) -> str | None:
        """Reasoning of an inadmissibility ruling, if any."""
        if self.admissibility is None or self.admissibility.admissible:
            return None
        return self.admissibility.reasoning

    @property
    def is_archived(self) -> bool:
        """Whether the case reached its terminal status."""
        return self.status.is_terminal()

    def can_be_edited(self) -> bool:
        """Filing data may still be corrected before admissibility is ruled."""
        return self.status in (CaseStatus.RECEIVED, CaseStatus.UNDER_REVIEW)

    def pending_deadline(self) -> tuple[str, datetime] | None:
        """Deadline governing the current status, if the status has one."""
        deadlines: dict[CaseStatus, tuple[str, datetime | None]] = {
            CaseStatus.AWAITING_DEFENSE: ("defense", self.defense_deadline),
            CaseStatus.EVIDENCE_PERIOD_OPEN: ("evidence", self.evidence_deadline),
            CaseStatus.CLOSING_ARGUMENTS_PERIOD: (
                "closing_arguments",
                self.closing_arguments_deadline,
            ),
            CaseStatus.JUDGED: ("appeal", self.appeal_deadline),
        }
        entry = deadlines.get(self.status)
        if entry is None or entry[1] is None:
            return None
        return entry[0], entry[1]

    def with_transition(
        self,
        new_status: CaseStatus,
        *,
        actor_id: UUID | None,
        at: datetime,
        note: str,
        **changes: Any,
    ) -> CaseRecord:
        """Return a new record moved to ``new_status`` with one history entry.

        Enforces the transition matrix; phase-specific preconditions are
        the workflow's job.

        Args:
            new_status: Target status.
            actor_id: Who triggered the transition.
            at: When it happened.
            note: History note.
            **changes: Phase fields to fill in.

        Returns:
            New CaseRecord with updated status, history, audit and version.

        Raises:
            PreconditionViolationError: If the matrix forbids the transition.
        """
        if new_status not in self.status.valid_transitions():
            sources = [
                status
                for status, targets in CASE_TRANSITION_MATRIX.items()
                if new_status in targets
            ]
            raise PreconditionViolationError(
                entity_id=self.case_id,
                current_state=self.status,
                expected_states=sources,
                operation=f"move case to {new_status.value}",
            )
        return self._appended(new_status, actor_id, at, note, changes)

    def with_note(
        self,
        *,
        actor_id: UUID | None,
        at: datetime,
        note: str,
        **changes: Any,
    ) -> CaseRecord:
        """Return a new record with a history entry that keeps the status."""
        return self._appended(self.status, actor_id, at, note, changes)

    def _appended(
        self,
        new_status: CaseStatus,
        actor_id: UUID | None,
        at: datetime,
        note: str,
        changes: dict[str, Any],
    ) -> CaseRecord:
        entry = HistoryEntry(
            status_before=self.status,
            status_after=new_status,
            actor_id=actor_id,
            occurred_at=at,
            note=note,
        )
        return replace(
            self,
            status=new_status,
            history=(*self.history, entry),
            audit=self.audit.touched(actor_id, at),
            version=self.version + 1,
            **changes,
        )
