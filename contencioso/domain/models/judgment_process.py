"""Judgment process aggregate (one collegiate adjudication session).

A judgment process is a single adjudication event of a committee, either the
first instance or the second instance reached through an appeal.

State Machine:
    SCHEDULED -> IN_PROGRESS | ADJOURNED
    IN_PROGRESS -> SUSPENDED | ADJOURNED | DECIDED
    SUSPENDED -> IN_PROGRESS | ADJOURNED
    ADJOURNED -> IN_PROGRESS | ADJOURNED
    DECIDED -> ANNULLED
    ANNULLED (terminal)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from contencioso.domain.errors.judgment import DuplicateVoteError
from contencioso.domain.errors.workflow import PreconditionViolationError
from contencioso.domain.models.audit_trail import AuditTrail
from contencioso.domain.models.case_record import CaseKind


class JudgmentInstance(Enum):
    """Instance of the judgment (first or appellate)."""

    FIRST = "FIRST"
    SECOND = "SECOND"


class JudgmentStatus(Enum):
    """Status of a judgment process."""

    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    SUSPENDED = "SUSPENDED"
    ADJOURNED = "ADJOURNED"
    DECIDED = "DECIDED"
    ANNULLED = "ANNULLED"

    def is_terminal(self) -> bool:
        """ANNULLED is the only terminal status; DECIDED may still be annulled."""
        return self == JudgmentStatus.ANNULLED

    def valid_transitions(self) -> frozenset[JudgmentStatus]:
        """Statuses reachable from this one in a single step."""
        return JUDGMENT_TRANSITION_MATRIX.get(self, frozenset())


JUDGMENT_TRANSITION_MATRIX: dict[JudgmentStatus, frozenset[JudgmentStatus]] = {
    JudgmentStatus.SCHEDULED: frozenset(
        {JudgmentStatus.IN_PROGRESS, JudgmentStatus.ADJOURNED}
    ),
    JudgmentStatus.IN_PROGRESS: frozenset(
        {JudgmentStatus.SUSPENDED, JudgmentStatus.ADJOURNED, JudgmentStatus.DECIDED}
    ),
    JudgmentStatus.SUSPENDED: frozenset(
        {JudgmentStatus.IN_PROGRESS, JudgmentStatus.ADJOURNED}
    ),
    JudgmentStatus.ADJOURNED: frozenset(
        {JudgmentStatus.IN_PROGRESS, JudgmentStatus.ADJOURNED}
    ),
    JudgmentStatus.DECIDED: frozenset({JudgmentStatus.ANNULLED}),
    JudgmentStatus.ANNULLED: frozenset(),
}


class JudgmentOutcome(Enum):
    """Legal outcome of a decided judgment."""

    PROCEDENTE = "PROCEDENTE"
    IMPROCEDENTE = "IMPROCEDENTE"
    PARCIALMENTE_PROCEDENTE = "PARCIALMENTE_PROCEDENTE"
    EXTINTO = "EXTINTO"
    ANNULLED = "ANNULLED"

    @property
    def side(self) -> VoteOutcome | None:
        """Vote side a merit outcome must match, None when it has no side."""
        return OUTCOME_SIDES.get(self)


class VoteOutcome(Enum):
    """Result of resolving the substantive votes."""

    FAVOR = "FAVOR"
    AGAINST = "AGAINST"
    TIE = "TIE"


class VoteChoice(Enum):
    """Choice of a member's vote.

    PROCEDENTE counts on the favor side and IMPROCEDENTE on the against
    side, so votes cast in merit terms tally with plain favor/against votes.
    """

    FAVOR = "FAVOR"
    AGAINST = "AGAINST"
    ABSTAIN = "ABSTAIN"
    PROCEDENTE = "PROCEDENTE"
    IMPROCEDENTE = "IMPROCEDENTE"

    @property
    def side(self) -> VoteOutcome | None:
        """Substantive side of the vote, None for an abstention."""
        return VOTE_SIDES[self]


VOTE_SIDES: dict[VoteChoice, VoteOutcome | None] = {
    VoteChoice.FAVOR: VoteOutcome.FAVOR,
    VoteChoice.PROCEDENTE: VoteOutcome.FAVOR,
    VoteChoice.AGAINST: VoteOutcome.AGAINST,
    VoteChoice.IMPROCEDENTE: VoteOutcome.AGAINST,
    VoteChoice.ABSTAIN: None,
}

OUTCOME_SIDES: dict[JudgmentOutcome, VoteOutcome] = {
    JudgmentOutcome.PROCEDENTE: VoteOutcome.FAVOR,
    JudgmentOutcome.PARCIALMENTE_PROCEDENTE: VoteOutcome.FAVOR,
    JudgmentOutcome.IMPROCEDENTE: VoteOutcome.AGAINST,
}


@dataclass(frozen=True, eq=True)
class Vote:
    """A single committee member's vote.

    Attributes:
        member_id: Voting member.
        choice: What they voted.
        cast_at: When the vote was recorded.
        justification: Optional grounds.
    """

    member_id: UUID
    choice: VoteChoice
    cast_at: datetime
    justification: str | None = None


@dataclass(frozen=True, eq=True)
class ProceduralNote:
    """Append-only note about a suspension, adjournment, re-vote or annulment."""

    action: str
    reason: str
    recorded_at: datetime
    status_before: JudgmentStatus
    status_after: JudgmentStatus


@dataclass(frozen=True, eq=True)
class JudgmentProcess:
    """One collegiate judgment of a case.

    Attributes:
        judgment_id: UUIDv7 identifier.
        case_id: Case being judged.
        case_kind: Kind of the case (selects the quorum fraction).
        committee_id: Committee whose roster votes.
        instance: FIRST or SECOND.
        relator_id: Rapporteur of the judgment.
        scheduled_for: Session date.
        audit: Composed audit trail.
        status: Current status.
        appeal_id: Appeal that opened a second-instance judgment.
        previous_judgment_id: First-instance judgment under appeal.
        votes: Votes cast, in order.
        outcome: Legal outcome once decided (ANNULLED after annulment).
        previous_outcome: Outcome held before an annulment.
        reasoning: Grounds of the decision.
        vote_outcome: FAVOR / AGAINST / TIE after resolution.
        unanimous: Whether the decision was unanimous.
        appealable: Whether an appeal may be filed.
        appeal_deadline: Last instant an appeal may be filed.
        started_at: When the session opened.
        decided_at: When the decision was recorded.
        procedural_notes: Suspension/adjournment/annulment notes.
        version: Optimistic concurrency token.
    """

    judgment_id: UUID
    case_id: UUID
    case_kind: CaseKind
    committee_id: UUID
    instance: JudgmentInstance
    relator_id: UUID
    scheduled_for: datetime
    audit: AuditTrail
    status: JudgmentStatus = field(default=JudgmentStatus.SCHEDULED)
    appeal_id: UUID | None = field(default=None)
    previous_judgment_id: UUID | None = field(default=None)
    votes: tuple[Vote, ...] = field(default_factory=tuple)
    outcome: JudgmentOutcome | None = field(default=None)
    previous_outcome: JudgmentOutcome | None = field(default=None)
    reasoning: str | None = field(default=None)
    vote_outcome: VoteOutcome | None = field(default=None)
    unanimous: bool | None = field(default=None)
    appealable: bool = field(default=False)
    appeal_deadline: datetime | None = field(default=None)
    started_at: datetime | None = field(default=None)
    decided_at: datetime | None = field(default=None)
    procedural_notes: tuple[ProceduralNote, ...] = field(default_factory=tuple)
    version: int = field(default=1)

    def __post_init__(self) -> None:
        """Validate judgment invariants."""
        if self.instance == JudgmentInstance.SECOND and (
            self.appeal_id is None or self.previous_judgment_id is None
        ):
            raise ValueError(
                "Second-instance judgment requires appeal_id and previous_judgment_id"
            )
        if self.instance == JudgmentInstance.SECOND and self.appealable:
            raise ValueError("Second-instance judgment cannot be appealable")
        members = [vote.member_id for vote in self.votes]
        if len(set(members)) != len(members):
            raise ValueError("At most one vote per member")
        if self.version < 1:
            raise ValueError(f"version must be >= 1, got {self.version}")

    @property
    def favor_count(self) -> int:
        """Votes on the favor side so far."""
        return sum(1 for v in self.votes if v.choice.side == VoteOutcome.FAVOR)

    @property
    def against_count(self) -> int:
        """Votes on the against side so far."""
        return sum(1 for v in self.votes if v.choice.side == VoteOutcome.AGAINST)

    @property
    def abstain_count(self) -> int:
        """Abstentions so far."""
        return sum(1 for v in self.votes if v.choice.side is None)

    @property
    def is_decided(self) -> bool:
        return self.status == JudgmentStatus.DECIDED

    def has_voted(self, member_id: UUID) -> bool:
        """Check whether a member already cast a vote."""
        return any(vote.member_id == member_id for vote in self.votes)

    def require_status(self, operation: str, *expected: JudgmentStatus) -> None:
        """Raise PreconditionViolationError unless status is one of ``expected``."""
        if self.status not in expected:
            raise PreconditionViolationError(
                entity_id=self.judgment_id,
                current_state=self.status,
                expected_states=expected,
                operation=operation,
            )

    def with_vote(self, vote: Vote) -> JudgmentProcess:
        """Return a new judgment with ``vote`` appended.

        Raises:
            PreconditionViolationError: If the session is not in progress.
            DuplicateVoteError: If the member already voted.
        """
        self.require_status("record vote on", JudgmentStatus.IN_PROGRESS)
        if self.has_voted(vote.member_id):
            raise DuplicateVoteError(self.judgment_id, vote.member_id)
        return replace(
            self,
            votes=(*self.votes, vote),
            audit=self.audit.touched(vote.member_id, vote.cast_at),
            version=self.version + 1,
        )

    def with_votes_cleared(
        self, *, actor_id: UUID | None, at: datetime, note: ProceduralNote
    ) -> JudgmentProcess:
        """Return a new judgment, still in progress, with no votes on record.

        Raises:
            PreconditionViolationError: If the session is not in progress.
        """
        self.require_status("call a new vote on", JudgmentStatus.IN_PROGRESS)
        return replace(
            self,
            votes=(),
            procedural_notes=(*self.procedural_notes, note),
            audit=self.audit.touched(actor_id, at),
            version=self.version + 1,
        )

    def with_status(
        self,
        new_status: JudgmentStatus,
        *,
        actor_id: UUID | None,
        at: datetime,
        note: ProceduralNote | None = None,
        **changes: Any,
    ) -> JudgmentProcess:
        """Return a new judgment in ``new_status``.

        Enforces the transition matrix; operation-specific checks belong to
        the judgment engine.

        Raises:
            PreconditionViolationError: If the matrix forbids the transition.
        """
        if new_status not in self.status.valid_transitions():
            sources = [
                status
                for status, targets in JUDGMENT_TRANSITION_MATRIX.items()
                if new_status in targets
            ]
            raise PreconditionViolationError(
                entity_id=self.judgment_id,
                current_state=self.status,
                expected_states=sources,
                operation=f"move judgment to {new_status.value}",
            )
        notes = self.procedural_notes if note is None else (*self.procedural_notes, note)
        return replace(
            self,
            status=new_status,
            procedural_notes=notes,
            audit=self.audit.touched(actor_id, at),
            version=self.version + 1,
            **changes,
        )
