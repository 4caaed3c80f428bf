"""Judgment process engine (collegiate sessions of an electoral committee).

Drives one JudgmentProcess through scheduling, session control, voting and
decision. Committee rosters are passed in fresh by the caller at every vote
and every decision; quorum is always evaluated against the roster as it is
at decision time, never as it was when the session opened.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger
from uuid6 import uuid7

from contencioso.domain.errors.judgment import (
    NotCommitteeMemberError,
    QuorumNotMetError,
    UnresolvedTieError,
)
from contencioso.domain.errors.workflow import (
    CaseValidationError,
    PreconditionViolationError,
    require_text,
)
from contencioso.domain.events.adjudication import (
    JUDGMENT_DECIDED_EVENT_TYPE,
    JUDGMENT_SCHEDULED_EVENT_TYPE,
    JUDGMENT_TRANSITIONED_EVENT_TYPE,
    JUDGMENT_VOTE_RECORDED_EVENT_TYPE,
    AdjudicationEvent,
)
from contencioso.domain.models.audit_trail import AuditTrail
from contencioso.domain.models.case_record import CaseKind, CaseRecord, CaseStatus
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentOutcome,
    JudgmentProcess,
    JudgmentStatus,
    ProceduralNote,
    Vote,
    VoteChoice,
    VoteOutcome,
)
from contencioso.domain.services.committee_quorum import (
    CommitteeQuorum,
    tie_break_policy_for,
)

if TYPE_CHECKING:
    from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
    from contencioso.application.ports.time_authority import TimeAuthorityProtocol
    from contencioso.config.adjudication_config import AdjudicationConfig
    from contencioso.domain.models.committee import Committee
    from contencioso.domain.services.deadline_calculator import DeadlineCalculator

logger = get_logger(__name__)

PRE_DECISION_STATUSES: tuple[JudgmentStatus, ...] = (
    JudgmentStatus.SCHEDULED,
    JudgmentStatus.IN_PROGRESS,
    JudgmentStatus.SUSPENDED,
    JudgmentStatus.ADJOURNED,
)


class JudgmentProcessService:
    """Engine for judgment sessions.

    Holds one CommitteeQuorum per case kind, built from the configured
    quorum fractions and tie-break policy.
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        deadline_calculator: DeadlineCalculator,
        config: AdjudicationConfig,
        event_sink: AdjudicationEventSinkProtocol,
    ) -> None:
        """Initialize the judgment engine.

        Args:
            time_authority: Source of current time.
            deadline_calculator: Appeal deadline computation.
            config: Appeal window, quorum fractions and tie-break policy.
            event_sink: Receives one event per transition.
        """
        self._time = time_authority
        self._deadlines = deadline_calculator
        self._config = config
        self._events = event_sink
        self._quorums: dict[CaseKind, CommitteeQuorum] = {
            kind: CommitteeQuorum(
                config.quorum_fraction_for(kind),
                tie_break_policy_for(config.tie_break_policy),
            )
            for kind in CaseKind
        }

    def quorum_for(self, kind: CaseKind) -> CommitteeQuorum:
        """Quorum rules of the flow ``kind`` belongs to."""
        return self._quorums[kind]

    def schedule(
        self,
        case: CaseRecord,
        relator_id: UUID,
        scheduled_for: datetime,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Schedule the first-instance judgment of a case awaiting judgment.

        Raises:
            PreconditionViolationError: If the case is not AWAITING_JUDGMENT.
            CaseValidationError: If the session date is in the past.
        """
        if case.status != CaseStatus.AWAITING_JUDGMENT:
            raise PreconditionViolationError(
                entity_id=case.case_id,
                current_state=case.status,
                expected_states=(CaseStatus.AWAITING_JUDGMENT,),
                operation="schedule judgment for",
            )
        now = self._time.now()
        self._require_not_past(scheduled_for, now)
        judgment = JudgmentProcess(
            judgment_id=uuid7(),
            case_id=case.case_id,
            case_kind=case.kind,
            committee_id=case.committee_id,
            instance=JudgmentInstance.FIRST,
            relator_id=relator_id,
            scheduled_for=scheduled_for,
            audit=AuditTrail.started(actor_id, now),
        )
        self._log_and_emit(JUDGMENT_SCHEDULED_EVENT_TYPE, judgment, None, actor_id)
        return judgment

    def schedule_second_instance(
        self,
        *,
        case_id: UUID,
        case_kind: CaseKind,
        committee_id: UUID,
        appeal_id: UUID,
        previous_judgment_id: UUID,
        relator_id: UUID,
        scheduled_for: datetime,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Create the appellate judgment for an appeal ready for judgment."""
        now = self._time.now()
        self._require_not_past(scheduled_for, now)
        judgment = JudgmentProcess(
            judgment_id=uuid7(),
            case_id=case_id,
            case_kind=case_kind,
            committee_id=committee_id,
            instance=JudgmentInstance.SECOND,
            relator_id=relator_id,
            scheduled_for=scheduled_for,
            appeal_id=appeal_id,
            previous_judgment_id=previous_judgment_id,
            audit=AuditTrail.started(actor_id, now),
        )
        self._log_and_emit(JUDGMENT_SCHEDULED_EVENT_TYPE, judgment, None, actor_id)
        return judgment

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def start(
        self, judgment: JudgmentProcess, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        """Open the session once its date has arrived.

        Raises:
            PreconditionViolationError: If not SCHEDULED/ADJOURNED, or if the
                session date is still in the future.
        """
        judgment.require_status(
            "start", JudgmentStatus.SCHEDULED, JudgmentStatus.ADJOURNED
        )
        now = self._time.now()
        if now < judgment.scheduled_for:
            raise PreconditionViolationError(
                entity_id=judgment.judgment_id,
                current_state=judgment.status,
                expected_states=(JudgmentStatus.SCHEDULED, JudgmentStatus.ADJOURNED),
                operation="start",
                detail=f"session is scheduled for {judgment.scheduled_for.isoformat()}",
            )
        updated = judgment.with_status(
            JudgmentStatus.IN_PROGRESS,
            actor_id=actor_id,
            at=now,
            started_at=judgment.started_at or now,
        )
        self._log_and_emit(JUDGMENT_TRANSITIONED_EVENT_TYPE, updated, judgment, actor_id)
        return updated

    def suspend(
        self, judgment: JudgmentProcess, reason: str, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        judgment.require_status("suspend", JudgmentStatus.IN_PROGRESS)
        return self._procedural(
            judgment, JudgmentStatus.SUSPENDED, "suspended", reason, actor_id
        )

    def resume(
        self, judgment: JudgmentProcess, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        judgment.require_status("resume", JudgmentStatus.SUSPENDED)
        now = self._time.now()
        updated = judgment.with_status(
            JudgmentStatus.IN_PROGRESS,
            actor_id=actor_id,
            at=now,
            note=ProceduralNote(
                action="resumed",
                reason="Session resumed",
                recorded_at=now,
                status_before=judgment.status,
                status_after=JudgmentStatus.IN_PROGRESS,
            ),
        )
        self._log_and_emit(JUDGMENT_TRANSITIONED_EVENT_TYPE, updated, judgment, actor_id)
        return updated

    def adjourn(
        self,
        judgment: JudgmentProcess,
        new_date: datetime,
        reason: str,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Postpone the session to ``new_date``.

        Raises:
            CaseValidationError: If the new date is not in the future or
                the reason is blank.
        """
        judgment.require_status("adjourn", *PRE_DECISION_STATUSES)
        now = self._time.now()
        if new_date <= now:
            raise CaseValidationError("new_date", "adjourned date must be in the future")
        return self._procedural(
            judgment,
            JudgmentStatus.ADJOURNED,
            "adjourned",
            reason,
            actor_id,
            scheduled_for=new_date,
        )

    # ------------------------------------------------------------------
    # Voting and decision
    # ------------------------------------------------------------------

    def record_vote(
        self,
        judgment: JudgmentProcess,
        committee: Committee,
        member_id: UUID,
        choice: VoteChoice,
        justification: str | None = None,
    ) -> JudgmentProcess:
        """Record one member's vote.

        Raises:
            PreconditionViolationError: If the session is not in progress.
            NotCommitteeMemberError: If the member is not on the active roster.
            DuplicateVoteError: If the member already voted.
        """
        judgment.require_status("record vote on", JudgmentStatus.IN_PROGRESS)
        self._require_committee(judgment, committee)
        if not committee.is_active_member(member_id):
            raise NotCommitteeMemberError(
                judgment.judgment_id, member_id, committee.committee_id
            )
        vote = Vote(
            member_id=member_id,
            choice=choice,
            cast_at=self._time.now(),
            justification=justification.strip() if justification else None,
        )
        updated = judgment.with_vote(vote)
        logger.info(
            "vote_recorded",
            judgment_id=str(judgment.judgment_id),
            case_id=str(judgment.case_id),
            member_id=str(member_id),
            choice=choice.value,
            votes_cast=len(updated.votes),
        )
        self._events.emit(
            self._event(
                JUDGMENT_VOTE_RECORDED_EVENT_TYPE,
                updated,
                member_id,
                member_id=str(member_id),
                choice=choice.value,
                favor_count=updated.favor_count,
                against_count=updated.against_count,
                abstain_count=updated.abstain_count,
            )
        )
        return updated

    def decide(
        self,
        judgment: JudgmentProcess,
        committee: Committee,
        outcome: JudgmentOutcome,
        reasoning: str,
        appealable: bool,
        appeal_window_days: int | None = None,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Close voting and record the decision.

        Args:
            judgment: Session in progress.
            committee: Roster fetched now, at decision time.
            outcome: Legal outcome (ANNULLED is reserved for annulment).
            reasoning: Grounds of the decision.
            appealable: Whether the decision may be appealed.
            appeal_window_days: Business days to appeal (config default if None).
            actor_id: Who recorded the decision.

        Raises:
            PreconditionViolationError: If the session is not in progress.
            CaseValidationError: If reasoning is blank, the outcome is
                ANNULLED or contradicts the vote, or a second-instance
                decision is made appealable.
            QuorumNotMetError: If no vote was cast, the committee lacks the
                members to decide, or quorum is not reached.
            UnresolvedTieError: If the votes are tied and the tie-break
                policy left the tie standing.
        """
        judgment.require_status("decide", JudgmentStatus.IN_PROGRESS)
        text = require_text("reasoning", reasoning)
        if outcome == JudgmentOutcome.ANNULLED:
            raise CaseValidationError("outcome", "ANNULLED is set only by annulment")
        if appealable and judgment.instance == JudgmentInstance.SECOND:
            raise CaseValidationError(
                "appealable", "a second-instance judgment cannot be appealed"
            )
        if appeal_window_days is not None and appeal_window_days < 1:
            raise CaseValidationError("appeal_window_days", "must be at least 1")
        self._require_committee(judgment, committee)
        self._require_quorum(judgment, committee)

        quorum = self._quorums[judgment.case_kind]
        resolution = quorum.resolve(judgment.votes, judgment.relator_id)
        if resolution.outcome == VoteOutcome.TIE:
            logger.warning(
                "tie_unresolved",
                judgment_id=str(judgment.judgment_id),
                case_id=str(judgment.case_id),
                favor=resolution.favor_count,
                against=resolution.against_count,
                tie_break_policy=quorum.tie_break_policy.name,
            )
            raise UnresolvedTieError(
                judgment.judgment_id, resolution.favor_count, resolution.against_count
            )
        if outcome.side is not None and outcome.side != resolution.outcome:
            raise CaseValidationError(
                "outcome",
                f"{outcome.value} contradicts the committee vote "
                f"({resolution.outcome.value}, {resolution.favor_count} favor, "
                f"{resolution.against_count} against)",
            )
        now = self._time.now()
        appeal_deadline = None
        if appealable:
            window = (
                appeal_window_days
                if appeal_window_days is not None
                else self._config.appeal_window_business_days
            )
            appeal_deadline = self._deadlines.business_days(now, window)

        updated = judgment.with_status(
            JudgmentStatus.DECIDED,
            actor_id=actor_id,
            at=now,
            outcome=outcome,
            reasoning=text,
            vote_outcome=resolution.outcome,
            unanimous=resolution.unanimous,
            appealable=appealable,
            appeal_deadline=appeal_deadline,
            decided_at=now,
        )
        logger.info(
            "judgment_decided",
            judgment_id=str(judgment.judgment_id),
            case_id=str(judgment.case_id),
            instance=judgment.instance.value,
            outcome=outcome.value,
            vote_outcome=resolution.outcome.value,
            favor=resolution.favor_count,
            against=resolution.against_count,
            abstain=resolution.abstain_count,
            unanimous=resolution.unanimous,
        )
        self._events.emit(
            self._event(
                JUDGMENT_DECIDED_EVENT_TYPE,
                updated,
                actor_id,
                deadline=appeal_deadline,
                outcome=outcome.value,
                vote_outcome=resolution.outcome.value,
                unanimous=resolution.unanimous,
                appealable=appealable,
            )
        )
        return updated

    def call_revote(
        self,
        judgment: JudgmentProcess,
        committee: Committee,
        reason: str,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Discard a tied vote so the committee can vote again.

        Raises:
            PreconditionViolationError: If the session is not in progress or
                the current votes are not an unresolved tie.
            CaseValidationError: If the reason is blank.
        """
        judgment.require_status("call a new vote on", JudgmentStatus.IN_PROGRESS)
        self._require_committee(judgment, committee)
        text = require_text("reason", reason)
        resolution = self._quorums[judgment.case_kind].resolve(
            judgment.votes, judgment.relator_id
        )
        if not judgment.votes or resolution.outcome != VoteOutcome.TIE:
            raise PreconditionViolationError(
                entity_id=judgment.judgment_id,
                current_state=judgment.status,
                expected_states=(JudgmentStatus.IN_PROGRESS,),
                operation="call a new vote on",
                detail="a new vote is only called on an unresolved tie",
            )
        now = self._time.now()
        updated = judgment.with_votes_cleared(
            actor_id=actor_id,
            at=now,
            note=ProceduralNote(
                action="revote",
                reason=text,
                recorded_at=now,
                status_before=judgment.status,
                status_after=judgment.status,
            ),
        )
        self._log_and_emit(
            JUDGMENT_TRANSITIONED_EVENT_TYPE,
            updated,
            judgment,
            actor_id,
            reason=text,
            discarded_votes=len(judgment.votes),
        )
        return updated

    def annul(
        self, judgment: JudgmentProcess, reason: str, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        """Annul a decided judgment, keeping the previous outcome on record."""
        judgment.require_status("annul", JudgmentStatus.DECIDED)
        return self._procedural(
            judgment,
            JudgmentStatus.ANNULLED,
            "annulled",
            reason,
            actor_id,
            outcome=JudgmentOutcome.ANNULLED,
            previous_outcome=judgment.outcome,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_quorum(self, judgment: JudgmentProcess, committee: Committee) -> None:
        quorum = self._quorums[judgment.case_kind]
        votes_cast = len(judgment.votes)
        active = committee.active_count
        required = quorum.quorum_threshold(active)
        detail: str | None = None
        if votes_cast == 0:
            detail = "at least one vote is required"
        elif not quorum.committee_can_decide(committee):
            detail = (
                f"committee has {active} active members, "
                f"at least {committee.minimum_active_members} required to decide"
            )
        elif quorum.has_quorum(active, votes_cast):
            return
        logger.warning(
            "quorum_not_met",
            judgment_id=str(judgment.judgment_id),
            case_id=str(judgment.case_id),
            votes_cast=votes_cast,
            votes_required=required,
            active_members=active,
        )
        raise QuorumNotMetError(
            judgment_id=judgment.judgment_id,
            votes_cast=votes_cast,
            votes_required=required,
            active_members=active,
            detail=detail,
        )

    def _require_committee(self, judgment: JudgmentProcess, committee: Committee) -> None:
        if committee.committee_id != judgment.committee_id:
            raise CaseValidationError(
                "committee",
                f"judgment is held by committee {judgment.committee_id}, "
                f"got roster of {committee.committee_id}",
            )

    def _require_not_past(self, scheduled_for: datetime, now: datetime) -> None:
        if scheduled_for < now:
            raise CaseValidationError("scheduled_for", "session date is in the past")

    def _procedural(
        self,
        judgment: JudgmentProcess,
        new_status: JudgmentStatus,
        action: str,
        reason: str,
        actor_id: UUID | None,
        **changes: object,
    ) -> JudgmentProcess:
        text = require_text("reason", reason)
        now = self._time.now()
        updated = judgment.with_status(
            new_status,
            actor_id=actor_id,
            at=now,
            note=ProceduralNote(
                action=action,
                reason=text,
                recorded_at=now,
                status_before=judgment.status,
                status_after=new_status,
            ),
            **changes,
        )
        self._log_and_emit(
            JUDGMENT_TRANSITIONED_EVENT_TYPE, updated, judgment, actor_id, reason=text
        )
        return updated

    def _log_and_emit(
        self,
        event_type: str,
        updated: JudgmentProcess,
        previous: JudgmentProcess | None,
        actor_id: UUID | None,
        **payload: object,
    ) -> None:
        status_before = previous.status.value if previous is not None else None
        logger.info(
            "judgment_transitioned",
            judgment_id=str(updated.judgment_id),
            case_id=str(updated.case_id),
            instance=updated.instance.value,
            status_before=status_before,
            status_after=updated.status.value,
        )
        self._events.emit(
            self._event(
                event_type,
                updated,
                actor_id,
                status_before=status_before,
                scheduled_for=updated.scheduled_for.isoformat(),
                **payload,
            )
        )

    def _event(
        self,
        event_type: str,
        judgment: JudgmentProcess,
        actor_id: UUID | None,
        *,
        deadline: datetime | None = None,
        **payload: object,
    ) -> AdjudicationEvent:
        return AdjudicationEvent(
            event_type=event_type,
            case_id=judgment.case_id,
            status=judgment.status.value,
            occurred_at=judgment.audit.updated_at,
            deadline=deadline,
            judgment_id=judgment.judgment_id,
            appeal_id=judgment.appeal_id,
            actor_id=actor_id,
            payload={"instance": judgment.instance.value, **payload},
        )
