"""Case workflow: the state machine that drives a CaseRecord.

Every trigger follows the same contract:

1. Check the exact prior status (PreconditionViolationError otherwise)
2. Check phase preconditions (CaseValidationError for blank texts,
   DeadlineExpiredError for late actions)
3. Build the new record with its phase data and any deadline opened
4. Append exactly one history entry and emit exactly one event

Deadlines are computed once, when their phase opens, and stored on the
record. Later checks compare against the stored value.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger
from uuid6 import uuid7

from contencioso.domain.errors.workflow import (
    CaseValidationError,
    DeadlineExpiredError,
    PreconditionViolationError,
    require_text,
)
from contencioso.domain.events.adjudication import (
    CASE_ARCHIVED_EVENT_TYPE,
    CASE_FILED_EVENT_TYPE,
    CASE_RELATOR_DESIGNATED_EVENT_TYPE,
    CASE_TRANSITIONED_EVENT_TYPE,
    AdjudicationEvent,
)
from contencioso.domain.models.audit_trail import AuditTrail
from contencioso.domain.models.case_record import (
    AdmissibilityRequisites,
    AdmissibilityRuling,
    CaseKind,
    CaseRecord,
    CaseStatus,
    CaseTarget,
    format_protocol,
)
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentProcess,
    JudgmentStatus,
)

if TYPE_CHECKING:
    from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
    from contencioso.application.ports.time_authority import TimeAuthorityProtocol
    from contencioso.config.adjudication_config import AdjudicationConfig
    from contencioso.domain.models.appeal_process import AppealProcess
    from contencioso.domain.services.deadline_calculator import DeadlineCalculator

logger = get_logger(__name__)

NON_TERMINAL_STATUSES: tuple[CaseStatus, ...] = tuple(
    status for status in CaseStatus if not status.is_terminal()
)


class CaseWorkflowService:
    """Drives CaseRecord transitions.

    Stateless apart from its collaborators; every method takes the current
    record and returns the new one. Persistence is the caller's concern.

    Example:
        >>> workflow = CaseWorkflowService(time_authority, calculator, config, sink)
        >>> case = workflow.file_case(CaseKind.DENUNCIA, 1, "...", filer, target, committee)
        >>> case = workflow.start_review(case, actor_id=secretary)
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        deadline_calculator: DeadlineCalculator,
        config: AdjudicationConfig,
        event_sink: AdjudicationEventSinkProtocol,
    ) -> None:
        """Initialize the case workflow.

        Args:
            time_authority: Source of current time.
            deadline_calculator: Statutory deadline computation.
            config: Statutory windows.
            event_sink: Receives one event per transition.
        """
        self._time = time_authority
        self._deadlines = deadline_calculator
        self._config = config
        self._events = event_sink

    # ------------------------------------------------------------------
    # Filing and administrative actions
    # ------------------------------------------------------------------

    def file_case(
        self,
        kind: CaseKind,
        sequence_number: int,
        description: str,
        filer_id: UUID,
        target: CaseTarget,
        committee_id: UUID,
        confidential: bool = False,
    ) -> CaseRecord:
        """Create a new case in RECEIVED with its protocol number.

        Raises:
            CaseValidationError: If the description is blank or the
                sequence number is not positive.
        """
        now = self._time.now()
        text = require_text("description", description)
        case = CaseRecord(
            case_id=uuid7(),
            kind=kind,
            sequence_number=sequence_number,
            protocol=format_protocol(kind, now.year, sequence_number),
            description=text,
            filer_id=filer_id,
            target=target,
            committee_id=committee_id,
            filed_at=now,
            audit=AuditTrail.started(filer_id, now),
            confidential=confidential,
        )
        logger.info(
            "case_filed",
            case_id=str(case.case_id),
            protocol=case.protocol,
            kind=kind.value,
        )
        self._emit(CASE_FILED_EVENT_TYPE, case, filer_id, protocol=case.protocol)
        return case

    def designate_relator(
        self, case: CaseRecord, relator_id: UUID, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Assign the rapporteur. Allowed in any non-terminal status.

        Opens the rapporteur's analysis window, counted in calendar days
        from designation (the length depends on the case kind).
        """
        self._require(case, "designate relator for", *NON_TERMINAL_STATUSES)
        now = self._time.now()
        deadline = self._deadlines.calendar_days(
            now, self._config.relator_analysis_days_for(case.kind)
        )
        updated = case.with_note(
            actor_id=actor_id,
            at=now,
            note=f"Relator {relator_id} designated, analysis due {deadline:%Y-%m-%d}",
            relator_id=relator_id,
            relator_designated_at=now,
            relator_analysis_deadline=deadline,
        )
        logger.info(
            "relator_designated",
            case_id=str(case.case_id),
            relator_id=str(relator_id),
            analysis_deadline=deadline.isoformat(),
        )
        self._emit(
            CASE_RELATOR_DESIGNATED_EVENT_TYPE,
            updated,
            actor_id,
            relator_id=str(relator_id),
            deadline=deadline,
        )
        return updated

    def archive(
        self, case: CaseRecord, reason: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Archive the case from any non-terminal status.

        Raises:
            PreconditionViolationError: If the case is already archived.
            CaseValidationError: If the reason is blank.
        """
        self._require(case, "archive", *NON_TERMINAL_STATUSES)
        text = require_text("archive_reason", reason)
        now = self._time.now()
        return self._transition(
            case,
            CaseStatus.ARCHIVED,
            actor_id,
            now,
            f"Archived: {text}",
            event_type=CASE_ARCHIVED_EVENT_TYPE,
            archived_at=now,
            archive_reason=text,
        )

    # ------------------------------------------------------------------
    # Admissibility
    # ------------------------------------------------------------------

    def start_review(self, case: CaseRecord, actor_id: UUID | None = None) -> CaseRecord:
        self._require(case, "start review of", CaseStatus.RECEIVED)
        return self._transition(
            case,
            CaseStatus.UNDER_REVIEW,
            actor_id,
            self._time.now(),
            "Admissibility review started",
        )

    def rule_admissibility(
        self,
        case: CaseRecord,
        admissible: bool,
        reason: str | None = None,
        actor_id: UUID | None = None,
        requisites: AdmissibilityRequisites | None = None,
        requisites_analysis: str | None = None,
    ) -> CaseRecord:
        """Record the admissibility ruling.

        Args:
            case: Case under review.
            admissible: Whether the case is admitted.
            reason: Grounds of the ruling (mandatory when inadmissible).
            actor_id: Who ruled.
            requisites: Timeliness, standing, interest and formal
                requirements as assessed (all met when omitted).
            requisites_analysis: Written analysis; generated from the
                requisites when omitted.

        Raises:
            PreconditionViolationError: If the case is not UNDER_REVIEW.
            CaseValidationError: If inadmissible without a reason, or
                admissible with an unmet requisite.
        """
        self._require(case, "rule admissibility of", CaseStatus.UNDER_REVIEW)
        reasoning = reason.strip() if reason and reason.strip() else None
        if not admissible and reasoning is None:
            raise CaseValidationError("reasoning", "inadmissibility reasoning is mandatory")
        checked = requisites or AdmissibilityRequisites()
        if admissible and not checked.all_met:
            raise CaseValidationError(
                "requisites",
                "cannot admit a case with unmet requisites: "
                + ", ".join(checked.failed()),
            )
        analysis = (requisites_analysis or "").strip() or checked.analysis()
        now = self._time.now()
        ruling = AdmissibilityRuling(
            admissible=admissible,
            reasoning=reasoning,
            ruled_at=now,
            ruled_by=actor_id,
            requisites=checked,
            requisites_analysis=analysis,
        )
        if admissible:
            return self._transition(
                case,
                CaseStatus.ADMISSIBLE,
                actor_id,
                now,
                "Case ruled admissible",
                admissibility=ruling,
            )
        return self._transition(
            case,
            CaseStatus.INADMISSIBLE,
            actor_id,
            now,
            f"Case ruled inadmissible: {reasoning}",
            admissibility=ruling,
        )

    # ------------------------------------------------------------------
    # Defense and evidence
    # ------------------------------------------------------------------

    def request_defense(self, case: CaseRecord, actor_id: UUID | None = None) -> CaseRecord:
        """Notify the respondent and open the defense window (business days)."""
        self._require(case, "request defense for", CaseStatus.ADMISSIBLE)
        now = self._time.now()
        deadline = self._deadlines.business_days(
            now, self._config.defense_deadline_business_days
        )
        return self._transition(
            case,
            CaseStatus.AWAITING_DEFENSE,
            actor_id,
            now,
            f"Defense requested, due {deadline.isoformat()}",
            deadline=deadline,
            defense_notified_at=now,
            defense_deadline=deadline,
        )

    def receive_defense(
        self, case: CaseRecord, defense_text: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Record the defense.

        Raises:
            PreconditionViolationError: If the case is not AWAITING_DEFENSE.
            CaseValidationError: If the defense text is blank.
            DeadlineExpiredError: If the defense deadline has passed.
        """
        self._require(case, "receive defense for", CaseStatus.AWAITING_DEFENSE)
        text = require_text("defense_text", defense_text)
        now = self._time.now()
        self._require_within(case, "defense", case.defense_deadline, now)
        return self._transition(
            case,
            CaseStatus.DEFENSE_RECEIVED,
            actor_id,
            now,
            "Defense received",
            defense_text=text,
            defense_received_at=now,
        )

    def open_evidence_period(
        self, case: CaseRecord, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Open the evidence period, counted in calendar days from defense receipt."""
        self._require(case, "open evidence period for", CaseStatus.DEFENSE_RECEIVED)
        now = self._time.now()
        anchor = case.defense_received_at or now
        deadline = self._deadlines.calendar_days(
            anchor, self._config.evidence_period_calendar_days
        )
        return self._transition(
            case,
            CaseStatus.EVIDENCE_PERIOD_OPEN,
            actor_id,
            now,
            f"Evidence period opened, closes {deadline.isoformat()}",
            deadline=deadline,
            evidence_period_opened_at=now,
            evidence_deadline=deadline,
        )

    # ------------------------------------------------------------------
    # Hearing and closing arguments
    # ------------------------------------------------------------------

    def schedule_hearing(
        self, case: CaseRecord, hearing_at: datetime, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Schedule the hearing.

        Raises:
            CaseValidationError: If the hearing date is not in the future.
        """
        self._require(case, "schedule hearing for", CaseStatus.EVIDENCE_PERIOD_OPEN)
        now = self._time.now()
        if hearing_at <= now:
            raise CaseValidationError("hearing_at", "hearing date must be in the future")
        return self._transition(
            case,
            CaseStatus.HEARING_SCHEDULED,
            actor_id,
            now,
            f"Hearing scheduled for {hearing_at.isoformat()}",
            hearing_scheduled_for=hearing_at,
        )

    def record_hearing(
        self, case: CaseRecord, summary: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Record that the hearing took place and open closing arguments.

        Raises:
            PreconditionViolationError: If the hearing date has not arrived.
            CaseValidationError: If the summary is blank.
        """
        self._require(case, "record hearing for", CaseStatus.HEARING_SCHEDULED)
        text = require_text("hearing_summary", summary)
        now = self._time.now()
        if case.hearing_scheduled_for is not None and now < case.hearing_scheduled_for:
            raise PreconditionViolationError(
                entity_id=case.case_id,
                current_state=case.status,
                expected_states=(CaseStatus.HEARING_SCHEDULED,),
                operation="record hearing for",
                detail=(
                    "hearing is scheduled for "
                    f"{case.hearing_scheduled_for.isoformat()}"
                ),
            )
        deadline = self._deadlines.calendar_days(
            now, self._config.closing_arguments_calendar_days
        )
        return self._transition(
            case,
            CaseStatus.CLOSING_ARGUMENTS_PERIOD,
            actor_id,
            now,
            f"Hearing held, closing arguments due {deadline.isoformat()}",
            deadline=deadline,
            hearing_summary=text,
            hearing_held_at=now,
            closing_arguments_deadline=deadline,
        )

    def receive_closing_arguments(
        self, case: CaseRecord, text: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        self._require(
            case, "receive closing arguments for", CaseStatus.CLOSING_ARGUMENTS_PERIOD
        )
        arguments = require_text("closing_arguments_text", text)
        now = self._time.now()
        self._require_within(
            case, "closing_arguments", case.closing_arguments_deadline, now
        )
        return self._transition(
            case,
            CaseStatus.AWAITING_JUDGMENT,
            actor_id,
            now,
            "Closing arguments received",
            closing_arguments_text=arguments,
            closing_arguments_received_at=now,
        )

    def close_closing_arguments_period(
        self, case: CaseRecord, actor_id: UUID | None = None
    ) -> CaseRecord:
        """Move on without closing arguments once their window has lapsed.

        Raises:
            PreconditionViolationError: If the window is still open.
        """
        self._require(
            case,
            "close closing arguments period of",
            CaseStatus.CLOSING_ARGUMENTS_PERIOD,
        )
        now = self._time.now()
        deadline = case.closing_arguments_deadline
        if deadline is not None and not self._deadlines.is_expired(deadline, now):
            raise PreconditionViolationError(
                entity_id=case.case_id,
                current_state=case.status,
                expected_states=(CaseStatus.CLOSING_ARGUMENTS_PERIOD,),
                operation="close closing arguments period of",
                detail=f"period is open until {deadline.isoformat()}",
            )
        return self._transition(
            case,
            CaseStatus.AWAITING_JUDGMENT,
            actor_id,
            now,
            "Closing arguments period lapsed without submission",
        )

    # ------------------------------------------------------------------
    # Judgment and appeal
    # ------------------------------------------------------------------

    def record_first_instance_judgment(
        self,
        case: CaseRecord,
        judgment: JudgmentProcess,
        actor_id: UUID | None = None,
    ) -> CaseRecord:
        """Copy a decided first-instance judgment onto the case."""
        self._require(
            case, "record first-instance judgment for", CaseStatus.AWAITING_JUDGMENT
        )
        self._require_decided(case, judgment, JudgmentInstance.FIRST)
        now = self._time.now()
        outcome = judgment.outcome.value if judgment.outcome else None
        return self._transition(
            case,
            CaseStatus.JUDGED,
            actor_id,
            now,
            f"First-instance judgment {judgment.judgment_id}: {outcome}",
            deadline=judgment.appeal_deadline,
            judgment_id=judgment.judgment_id,
            first_instance_judgment_id=judgment.judgment_id,
            first_instance_decision=outcome,
            first_instance_decided_at=judgment.decided_at,
            appealable=judgment.appealable,
            appeal_deadline=judgment.appeal_deadline,
        )

    def reopen_for_judgment(
        self,
        case: CaseRecord,
        judgment: JudgmentProcess,
        reason: str,
        actor_id: UUID | None = None,
    ) -> CaseRecord:
        """Return a judged case to AWAITING_JUDGMENT after its judgment is annulled.

        The first-instance fields are cleared so a new judgment can be
        scheduled and recorded.

        Raises:
            PreconditionViolationError: If the case is not JUDGED or the
                judgment has not been annulled.
            CaseValidationError: If the judgment is not the one recorded on
                the case, or the reason is blank.
        """
        self._require(case, "reopen judgment of", CaseStatus.JUDGED)
        self._require_recorded(case, judgment)
        judgment.require_status("reopen case of", JudgmentStatus.ANNULLED)
        text = require_text("reason", reason)
        return self._transition(
            case,
            CaseStatus.AWAITING_JUDGMENT,
            actor_id,
            self._time.now(),
            f"First-instance judgment {judgment.judgment_id} annulled: {text}",
            judgment_id=judgment.judgment_id,
            first_instance_judgment_id=None,
            first_instance_decision=None,
            first_instance_decided_at=None,
            appealable=None,
            appeal_deadline=None,
        )

    def enter_appeal(
        self,
        case: CaseRecord,
        appeal: AppealProcess,
        actor_id: UUID | None = None,
    ) -> CaseRecord:
        """Move a judged case into appeal.

        Raises:
            PreconditionViolationError: If the case is not JUDGED or the
                judgment is not appealable.
            CaseValidationError: If the appeal targets another case or a
                judgment other than the recorded one.
            DeadlineExpiredError: If the appeal window has closed.
        """
        self._require(case, "enter appeal for", CaseStatus.JUDGED)
        if not case.appealable:
            raise PreconditionViolationError(
                entity_id=case.case_id,
                current_state=case.status,
                expected_states=(CaseStatus.JUDGED,),
                operation="enter appeal for",
                detail="first-instance judgment is not appealable",
            )
        if appeal.case_id != case.case_id:
            raise CaseValidationError("appeal", "appeal belongs to another case")
        if appeal.judgment_id != case.first_instance_judgment_id:
            raise CaseValidationError(
                "appeal", "appeal is not against the recorded first-instance judgment"
            )
        self._require_within(case, "appeal", case.appeal_deadline, appeal.filed_at)
        return self._transition(
            case,
            CaseStatus.EM_RECURSO,
            actor_id,
            self._time.now(),
            f"Appeal {appeal.appeal_id} filed",
            deadline=appeal.counter_argument_deadline,
            appeal_id=appeal.appeal_id,
            appeal_filed_at=appeal.filed_at,
        )

    def finalize_judgment(
        self,
        case: CaseRecord,
        judgment: JudgmentProcess,
        actor_id: UUID | None = None,
    ) -> CaseRecord:
        """Archive a judged case that can no longer be appealed.

        Raises:
            PreconditionViolationError: If the appeal window is still open
                or the recorded judgment has been annulled.
            CaseValidationError: If ``judgment`` is not the recorded one.
        """
        self._require(case, "finalize judgment of", CaseStatus.JUDGED)
        self._require_recorded(case, judgment)
        judgment.require_status("finalize", JudgmentStatus.DECIDED)
        now = self._time.now()
        if case.appealable and case.appeal_deadline is not None:
            if not self._deadlines.is_expired(case.appeal_deadline, now):
                raise PreconditionViolationError(
                    entity_id=case.case_id,
                    current_state=case.status,
                    expected_states=(CaseStatus.JUDGED,),
                    operation="finalize judgment of",
                    detail=(
                        "appeal window is open until "
                        f"{case.appeal_deadline.isoformat()}"
                    ),
                )
        return self._transition(
            case,
            CaseStatus.ARCHIVED,
            actor_id,
            now,
            "Judgment became final",
            event_type=CASE_ARCHIVED_EVENT_TYPE,
            archived_at=now,
            archive_reason="Judgment became final",
        )

    def record_second_instance_judgment(
        self,
        case: CaseRecord,
        judgment: JudgmentProcess,
        actor_id: UUID | None = None,
    ) -> CaseRecord:
        """Copy the appellate decision onto the case and archive it."""
        self._require(case, "record second-instance judgment for", CaseStatus.EM_RECURSO)
        self._require_decided(case, judgment, JudgmentInstance.SECOND)
        if judgment.appeal_id != case.appeal_id:
            raise CaseValidationError("judgment", "judgment belongs to another appeal")
        now = self._time.now()
        outcome = judgment.outcome.value if judgment.outcome else None
        return self._transition(
            case,
            CaseStatus.ARCHIVED,
            actor_id,
            now,
            f"Second-instance judgment {judgment.judgment_id}: {outcome}",
            event_type=CASE_ARCHIVED_EVENT_TYPE,
            judgment_id=judgment.judgment_id,
            second_instance_judgment_id=judgment.judgment_id,
            second_instance_decision=outcome,
            second_instance_decided_at=judgment.decided_at,
            archived_at=now,
            archive_reason="Second-instance judgment",
        )

    # ------------------------------------------------------------------
    # Deadline inspection
    # ------------------------------------------------------------------

    def pending_deadline(self, case: CaseRecord) -> tuple[str, datetime] | None:
        """Name and instant of the deadline governing the current status."""
        return case.pending_deadline()

    def is_within_deadline(self, case: CaseRecord) -> bool:
        """True when the current status has no deadline or it has not passed."""
        pending = case.pending_deadline()
        if pending is None:
            return True
        return self._deadlines.is_within(pending[1], self._time.now())

    def can_be_edited(self, case: CaseRecord) -> bool:
        return case.can_be_edited()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, case: CaseRecord, operation: str, *expected: CaseStatus) -> None:
        if case.status not in expected:
            raise PreconditionViolationError(
                entity_id=case.case_id,
                current_state=case.status,
                expected_states=expected,
                operation=operation,
            )

    def _require_within(
        self,
        case: CaseRecord,
        name: str,
        deadline: datetime | None,
        at: datetime,
    ) -> None:
        if deadline is not None and self._deadlines.is_expired(deadline, at):
            raise DeadlineExpiredError(
                entity_id=case.case_id,
                deadline_name=name,
                deadline=deadline,
                attempted_at=at,
            )

    def _require_decided(
        self,
        case: CaseRecord,
        judgment: JudgmentProcess,
        instance: JudgmentInstance,
    ) -> None:
        if judgment.case_id != case.case_id:
            raise CaseValidationError("judgment", "judgment belongs to another case")
        if judgment.instance != instance:
            raise CaseValidationError(
                "judgment", f"expected a {instance.value} instance judgment"
            )
        judgment.require_status("copy decision of", JudgmentStatus.DECIDED)

    def _require_recorded(self, case: CaseRecord, judgment: JudgmentProcess) -> None:
        if judgment.judgment_id != case.first_instance_judgment_id:
            raise CaseValidationError(
                "judgment", "not the first-instance judgment recorded on the case"
            )

    def _transition(
        self,
        case: CaseRecord,
        new_status: CaseStatus,
        actor_id: UUID | None,
        at: datetime,
        note: str,
        *,
        event_type: str = CASE_TRANSITIONED_EVENT_TYPE,
        deadline: datetime | None = None,
        judgment_id: UUID | None = None,
        **changes: object,
    ) -> CaseRecord:
        updated = case.with_transition(
            new_status, actor_id=actor_id, at=at, note=note, **changes
        )
        logger.info(
            "case_transitioned",
            case_id=str(case.case_id),
            protocol=case.protocol,
            status_before=case.status.value,
            status_after=new_status.value,
            version=updated.version,
        )
        self._emit(
            event_type,
            updated,
            actor_id,
            deadline=deadline,
            judgment_id=judgment_id,
            status_before=case.status.value,
        )
        return updated

    def _emit(
        self,
        event_type: str,
        case: CaseRecord,
        actor_id: UUID | None,
        *,
        deadline: datetime | None = None,
        judgment_id: UUID | None = None,
        **payload: object,
    ) -> None:
        self._events.emit(
            AdjudicationEvent(
                event_type=event_type,
                case_id=case.case_id,
                status=case.status.value,
                occurred_at=case.audit.updated_at,
                deadline=deadline,
                judgment_id=judgment_id,
                appeal_id=case.appeal_id,
                actor_id=actor_id,
                payload={"protocol": case.protocol, **payload},
            )
        )
