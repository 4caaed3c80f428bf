"""Adjudication service: repository-backed facade over the three state machines.

Every operation runs one load-validate-commit cycle while holding the case
lock:

1. Load the aggregates involved from the repository
2. Apply exactly one transition per aggregate (CaseWorkflowService,
   JudgmentProcessService, AppealProcessService)
3. Commit every changed aggregate in one change set, each with the version
   it was read at
4. Publish the buffered events

A rejected operation raises before step 3, so nothing is written and no
event is published. Rejections are logged at warning and propagated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger

from contencioso.application.ports.adjudication_repository import (
    AdjudicationChangeSet,
    PendingWrite,
)
from contencioso.domain.errors.not_found import (
    AppealNotFoundError,
    CaseNotFoundError,
    JudgmentNotFoundError,
)
from contencioso.domain.errors.workflow import (
    CaseValidationError,
    PreconditionViolationError,
)
from contencioso.domain.exceptions import AdjudicationError
from contencioso.domain.models.case_record import CaseStatus
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentOutcome,
    JudgmentProcess,
    JudgmentStatus,
    VoteChoice,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from contencioso.application.ports.adjudication_repository import (
        AdjudicationRepositoryProtocol,
    )
    from contencioso.application.ports.committee_roster import CommitteeRosterProtocol
    from contencioso.application.ports.time_authority import TimeAuthorityProtocol
    from contencioso.application.services.appeal_process_service import (
        AppealProcessService,
    )
    from contencioso.application.services.case_lock import CaseLockRegistry
    from contencioso.application.services.case_workflow_service import (
        CaseWorkflowService,
    )
    from contencioso.application.services.deferred_event_sink import DeferredEventSink
    from contencioso.application.services.judgment_process_service import (
        JudgmentProcessService,
    )
    from contencioso.domain.models.appeal_process import AppealProcess
    from contencioso.domain.models.case_record import (
        AdmissibilityRequisites,
        CaseKind,
        CaseRecord,
        CaseTarget,
    )

logger = get_logger(__name__)


class AdjudicationService:
    """Entry point for callers (HTTP handlers, scheduled jobs, CLIs).

    The workflow components must be wired to ``event_sink`` so their
    events are held back until the commit succeeds.
    """

    def __init__(
        self,
        repository: AdjudicationRepositoryProtocol,
        roster: CommitteeRosterProtocol,
        time_authority: TimeAuthorityProtocol,
        case_workflow: CaseWorkflowService,
        judgment_process: JudgmentProcessService,
        appeal_process: AppealProcessService,
        event_sink: DeferredEventSink,
        locks: CaseLockRegistry,
    ) -> None:
        """Initialize the adjudication service.

        Args:
            repository: Persistence of cases, judgments and appeals.
            roster: Committee roster (read fresh at each vote and decision).
            time_authority: Source of current time.
            case_workflow: Case state machine.
            judgment_process: Judgment engine.
            appeal_process: Appeal engine.
            event_sink: Deferred sink the workflow components emit to.
            locks: Per-case lock registry.
        """
        self._repo = repository
        self._roster = roster
        self._time = time_authority
        self._cases = case_workflow
        self._judgments = judgment_process
        self._appeals = appeal_process
        self._events = event_sink
        self._locks = locks

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_case(self, case_id: UUID) -> CaseRecord:
        case = self._repo.get_case(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        return case

    def get_judgment(self, judgment_id: UUID) -> JudgmentProcess:
        judgment = self._repo.get_judgment(judgment_id)
        if judgment is None:
            raise JudgmentNotFoundError(judgment_id)
        return judgment

    def get_appeal(self, appeal_id: UUID) -> AppealProcess:
        appeal = self._repo.get_appeal(appeal_id)
        if appeal is None:
            raise AppealNotFoundError(appeal_id)
        return appeal

    def list_judgments(self, case_id: UUID) -> list[JudgmentProcess]:
        self.get_case(case_id)
        return self._repo.list_judgments(case_id)

    def is_within_deadline(self, case_id: UUID) -> bool:
        return self._cases.is_within_deadline(self.get_case(case_id))

    # ------------------------------------------------------------------
    # Case workflow
    # ------------------------------------------------------------------

    def file_case(
        self,
        kind: CaseKind,
        description: str,
        filer_id: UUID,
        target: CaseTarget,
        committee_id: UUID,
        confidential: bool = False,
    ) -> CaseRecord:
        """File a new case, reserving its protocol sequence number."""
        log = logger.bind(kind=kind.value, filer_id=str(filer_id))
        with self._rejections_logged(log, "file_case"), self._events.deferred():
            year = self._time.now().year
            sequence = self._repo.next_sequence(kind, year)
            case = self._cases.file_case(
                kind,
                sequence,
                description,
                filer_id,
                target,
                committee_id,
                confidential=confidential,
            )
            self._repo.commit(AdjudicationChangeSet(cases=(PendingWrite(case, None),)))
        return case

    def start_review(self, case_id: UUID, actor_id: UUID | None = None) -> CaseRecord:
        return self._case_step(
            case_id, "start_review", lambda c: self._cases.start_review(c, actor_id)
        )

    def rule_admissibility(
        self,
        case_id: UUID,
        admissible: bool,
        reason: str | None = None,
        actor_id: UUID | None = None,
        requisites: AdmissibilityRequisites | None = None,
        requisites_analysis: str | None = None,
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "rule_admissibility",
            lambda c: self._cases.rule_admissibility(
                c, admissible, reason, actor_id, requisites, requisites_analysis
            ),
        )

    def designate_relator(
        self, case_id: UUID, relator_id: UUID, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "designate_relator",
            lambda c: self._cases.designate_relator(c, relator_id, actor_id),
        )

    def request_defense(self, case_id: UUID, actor_id: UUID | None = None) -> CaseRecord:
        return self._case_step(
            case_id, "request_defense", lambda c: self._cases.request_defense(c, actor_id)
        )

    def receive_defense(
        self, case_id: UUID, defense_text: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "receive_defense",
            lambda c: self._cases.receive_defense(c, defense_text, actor_id),
        )

    def open_evidence_period(
        self, case_id: UUID, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "open_evidence_period",
            lambda c: self._cases.open_evidence_period(c, actor_id),
        )

    def schedule_hearing(
        self, case_id: UUID, hearing_at: datetime, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "schedule_hearing",
            lambda c: self._cases.schedule_hearing(c, hearing_at, actor_id),
        )

    def record_hearing(
        self, case_id: UUID, summary: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "record_hearing",
            lambda c: self._cases.record_hearing(c, summary, actor_id),
        )

    def receive_closing_arguments(
        self, case_id: UUID, text: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "receive_closing_arguments",
            lambda c: self._cases.receive_closing_arguments(c, text, actor_id),
        )

    def close_closing_arguments_period(
        self, case_id: UUID, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id,
            "close_closing_arguments_period",
            lambda c: self._cases.close_closing_arguments_period(c, actor_id),
        )

    def finalize_judgment(self, case_id: UUID, actor_id: UUID | None = None) -> CaseRecord:
        """Archive a judged case once its recorded decision can no longer be appealed."""

        def finalize(case: CaseRecord) -> CaseRecord:
            if case.first_instance_judgment_id is None:
                raise PreconditionViolationError(
                    entity_id=case.case_id,
                    current_state=case.status,
                    expected_states=(CaseStatus.JUDGED,),
                    operation="finalize judgment of",
                    detail="no first-instance judgment is recorded",
                )
            judgment = self.get_judgment(case.first_instance_judgment_id)
            return self._cases.finalize_judgment(case, judgment, actor_id)

        return self._case_step(case_id, "finalize_judgment", finalize)

    def archive(
        self, case_id: UUID, reason: str, actor_id: UUID | None = None
    ) -> CaseRecord:
        return self._case_step(
            case_id, "archive", lambda c: self._cases.archive(c, reason, actor_id)
        )

    # ------------------------------------------------------------------
    # Judgment
    # ------------------------------------------------------------------

    def schedule_judgment(
        self,
        case_id: UUID,
        scheduled_for: datetime,
        relator_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Schedule the first-instance judgment of a case.

        The case relator is used when ``relator_id`` is omitted. An earlier
        first-instance judgment blocks scheduling unless it was annulled.
        """
        log = logger.bind(case_id=str(case_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, "schedule_judgment"),
            self._events.deferred(),
        ):
            case = self.get_case(case_id)
            relator = relator_id or case.relator_id
            if relator is None:
                raise CaseValidationError("relator_id", "case has no designated relator")
            for existing in self._repo.list_judgments(case_id):
                if (
                    existing.instance == JudgmentInstance.FIRST
                    and existing.status != JudgmentStatus.ANNULLED
                ):
                    raise CaseValidationError(
                        "case_id",
                        f"first-instance judgment {existing.judgment_id} already exists",
                    )
            judgment = self._judgments.schedule(case, relator, scheduled_for, actor_id)
            self._repo.commit(
                AdjudicationChangeSet(judgments=(PendingWrite(judgment, None),))
            )
        return judgment

    def start_judgment(
        self, judgment_id: UUID, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        return self._judgment_step(
            judgment_id, "start_judgment", lambda j: self._judgments.start(j, actor_id)
        )

    def suspend_judgment(
        self, judgment_id: UUID, reason: str, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        return self._judgment_step(
            judgment_id,
            "suspend_judgment",
            lambda j: self._judgments.suspend(j, reason, actor_id),
        )

    def resume_judgment(
        self, judgment_id: UUID, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        return self._judgment_step(
            judgment_id, "resume_judgment", lambda j: self._judgments.resume(j, actor_id)
        )

    def adjourn_judgment(
        self,
        judgment_id: UUID,
        new_date: datetime,
        reason: str,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        return self._judgment_step(
            judgment_id,
            "adjourn_judgment",
            lambda j: self._judgments.adjourn(j, new_date, reason, actor_id),
        )

    def record_vote(
        self,
        judgment_id: UUID,
        member_id: UUID,
        choice: VoteChoice,
        justification: str | None = None,
    ) -> JudgmentProcess:
        """Record a vote against the roster as it is right now."""
        return self._judgment_step(
            judgment_id,
            "record_vote",
            lambda j: self._judgments.record_vote(
                j,
                self._roster.get_committee(j.committee_id),
                member_id,
                choice,
                justification,
            ),
        )

    def annul_judgment(
        self, judgment_id: UUID, reason: str, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        """Annul the first-instance decision recorded on a judged case.

        The case returns to AWAITING_JUDGMENT in the same change set, so a
        new judgment can be scheduled. Once the case has entered appeal or
        been archived its decision can no longer be annulled.
        """
        case_id = self.get_judgment(judgment_id).case_id
        log = logger.bind(case_id=str(case_id), judgment_id=str(judgment_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, "annul_judgment"),
            self._events.deferred(),
        ):
            judgment = self.get_judgment(judgment_id)
            case = self.get_case(case_id)
            annulled = self._judgments.annul(judgment, reason, actor_id)
            reopened = self._cases.reopen_for_judgment(case, annulled, reason, actor_id)
            self._repo.commit(
                AdjudicationChangeSet(
                    cases=(PendingWrite(reopened, case.version),),
                    judgments=(PendingWrite(annulled, judgment.version),),
                )
            )
        return annulled

    def call_revote(
        self, judgment_id: UUID, reason: str, actor_id: UUID | None = None
    ) -> JudgmentProcess:
        """Discard a tied vote so the committee votes again."""
        return self._judgment_step(
            judgment_id,
            "call_revote",
            lambda j: self._judgments.call_revote(
                j, self._roster.get_committee(j.committee_id), reason, actor_id
            ),
        )

    def decide_judgment(
        self,
        judgment_id: UUID,
        outcome: JudgmentOutcome,
        reasoning: str,
        appealable: bool,
        appeal_window_days: int | None = None,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Decide a judgment and copy the decision onto its case.

        A first-instance decision moves the case to JUDGED; a
        second-instance decision archives it. Both aggregates are committed
        together.
        """
        case_id = self.get_judgment(judgment_id).case_id
        log = logger.bind(case_id=str(case_id), judgment_id=str(judgment_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, "decide_judgment"),
            self._events.deferred(),
        ):
            judgment = self.get_judgment(judgment_id)
            case = self.get_case(case_id)
            committee = self._roster.get_committee(judgment.committee_id)
            decided = self._judgments.decide(
                judgment,
                committee,
                outcome,
                reasoning,
                appealable,
                appeal_window_days,
                actor_id,
            )
            if decided.instance == JudgmentInstance.FIRST:
                updated_case = self._cases.record_first_instance_judgment(
                    case, decided, actor_id
                )
            else:
                updated_case = self._cases.record_second_instance_judgment(
                    case, decided, actor_id
                )
            self._repo.commit(
                AdjudicationChangeSet(
                    cases=(PendingWrite(updated_case, case.version),),
                    judgments=(PendingWrite(decided, judgment.version),),
                )
            )
        return decided

    # ------------------------------------------------------------------
    # Appeal
    # ------------------------------------------------------------------

    def file_appeal(
        self, judgment_id: UUID, appellant_id: UUID, reasoning: str
    ) -> AppealProcess:
        """File an appeal, open the counter-argument window and move the case.

        The appeal's FILED -> AWAITING_COUNTER_ARGUMENT step and the case's
        JUDGED -> EM_RECURSO step are committed together.
        """
        case_id = self.get_judgment(judgment_id).case_id
        log = logger.bind(case_id=str(case_id), judgment_id=str(judgment_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, "file_appeal"),
            self._events.deferred(),
        ):
            judgment = self.get_judgment(judgment_id)
            case = self.get_case(case_id)
            appeal = self._appeals.file(judgment, appellant_id, reasoning)
            appeal = self._appeals.request_counter_argument(appeal)
            updated_case = self._cases.enter_appeal(case, appeal, appellant_id)
            self._repo.commit(
                AdjudicationChangeSet(
                    cases=(PendingWrite(updated_case, case.version),),
                    appeals=(PendingWrite(appeal, None),),
                )
            )
        return appeal

    def receive_counter_argument(
        self, appeal_id: UUID, author_id: UUID, text: str
    ) -> AppealProcess:
        return self._appeal_step(
            appeal_id,
            "receive_counter_argument",
            lambda a: self._appeals.receive_counter_argument(a, author_id, text),
        )

    def prepare_appeal_for_judgment(
        self, appeal_id: UUID, actor_id: UUID | None = None
    ) -> AppealProcess:
        return self._appeal_step(
            appeal_id,
            "prepare_appeal_for_judgment",
            lambda a: self._appeals.mark_awaiting_judgment(a, actor_id),
        )

    def open_second_instance(
        self,
        appeal_id: UUID,
        relator_id: UUID,
        scheduled_for: datetime,
        committee_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> JudgmentProcess:
        """Create the appellate judgment of an appeal awaiting judgment.

        Raises:
            PreconditionViolationError: If the case is no longer EM_RECURSO
                (for instance, archived administratively meanwhile).
        """
        case_id = self.get_appeal(appeal_id).case_id
        log = logger.bind(case_id=str(case_id), appeal_id=str(appeal_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, "open_second_instance"),
            self._events.deferred(),
        ):
            case = self.get_case(case_id)
            if case.status != CaseStatus.EM_RECURSO:
                raise PreconditionViolationError(
                    entity_id=case.case_id,
                    current_state=case.status,
                    expected_states=(CaseStatus.EM_RECURSO,),
                    operation="open second instance for",
                )
            appeal = self.get_appeal(appeal_id)
            first_instance = self.get_judgment(appeal.judgment_id)
            linked, judgment = self._appeals.open_second_instance(
                appeal,
                first_instance,
                relator_id,
                scheduled_for,
                committee_id=committee_id,
                actor_id=actor_id,
            )
            self._repo.commit(
                AdjudicationChangeSet(
                    judgments=(PendingWrite(judgment, None),),
                    appeals=(PendingWrite(linked, appeal.version),),
                )
            )
        return judgment

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _case_step(
        self,
        case_id: UUID,
        operation: str,
        step: Callable[[CaseRecord], CaseRecord],
    ) -> CaseRecord:
        log = logger.bind(case_id=str(case_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, operation),
            self._events.deferred(),
        ):
            case = self.get_case(case_id)
            updated = step(case)
            self._repo.commit(
                AdjudicationChangeSet(cases=(PendingWrite(updated, case.version),))
            )
        return updated

    def _judgment_step(
        self,
        judgment_id: UUID,
        operation: str,
        step: Callable[[JudgmentProcess], JudgmentProcess],
    ) -> JudgmentProcess:
        case_id = self.get_judgment(judgment_id).case_id
        log = logger.bind(case_id=str(case_id), judgment_id=str(judgment_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, operation),
            self._events.deferred(),
        ):
            judgment = self.get_judgment(judgment_id)
            updated = step(judgment)
            self._repo.commit(
                AdjudicationChangeSet(
                    judgments=(PendingWrite(updated, judgment.version),)
                )
            )
        return updated

    def _appeal_step(
        self,
        appeal_id: UUID,
        operation: str,
        step: Callable[[AppealProcess], AppealProcess],
    ) -> AppealProcess:
        case_id = self.get_appeal(appeal_id).case_id
        log = logger.bind(case_id=str(case_id), appeal_id=str(appeal_id))
        with (
            self._locks.hold(case_id),
            self._rejections_logged(log, operation),
            self._events.deferred(),
        ):
            appeal = self.get_appeal(appeal_id)
            updated = step(appeal)
            self._repo.commit(
                AdjudicationChangeSet(appeals=(PendingWrite(updated, appeal.version),))
            )
        return updated

    @contextmanager
    def _rejections_logged(
        self, log: FilteringBoundLogger, operation: str
    ) -> Iterator[None]:
        try:
            yield
        except AdjudicationError as exc:
            log.warning(
                "adjudication_rejected",
                operation=operation,
                error_type=type(exc).__name__,
                reason=str(exc),
            )
            raise
