"""Appeal process engine (recurso and contrarrazão).

Chains a decided, appealable first-instance judgment to the second
instance: the appeal is filed within the appeal window, the other party
gets a counter-argument window, and once the counter-argument arrives or
its window lapses the appeal is ready for the appellate judgment.
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
    APPEAL_FILED_EVENT_TYPE,
    APPEAL_TRANSITIONED_EVENT_TYPE,
    AdjudicationEvent,
)
from contencioso.domain.models.appeal_process import AppealProcess, AppealStatus
from contencioso.domain.models.audit_trail import AuditTrail
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentProcess,
    JudgmentStatus,
)

if TYPE_CHECKING:
    from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
    from contencioso.application.ports.time_authority import TimeAuthorityProtocol
    from contencioso.application.services.judgment_process_service import (
        JudgmentProcessService,
    )
    from contencioso.config.adjudication_config import AdjudicationConfig
    from contencioso.domain.services.deadline_calculator import DeadlineCalculator

logger = get_logger(__name__)


class AppealProcessService:
    """Engine for appeals."""

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        deadline_calculator: DeadlineCalculator,
        config: AdjudicationConfig,
        event_sink: AdjudicationEventSinkProtocol,
        judgment_service: JudgmentProcessService,
    ) -> None:
        """Initialize the appeal engine.

        Args:
            time_authority: Source of current time.
            deadline_calculator: Counter-argument deadline computation.
            config: Counter-argument window.
            event_sink: Receives one event per transition.
            judgment_service: Creates the second-instance judgment.
        """
        self._time = time_authority
        self._deadlines = deadline_calculator
        self._config = config
        self._events = event_sink
        self._judgments = judgment_service

    def file(
        self,
        judgment: JudgmentProcess,
        appellant_id: UUID,
        reasoning: str,
    ) -> AppealProcess:
        """File an appeal against a decided first-instance judgment.

        Raises:
            PreconditionViolationError: If the judgment is not DECIDED, not
                first instance, or not appealable.
            CaseValidationError: If the reasoning is blank.
            DeadlineExpiredError: If the appeal window has closed.
        """
        judgment.require_status("appeal", JudgmentStatus.DECIDED)
        if judgment.instance != JudgmentInstance.FIRST or not judgment.appealable:
            raise PreconditionViolationError(
                entity_id=judgment.judgment_id,
                current_state=judgment.status,
                expected_states=(JudgmentStatus.DECIDED,),
                operation="appeal",
                detail="judgment is not appealable",
            )
        text = require_text("reasoning", reasoning)
        now = self._time.now()
        if judgment.appeal_deadline is not None and self._deadlines.is_expired(
            judgment.appeal_deadline, now
        ):
            logger.warning(
                "appeal_deadline_expired",
                judgment_id=str(judgment.judgment_id),
                case_id=str(judgment.case_id),
                deadline=judgment.appeal_deadline.isoformat(),
            )
            raise DeadlineExpiredError(
                entity_id=judgment.judgment_id,
                deadline_name="appeal",
                deadline=judgment.appeal_deadline,
                attempted_at=now,
            )
        deadline = self._deadlines.business_days(
            now, self._config.counter_argument_business_days
        )
        appeal = AppealProcess(
            appeal_id=uuid7(),
            case_id=judgment.case_id,
            judgment_id=judgment.judgment_id,
            appellant_id=appellant_id,
            filed_at=now,
            reasoning=text,
            counter_argument_deadline=deadline,
            audit=AuditTrail.started(appellant_id, now),
        )
        self._log_and_emit(APPEAL_FILED_EVENT_TYPE, appeal, None, appellant_id)
        return appeal

    def request_counter_argument(
        self, appeal: AppealProcess, actor_id: UUID | None = None
    ) -> AppealProcess:
        """Notify the other party that the counter-argument window is open."""
        appeal.require_status("request counter-argument for", AppealStatus.FILED)
        updated = appeal.with_status(
            AppealStatus.AWAITING_COUNTER_ARGUMENT,
            actor_id=actor_id,
            at=self._time.now(),
        )
        self._log_and_emit(APPEAL_TRANSITIONED_EVENT_TYPE, updated, appeal, actor_id)
        return updated

    def receive_counter_argument(
        self, appeal: AppealProcess, author_id: UUID, text: str
    ) -> AppealProcess:
        """Record the contrarrazão.

        Raises:
            PreconditionViolationError: If not AWAITING_COUNTER_ARGUMENT.
            CaseValidationError: If the text is blank.
            DeadlineExpiredError: If the counter-argument window has closed.
        """
        appeal.require_status(
            "receive counter-argument for", AppealStatus.AWAITING_COUNTER_ARGUMENT
        )
        content = require_text("counter_argument_text", text)
        now = self._time.now()
        if self._deadlines.is_expired(appeal.counter_argument_deadline, now):
            raise DeadlineExpiredError(
                entity_id=appeal.appeal_id,
                deadline_name="counter_argument",
                deadline=appeal.counter_argument_deadline,
                attempted_at=now,
            )
        updated = appeal.with_status(
            AppealStatus.COUNTER_ARGUMENT_RECEIVED,
            actor_id=author_id,
            at=now,
            counter_argument_text=content,
            counter_argument_author_id=author_id,
            counter_argument_received_at=now,
        )
        self._log_and_emit(APPEAL_TRANSITIONED_EVENT_TYPE, updated, appeal, author_id)
        return updated

    def ready_for_judgment(self, appeal: AppealProcess) -> bool:
        """True once the counter-argument arrived or its window lapsed."""
        if appeal.status == AppealStatus.AWAITING_JUDGMENT:
            return True
        if appeal.counter_argument_received:
            return True
        return self._deadlines.is_expired(
            appeal.counter_argument_deadline, self._time.now()
        )

    def mark_awaiting_judgment(
        self, appeal: AppealProcess, actor_id: UUID | None = None
    ) -> AppealProcess:
        """Move a ready appeal to AWAITING_JUDGMENT.

        Raises:
            PreconditionViolationError: If the counter-argument is still due.
        """
        appeal.require_status(
            "prepare for judgment",
            AppealStatus.AWAITING_COUNTER_ARGUMENT,
            AppealStatus.COUNTER_ARGUMENT_RECEIVED,
        )
        if not self.ready_for_judgment(appeal):
            raise PreconditionViolationError(
                entity_id=appeal.appeal_id,
                current_state=appeal.status,
                expected_states=(AppealStatus.COUNTER_ARGUMENT_RECEIVED,),
                operation="prepare for judgment",
                detail=(
                    "counter-argument is due until "
                    f"{appeal.counter_argument_deadline.isoformat()}"
                ),
            )
        updated = appeal.with_status(
            AppealStatus.AWAITING_JUDGMENT,
            actor_id=actor_id,
            at=self._time.now(),
        )
        self._log_and_emit(APPEAL_TRANSITIONED_EVENT_TYPE, updated, appeal, actor_id)
        return updated

    def open_second_instance(
        self,
        appeal: AppealProcess,
        first_instance: JudgmentProcess,
        relator_id: UUID,
        scheduled_for: datetime,
        committee_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> tuple[AppealProcess, JudgmentProcess]:
        """Create the second-instance judgment for an appeal awaiting judgment.

        Args:
            appeal: Appeal in AWAITING_JUDGMENT.
            first_instance: Judgment under appeal.
            relator_id: Rapporteur of the appellate judgment.
            scheduled_for: Session date.
            committee_id: Appellate committee (the first-instance committee
                if omitted).
            actor_id: Who opened it.

        Returns:
            The appeal linked to the new judgment, and the judgment.
        """
        appeal.require_status("open second instance for", AppealStatus.AWAITING_JUDGMENT)
        if first_instance.judgment_id != appeal.judgment_id:
            raise CaseValidationError(
                "first_instance", "judgment is not the one under appeal"
            )
        judgment = self._judgments.schedule_second_instance(
            case_id=appeal.case_id,
            case_kind=first_instance.case_kind,
            committee_id=committee_id or first_instance.committee_id,
            appeal_id=appeal.appeal_id,
            previous_judgment_id=first_instance.judgment_id,
            relator_id=relator_id,
            scheduled_for=scheduled_for,
            actor_id=actor_id,
        )
        linked = appeal.with_second_instance(
            judgment.judgment_id, actor_id=actor_id, at=self._time.now()
        )
        return linked, judgment

    def _log_and_emit(
        self,
        event_type: str,
        updated: AppealProcess,
        previous: AppealProcess | None,
        actor_id: UUID | None,
    ) -> None:
        status_before = previous.status.value if previous is not None else None
        logger.info(
            "appeal_transitioned",
            appeal_id=str(updated.appeal_id),
            case_id=str(updated.case_id),
            status_before=status_before,
            status_after=updated.status.value,
        )
        self._events.emit(
            AdjudicationEvent(
                event_type=event_type,
                case_id=updated.case_id,
                status=updated.status.value,
                occurred_at=updated.audit.updated_at,
                deadline=updated.counter_argument_deadline,
                judgment_id=updated.judgment_id,
                appeal_id=updated.appeal_id,
                actor_id=actor_id,
                payload={"status_before": status_before},
            )
        )
