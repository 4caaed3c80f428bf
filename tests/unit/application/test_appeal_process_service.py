"""Unit tests for AppealProcessService (recurso and contrarrazão)."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from uuid6 import uuid7

from contencioso.application.services.appeal_process_service import (
    AppealProcessService,
)
from contencioso.application.services.case_workflow_service import (
    CaseWorkflowService,
)
from contencioso.application.services.judgment_process_service import (
    JudgmentProcessService,
)
from contencioso.domain.errors.workflow import (
    CaseValidationError,
    DeadlineExpiredError,
    PreconditionViolationError,
)
from contencioso.domain.events.adjudication import APPEAL_FILED_EVENT_TYPE
from contencioso.domain.models.appeal_process import AppealProcess, AppealStatus
from contencioso.domain.models.case_record import CaseRecord, CaseStatus
from contencioso.domain.models.committee import Committee
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentOutcome,
    JudgmentProcess,
    JudgmentStatus,
    VoteChoice,
)
from contencioso.infrastructure.stubs import EventSinkStub
from tests.helpers import FakeTimeAuthority

APPEAL_DEADLINE = datetime(2024, 3, 29, 9, 0, tzinfo=timezone.utc)


def _decide(
    service: JudgmentProcessService,
    case: CaseRecord,
    committee: Committee,
    relator_id: UUID,
    now: datetime,
    appealable: bool,
) -> JudgmentProcess:
    judgment = service.start(service.schedule(case, relator_id, now))
    for member_id in committee.active_member_ids[:3]:
        judgment = service.record_vote(judgment, committee, member_id, VoteChoice.FAVOR)
    return service.decide(
        judgment, committee, JudgmentOutcome.PROCEDENTE, "Proven", appealable
    )


@pytest.fixture
def appealable_judgment(
    judgment_service: JudgmentProcessService,
    fake_time: FakeTimeAuthority,
    awaiting_judgment_record: CaseRecord,
    committee: Committee,
    relator_id: UUID,
) -> JudgmentProcess:
    """First-instance decision of Saturday 2024-03-09, appealable until 2024-03-29."""
    return _decide(
        judgment_service,
        awaiting_judgment_record,
        committee,
        relator_id,
        fake_time.now(),
        appealable=True,
    )


@pytest.fixture
def appeal(
    appeal_service: AppealProcessService, appealable_judgment: JudgmentProcess
) -> AppealProcess:
    filed = appeal_service.file(appealable_judgment, uuid7(), "Evidence was misread")
    return appeal_service.request_counter_argument(filed)


class TestFiling:
    """Tests for appeal filing."""

    def test_filed_appeal(
        self,
        appeal_service: AppealProcessService,
        appealable_judgment: JudgmentProcess,
        fake_time: FakeTimeAuthority,
        event_sink: EventSinkStub,
    ) -> None:
        appellant = uuid7()

        filed = appeal_service.file(appealable_judgment, appellant, "  Misread  ")

        assert filed.status == AppealStatus.FILED
        assert filed.reasoning == "Misread"
        assert filed.case_id == appealable_judgment.case_id
        assert filed.judgment_id == appealable_judgment.judgment_id
        # Saturday 2024-03-09 + 5 business days
        assert filed.counter_argument_deadline == datetime(
            2024, 3, 15, 9, 0, tzinfo=timezone.utc
        )
        assert event_sink.events[-1].event_type == APPEAL_FILED_EVENT_TYPE

    def test_filing_at_exact_deadline_succeeds(
        self,
        appeal_service: AppealProcessService,
        appealable_judgment: JudgmentProcess,
        fake_time: FakeTimeAuthority,
    ) -> None:
        assert appealable_judgment.appeal_deadline == APPEAL_DEADLINE
        fake_time.set_time(APPEAL_DEADLINE)

        filed = appeal_service.file(appealable_judgment, uuid7(), "Misread")

        assert filed.filed_at == APPEAL_DEADLINE

    def test_filing_after_deadline_raises(
        self,
        appeal_service: AppealProcessService,
        appealable_judgment: JudgmentProcess,
        fake_time: FakeTimeAuthority,
    ) -> None:
        fake_time.set_time(APPEAL_DEADLINE + timedelta(microseconds=1))

        with pytest.raises(DeadlineExpiredError) as exc_info:
            appeal_service.file(appealable_judgment, uuid7(), "Misread")

        assert exc_info.value.deadline_name == "appeal"

    def test_non_appealable_judgment_rejected(
        self,
        appeal_service: AppealProcessService,
        judgment_service: JudgmentProcessService,
        fake_time: FakeTimeAuthority,
        awaiting_judgment_record: CaseRecord,
        committee: Committee,
        relator_id: UUID,
    ) -> None:
        final = _decide(
            judgment_service,
            awaiting_judgment_record,
            committee,
            relator_id,
            fake_time.now(),
            appealable=False,
        )

        with pytest.raises(PreconditionViolationError) as exc_info:
            appeal_service.file(final, uuid7(), "Misread")

        assert "not appealable" in str(exc_info.value)

    def test_undecided_judgment_rejected(
        self,
        appeal_service: AppealProcessService,
        judgment_service: JudgmentProcessService,
        fake_time: FakeTimeAuthority,
        awaiting_judgment_record: CaseRecord,
        relator_id: UUID,
    ) -> None:
        scheduled = judgment_service.schedule(
            awaiting_judgment_record, relator_id, fake_time.now()
        )

        with pytest.raises(PreconditionViolationError):
            appeal_service.file(scheduled, uuid7(), "Misread")

    def test_blank_reasoning_rejected(
        self,
        appeal_service: AppealProcessService,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        with pytest.raises(CaseValidationError):
            appeal_service.file(appealable_judgment, uuid7(), "")


class TestCounterArgument:
    """Tests for the counter-argument window."""

    def test_request_opens_window(self, appeal: AppealProcess) -> None:
        assert appeal.status == AppealStatus.AWAITING_COUNTER_ARGUMENT
        assert appeal.version == 2

    def test_request_twice_raises(
        self, appeal_service: AppealProcessService, appeal: AppealProcess
    ) -> None:
        with pytest.raises(PreconditionViolationError):
            appeal_service.request_counter_argument(appeal)

    def test_counter_argument_received(
        self, appeal_service: AppealProcessService, appeal: AppealProcess
    ) -> None:
        author = uuid7()

        received = appeal_service.receive_counter_argument(
            appeal, author, "Judgment is sound"
        )

        assert received.status == AppealStatus.COUNTER_ARGUMENT_RECEIVED
        assert received.counter_argument_author_id == author
        assert appeal_service.ready_for_judgment(received) is True
        ready = appeal_service.mark_awaiting_judgment(received)
        assert ready.status == AppealStatus.AWAITING_JUDGMENT

    def test_late_counter_argument_raises(
        self,
        appeal_service: AppealProcessService,
        fake_time: FakeTimeAuthority,
        appeal: AppealProcess,
    ) -> None:
        fake_time.set_time(appeal.counter_argument_deadline + timedelta(seconds=1))

        with pytest.raises(DeadlineExpiredError) as exc_info:
            appeal_service.receive_counter_argument(appeal, uuid7(), "Too late")

        assert exc_info.value.deadline_name == "counter_argument"

    def test_not_ready_while_window_open(
        self, appeal_service: AppealProcessService, appeal: AppealProcess
    ) -> None:
        assert appeal_service.ready_for_judgment(appeal) is False

        with pytest.raises(PreconditionViolationError) as exc_info:
            appeal_service.mark_awaiting_judgment(appeal)

        assert "counter-argument is due" in str(exc_info.value)

    def test_ready_after_window_lapses(
        self,
        appeal_service: AppealProcessService,
        fake_time: FakeTimeAuthority,
        appeal: AppealProcess,
    ) -> None:
        fake_time.set_time(appeal.counter_argument_deadline + timedelta(seconds=1))

        ready = appeal_service.mark_awaiting_judgment(appeal)

        assert ready.status == AppealStatus.AWAITING_JUDGMENT
        assert ready.counter_argument_received is False


class TestSecondInstance:
    """Tests for opening the appellate judgment."""

    def test_open_second_instance(
        self,
        appeal_service: AppealProcessService,
        fake_time: FakeTimeAuthority,
        appeal: AppealProcess,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        received = appeal_service.receive_counter_argument(appeal, uuid7(), "Sound")
        ready = appeal_service.mark_awaiting_judgment(received)
        relator = uuid7()

        linked, judgment = appeal_service.open_second_instance(
            ready, appealable_judgment, relator, fake_time.now() + timedelta(days=3)
        )

        assert judgment.instance == JudgmentInstance.SECOND
        assert judgment.status == JudgmentStatus.SCHEDULED
        assert judgment.appeal_id == ready.appeal_id
        assert judgment.previous_judgment_id == appealable_judgment.judgment_id
        assert judgment.committee_id == appealable_judgment.committee_id
        assert judgment.relator_id == relator
        assert linked.second_instance_judgment_id == judgment.judgment_id

    def test_open_requires_awaiting_judgment(
        self,
        appeal_service: AppealProcessService,
        fake_time: FakeTimeAuthority,
        appeal: AppealProcess,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        with pytest.raises(PreconditionViolationError):
            appeal_service.open_second_instance(
                appeal, appealable_judgment, uuid7(), fake_time.now()
            )

    def test_wrong_first_instance_rejected(
        self,
        appeal_service: AppealProcessService,
        fake_time: FakeTimeAuthority,
        appeal: AppealProcess,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        fake_time.set_time(appeal.counter_argument_deadline + timedelta(days=1))
        ready = appeal_service.mark_awaiting_judgment(appeal)
        other = replace(appealable_judgment, judgment_id=uuid7())

        with pytest.raises(CaseValidationError):
            appeal_service.open_second_instance(ready, other, uuid7(), fake_time.now())


class TestCaseEntersAppeal:
    """Tests for moving the judged case into appeal."""

    def test_case_enters_appeal(
        self,
        case_workflow: CaseWorkflowService,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
        appeal: AppealProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )

        case = case_workflow.enter_appeal(judged, appeal)

        assert case.status == CaseStatus.EM_RECURSO
        assert case.appeal_id == appeal.appeal_id
        assert case.appeal_filed_at == appeal.filed_at

    def test_finalize_waits_for_appeal_window(
        self,
        case_workflow: CaseWorkflowService,
        fake_time: FakeTimeAuthority,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )

        with pytest.raises(PreconditionViolationError):
            case_workflow.finalize_judgment(judged, appealable_judgment)

        fake_time.set_time(APPEAL_DEADLINE + timedelta(seconds=1))
        final = case_workflow.finalize_judgment(judged, appealable_judgment)
        assert final.status == CaseStatus.ARCHIVED
        assert final.archive_reason == "Judgment became final"


class TestAnnulledFirstInstance:
    """Tests for a judged case whose first-instance judgment is annulled."""

    def test_case_returns_to_awaiting_judgment(
        self,
        case_workflow: CaseWorkflowService,
        judgment_service: JudgmentProcessService,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )
        annulled = judgment_service.annul(appealable_judgment, "Relator was impeded")

        reopened = case_workflow.reopen_for_judgment(
            judged, annulled, "Relator was impeded"
        )

        assert reopened.status == CaseStatus.AWAITING_JUDGMENT
        assert reopened.first_instance_judgment_id is None
        assert reopened.first_instance_decision is None
        assert reopened.appealable is None
        assert reopened.appeal_deadline is None
        assert reopened.history[-1].status_before == CaseStatus.JUDGED
        assert "Relator was impeded" in reopened.history[-1].note

    def test_reopen_requires_annulment(
        self,
        case_workflow: CaseWorkflowService,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )

        with pytest.raises(PreconditionViolationError):
            case_workflow.reopen_for_judgment(judged, appealable_judgment, "Early")

    def test_annulled_judgment_cannot_become_final(
        self,
        case_workflow: CaseWorkflowService,
        judgment_service: JudgmentProcessService,
        fake_time: FakeTimeAuthority,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )
        annulled = judgment_service.annul(appealable_judgment, "Irregular session")
        fake_time.set_time(APPEAL_DEADLINE + timedelta(days=1))

        with pytest.raises(PreconditionViolationError):
            case_workflow.finalize_judgment(judged, annulled)

    def test_appeal_must_target_recorded_judgment(
        self,
        case_workflow: CaseWorkflowService,
        awaiting_judgment_record: CaseRecord,
        appealable_judgment: JudgmentProcess,
        appeal: AppealProcess,
    ) -> None:
        judged = case_workflow.record_first_instance_judgment(
            awaiting_judgment_record, appealable_judgment
        )
        stray = replace(appeal, judgment_id=uuid7())

        with pytest.raises(CaseValidationError):
            case_workflow.enter_appeal(judged, stray)
