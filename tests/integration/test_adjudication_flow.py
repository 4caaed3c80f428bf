"""Integration tests driving complete disputes through AdjudicationService.

Every step goes through the repository-backed facade with the in-memory
stubs, a fake clock and the default statutory windows.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from uuid6 import uuid7

from contencioso.application.services.adjudication_service import AdjudicationService
from contencioso.domain.errors import DeadlineExpiredError
from contencioso.domain.events import (
    APPEAL_FILED_EVENT_TYPE,
    CASE_ARCHIVED_EVENT_TYPE,
    CASE_FILED_EVENT_TYPE,
    JUDGMENT_DECIDED_EVENT_TYPE,
)
from contencioso.domain.models.appeal_process import AppealStatus
from contencioso.domain.models.case_record import (
    CaseKind,
    CaseRecord,
    CaseStatus,
    CaseTarget,
)
from contencioso.domain.models.judgment_process import (
    JudgmentInstance,
    JudgmentOutcome,
    JudgmentStatus,
    VoteChoice,
    VoteOutcome,
)
from contencioso.infrastructure.stubs import (
    AdjudicationRepositoryStub,
    EventSinkStub,
)
from tests.helpers import FakeTimeAuthority


def _at(month: int, day: int, hour: int = 9) -> datetime:
    return datetime(2024, month, day, hour, 0, tzinfo=timezone.utc)


class TestFullDispute:
    """A denúncia from filing through appeal to archive."""

    def test_complaint_through_second_instance(
        self,
        service: AdjudicationService,
        repository: AdjudicationRepositoryStub,
        event_sink: EventSinkStub,
        fake_time: FakeTimeAuthority,
        filer_id: UUID,
        target: CaseTarget,
        committee_id: UUID,
        member_ids: list[UUID],
        relator_id: UUID,
    ) -> None:
        # Filing and admissibility on Friday 2024-03-01
        case = service.file_case(
            CaseKind.DENUNCIA,
            "Use of public vehicles during the campaign",
            filer_id,
            target,
            committee_id,
        )
        assert case.protocol == "DEN/2024/000001"
        service.start_review(case.case_id)
        service.rule_admissibility(case.case_id, True, "Facts described with evidence")
        service.designate_relator(case.case_id, relator_id)
        case = service.request_defense(case.case_id)
        assert case.status == CaseStatus.AWAITING_DEFENSE
        assert case.defense_deadline == _at(3, 22)

        # Defense two days before the deadline; evidence runs 30 days from it
        fake_time.set_time(_at(3, 20, 10))
        service.receive_defense(case.case_id, "Vehicles were privately rented")
        case = service.open_evidence_period(case.case_id)
        assert case.evidence_deadline == _at(4, 19, 10)

        # Hearing and closing arguments
        fake_time.set_time(_at(3, 25))
        service.schedule_hearing(case.case_id, _at(4, 2, 14))
        fake_time.set_time(_at(4, 2, 14))
        case = service.record_hearing(case.case_id, "Three witnesses heard")
        assert case.closing_arguments_deadline == _at(4, 12, 14)
        fake_time.set_time(_at(4, 5))
        case = service.receive_closing_arguments(case.case_id, "Request conviction")
        assert case.status == CaseStatus.AWAITING_JUDGMENT

        # First-instance session on Monday 2024-04-15
        judgment = service.schedule_judgment(case.case_id, _at(4, 15, 14))
        fake_time.set_time(_at(4, 15, 14))
        service.start_judgment(judgment.judgment_id)
        choices = [VoteChoice.PROCEDENTE] * 4 + [VoteChoice.IMPROCEDENTE]
        for member_id, choice in zip(member_ids, choices):
            service.record_vote(judgment.judgment_id, member_id, choice)
        decided = service.decide_judgment(
            judgment.judgment_id,
            JudgmentOutcome.PROCEDENTE,
            "Use of public property proven",
            appealable=True,
        )
        assert decided.status == JudgmentStatus.DECIDED
        assert decided.vote_outcome == VoteOutcome.FAVOR
        assert decided.appeal_deadline == _at(5, 6, 14)
        case = service.get_case(case.case_id)
        assert case.status == CaseStatus.JUDGED
        assert case.first_instance_decision == "PROCEDENTE"

        # Appeal and counter-argument
        fake_time.set_time(_at(4, 22, 10))
        appeal = service.file_appeal(
            judgment.judgment_id, uuid7(), "Rental contracts were ignored"
        )
        assert appeal.status == AppealStatus.AWAITING_COUNTER_ARGUMENT
        assert appeal.counter_argument_deadline == _at(4, 29, 10)
        assert service.get_case(case.case_id).status == CaseStatus.EM_RECURSO
        fake_time.set_time(_at(4, 26))
        service.receive_counter_argument(appeal.appeal_id, filer_id, "Contracts forged")
        appeal = service.prepare_appeal_for_judgment(appeal.appeal_id)
        assert appeal.status == AppealStatus.AWAITING_JUDGMENT

        # Second instance
        second = service.open_second_instance(
            appeal.appeal_id, member_ids[1], _at(5, 10, 14)
        )
        assert second.instance == JudgmentInstance.SECOND
        assert second.previous_judgment_id == judgment.judgment_id
        fake_time.set_time(_at(5, 10, 14))
        service.start_judgment(second.judgment_id)
        for member_id in member_ids[:3]:
            service.record_vote(second.judgment_id, member_id, VoteChoice.IMPROCEDENTE)
        service.decide_judgment(
            second.judgment_id,
            JudgmentOutcome.IMPROCEDENTE,
            "Rental contracts are valid",
            appealable=False,
        )

        final = service.get_case(case.case_id)
        assert final.status == CaseStatus.ARCHIVED
        assert final.second_instance_decision == "IMPROCEDENTE"
        assert final.archived_at == _at(5, 10, 14)
        assert [j.instance for j in repository.list_judgments(case.case_id)] == [
            JudgmentInstance.FIRST,
            JudgmentInstance.SECOND,
        ]

        events = event_sink.for_case(case.case_id)
        assert events[0].event_type == CASE_FILED_EVENT_TYPE
        assert events[-1].event_type == CASE_ARCHIVED_EVENT_TYPE
        assert len(event_sink.of_type(JUDGMENT_DECIDED_EVENT_TYPE)) == 2
        assert len(event_sink.of_type(APPEAL_FILED_EVENT_TYPE)) == 1

        # History is append-only and strictly ordered
        timestamps = [entry.occurred_at for entry in final.history]
        assert timestamps == sorted(timestamps)


class TestMissedDeadlines:
    """Deadlines enforced across the facade."""

    def test_late_defense_rejected_and_case_archived(
        self,
        service: AdjudicationService,
        event_sink: EventSinkStub,
        fake_time: FakeTimeAuthority,
        filer_id: UUID,
        target: CaseTarget,
        committee_id: UUID,
    ) -> None:
        case = service.file_case(
            CaseKind.IMPUGNACAO, "Ineligible candidate", filer_id, target, committee_id
        )
        assert case.protocol == "IMP/2024/000001"
        service.start_review(case.case_id)
        service.rule_admissibility(case.case_id, True)
        case = service.request_defense(case.case_id)

        fake_time.set_time(case.defense_deadline)
        assert service.is_within_deadline(case.case_id) is True
        fake_time.advance(delta=timedelta(microseconds=1))
        assert service.is_within_deadline(case.case_id) is False

        events_before = len(event_sink.events)
        with pytest.raises(DeadlineExpiredError):
            service.receive_defense(case.case_id, "Late defense")

        assert len(event_sink.events) == events_before
        assert service.get_case(case.case_id).status == CaseStatus.AWAITING_DEFENSE

        archived = service.archive(case.case_id, "Defense not presented in time")
        assert archived.status == CaseStatus.ARCHIVED

    def test_unappealed_judgment_becomes_final(
        self,
        service: AdjudicationService,
        fake_time: FakeTimeAuthority,
        member_ids: list[UUID],
        drive_to_awaiting_judgment: Callable[..., CaseRecord],
    ) -> None:
        case = drive_to_awaiting_judgment()
        judgment = service.schedule_judgment(case.case_id, fake_time.now())
        service.start_judgment(judgment.judgment_id)
        for member_id in member_ids[:3]:
            service.record_vote(judgment.judgment_id, member_id, VoteChoice.AGAINST)
        decided = service.decide_judgment(
            judgment.judgment_id, JudgmentOutcome.IMPROCEDENTE, "Not proven", True
        )

        fake_time.set_time(decided.appeal_deadline + timedelta(seconds=1))
        with pytest.raises(DeadlineExpiredError):
            service.file_appeal(judgment.judgment_id, uuid7(), "Too late")

        final = service.finalize_judgment(case.case_id)
        assert final.status == CaseStatus.ARCHIVED
