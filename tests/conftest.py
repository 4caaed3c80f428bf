"""
Pytest configuration and shared fixtures for the adjudication engine tests.

Testing Standards:
- Time never comes from the wall clock: every fixture shares one
  FakeTimeAuthority frozen on Friday 2024-03-01 09:00 UTC
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from uuid6 import uuid7

from contencioso.application.services.adjudication_service import AdjudicationService
from contencioso.application.services.appeal_process_service import (
    AppealProcessService,
)
from contencioso.application.services.case_workflow_service import (
    CaseWorkflowService,
)
from contencioso.application.services.judgment_process_service import (
    JudgmentProcessService,
)
from contencioso.bootstrap.adjudication import build_adjudication_service
from contencioso.config.adjudication_config import (
    DEFAULT_ADJUDICATION_CONFIG,
    AdjudicationConfig,
)
from contencioso.domain.models.case_record import (
    CaseKind,
    CaseRecord,
    CaseTarget,
    TargetKind,
)
from contencioso.domain.models.committee import Committee, CommitteeScope
from contencioso.domain.services.deadline_calculator import DeadlineCalculator
from contencioso.infrastructure.stubs import (
    AdjudicationRepositoryStub,
    CommitteeRosterStub,
    EventSinkStub,
)
from tests.helpers import FakeTimeAuthority

FILED_AT = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from contencioso import __version__

    return __version__


# ---------------------------------------------------------------------------
# Clock, config and ports
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    return FakeTimeAuthority(frozen_at=FILED_AT)


@pytest.fixture
def config() -> AdjudicationConfig:
    return DEFAULT_ADJUDICATION_CONFIG


@pytest.fixture
def calculator() -> DeadlineCalculator:
    return DeadlineCalculator()


@pytest.fixture
def event_sink() -> EventSinkStub:
    return EventSinkStub()


@pytest.fixture
def repository() -> AdjudicationRepositoryStub:
    return AdjudicationRepositoryStub()


@pytest.fixture
def member_ids() -> list[UUID]:
    """Five seats of a national committee."""
    return [uuid7() for _ in range(5)]


@pytest.fixture
def committee_id() -> UUID:
    return uuid7()


@pytest.fixture
def roster(committee_id: UUID, member_ids: list[UUID]) -> CommitteeRosterStub:
    stub = CommitteeRosterStub()
    stub.add_committee(committee_id, CommitteeScope.NATIONAL, member_ids)
    return stub


@pytest.fixture
def committee(roster: CommitteeRosterStub, committee_id: UUID) -> Committee:
    return roster.get_committee(committee_id)


@pytest.fixture
def filer_id() -> UUID:
    return uuid7()


@pytest.fixture
def relator_id(member_ids: list[UUID]) -> UUID:
    return member_ids[0]


@pytest.fixture
def target() -> CaseTarget:
    return CaseTarget(kind=TargetKind.CHAPA, reference_id=uuid7())


# ---------------------------------------------------------------------------
# Engines wired directly to the recording sink
# ---------------------------------------------------------------------------


@pytest.fixture
def case_workflow(
    fake_time: FakeTimeAuthority,
    calculator: DeadlineCalculator,
    config: AdjudicationConfig,
    event_sink: EventSinkStub,
) -> CaseWorkflowService:
    return CaseWorkflowService(fake_time, calculator, config, event_sink)


@pytest.fixture
def judgment_service(
    fake_time: FakeTimeAuthority,
    calculator: DeadlineCalculator,
    config: AdjudicationConfig,
    event_sink: EventSinkStub,
) -> JudgmentProcessService:
    return JudgmentProcessService(fake_time, calculator, config, event_sink)


@pytest.fixture
def appeal_service(
    fake_time: FakeTimeAuthority,
    calculator: DeadlineCalculator,
    config: AdjudicationConfig,
    event_sink: EventSinkStub,
    judgment_service: JudgmentProcessService,
) -> AppealProcessService:
    return AppealProcessService(
        fake_time, calculator, config, event_sink, judgment_service
    )


@pytest.fixture
def new_case(
    case_workflow: CaseWorkflowService,
    filer_id: UUID,
    target: CaseTarget,
    committee_id: UUID,
) -> CaseRecord:
    """A denúncia freshly filed on 2024-03-01 with protocol DEN/2024/000001."""
    return case_workflow.file_case(
        CaseKind.DENUNCIA,
        1,
        "Distribution of gifts to voters during the campaign",
        filer_id,
        target,
        committee_id,
    )


@pytest.fixture
def awaiting_judgment_record(
    case_workflow: CaseWorkflowService,
    fake_time: FakeTimeAuthority,
    new_case: CaseRecord,
    relator_id: UUID,
) -> CaseRecord:
    """``new_case`` driven through instruction up to AWAITING_JUDGMENT."""
    case = case_workflow.start_review(new_case)
    case = case_workflow.rule_admissibility(case, True)
    case = case_workflow.designate_relator(case, relator_id)
    case = case_workflow.request_defense(case)
    fake_time.advance(delta=timedelta(days=5))
    case = case_workflow.receive_defense(case, "The gifts were campaign material")
    case = case_workflow.open_evidence_period(case)
    case = case_workflow.schedule_hearing(case, fake_time.now() + timedelta(days=3))
    fake_time.advance(delta=timedelta(days=3))
    case = case_workflow.record_hearing(case, "Witnesses heard")
    return case_workflow.receive_closing_arguments(case, "Final remarks")


# ---------------------------------------------------------------------------
# Repository-backed facade
# ---------------------------------------------------------------------------


@pytest.fixture
def service(
    repository: AdjudicationRepositoryStub,
    roster: CommitteeRosterStub,
    event_sink: EventSinkStub,
    fake_time: FakeTimeAuthority,
    config: AdjudicationConfig,
) -> AdjudicationService:
    return build_adjudication_service(
        repository=repository,
        roster=roster,
        event_sink=event_sink,
        time_authority=fake_time,
        config=config,
    )


@pytest.fixture
def drive_to_awaiting_judgment(
    service: AdjudicationService,
    fake_time: FakeTimeAuthority,
    filer_id: UUID,
    target: CaseTarget,
    committee_id: UUID,
    relator_id: UUID,
) -> Callable[..., CaseRecord]:
    """Factory filing a case and instructing it up to AWAITING_JUDGMENT."""

    def drive(kind: CaseKind = CaseKind.DENUNCIA) -> CaseRecord:
        case = service.file_case(
            kind, "Irregular campaign financing", filer_id, target, committee_id
        )
        service.start_review(case.case_id)
        service.rule_admissibility(case.case_id, True)
        service.designate_relator(case.case_id, relator_id)
        service.request_defense(case.case_id)
        fake_time.advance(delta=timedelta(days=2))
        service.receive_defense(case.case_id, "Denial of all facts")
        service.open_evidence_period(case.case_id)
        service.schedule_hearing(case.case_id, fake_time.now() + timedelta(days=1))
        fake_time.advance(delta=timedelta(days=1))
        service.record_hearing(case.case_id, "Hearing held with both parties")
        return service.receive_closing_arguments(case.case_id, "Closing remarks")

    return drive
