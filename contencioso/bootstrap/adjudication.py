"""Bootstrap wiring for the adjudication engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from structlog import get_logger

from contencioso.application.services.adjudication_service import AdjudicationService
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
from contencioso.config.adjudication_config import AdjudicationConfig
from contencioso.domain.services.deadline_calculator import (
    DeadlineCalculator,
    HolidayCalendar,
    WeekendCalendar,
)
from contencioso.infrastructure.adapters.structlog_event_sink import StructlogEventSink
from contencioso.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)
from contencioso.infrastructure.stubs.adjudication_repository_stub import (
    AdjudicationRepositoryStub,
)
from contencioso.infrastructure.stubs.committee_roster_stub import CommitteeRosterStub

if TYPE_CHECKING:
    from contencioso.application.ports.adjudication_repository import (
        AdjudicationRepositoryProtocol,
    )
    from contencioso.application.ports.committee_roster import CommitteeRosterProtocol
    from contencioso.application.ports.event_sink import AdjudicationEventSinkProtocol
    from contencioso.application.ports.time_authority import TimeAuthorityProtocol
    from contencioso.domain.services.deadline_calculator import BusinessCalendar

logger = get_logger(__name__)

_adjudication_service: AdjudicationService | None = None


def build_deadline_calculator(config: AdjudicationConfig) -> DeadlineCalculator:
    """Weekend calendar, or a holiday calendar when holidays are configured."""
    calendar: BusinessCalendar = (
        HolidayCalendar(config.holidays) if config.holidays else WeekendCalendar()
    )
    return DeadlineCalculator(calendar)


def build_adjudication_service(
    *,
    repository: AdjudicationRepositoryProtocol | None = None,
    roster: CommitteeRosterProtocol | None = None,
    event_sink: AdjudicationEventSinkProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    config: AdjudicationConfig | None = None,
    deadline_calculator: DeadlineCalculator | None = None,
) -> AdjudicationService:
    """Wire an AdjudicationService from ports and configuration.

    Omitted ports fall back to the system clock, the structlog event sink
    and in-memory stubs.
    """
    config = config or AdjudicationConfig.from_environment()
    time_authority = time_authority or SystemTimeAuthority()
    calculator = deadline_calculator or build_deadline_calculator(config)
    if repository is None:
        logger.warning(
            "adjudication_repository_stub_in_use",
            message="No repository supplied, using in-memory stub",
        )
        repository = AdjudicationRepositoryStub()
    if roster is None:
        logger.warning(
            "committee_roster_stub_in_use",
            message="No committee roster supplied, using in-memory stub",
        )
        roster = CommitteeRosterStub()
    sink = DeferredEventSink(event_sink or StructlogEventSink())

    judgment_process = JudgmentProcessService(time_authority, calculator, config, sink)
    service = AdjudicationService(
        repository=repository,
        roster=roster,
        time_authority=time_authority,
        case_workflow=CaseWorkflowService(time_authority, calculator, config, sink),
        judgment_process=judgment_process,
        appeal_process=AppealProcessService(
            time_authority, calculator, config, sink, judgment_process
        ),
        event_sink=sink,
        locks=CaseLockRegistry(),
    )
    logger.info(
        "adjudication_service_initialized",
        calendar=repr(calculator.calendar),
        tie_break_policy=config.tie_break_policy,
        denuncia_quorum=config.denuncia_quorum_fraction,
        impugnacao_quorum=config.impugnacao_quorum_fraction,
    )
    return service


def get_adjudication_service() -> AdjudicationService:
    """Get the process-wide adjudication service, building it on first use."""
    global _adjudication_service
    if _adjudication_service is None:
        _adjudication_service = build_adjudication_service()
    return _adjudication_service


def set_adjudication_service(service: AdjudicationService) -> None:
    """Set the adjudication service instance (for production wiring or tests)."""
    global _adjudication_service
    _adjudication_service = service


def reset_adjudication_service() -> None:
    """Drop the cached instance (for test cleanup)."""
    global _adjudication_service
    _adjudication_service = None
