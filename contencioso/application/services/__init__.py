"""Application services driving the adjudication state machines."""

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

__all__ = [
    "AdjudicationService",
    "AppealProcessService",
    "CaseLockRegistry",
    "CaseWorkflowService",
    "DeferredEventSink",
    "JudgmentProcessService",
]
