"""Domain models for the adjudication engine."""

from contencioso.domain.models.appeal_process import AppealProcess, AppealStatus
from contencioso.domain.models.audit_trail import AuditTrail
from contencioso.domain.models.case_record import (
    AdmissibilityRequisites,
    AdmissibilityRuling,
    CaseKind,
    CaseRecord,
    CaseStatus,
    CaseTarget,
    HistoryEntry,
    TargetKind,
    format_protocol,
)
from contencioso.domain.models.committee import Committee, CommitteeScope
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

__all__: list[str] = [
    "AdmissibilityRequisites",
    "AdmissibilityRuling",
    "AppealProcess",
    "AppealStatus",
    "AuditTrail",
    "CaseKind",
    "CaseRecord",
    "CaseStatus",
    "CaseTarget",
    "Committee",
    "CommitteeScope",
    "HistoryEntry",
    "JudgmentInstance",
    "JudgmentOutcome",
    "JudgmentProcess",
    "JudgmentStatus",
    "ProceduralNote",
    "TargetKind",
    "Vote",
    "VoteChoice",
    "VoteOutcome",
    "format_protocol",
]
