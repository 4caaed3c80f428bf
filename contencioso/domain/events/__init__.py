"""Domain events emitted by the adjudication engine."""

from contencioso.domain.events.adjudication import (
    ADJUDICATION_EVENT_SCHEMA_VERSION,
    APPEAL_FILED_EVENT_TYPE,
    APPEAL_TRANSITIONED_EVENT_TYPE,
    CASE_ARCHIVED_EVENT_TYPE,
    CASE_FILED_EVENT_TYPE,
    CASE_RELATOR_DESIGNATED_EVENT_TYPE,
    CASE_TRANSITIONED_EVENT_TYPE,
    JUDGMENT_DECIDED_EVENT_TYPE,
    JUDGMENT_SCHEDULED_EVENT_TYPE,
    JUDGMENT_TRANSITIONED_EVENT_TYPE,
    JUDGMENT_VOTE_RECORDED_EVENT_TYPE,
    AdjudicationEvent,
)

__all__: list[str] = [
    "ADJUDICATION_EVENT_SCHEMA_VERSION",
    "APPEAL_FILED_EVENT_TYPE",
    "APPEAL_TRANSITIONED_EVENT_TYPE",
    "CASE_ARCHIVED_EVENT_TYPE",
    "CASE_FILED_EVENT_TYPE",
    "CASE_RELATOR_DESIGNATED_EVENT_TYPE",
    "CASE_TRANSITIONED_EVENT_TYPE",
    "JUDGMENT_DECIDED_EVENT_TYPE",
    "JUDGMENT_SCHEDULED_EVENT_TYPE",
    "JUDGMENT_TRANSITIONED_EVENT_TYPE",
    "JUDGMENT_VOTE_RECORDED_EVENT_TYPE",
    "AdjudicationEvent",
]
