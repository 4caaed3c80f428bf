"""In-memory stubs of the application ports for tests and development."""

from contencioso.infrastructure.stubs.adjudication_repository_stub import (
    AdjudicationRepositoryStub,
)
from contencioso.infrastructure.stubs.committee_roster_stub import CommitteeRosterStub
from contencioso.infrastructure.stubs.event_sink_stub import EventSinkStub

__all__ = [
    "AdjudicationRepositoryStub",
    "CommitteeRosterStub",
    "EventSinkStub",
]
